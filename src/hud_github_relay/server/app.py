"""FastAPI app factory.

Endpoints are thin wrappers over the relay services in
`hud_github_relay.relay.*`; this module only routes, authenticates and maps
errors to status codes.
"""

from __future__ import annotations

import html
import json
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from hud_github_relay import __version__
from hud_github_relay.relay.config import RelaySettings
from hud_github_relay.relay.errors import NotFoundError, RelayError, ValidationError
from hud_github_relay.relay.github.credentials import AppCredential, CredentialProvider
from hud_github_relay.relay.github.issue_relay import GithubFactory, IssueRelay
from hud_github_relay.relay.registry import (
    CustomerRecord,
    InMemoryInstallationRegistry,
    InstallationRegistry,
)
from hud_github_relay.relay.webhooks import WebhookVerifier
from hud_github_relay.server.models import (
    CustomerRegistered,
    CustomerRegistration,
    IssueCreated,
)

logger = logging.getLogger(__name__)

_INSTALLED_PAGE = """\
<h1>Hud Bug Reporter Installed!</h1>
<p>Installation ID: {installation_id}</p>
<p>You can now close this window.</p>
<p>Provide this Installation ID to your Hud administrator.</p>
"""

_CANCELLED_PAGE = "<h1>Installation cancelled</h1>"


def create_app(
    settings: RelaySettings | None = None,
    *,
    credentials: CredentialProvider | None = None,
    registry: InstallationRegistry | None = None,
    github_factory: GithubFactory | None = None,
) -> FastAPI:
    settings = settings or RelaySettings()

    if credentials is None:
        credentials = CredentialProvider(
            AppCredential(
                app_id=settings.github_app_id.strip(),
                private_key=settings.load_private_key(),
            ),
            base_url=settings.github_base_url,
            timeout=settings.github_timeout_seconds,
        )
    registry = registry if registry is not None else InMemoryInstallationRegistry()
    relay = IssueRelay(
        credentials=credentials,
        api_secret=settings.api_secret,
        base_url=settings.github_base_url,
        timeout=settings.github_timeout_seconds,
        github_factory=github_factory,
    )
    verifier = WebhookVerifier(settings.github_webhook_secret)

    app = FastAPI(
        title="Hud GitHub Relay",
        version=__version__,
        description="Relays bug reports to customer repositories through a GitHub App.",
    )

    # Handlers and tests reach the collaborators through app.state.
    app.state.settings = settings
    app.state.registry = registry
    app.state.relay = relay
    app.state.webhook_verifier = verifier

    _install_error_handlers(app)

    def require_api_secret(authorization: str | None = Header(default=None)) -> None:
        relay.authorize(authorization)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(tz=UTC).isoformat()}

    @app.get("/auth/callback", response_class=HTMLResponse)
    def auth_callback(
        installation_id: str | None = None, setup_action: str | None = None
    ) -> HTMLResponse:
        # The installation_id is not bound to any session here; it is only displayed.
        if setup_action != "install":
            logger.info("Installation not completed", extra={"setup_action": setup_action})
            return HTMLResponse(_CANCELLED_PAGE)

        logger.info(f"New installation: {installation_id}")
        return HTMLResponse(
            _INSTALLED_PAGE.format(installation_id=html.escape(installation_id or ""))
        )

    @app.post("/webhook", response_class=PlainTextResponse, response_model=None)
    async def webhook(request: Request) -> PlainTextResponse | JSONResponse:
        payload = await request.body()
        try:
            verifier.verify_and_receive(
                delivery_id=request.headers.get("x-github-delivery"),
                event_name=request.headers.get("x-github-event"),
                signature=request.headers.get("x-hub-signature-256"),
                payload=payload,
            )
        except RelayError as e:
            # GitHub only distinguishes success from failure; every rejection is a 400.
            return JSONResponse(status_code=400, content=e.to_payload())
        return PlainTextResponse("OK")

    @app.post(
        "/api/create-issue",
        response_model=IssueCreated,
        dependencies=[Depends(require_api_secret)],
    )
    async def create_issue(request: Request) -> IssueCreated:
        try:
            payload = json.loads(await request.body(), parse_constant=_reject_constant)
        except ValueError as e:
            raise ValidationError("Request body must be valid JSON") from e

        result = await run_in_threadpool(relay.create_issue, payload)
        return IssueCreated(issue=result)

    @app.post(
        "/api/customers",
        response_model=CustomerRegistered,
        dependencies=[Depends(require_api_secret)],
    )
    def register_customer(req: CustomerRegistration) -> CustomerRegistered:
        registry.register(req.customer_id, req.installation_id, req.repos)
        logger.info(
            "Customer registered",
            extra={"customer_id": req.customer_id, "installation_id": req.installation_id},
        )
        return CustomerRegistered(customer_id=req.customer_id)

    @app.get(
        "/api/customers/{customer_id}",
        response_model=CustomerRecord,
        dependencies=[Depends(require_api_secret)],
    )
    def get_customer(customer_id: str) -> CustomerRecord:
        record = registry.lookup(customer_id)
        if record is None:
            raise NotFoundError("Customer not found")
        return record

    return app


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be rendered back in an error body.
    raise ValueError(f"Non-standard JSON constant: {name}")


def _install_error_handlers(app: FastAPI) -> None:
    """Render every failure as `{"error": ..., "details": ...}` JSON."""

    @app.exception_handler(RelayError)
    async def relay_error(_request: Request, exc: RelayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details: list[dict[str, Any]] = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": str(err.get("msg", "")),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400, content={"error": "Invalid request", "details": details}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error while serving request",
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
