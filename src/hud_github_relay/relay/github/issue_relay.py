"""Installation-scoped issue creation.

The relay accepts an issue request from a trusted caller, mints an
installation token for the named installation, and creates exactly one issue.

No idempotency key is applied: two identical requests create two issues.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable, Mapping
from typing import Annotated, Any

import pydantic
import requests
from github import Auth, Github, GithubException
from pydantic import BaseModel, Field, StringConstraints, field_validator

from hud_github_relay.relay.errors import AuthError, UpstreamError, ValidationError
from hud_github_relay.relay.github.credentials import CredentialProvider, describe_github_error

logger = logging.getLogger(__name__)

DEFAULT_LABELS: tuple[str, ...] = ("bug", "hud-detected")
REQUIRED_FIELDS: tuple[str, ...] = ("installation_id", "owner", "repo", "title", "body")

GithubFactory = Callable[[str], Github]

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
# Owner and repo are interpolated into the `repos/{owner}/{repo}` API path.
GithubName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=100, pattern=r"^[A-Za-z0-9._-]+$"
    ),
]


class IssueRequest(BaseModel):
    """A validated request to open an issue in a customer repository."""

    installation_id: int = Field(gt=0)
    owner: GithubName
    repo: GithubName
    title: NonBlankStr
    body: NonBlankStr
    labels: list[str] = Field(default_factory=lambda: list(DEFAULT_LABELS))

    @field_validator("owner", "repo")
    @classmethod
    def _reject_dot_segments(cls, value: str) -> str:
        if value in {".", ".."}:
            raise ValueError("must not be '.' or '..'")
        return value

    @field_validator("labels")
    @classmethod
    def _dedupe_labels(cls, value: list[str]) -> list[str]:
        labels: list[str] = []
        for label in value:
            cleaned = label.strip()
            if cleaned and cleaned not in labels:
                labels.append(cleaned)
        return labels

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> IssueRequest:
        """Validate an untrusted JSON payload.

        Raises:
            ValidationError: For missing fields, a non-positive or non-numeric
                installation_id, or wrongly typed values.
        """

        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be a JSON object")

        missing = [name for name in REQUIRED_FIELDS if _is_blank(payload.get(name))]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(REQUIRED_FIELDS)}",
                details={"missing": missing},
            )

        data = dict(payload)
        data["installation_id"] = _coerce_installation_id(payload["installation_id"])
        if data.get("labels") is None:
            data.pop("labels", None)

        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(
                "Invalid issue request",
                details=[
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            ) from e


class IssueResult(BaseModel):
    number: int
    url: str
    title: str


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _coerce_installation_id(value: object) -> int:
    number: int | None = None
    # bool is an int subclass; `true` is not an installation.
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            number = int(text)

    if number is None or number <= 0:
        raise ValidationError(
            "Invalid installation_id. Must be a positive integer.",
            details={"installation_id": repr(value)},
        )
    return number


class IssueRelay:
    """Create issues in customer repositories on behalf of a GitHub App."""

    def __init__(
        self,
        *,
        credentials: CredentialProvider,
        api_secret: str,
        base_url: str = "https://api.github.com",
        timeout: int = 15,
        github_factory: GithubFactory | None = None,
    ) -> None:
        if not api_secret:
            raise ValueError("API secret is required")

        self._credentials = credentials
        self._api_secret = api_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._github_factory = github_factory or self._default_github

    def _default_github(self, token: str) -> Github:
        return Github(
            auth=Auth.Token(token),
            base_url=self._base_url,
            timeout=self._timeout,
            retry=None,
        )

    def authorize(self, authorization: str | None) -> None:
        """Check the caller's `Authorization: Bearer <secret>` header.

        Raises:
            AuthError: If the header is missing or does not carry the configured secret.
        """

        if not authorization:
            raise AuthError("Unauthorized")

        scheme, _, credential = authorization.strip().partition(" ")
        if scheme.lower() != "bearer" or not hmac.compare_digest(
            credential.strip().encode("utf-8"), self._api_secret.encode("utf-8")
        ):
            raise AuthError("Unauthorized")

    def create_issue(self, request: IssueRequest | Mapping[str, Any]) -> IssueResult:
        """Create one issue in the requested repository.

        Raises:
            ValidationError: If the request is incomplete; raised before any network call.
            UpstreamError: If the token exchange or the issue creation fails.
        """

        if not isinstance(request, IssueRequest):
            request = IssueRequest.from_payload(request)

        try:
            token = self._credentials.get_installation_token(request.installation_id)
        except (AuthError, UpstreamError) as e:
            logger.warning(
                "Could not obtain installation token",
                extra={"installation_id": request.installation_id, "reason": e.message},
            )
            raise UpstreamError("Failed to create issue", details=_describe(e)) from e

        github = self._github_factory(token.token)
        try:
            repository = github.get_repo(request.full_name, lazy=True)
            issue = repository.create_issue(
                title=request.title,
                body=request.body,
                labels=request.labels,
            )
        except GithubException as e:
            logger.warning(
                "GitHub rejected issue creation",
                extra={"repo": request.full_name, "status": e.status},
            )
            raise UpstreamError("Failed to create issue", details=describe_github_error(e)) from e
        except requests.RequestException as e:
            logger.warning(
                "Network failure while creating issue",
                extra={"repo": request.full_name, "error": str(e)},
            )
            raise UpstreamError("Failed to create issue", details=str(e)) from e
        finally:
            github.close()

        logger.info(
            f"Created issue #{issue.number} in {request.full_name}",
            extra={"installation_id": request.installation_id, "issue_number": issue.number},
        )
        return IssueResult(number=issue.number, url=issue.html_url, title=issue.title)


def _describe(error: AuthError | UpstreamError) -> str:
    if error.details:
        return f"{error.message} ({error.details})"
    return error.message

