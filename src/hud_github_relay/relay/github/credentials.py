"""GitHub App credential handling.

Wraps PyGithub's App authentication so the rest of the relay only deals with
short-lived tokens. Nothing here caches: every call mints a fresh token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import jwt
import requests
from github import Auth, GithubException, GithubIntegration
from github.GithubException import BadCredentialsException, UnknownObjectException

from hud_github_relay.relay.errors import AuthError, UpstreamError

logger = logging.getLogger(__name__)

# GitHub rejects App JWTs that live longer than 10 minutes.
APP_JWT_EXPIRY_SECONDS = 300


@dataclass(frozen=True, slots=True)
class AppCredential:
    """GitHub App identity, loaded once at startup."""

    app_id: str
    private_key: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class AppToken:
    """App-level JWT, used for introspection only."""

    token: str = field(repr=False)
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class InstallationToken:
    """Token scoped to the repositories of a single installation."""

    installation_id: int
    token: str = field(repr=False)
    expires_at: datetime | None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CredentialProvider:
    """Mint app-level and installation-scoped tokens for one GitHub App."""

    def __init__(
        self,
        credential: AppCredential,
        *,
        base_url: str = "https://api.github.com",
        timeout: int = 15,
        integration: GithubIntegration | None = None,
    ) -> None:
        if not credential.app_id:
            raise ValueError("GitHub App ID is required")
        if not credential.private_key:
            raise ValueError("GitHub App private key is required")

        self._app_id = credential.app_id
        self._auth = Auth.AppAuth(
            credential.app_id,
            credential.private_key,
            jwt_expiry=APP_JWT_EXPIRY_SECONDS,
        )
        # retry=None: failures surface to the caller, the relay never retries.
        self._integration = integration or GithubIntegration(
            auth=self._auth,
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            retry=None,
        )

    def get_app_token(self) -> AppToken:
        """Sign an app-level JWT.

        Raises:
            AuthError: If the private key cannot be used for signing.
        """

        issued = datetime.now(tz=UTC)
        try:
            token = self._auth.create_jwt()
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            logger.error("Failed to sign GitHub App JWT", extra={"app_id": self._app_id})
            raise AuthError("Invalid GitHub App signing key", details=str(e)) from e

        return AppToken(
            token=token, expires_at=issued + timedelta(seconds=APP_JWT_EXPIRY_SECONDS)
        )

    def get_installation_token(self, installation_id: int) -> InstallationToken:
        """Exchange the App identity for an installation access token.

        Raises:
            AuthError: If GitHub does not know the installation, rejects the App
                credentials, or the key cannot sign the exchange JWT.
            UpstreamError: For any other GitHub API or transport failure.
        """

        if installation_id <= 0:
            raise ValueError("installation_id must be a positive integer")

        try:
            authorization = self._integration.get_access_token(installation_id)
        except UnknownObjectException as e:
            logger.warning(
                "Installation not found for GitHub App",
                extra={"installation_id": installation_id, "app_id": self._app_id},
            )
            raise AuthError(
                f"Unknown installation: {installation_id}", details=describe_github_error(e)
            ) from e
        except BadCredentialsException as e:
            logger.error(
                "GitHub rejected the App credentials",
                extra={"installation_id": installation_id, "app_id": self._app_id},
            )
            raise AuthError(
                "GitHub App credentials rejected", details=describe_github_error(e)
            ) from e
        except GithubException as e:
            raise UpstreamError(
                "Installation token exchange failed", details=describe_github_error(e)
            ) from e
        except requests.RequestException as e:
            raise UpstreamError("Installation token exchange failed", details=str(e)) from e
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise AuthError("Invalid GitHub App signing key", details=str(e)) from e

        logger.debug("Minted installation token", extra={"installation_id": installation_id})
        return InstallationToken(
            installation_id=installation_id,
            token=authorization.token,
            expires_at=_as_utc(authorization.expires_at),
        )


def describe_github_error(error: GithubException) -> str:
    data = error.data
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return f"{error.status}: {message}"
    return f"{error.status}: {data!r}" if data else str(error.status)
