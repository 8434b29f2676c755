"""Error taxonomy shared by the relay services and the HTTP layer.

Each error carries the HTTP status it maps to, so route handlers can raise
them directly and a single exception handler renders the JSON body.
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(RelayError):
    """Malformed or missing request fields."""

    status_code = 400


class AuthError(RelayError):
    """Bad bearer token, bad webhook signature, or unusable App credentials."""

    status_code = 401


class NotFoundError(RelayError):
    status_code = 404


class UpstreamError(RelayError):
    """A GitHub API call failed (network, auth, rate limit)."""

    status_code = 500
