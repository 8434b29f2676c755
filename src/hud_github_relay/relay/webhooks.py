"""GitHub webhook signature verification.

GitHub signs every delivery with HMAC-SHA256 over the raw request body, keyed
with the webhook secret, and sends the digest as ``X-Hub-Signature-256:
sha256=<hex>``. Verification must run on the exact bytes received; re-encoding
parsed JSON changes the digest.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import string
from dataclasses import dataclass, field
from typing import Any

from hud_github_relay.relay.errors import AuthError, ValidationError

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_payload: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` header value GitHub would send for `raw_payload`."""

    digest = hmac.new(secret.encode("utf-8"), raw_payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(raw_payload: bytes, signature_header: str | None, secret: str) -> bool:
    """Check a ``X-Hub-Signature-256`` header against the payload.

    Returns False for a missing or malformed header, an empty secret, or a
    digest mismatch.
    """

    if not secret or not signature_header:
        return False

    header = signature_header.strip()
    if not header.startswith(SIGNATURE_PREFIX):
        return False
    received = header.removeprefix(SIGNATURE_PREFIX).lower()
    if len(received) != hashlib.sha256().digest_size * 2:
        return False
    # compare_digest only accepts ASCII str; headers arrive latin-1 decoded.
    if not all(c in string.hexdigits for c in received):
        return False

    expected = compute_signature(raw_payload, secret).removeprefix(SIGNATURE_PREFIX)
    return hmac.compare_digest(expected, received)


@dataclass(frozen=True, slots=True)
class WebhookEvent:
    """A delivery whose signature has been verified."""

    delivery_id: str
    name: str
    payload: Any = field(repr=False)

    @property
    def action(self) -> str | None:
        if isinstance(self.payload, dict):
            action = self.payload.get("action")
            if isinstance(action, str):
                return action
        return None

    @property
    def installation_id(self) -> int | None:
        if not isinstance(self.payload, dict):
            return None
        installation = self.payload.get("installation")
        if isinstance(installation, dict):
            value = installation.get("id")
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        return None


class WebhookVerifier:
    """Verify and accept GitHub App webhook deliveries."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Webhook secret is required")
        self._secret = secret

    def verify(self, raw_payload: bytes, signature_header: str | None) -> bool:
        return verify_signature(raw_payload, signature_header, self._secret)

    def verify_and_receive(
        self,
        *,
        delivery_id: str | None,
        event_name: str | None,
        signature: str | None,
        payload: bytes,
    ) -> WebhookEvent:
        """Verify a delivery and decode it.

        Raises:
            ValidationError: If the delivery/event headers are missing or the
                signed body is not JSON.
            AuthError: If the signature is missing or does not match.
        """

        if not delivery_id or not event_name:
            raise ValidationError(
                "Webhook verification failed",
                details="Missing X-GitHub-Delivery or X-GitHub-Event header",
            )

        if not self.verify(payload, signature):
            logger.warning(
                "Rejected webhook with invalid signature",
                extra={"delivery_id": delivery_id, "event": event_name},
            )
            raise AuthError("Webhook verification failed", details="Signature does not match")

        try:
            decoded = json.loads(payload) if payload else {}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(
                "Webhook verification failed", details="Payload is not valid JSON"
            ) from e

        event = WebhookEvent(delivery_id=delivery_id, name=event_name, payload=decoded)
        self._log_event(event)
        return event

    def _log_event(self, event: WebhookEvent) -> None:
        extra = {
            "delivery_id": event.delivery_id,
            "event": event.name,
            "action": event.action,
            "installation_id": event.installation_id,
        }
        if event.name == "installation":
            logger.info(f"Installation {event.action or 'event'}", extra=extra)
        else:
            logger.debug("Webhook accepted", extra=extra)
