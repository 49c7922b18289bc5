"""
GitHub Webhook Verification and Dispatch

Authenticates inbound webhook deliveries with the shared secret
(HMAC-SHA256 over the raw body) and routes verified events to the
handlers registered on a dispatcher instance.
"""

import hmac
import json
import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs

from ..models.pull_request import WebhookPayloadError


logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="

WebhookHandler = Callable[[Dict], None]


class WebhookVerificationError(Exception):
    """Webhook delivery failed authentication"""
    def __init__(self, reason: str):
        super().__init__(f"Webhook verification failed: {reason}")
        self.reason = reason


@dataclass
class WebhookEvent:
    """Inbound webhook delivery, valid for the duration of one request."""
    id: str
    name: str
    raw_body: bytes
    signature: str
    content_type: str = "application/json"


@dataclass
class VerificationResult:
    """Outcome of verifying a webhook delivery."""
    accepted: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.accepted


@dataclass
class DispatchResult:
    """Outcome of routing a verified webhook delivery."""
    delivery_id: str
    event_name: str
    action: Optional[str]
    handled: int


class WebhookVerifier:
    """
    Verifies webhook signatures against the configured shared secret.

    GitHub signs the raw request body with HMAC-SHA256 and sends the hex
    digest in the ``X-Hub-Signature-256`` header as ``sha256=<digest>``.
    """

    def __init__(self, secret: Optional[str]):
        """
        Initialize webhook verifier.

        Args:
            secret: Shared webhook secret; an empty secret rejects every delivery
        """
        self.secret = secret or ""

    def compute_signature(self, body: bytes) -> str:
        """Compute the signature header value GitHub would send for body."""
        digest = hmac.new(self.secret.encode('utf-8'), msg=body, digestmod=hashlib.sha256).hexdigest()
        return SIGNATURE_PREFIX + digest

    def verify(self, event: WebhookEvent) -> VerificationResult:
        """
        Verify a webhook delivery.

        Args:
            event: Inbound webhook delivery

        Returns:
            VerificationResult with the rejection reason when not accepted
        """
        reason = self._rejection_reason(event)
        if reason:
            logger.warning(f"Rejected webhook delivery {event.id or '<none>'}: {reason}")
            return VerificationResult(accepted=False, reason=reason)

        logger.debug(f"Webhook delivery {event.id} verified")
        return VerificationResult(accepted=True)

    def _rejection_reason(self, event: WebhookEvent) -> Optional[str]:
        if not self.secret:
            return "webhook secret is not configured"
        if not event.name:
            return "missing event name"
        if not event.id:
            return "missing delivery id"
        if not event.signature:
            return "missing signature"
        if not self._is_well_formed(event.signature):
            return "malformed signature"

        expected = self.compute_signature(event.raw_body)
        if not hmac.compare_digest(expected.encode('ascii'), event.signature.encode('ascii')):
            return "signature mismatch"
        return None

    @staticmethod
    def _is_well_formed(signature: str) -> bool:
        if not signature.startswith(SIGNATURE_PREFIX):
            return False
        digest = signature[len(SIGNATURE_PREFIX):]
        if len(digest) != hashlib.sha256().digest_size * 2:
            return False
        return all(c in '0123456789abcdef' for c in digest)


class WebhookDispatcher:
    """
    Routes verified webhook deliveries to registered handlers.

    Handlers are registered per dispatcher instance under either an event
    name (``"pull_request"``) or an event and action (``"pull_request.opened"``).
    Deliveries without a matching handler are accepted and ignored.
    """

    def __init__(self, verifier: WebhookVerifier):
        self.verifier = verifier
        self._handlers: Dict[str, List[WebhookHandler]] = {}

    def on(self, event_key: str, handler: WebhookHandler) -> None:
        """Register handler for an event name or ``event.action`` key."""
        self._handlers.setdefault(event_key, []).append(handler)

    def receive(self, event: WebhookEvent) -> DispatchResult:
        """
        Verify a delivery and dispatch it to matching handlers.

        Args:
            event: Inbound webhook delivery

        Returns:
            DispatchResult describing the routing

        Raises:
            WebhookVerificationError: When the delivery fails verification
            WebhookPayloadError: When a verified body is not a JSON object
        """
        result = self.verifier.verify(event)
        if not result.accepted:
            raise WebhookVerificationError(result.reason)

        payload = self._decode_payload(event)
        action = payload.get('action')

        keys = [event.name]
        if action:
            keys.append(f"{event.name}.{action}")

        handled = 0
        for key in keys:
            for handler in self._handlers.get(key, []):
                handler(payload)
                handled += 1

        if handled:
            logger.info(f"Dispatched delivery {event.id} ({keys[-1]}) to {handled} handler(s)")
        else:
            logger.debug(f"No handler for delivery {event.id} ({event.name}, action={action})")

        return DispatchResult(
            delivery_id=event.id,
            event_name=event.name,
            action=action,
            handled=handled,
        )

    @staticmethod
    def _decode_payload(event: WebhookEvent) -> Dict:
        body = event.raw_body
        try:
            if 'application/x-www-form-urlencoded' in (event.content_type or ''):
                form = parse_qs(body.decode('utf-8'))
                body = form.get('payload', [''])[0].encode('utf-8')
            payload = json.loads(body)
        except (UnicodeDecodeError, ValueError) as e:
            raise WebhookPayloadError(f"Webhook body is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise WebhookPayloadError("Webhook body must be a JSON object")
        return payload
