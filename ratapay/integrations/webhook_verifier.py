"""
Stripe webhook signature verification.

Verification must run over the exact bytes Stripe sent. The HTTP layer hands
the raw request body through untouched; nothing may parse and re-encode it
first.
"""
import json
from typing import Optional

import stripe
import structlog

from ratapay.config import Settings
from ratapay.core.events import VerifiedEvent, parse_event

logger = structlog.get_logger(__name__)


class SignatureInvalid(Exception):
    """Raised when a webhook delivery cannot be authenticated."""

    pass


class EventVerifier:
    """Authenticates Stripe webhook deliveries with the shared signing secret."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def verify(
        self,
        payload: bytes,
        signature: Optional[str],
        secret: Optional[str] = None,
    ) -> VerifiedEvent:
        """
        Verify webhook signature and parse the event.

        Args:
            payload: Raw request body as bytes
            signature: Stripe-Signature header value
            secret: Optional webhook secret (uses config if not provided)

        Returns:
            VerifiedEvent: Parsed event

        Raises:
            SignatureInvalid: If the header or secret is missing, or verification fails
        """
        webhook_secret = secret or self.settings.stripe_webhook_secret

        if not webhook_secret:
            logger.error("webhook_secret_not_configured")
            raise SignatureInvalid("Webhook signing secret is not configured")

        if not signature:
            logger.warning("webhook_signature_missing")
            raise SignatureInvalid("Missing Stripe-Signature header")

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                webhook_secret,
                tolerance=self.settings.webhook_tolerance_seconds,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("webhook_signature_verification_failed", error=str(e))
            raise SignatureInvalid(str(e)) from e
        except UnicodeDecodeError as e:
            logger.warning("webhook_payload_invalid", error=str(e))
            raise SignatureInvalid(f"Invalid payload: {e}") from e

        # Signature matched; the body must still be a JSON event object
        try:
            event = json.loads(body)
        except ValueError as e:
            logger.warning("webhook_payload_invalid", error=str(e))
            raise SignatureInvalid(f"Invalid payload: {e}") from e
        if not isinstance(event, dict):
            logger.warning("webhook_payload_invalid", payload_type=type(event).__name__)
            raise SignatureInvalid("Invalid payload: event must be a JSON object")

        verified = parse_event(event)

        logger.info(
            "webhook_signature_verified",
            event_id=verified.event_id,
            event_type=verified.event_type,
        )

        return verified
