"""
Tests for webhook signature verification.

Signatures are computed the way Stripe computes them, so these run the real
``stripe.WebhookSignature.verify_header`` path.
"""
import time

import pytest

from conftest import WEBHOOK_SECRET, build_event, encode_event, sign_payload
from ratapay.config import Settings
from ratapay.core.events import IntentStatusEvent, UnknownEvent
from ratapay.database.models import TransactionStatus
from ratapay.integrations.webhook_verifier import EventVerifier, SignatureInvalid


class TestEventVerifier:
    """Test suite for EventVerifier."""

    @pytest.mark.unit
    def test_valid_signature(self, test_settings: Settings) -> None:
        """A correctly signed payload yields a parsed event."""
        payload = encode_event(build_event("payment_intent.succeeded", "pi_1"))
        verifier = EventVerifier(test_settings)

        event = verifier.verify(payload, sign_payload(payload))

        assert isinstance(event, IntentStatusEvent)
        assert event.transaction_id == "pi_1"
        assert event.target_status == TransactionStatus.SUCCEEDED

    @pytest.mark.unit
    def test_unrecognized_type_verifies_as_unknown(self, test_settings: Settings) -> None:
        """Verification does not depend on the event type."""
        payload = encode_event(build_event("charge.refunded", "ch_1"))
        verifier = EventVerifier(test_settings)

        event = verifier.verify(payload, sign_payload(payload))

        assert isinstance(event, UnknownEvent)
        assert event.event_type == "charge.refunded"

    @pytest.mark.unit
    def test_wrong_secret_rejected(self, test_settings: Settings) -> None:
        """A signature made with another secret is rejected."""
        payload = encode_event(build_event("payment_intent.succeeded"))
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid):
            verifier.verify(payload, sign_payload(payload, secret="whsec_someone_else"))

    @pytest.mark.unit
    def test_tampered_payload_rejected(self, test_settings: Settings) -> None:
        """Any change to the signed bytes invalidates the signature."""
        payload = encode_event(build_event("payment_intent.succeeded", "pi_1"))
        header = sign_payload(payload)
        tampered = payload.replace(b"pi_1", b"pi_9")
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid):
            verifier.verify(tampered, header)

    @pytest.mark.unit
    def test_reencoded_payload_rejected(self, test_settings: Settings) -> None:
        """Re-serializing the JSON before verification breaks the signature."""
        event = build_event("payment_intent.succeeded", "pi_1")
        payload = encode_event(event)
        header = sign_payload(payload)
        reencoded = payload.replace(b",", b", ")
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid):
            verifier.verify(reencoded, header)

    @pytest.mark.unit
    @pytest.mark.parametrize("header", [None, ""])
    def test_missing_header_rejected(self, test_settings: Settings, header: str) -> None:
        """No header, no event."""
        payload = encode_event(build_event("payment_intent.succeeded"))
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid, match="Missing"):
            verifier.verify(payload, header)

    @pytest.mark.unit
    def test_garbage_header_rejected(self, test_settings: Settings) -> None:
        """Headers that are not in Stripe's format are rejected."""
        payload = encode_event(build_event("payment_intent.succeeded"))
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid):
            verifier.verify(payload, "t=1234567890,v1=invalid_signature")

    @pytest.mark.unit
    def test_stale_timestamp_rejected(self, test_settings: Settings) -> None:
        """Signatures older than the tolerance are rejected."""
        payload = encode_event(build_event("payment_intent.succeeded"))
        old = int(time.time()) - test_settings.webhook_tolerance_seconds - 60
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid):
            verifier.verify(payload, sign_payload(payload, timestamp=old))

    @pytest.mark.unit
    def test_missing_secret_rejected(self, test_settings: Settings) -> None:
        """A misconfigured secret is an authentication failure."""
        settings = test_settings.model_copy(update={"stripe_webhook_secret": ""})
        payload = encode_event(build_event("payment_intent.succeeded"))
        verifier = EventVerifier(settings)

        with pytest.raises(SignatureInvalid, match="not configured"):
            verifier.verify(payload, sign_payload(payload))

    @pytest.mark.unit
    def test_explicit_secret_overrides_config(self, test_settings: Settings) -> None:
        """A secret passed to verify() takes precedence."""
        payload = encode_event(build_event("payment_intent.canceled", "pi_1"))
        verifier = EventVerifier(test_settings)

        event = verifier.verify(
            payload,
            sign_payload(payload, secret="whsec_rotated"),
            secret="whsec_rotated",
        )

        assert isinstance(event, IntentStatusEvent)
        assert event.target_status == TransactionStatus.CANCELED

    @pytest.mark.unit
    def test_signed_non_json_rejected(self, test_settings: Settings) -> None:
        """A valid signature over a non-JSON body is still rejected."""
        payload = b"not json"
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid):
            verifier.verify(payload, sign_payload(payload, secret=WEBHOOK_SECRET))

    @pytest.mark.unit
    @pytest.mark.parametrize("payload", [b"[]", b'"payment_intent.succeeded"', b"42"])
    def test_signed_non_object_rejected(self, test_settings: Settings, payload: bytes) -> None:
        """JSON that is not an object is not an event."""
        verifier = EventVerifier(test_settings)

        with pytest.raises(SignatureInvalid, match="Invalid payload"):
            verifier.verify(payload, sign_payload(payload))

    @pytest.mark.unit
    def test_full_stripe_event_parsed(self, test_settings: Settings) -> None:
        """Extra fields in a real delivery do not get in the way of parsing."""
        event = build_event("payment_intent.payment_failed", "pi_7")
        event.update({"api_version": "2024-06-20", "livemode": False, "created": 1700000000})
        event["data"]["object"].update({"amount": 1999, "metadata": {"order": "42"}})
        payload = encode_event(event)
        verifier = EventVerifier(test_settings)

        verified = verifier.verify(payload, sign_payload(payload))

        assert isinstance(verified, IntentStatusEvent)
        assert verified.event_id == "evt_payment_intent_payment_failed"
        assert verified.transaction_id == "pi_7"
        assert verified.target_status == TransactionStatus.REQUIRES_PAYMENT_METHOD
