"""
Unit tests for webhook event parsing.
"""
import pytest

from conftest import build_event
from ratapay.core.events import IntentStatusEvent, UnknownEvent, parse_event
from ratapay.database.models import TransactionStatus


class TestParseEvent:
    """Test suite for parse_event."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "event_type,expected_status",
        [
            ("payment_intent.succeeded", TransactionStatus.SUCCEEDED),
            ("payment_intent.payment_failed", TransactionStatus.REQUIRES_PAYMENT_METHOD),
            ("payment_intent.canceled", TransactionStatus.CANCELED),
        ],
    )
    def test_known_types_map_to_status(
        self, event_type: str, expected_status: TransactionStatus
    ) -> None:
        """Known payment intent events carry their target status."""
        event = parse_event(build_event(event_type, "pi_1"))

        assert isinstance(event, IntentStatusEvent)
        assert event.transaction_id == "pi_1"
        assert event.target_status == expected_status
        assert event.event_type == event_type

    @pytest.mark.unit
    def test_unrecognized_type_is_unknown(self) -> None:
        """Types without a transition fall through to UnknownEvent."""
        event = parse_event(build_event("payment_intent.processing"))

        assert isinstance(event, UnknownEvent)
        assert event.event_type == "payment_intent.processing"

    @pytest.mark.unit
    def test_known_type_without_object_id_is_unknown(self) -> None:
        """A known type with no usable intent id is never applied."""
        event = parse_event(build_event("payment_intent.succeeded", transaction_id=None))

        assert isinstance(event, UnknownEvent)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"type": "payment_intent.succeeded"},
            {"type": "payment_intent.succeeded", "data": "oops"},
            {"type": "payment_intent.succeeded", "data": {"object": ["pi_1"]}},
            {"type": "payment_intent.succeeded", "data": {"object": {"id": 42}}},
            {"type": 7, "data": {"object": {"id": "pi_1"}}},
        ],
    )
    def test_malformed_payloads_fail_closed(self, payload: dict) -> None:
        """Unexpected shapes never raise."""
        assert isinstance(parse_event(payload), UnknownEvent)

    @pytest.mark.unit
    def test_event_id_is_kept(self) -> None:
        """The Stripe event id is preserved for logging."""
        event = parse_event(build_event("payment_intent.canceled"))

        assert event.event_id == "evt_payment_intent_canceled"
