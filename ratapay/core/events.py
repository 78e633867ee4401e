"""
Verified webhook events.

Stripe's event payload is only partially trusted in shape, so it is parsed
into one of two variants before anything acts on it:

- ``IntentStatusEvent``: a known payment intent event carrying the id of the
  intent and the status it maps to.
- ``UnknownEvent``: everything else, including known types whose payload has
  no usable object id. These are acknowledged and never applied.
"""
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from ratapay.database.models import TransactionStatus

# Event type -> status written to the store
STATUS_TRANSITIONS: Dict[str, TransactionStatus] = {
    "payment_intent.succeeded": TransactionStatus.SUCCEEDED,
    "payment_intent.payment_failed": TransactionStatus.REQUIRES_PAYMENT_METHOD,
    "payment_intent.canceled": TransactionStatus.CANCELED,
}


class IntentStatusEvent(BaseModel):
    """A payment intent event that moves a transaction to a new status."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["intent_status"] = "intent_status"
    event_id: Optional[str] = None
    event_type: str
    transaction_id: str
    target_status: TransactionStatus


class UnknownEvent(BaseModel):
    """An event with no status transition."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"
    event_id: Optional[str] = None
    event_type: str


VerifiedEvent = Union[IntentStatusEvent, UnknownEvent]


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def parse_event(payload: Mapping[str, Any]) -> VerifiedEvent:
    """
    Map a verified Stripe event payload onto the event variants.

    Args:
        payload: Event as delivered by Stripe (``stripe.Event`` or a plain dict)

    Returns:
        VerifiedEvent: ``IntentStatusEvent`` for actionable events,
        ``UnknownEvent`` otherwise
    """
    event_id = _as_str(payload.get("id"))
    event_type = _as_str(payload.get("type")) or ""

    target_status = STATUS_TRANSITIONS.get(event_type)
    if target_status is None:
        return UnknownEvent(event_id=event_id, event_type=event_type)

    data = payload.get("data")
    obj = data.get("object") if isinstance(data, Mapping) else None
    transaction_id = _as_str(obj.get("id")) if isinstance(obj, Mapping) else None
    if transaction_id is None:
        return UnknownEvent(event_id=event_id, event_type=event_type)

    return IntentStatusEvent(
        event_id=event_id,
        event_type=event_type,
        transaction_id=transaction_id,
        target_status=target_status,
    )
