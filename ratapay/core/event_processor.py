"""
Applies verified webhook events to the status store.

Every transition is a plain overwrite keyed by the transaction id, so a
redelivered event converges to the same status. Unknown event types and
events for untracked transactions are acknowledged without a write.
"""
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict

from ratapay.core.events import IntentStatusEvent, VerifiedEvent
from ratapay.database.store import TransactionStore

logger = structlog.get_logger(__name__)


class AckOutcome(str, Enum):
    """What happened to an acknowledged event."""

    APPLIED = "applied"
    NOT_FOUND = "not_found"
    IGNORED = "ignored"


class Ack(BaseModel):
    """Acknowledgement for a processed event."""

    model_config = ConfigDict(frozen=True)

    outcome: AckOutcome
    event_type: str
    transaction_id: Optional[str] = None


class EventProcessor:
    """Maps verified events onto status transitions."""

    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    async def apply(self, event: VerifiedEvent) -> Ack:
        """
        Apply an event.

        Args:
            event: Verified event

        Returns:
            Ack: Outcome of the event

        Raises:
            StoreError: If the store write fails
        """
        if not isinstance(event, IntentStatusEvent):
            logger.info(
                "webhook_event_ignored",
                event_id=event.event_id,
                event_type=event.event_type,
            )
            return Ack(outcome=AckOutcome.IGNORED, event_type=event.event_type)

        updated = await self.store.update_status(event.transaction_id, event.target_status)

        if not updated:
            logger.warning(
                "transaction_not_found",
                event_id=event.event_id,
                event_type=event.event_type,
                transaction_id=event.transaction_id,
            )
            return Ack(
                outcome=AckOutcome.NOT_FOUND,
                event_type=event.event_type,
                transaction_id=event.transaction_id,
            )

        logger.info(
            "transaction_status_updated",
            event_id=event.event_id,
            event_type=event.event_type,
            transaction_id=event.transaction_id,
            status=event.target_status.value,
        )
        return Ack(
            outcome=AckOutcome.APPLIED,
            event_type=event.event_type,
            transaction_id=event.transaction_id,
        )
