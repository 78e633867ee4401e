"""
Durable status store keyed by Stripe PaymentIntent id.

The store exposes three primitives: insert a new ``pending`` record, overwrite
the status of an existing record, and look a record up. Each runs in its own
short transaction so that concurrent requests never share a session.
"""
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ratapay.database.models import PaymentStatus, TransactionStatus

logger = structlog.get_logger(__name__)


class StoreError(Exception):
    """Raised when the status store cannot complete an operation."""

    pass


class DuplicateTransactionError(StoreError):
    """Raised when a record already exists for a transaction id."""

    pass


class TransactionRecord(BaseModel):
    """Read-side view of a stored transaction."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    status: TransactionStatus


class TransactionStore:
    """Status store backed by the ``payment_statuses`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(
        self,
        transaction_id: str,
        status: TransactionStatus = TransactionStatus.PENDING,
    ) -> TransactionRecord:
        """
        Create the record for a newly minted transaction.

        Args:
            transaction_id: Stripe PaymentIntent id
            status: Initial status

        Returns:
            TransactionRecord: The stored record

        Raises:
            DuplicateTransactionError: If the id is already tracked
            StoreError: If the write fails
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        PaymentStatus(transaction_id=transaction_id, status=status.value)
                    )
        except IntegrityError as e:
            logger.error("transaction_already_tracked", transaction_id=transaction_id)
            raise DuplicateTransactionError(
                f"Transaction {transaction_id} already exists"
            ) from e
        except SQLAlchemyError as e:
            logger.error("transaction_insert_failed", transaction_id=transaction_id, error=str(e))
            raise StoreError(f"Failed to store transaction {transaction_id}: {e}") from e

        logger.info("transaction_record_created", transaction_id=transaction_id, status=status.value)
        return TransactionRecord(transaction_id=transaction_id, status=status)

    async def update_status(self, transaction_id: str, status: TransactionStatus) -> bool:
        """
        Overwrite the status of an existing record.

        Args:
            transaction_id: Stripe PaymentIntent id
            status: New status

        Returns:
            bool: False when no record exists for the id (nothing written)

        Raises:
            StoreError: If the write fails
        """
        stmt = (
            update(PaymentStatus)
            .where(PaymentStatus.transaction_id == transaction_id)
            .values(status=status.value, updated_at=func.now())
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("transaction_update_failed", transaction_id=transaction_id, error=str(e))
            raise StoreError(f"Failed to update transaction {transaction_id}: {e}") from e

        return result.rowcount > 0

    async def find(self, transaction_id: str) -> Optional[TransactionRecord]:
        """
        Look a record up by transaction id.

        Returns:
            Optional[TransactionRecord]: None if the id is not tracked

        Raises:
            StoreError: If the read fails
        """
        stmt = select(PaymentStatus).where(PaymentStatus.transaction_id == transaction_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("transaction_lookup_failed", transaction_id=transaction_id, error=str(e))
            raise StoreError(f"Failed to read transaction {transaction_id}: {e}") from e

        if row is None:
            return None
        return TransactionRecord(
            transaction_id=row.transaction_id, status=TransactionStatus(row.status)
        )
