"""SQLAlchemy database models for payment status tracking."""
from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class TransactionStatus(str, Enum):
    """Status of a tracked payment intent."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    CANCELED = "canceled"


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class PaymentStatus(Base):
    """
    Payment status records table.

    One row per Stripe PaymentIntent. The row is created as ``pending`` when
    the intent is created and overwritten by verified webhook events.
    Transition order is not enforced here; the last applied write wins.
    """

    __tablename__ = "payment_statuses"

    transaction_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=TransactionStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'succeeded', 'requires_payment_method', 'canceled')",
            name="valid_status",
        ),
    )

    def __repr__(self) -> str:
        """String representation of PaymentStatus."""
        return f"<PaymentStatus(transaction_id={self.transaction_id}, status={self.status})>"
