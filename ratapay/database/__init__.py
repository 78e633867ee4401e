"""Database package for the payment status service."""
from .connection import Database
from .models import Base, PaymentStatus, TransactionStatus
from .store import (
    DuplicateTransactionError,
    StoreError,
    TransactionRecord,
    TransactionStore,
)

__all__ = [
    "Base",
    "Database",
    "DuplicateTransactionError",
    "PaymentStatus",
    "StoreError",
    "TransactionRecord",
    "TransactionStatus",
    "TransactionStore",
]
