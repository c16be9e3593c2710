"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
before tables are created.
"""

from nedapay.models.wallet_address import WalletAddress
from nedapay.models.wallet_transaction import (
    InvalidStateTransition,
    TransactionKind,
    TransactionStatus,
    WalletTransaction,
)

__all__ = [
    "WalletAddress",
    "WalletTransaction",
    "TransactionKind",
    "TransactionStatus",
    "InvalidStateTransition",
]
