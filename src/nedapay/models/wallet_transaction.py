"""WalletTransaction entity - deposits and withdrawals reported by Blockradar."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from nedapay.core.timezone import timestamp_column, utc_now


class TransactionKind(str, Enum):
    """Direction of funds relative to the user's wallet."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, Enum):
    """Transaction lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid transaction state transition."""

    pass


class WalletTransaction(SQLModel, table=True):
    """Ledger row for one Blockradar transaction, keyed by the provider's id."""

    __tablename__ = "wallet_transactions"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    blockradar_id: str = Field(max_length=255, unique=True, index=True)
    kind: TransactionKind = Field(index=True)
    status: TransactionStatus = Field(default=TransactionStatus.PENDING, index=True)
    amount: Decimal = Field(default=Decimal("0"), max_digits=38, decimal_places=18)
    asset: Optional[str] = Field(default=None, max_length=32)
    address: Optional[str] = Field(default=None, max_length=128, index=True)
    tx_hash: Optional[str] = Field(default=None, max_length=128)
    blockchain: Optional[str] = Field(default=None, max_length=64)
    failure_reason: Optional[str] = Field(default=None, max_length=1000)
    payload: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())

    @property
    def is_terminal(self) -> bool:
        return self.status in (TransactionStatus.CONFIRMED, TransactionStatus.FAILED)

    def mark_confirmed(self, tx_hash: Optional[str] = None) -> None:
        """Transition from pending to confirmed.

        Args:
            tx_hash: On-chain hash, if the confirmation carries one

        Raises:
            InvalidStateTransition: If current status is not pending
        """
        if self.status != TransactionStatus.PENDING:
            raise InvalidStateTransition(
                f"Cannot mark confirmed from {self.status.value}. "
                "Transaction must be in pending state."
            )
        if tx_hash:
            self.tx_hash = tx_hash
        self.status = TransactionStatus.CONFIRMED
        self.updated_at = utc_now()

    def mark_failed(self, reason: Optional[str] = None) -> None:
        """Transition from pending to failed.

        Raises:
            InvalidStateTransition: If current status is already terminal (confirmed/failed)
        """
        if self.is_terminal:
            raise InvalidStateTransition(
                f"Cannot mark failed from terminal state {self.status.value}."
            )
        self.failure_reason = reason[:1000] if reason else None
        self.status = TransactionStatus.FAILED
        self.updated_at = utc_now()
