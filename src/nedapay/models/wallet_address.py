"""WalletAddress entity - deposit addresses issued by Blockradar."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from nedapay.core.timezone import timestamp_column, utc_now


class WalletAddress(SQLModel, table=True):
    """WalletAddress links a Blockradar child address to its running balance."""

    __tablename__ = "wallet_addresses"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    address: str = Field(max_length=128, unique=True, index=True)
    blockradar_id: Optional[str] = Field(default=None, max_length=255, index=True)
    blockchain: Optional[str] = Field(default=None, max_length=64)
    name: Optional[str] = Field(default=None, max_length=255)
    balance: Decimal = Field(default=Decimal("0"), max_digits=38, decimal_places=18)
    created_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utc_now, sa_column=timestamp_column())
