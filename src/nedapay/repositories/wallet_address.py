"""WalletAddress repository for NEDApay backend."""

from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Insert, Select, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from nedapay.core.timezone import utc_now
from nedapay.models.wallet_address import WalletAddress


def select_by_address(address: str, for_update: bool = False) -> Select:
    """Build the case-insensitive address lookup, optionally row-locking it."""
    stmt = select(WalletAddress).where(
        func.lower(WalletAddress.address) == func.lower(address)  # type: ignore[arg-type]
    )
    if for_update:
        stmt = stmt.with_for_update()
    return stmt


def insert_address_if_missing(dialect_name: str, address: str) -> Insert:
    """Build INSERT ... ON CONFLICT (address) DO NOTHING with a zero balance.

    Column values are spelled out because model defaults only apply to ORM inserts.
    """
    insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
    now = utc_now()
    stmt = insert(WalletAddress).values(
        id=uuid4(),
        address=address,
        balance=Decimal("0"),
        created_at=now,
        updated_at=now,
    )
    return stmt.on_conflict_do_nothing(index_elements=["address"])


class WalletAddressRepository:
    """Repository for WalletAddress entities.

    Methods:
    - add: Persist new address
    - get_by_address: Case-insensitive address lookup
    - credit / debit: Adjust the running balance of an address under a row lock
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, wallet_address: WalletAddress) -> WalletAddress:
        self.session.add(wallet_address)
        await self.session.flush()
        return wallet_address

    async def get_by_address(self, address: str, for_update: bool = False) -> WalletAddress | None:
        """Retrieve address row (case-insensitive, EVM addresses are mixed-case).

        Args:
            address: Wallet address in any case
            for_update: Lock the row until the unit of work ends (SELECT ... FOR UPDATE)
        """
        result = await self.session.execute(select_by_address(address, for_update))
        return result.scalar_one_or_none()

    async def credit(self, address: str, amount: Decimal) -> WalletAddress:
        """Add ``amount`` to an address balance, creating the row if unseen.

        Deposits can be confirmed before ``address.created`` arrives, so a
        missing row is created rather than treated as an error. The row is
        locked before the balance is read, so concurrent confirmations for the
        same address serialize instead of overwriting each other.

        Query explanation:
        - SELECT ... FOR UPDATE: Lock the existing row
        - INSERT ... ON CONFLICT DO NOTHING: Create the row once, even when two
          first deposits race
        - SELECT ... FOR UPDATE again: Lock whichever row won the insert
        """
        wallet_address = await self.get_by_address(address, for_update=True)
        if wallet_address is None:
            dialect_name = self.session.bind.dialect.name
            await self.session.execute(insert_address_if_missing(dialect_name, address))
            wallet_address = await self.get_by_address(address, for_update=True)

        wallet_address.balance = (wallet_address.balance or Decimal("0")) + amount
        wallet_address.updated_at = utc_now()
        await self.session.flush()
        return wallet_address

    async def debit(self, address: str, amount: Decimal) -> WalletAddress:
        """Subtract ``amount`` from an address balance.

        The provider has already settled the withdrawal on-chain, so the
        balance is not checked before subtracting.
        """
        return await self.credit(address, -amount)
