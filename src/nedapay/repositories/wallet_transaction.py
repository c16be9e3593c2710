"""WalletTransaction repository for NEDApay backend.

Provides lookup by the Blockradar transaction id, which is the idempotency key
for webhook-driven ledger writes.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nedapay.models.wallet_transaction import TransactionStatus, WalletTransaction


class WalletTransactionRepository:
    """Repository for WalletTransaction entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, transaction: WalletTransaction) -> WalletTransaction:
        """Persist new transaction to database.

        Args:
            transaction: WalletTransaction entity to persist

        Returns:
            Persisted transaction with generated ID
        """
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def get_by_blockradar_id(
        self, blockradar_id: str, for_update: bool = False
    ) -> WalletTransaction | None:
        """Retrieve transaction by Blockradar transaction id.

        Args:
            blockradar_id: Provider identifier from the webhook ``data.id`` field
            for_update: Lock the row so concurrent deliveries of one event serialize

        Returns:
            WalletTransaction if found, None otherwise
        """
        stmt = select(WalletTransaction).where(
            WalletTransaction.blockradar_id == blockradar_id  # type: ignore[arg-type]
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_status(
        self, status: TransactionStatus, limit: int = 100
    ) -> list[WalletTransaction]:
        """Retrieve transactions in a given status, oldest first.

        Used by operators to reconcile failed withdrawals.
        """
        result = await self.session.execute(
            select(WalletTransaction)
            .where(WalletTransaction.status == status)  # type: ignore[arg-type]
            .order_by(WalletTransaction.created_at.asc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())
