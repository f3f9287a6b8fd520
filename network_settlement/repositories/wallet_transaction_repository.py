"""
Wallet transaction repository.

Data access layer for the append-only WalletTransaction ledger.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.wallet import WalletTransaction
from network_settlement.repositories.base import BaseRepository


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    """Ledger queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet transaction repository."""
        super().__init__(WalletTransaction, session)

    async def get_balance(self, user_id: str) -> int:
        """
        Sum of all deltas for a user.

        Args:
            user_id: Member ID

        Returns:
            Balance in cents (0 for a member with no transactions)
        """
        stmt = select(
            func.coalesce(func.sum(WalletTransaction.delta_cents), 0)
        ).where(WalletTransaction.user_id == user_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[WalletTransaction]:
        """
        Get a user's transactions, newest first.

        Args:
            user_id: Member ID
            limit: Max number of rows
            offset: Rows to skip

        Returns:
            List of WalletTransaction
        """
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
