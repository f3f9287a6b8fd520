"""
Commission repository.

Data access layer for OrderSettlement and CommissionRecord models.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.commission import (
    CommissionRecord,
    OrderSettlement,
)
from network_settlement.repositories.base import BaseRepository


class OrderSettlementRepository(BaseRepository[OrderSettlement]):
    """Order settlement claims."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize order settlement repository."""
        super().__init__(OrderSettlement, session)


class CommissionRecordRepository(BaseRepository[CommissionRecord]):
    """Commission record queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission record repository."""
        super().__init__(CommissionRecord, session)

    async def get_for_order(self, order_id: str) -> list[CommissionRecord]:
        """
        Get commission records of an order ordered by level.

        Args:
            order_id: Order ID

        Returns:
            List of CommissionRecord
        """
        stmt = (
            select(CommissionRecord)
            .where(CommissionRecord.order_id == order_id)
            .order_by(CommissionRecord.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
