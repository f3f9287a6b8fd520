"""
Phase repository.

Data access layer for PhaseTier, MemberPhase and PhaseReward models.
"""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.phase import MemberPhase, PhaseReward, PhaseTier
from network_settlement.repositories.base import BaseRepository


class PhaseTierRepository(BaseRepository[PhaseTier]):
    """Phase tier configuration queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize phase tier repository."""
        super().__init__(PhaseTier, session)

    async def get_active_tiers(self) -> list[PhaseTier]:
        """
        Get active tiers ordered by tier number.

        Returns:
            List of active PhaseTier rows
        """
        stmt = (
            select(PhaseTier)
            .where(PhaseTier.is_active.is_(True))
            .order_by(PhaseTier.tier)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class MemberPhaseRepository(BaseRepository[MemberPhase]):
    """Member phase state queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize member phase repository."""
        super().__init__(MemberPhase, session)

    async def get_or_create(self, member_id: str) -> MemberPhase:
        """
        Get the phase row for a member, creating a tier-0 row if missing.

        Args:
            member_id: Member ID

        Returns:
            MemberPhase row
        """
        phase = await self.get_by_id(member_id)
        if phase is None:
            phase = await self.create(member_id=member_id, computed_tier=0)
        return phase

    async def get_many(
        self, member_ids: Iterable[str]
    ) -> dict[str, MemberPhase]:
        """
        Get phase rows for several members.

        Args:
            member_ids: Member IDs

        Returns:
            Dict mapping member ID to MemberPhase (missing members omitted)
        """
        member_ids = list(member_ids)
        if not member_ids:
            return {}

        stmt = select(MemberPhase).where(MemberPhase.member_id.in_(member_ids))
        result = await self.session.execute(stmt)
        return {row.member_id: row for row in result.scalars().all()}


class PhaseRewardRepository(BaseRepository[PhaseReward]):
    """Phase reward queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize phase reward repository."""
        super().__init__(PhaseReward, session)

    async def get_latest_for_member(
        self, member_id: str, for_update: bool = False
    ) -> PhaseReward | None:
        """
        Get the reward of the member's highest granted tier.

        Args:
            member_id: Member ID
            for_update: Lock the row while applying a discount

        Returns:
            PhaseReward or None
        """
        stmt = (
            select(PhaseReward)
            .where(PhaseReward.member_id == member_id)
            .order_by(PhaseReward.tier.desc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
