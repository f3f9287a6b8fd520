"""
Member repository.

Data access layer for Member model and the sponsor-reference graph.
"""

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.config.constants import SPONSOR_WRITE_LOCK_KEY
from network_settlement.models.member import Member
from network_settlement.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Member repository with graph queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize member repository."""
        super().__init__(Member, session)

    async def lock_sponsor_writes(self) -> None:
        """
        Serialize sponsor reference writes until the transaction ends.

        PostgreSQL takes a transaction-scoped advisory lock. SQLite engines
        already hold the database write lock from BEGIN IMMEDIATE.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        await self.session.execute(
            select(func.pg_advisory_xact_lock(SPONSOR_WRITE_LOCK_KEY))
        )

    async def get_sponsor_row(
        self, member_id: str
    ) -> tuple[str, str | None] | None:
        """
        Get (member_id, sponsor_id) without loading the full entity.

        Args:
            member_id: Member ID

        Returns:
            Tuple of (member_id, sponsor_id) or None if member is unknown
        """
        stmt = select(Member.id, Member.sponsor_id).where(
            Member.id == member_id
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row.id, row.sponsor_id

    async def get_children_of(
        self, parent_ids: Iterable[str]
    ) -> dict[str, list[str]]:
        """
        Get direct children of several members in one query.

        Children are ordered by enrollment time, then id, so discovery
        order is stable across calls.

        Args:
            parent_ids: Sponsor IDs

        Returns:
            Dict mapping each parent to its children (empty list if none)
        """
        parent_ids = list(parent_ids)
        children: dict[str, list[str]] = {pid: [] for pid in parent_ids}
        if not parent_ids:
            return children

        stmt = (
            select(Member.id, Member.sponsor_id)
            .where(Member.sponsor_id.in_(parent_ids))
            .order_by(Member.enrolled_at, Member.id)
        )
        result = await self.session.execute(stmt)
        for row in result.all():
            children[row.sponsor_id].append(row.id)
        return children

    async def get_active_ids(self, member_ids: Iterable[str]) -> set[str]:
        """
        Filter member IDs down to those with an active subscription.

        Args:
            member_ids: Member IDs

        Returns:
            Set of active member IDs
        """
        member_ids = list(member_ids)
        if not member_ids:
            return set()

        stmt = select(Member.id).where(
            Member.id.in_(member_ids),
            Member.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())
