"""
Sponsor registry.

Single write path for sponsor references. Enforces the forest invariant
(one sponsor, set once, never an ancestor of itself) at assignment time.
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.config.constants import MAX_CHAIN_VALIDATION_DEPTH
from network_settlement.models.member import Member
from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.services.base_service import BaseService, transaction
from network_settlement.services.referral_graph.graph_store import (
    SqlReferralGraphStore,
)
from network_settlement.utils.datetime_utils import utc_now
from network_settlement.utils.exceptions import NotFound, SponsorAssignmentError


@dataclass
class ChainValidation:
    """Result of an upline integrity walk."""

    member_id: str
    is_valid: bool
    chain: list[str] = field(default_factory=list)
    cycle_at: str | None = None
    error: str | None = None


class SponsorRegistry(BaseService):
    """Enrollment and sponsor assignment."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize sponsor registry."""
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.graph = SqlReferralGraphStore(session)

    @transaction
    async def enroll(
        self,
        member_id: str | None = None,
        sponsor_id: str | None = None,
        is_active: bool = False,
        display_name: str | None = None,
    ) -> Member:
        """
        Enroll a new member, optionally under a sponsor.

        A brand-new member has no downline, so any existing sponsor is
        cycle-free by construction.

        Args:
            member_id: Explicit ID (generated when omitted)
            sponsor_id: Sponsor ID
            is_active: Initial subscription status
            display_name: Optional display name

        Returns:
            Created member

        Raises:
            SponsorAssignmentError: Self-sponsorship, unknown sponsor or
                duplicate member id
        """
        if member_id is not None and member_id == sponsor_id:
            raise SponsorAssignmentError("A member cannot sponsor itself")

        if member_id is not None and await self.member_repo.exists(id=member_id):
            raise SponsorAssignmentError(f"Member already enrolled: {member_id}")

        if sponsor_id is not None and not await self.member_repo.exists(
            id=sponsor_id
        ):
            raise SponsorAssignmentError(f"Unknown sponsor: {sponsor_id}")

        data: dict = {
            "sponsor_id": sponsor_id,
            "is_active": is_active,
            "display_name": display_name,
        }
        if member_id is not None:
            data["id"] = member_id
        if sponsor_id is not None:
            data["sponsor_assigned_at"] = utc_now()

        member = await self.member_repo.create(**data)

        self.logger.info(
            "Member enrolled",
            extra={
                "member_id": member.id,
                "sponsor_id": sponsor_id,
                "is_active": is_active,
            },
        )
        return member

    @transaction
    async def assign_sponsor(
        self, member_id: str, sponsor_id: str, actor_id: str
    ) -> Member:
        """
        Assign a sponsor to a member that has none yet.

        Sponsor writes are serialized, so two crossed assignments cannot
        both pass the cycle check.

        Args:
            member_id: Member receiving the sponsor
            sponsor_id: Proposed sponsor
            actor_id: Who performs the assignment

        Returns:
            Updated member

        Raises:
            NotFound: Member does not exist
            SponsorAssignmentError: Self, unknown sponsor, cycle or
                reassignment
        """
        if member_id == sponsor_id:
            raise SponsorAssignmentError("A member cannot sponsor itself")

        # Held to commit so the upline read below cannot go stale
        await self.member_repo.lock_sponsor_writes()
        member = await self.member_repo.get_for_update(member_id)
        if member is None:
            raise NotFound("Member", member_id)

        if member.sponsor_id is not None:
            # Sponsor references are immutable once set
            raise SponsorAssignmentError(
                f"Sponsor already assigned for {member_id}: {member.sponsor_id}"
            )

        if not await self.member_repo.exists(id=sponsor_id):
            raise SponsorAssignmentError(f"Unknown sponsor: {sponsor_id}")

        upline = await self._walk_upline(sponsor_id)
        if member_id in upline:
            self.logger.warning(
                "Sponsor assignment would create a cycle",
                extra={
                    "member_id": member_id,
                    "sponsor_id": sponsor_id,
                    "chain_ids": upline,
                },
            )
            raise SponsorAssignmentError(
                f"Assigning {sponsor_id} as sponsor of {member_id} "
                f"would create a cycle"
            )

        member.sponsor_id = sponsor_id
        member.sponsor_assigned_at = utc_now()
        await self.session.flush()

        self.logger.info(
            "Sponsor assigned",
            extra={
                "member_id": member_id,
                "sponsor_id": sponsor_id,
                "actor_id": actor_id,
            },
        )
        return member

    @transaction
    async def set_active(self, member_id: str, is_active: bool) -> Member:
        """
        Update subscription status.

        Raises:
            NotFound: Member does not exist
        """
        member = await self.member_repo.get_by_id(member_id)
        if member is None:
            raise NotFound("Member", member_id)

        member.is_active = is_active
        await self.session.flush()

        self.logger.info(
            "Member activity changed",
            extra={"member_id": member_id, "is_active": is_active},
        )
        return member

    async def validate_chain(
        self, member_id: str, max_depth: int = MAX_CHAIN_VALIDATION_DEPTH
    ) -> ChainValidation:
        """
        Walk a member's upline and report cycles or excessive depth.

        Args:
            member_id: Member to check
            max_depth: Maximum number of sponsors to follow

        Returns:
            ChainValidation
        """
        chain: list[str] = []
        seen = {member_id}
        current = await self.graph.get_sponsor(member_id)

        while current is not None:
            if current in seen:
                self.logger.error(
                    "Cycle detected in sponsor chain",
                    extra={"member_id": member_id, "cycle_at": current},
                )
                return ChainValidation(
                    member_id=member_id,
                    is_valid=False,
                    chain=chain,
                    cycle_at=current,
                    error="cycle",
                )
            if len(chain) >= max_depth:
                return ChainValidation(
                    member_id=member_id,
                    is_valid=False,
                    chain=chain,
                    error="max_depth_exceeded",
                )
            chain.append(current)
            seen.add(current)
            current = await self.graph.get_sponsor(current)

        return ChainValidation(member_id=member_id, is_valid=True, chain=chain)

    async def _walk_upline(self, start_id: str) -> list[str]:
        """Collect start_id and all its ancestors, stopping on a repeat."""
        upline: list[str] = []
        seen: set[str] = set()
        current: str | None = start_id
        while current is not None and current not in seen:
            upline.append(current)
            seen.add(current)
            current = await self.graph.get_sponsor(current)
        return upline
