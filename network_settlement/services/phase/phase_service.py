"""
Phase service.

Persists computed tiers and administrator overrides side by side so a
discrepancy between the two stays visible.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.phase import MemberPhase
from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.repositories.phase_repository import (
    MemberPhaseRepository,
    PhaseTierRepository,
)
from network_settlement.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from network_settlement.services.phase.phase_classifier import (
    PhaseClassification,
    PhaseClassifier,
)
from network_settlement.services.phase.phase_plan import PhasePlan
from network_settlement.services.phase.phase_rewards import PhaseRewardService
from network_settlement.services.referral_graph.graph_store import (
    ReferralGraphStore,
    SqlReferralGraphStore,
)
from network_settlement.utils.datetime_utils import utc_now
from network_settlement.utils.exceptions import NotFound


@dataclass(frozen=True)
class PhaseStatus:
    """Computed and overridden tier of a member."""

    member_id: str
    computed_tier: int
    override_tier: int | None
    calculated_at: datetime | None = None
    override_set_by: str | None = None
    override_reason: str | None = None

    @property
    def effective_tier(self) -> int:
        """Override when set, otherwise the computed tier."""
        if self.override_tier is not None:
            return self.override_tier
        return self.computed_tier

    @property
    def has_discrepancy(self) -> bool:
        """An override differs from what the downline supports."""
        return (
            self.override_tier is not None
            and self.override_tier != self.computed_tier
        )

    @classmethod
    def from_row(cls, row: MemberPhase) -> "PhaseStatus":
        """Build from a MemberPhase row."""
        return cls(
            member_id=row.member_id,
            computed_tier=row.computed_tier,
            override_tier=row.override_tier,
            calculated_at=row.calculated_at,
            override_set_by=row.override_set_by,
            override_reason=row.override_reason,
        )


class PhaseService(BaseService):
    """Member phase state management."""

    def __init__(
        self,
        session: AsyncSession,
        graph: ReferralGraphStore | None = None,
    ) -> None:
        """
        Initialize phase service.

        Args:
            session: Async database session
            graph: Referral graph store (SQL store on the same session
                when omitted)
        """
        super().__init__(session)
        self.graph = graph or SqlReferralGraphStore(session)
        self.member_repo = MemberRepository(session)
        self.phase_repo = MemberPhaseRepository(session)
        self.tier_repo = PhaseTierRepository(session)
        self.rewards = PhaseRewardService(session)

    @log_operation
    @transaction
    async def recalculate(
        self, member_id: str, plan: PhasePlan
    ) -> PhaseStatus:
        """
        Classify a member and store the computed tier and statistics.

        Grants the reward of the newly reached effective tier, if any.

        Args:
            member_id: Member ID
            plan: Phase plan (thresholds and reward values)

        Returns:
            PhaseStatus after recalculation

        Raises:
            NotFound: Member does not exist
            GraphStoreUnavailable: Store could not be read
        """
        classifier = PhaseClassifier(self.graph, plan.thresholds)
        classification = await classifier.classify(member_id)

        row = await self.phase_repo.get_or_create(member_id)
        previous_tier = row.computed_tier
        self._apply_classification(row, classification)
        await self.session.flush()

        status = PhaseStatus.from_row(row)
        if status.effective_tier > 0:
            await self.rewards.grant_for_tier(
                member_id, status.effective_tier, plan
            )

        if previous_tier != classification.tier:
            self.logger.info(
                "Computed tier changed",
                extra={
                    "member_id": member_id,
                    "previous_tier": previous_tier,
                    "tier": classification.tier,
                    "plan_version": plan.version,
                },
            )
        if status.has_discrepancy:
            self.logger.warning(
                "Tier override differs from computed tier",
                extra={
                    "member_id": member_id,
                    "computed_tier": status.computed_tier,
                    "override_tier": status.override_tier,
                },
            )
        return status

    @transaction
    async def set_override(
        self,
        member_id: str,
        tier: int,
        actor_id: str,
        reason: str | None = None,
    ) -> PhaseStatus:
        """
        Set an administrator override. The computed tier is kept.

        Args:
            member_id: Member ID
            tier: Tier to force
            actor_id: Administrator ID
            reason: Free-text justification

        Returns:
            PhaseStatus

        Raises:
            NotFound: Member or tier does not exist
        """
        if not await self.member_repo.exists(id=member_id):
            raise NotFound("Member", member_id)
        if not await self.tier_repo.exists(tier=tier):
            raise NotFound("PhaseTier", tier)

        row = await self.phase_repo.get_or_create(member_id)
        row.override_tier = tier
        row.override_set_by = actor_id
        row.override_reason = reason
        row.override_set_at = utc_now()
        await self.session.flush()

        self.logger.info(
            "Tier override set",
            extra={
                "member_id": member_id,
                "override_tier": tier,
                "computed_tier": row.computed_tier,
                "actor_id": actor_id,
            },
        )
        return PhaseStatus.from_row(row)

    @transaction
    async def clear_override(self, member_id: str, actor_id: str) -> PhaseStatus:
        """
        Remove an administrator override.

        Raises:
            NotFound: Member has no phase row
        """
        row = await self.phase_repo.get_by_id(member_id)
        if row is None:
            raise NotFound("MemberPhase", member_id)

        row.override_tier = None
        row.override_set_by = None
        row.override_reason = None
        row.override_set_at = None
        await self.session.flush()

        self.logger.info(
            "Tier override cleared",
            extra={"member_id": member_id, "actor_id": actor_id},
        )
        return PhaseStatus.from_row(row)

    async def get_status(self, member_id: str) -> PhaseStatus:
        """
        Current phase status. A member never classified is tier 0.

        Raises:
            NotFound: Member does not exist
        """
        row = await self.phase_repo.get_by_id(member_id)
        if row is not None:
            return PhaseStatus.from_row(row)

        if not await self.member_repo.exists(id=member_id):
            raise NotFound("Member", member_id)
        return PhaseStatus(member_id=member_id, computed_tier=0, override_tier=None)

    async def effective_tiers(self, member_ids: Iterable[str]) -> dict[str, int]:
        """
        Effective tier of several members (0 for members without a row).

        Args:
            member_ids: Member IDs

        Returns:
            Dict of member ID to effective tier
        """
        member_ids = list(member_ids)
        rows = await self.phase_repo.get_many(member_ids)
        return {
            member_id: rows[member_id].effective_tier if member_id in rows else 0
            for member_id in member_ids
        }

    @staticmethod
    def _apply_classification(
        row: MemberPhase, classification: PhaseClassification
    ) -> None:
        row.computed_tier = classification.tier
        row.direct_active_count = classification.direct_active_count
        row.total_direct_count = classification.total_direct_count
        row.second_level_total = classification.second_level_total
        row.min_branch_second_level = classification.min_branch_second_level
        row.calculated_at = utc_now()
