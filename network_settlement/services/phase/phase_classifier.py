"""
Phase classifier.

Derives a member's compensation tier from level-1 and level-2 downline
statistics. Pure read.
"""

from collections import Counter
from dataclasses import dataclass

from loguru import logger

from network_settlement.services.phase.phase_plan import PhaseThresholds
from network_settlement.services.referral_graph.graph_store import (
    ReferralGraphStore,
)
from network_settlement.services.tree.tree_builder import TreeBuilder


@dataclass(frozen=True)
class PhaseClassification:
    """Tier and the statistics it was derived from."""

    member_id: str
    tier: int
    root_active: bool
    direct_active_count: int
    total_direct_count: int
    second_level_total: int
    min_branch_second_level: int


def determine_tier(
    root_active: bool,
    direct_active_count: int,
    second_level_total: int,
    min_branch_second_level: int,
    thresholds: PhaseThresholds,
) -> int:
    """
    Tier step function.

    Each tier requires the previous one, so raising any count while
    holding the others fixed never lowers the result.

    Args:
        root_active: Whether the member itself is active
        direct_active_count: Active level-1 members
        second_level_total: Active level-2 members
        min_branch_second_level: Smallest active level-2 count among the
            active direct members' branches
        thresholds: Tier thresholds

    Returns:
        Tier number (0-3)
    """
    if not root_active:
        return 0
    if direct_active_count < thresholds.min_direct_active:
        return 0
    if second_level_total < thresholds.min_second_level_total:
        return 1
    if min_branch_second_level < thresholds.min_branch_second_level:
        return 2
    return 3


class PhaseClassifier:
    """Classifies members into phase tiers."""

    def __init__(
        self,
        graph: ReferralGraphStore,
        thresholds: PhaseThresholds | None = None,
    ) -> None:
        """
        Initialize classifier.

        Args:
            graph: Referral graph store
            thresholds: Tier thresholds (settings when omitted)
        """
        self.graph = graph
        self.tree_builder = TreeBuilder(graph)
        self.thresholds = thresholds or PhaseThresholds.from_settings()

    async def classify(self, member_id: str) -> PhaseClassification:
        """
        Compute tier and downline statistics for a member.

        Args:
            member_id: Member ID

        Returns:
            PhaseClassification

        Raises:
            NotFound: Member does not exist
            GraphStoreUnavailable: Store could not be read
        """
        tree = await self.tree_builder.build(member_id, max_depth=2)
        directs = tree.level(1)
        second_level = tree.level(2)

        root_active = await self.graph.is_active(member_id)
        active = await self.graph.active_among(directs + second_level)

        active_directs = [m for m in directs if m in active]
        active_second_level = [m for m in second_level if m in active]

        per_branch = Counter(tree.parents[m] for m in active_second_level)
        min_branch = min(
            (per_branch.get(d, 0) for d in active_directs), default=0
        )

        tier = determine_tier(
            root_active=root_active,
            direct_active_count=len(active_directs),
            second_level_total=len(active_second_level),
            min_branch_second_level=min_branch,
            thresholds=self.thresholds,
        )

        classification = PhaseClassification(
            member_id=member_id,
            tier=tier,
            root_active=root_active,
            direct_active_count=len(active_directs),
            total_direct_count=len(directs),
            second_level_total=len(active_second_level),
            min_branch_second_level=min_branch,
        )

        logger.debug(
            "Member classified",
            extra={
                "member_id": member_id,
                "tier": tier,
                "direct_active": classification.direct_active_count,
                "second_level_total": classification.second_level_total,
                "min_branch": min_branch,
            },
        )
        return classification
