"""
Phase reward service.

One-time rewards unlocked by reaching a tier: a free product for tier 1,
store credit for higher tiers. Rewards are consumed as purchase discounts.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.enums import RewardType
from network_settlement.models.phase import PhaseReward
from network_settlement.repositories.phase_repository import (
    PhaseRewardRepository,
)
from network_settlement.services.base_service import BaseService
from network_settlement.services.phase.phase_plan import PhasePlan
from network_settlement.utils.datetime_utils import ensure_utc, utc_now


@dataclass
class RewardDiscount:
    """Discount a member's reward allows on a purchase."""

    discount_cents: int = 0
    reward_type: RewardType | None = None


@dataclass
class RewardApplication:
    """Outcome of consuming a reward."""

    success: bool
    reward_type: RewardType | None = None
    discount_applied_cents: int = 0
    remaining_credit_cents: int | None = None
    error: str | None = None


class PhaseRewardService(BaseService):
    """
    Phase reward service.

    Methods flush only; the caller owns the transaction (recalculation or
    order checkout).
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize phase reward service."""
        super().__init__(session)
        self.reward_repo = PhaseRewardRepository(session)

    async def grant_for_tier(
        self, member_id: str, tier: int, plan: PhasePlan
    ) -> PhaseReward | None:
        """
        Grant the tier's reward once per (member, tier).

        Args:
            member_id: Member ID
            tier: Tier reached
            plan: Phase plan carrying reward values

        Returns:
            Created PhaseReward, or None if already granted or the tier
            carries no reward
        """
        config = plan.tier_config(tier)
        if config.credit_cents == 0 and config.free_product_value_cents == 0:
            return None

        existing = await self.reward_repo.get_by_id((member_id, tier))
        if existing is not None:
            return None

        reward = await self.reward_repo.create(
            member_id=member_id,
            tier=tier,
            credit_granted_cents=config.credit_cents,
            credit_remaining_cents=config.credit_cents,
            free_product_value_cents=config.free_product_value_cents,
        )

        self.logger.info(
            "Phase reward granted",
            extra={
                "member_id": member_id,
                "tier": tier,
                "credit_cents": config.credit_cents,
                "free_product_value_cents": config.free_product_value_cents,
                "plan_version": plan.version,
            },
        )
        return reward

    async def get_active_reward(
        self, member_id: str, for_update: bool = False
    ) -> PhaseReward | None:
        """Latest reward that has not expired."""
        reward = await self.reward_repo.get_latest_for_member(
            member_id, for_update=for_update
        )
        if reward is None:
            return None
        if reward.expires_at and ensure_utc(reward.expires_at) <= utc_now():
            return None
        return reward

    async def calculate_discount(
        self, member_id: str, subtotal_cents: int
    ) -> RewardDiscount:
        """
        Discount available on a purchase.

        An unused free product takes precedence over store credit.

        Args:
            member_id: Member ID
            subtotal_cents: Purchase subtotal

        Returns:
            RewardDiscount (zero when nothing applies)
        """
        if subtotal_cents <= 0:
            return RewardDiscount()

        reward = await self.get_active_reward(member_id)
        if reward is None:
            return RewardDiscount()

        if reward.has_free_product:
            return RewardDiscount(
                discount_cents=min(
                    subtotal_cents, reward.free_product_value_cents
                ),
                reward_type=RewardType.FREE_PRODUCT,
            )

        if reward.credit_remaining_cents > 0:
            return RewardDiscount(
                discount_cents=min(
                    subtotal_cents, reward.credit_remaining_cents
                ),
                reward_type=RewardType.STORE_CREDIT,
            )

        return RewardDiscount()

    async def apply_reward(
        self,
        member_id: str,
        discount_cents: int,
        reward_type: RewardType,
    ) -> RewardApplication:
        """
        Consume a reward after the purchase is paid.

        Args:
            member_id: Member ID
            discount_cents: Discount requested
            reward_type: Which reward to consume

        Returns:
            RewardApplication
        """
        if discount_cents <= 0:
            return RewardApplication(
                success=False, error="Discount must be positive"
            )

        reward = await self.get_active_reward(member_id, for_update=True)
        if reward is None:
            return RewardApplication(
                success=False, error="No active rewards found"
            )

        if reward_type == RewardType.FREE_PRODUCT:
            if not reward.has_free_product:
                return RewardApplication(
                    success=False, error="Free product reward not available"
                )
            applied = min(discount_cents, reward.free_product_value_cents)
            reward.free_product_used = True
            await self.session.flush()

            self.logger.info(
                "Free product reward applied",
                extra={"member_id": member_id, "discount_cents": applied},
            )
            return RewardApplication(
                success=True,
                reward_type=RewardType.FREE_PRODUCT,
                discount_applied_cents=applied,
            )

        if reward.credit_remaining_cents <= 0:
            return RewardApplication(
                success=False, error="Store credit not available"
            )

        applied = min(discount_cents, reward.credit_remaining_cents)
        reward.credit_remaining_cents -= applied
        await self.session.flush()

        self.logger.info(
            "Store credit applied",
            extra={
                "member_id": member_id,
                "discount_cents": applied,
                "remaining_cents": reward.credit_remaining_cents,
            },
        )
        return RewardApplication(
            success=True,
            reward_type=RewardType.STORE_CREDIT,
            discount_applied_cents=applied,
            remaining_credit_cents=reward.credit_remaining_cents,
        )
