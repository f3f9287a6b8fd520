"""
Integration tests for phase recalculation, overrides and rewards.
"""

import pytest
import pytest_asyncio

from network_settlement.models import RewardType
from network_settlement.services.phase.phase_plan import PhasePlanLoader
from network_settlement.services.phase.phase_rewards import PhaseRewardService
from network_settlement.services.phase.phase_service import PhaseService
from network_settlement.services.referral_graph.sponsor_registry import (
    SponsorRegistry,
)
from network_settlement.utils.exceptions import ConfigurationInvalid, NotFound


@pytest_asyncio.fixture
async def balanced_downline(make_member):
    """root -> a (a1, a2, a3) and b (b1, b2), all active."""
    await make_member("root")
    for direct, size in (("a", 3), ("b", 2)):
        await make_member(direct, sponsor_id="root")
        for i in range(1, size + 1):
            await make_member(f"{direct}{i}", sponsor_id=direct)


@pytest_asyncio.fixture
async def tier1_member(make_member):
    await make_member("root")
    await make_member("a", sponsor_id="root")
    await make_member("b", sponsor_id="root")


class TestRecalculate:
    """Computed tier persistence."""

    @pytest.mark.asyncio
    async def test_balanced_downline(self, session, balanced_downline, plan):
        service = PhaseService(session)

        status = await service.recalculate("root", plan)

        assert status.computed_tier == 3
        assert status.effective_tier == 3
        assert (await service.get_status("root")).calculated_at is not None

    @pytest.mark.asyncio
    async def test_tier_drops_when_branch_deactivates(
        self, session, balanced_downline, plan
    ):
        service = PhaseService(session)
        await service.recalculate("root", plan)
        await SponsorRegistry(session).set_active("b1", False)

        status = await service.recalculate("root", plan)

        assert status.computed_tier == 2

    @pytest.mark.asyncio
    async def test_never_classified_is_tier0(self, session, make_member):
        await make_member("new")

        status = await PhaseService(session).get_status("new")

        assert status.effective_tier == 0

    @pytest.mark.asyncio
    async def test_unknown_member(self, session, plan):
        service = PhaseService(session)

        with pytest.raises(NotFound):
            await service.recalculate("ghost", plan)
        with pytest.raises(NotFound):
            await service.get_status("ghost")

    @pytest.mark.asyncio
    async def test_effective_tiers(self, session, balanced_downline, plan):
        service = PhaseService(session)
        await service.recalculate("root", plan)

        tiers = await service.effective_tiers(["root", "a", "ghost"])

        assert tiers == {"root": 3, "a": 0, "ghost": 0}


class TestOverride:
    """Administrator overrides sit beside the computed tier."""

    @pytest.mark.asyncio
    async def test_override_keeps_computed_tier(
        self, session, tier1_member, phase_tiers, plan
    ):
        service = PhaseService(session)
        await service.recalculate("root", plan)

        status = await service.set_override("root", 3, "admin-1", "promotion")

        assert status.computed_tier == 1
        assert status.effective_tier == 3
        assert status.has_discrepancy
        assert status.override_set_by == "admin-1"

    @pytest.mark.asyncio
    async def test_recalculation_does_not_clear_override(
        self, session, tier1_member, phase_tiers, plan
    ):
        service = PhaseService(session)
        await service.set_override("root", 2, "admin-1")

        status = await service.recalculate("root", plan)

        assert status.computed_tier == 1
        assert status.override_tier == 2

    @pytest.mark.asyncio
    async def test_clear_override(self, session, tier1_member, phase_tiers, plan):
        service = PhaseService(session)
        await service.set_override("root", 3, "admin-1")

        status = await service.clear_override("root", "admin-1")

        assert status.override_tier is None
        assert not status.has_discrepancy

    @pytest.mark.asyncio
    async def test_unknown_tier(self, session, tier1_member, phase_tiers):
        with pytest.raises(NotFound):
            await PhaseService(session).set_override("root", 9, "admin-1")


class TestRewards:
    """One-time tier rewards and their consumption."""

    @pytest.mark.asyncio
    async def test_tier1_free_product(self, session, tier1_member, plan):
        await PhaseService(session).recalculate("root", plan)
        rewards = PhaseRewardService(session)

        discount = await rewards.calculate_discount("root", 10000)
        assert discount.reward_type == RewardType.FREE_PRODUCT
        assert discount.discount_cents == 6500

        applied = await rewards.apply_reward(
            "root", discount.discount_cents, RewardType.FREE_PRODUCT
        )
        assert applied.success
        again = await rewards.apply_reward("root", 6500, RewardType.FREE_PRODUCT)
        assert not again.success

    @pytest.mark.asyncio
    async def test_store_credit_consumed_partially(
        self, session, balanced_downline, plan
    ):
        await PhaseService(session).recalculate("root", plan)
        rewards = PhaseRewardService(session)

        discount = await rewards.calculate_discount("root", 10000)
        assert discount.reward_type == RewardType.STORE_CREDIT
        assert discount.discount_cents == 10000

        applied = await rewards.apply_reward(
            "root", 10000, RewardType.STORE_CREDIT
        )
        assert applied.remaining_credit_cents == 14000

    @pytest.mark.asyncio
    async def test_reward_granted_once(self, session, tier1_member, plan):
        service = PhaseService(session)
        await service.recalculate("root", plan)
        rewards = PhaseRewardService(session)

        assert await rewards.grant_for_tier("root", 1, plan) is None

    @pytest.mark.asyncio
    async def test_no_reward_without_tier(self, session, make_member):
        await make_member("new")

        discount = await PhaseRewardService(session).calculate_discount(
            "new", 10000
        )

        assert discount.discount_cents == 0
        assert discount.reward_type is None


class TestPlanLoader:
    """Plan built from phase_tiers rows."""

    @pytest.mark.asyncio
    async def test_load(self, session, phase_tiers, plan):
        loaded = await PhasePlanLoader(session).load()

        assert [t.tier for t in loaded.tiers] == [0, 1, 2, 3]
        assert loaded.tiers == plan.tiers

    @pytest.mark.asyncio
    async def test_no_tiers(self, session):
        with pytest.raises(ConfigurationInvalid):
            await PhasePlanLoader(session).load()
