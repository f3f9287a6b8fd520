"""
Tests for PhasePlan configuration model.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from network_settlement.services.phase.phase_plan import (
    PhasePlan,
    PhaseThresholds,
    PhaseTierConfig,
)
from network_settlement.utils.exceptions import ConfigurationInvalid


def make_plan(thresholds, *tiers, ratio="1"):
    return PhasePlan(
        tiers=tuple(tiers),
        thresholds=thresholds,
        max_commission_depth=5,
        max_payout_ratio=Decimal(ratio),
    )


class TestPhaseTierConfig:
    """Tier row validation."""

    def test_rejects_float_rate(self):
        with pytest.raises(ValidationError):
            PhaseTierConfig(tier=1, commission_rate=0.05)

    def test_rejects_rate_above_one(self):
        with pytest.raises(ValidationError):
            PhaseTierConfig(tier=1, commission_rate=Decimal("1.5"))

    def test_string_rate_normalized(self):
        config = PhaseTierConfig(tier=1, commission_rate="0.1000")
        assert config.commission_rate == Decimal("0.1")

    def test_frozen(self):
        config = PhaseTierConfig(tier=1, commission_rate=Decimal("0.05"))
        with pytest.raises(ValidationError):
            config.tier = 2


class TestPhasePlan:
    """Plan validation, lookup and versioning."""

    def test_tiers_sorted(self, thresholds):
        plan = make_plan(
            thresholds,
            PhaseTierConfig(tier=2, commission_rate=Decimal("0.1")),
            PhaseTierConfig(tier=0, commission_rate=Decimal("0")),
        )
        assert [t.tier for t in plan.tiers] == [0, 2]

    def test_duplicate_tiers_rejected(self, thresholds):
        with pytest.raises(ValidationError):
            make_plan(
                thresholds,
                PhaseTierConfig(tier=1, commission_rate=Decimal("0.05")),
                PhaseTierConfig(tier=1, commission_rate=Decimal("0.06")),
            )

    def test_empty_tiers_rejected(self, thresholds):
        with pytest.raises(ValidationError):
            make_plan(thresholds)

    def test_rate_for(self, plan):
        assert plan.rate_for(0) == Decimal("0")
        assert plan.rate_for(3) == Decimal("0.12")

    def test_unknown_tier(self, plan):
        with pytest.raises(ConfigurationInvalid) as exc_info:
            plan.rate_for(7)

        assert exc_info.value.context["tier"] == 7
        # Operator detail stays out of the public payload
        assert "7" not in exc_info.value.to_dict()["message"]

    def test_version_stable_for_equal_content(self, thresholds):
        first = make_plan(
            thresholds,
            PhaseTierConfig(tier=0, commission_rate="0"),
            PhaseTierConfig(tier=1, commission_rate="0.050"),
        )
        second = make_plan(
            thresholds,
            PhaseTierConfig(tier=1, commission_rate=Decimal("0.05")),
            PhaseTierConfig(tier=0, commission_rate=Decimal("0")),
        )
        assert first.version == second.version
        assert len(first.version) == 16

    def test_version_changes_with_rates(self, thresholds):
        first = make_plan(
            thresholds, PhaseTierConfig(tier=0, commission_rate="0.01")
        )
        second = make_plan(
            thresholds, PhaseTierConfig(tier=0, commission_rate="0.02")
        )
        assert first.version != second.version

    def test_version_changes_with_thresholds(self):
        tier = PhaseTierConfig(tier=0, commission_rate="0")
        first = make_plan(PhaseThresholds(
            min_direct_active=2,
            min_second_level_total=4,
            min_branch_second_level=2,
        ), tier)
        second = make_plan(PhaseThresholds(
            min_direct_active=3,
            min_second_level_total=4,
            min_branch_second_level=2,
        ), tier)
        assert first.version != second.version
