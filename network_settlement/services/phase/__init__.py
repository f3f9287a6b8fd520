"""Phase classification, plans, overrides and rewards."""

from network_settlement.services.phase.phase_classifier import (
    PhaseClassification,
    PhaseClassifier,
    determine_tier,
)
from network_settlement.services.phase.phase_plan import (
    PhasePlan,
    PhasePlanLoader,
    PhaseThresholds,
    PhaseTierConfig,
)
from network_settlement.services.phase.phase_rewards import (
    PhaseRewardService,
    RewardApplication,
    RewardDiscount,
)
from network_settlement.services.phase.phase_service import (
    PhaseService,
    PhaseStatus,
)

__all__ = [
    "PhaseClassification",
    "PhaseClassifier",
    "PhasePlan",
    "PhasePlanLoader",
    "PhaseRewardService",
    "PhaseService",
    "PhaseStatus",
    "PhaseThresholds",
    "PhaseTierConfig",
    "RewardApplication",
    "RewardDiscount",
    "determine_tier",
]
