"""
Services.

Business logic layer.
"""

from network_settlement.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
    transaction,
)
from network_settlement.services.commission import (
    CommissionEngine,
    OrderPaidEvent,
    handle_order_paid,
)
from network_settlement.services.phase import (
    PhaseClassifier,
    PhasePlan,
    PhasePlanLoader,
    PhaseRewardService,
    PhaseService,
)
from network_settlement.services.referral_graph import (
    ReferralGraphStore,
    SponsorRegistry,
    SqlReferralGraphStore,
)
from network_settlement.services.tree import DownlineTree, TreeBuilder
from network_settlement.services.wallet import WalletLedger
from network_settlement.services.withdrawal import (
    LimitCheckResult,
    WithdrawalLimitChecker,
    WithdrawalWorkflow,
)

__all__ = [
    "BaseService",
    "CommissionEngine",
    "DownlineTree",
    "LimitCheckResult",
    "OrderPaidEvent",
    "PhaseClassifier",
    "PhasePlan",
    "PhasePlanLoader",
    "PhaseRewardService",
    "PhaseService",
    "ReferralGraphStore",
    "ServiceResult",
    "SponsorRegistry",
    "SqlReferralGraphStore",
    "TreeBuilder",
    "WalletLedger",
    "WithdrawalLimitChecker",
    "WithdrawalWorkflow",
    "handle_order_paid",
    "log_operation",
    "transaction",
]
