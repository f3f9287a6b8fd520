"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from network_settlement.models.base import Base
from network_settlement.models.commission import (
    CommissionRecord,
    OrderSettlement,
)
from network_settlement.models.enums import (
    PaymentRequestStatus,
    RewardType,
    WalletReason,
)
from network_settlement.models.member import Member
from network_settlement.models.payment import (
    PaymentRequest,
    PaymentWallet,
    WithdrawalLimit,
)
from network_settlement.models.phase import MemberPhase, PhaseReward, PhaseTier
from network_settlement.models.wallet import WalletTransaction

__all__ = [
    # Base
    "Base",
    # Enums
    "PaymentRequestStatus",
    "RewardType",
    "WalletReason",
    # Network
    "Member",
    "PhaseTier",
    "MemberPhase",
    "PhaseReward",
    # Commissions
    "OrderSettlement",
    "CommissionRecord",
    # Wallet
    "WalletTransaction",
    # Payouts
    "PaymentWallet",
    "WithdrawalLimit",
    "PaymentRequest",
]
