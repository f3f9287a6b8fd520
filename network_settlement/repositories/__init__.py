"""
Repositories.

Data access layer over the SQLAlchemy models.
"""

from network_settlement.repositories.base import BaseRepository
from network_settlement.repositories.commission_repository import (
    CommissionRecordRepository,
    OrderSettlementRepository,
)
from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.repositories.payment_repository import (
    PaymentRequestRepository,
    PaymentWalletRepository,
    WithdrawalLimitRepository,
)
from network_settlement.repositories.phase_repository import (
    MemberPhaseRepository,
    PhaseRewardRepository,
    PhaseTierRepository,
)
from network_settlement.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)

__all__ = [
    "BaseRepository",
    "CommissionRecordRepository",
    "MemberPhaseRepository",
    "MemberRepository",
    "OrderSettlementRepository",
    "PaymentRequestRepository",
    "PaymentWalletRepository",
    "PhaseRewardRepository",
    "PhaseTierRepository",
    "WalletTransactionRepository",
    "WithdrawalLimitRepository",
]
