"""Withdrawal limits, workflow and notifications."""

from network_settlement.services.withdrawal.withdrawal_limits import (
    EffectiveLimits,
    LimitCheckResult,
    LimitReason,
    WithdrawalLimitChecker,
)
from network_settlement.services.withdrawal.withdrawal_notifier import (
    PaymentRequestNotification,
    QueueWithdrawalNotifier,
    WithdrawalNotifier,
    deliver_notification,
)
from network_settlement.services.withdrawal.withdrawal_workflow import (
    ALLOWED_TRANSITIONS,
    WithdrawalWorkflow,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "EffectiveLimits",
    "LimitCheckResult",
    "LimitReason",
    "PaymentRequestNotification",
    "QueueWithdrawalNotifier",
    "WithdrawalLimitChecker",
    "WithdrawalNotifier",
    "WithdrawalWorkflow",
    "deliver_notification",
]
