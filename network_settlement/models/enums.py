"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class PaymentRequestStatus(StrEnum):
    """Payment request (withdrawal) status enumeration."""

    PENDING = "pending"  # Created, awaiting payment proof
    PROCESSING = "processing"  # Proof attached, awaiting admin
    COMPLETED = "completed"  # Approved, payout finalized
    REJECTED = "rejected"  # Rejected by admin
    EXPIRED = "expired"  # Unresolved past expires_at


# Unresolved statuses; these expire once expires_at has passed
LIVE_PAYMENT_REQUEST_STATUSES = (
    PaymentRequestStatus.PENDING,
    PaymentRequestStatus.PROCESSING,
)


class WalletReason(StrEnum):
    """Reason attached to each wallet transaction."""

    COMMISSION = "commission"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_REFUND = "withdrawal_refund"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    PURCHASE = "purchase"
    REFUND = "refund"


class RewardType(StrEnum):
    """Phase reward kinds applied to purchases."""

    FREE_PRODUCT = "free_product"
    STORE_CREDIT = "store_credit"
