"""
Payout models.

PaymentWallet is an admin-configured payout destination; WithdrawalLimit
holds per-member or platform-wide allowances; PaymentRequest is a member's
withdrawal moving through the request state machine.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from network_settlement.models.base import Base
from network_settlement.models.enums import PaymentRequestStatus
from network_settlement.models.types import (
    CentsType,
    MemberIdType,
    SurrogateKeyType,
)


class PaymentWallet(Base):
    """Payout destination (provider account) configured by administrators."""

    __tablename__ = "payment_wallets"
    __table_args__ = (
        CheckConstraint(
            'min_amount_cents > 0', name='payment_wallet_min_positive'
        ),
        CheckConstraint(
            'max_amount_cents >= min_amount_cents',
            name='payment_wallet_max_above_min',
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    min_amount_cents: Mapped[int] = mapped_column(CentsType, nullable=False)
    max_amount_cents: Mapped[int] = mapped_column(CentsType, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PaymentWallet(id={self.id}, provider={self.provider}, "
            f"active={self.is_active})>"
        )


class WithdrawalLimit(Base):
    """
    Withdrawal allowance configuration.

    A row with user_id NULL is the platform default; a row with a user_id
    overrides it for that member.
    """

    __tablename__ = "withdrawal_limits"
    __table_args__ = (
        CheckConstraint(
            'single_transaction_limit_cents > 0',
            name='withdrawal_limit_single_positive',
        ),
        CheckConstraint(
            'daily_limit_cents > 0', name='withdrawal_limit_daily_positive'
        ),
        CheckConstraint(
            'monthly_limit_cents >= daily_limit_cents',
            name='withdrawal_limit_monthly_above_daily',
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )
    single_transaction_limit_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False
    )
    daily_limit_cents: Mapped[int] = mapped_column(CentsType, nullable=False)
    monthly_limit_cents: Mapped[int] = mapped_column(CentsType, nullable=False)


class PaymentRequest(Base):
    """
    Withdrawal request.

    Status flow:
        pending -> processing -> completed | rejected
        pending | processing -> expired (lazily, once expires_at has passed)
    """

    __tablename__ = "payment_requests"
    __table_args__ = (
        CheckConstraint(
            'amount_cents > 0', name='payment_request_amount_positive'
        ),
        Index('ix_payment_requests_user_status', 'user_id', 'status'),
        Index('ix_payment_requests_user_created', 'user_id', 'created_at'),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
    )
    wallet_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("payment_wallets.id", ondelete="RESTRICT"),
        nullable=False,
    )
    amount_cents: Mapped[int] = mapped_column(CentsType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentRequestStatus.PENDING.value,
        index=True,
    )

    proof_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_hash: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    processed_by: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Ledger entries produced by this request
    debit_transaction_id: Mapped[int | None] = mapped_column(
        SurrogateKeyType,
        ForeignKey("wallet_transactions.id", ondelete="RESTRICT"),
        nullable=True,
    )
    refund_transaction_id: Mapped[int | None] = mapped_column(
        SurrogateKeyType,
        ForeignKey("wallet_transactions.id", ondelete="RESTRICT"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PaymentRequest(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount_cents}, status={self.status})>"
        )
