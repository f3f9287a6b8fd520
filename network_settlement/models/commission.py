"""
Commission models.

OrderSettlement claims an order id exactly once; CommissionRecord stores one
immutable payout per (order, recipient, level).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from network_settlement.models.base import Base
from network_settlement.models.types import (
    CentsType,
    MemberIdType,
    RateType,
    SurrogateKeyType,
)


class OrderSettlement(Base):
    """
    Settlement claim for a paid order.

    The unique order_id is the idempotency key: the first transaction to
    insert it owns the settlement, concurrent duplicates fail on commit.
    """

    __tablename__ = "order_settlements"
    __table_args__ = (
        CheckConstraint(
            'paid_amount_cents > 0', name='order_paid_amount_positive'
        ),
        CheckConstraint(
            'total_distributed_cents >= 0',
            name='order_distributed_non_negative',
        ),
    )

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    buyer_id: Mapped[str] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    paid_amount_cents: Mapped[int] = mapped_column(CentsType, nullable=False)
    total_distributed_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False, default=0
    )
    plan_version: Mapped[str] = mapped_column(String(64), nullable=False)
    settled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<OrderSettlement(order_id={self.order_id}, "
            f"paid={self.paid_amount_cents}, "
            f"distributed={self.total_distributed_cents})>"
        )


class CommissionRecord(Base):
    """Commission paid to one upline member for one order."""

    __tablename__ = "commission_records"
    __table_args__ = (
        UniqueConstraint(
            'order_id', 'recipient_id', 'level',
            name='uq_commission_order_recipient_level',
        ),
        CheckConstraint('amount_cents > 0', name='commission_amount_positive'),
        CheckConstraint('level >= 1', name='commission_level_positive'),
    )

    id: Mapped[int] = mapped_column(
        SurrogateKeyType, primary_key=True, autoincrement=True
    )
    order_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("order_settlements.order_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    recipient_id: Mapped[str] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    buyer_id: Mapped[str] = mapped_column(MemberIdType, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    tier: Mapped[int] = mapped_column(Integer, nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    amount_cents: Mapped[int] = mapped_column(CentsType, nullable=False)
    wallet_transaction_id: Mapped[int | None] = mapped_column(
        SurrogateKeyType,
        ForeignKey("wallet_transactions.id", ondelete="RESTRICT"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionRecord(order_id={self.order_id}, "
            f"recipient_id={self.recipient_id}, level={self.level}, "
            f"amount={self.amount_cents})>"
        )
