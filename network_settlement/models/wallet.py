"""
WalletTransaction model.

Append-only ledger. A member's balance is the sum of delta_cents over their
transactions; no balance column exists anywhere.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from network_settlement.models.base import Base
from network_settlement.models.types import (
    CentsType,
    MemberIdType,
    SurrogateKeyType,
)


class WalletTransaction(Base):
    """
    WalletTransaction entity.

    Attributes:
        id: Transaction id (monotonic)
        user_id: Wallet owner
        delta_cents: Signed amount (credit > 0, debit < 0)
        reason: WalletReason value
        created_by: Actor that caused the mutation (member, admin or system)
        reference: External reference (order id, payment request id)
        created_at: When the entry was appended
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint('delta_cents <> 0', name='wallet_delta_non_zero'),
        Index('ix_wallet_transactions_user_created', 'user_id', 'created_at'),
    )

    id: Mapped[int] = mapped_column(
        SurrogateKeyType, primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    delta_cents: Mapped[int] = mapped_column(CentsType, nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    reference: Mapped[str | None] = mapped_column(
        String(128), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WalletTransaction(id={self.id}, user_id={self.user_id}, "
            f"delta={self.delta_cents}, reason={self.reason})>"
        )
