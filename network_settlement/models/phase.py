"""
Phase models.

PhaseTier holds administrator-owned tier configuration. MemberPhase keeps the
computed tier and any administrator override side by side.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from network_settlement.models.base import Base
from network_settlement.models.types import CentsType, MemberIdType, RateType


class PhaseTier(Base):
    """Phase tier configuration row."""

    __tablename__ = "phase_tiers"
    __table_args__ = (
        CheckConstraint(
            'commission_rate >= 0 AND commission_rate <= 1',
            name='phase_tier_rate_range',
        ),
        CheckConstraint('credit_cents >= 0', name='phase_tier_credit_non_negative'),
        CheckConstraint(
            'free_product_value_cents >= 0',
            name='phase_tier_free_product_non_negative',
        ),
    )

    tier: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(
        RateType, nullable=False, default=Decimal("0")
    )
    credit_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False, default=0
    )
    free_product_value_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False, default=0
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    display_order: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<PhaseTier(tier={self.tier}, rate={self.commission_rate})>"


class MemberPhase(Base):
    """
    Member phase state.

    computed_tier is written only by recalculation; override_tier only by an
    administrator. The effective tier prefers the override when present.
    """

    __tablename__ = "member_phases"

    member_id: Mapped[str] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="CASCADE"),
        primary_key=True,
    )

    computed_tier: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    direct_active_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    total_direct_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    second_level_total: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    min_branch_second_level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    calculated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    override_tier: Mapped[int | None] = mapped_column(Integer, nullable=True)
    override_set_by: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    override_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    override_set_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def effective_tier(self) -> int:
        """Override when set, otherwise the computed tier."""
        if self.override_tier is not None:
            return self.override_tier
        return self.computed_tier

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<MemberPhase(member_id={self.member_id}, "
            f"computed={self.computed_tier}, override={self.override_tier})>"
        )


class PhaseReward(Base):
    """
    One-time reward granted when a member reaches a tier.

    Tier 1 unlocks a free product; higher tiers unlock store credit that is
    consumed by later purchases.
    """

    __tablename__ = "phase_rewards"
    __table_args__ = (
        CheckConstraint(
            'credit_remaining_cents >= 0',
            name='phase_reward_credit_non_negative',
        ),
        CheckConstraint(
            'credit_remaining_cents <= credit_granted_cents',
            name='phase_reward_credit_within_grant',
        ),
    )

    member_id: Mapped[str] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tier: Mapped[int] = mapped_column(Integer, primary_key=True)

    credit_granted_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False, default=0
    )
    credit_remaining_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False, default=0
    )
    free_product_value_cents: Mapped[int] = mapped_column(
        CentsType, nullable=False, default=0
    )
    free_product_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def has_free_product(self) -> bool:
        """Free product granted and not yet redeemed."""
        return self.free_product_value_cents > 0 and not self.free_product_used

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PhaseReward(member_id={self.member_id}, tier={self.tier}, "
            f"credit_remaining={self.credit_remaining_cents})>"
        )
