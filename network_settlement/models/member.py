"""
Member model.

Represents an enrolled network member and their sponsor reference.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from network_settlement.models.base import Base
from network_settlement.models.types import MemberIdType


class Member(Base):
    """
    Member entity.

    Sponsor references form a forest: each member has at most one sponsor,
    assigned once and never changed afterwards. Acyclicity is enforced by
    SponsorRegistry when the reference is assigned.

    Attributes:
        id: Member identifier
        sponsor_id: Member who referred this one (nullable for roots)
        is_active: Whether the member holds an active subscription
        display_name: Optional name for statements and reports
        enrolled_at: When the member joined
        sponsor_assigned_at: When sponsor_id was set
    """

    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint(
            'sponsor_id IS NULL OR sponsor_id <> id',
            name='member_not_own_sponsor',
        ),
        Index('ix_members_sponsor_enrolled', 'sponsor_id', 'enrolled_at'),
    )

    id: Mapped[str] = mapped_column(
        MemberIdType,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    sponsor_id: Mapped[str | None] = mapped_column(
        MemberIdType,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    display_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    sponsor_assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Member(id={self.id}, sponsor_id={self.sponsor_id}, "
            f"active={self.is_active})>"
        )
