"""
Payment repositories.

Data access layer for PaymentWallet, WithdrawalLimit and PaymentRequest.
"""

from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.enums import (
    LIVE_PAYMENT_REQUEST_STATUSES,
    PaymentRequestStatus,
)
from network_settlement.models.payment import (
    PaymentRequest,
    PaymentWallet,
    WithdrawalLimit,
)
from network_settlement.repositories.base import BaseRepository

_LIVE_STATUSES = [s.value for s in LIVE_PAYMENT_REQUEST_STATUSES]


class PaymentWalletRepository(BaseRepository[PaymentWallet]):
    """Payout destination queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payment wallet repository."""
        super().__init__(PaymentWallet, session)


class WithdrawalLimitRepository(BaseRepository[WithdrawalLimit]):
    """Withdrawal allowance configuration queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal limit repository."""
        super().__init__(WithdrawalLimit, session)

    async def get_for_user(self, user_id: str) -> WithdrawalLimit | None:
        """
        Get the member-specific limit row, falling back to the default row.

        Args:
            user_id: Member ID

        Returns:
            WithdrawalLimit or None if neither row exists
        """
        personal = await self.get_by(user_id=user_id)
        if personal is not None:
            return personal

        stmt = (
            select(WithdrawalLimit)
            .where(WithdrawalLimit.user_id.is_(None))
            .order_by(WithdrawalLimit.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class PaymentRequestRepository(BaseRepository[PaymentRequest]):
    """Payment request queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payment request repository."""
        super().__init__(PaymentRequest, session)

    async def get_by_user(
        self, user_id: str, limit: int = 50
    ) -> list[PaymentRequest]:
        """
        Get a user's requests, newest first.

        Args:
            user_id: Member ID
            limit: Max number of rows

        Returns:
            List of PaymentRequest
        """
        stmt = (
            select(PaymentRequest)
            .where(PaymentRequest.user_id == user_id)
            .order_by(PaymentRequest.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_live_for_user(
        self, user_id: str, now: datetime
    ) -> list[PaymentRequest]:
        """
        Get a user's pending or processing requests not yet past expiry.

        Args:
            user_id: Member ID
            now: Reference time

        Returns:
            List of PaymentRequest, oldest first
        """
        stmt = (
            select(PaymentRequest)
            .where(
                PaymentRequest.user_id == user_id,
                PaymentRequest.status.in_(_LIVE_STATUSES),
                PaymentRequest.expires_at > now,
            )
            .order_by(PaymentRequest.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_stale_for_user(
        self, user_id: str, now: datetime
    ) -> list[PaymentRequest]:
        """
        Get a user's pending or processing requests past expiry, locked.

        Args:
            user_id: Member ID
            now: Reference time

        Returns:
            List of PaymentRequest
        """
        stmt = (
            select(PaymentRequest)
            .where(
                PaymentRequest.user_id == user_id,
                PaymentRequest.status.in_(_LIVE_STATUSES),
                PaymentRequest.expires_at <= now,
            )
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_allowance_used(
        self, user_id: str, since: datetime, now: datetime
    ) -> int:
        """
        Sum request amounts that consume allowance since ``since``.

        Completed requests always count; pending and processing requests
        count until they pass expiry.

        Args:
            user_id: Member ID
            since: Period start (inclusive)
            now: Reference time for expiry

        Returns:
            Total cents
        """
        stmt = select(
            func.coalesce(func.sum(PaymentRequest.amount_cents), 0)
        ).where(
            PaymentRequest.user_id == user_id,
            PaymentRequest.created_at >= since,
            or_(
                PaymentRequest.status == PaymentRequestStatus.COMPLETED.value,
                and_(
                    PaymentRequest.status.in_(_LIVE_STATUSES),
                    PaymentRequest.expires_at > now,
                ),
            ),
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
