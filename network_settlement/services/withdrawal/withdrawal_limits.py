"""
Withdrawal limit checks.

Evaluates every creation-time guard of a payment request and reports the
first one that fails with the numbers involved (limit, used, remaining).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.config.settings import settings
from network_settlement.models.payment import PaymentWallet
from network_settlement.repositories.payment_repository import (
    PaymentRequestRepository,
    PaymentWalletRepository,
    WithdrawalLimitRepository,
)
from network_settlement.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)
from network_settlement.utils.datetime_utils import (
    start_of_day,
    start_of_month,
    utc_now,
)
from network_settlement.utils.exceptions import NotFound
from network_settlement.utils.money import format_cents


class LimitReason(StrEnum):
    """Which guard rejected a withdrawal."""

    WALLET_INACTIVE = "WALLET_INACTIVE"
    BELOW_WALLET_MINIMUM = "BELOW_WALLET_MINIMUM"
    ABOVE_WALLET_MAXIMUM = "ABOVE_WALLET_MAXIMUM"
    EXCEEDS_SINGLE_TRANSACTION_LIMIT = "EXCEEDS_SINGLE_TRANSACTION_LIMIT"
    EXCEEDS_DAILY_LIMIT = "EXCEEDS_DAILY_LIMIT"
    EXCEEDS_MONTHLY_LIMIT = "EXCEEDS_MONTHLY_LIMIT"
    PENDING_REQUEST_EXISTS = "PENDING_REQUEST_EXISTS"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


@dataclass(frozen=True)
class EffectiveLimits:
    """Allowances in force for one member."""

    single_transaction_cents: int
    daily_cents: int
    monthly_cents: int


@dataclass(frozen=True)
class LimitCheckResult:
    """Outcome of the withdrawal guards."""

    allowed: bool
    requested_cents: int
    reason: LimitReason | None = None
    limit_cents: int | None = None
    used_cents: int | None = None
    remaining_cents: int | None = None

    @classmethod
    def ok(cls, requested_cents: int) -> "LimitCheckResult":
        """All guards passed."""
        return cls(allowed=True, requested_cents=requested_cents)

    @classmethod
    def rejected(
        cls,
        reason: LimitReason,
        requested_cents: int,
        limit_cents: int | None = None,
        used_cents: int | None = None,
        remaining_cents: int | None = None,
    ) -> "LimitCheckResult":
        """A guard failed."""
        return cls(
            allowed=False,
            requested_cents=requested_cents,
            reason=reason,
            limit_cents=limit_cents,
            used_cents=used_cents,
            remaining_cents=remaining_cents,
        )

    def describe(self) -> str:
        """Human readable summary for messages and logs."""
        if self.allowed:
            return f"Withdrawal of {format_cents(self.requested_cents)} allowed"

        parts = [
            f"Withdrawal of {format_cents(self.requested_cents)} rejected: "
            f"{self.reason}"
        ]
        if self.limit_cents is not None:
            parts.append(f"limit {format_cents(self.limit_cents)}")
        if self.used_cents is not None:
            parts.append(f"used {format_cents(self.used_cents)}")
        if self.remaining_cents is not None:
            parts.append(f"remaining {format_cents(self.remaining_cents)}")
        return ", ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation; unset numbers are omitted."""
        data: dict[str, Any] = {
            "allowed": self.allowed,
            "requested_cents": self.requested_cents,
        }
        if self.reason is not None:
            data["reason"] = self.reason.value
        for key in ("limit_cents", "used_cents", "remaining_cents"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


class WithdrawalLimitChecker:
    """Evaluates withdrawal guards against current data."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize limit checker."""
        self.wallet_repo = PaymentWalletRepository(session)
        self.limit_repo = WithdrawalLimitRepository(session)
        self.request_repo = PaymentRequestRepository(session)
        self.tx_repo = WalletTransactionRepository(session)

    async def get_limits(self, user_id: str) -> EffectiveLimits:
        """
        Member-specific row, else platform default row, else settings.

        Args:
            user_id: Member ID

        Returns:
            EffectiveLimits
        """
        row = await self.limit_repo.get_for_user(user_id)
        if row is not None:
            return EffectiveLimits(
                single_transaction_cents=row.single_transaction_limit_cents,
                daily_cents=row.daily_limit_cents,
                monthly_cents=row.monthly_limit_cents,
            )
        return EffectiveLimits(
            single_transaction_cents=settings.single_withdrawal_limit_cents,
            daily_cents=settings.daily_withdrawal_limit_cents,
            monthly_cents=settings.monthly_withdrawal_limit_cents,
        )

    async def get_wallet(self, wallet_id: str) -> PaymentWallet:
        """
        Get payout destination.

        Raises:
            NotFound: Wallet does not exist
        """
        wallet = await self.wallet_repo.get_by_id(wallet_id)
        if wallet is None:
            raise NotFound("PaymentWallet", wallet_id)
        return wallet

    async def check(
        self,
        user_id: str,
        wallet_id: str,
        amount_cents: int,
        now: datetime | None = None,
    ) -> LimitCheckResult:
        """
        Run all guards in order and stop at the first failure.

        Args:
            user_id: Member ID
            wallet_id: Payout destination
            amount_cents: Requested amount
            now: Reference time (current UTC time when omitted)

        Returns:
            LimitCheckResult

        Raises:
            NotFound: Wallet does not exist
        """
        now = now or utc_now()
        wallet = await self.get_wallet(wallet_id)

        # 1. Wallet status and range
        if not wallet.is_active:
            return LimitCheckResult.rejected(
                LimitReason.WALLET_INACTIVE, amount_cents
            )
        if amount_cents < wallet.min_amount_cents:
            return LimitCheckResult.rejected(
                LimitReason.BELOW_WALLET_MINIMUM,
                amount_cents,
                limit_cents=wallet.min_amount_cents,
            )
        if amount_cents > wallet.max_amount_cents:
            return LimitCheckResult.rejected(
                LimitReason.ABOVE_WALLET_MAXIMUM,
                amount_cents,
                limit_cents=wallet.max_amount_cents,
            )

        # 2. Allowances
        limits = await self.get_limits(user_id)
        if amount_cents > limits.single_transaction_cents:
            return LimitCheckResult.rejected(
                LimitReason.EXCEEDS_SINGLE_TRANSACTION_LIMIT,
                amount_cents,
                limit_cents=limits.single_transaction_cents,
            )

        daily_used = await self.request_repo.sum_allowance_used(
            user_id, start_of_day(now), now
        )
        result = self._check_period(
            LimitReason.EXCEEDS_DAILY_LIMIT,
            amount_cents,
            limits.daily_cents,
            daily_used,
        )
        if result is not None:
            return result

        monthly_used = await self.request_repo.sum_allowance_used(
            user_id, start_of_month(now), now
        )
        result = self._check_period(
            LimitReason.EXCEEDS_MONTHLY_LIMIT,
            amount_cents,
            limits.monthly_cents,
            monthly_used,
        )
        if result is not None:
            return result

        # 3. One request in flight
        live = await self.request_repo.get_live_for_user(user_id, now)
        if live:
            return LimitCheckResult.rejected(
                LimitReason.PENDING_REQUEST_EXISTS, amount_cents
            )

        # 4. Balance
        balance = await self.tx_repo.get_balance(user_id)
        if balance < amount_cents:
            return LimitCheckResult.rejected(
                LimitReason.INSUFFICIENT_BALANCE,
                amount_cents,
                limit_cents=balance,
                remaining_cents=balance,
            )

        return LimitCheckResult.ok(amount_cents)

    @staticmethod
    def _check_period(
        reason: LimitReason,
        amount_cents: int,
        limit_cents: int,
        used_cents: int,
    ) -> LimitCheckResult | None:
        remaining = max(limit_cents - used_cents, 0)
        if amount_cents > remaining:
            return LimitCheckResult.rejected(
                reason,
                amount_cents,
                limit_cents=limit_cents,
                used_cents=used_cents,
                remaining_cents=remaining,
            )
        return None
