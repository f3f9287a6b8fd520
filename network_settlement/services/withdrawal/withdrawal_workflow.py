"""
Withdrawal workflow.

Payment request state machine:

    pending -> processing -> completed | rejected
    pending -> completed | rejected
    pending | processing -> expired (lazily, once expires_at has passed)

The amount is debited from the ledger when the request is created. Rejected
and expired requests get the amount back through a compensating credit.
"""

import uuid
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.config.constants import SYSTEM_ACTOR
from network_settlement.config.settings import settings
from network_settlement.models.enums import (
    LIVE_PAYMENT_REQUEST_STATUSES,
    PaymentRequestStatus,
    WalletReason,
)
from network_settlement.models.payment import PaymentRequest
from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.repositories.payment_repository import (
    PaymentRequestRepository,
    PaymentWalletRepository,
)
from network_settlement.services.base_service import BaseService, transaction
from network_settlement.services.wallet.wallet_ledger import WalletLedger
from network_settlement.services.withdrawal.withdrawal_limits import (
    LimitCheckResult,
    LimitReason,
    WithdrawalLimitChecker,
)
from network_settlement.services.withdrawal.withdrawal_notifier import (
    PaymentRequestNotification,
    QueueWithdrawalNotifier,
    WithdrawalNotifier,
)
from network_settlement.utils.datetime_utils import ensure_utc, utc_now
from network_settlement.utils.exceptions import (
    InsufficientFunds,
    InvalidState,
    LimitExceeded,
    NotFound,
)

ALLOWED_TRANSITIONS: dict[PaymentRequestStatus, frozenset[PaymentRequestStatus]] = {
    PaymentRequestStatus.PENDING: frozenset({
        PaymentRequestStatus.PROCESSING,
        PaymentRequestStatus.COMPLETED,
        PaymentRequestStatus.REJECTED,
        PaymentRequestStatus.EXPIRED,
    }),
    PaymentRequestStatus.PROCESSING: frozenset({
        PaymentRequestStatus.COMPLETED,
        PaymentRequestStatus.REJECTED,
        PaymentRequestStatus.EXPIRED,
    }),
}

Notifications = list[PaymentRequestNotification]


class WithdrawalWorkflow(BaseService):
    """
    Withdrawal workflow service.

    Every public operation is its own transaction. Notifications are
    dispatched only after that transaction commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: WithdrawalNotifier | None = None,
    ) -> None:
        """
        Initialize withdrawal workflow.

        Args:
            session: Async database session
            notifier: Notification dispatcher (dramatiq queue when omitted)
        """
        super().__init__(session)
        self.notifier = notifier or QueueWithdrawalNotifier()
        self.ledger = WalletLedger(session)
        self.limits = WithdrawalLimitChecker(session)
        self.member_repo = MemberRepository(session)
        self.request_repo = PaymentRequestRepository(session)
        self.wallet_repo = PaymentWalletRepository(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def check_limits(
        self, user_id: str, wallet_id: str, amount_cents: int
    ) -> LimitCheckResult:
        """
        Evaluate creation guards without creating anything.

        Args:
            user_id: Member ID
            wallet_id: Payout destination
            amount_cents: Requested amount

        Returns:
            LimitCheckResult

        Raises:
            NotFound: Unknown member or wallet
        """
        if not await self.member_repo.exists(id=user_id):
            raise NotFound("Member", user_id)
        return await self.limits.check(user_id, wallet_id, amount_cents)

    async def get_request(
        self, request_id: str, user_id: str | None = None
    ) -> PaymentRequest:
        """
        Load a request, expiring it first if its deadline has passed.

        Args:
            request_id: Payment request ID
            user_id: Restrict to this owner

        Returns:
            PaymentRequest

        Raises:
            NotFound: Unknown request or not owned by user_id
        """
        request, notifications = await self._load_expiring(request_id, user_id)
        await self._dispatch(notifications)
        return request

    async def list_user_requests(
        self, user_id: str, limit: int = 50
    ) -> list[PaymentRequest]:
        """
        A member's requests, newest first, with stale ones expired.

        Args:
            user_id: Member ID
            limit: Max number of requests

        Returns:
            List of PaymentRequest
        """
        notifications = await self._expire_user_requests(user_id)
        await self._dispatch(notifications)
        return await self.request_repo.get_by_user(user_id, limit)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_request(
        self, user_id: str, wallet_id: str, amount_cents: int
    ) -> PaymentRequest:
        """
        Create a payment request and hold its amount.

        The member row stays locked from the first guard to the commit, so
        two concurrent requests of one member cannot both pass the
        allowance checks.

        Args:
            user_id: Member ID
            wallet_id: Payout destination
            amount_cents: Requested amount

        Returns:
            Created PaymentRequest (pending)

        Raises:
            ValueError: Non-positive amount
            NotFound: Unknown member or wallet
            LimitExceeded: A guard failed (carries LimitCheckResult)
            InsufficientFunds: Balance below amount
        """
        if (
            isinstance(amount_cents, bool)
            or not isinstance(amount_cents, int)
            or amount_cents <= 0
        ):
            raise ValueError(
                f"amount_cents must be a positive integer, got {amount_cents!r}"
            )

        request, notifications = await self._create_request(
            user_id, wallet_id, amount_cents
        )
        await self._dispatch(notifications)
        return request

    async def attach_proof(
        self,
        request_id: str,
        user_id: str,
        proof_url: str,
        transaction_hash: str | None = None,
    ) -> PaymentRequest:
        """
        Owner attaches payment proof: pending -> processing.

        Raises:
            NotFound: Unknown request or not owned by user_id
            InvalidState: Request is not pending
        """
        return await self._run_transition(
            request_id,
            PaymentRequestStatus.PROCESSING,
            actor_id=user_id,
            owner_id=user_id,
            proof_url=proof_url,
            transaction_hash=transaction_hash,
        )

    async def approve(
        self, request_id: str, admin_id: str, notes: str | None = None
    ) -> PaymentRequest:
        """
        Administrator approval: pending | processing -> completed.

        The amount was already debited at creation; no ledger entry here.

        Raises:
            NotFound: Unknown request
            InvalidState: Request is terminal
        """
        return await self._run_transition(
            request_id,
            PaymentRequestStatus.COMPLETED,
            actor_id=admin_id,
            admin_notes=notes,
        )

    async def reject(
        self, request_id: str, admin_id: str, reason: str
    ) -> PaymentRequest:
        """
        Administrator rejection: pending | processing -> rejected.

        Rejection itself does not debit or pay out. The amount was held
        by a debit at creation, so a `withdrawal_refund` credit is appended
        to return it; the ledger shows both entries.

        Raises:
            NotFound: Unknown request
            InvalidState: Request is terminal
        """
        return await self._run_transition(
            request_id,
            PaymentRequestStatus.REJECTED,
            actor_id=admin_id,
            admin_notes=reason,
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @transaction
    async def _create_request(
        self, user_id: str, wallet_id: str, amount_cents: int
    ) -> tuple[PaymentRequest, Notifications]:
        member = await self.member_repo.get_for_update(user_id)
        if member is None:
            raise NotFound("Member", user_id)

        now = utc_now()
        notifications = await self._expire_stale(user_id, now)

        result = await self.limits.check(user_id, wallet_id, amount_cents, now)
        if not result.allowed:
            if result.reason == LimitReason.INSUFFICIENT_BALANCE:
                raise InsufficientFunds(
                    user_id, result.limit_cents or 0, amount_cents
                )
            raise LimitExceeded(result)

        request = await self.request_repo.create(
            id=str(uuid.uuid4()),
            user_id=user_id,
            wallet_id=wallet_id,
            amount_cents=amount_cents,
            status=PaymentRequestStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(hours=settings.payment_request_ttl_hours),
        )
        request.debit_transaction_id = await self.ledger.debit(
            user_id,
            amount_cents,
            WalletReason.WITHDRAWAL,
            actor_id=user_id,
            reference=request.id,
        )
        await self.session.flush()

        self.logger.info(
            "Payment request created",
            extra={
                "request_id": request.id,
                "user_id": user_id,
                "wallet_id": wallet_id,
                "amount_cents": amount_cents,
            },
        )
        notifications.append(await self._notification(request))
        return request, notifications

    async def _run_transition(
        self,
        request_id: str,
        target: PaymentRequestStatus,
        actor_id: str,
        owner_id: str | None = None,
        **changes: str | None,
    ) -> PaymentRequest:
        request, notifications, error = await self._apply_transition(
            request_id, target, actor_id, owner_id, **changes
        )
        await self._dispatch(notifications)
        if error is not None:
            raise error
        return request

    @transaction
    async def _apply_transition(
        self,
        request_id: str,
        target: PaymentRequestStatus,
        actor_id: str,
        owner_id: str | None = None,
        **changes: str | None,
    ) -> tuple[PaymentRequest, Notifications, InvalidState | None]:
        """
        Apply one transition under a row lock.

        A request found past its deadline is expired and committed first;
        the requested transition is then reported as InvalidState by the
        caller, after the commit.
        """
        request = await self.request_repo.get_for_update(request_id)
        if request is None or (
            owner_id is not None and request.user_id != owner_id
        ):
            raise NotFound("PaymentRequest", request_id)

        now = utc_now()
        if self._is_stale(request, now):
            await self._expire(request, now)
            return (
                request,
                [await self._notification(request)],
                InvalidState(request_id, PaymentRequestStatus.EXPIRED, target),
            )

        current = PaymentRequestStatus(request.status)
        if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise InvalidState(request_id, current, target)

        for field_name, value in changes.items():
            if value is not None:
                setattr(request, field_name, value)
        request.status = target.value

        if target in (
            PaymentRequestStatus.COMPLETED,
            PaymentRequestStatus.REJECTED,
        ):
            request.processed_by = actor_id
            request.processed_at = now

        if target == PaymentRequestStatus.REJECTED:
            await self._refund(request, actor_id)

        await self.session.flush()

        self.logger.info(
            f"Payment request {current} -> {target}",
            extra={
                "request_id": request_id,
                "user_id": request.user_id,
                "actor_id": actor_id,
                "amount_cents": request.amount_cents,
            },
        )
        return request, [await self._notification(request)], None

    @transaction
    async def _load_expiring(
        self, request_id: str, owner_id: str | None
    ) -> tuple[PaymentRequest, Notifications]:
        request = await self.request_repo.get_for_update(request_id)
        if request is None or (
            owner_id is not None and request.user_id != owner_id
        ):
            raise NotFound("PaymentRequest", request_id)

        now = utc_now()
        if not self._is_stale(request, now):
            return request, []

        await self._expire(request, now)
        return request, [await self._notification(request)]

    @transaction
    async def _expire_user_requests(self, user_id: str) -> Notifications:
        return await self._expire_stale(user_id, utc_now())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _expire_stale(
        self, user_id: str, now: datetime
    ) -> Notifications:
        notifications: Notifications = []
        for request in await self.request_repo.get_stale_for_user(user_id, now):
            await self._expire(request, now)
            notifications.append(await self._notification(request))
        return notifications

    async def _expire(self, request: PaymentRequest, now: datetime) -> None:
        previous = request.status
        request.status = PaymentRequestStatus.EXPIRED.value
        request.processed_at = now
        await self._refund(request, SYSTEM_ACTOR)
        await self.session.flush()

        self.logger.info(
            "Payment request expired",
            extra={
                "request_id": request.id,
                "user_id": request.user_id,
                "previous_status": previous,
                "expires_at": ensure_utc(request.expires_at).isoformat(),
            },
        )

    async def _refund(self, request: PaymentRequest, actor_id: str) -> None:
        """Return the creation hold once."""
        if request.debit_transaction_id is None:
            return
        if request.refund_transaction_id is not None:
            return
        request.refund_transaction_id = await self.ledger.credit(
            request.user_id,
            request.amount_cents,
            WalletReason.WITHDRAWAL_REFUND,
            actor_id=actor_id,
            reference=request.id,
        )

    @staticmethod
    def _is_stale(request: PaymentRequest, now: datetime) -> bool:
        return (
            PaymentRequestStatus(request.status) in LIVE_PAYMENT_REQUEST_STATUSES
            and ensure_utc(request.expires_at) <= now
        )

    async def _notification(
        self, request: PaymentRequest
    ) -> PaymentRequestNotification:
        wallet = await self.wallet_repo.get_by_id(request.wallet_id)
        return PaymentRequestNotification(
            request_id=request.id,
            user_id=request.user_id,
            status=PaymentRequestStatus(request.status),
            amount_cents=request.amount_cents,
            wallet_provider=wallet.provider if wallet else "unknown",
        )

    async def _dispatch(self, notifications: Notifications) -> None:
        """Best effort: failures are logged, never raised."""
        for notification in notifications:
            try:
                await self.notifier.notify(notification)
            except Exception as e:
                self.logger.warning(
                    "Payment request notification failed",
                    extra={
                        "request_id": notification.request_id,
                        "status": str(notification.status),
                        "error": str(e),
                    },
                )
