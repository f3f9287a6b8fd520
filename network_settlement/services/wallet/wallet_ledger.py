"""
Wallet ledger.

Append-only transaction log. The balance of a member is always the sum of
their deltas, re-derived at the moment it is needed.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.enums import WalletReason
from network_settlement.models.wallet import WalletTransaction
from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)
from network_settlement.services.base_service import BaseService
from network_settlement.utils.exceptions import InsufficientFunds, NotFound


class WalletLedger(BaseService):
    """
    Wallet ledger service.

    Never commits: credits and debits join the caller's transaction so
    they land atomically with the records that caused them.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet ledger."""
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.tx_repo = WalletTransactionRepository(session)

    async def credit(
        self,
        user_id: str,
        amount_cents: int,
        reason: WalletReason,
        actor_id: str,
        reference: str | None = None,
    ) -> int:
        """
        Append a credit.

        Args:
            user_id: Wallet owner
            amount_cents: Positive amount
            reason: Why the wallet is credited
            actor_id: Who caused the credit
            reference: Order or payment request ID

        Returns:
            Transaction ID

        Raises:
            ValueError: Non-positive amount
            NotFound: Unknown member
        """
        self._validate_amount(amount_cents)
        if not await self.member_repo.exists(id=user_id):
            raise NotFound("Member", user_id)

        tx = await self._append(
            user_id, amount_cents, reason, actor_id, reference
        )

        self.logger.info(
            "Wallet credited",
            extra={
                "user_id": user_id,
                "amount_cents": amount_cents,
                "reason": str(reason),
                "transaction_id": tx.id,
            },
        )
        return tx.id

    async def debit(
        self,
        user_id: str,
        amount_cents: int,
        reason: WalletReason,
        actor_id: str,
        reference: str | None = None,
    ) -> int:
        """
        Append a debit if the balance covers it.

        Locks the member row, so concurrent debits for the same member
        serialize and each sees the other's entry.

        Args:
            user_id: Wallet owner
            amount_cents: Positive amount to remove
            reason: Why the wallet is debited
            actor_id: Who caused the debit
            reference: Order or payment request ID

        Returns:
            Transaction ID

        Raises:
            ValueError: Non-positive amount
            NotFound: Unknown member
            InsufficientFunds: Balance below amount
        """
        self._validate_amount(amount_cents)

        member = await self.member_repo.get_for_update(user_id)
        if member is None:
            raise NotFound("Member", user_id)

        balance = await self.tx_repo.get_balance(user_id)
        if balance < amount_cents:
            raise InsufficientFunds(user_id, balance, amount_cents)

        tx = await self._append(
            user_id, -amount_cents, reason, actor_id, reference
        )

        self.logger.info(
            "Wallet debited",
            extra={
                "user_id": user_id,
                "amount_cents": amount_cents,
                "reason": str(reason),
                "balance_before": balance,
                "transaction_id": tx.id,
            },
        )
        return tx.id

    async def balance(self, user_id: str) -> int:
        """
        Current balance in cents.

        Raises:
            NotFound: Unknown member
        """
        if not await self.member_repo.exists(id=user_id):
            raise NotFound("Member", user_id)
        return await self.tx_repo.get_balance(user_id)

    async def history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[WalletTransaction]:
        """Transactions of a member, newest first."""
        return await self.tx_repo.get_history(user_id, limit, offset)

    async def _append(
        self,
        user_id: str,
        delta_cents: int,
        reason: WalletReason,
        actor_id: str,
        reference: str | None,
    ) -> WalletTransaction:
        return await self.tx_repo.create(
            user_id=user_id,
            delta_cents=delta_cents,
            reason=str(reason),
            created_by=actor_id,
            reference=reference,
        )

    @staticmethod
    def _validate_amount(amount_cents: int) -> None:
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
            raise ValueError(
                f"amount_cents must be an integer, got {type(amount_cents).__name__}"
            )
        if amount_cents <= 0:
            raise ValueError(f"amount_cents must be positive, got {amount_cents}")
