"""
Integration tests for WalletLedger.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from network_settlement.models import WalletReason, WalletTransaction
from network_settlement.services.wallet.wallet_ledger import WalletLedger
from network_settlement.utils.exceptions import InsufficientFunds, NotFound


class TestWalletLedger:
    """Append-only ledger behaviour."""

    @pytest.mark.asyncio
    async def test_balance_is_sum_of_deltas(self, session, make_member):
        await make_member("m1")
        ledger = WalletLedger(session)

        await ledger.credit("m1", 1500, WalletReason.COMMISSION, "system", "o-1")
        await ledger.credit("m1", 250, WalletReason.ADMIN_ADJUSTMENT, "admin-1")
        await ledger.debit("m1", 700, WalletReason.WITHDRAWAL, "m1", "pr-1")
        await session.commit()

        total = await session.scalar(
            select(func.sum(WalletTransaction.delta_cents)).where(
                WalletTransaction.user_id == "m1"
            )
        )
        assert await ledger.balance("m1") == total == 1050

    @pytest.mark.asyncio
    async def test_no_overdraft(self, session, make_member):
        await make_member("m1")
        ledger = WalletLedger(session)
        await ledger.credit("m1", 300, WalletReason.COMMISSION, "system")

        with pytest.raises(InsufficientFunds) as exc_info:
            await ledger.debit("m1", 301, WalletReason.WITHDRAWAL, "m1")

        assert exc_info.value.balance_cents == 300
        assert exc_info.value.requested_cents == 301
        assert await ledger.balance("m1") == 300

    @pytest.mark.asyncio
    async def test_debit_to_zero(self, session, make_member):
        await make_member("m1")
        ledger = WalletLedger(session)
        await ledger.credit("m1", 300, WalletReason.COMMISSION, "system")

        await ledger.debit("m1", 300, WalletReason.WITHDRAWAL, "m1")

        assert await ledger.balance("m1") == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, 1.5, True])
    async def test_invalid_amount(self, session, make_member, amount):
        await make_member("m1")
        ledger = WalletLedger(session)

        with pytest.raises(ValueError):
            await ledger.credit("m1", amount, WalletReason.COMMISSION, "system")
        with pytest.raises(ValueError):
            await ledger.debit("m1", amount, WalletReason.WITHDRAWAL, "m1")

    @pytest.mark.asyncio
    async def test_unknown_member(self, session):
        ledger = WalletLedger(session)

        with pytest.raises(NotFound):
            await ledger.credit("ghost", 100, WalletReason.COMMISSION, "system")
        with pytest.raises(NotFound):
            await ledger.debit("ghost", 100, WalletReason.WITHDRAWAL, "ghost")
        with pytest.raises(NotFound):
            await ledger.balance("ghost")

    @pytest.mark.asyncio
    async def test_entries_carry_actor_and_reason(self, session, make_member):
        await make_member("m1")
        ledger = WalletLedger(session)

        await ledger.credit("m1", 100, WalletReason.COMMISSION, "system", "o-1")
        await ledger.debit("m1", 40, WalletReason.WITHDRAWAL, "m1", "pr-1")

        history = await ledger.history("m1")
        assert [(t.delta_cents, t.reason, t.created_by, t.reference) for t in history] == [
            (-40, "withdrawal", "m1", "pr-1"),
            (100, "commission", "system", "o-1"),
        ]

    @pytest.mark.asyncio
    async def test_concurrent_debits_cannot_overdraw(
        self, session, session_maker, make_member
    ):
        await make_member("m1")
        await WalletLedger(session).credit(
            "m1", 1000, WalletReason.COMMISSION, "system"
        )
        await session.commit()

        async def debit() -> str:
            async with session_maker() as worker_session:
                try:
                    await WalletLedger(worker_session).debit(
                        "m1", 700, WalletReason.WITHDRAWAL, "m1"
                    )
                except InsufficientFunds:
                    return "refused"
                await worker_session.commit()
                return "debited"

        results = await asyncio.gather(debit(), debit())

        assert sorted(results) == ["debited", "refused"]
        assert await WalletLedger(session).balance("m1") == 300
