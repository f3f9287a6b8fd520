"""
Integration tests for commission settlement.

Covers:
- Distribution with inactive sponsors and level numbering
- Idempotent settlement (sequential replay and concurrent claim)
- Nothing written when configuration is rejected
- Payout ratio cap
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from network_settlement.models import (
    CommissionRecord,
    MemberPhase,
    OrderSettlement,
    WalletTransaction,
)
from network_settlement.services.commission.commission_engine import (
    CommissionEngine,
)
from network_settlement.services.commission.order_events import (
    OrderPaidEvent,
    handle_order_paid,
)
from network_settlement.services.wallet.wallet_ledger import WalletLedger
from network_settlement.utils.exceptions import (
    AlreadyProcessed,
    ConfigurationInvalid,
    NotFound,
)


@pytest_asyncio.fixture
async def upline(make_member):
    """buyer -> a (tier 1) -> b (tier 2) -> c (inactive) -> d (tier 3)."""
    await make_member("d", tier=3)
    await make_member("c", sponsor_id="d", is_active=False, tier=3)
    await make_member("b", sponsor_id="c", tier=2)
    await make_member("a", sponsor_id="b", tier=1)
    await make_member("buyer", sponsor_id="a")


async def count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestSettleOrder:
    """Settlement of a single order."""

    @pytest.mark.asyncio
    async def test_distribution(self, session, upline, plan):
        engine = CommissionEngine(session)

        records = await engine.settle_order("order-1", "buyer", 10000, plan)

        assert [(r.recipient_id, r.level, r.amount_cents) for r in records] == [
            ("a", 1, 500),
            ("b", 2, 1000),
            ("d", 4, 1200),
        ]
        ledger = WalletLedger(session)
        assert await ledger.balance("a") == 500
        assert await ledger.balance("b") == 1000
        assert await ledger.balance("c") == 0
        assert await ledger.balance("d") == 1200

    @pytest.mark.asyncio
    async def test_settlement_row(self, session, upline, plan):
        engine = CommissionEngine(session)

        await engine.settle_order("order-1", "buyer", 10000, plan)

        settlement = await session.get(OrderSettlement, "order-1")
        assert settlement.total_distributed_cents == 2700
        assert settlement.plan_version == plan.version

    @pytest.mark.asyncio
    async def test_records_reference_ledger_entries(self, session, upline, plan):
        engine = CommissionEngine(session)

        records = await engine.settle_order("order-1", "buyer", 10000, plan)

        for record in records:
            tx = await session.get(WalletTransaction, record.wallet_transaction_id)
            assert tx.user_id == record.recipient_id
            assert tx.delta_cents == record.amount_cents
            assert tx.reference == "order-1"
            assert tx.reason == "commission"

    @pytest.mark.asyncio
    async def test_buyer_without_sponsor(self, session, make_member, plan):
        await make_member("solo")
        engine = CommissionEngine(session)

        records = await engine.settle_order("order-1", "solo", 10000, plan)

        assert records == []
        assert await session.get(OrderSettlement, "order-1") is not None

    @pytest.mark.asyncio
    async def test_unknown_buyer(self, session, plan):
        engine = CommissionEngine(session)

        with pytest.raises(NotFound):
            await engine.settle_order("order-1", "ghost", 10000, plan)

        assert await count(session, OrderSettlement) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100, True, 10.5])
    async def test_invalid_amount(self, session, upline, plan, amount):
        engine = CommissionEngine(session)

        with pytest.raises(ValueError):
            await engine.settle_order("order-1", "buyer", amount, plan)


class TestIdempotency:
    """An order is settled at most once."""

    @pytest.mark.asyncio
    async def test_replay_returns_original_records(self, session, upline, plan):
        engine = CommissionEngine(session)
        first = await engine.settle_order("order-1", "buyer", 10000, plan)

        with pytest.raises(AlreadyProcessed) as exc_info:
            await engine.settle_order("order-1", "buyer", 10000, plan)

        assert [r.id for r in exc_info.value.records] == [r.id for r in first]
        assert await WalletLedger(session).balance("a") == 500
        assert await count(session, WalletTransaction) == 3

    @pytest.mark.asyncio
    async def test_concurrent_claim_loses_on_primary_key(
        self, session_maker, upline, plan
    ):
        async with session_maker() as first_session:
            first = await CommissionEngine(first_session).settle_order(
                "order-1", "buyer", 10000, plan
            )

        async with session_maker() as second_session:
            engine = CommissionEngine(second_session)
            # Simulate a worker whose pre-check ran before the first commit
            engine.settlement_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(AlreadyProcessed) as exc_info:
                await engine.settle_order("order-1", "buyer", 10000, plan)

            assert [r.id for r in exc_info.value.records] == [
                r.id for r in first
            ]
            assert await count(second_session, CommissionRecord) == 3
            assert await WalletLedger(second_session).balance("d") == 1200

    @pytest.mark.asyncio
    async def test_event_redelivery(self, session, upline, phase_tiers):
        event = OrderPaidEvent(
            order_id="order-1", buyer_id="buyer", paid_amount_cents=10000
        )

        first = await handle_order_paid(session, event)
        second = await handle_order_paid(session, event)

        assert len(first) == 3
        assert [r.id for r in second] == [r.id for r in first]
        assert await count(session, WalletTransaction) == 3


class TestConfigurationGuards:
    """Rejected configuration writes nothing."""

    @pytest.mark.asyncio
    async def test_rates_above_ratio(self, session, upline, plan):
        tight = plan.model_copy(update={"max_payout_ratio": Decimal("0.2")})
        engine = CommissionEngine(session)

        with pytest.raises(ConfigurationInvalid):
            await engine.settle_order("order-1", "buyer", 10000, tight)

        assert await count(session, OrderSettlement) == 0
        assert await count(session, CommissionRecord) == 0
        assert await count(session, WalletTransaction) == 0

    @pytest.mark.asyncio
    async def test_override_to_unknown_tier(self, session, upline, plan):
        phase = await session.get(MemberPhase, "a")
        phase.override_tier = 9
        await session.commit()
        engine = CommissionEngine(session)

        with pytest.raises(ConfigurationInvalid):
            await engine.settle_order("order-1", "buyer", 10000, plan)

        assert await count(session, WalletTransaction) == 0

    @pytest.mark.asyncio
    async def test_total_never_exceeds_cap(self, session, upline, plan):
        capped = plan.model_copy(update={"max_payout_ratio": Decimal("0.27")})
        engine = CommissionEngine(session)

        records = await engine.settle_order("order-1", "buyer", 5, capped)

        assert sum(r.amount_cents for r in records) <= 1
