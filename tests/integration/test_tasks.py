"""
Tests for dramatiq task entry points (called directly, no worker).
"""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from jobs.tasks.order_settlement import settle_order_event
from network_settlement.config.settings import settings
from network_settlement.services.commission.order_events import OrderPaidEvent
from network_settlement.services.withdrawal.withdrawal_notifier import (
    deliver_notification,
)
from network_settlement.utils.exceptions import GraphStoreUnavailable


@pytest_asyncio.fixture
async def two_level_upline(make_member, phase_tiers):
    await make_member("s2", tier=2)
    await make_member("s1", sponsor_id="s2", tier=1)
    await make_member("buyer", sponsor_id="s1")


class TestSettleOrderEvent:
    """Order-paid consumer."""

    @pytest.mark.asyncio
    async def test_settles(self, session_maker, two_level_upline):
        event = OrderPaidEvent(
            order_id="order-7", buyer_id="buyer", paid_amount_cents=20000
        )

        result = await settle_order_event(event, session_maker=session_maker)

        assert result.success
        assert [r.amount_cents for r in result.data] == [1000, 2000]

    @pytest.mark.asyncio
    async def test_redelivery_is_success(self, session_maker, two_level_upline):
        event = OrderPaidEvent(
            order_id="order-7", buyer_id="buyer", paid_amount_cents=20000
        )

        first = await settle_order_event(event, session_maker=session_maker)
        second = await settle_order_event(event, session_maker=session_maker)

        assert second.success
        assert [r.id for r in second.data] == [r.id for r in first.data]

    @pytest.mark.asyncio
    async def test_unknown_buyer_reported(self, session_maker, phase_tiers):
        event = OrderPaidEvent(
            order_id="order-8", buyer_id="ghost", paid_amount_cents=20000
        )

        result = await settle_order_event(event, session_maker=session_maker)

        assert not result.success
        assert result.error_code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_missing_plan_reported(self, session_maker, make_member):
        await make_member("buyer")
        event = OrderPaidEvent(
            order_id="order-9", buyer_id="buyer", paid_amount_cents=20000
        )

        result = await settle_order_event(event, session_maker=session_maker)

        assert result.error_code == "CONFIGURATION_INVALID"

    @pytest.mark.asyncio
    async def test_store_outage_raised_for_retry(self, session_maker, phase_tiers):
        event = OrderPaidEvent(
            order_id="order-10", buyer_id="buyer", paid_amount_cents=20000
        )

        with patch(
            "jobs.tasks.order_settlement.handle_order_paid",
            AsyncMock(side_effect=GraphStoreUnavailable("down")),
        ):
            with pytest.raises(GraphStoreUnavailable):
                await settle_order_event(event, session_maker=session_maker)


class TestDeliverNotification:
    """Webhook side channel."""

    @pytest.mark.asyncio
    async def test_without_webhook(self, monkeypatch):
        monkeypatch.setattr(settings, "notification_webhook_url", None)

        delivered = await deliver_notification(
            {
                "request_id": "pr-1",
                "user_id": "m1",
                "status": "completed",
                "amount_cents": 2000,
                "wallet_provider": "usdt_trc20",
            }
        )

        assert delivered is False
