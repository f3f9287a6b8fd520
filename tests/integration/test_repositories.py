"""
Integration tests for the shared repository helpers.
"""

import pytest

from network_settlement.repositories.commission_repository import (
    OrderSettlementRepository,
)
from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.repositories.phase_repository import PhaseTierRepository


class TestExists:
    """BaseRepository.exists with column filters."""

    @pytest.mark.asyncio
    async def test_by_id(self, session, make_member):
        await make_member("m1")
        repo = MemberRepository(session)

        assert await repo.exists(id="m1") is True
        assert await repo.exists(id="ghost") is False

    @pytest.mark.asyncio
    async def test_filters_are_combined(self, session, make_member):
        await make_member("m1", is_active=False)
        await make_member("m2", sponsor_id="m1")
        repo = MemberRepository(session)

        assert await repo.exists(sponsor_id="m1", is_active=True) is True
        assert await repo.exists(id="m1", is_active=True) is False

    @pytest.mark.asyncio
    async def test_models_keyed_by_other_columns(self, session, phase_tiers):
        assert await PhaseTierRepository(session).exists(tier=3) is True
        assert await PhaseTierRepository(session).exists(tier=9) is False
        assert await OrderSettlementRepository(session).exists(
            order_id="order-1"
        ) is False


class TestGetForUpdate:
    """Locked lookup by primary key."""

    @pytest.mark.asyncio
    async def test_found_and_missing(self, session, make_member):
        await make_member("m1")
        repo = MemberRepository(session)

        member = await repo.get_for_update("m1")

        assert member is not None and member.id == "m1"
        assert await repo.get_for_update("ghost") is None
