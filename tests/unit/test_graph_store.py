"""
Tests for SqlReferralGraphStore error translation.
"""

import pytest
from sqlalchemy.exc import OperationalError

from network_settlement.services.referral_graph.graph_store import (
    SqlReferralGraphStore,
)
from network_settlement.services.tree.tree_builder import TreeBuilder
from network_settlement.utils.exceptions import GraphStoreUnavailable


@pytest.fixture
def broken_session(mock_session):
    mock_session.execute.side_effect = OperationalError(
        "SELECT", {}, Exception("connection refused")
    )
    return mock_session


class TestStoreUnavailable:
    """Driver failures never read as "no sponsor"."""

    @pytest.mark.asyncio
    async def test_get_sponsor(self, broken_session):
        store = SqlReferralGraphStore(broken_session)

        with pytest.raises(GraphStoreUnavailable) as exc_info:
            await store.get_sponsor("m1")

        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_batch_children(self, broken_session):
        store = SqlReferralGraphStore(broken_session)

        with pytest.raises(GraphStoreUnavailable):
            await store.get_children_of_many(["m1", "m2"])

    @pytest.mark.asyncio
    async def test_tree_build_propagates(self, broken_session):
        builder = TreeBuilder(SqlReferralGraphStore(broken_session))

        with pytest.raises(GraphStoreUnavailable):
            await builder.build("m1", max_depth=2)
