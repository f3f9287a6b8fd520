"""
Shared fixtures for unit tests.

Provides an in-memory ReferralGraphStore so tree and phase logic can be
tested without a database.
"""

from collections.abc import Iterable

import pytest

from network_settlement.utils.exceptions import NotFound


class FakeGraphStore:
    """
    In-memory referral graph.

    Children are returned in the insertion order of ``sponsors``.
    """

    def __init__(
        self,
        sponsors: dict[str, str | None],
        active: Iterable[str] = (),
    ) -> None:
        self.sponsors = dict(sponsors)
        self.active = set(active)
        self.child_queries = 0

    async def get_sponsor(self, member_id: str) -> str | None:
        if member_id not in self.sponsors:
            raise NotFound("Member", member_id)
        return self.sponsors[member_id]

    async def get_children(self, member_id: str) -> list[str]:
        if member_id not in self.sponsors:
            raise NotFound("Member", member_id)
        return [m for m, s in self.sponsors.items() if s == member_id]

    async def get_children_of_many(
        self, member_ids: Iterable[str]
    ) -> dict[str, list[str]]:
        self.child_queries += 1
        member_ids = list(member_ids)
        children: dict[str, list[str]] = {m: [] for m in member_ids}
        for member, sponsor in self.sponsors.items():
            if sponsor in children:
                children[sponsor].append(member)
        return children

    async def is_active(self, member_id: str) -> bool:
        if member_id not in self.sponsors:
            raise NotFound("Member", member_id)
        return member_id in self.active

    async def active_among(self, member_ids: Iterable[str]) -> set[str]:
        return {m for m in member_ids if m in self.active}

    async def exists(self, member_id: str) -> bool:
        return member_id in self.sponsors


@pytest.fixture
def graph_factory():
    """Build a FakeGraphStore from a sponsor map and an active set."""
    def _build(
        sponsors: dict[str, str | None], active: Iterable[str] = ()
    ) -> FakeGraphStore:
        return FakeGraphStore(sponsors, active)

    return _build
