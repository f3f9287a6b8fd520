"""
Referral graph store.

Read-only access to sponsor-reference edges and member activity status.
Unreachable storage surfaces as GraphStoreUnavailable so callers can never
mistake it for "member has no sponsor".
"""

from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any, Protocol, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.repositories.member_repository import MemberRepository
from network_settlement.utils.exceptions import (
    STORE_FAILURES,
    GraphStoreUnavailable,
    NotFound,
)

T = TypeVar("T")


class ReferralGraphStore(Protocol):
    """Read contract used by the tree builder and commission engine."""

    async def get_sponsor(self, member_id: str) -> str | None: ...

    async def get_children(self, member_id: str) -> list[str]: ...

    async def get_children_of_many(
        self, member_ids: Iterable[str]
    ) -> dict[str, list[str]]: ...

    async def is_active(self, member_id: str) -> bool: ...

    async def active_among(self, member_ids: Iterable[str]) -> set[str]: ...

    async def exists(self, member_id: str) -> bool: ...


def wrap_store_errors(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator translating driver errors into GraphStoreUnavailable.

    Args:
        func: Async store method

    Returns:
        Wrapped async method
    """
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await func(self, *args, **kwargs)
        except STORE_FAILURES as e:
            logger.error(
                f"Referral graph read failed in {func.__name__}",
                extra={"function": func.__name__, "error": str(e)},
            )
            raise GraphStoreUnavailable(
                f"Referral graph unavailable: {type(e).__name__}"
            ) from e

    return wrapper


class SqlReferralGraphStore:
    """ReferralGraphStore backed by the members table."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize graph store.

        Args:
            session: Async database session
        """
        self.session = session
        self.member_repo = MemberRepository(session)

    @wrap_store_errors
    async def get_sponsor(self, member_id: str) -> str | None:
        """
        Get the sponsor of a member.

        Args:
            member_id: Member ID

        Returns:
            Sponsor ID, or None for a root member

        Raises:
            NotFound: Member does not exist
            GraphStoreUnavailable: Store could not be read
        """
        row = await self.member_repo.get_sponsor_row(member_id)
        if row is None:
            raise NotFound("Member", member_id)
        return row[1]

    @wrap_store_errors
    async def get_children(self, member_id: str) -> list[str]:
        """
        Get direct children in enrollment order.

        Raises:
            NotFound: Member does not exist
        """
        if not await self.member_repo.exists(id=member_id):
            raise NotFound("Member", member_id)
        children = await self.member_repo.get_children_of([member_id])
        return children[member_id]

    @wrap_store_errors
    async def get_children_of_many(
        self, member_ids: Iterable[str]
    ) -> dict[str, list[str]]:
        """Batch variant of get_children; unknown ids map to empty lists."""
        return await self.member_repo.get_children_of(member_ids)

    @wrap_store_errors
    async def is_active(self, member_id: str) -> bool:
        """
        Check whether a member holds an active subscription.

        Raises:
            NotFound: Member does not exist
        """
        member = await self.member_repo.get_by_id(member_id)
        if member is None:
            raise NotFound("Member", member_id)
        return member.is_active

    @wrap_store_errors
    async def active_among(self, member_ids: Iterable[str]) -> set[str]:
        """Subset of member_ids that are active."""
        return await self.member_repo.get_active_ids(member_ids)

    @wrap_store_errors
    async def exists(self, member_id: str) -> bool:
        """Check whether a member exists."""
        return await self.member_repo.exists(id=member_id)
