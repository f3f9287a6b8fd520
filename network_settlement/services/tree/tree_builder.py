"""
Downline tree builder.

Breadth-first materialization of a member's downline, one batched child
query per level. Built fresh per query.
"""

from dataclasses import dataclass, field

from loguru import logger

from network_settlement.config.settings import settings
from network_settlement.services.referral_graph.graph_store import (
    ReferralGraphStore,
)
from network_settlement.utils.exceptions import NotFound


@dataclass
class DownlineTree:
    """
    Downline of a root member.

    Attributes:
        root_id: Tree root
        levels: Level number (1-based) to member IDs in discovery order.
            Only non-empty levels are present.
        parents: Member ID to the sponsor it was discovered under
        visited: Number of distinct members seen, root included
    """

    root_id: str
    levels: dict[int, list[str]] = field(default_factory=dict)
    parents: dict[str, str] = field(default_factory=dict)
    visited: int = 1

    @property
    def depth(self) -> int:
        """Deepest non-empty level (0 for an empty downline)."""
        return max(self.levels, default=0)

    @property
    def size(self) -> int:
        """Number of downline members, root excluded."""
        return sum(len(members) for members in self.levels.values())

    def level(self, number: int) -> list[str]:
        """Members at a level, empty list if none."""
        return self.levels.get(number, [])

    def children_of(self, member_id: str) -> list[str]:
        """Members discovered directly under member_id."""
        return [m for m, parent in self.parents.items() if parent == member_id]


class TreeBuilder:
    """Builds DownlineTree views from a ReferralGraphStore."""

    def __init__(self, graph: ReferralGraphStore) -> None:
        """
        Initialize tree builder.

        Args:
            graph: Referral graph store
        """
        self.graph = graph

    async def build(
        self, root_id: str, max_depth: int | None = None
    ) -> DownlineTree:
        """
        Build the downline of root_id down to max_depth levels.

        A member already seen (the root included) is never emitted again,
        so a corrupted graph with a cycle still terminates.

        Args:
            root_id: Root member ID
            max_depth: Number of levels (default from settings, clamped
                to the configured cap)

        Returns:
            DownlineTree

        Raises:
            ValueError: max_depth < 1
            NotFound: Root member does not exist
            GraphStoreUnavailable: Store could not be read
        """
        depth = self._resolve_depth(max_depth)

        if not await self.graph.exists(root_id):
            raise NotFound("Member", root_id)

        tree = DownlineTree(root_id=root_id)
        visited = {root_id}
        frontier = [root_id]

        for level in range(1, depth + 1):
            children_map = await self.graph.get_children_of_many(frontier)

            next_frontier: list[str] = []
            for parent_id in frontier:
                for child_id in children_map.get(parent_id, []):
                    if child_id in visited:
                        logger.warning(
                            "Member reached twice while building downline",
                            extra={
                                "root_id": root_id,
                                "member_id": child_id,
                                "level": level,
                            },
                        )
                        continue
                    visited.add(child_id)
                    tree.parents[child_id] = parent_id
                    next_frontier.append(child_id)

            if not next_frontier:
                break

            tree.levels[level] = next_frontier
            frontier = next_frontier

        tree.visited = len(visited)

        logger.debug(
            "Downline built",
            extra={
                "root_id": root_id,
                "depth": tree.depth,
                "size": tree.size,
            },
        )
        return tree

    async def build_levels(
        self, root_id: str, max_depth: int | None = None
    ) -> dict[int, list[str]]:
        """
        Level map of the downline.

        Args:
            root_id: Root member ID
            max_depth: Number of levels

        Returns:
            Dict of level number to member IDs
        """
        tree = await self.build(root_id, max_depth)
        return tree.levels

    @staticmethod
    def _resolve_depth(max_depth: int | None) -> int:
        """Apply the default and the hard cap."""
        if max_depth is None:
            max_depth = settings.tree_default_depth
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")

        cap = settings.tree_max_depth_cap
        if max_depth > cap:
            logger.warning(
                f"Requested downline depth {max_depth} clamped to {cap}"
            )
            return cap
        return max_depth
