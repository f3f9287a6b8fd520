"""Downline tree materialization."""

from network_settlement.services.tree.tree_builder import (
    DownlineTree,
    TreeBuilder,
)

__all__ = ["DownlineTree", "TreeBuilder"]
