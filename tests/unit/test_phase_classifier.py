"""
Tests for the phase tier step function and PhaseClassifier.

Covers:
- Tier table for the configured thresholds
- Monotonicity of the step function
- Branch balance requirement for tier 3
- Inactive members are never counted
"""

import itertools

import pytest

from network_settlement.services.phase.phase_classifier import (
    PhaseClassifier,
    determine_tier,
)
from network_settlement.utils.exceptions import NotFound


class TestDetermineTier:
    """Step function with thresholds 2 / 4 / 2."""

    @pytest.mark.parametrize(
        "root_active,directs,second,min_branch,expected",
        [
            (False, 10, 10, 10, 0),
            (True, 0, 0, 0, 0),
            (True, 1, 8, 4, 0),
            (True, 2, 0, 0, 1),
            (True, 2, 3, 1, 1),
            (True, 2, 4, 0, 2),
            (True, 2, 4, 1, 2),
            (True, 2, 4, 2, 3),
            (True, 5, 20, 3, 3),
        ],
    )
    def test_table(
        self, thresholds, root_active, directs, second, min_branch, expected
    ):
        assert (
            determine_tier(root_active, directs, second, min_branch, thresholds)
            == expected
        )

    def test_monotonic_in_every_count(self, thresholds):
        values = range(0, 6)
        for directs, second, branch in itertools.product(values, repeat=3):
            base = determine_tier(True, directs, second, branch, thresholds)
            assert determine_tier(True, directs + 1, second, branch, thresholds) >= base
            assert determine_tier(True, directs, second + 1, branch, thresholds) >= base
            assert determine_tier(True, directs, second, branch + 1, thresholds) >= base


class TestPhaseClassifier:
    """Classification from a real downline shape."""

    @pytest.mark.asyncio
    async def test_balanced_downline_reaches_tier3(self, graph_factory, thresholds):
        graph = graph_factory(
            {
                "root": None,
                "a": "root",
                "b": "root",
                "a1": "a",
                "a2": "a",
                "b1": "b",
                "b2": "b",
            },
            active={"root", "a", "b", "a1", "a2", "b1", "b2"},
        )
        classifier = PhaseClassifier(graph, thresholds)

        result = await classifier.classify("root")

        assert result.tier == 3
        assert result.direct_active_count == 2
        assert result.second_level_total == 4
        assert result.min_branch_second_level == 2

    @pytest.mark.asyncio
    async def test_single_heavy_branch_stops_at_tier2(
        self, graph_factory, thresholds
    ):
        sponsors = {"root": None, "a": "root", "b": "root"}
        sponsors.update({f"a{i}": "a" for i in range(1, 6)})
        graph = graph_factory(sponsors, active=set(sponsors))
        classifier = PhaseClassifier(graph, thresholds)

        result = await classifier.classify("root")

        assert result.second_level_total == 5
        assert result.min_branch_second_level == 0
        assert result.tier == 2

    @pytest.mark.asyncio
    async def test_inactive_members_not_counted(self, graph_factory, thresholds):
        graph = graph_factory(
            {
                "root": None,
                "a": "root",
                "b": "root",
                "c": "root",
                "a1": "a",
            },
            active={"root", "a", "a1"},
        )
        classifier = PhaseClassifier(graph, thresholds)

        result = await classifier.classify("root")

        assert result.total_direct_count == 3
        assert result.direct_active_count == 1
        assert result.tier == 0

    @pytest.mark.asyncio
    async def test_inactive_root_is_tier0(self, graph_factory, thresholds):
        sponsors = {
            "root": None,
            "a": "root",
            "b": "root",
            "a1": "a",
            "a2": "a",
            "b1": "b",
            "b2": "b",
        }
        graph = graph_factory(sponsors, active=set(sponsors) - {"root"})
        classifier = PhaseClassifier(graph, thresholds)

        result = await classifier.classify("root")

        assert result.root_active is False
        assert result.tier == 0

    @pytest.mark.asyncio
    async def test_deeper_levels_ignored(self, graph_factory, thresholds):
        graph = graph_factory(
            {
                "root": None,
                "a": "root",
                "b": "root",
                "a1": "a",
                "a11": "a1",
                "a12": "a1",
                "a13": "a1",
            },
            active={"root", "a", "b", "a1", "a11", "a12", "a13"},
        )
        classifier = PhaseClassifier(graph, thresholds)

        result = await classifier.classify("root")

        assert result.second_level_total == 1
        assert result.tier == 1

    @pytest.mark.asyncio
    async def test_unknown_member(self, graph_factory, thresholds):
        classifier = PhaseClassifier(graph_factory({"root": None}), thresholds)

        with pytest.raises(NotFound):
            await classifier.classify("ghost")
