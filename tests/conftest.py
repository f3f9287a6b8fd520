"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from network_settlement.services.phase.phase_plan import (
    PhasePlan,
    PhaseThresholds,
    PhaseTierConfig,
)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def thresholds() -> PhaseThresholds:
    """Default tier thresholds (2 directs, 4 second level, 2 per branch)."""
    return PhaseThresholds(
        min_direct_active=2,
        min_second_level_total=4,
        min_branch_second_level=2,
    )


@pytest.fixture
def plan(thresholds) -> PhasePlan:
    """
    Plan used across commission tests.

    Tier rates: 0 -> 0%, 1 -> 5%, 2 -> 10%, 3 -> 12%.
    """
    return PhasePlan(
        tiers=(
            PhaseTierConfig(tier=0, commission_rate=Decimal("0")),
            PhaseTierConfig(
                tier=1,
                commission_rate=Decimal("0.05"),
                free_product_value_cents=6500,
            ),
            PhaseTierConfig(
                tier=2, commission_rate=Decimal("0.10"), credit_cents=12500
            ),
            PhaseTierConfig(
                tier=3, commission_rate=Decimal("0.12"), credit_cents=24000
            ),
        ),
        thresholds=thresholds,
        max_commission_depth=10,
        max_payout_ratio=Decimal("1"),
    )
