"""
Fixtures for integration tests.

Each test gets its own SQLite file so that several sessions can share
committed state, as they would against PostgreSQL.
"""

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from network_settlement.config.database import create_engine, create_session_maker
from network_settlement.models import (
    Base,
    Member,
    MemberPhase,
    PaymentWallet,
    PhaseTier,
    WithdrawalLimit,
)
from network_settlement.services.withdrawal.withdrawal_notifier import (
    PaymentRequestNotification,
)


class RecordingNotifier:
    """Collects notifications instead of enqueueing them."""

    def __init__(self) -> None:
        self.sent: list[PaymentRequestNotification] = []

    async def notify(self, notification: PaymentRequestNotification) -> None:
        self.sent.append(notification)

    @property
    def statuses(self) -> list[str]:
        return [str(n.status) for n in self.sent]


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine with the full schema."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'settlement.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Session for the test body."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def phase_tiers(session) -> list[PhaseTier]:
    """Tier rows matching the shared ``plan`` fixture."""
    rows = [
        PhaseTier(tier=0, name="Member", commission_rate=Decimal("0")),
        PhaseTier(
            tier=1,
            name="Phase 1",
            commission_rate=Decimal("0.05"),
            free_product_value_cents=6500,
        ),
        PhaseTier(
            tier=2,
            name="Phase 2",
            commission_rate=Decimal("0.10"),
            credit_cents=12500,
        ),
        PhaseTier(
            tier=3,
            name="Phase 3",
            commission_rate=Decimal("0.12"),
            credit_cents=24000,
        ),
    ]
    session.add_all(rows)
    await session.commit()
    return rows


@pytest.fixture
def make_member(session):
    """
    Insert a member (and optionally its computed tier) and commit.

    Returns the member id.
    """
    async def _make(
        member_id: str,
        sponsor_id: str | None = None,
        is_active: bool = True,
        tier: int | None = None,
    ) -> str:
        session.add(
            Member(id=member_id, sponsor_id=sponsor_id, is_active=is_active)
        )
        if tier is not None:
            session.add(MemberPhase(member_id=member_id, computed_tier=tier))
        await session.commit()
        return member_id

    return _make


@pytest_asyncio.fixture
async def payout_wallet(session) -> str:
    """Active payout destination accepting $10 to $5,000."""
    wallet = PaymentWallet(
        id="wallet-usdt",
        provider="usdt_trc20",
        name="USDT (TRC20)",
        is_active=True,
        min_amount_cents=1000,
        max_amount_cents=500000,
    )
    session.add(wallet)
    await session.commit()
    return wallet.id


@pytest_asyncio.fixture
async def default_limits(session) -> None:
    """Platform-wide allowance: $1,000 single, $1,000 daily, $5,000 monthly."""
    session.add(
        WithdrawalLimit(
            user_id=None,
            single_transaction_limit_cents=100000,
            daily_limit_cents=100000,
            monthly_limit_cents=500000,
        )
    )
    await session.commit()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
