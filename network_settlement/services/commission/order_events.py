"""
Order-paid event handling.

Entry point for the external order subsystem. Redelivery of the same event
is safe: an already-settled order returns its original records.
"""

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.models.commission import CommissionRecord
from network_settlement.services.commission.commission_engine import (
    CommissionEngine,
)
from network_settlement.services.phase.phase_plan import (
    PhasePlan,
    PhasePlanLoader,
)
from network_settlement.utils.exceptions import AlreadyProcessed


class OrderPaidEvent(BaseModel):
    """Inbound order-paid event."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    order_id: str = Field(min_length=1, max_length=64)
    buyer_id: str = Field(min_length=1, max_length=36)
    paid_amount_cents: int = Field(gt=0, strict=True)


async def handle_order_paid(
    session: AsyncSession,
    event: OrderPaidEvent,
    plan: PhasePlan | None = None,
) -> list[CommissionRecord]:
    """
    Settle an order-paid event.

    Args:
        session: Async database session
        event: Order-paid event
        plan: Phase plan (loaded from phase_tiers when omitted)

    Returns:
        Commission records of the order, new or from the first settlement
    """
    if plan is None:
        plan = await PhasePlanLoader(session).load()

    engine = CommissionEngine(session)
    try:
        return await engine.settle_order(
            order_id=event.order_id,
            buyer_id=event.buyer_id,
            paid_amount_cents=event.paid_amount_cents,
            plan=plan,
        )
    except AlreadyProcessed as e:
        logger.info(
            "Duplicate order-paid event ignored",
            extra={"order_id": event.order_id, "records": len(e.records)},
        )
        return e.records
