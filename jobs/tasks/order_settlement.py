"""
Order settlement task.

Consumes order-paid events from the order subsystem and settles their
commissions. Redelivery is safe: settled orders return their records.
"""

import dramatiq
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import jobs.broker  # noqa: F401  (registers the broker before actors)
from jobs.async_runner import run_async
from jobs.utils.database import task_session_maker
from network_settlement.config.constants import DRAMATIQ_TIME_LIMIT_STANDARD
from network_settlement.services.base_service import ServiceResult
from network_settlement.services.commission.order_events import (
    OrderPaidEvent,
    handle_order_paid,
)
from network_settlement.utils.exceptions import (
    GraphStoreUnavailable,
    SettlementError,
)


@dramatiq.actor(max_retries=5, time_limit=DRAMATIQ_TIME_LIMIT_STANDARD)
def settle_paid_order(
    order_id: str, buyer_id: str, paid_amount_cents: int
) -> None:
    """
    Settle commissions for a paid order.

    Store outages are retried by the Retries middleware; rejected events
    (bad payload, unknown buyer, invalid configuration) are not.
    """
    try:
        event = OrderPaidEvent(
            order_id=order_id,
            buyer_id=buyer_id,
            paid_amount_cents=paid_amount_cents,
        )
    except ValidationError as e:
        logger.error(
            "Malformed order-paid event dropped",
            extra={"order_id": order_id, "error": str(e)},
        )
        return

    result = run_async(settle_order_event(event))
    if result.success:
        logger.info(
            f"Order {order_id} settled: {len(result.data)} commission records"
        )
    else:
        logger.error(
            f"Order {order_id} not settled: {result.error_code}",
            extra={"order_id": order_id, "error": result.error},
        )


async def settle_order_event(
    event: OrderPaidEvent,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> ServiceResult:
    """
    Async implementation of settle_paid_order.

    Args:
        event: Order-paid event
        session_maker: Session factory (task factory when omitted)

    Returns:
        ServiceResult with the commission records as data

    Raises:
        GraphStoreUnavailable: Referral graph unreadable, retry later
    """
    session_maker = session_maker or task_session_maker
    async with session_maker() as session:
        try:
            records = await handle_order_paid(session, event)
        except GraphStoreUnavailable:
            raise
        except SettlementError as e:
            return ServiceResult.from_error(e)

    return ServiceResult(success=True, data=records)
