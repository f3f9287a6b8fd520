"""Commission settlement."""

from network_settlement.services.commission.commission_engine import (
    CommissionEngine,
    PlannedPayout,
)
from network_settlement.services.commission.order_events import (
    OrderPaidEvent,
    handle_order_paid,
)

__all__ = [
    "CommissionEngine",
    "OrderPaidEvent",
    "PlannedPayout",
    "handle_order_paid",
]
