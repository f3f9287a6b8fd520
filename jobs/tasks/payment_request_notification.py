"""
Payment request notification task.

Delivers payment request state notifications dispatched by the withdrawal
workflow after commit. Delivery failures are retried with backoff.
"""

from typing import Any

import dramatiq

import jobs.broker  # noqa: F401  (registers the broker before actors)
from jobs.async_runner import run_async
from network_settlement.config.constants import DRAMATIQ_TIME_LIMIT_SHORT
from network_settlement.services.withdrawal.withdrawal_notifier import (
    deliver_notification,
)


@dramatiq.actor(max_retries=5, time_limit=DRAMATIQ_TIME_LIMIT_SHORT)
def deliver_payment_request_notification(payload: dict[str, Any]) -> None:
    """Post one notification to the webhook (or log it)."""
    run_async(deliver_notification(payload))
