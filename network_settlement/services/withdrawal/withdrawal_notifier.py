"""
Payment request notifications.

Best-effort side channel for payment request transitions. Dispatch happens
after the transition is committed; delivery runs in a dramatiq worker with
its own retries.
"""

from typing import Any, Protocol

import aiohttp
from loguru import logger
from pydantic import BaseModel

from network_settlement.config.settings import settings
from network_settlement.models.enums import PaymentRequestStatus


class PaymentRequestNotification(BaseModel):
    """Notification payload."""

    request_id: str
    user_id: str
    status: PaymentRequestStatus
    amount_cents: int
    wallet_provider: str


class WithdrawalNotifier(Protocol):
    """Dispatches notifications; implementations may raise."""

    async def notify(self, notification: PaymentRequestNotification) -> None: ...


class QueueWithdrawalNotifier:
    """Enqueues notifications on the dramatiq broker."""

    async def notify(self, notification: PaymentRequestNotification) -> None:
        """Send the payload to the notification actor."""
        from jobs.tasks.payment_request_notification import (
            deliver_payment_request_notification,
        )

        deliver_payment_request_notification.send(
            notification.model_dump(mode="json")
        )


async def deliver_notification(payload: dict[str, Any]) -> bool:
    """
    Deliver a notification to the configured webhook.

    Without a webhook URL the payload is only logged.

    Args:
        payload: Serialized PaymentRequestNotification

    Returns:
        True if posted to the webhook, False if only logged

    Raises:
        aiohttp.ClientError: Webhook unreachable or non-2xx response
        TimeoutError: Webhook did not answer in time
    """
    notification = PaymentRequestNotification.model_validate(payload)

    if not settings.notification_webhook_url:
        logger.info(
            "No notification webhook configured, notification logged only",
            extra=notification.model_dump(mode="json"),
        )
        return False

    timeout = aiohttp.ClientTimeout(total=settings.notification_timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as http:
        async with http.post(
            settings.notification_webhook_url,
            json=notification.model_dump(mode="json"),
        ) as response:
            response.raise_for_status()

    logger.info(
        "Payment request notification delivered",
        extra={
            "request_id": notification.request_id,
            "status": str(notification.status),
        },
    )
    return True
