"""
Dramatiq broker.

Redis in every environment except tests, which get an in-memory StubBroker.
Importing this module installs the broker as dramatiq's default.
"""

import threading

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import (
    AgeLimit,
    Callbacks,
    CurrentMessage,
    Pipelines,
    Retries,
    ShutdownNotifications,
    TimeLimit,
)
from loguru import logger

from jobs.async_runner import close_thread_loop
from network_settlement.config.settings import settings

RETRY_LIMIT = 5
RETRY_MIN_BACKOFF_MS = 1_000
RETRY_MAX_BACKOFF_MS = 300_000


class EventLoopCleanup(dramatiq.Middleware):
    """Closes the per-thread event loop when a worker thread stops."""

    def before_worker_thread_shutdown(
        self, broker: dramatiq.Broker, thread: threading.Thread
    ) -> None:
        close_thread_loop()


def _middleware() -> list[dramatiq.Middleware]:
    """dramatiq's default stack with our retry policy and loop cleanup."""
    return [
        AgeLimit(),
        TimeLimit(),
        ShutdownNotifications(),
        Callbacks(),
        Pipelines(),
        Retries(
            max_retries=RETRY_LIMIT,
            min_backoff=RETRY_MIN_BACKOFF_MS,
            max_backoff=RETRY_MAX_BACKOFF_MS,
        ),
        CurrentMessage(),
        EventLoopCleanup(),
    ]


def build_broker() -> dramatiq.Broker:
    """Create the broker for the configured environment."""
    if settings.environment == "test":
        return StubBroker(middleware=_middleware())

    return RedisBroker(
        middleware=_middleware(),
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password or None,
    )


broker = build_broker()
dramatiq.set_broker(broker)

logger.info(
    "Dramatiq broker ready",
    extra={
        "broker": type(broker).__name__,
        "environment": settings.environment,
    },
)
