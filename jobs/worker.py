"""
Worker entry point.

Run with:
    dramatiq jobs.worker

Configures logging, registers the broker and imports every actor module.
"""

from network_settlement.config.logging import setup_logging

setup_logging()

import jobs.broker  # noqa: E402,F401
from jobs.tasks import (  # noqa: E402,F401
    order_settlement,
    payment_request_notification,
)
