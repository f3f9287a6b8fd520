"""
Service base class and decorators.

Services share one AsyncSession with their repositories and own the
transaction boundary: repositories only flush, services commit.
"""

import functools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.utils.exceptions import SettlementError

T = TypeVar("T")

AsyncMethod = Callable[..., Awaitable[T]]


@dataclass
class ServiceResult:
    """
    Outcome of an operation for callers that report instead of raising.

    Dramatiq actors return these so a refused event is acknowledged rather
    than retried.
    """

    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def from_error(cls, exc: SettlementError) -> "ServiceResult":
        return cls(success=False, error=str(exc), error_code=exc.code)


class BaseService:
    """Holds the session and a logger bound to the concrete service name."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service=type(self).__name__)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def transaction(func: AsyncMethod[T]) -> AsyncMethod[T]:
    """
    Run a service method as one unit of work.

    The session is committed when the method returns and rolled back when
    it raises; the exception is re-raised either way. A SettlementError is
    an expected refusal and is logged as a warning. Anything else is logged
    with its traceback.
    """

    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        try:
            result = await func(self, *args, **kwargs)
        except SettlementError as e:
            await self.rollback()
            self.logger.warning(
                "Operation refused",
                extra={"operation": func.__name__, "code": e.code},
            )
            raise
        except Exception:
            await self.rollback()
            self.logger.opt(exception=True).error(
                "Operation failed, rolled back",
                extra={"operation": func.__name__},
            )
            raise

        await self.commit()
        return result

    return wrapper


def log_operation(func: AsyncMethod[T]) -> AsyncMethod[T]:
    """Debug-log how long a service method took and whether it raised."""

    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        started = time.monotonic()
        outcome = "failed"
        try:
            result = await func(self, *args, **kwargs)
            outcome = "completed"
            return result
        finally:
            self.logger.debug(
                f"{func.__name__} {outcome}",
                extra={
                    "operation": func.__name__,
                    "elapsed_ms": round((time.monotonic() - started) * 1000),
                },
            )

    return wrapper
