"""
Exception handling utilities.

Defines the domain exception taxonomy of the settlement engine and the
categories used to decide how callers handle each failure.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

if TYPE_CHECKING:
    from network_settlement.services.withdrawal.withdrawal_limits import (
        LimitCheckResult,
    )


class SettlementError(Exception):
    """Base class for all engine errors."""

    code = "SETTLEMENT_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Structured representation for API responses and logs."""
        return {"code": self.code, "message": str(self)}


class NotFound(SettlementError):
    """Unknown member, wallet or payment request."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class AlreadyProcessed(SettlementError):
    """
    Idempotent no-op.

    Raised when an order has already been settled. Callers treat it as
    success and use ``records`` from the first settlement.
    """

    code = "ALREADY_PROCESSED"

    def __init__(self, order_id: str, records: list[Any]) -> None:
        self.order_id = order_id
        self.records = records
        super().__init__(f"Order already settled: {order_id}")


class ConfigurationInvalid(SettlementError):
    """Commission configuration cannot be applied safely."""

    code = "CONFIGURATION_INVALID"
    public_message = "Commission settlement is temporarily unavailable"

    def __init__(self, detail: str, **context: Any) -> None:
        self.detail = detail
        self.context = context
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """End users never see the operator detail."""
        return {"code": self.code, "message": self.public_message}


class InsufficientFunds(SettlementError):
    """Debit would make the wallet balance negative."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(
        self, user_id: str, balance_cents: int, requested_cents: int
    ) -> None:
        self.user_id = user_id
        self.balance_cents = balance_cents
        self.requested_cents = requested_cents
        super().__init__(
            f"Insufficient funds for {user_id}: "
            f"balance={balance_cents}, requested={requested_cents}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "balance_cents": self.balance_cents,
            "requested_cents": self.requested_cents,
        }


class LimitExceeded(SettlementError):
    """A withdrawal guard failed; ``result`` says which and by how much."""

    code = "LIMIT_EXCEEDED"

    def __init__(self, result: "LimitCheckResult") -> None:
        self.result = result
        super().__init__(result.describe())

    def to_dict(self) -> dict[str, Any]:
        data = self.result.to_dict()
        data["code"] = self.code
        data["message"] = str(self)
        return data


class InvalidState(SettlementError):
    """Illegal state-machine transition."""

    code = "INVALID_STATE"

    def __init__(self, entity_id: Any, current: str, target: str) -> None:
        self.entity_id = entity_id
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move {entity_id} from {current} to {target}"
        )


class GraphStoreUnavailable(SettlementError):
    """The referral graph could not be read. Never means "no sponsor"."""

    code = "GRAPH_STORE_UNAVAILABLE"


class SponsorAssignmentError(SettlementError):
    """Sponsor reference rejected (self, cycle, unknown or reassignment)."""

    code = "SPONSOR_ASSIGNMENT_REJECTED"


# Outcomes a caller reports as success
SAFE_TO_IGNORE = (AlreadyProcessed,)

# Driver errors meaning the store itself is unreachable or broken
STORE_FAILURES = (OperationalError, InterfaceError, DBAPIError)

# Refusals whose message may be shown to the requester
USER_FACING = (
    NotFound,
    InsufficientFunds,
    LimitExceeded,
    InvalidState,
    SponsorAssignmentError,
)


def is_safe_to_ignore(exc: BaseException) -> bool:
    return isinstance(exc, SAFE_TO_IGNORE)


def is_user_facing(exc: BaseException) -> bool:
    """True if ``str(exc)`` is fit for end users."""
    return isinstance(exc, USER_FACING)
