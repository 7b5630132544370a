"""Canonical error taxonomy and the records the classifier produces."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INSUFFICIENT_COLLATERAL = "InsufficientCollateral"
    ASSET_NOT_SUPPORTED = "AssetNotSupported"
    BORROWING_NOT_ENABLED = "BorrowingNotEnabled"
    STABLE_BORROWING_NOT_ENABLED = "StableBorrowingNotEnabled"
    HEALTH_FACTOR_TOO_LOW = "HealthFactorTooLow"
    TRANSACTION_FAILED = "TransactionFailed"
    INVALID_PARAMETERS = "InvalidParameters"
    AMOUNT_TOO_HIGH = "AmountTooHigh"
    RESERVE_FROZEN = "ReserveFrozen"
    RESERVE_INACTIVE = "ReserveInactive"
    POOL_PAUSED = "PoolPaused"
    DATA_FETCH_FAILED = "DataFetchFailed"
    UNKNOWN = "Unknown"


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class MatchSource(str, Enum):
    """Which rule table produced a record."""

    PROTOCOL = "protocol"
    NETWORK = "network"
    GAS = "gas"
    NUMERIC = "numeric"
    HEURISTIC = "heuristic"
    DEFAULT = "default"
    INTERNAL = "internal"


# Business-rule codes: terminal until the caller changes its inputs.
TERMINAL_CODES = frozenset(
    {
        ErrorCode.INSUFFICIENT_BALANCE,
        ErrorCode.INSUFFICIENT_COLLATERAL,
        ErrorCode.ASSET_NOT_SUPPORTED,
        ErrorCode.INVALID_PARAMETERS,
        ErrorCode.HEALTH_FACTOR_TOO_LOW,
        ErrorCode.BORROWING_NOT_ENABLED,
        ErrorCode.STABLE_BORROWING_NOT_ENABLED,
        ErrorCode.AMOUNT_TOO_HIGH,
    }
)

_WARN_CODES = frozenset({ErrorCode.INVALID_PARAMETERS, ErrorCode.ASSET_NOT_SUPPORTED})
_INFO_CODES = frozenset(
    {
        ErrorCode.INSUFFICIENT_BALANCE,
        ErrorCode.INSUFFICIENT_COLLATERAL,
        ErrorCode.HEALTH_FACTOR_TOO_LOW,
    }
)


def severity_for(code: ErrorCode) -> Severity:
    """Validation errors warn, expected business constraints are info."""
    if code in _WARN_CODES:
        return Severity.WARN
    if code in _INFO_CODES:
        return Severity.INFO
    return Severity.ERROR


def default_retryable(code: ErrorCode) -> bool:
    return code not in TERMINAL_CODES


@dataclass(frozen=True)
class Recovery:
    """What the user can do about an error."""

    action: str
    details: str | None = None
    requires_user_action: bool = True


@dataclass(frozen=True)
class ErrorRecord:
    code: ErrorCode
    user_message: str
    technical_message: str
    retryable: bool
    severity: Severity
    recovery: Recovery | None = None
    context: dict[str, Any] = field(default_factory=dict)
    source: MatchSource = MatchSource.DEFAULT
    pattern: str | None = None


class LendingError(Exception):
    """Raised across the engine boundary; always carries a classified record."""

    def __init__(self, record: ErrorRecord) -> None:
        super().__init__(f"{record.code.value}: {record.user_message}")
        self.record = record

    @property
    def code(self) -> ErrorCode:
        return self.record.code

    @property
    def retryable(self) -> bool:
        return self.record.retryable
