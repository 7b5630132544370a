"""Error taxonomy, classification and recovery guidance."""
from .classifier import (
    classify,
    error_boundary,
    fail,
    format_error_for_logging,
    generate_recovery,
    log_error,
    record_for,
)
from .codes import (
    ErrorCode,
    ErrorRecord,
    LendingError,
    MatchSource,
    Recovery,
    Severity,
    default_retryable,
    severity_for,
)
from .context import (
    ErrorContext,
    Operation,
    analytics_context,
    borrow_context,
    market_data_context,
    repay_context,
    supply_context,
    withdraw_context,
)

__all__ = [
    "ErrorCode",
    "ErrorContext",
    "ErrorRecord",
    "LendingError",
    "MatchSource",
    "Operation",
    "Recovery",
    "Severity",
    "analytics_context",
    "borrow_context",
    "classify",
    "default_retryable",
    "error_boundary",
    "fail",
    "format_error_for_logging",
    "generate_recovery",
    "log_error",
    "market_data_context",
    "record_for",
    "repay_context",
    "severity_for",
    "supply_context",
    "withdraw_context",
]
