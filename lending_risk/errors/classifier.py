"""Error classification: maps raw failures to canonical ``ErrorRecord``s.

``classify`` is pure: the same raw message and context always produce an
equal record. Logging happens separately in ``log_error`` /
``error_boundary``.
"""
from __future__ import annotations

import asyncio
import decimal
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import aiohttp

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
from .context import ErrorContext, Operation
from .rules import Rule, find_rule

logger = logging.getLogger(__name__)

_EMPTY_CONTEXT = ErrorContext()

_DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INSUFFICIENT_BALANCE: "Insufficient balance to complete this operation.",
    ErrorCode.INSUFFICIENT_COLLATERAL: "Insufficient collateral for this operation.",
    ErrorCode.ASSET_NOT_SUPPORTED: "This asset is not supported by the lending pool.",
    ErrorCode.BORROWING_NOT_ENABLED: "Borrowing is not enabled for this asset.",
    ErrorCode.STABLE_BORROWING_NOT_ENABLED: "Stable rate borrowing is not enabled for this asset.",
    ErrorCode.HEALTH_FACTOR_TOO_LOW: "This operation would put your position at risk of liquidation.",
    ErrorCode.TRANSACTION_FAILED: "The transaction could not be completed.",
    ErrorCode.INVALID_PARAMETERS: "The provided parameters are invalid.",
    ErrorCode.AMOUNT_TOO_HIGH: "The amount is too high for this operation.",
    ErrorCode.RESERVE_FROZEN: "The asset is currently frozen.",
    ErrorCode.RESERVE_INACTIVE: "The asset is currently inactive.",
    ErrorCode.POOL_PAUSED: "The pool or asset is currently paused.",
    ErrorCode.DATA_FETCH_FAILED: "Market data is temporarily unavailable. Please try again.",
    ErrorCode.UNKNOWN: "An unexpected error occurred. Please try again.",
}


def _message_of(raw_error: BaseException | str) -> str:
    if isinstance(raw_error, str):
        return raw_error
    text = str(raw_error)
    # Timeouts and some transport errors carry no message.
    return text if text else type(raw_error).__name__


# Transport exception types, checked in order, and the network pattern each
# one stands for when its message matches no rule. aiohttp's
# ServerTimeoutError is also an asyncio.TimeoutError, so timeouts go first.
_NETWORK_TYPES: tuple[tuple[type[BaseException], str], ...] = (
    (asyncio.TimeoutError, "request timeout"),
    (TimeoutError, "request timeout"),
    (ConnectionResetError, "connection reset"),
    (aiohttp.ServerDisconnectedError, "connection reset"),
    (ConnectionRefusedError, "connection refused"),
    (aiohttp.ClientConnectionError, "connection refused"),
)


def _network_rule(raw_error: BaseException | str) -> Rule | None:
    if isinstance(raw_error, str):
        return None
    for exc_type, pattern in _NETWORK_TYPES:
        if isinstance(raw_error, exc_type):
            return find_rule(pattern)
    return None


# ---------------------------------------------------------------------------
# Numeric failures
# ---------------------------------------------------------------------------


def _numeric_rule(exc: ArithmeticError) -> tuple[ErrorCode, str, str]:
    """Return (code, user message, pattern) for arithmetic failures."""
    text = str(exc).lower()
    if isinstance(exc, ZeroDivisionError) or "division by zero" in text:
        return (
            ErrorCode.TRANSACTION_FAILED,
            "Internal calculation error. Please try again.",
            "division by zero",
        )
    if isinstance(exc, (OverflowError, decimal.Overflow)) or "overflow" in text:
        return (
            ErrorCode.AMOUNT_TOO_HIGH,
            "The amount is too large. Please use a smaller number.",
            "overflow",
        )
    if "underflow" in text or "negative" in text:
        return (
            ErrorCode.INVALID_PARAMETERS,
            "Please enter a positive number.",
            "negative",
        )
    return (
        ErrorCode.INVALID_PARAMETERS,
        "There was an error processing the numbers. Please check your input.",
        "invalid number",
    )


# ---------------------------------------------------------------------------
# Recovery and messages
# ---------------------------------------------------------------------------


def generate_recovery(code: ErrorCode, context: ErrorContext) -> Recovery:
    """Recovery guidance derived from the error code and operation context."""
    operation = context.operation
    asset = context.asset

    if code is ErrorCode.INSUFFICIENT_BALANCE:
        if operation in (Operation.SUPPLY, Operation.REPAY):
            return Recovery(action=f"Acquire more {asset or 'tokens'} or reduce the amount")
        return Recovery(action="Check your wallet balance and try a smaller amount")
    if code is ErrorCode.INSUFFICIENT_COLLATERAL:
        return Recovery(
            action="Supply more collateral or reduce the borrow amount",
            details="Your collateral is not sufficient for this borrow amount",
        )
    if code is ErrorCode.HEALTH_FACTOR_TOO_LOW:
        return Recovery(
            action="Supply additional collateral or repay some debt first",
            details="This operation would put your position at risk of liquidation",
        )
    if code is ErrorCode.STABLE_BORROWING_NOT_ENABLED:
        return Recovery(
            action="Use variable rate borrowing instead",
            details=f"Stable rate is not available for {asset or 'this asset'}",
        )
    if code is ErrorCode.BORROWING_NOT_ENABLED:
        return Recovery(action="Choose an asset with borrowing enabled")
    if code is ErrorCode.ASSET_NOT_SUPPORTED:
        return Recovery(action="Choose a supported asset from the pool markets")
    if code is ErrorCode.INVALID_PARAMETERS:
        return Recovery(action="Check input values and try again")
    if code is ErrorCode.AMOUNT_TOO_HIGH:
        return Recovery(action="Reduce the amount and try again")
    if code is ErrorCode.RESERVE_FROZEN:
        return Recovery(action="Only withdraw and repay operations are allowed for frozen assets")
    if code is ErrorCode.RESERVE_INACTIVE:
        return Recovery(action="Choose an active asset or wait for this asset to be reactivated")
    if code is ErrorCode.POOL_PAUSED:
        return Recovery(
            action="Wait for the pool to be unpaused and try again",
            requires_user_action=False,
        )
    if code is ErrorCode.DATA_FETCH_FAILED:
        return Recovery(
            action="Retry in a few moments",
            details="Market or position data could not be loaded",
            requires_user_action=False,
        )
    if code is ErrorCode.UNKNOWN:
        return Recovery(
            action="Retry the operation later",
            details="If the problem persists, double-check the operation parameters before retrying",
            requires_user_action=False,
        )
    return Recovery(action="Review the error details and try again")


def _operation_message(code: ErrorCode, context: ErrorContext) -> str | None:
    """Operation-specific wording for balance shortfalls."""
    if code is not ErrorCode.INSUFFICIENT_BALANCE or context.operation is None:
        return None
    asset = context.asset or "the asset"
    return {
        Operation.SUPPLY: f"You don't have enough {asset} to supply this amount.",
        Operation.BORROW: f"You don't have enough collateral to borrow this amount of {asset}.",
        Operation.REPAY: f"You don't have enough {asset} to repay this amount.",
        Operation.WITHDRAW: f"You don't have enough supplied {asset} to withdraw this amount.",
    }.get(context.operation)


def _technical_message(message: str, context: ErrorContext) -> str:
    if context.transaction_hash:
        return f"Transaction {context.transaction_hash} failed: {message}"
    if context.operation is not None:
        return f"{context.operation.value} failed: {message}"
    return message


def _build(
    code: ErrorCode,
    user_message: str,
    message: str,
    context: ErrorContext,
    source: MatchSource,
    pattern: str | None = None,
    retryable: bool | None = None,
    recovery: Recovery | None = None,
) -> ErrorRecord:
    return ErrorRecord(
        code=code,
        user_message=_operation_message(code, context) or user_message,
        technical_message=_technical_message(message, context),
        retryable=default_retryable(code) if retryable is None else retryable,
        severity=severity_for(code),
        recovery=recovery or generate_recovery(code, context),
        context=context.as_dict(),
        source=source,
        pattern=pattern,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify(
    raw_error: BaseException | str, context: ErrorContext | None = None
) -> ErrorRecord:
    """Map a raw failure onto the canonical taxonomy.

    Arithmetic exceptions are recognised by type first; everything else is
    matched by message against the ordered rule tables in ``rules``. Timeout
    and connection exception types whose message matches nothing fall back
    to their network rule, and anything left over is ``Unknown``.
    """
    context = context or _EMPTY_CONTEXT

    if isinstance(raw_error, LendingError):
        return raw_error.record

    message = _message_of(raw_error)

    if isinstance(raw_error, ArithmeticError):
        code, user_message, pattern = _numeric_rule(raw_error)
        return _build(
            code,
            user_message,
            message,
            context,
            MatchSource.NUMERIC,
            pattern=pattern,
            retryable=False,
        )

    rule: Rule | None = find_rule(message.lower()) or _network_rule(raw_error)
    if rule is not None:
        return _build(
            rule.code,
            rule.user_message,
            message,
            context,
            rule.source,
            pattern=rule.pattern,
            retryable=rule.retryable,
            recovery=rule.recovery,
        )

    return _build(
        ErrorCode.UNKNOWN,
        _DEFAULT_MESSAGES[ErrorCode.UNKNOWN],
        message,
        context,
        MatchSource.DEFAULT,
    )


def record_for(
    code: ErrorCode,
    context: ErrorContext | None = None,
    technical_message: str = "",
    user_message: str | None = None,
) -> ErrorRecord:
    """Build a record for a failure detected internally (no raw exception)."""
    context = context or _EMPTY_CONTEXT
    return _build(
        code,
        user_message or _DEFAULT_MESSAGES[code],
        technical_message or code.value,
        context,
        MatchSource.INTERNAL,
    )


def fail(
    code: ErrorCode,
    context: ErrorContext | None = None,
    technical_message: str = "",
    user_message: str | None = None,
) -> LendingError:
    """Shorthand for ``LendingError(record_for(...))``; the caller raises it."""
    return LendingError(record_for(code, context, technical_message, user_message))


def format_error_for_logging(record: ErrorRecord) -> dict[str, Any]:
    """Structured representation of a record for log sinks."""
    recovery = None
    if record.recovery is not None:
        recovery = {
            "action": record.recovery.action,
            "details": record.recovery.details,
            "requires_user_action": record.recovery.requires_user_action,
        }
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": record.severity.value,
        "error": {
            "code": record.code.value,
            "message": record.technical_message,
            "user_message": record.user_message,
            "source": record.source.value,
            "pattern": record.pattern,
        },
        "context": dict(record.context),
        "recovery": recovery,
        "retryable": record.retryable,
    }


_LOG_LEVELS = {
    Severity.ERROR: logging.ERROR,
    Severity.WARN: logging.WARNING,
    Severity.INFO: logging.INFO,
}


def log_error(record: ErrorRecord, log: logging.Logger | None = None) -> None:
    """Log a record at the level its severity maps to."""
    (log or logger).log(
        _LOG_LEVELS[record.severity],
        "Lending operation failed [%s]: %s",
        record.code.value,
        record.technical_message,
        extra={"error_record": format_error_for_logging(record)},
    )


@contextmanager
def error_boundary(
    context: ErrorContext | None = None, log: logging.Logger | None = None
) -> Iterator[None]:
    """Convert any escaping exception into a classified ``LendingError``."""
    try:
        yield
    except LendingError:
        raise
    except Exception as e:
        record = classify(e, context)
        log_error(record, log)
        raise LendingError(record) from e
