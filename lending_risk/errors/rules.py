"""Ordered rule tables for mapping raw failure messages to error codes.

Tables are consulted in this order, first match wins:

1. ``PROTOCOL_RULES``  - known pool revert reasons
2. ``NETWORK_RULES``   - transport, RPC and nonce/gas-price failures
3. ``GAS_RULES``       - execution failures reported by the node
4. ``HEURISTIC_RULES`` - loose keyword combinations

Matching is case-insensitive substring matching on the raw message. Within
a table, earlier rules shadow later ones; known overlaps are listed in
``OVERLAPPING_PATTERNS``.
"""
from __future__ import annotations

from dataclasses import dataclass

from .codes import ErrorCode, MatchSource, Recovery


@dataclass(frozen=True)
class Rule:
    source: MatchSource
    all_of: tuple[str, ...]
    code: ErrorCode
    user_message: str
    any_of: tuple[str, ...] = ()
    retryable: bool | None = None
    recovery: Recovery | None = None

    @property
    def pattern(self) -> str:
        text = " + ".join(self.all_of)
        if self.any_of:
            text += " + (" + " | ".join(self.any_of) + ")"
        return text

    def matches(self, message: str) -> bool:
        if not all(p in message for p in self.all_of):
            return False
        return not self.any_of or any(p in message for p in self.any_of)


def _protocol(
    reason: str,
    code: ErrorCode,
    user_message: str,
    action: str,
    requires_user_action: bool = True,
) -> Rule:
    # Reverts that need no user change (index overflows, rebalance timing)
    # may succeed on retry; the rest are deterministic for the same inputs.
    retryable = not requires_user_action if code is ErrorCode.TRANSACTION_FAILED else None
    return Rule(
        source=MatchSource.PROTOCOL,
        all_of=(reason.lower(),),
        code=code,
        user_message=user_message,
        retryable=retryable,
        recovery=Recovery(action=action, requires_user_action=requires_user_action),
    )


_RETRY_LATER = "Wait and retry the operation"

PROTOCOL_RULES: tuple[Rule, ...] = (
    # Pool
    _protocol(
        "P_INVALID_FLASHLOAN_EXECUTOR_RETURN",
        ErrorCode.TRANSACTION_FAILED,
        "Flash loan execution failed. Please check your flash loan logic.",
        "Review and fix your flash loan implementation",
    ),
    _protocol(
        "P_VT_TRANSFER_NOT_SUPPORTED",
        ErrorCode.TRANSACTION_FAILED,
        "Cannot transfer debt tokens. Use repay and borrow operations instead.",
        "Use repay and borrow for debt management",
    ),
    _protocol(
        "P_ASSET_NOT_LISTED",
        ErrorCode.ASSET_NOT_SUPPORTED,
        "This asset is not supported by the lending pool.",
        "Use a supported asset from the pool markets",
    ),
    _protocol(
        "P_INVALID_AMOUNT",
        ErrorCode.INVALID_PARAMETERS,
        "The amount provided is invalid. Please check the amount and try again.",
        "Ensure amount is positive and within acceptable range",
    ),
    # Reserve
    _protocol(
        "R_LIQUIDITY_INDEX_OVERFLOW",
        ErrorCode.TRANSACTION_FAILED,
        "Internal calculation error. Please try again later.",
        _RETRY_LATER,
        requires_user_action=False,
    ),
    _protocol(
        "R_VARIABLE_BORROW_INDEX_OVERFLOW",
        ErrorCode.TRANSACTION_FAILED,
        "Internal calculation error. Please try again later.",
        _RETRY_LATER,
        requires_user_action=False,
    ),
    _protocol(
        "R_LIQUIDITY_RATE_OVERFLOW",
        ErrorCode.TRANSACTION_FAILED,
        "Interest rate calculation error. Please try again later.",
        _RETRY_LATER,
        requires_user_action=False,
    ),
    _protocol(
        "R_VARIABLE_BORROW_RATE_OVERFLOW",
        ErrorCode.TRANSACTION_FAILED,
        "Interest rate calculation error. Please try again later.",
        _RETRY_LATER,
        requires_user_action=False,
    ),
    # Validation
    _protocol(
        "V_INCONSISTENT_FLASHLOAN_PARAMS",
        ErrorCode.INVALID_PARAMETERS,
        "Flash loan parameters are inconsistent.",
        "Check flash loan asset and amount parameters",
    ),
    _protocol(
        "V_COLLATERAL_BALANCE_IS_ZERO",
        ErrorCode.INSUFFICIENT_COLLATERAL,
        "You have no collateral deposited. Please supply collateral first.",
        "Supply assets as collateral before borrowing",
    ),
    _protocol(
        "V_HEALTH_FACTOR_LOWER_THAN_LIQUIDATION_THRESHOLD",
        ErrorCode.HEALTH_FACTOR_TOO_LOW,
        "This operation would put your position at risk of liquidation.",
        "Supply more collateral or reduce debt",
    ),
    _protocol(
        "V_COLLATERAL_CANNOT_COVER_NEW_BORROW",
        ErrorCode.INSUFFICIENT_COLLATERAL,
        "You don't have enough collateral to borrow this amount.",
        "Supply more collateral or reduce borrow amount",
    ),
    _protocol(
        "V_STABLE_BORROWING_NOT_ENABLED",
        ErrorCode.STABLE_BORROWING_NOT_ENABLED,
        "Stable rate borrowing is not available for this asset.",
        "Use variable rate borrowing instead",
    ),
    _protocol(
        "V_BORROWING_NOT_ENABLED",
        ErrorCode.BORROWING_NOT_ENABLED,
        "Borrowing is not enabled for this asset.",
        "Choose an asset with borrowing enabled",
    ),
    _protocol(
        "V_NO_DEBT_OF_SELECTED_TYPE",
        ErrorCode.TRANSACTION_FAILED,
        "You don't have debt in the selected interest rate mode.",
        "Check your debt positions and select the correct rate mode",
    ),
    _protocol(
        "V_NO_STABLE_RATE_LOAN_IN_RESERVE",
        ErrorCode.STABLE_BORROWING_NOT_ENABLED,
        "No stable rate loan exists for this asset.",
        "Use variable rate borrowing",
    ),
    _protocol(
        "V_NO_VARIABLE_RATE_LOAN_IN_RESERVE",
        ErrorCode.TRANSACTION_FAILED,
        "No variable rate loan exists for this asset.",
        "Check your borrow positions",
    ),
    _protocol(
        "V_UNDERLYING_BALANCE_ZERO",
        ErrorCode.INSUFFICIENT_BALANCE,
        "You don't have any balance of this asset to supply.",
        "Acquire the asset first or check your balance",
    ),
    _protocol(
        "V_INTEREST_RATE_REBALANCE_CONDITIONS_NOT_MET",
        ErrorCode.TRANSACTION_FAILED,
        "Cannot rebalance interest rate. Conditions not met.",
        "Try again later when market conditions change",
        requires_user_action=False,
    ),
    # Asset configuration
    _protocol(
        "A_INTEREST_RATE_REBALANCE_CONDITIONS_NOT_MET",
        ErrorCode.TRANSACTION_FAILED,
        "Cannot rebalance stable rate. Market conditions not suitable.",
        "Try again when utilization rate changes",
        requires_user_action=False,
    ),
    _protocol(
        "A_NO_MORE_RESERVES_ALLOWED",
        ErrorCode.POOL_PAUSED,
        "Maximum number of assets reached in the pool.",
        "Wait for pool governance to allow more reserves",
    ),
    # Supply / withdraw
    _protocol(
        "S_NOT_ENOUGH_AVAILABLE_USER_BALANCE",
        ErrorCode.INSUFFICIENT_BALANCE,
        "You don't have enough balance to complete this operation.",
        "Check your wallet balance and reduce the amount",
    ),
    _protocol(
        "W_NO_ATOKEN_BALANCE",
        ErrorCode.INSUFFICIENT_BALANCE,
        "You don't have any supplied balance to withdraw.",
        "Check your supplied positions",
    ),
    # Caps
    _protocol(
        "B_BORROW_CAP_EXCEEDED",
        ErrorCode.AMOUNT_TOO_HIGH,
        "Borrowing this amount would exceed the protocol's borrow cap.",
        "Reduce the borrow amount",
    ),
    _protocol(
        "B_SUPPLY_CAP_EXCEEDED",
        ErrorCode.AMOUNT_TOO_HIGH,
        "Supplying this amount would exceed the protocol's supply cap.",
        "Reduce the supply amount",
    ),
    # Reserve status
    _protocol(
        "RESERVE_INACTIVE",
        ErrorCode.RESERVE_INACTIVE,
        "This asset is currently inactive in the lending pool.",
        "Choose an active asset or wait for reactivation",
    ),
    _protocol(
        "RESERVE_FROZEN",
        ErrorCode.RESERVE_FROZEN,
        "This asset is currently frozen. Only repay and withdraw operations are allowed.",
        "Choose an unfrozen asset or wait for unfreeze",
    ),
    _protocol(
        "RESERVE_PAUSED",
        ErrorCode.POOL_PAUSED,
        "Operations on this asset are temporarily paused.",
        "Wait for the asset to be unpaused",
        requires_user_action=False,
    ),
)


def _network(pattern: str, code: ErrorCode, user_message: str, retryable: bool) -> Rule:
    return Rule(
        source=MatchSource.NETWORK,
        all_of=(pattern,),
        code=code,
        user_message=user_message,
        retryable=retryable,
    )


NETWORK_RULES: tuple[Rule, ...] = (
    _network(
        "all data endpoints failed",
        ErrorCode.DATA_FETCH_FAILED,
        "Market data is temporarily unavailable. Please try again.",
        True,
    ),
    _network(
        "network timeout",
        ErrorCode.TRANSACTION_FAILED,
        "Network connection timed out. Please try again.",
        True,
    ),
    _network(
        "connection refused",
        ErrorCode.TRANSACTION_FAILED,
        "Unable to connect to the network. Please check your connection.",
        True,
    ),
    _network(
        "connection reset",
        ErrorCode.TRANSACTION_FAILED,
        "Network connection interrupted. Please try again.",
        True,
    ),
    _network(
        "socket hang up",
        ErrorCode.TRANSACTION_FAILED,
        "Network connection interrupted. Please try again.",
        True,
    ),
    _network(
        "request timeout",
        ErrorCode.TRANSACTION_FAILED,
        "Request timed out. Please try again.",
        True,
    ),
    _network(
        "timed out",
        ErrorCode.TRANSACTION_FAILED,
        "Request timed out. Please try again.",
        True,
    ),
    _network(
        "rate limit",
        ErrorCode.TRANSACTION_FAILED,
        "Too many requests. Please wait a moment and try again.",
        True,
    ),
    _network(
        "too many requests",
        ErrorCode.TRANSACTION_FAILED,
        "Too many requests. Please wait a moment and try again.",
        True,
    ),
    _network(
        "insufficient funds for gas",
        ErrorCode.INSUFFICIENT_BALANCE,
        "Insufficient native balance for gas fees. Please top up your wallet.",
        False,
    ),
    _network(
        "gas limit exceeded",
        ErrorCode.TRANSACTION_FAILED,
        "Transaction requires too much gas. Try reducing the amount.",
        False,
    ),
    _network(
        "replacement transaction underpriced",
        ErrorCode.TRANSACTION_FAILED,
        "Transaction replacement fee too low. Increase gas price.",
        True,
    ),
    _network(
        "nonce too low",
        ErrorCode.TRANSACTION_FAILED,
        "Transaction nonce is outdated. Please refresh and try again.",
        True,
    ),
    _network(
        "already known",
        ErrorCode.TRANSACTION_FAILED,
        "Transaction already pending. Please wait for confirmation.",
        False,
    ),
)


def _gas(pattern: str, user_message: str, action: str) -> Rule:
    return Rule(
        source=MatchSource.GAS,
        all_of=(pattern,),
        code=ErrorCode.TRANSACTION_FAILED,
        user_message=user_message,
        retryable=False,
        recovery=Recovery(action=action),
    )


GAS_RULES: tuple[Rule, ...] = (
    _gas(
        "execution reverted",
        "Transaction would fail. Please check your parameters.",
        "Review transaction parameters and account balances",
    ),
    _gas(
        "out of gas",
        "Transaction ran out of gas. Increase gas limit.",
        "Increase gas limit or reduce transaction complexity",
    ),
    _gas(
        "invalid opcode",
        "Invalid transaction. Please check your parameters.",
        "Verify all transaction parameters are correct",
    ),
)


def _heuristic(
    all_of: tuple[str, ...],
    code: ErrorCode,
    user_message: str,
    any_of: tuple[str, ...] = (),
) -> Rule:
    return Rule(
        source=MatchSource.HEURISTIC,
        all_of=all_of,
        any_of=any_of,
        code=code,
        user_message=user_message,
    )


HEURISTIC_RULES: tuple[Rule, ...] = (
    _heuristic(
        ("insufficient",),
        ErrorCode.INSUFFICIENT_BALANCE,
        "Insufficient balance to complete this operation.",
        any_of=("balance", "funds"),
    ),
    _heuristic(
        ("insufficient", "collateral"),
        ErrorCode.INSUFFICIENT_COLLATERAL,
        "Insufficient collateral for this operation.",
    ),
    _heuristic(
        ("health factor",),
        ErrorCode.HEALTH_FACTOR_TOO_LOW,
        "This operation would put your position at risk of liquidation.",
    ),
    _heuristic(
        ("stable", "not enabled"),
        ErrorCode.STABLE_BORROWING_NOT_ENABLED,
        "Stable rate borrowing is not enabled for this asset.",
    ),
    _heuristic(
        ("borrowing", "not enabled"),
        ErrorCode.BORROWING_NOT_ENABLED,
        "Borrowing is not enabled for this asset.",
    ),
    _heuristic(
        ("paused",),
        ErrorCode.POOL_PAUSED,
        "The pool or asset is currently paused.",
    ),
    _heuristic(
        ("frozen",),
        ErrorCode.RESERVE_FROZEN,
        "The asset is currently frozen.",
    ),
    _heuristic(
        ("inactive",),
        ErrorCode.RESERVE_INACTIVE,
        "The asset is currently inactive.",
    ),
)

RULE_TABLES: tuple[tuple[Rule, ...], ...] = (
    PROTOCOL_RULES,
    NETWORK_RULES,
    GAS_RULES,
    HEURISTIC_RULES,
)

# Message fragments that more than one rule can claim, with the code that
# wins under the current ordering.
OVERLAPPING_PATTERNS: dict[str, ErrorCode] = {
    "insufficient collateral balance": ErrorCode.INSUFFICIENT_BALANCE,
    "insufficient funds for gas": ErrorCode.INSUFFICIENT_BALANCE,
    "execution reverted: health factor too low": ErrorCode.TRANSACTION_FAILED,
    "stable borrowing not enabled": ErrorCode.STABLE_BORROWING_NOT_ENABLED,
    "reserve paused and frozen": ErrorCode.POOL_PAUSED,
}


def find_rule(message: str) -> Rule | None:
    """Return the first rule matching *message* (already lower-cased)."""
    for table in RULE_TABLES:
        for rule in table:
            if rule.matches(message):
                return rule
    return None
