"""Operation metadata attached to classified errors."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from ..models import RateMode


class Operation(str, Enum):
    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    BORROW = "borrow"
    REPAY = "repay"
    MARKET_DATA = "market_data"
    ANALYTICS = "analytics"


@dataclass(frozen=True)
class ErrorContext:
    operation: Operation | None = None
    asset: str | None = None
    amount: Decimal | None = None
    rate_mode: RateMode | None = None
    user: str | None = None
    transaction_hash: str | None = None
    gas_used: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_transaction(self, transaction_hash: str) -> ErrorContext:
        return ErrorContext(
            operation=self.operation,
            asset=self.asset,
            amount=self.amount,
            rate_mode=self.rate_mode,
            user=self.user,
            transaction_hash=transaction_hash,
            gas_used=self.gas_used,
            metadata=dict(self.metadata),
        )

    def as_dict(self) -> dict[str, Any]:
        """Flatten to plain values, dropping unset fields."""
        out: dict[str, Any] = {}
        if self.operation is not None:
            out["operation"] = self.operation.value
        if self.asset:
            out["asset"] = self.asset
        if self.amount is not None:
            out["amount"] = str(self.amount)
        if self.rate_mode is not None:
            out["rate_mode"] = self.rate_mode.value
        if self.user:
            out["user"] = self.user
        if self.transaction_hash:
            out["transaction_hash"] = self.transaction_hash
        if self.gas_used:
            out["gas_used"] = self.gas_used
        out.update(self.metadata)
        return out


def supply_context(asset: str, amount: Decimal, user: str | None = None) -> ErrorContext:
    return ErrorContext(operation=Operation.SUPPLY, asset=asset, amount=amount, user=user)


def withdraw_context(asset: str, amount: Decimal, user: str | None = None) -> ErrorContext:
    return ErrorContext(operation=Operation.WITHDRAW, asset=asset, amount=amount, user=user)


def borrow_context(
    asset: str, amount: Decimal, rate_mode: RateMode, user: str | None = None
) -> ErrorContext:
    return ErrorContext(
        operation=Operation.BORROW,
        asset=asset,
        amount=amount,
        rate_mode=rate_mode,
        user=user,
    )


def repay_context(
    asset: str, amount: Decimal, rate_mode: RateMode, user: str | None = None
) -> ErrorContext:
    return ErrorContext(
        operation=Operation.REPAY,
        asset=asset,
        amount=amount,
        rate_mode=rate_mode,
        user=user,
    )


def market_data_context(
    user: str | None = None, asset: str | None = None, chain: str | None = None
) -> ErrorContext:
    metadata = {"chain": chain} if chain else {}
    return ErrorContext(
        operation=Operation.MARKET_DATA, user=user, asset=asset, metadata=metadata
    )


def analytics_context(user: str | None = None, asset: str | None = None) -> ErrorContext:
    return ErrorContext(operation=Operation.ANALYTICS, user=user, asset=asset)
