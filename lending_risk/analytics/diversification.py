"""Position concentration via the Herfindahl-Hirschman Index."""
from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from ..models import ZERO, ReserveSnapshot

ONE = Decimal(1)


def calc_hhi(values: Iterable[Decimal]) -> Decimal:
    """Sum of squared shares. 0 for an empty or all-zero set."""
    values = [v for v in values if v > 0]
    total = sum(values, ZERO)
    if total == 0:
        return ZERO
    return sum(((v / total) ** 2 for v in values), ZERO)


def diversification_score(positions: Iterable[ReserveSnapshot]) -> Decimal:
    """``1 - HHI`` over supplied plus borrowed value, clamped to [0, 1].

    A single-asset position scores 0, and so does an empty one.
    """
    hhi = calc_hhi(p.total_value for p in positions)
    if hhi == 0:
        return ZERO
    return min(max(ONE - hhi, ZERO), ONE)
