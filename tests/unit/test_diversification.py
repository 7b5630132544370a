"""Unit tests for HHI-based diversification."""
from __future__ import annotations

from decimal import Decimal
from typing import Callable

import pytest

from lending_risk.analytics.diversification import calc_hhi, diversification_score
from lending_risk.models import ReserveSnapshot

D = Decimal


class TestCalcHhi:
    def test_equal_split(self) -> None:
        assert calc_hhi([D(50), D(50)]) == D("0.5")

    def test_single_value(self) -> None:
        assert calc_hhi([D(123)]) == D(1)

    def test_empty(self) -> None:
        assert calc_hhi([]) == D(0)

    def test_zero_values_ignored(self) -> None:
        assert calc_hhi([D(0), D(10), D(0)]) == D(1)


class TestDiversificationScore:
    def test_two_equal_positions(self, make_reserve: Callable[..., ReserveSnapshot]) -> None:
        positions = [
            make_reserve("A", supplied=D(100)),
            make_reserve("B", variable_debt=D(100)),
        ]
        assert diversification_score(positions) == D("0.5")

    def test_single_asset_is_zero(self, make_reserve: Callable[..., ReserveSnapshot]) -> None:
        positions = [make_reserve("A", supplied=D(10), variable_debt=D(3))]
        assert diversification_score(positions) == D(0)

    def test_empty_is_zero(self) -> None:
        assert diversification_score([]) == D(0)

    def test_zero_value_positions(self, make_reserve: Callable[..., ReserveSnapshot]) -> None:
        assert diversification_score([make_reserve("A"), make_reserve("B")]) == D(0)

    def test_borrowed_value_counts(self, make_reserve: Callable[..., ReserveSnapshot]) -> None:
        positions = [
            make_reserve("WETH", price=D(2000), supplied=D(5)),
            make_reserve("USDC", variable_debt=D(4000)),
        ]
        # shares 10/14 and 4/14
        expected = D(1) - (D(10) / D(14)) ** 2 - (D(4) / D(14)) ** 2
        assert abs(diversification_score(positions) - expected) < D("1e-20")

    @pytest.mark.parametrize(
        "values",
        [
            ["1", "1", "1", "1"],
            ["1000000", "0.0001"],
            ["5", "3", "2"],
            ["1e20", "1e-10", "7"],
        ],
    )
    def test_bounded(
        self, make_reserve: Callable[..., ReserveSnapshot], values: list[str]
    ) -> None:
        positions = [make_reserve(f"R{i}", supplied=D(v)) for i, v in enumerate(values)]
        score = diversification_score(positions)
        assert D(0) <= score <= D(1)

    def test_four_equal(self, make_reserve: Callable[..., ReserveSnapshot]) -> None:
        positions = [make_reserve(f"R{i}", supplied=D(25)) for i in range(4)]
        assert diversification_score(positions) == D("0.75")
