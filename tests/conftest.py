"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pytest

from lending_risk.config import AppConfig, CacheConfig, ChainConfig, EngineConfig
from lending_risk.models import ReserveSnapshot


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        data_endpoints=("https://data1.example.com", "https://data2.example.com"),
        request_timeout=10,
        pool_addresses_provider="0xPROVIDER",
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        engine=EngineConfig(chain="ethereum", cache=CacheConfig(ttl_seconds=15.0)),
        chains={"ethereum": sample_chain_config},
    )


SAMPLE_YAML = textwrap.dedent("""\
    engine:
      chain: ethereum
      cache:
        ttl_seconds: 20
    chains:
      ethereum:
        data_endpoints: ["https://data.example.com", "https://backup.example.com"]
        request_timeout: 10
        pool_addresses_provider: "0xPROVIDER"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Raw pool data
# ---------------------------------------------------------------------------


@pytest.fixture()
def raw_reserves() -> list[dict[str, Any]]:
    return [
        {
            "underlyingAsset": "0xWETH",
            "symbol": "WETH",
            "decimals": 18,
            "priceInUSD": "2000",
            "supplyAPY": "0.02",
            "variableBorrowAPY": "0.03",
            "stableBorrowAPY": "0.05",
            "aIncentivesData": [{"incentiveAPR": "0.005"}],
            "vIncentivesData": [],
            "formattedBaseLTVasCollateral": "0.80",
            "formattedReserveLiquidationThreshold": "0.825",
            "eModeCategoryId": 1,
            "formattedEModeLtv": "0.90",
            "formattedEModeLiquidationThreshold": "0.93",
            "isActive": True,
            "isFrozen": False,
            "isPaused": False,
            "borrowingEnabled": True,
            "stableBorrowRateEnabled": False,
            "totalLiquidity": "1000",
            "totalDebt": "600",
            "availableLiquidity": "400",
        },
        {
            "underlyingAsset": "0xUSDC",
            "symbol": "USDC",
            "decimals": 6,
            "priceInUSD": "1",
            "supplyAPY": "0.04",
            "variableBorrowAPY": "0.05",
            "stableBorrowAPY": "0.07",
            "aIncentivesData": [],
            "vIncentivesData": [{"incentiveAPR": "0.01"}],
            "formattedBaseLTVasCollateral": "0.77",
            "formattedReserveLiquidationThreshold": "0.80",
            "eModeCategoryId": 0,
            "isActive": True,
            "isFrozen": False,
            "isPaused": False,
            "borrowingEnabled": True,
            "stableBorrowRateEnabled": True,
            "totalLiquidity": "1000000",
            "totalDebt": "800000",
            "availableLiquidity": "200000",
        },
        {
            "underlyingAsset": "0xDAI",
            "symbol": "DAI",
            "decimals": 18,
            "priceInUSD": "1",
            "supplyAPY": "0.08",
            "variableBorrowAPY": "0.045",
            "stableBorrowAPY": "0.06",
            "aIncentivesData": [],
            "vIncentivesData": [],
            "formattedBaseLTVasCollateral": "0.75",
            "formattedReserveLiquidationThreshold": "0.80",
            "eModeCategoryId": 0,
            "isActive": True,
            "isFrozen": False,
            "isPaused": False,
            "borrowingEnabled": True,
            "stableBorrowRateEnabled": False,
            "totalLiquidity": "500000",
            "totalDebt": "250000",
            "availableLiquidity": "250000",
        },
    ]


@pytest.fixture()
def raw_user_reserves() -> list[dict[str, Any]]:
    """5 WETH supplied as collateral ($10,000), 4,000 USDC variable debt."""
    return [
        {
            "underlyingAsset": "0xWETH",
            "underlyingBalance": "5",
            "variableBorrows": "0",
            "stableBorrows": "0",
            "usageAsCollateralEnabledOnUser": True,
        },
        {
            "underlyingAsset": "0xUSDC",
            "underlyingBalance": "0",
            "variableBorrows": "4000",
            "stableBorrows": "0",
            "usageAsCollateralEnabledOnUser": False,
        },
    ]


@pytest.fixture()
def raw_rewards() -> list[dict[str, Any]]:
    return [{"claimableUSD": "12.5"}, {"claimableUSD": "7.5"}]


# ---------------------------------------------------------------------------
# Snapshot factory
# ---------------------------------------------------------------------------

_BASE_RESERVE = ReserveSnapshot(
    asset="0xASSET",
    symbol="ASSET",
    decimals=18,
    price=Decimal(1),
    supply_apy=Decimal(3),
    variable_borrow_apy=Decimal(4),
    stable_borrow_apy=Decimal(6),
    ltv=Decimal("0.75"),
    liquidation_threshold=Decimal("0.80"),
)


@pytest.fixture()
def make_reserve() -> Callable[..., ReserveSnapshot]:
    """Build a ``ReserveSnapshot``; symbol doubles as the address unless given."""

    def _make(symbol: str = "ASSET", **overrides: Any) -> ReserveSnapshot:
        overrides.setdefault("asset", f"0x{symbol}")
        return replace(_BASE_RESERVE, symbol=symbol, **overrides)

    return _make
