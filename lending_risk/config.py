"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Entries older than this are likely to show stale health factors.
RECOMMENDED_MAX_TTL_SECONDS = 60.0

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CacheConfig:
    ttl_seconds: float = 30.0


@dataclass(frozen=True)
class ChainConfig:
    data_endpoints: tuple[str, ...] = ()
    request_timeout: int = 30
    pool_addresses_provider: str = ""


@dataclass(frozen=True)
class EngineConfig:
    chain: str = ""
    cache: CacheConfig = field(default_factory=CacheConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    chains: dict[str, ChainConfig] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    cache_raw = raw.get("cache", {}) or {}
    return EngineConfig(
        chain=raw.get("chain", ""),
        cache=CacheConfig(ttl_seconds=float(cache_raw.get("ttl_seconds", 30.0))),
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        chains[name] = ChainConfig(
            data_endpoints=tuple(e for e in cfg.get("data_endpoints", []) if e),
            request_timeout=int(cfg.get("request_timeout", 30)),
            pool_addresses_provider=cfg.get("pool_addresses_provider", ""),
        )
    return chains


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate engine configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {}) or {}),
        chains=_build_chains(raw.get("chains", {}) or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chains:
        raise ValueError("At least one chain must be configured")

    if cfg.engine.chain not in cfg.chains:
        raise ValueError(f"Engine references unknown chain '{cfg.engine.chain}'")

    for name, chain in cfg.chains.items():
        if not chain.data_endpoints:
            raise ValueError(f"Chain '{name}' has no data endpoints")
        if chain.request_timeout <= 0:
            raise ValueError(f"Chain '{name}' request_timeout must be positive")

    ttl = cfg.engine.cache.ttl_seconds
    if ttl <= 0:
        raise ValueError("Cache ttl_seconds must be positive")
    if ttl > RECOMMENDED_MAX_TTL_SECONDS:
        logger.warning(
            "Cache TTL of %.0fs exceeds the recommended %.0fs",
            ttl,
            RECOMMENDED_MAX_TTL_SECONDS,
        )
