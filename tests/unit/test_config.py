"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from lending_risk.config import (
    AppConfig,
    CacheConfig,
    ChainConfig,
    EngineConfig,
    _interpolate_env,
    _validate,
    load_config,
)


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EP", "https://data.example.com")
        result = _interpolate_env({"chains": {"eth": {"data_endpoints": ["${EP}", "x"]}}})
        assert result == {"chains": {"eth": {"data_endpoints": ["https://data.example.com", "x"]}}}

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(30) == 30
        assert _interpolate_env(None) is None


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.engine.chain == "ethereum"
        assert cfg.engine.cache.ttl_seconds == 20.0
        eth = cfg.chains["ethereum"]
        assert eth.data_endpoints == ("https://data.example.com", "https://backup.example.com")
        assert eth.request_timeout == 10
        assert eth.pool_addresses_provider == "0xPROVIDER"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "engine:\n  chain: eth\nchains:\n  eth:\n    data_endpoints: [https://a.example.com]\n"
        )
        cfg = load_config(path)
        assert cfg.engine.cache.ttl_seconds == 30.0
        assert cfg.chains["eth"].request_timeout == 30

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_ENDPOINT", "https://secret.example.com")
        monkeypatch.delenv("UNSET_ENDPOINT", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(
            "engine:\n  chain: eth\n"
            "chains:\n  eth:\n"
            '    data_endpoints: ["${TEST_ENDPOINT}", "${UNSET_ENDPOINT}"]\n'
        )
        cfg = load_config(path)
        # empty interpolations are dropped
        assert cfg.chains["eth"].data_endpoints == ("https://secret.example.com",)


def _config(**engine_kwargs) -> AppConfig:
    return AppConfig(
        engine=EngineConfig(**{"chain": "eth", **engine_kwargs}),
        chains={"eth": ChainConfig(data_endpoints=("https://a.example.com",))},
    )


class TestValidate:
    def test_valid(self) -> None:
        _validate(_config())

    def test_no_chains(self) -> None:
        with pytest.raises(ValueError, match="At least one chain"):
            _validate(AppConfig(engine=EngineConfig(chain="eth")))

    def test_unknown_engine_chain(self) -> None:
        with pytest.raises(ValueError, match="unknown chain 'base'"):
            _validate(_config(chain="base"))

    def test_chain_without_endpoints(self) -> None:
        cfg = AppConfig(engine=EngineConfig(chain="eth"), chains={"eth": ChainConfig()})
        with pytest.raises(ValueError, match="no data endpoints"):
            _validate(cfg)

    def test_non_positive_timeout(self) -> None:
        cfg = AppConfig(
            engine=EngineConfig(chain="eth"),
            chains={"eth": ChainConfig(data_endpoints=("https://a",), request_timeout=0)},
        )
        with pytest.raises(ValueError, match="request_timeout"):
            _validate(cfg)

    def test_non_positive_ttl(self) -> None:
        with pytest.raises(ValueError, match="ttl_seconds"):
            _validate(_config(cache=CacheConfig(ttl_seconds=0)))

    def test_long_ttl_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="lending_risk.config"):
            _validate(_config(cache=CacheConfig(ttl_seconds=120)))
        assert "exceeds the recommended" in caplog.text
