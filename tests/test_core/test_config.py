"""Tests for poolwatch/core/config.py — YAML loading, defaults, validation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from poolwatch.core.config import (
    HistoryConfig,
    LoggingConfig,
    MonitorConfig,
    RaydiumConfig,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def _clean_settings() -> None:
    """Reset the global settings cache before each test."""
    reset_settings()


class TestDefaults:
    """Settings should have sensible defaults when no YAML is provided."""

    def test_default_monitor_config(self) -> None:
        cfg = MonitorConfig()
        assert cfg.interval_secs == 30.0
        assert cfg.top_n == 20
        assert cfg.price_alert_pct == 1.0
        assert cfg.volume_alert_pct == 5.0
        assert cfg.event_buffer_size == 100
        assert cfg.probe_timeout_secs is None

    def test_default_history_config(self) -> None:
        assert HistoryConfig().retention_days == 7.0

    def test_default_raydium_config(self) -> None:
        cfg = RaydiumConfig()
        assert cfg.base_url == "https://api-v3.raydium.io"
        assert cfg.page_size == 100
        assert cfg.excluded_quotes == ["USDC", "USDT", "mSOL"]

    def test_default_logging_config(self) -> None:
        cfg = LoggingConfig()
        assert cfg.level == "INFO"
        assert cfg.format == "console"

    def test_default_settings(self) -> None:
        s = Settings()
        assert s.monitor.interval_secs == 30.0
        assert s.history.retention_days == 7.0
        assert s.solana.market_cap_enabled is False
        assert s.logging.level == "INFO"


class TestValidation:
    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            MonitorConfig(interval_secs=0)

    def test_buffer_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            MonitorConfig(event_buffer_size=0)

    def test_retention_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            HistoryConfig(retention_days=-1)


class TestYamlLoading:
    """Settings should load correctly from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "monitor": {
                "interval_secs": 10,
                "top_n": 5,
                "price_alert_pct": 0.5,
            },
            "solana": {
                "rpc_url": "https://rpc.example.com",
                "market_cap_enabled": True,
            },
            "logging": {
                "level": "DEBUG",
                "format": "json",
            },
        }
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)

        assert settings.monitor.interval_secs == 10
        assert settings.monitor.top_n == 5
        assert settings.monitor.price_alert_pct == 0.5
        assert settings.solana.rpc_url == "https://rpc.example.com"
        assert settings.solana.market_cap_enabled is True
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "json"

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.monitor.interval_secs == 30.0

    def test_load_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        settings = load_settings(config_file)
        assert settings.monitor.top_n == 20

    def test_partial_yaml_merges_with_defaults(self, tmp_path: Path) -> None:
        config_data = {"monitor": {"volume_alert_pct": 12.5}}
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump(config_data))

        settings = load_settings(config_file)
        assert settings.monitor.volume_alert_pct == 12.5
        # Other defaults still intact
        assert settings.monitor.price_alert_pct == 1.0
        assert settings.raydium.page_size == 100


class TestCache:
    def test_get_settings_caches(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"monitor": {"top_n": 3}}))
        loaded = load_settings(config_file)
        assert get_settings() is loaded

    def test_reset_settings_clears_cache(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"monitor": {"top_n": 3}}))
        loaded = load_settings(config_file)
        reset_settings()
        assert get_settings() is not loaded
