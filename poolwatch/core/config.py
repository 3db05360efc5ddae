"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class MonitorConfig(BaseModel):
    """Scheduled monitoring and alert thresholds."""

    interval_secs: float = Field(default=30.0, gt=0)
    top_n: int = Field(default=20, ge=0)
    price_alert_pct: float = 1.0
    volume_alert_pct: float = 5.0
    event_buffer_size: int = Field(default=100, gt=0)
    stop_grace_secs: float = Field(default=5.0, ge=0)
    probe_timeout_secs: float | None = None


class HistoryConfig(BaseModel):
    """Rolling snapshot history retention."""

    retention_days: float = Field(default=7.0, gt=0)


class RaydiumConfig(BaseModel):
    """Raydium v3 public API configuration."""

    base_url: str = "https://api-v3.raydium.io"
    page_size: int = 100
    sort_field: str = "volume24h"
    sol_usdc_pool_id: str = "8sLbNZoA1cfnvMJLPfp98ZLAnFSYCFApfJKMbiXNLwxj"
    excluded_quotes: list[str] = ["USDC", "USDT", "mSOL"]
    timeout_secs: float = 10.0


class SolanaConfig(BaseModel):
    """Solana JSON-RPC configuration — only used for market cap lookups."""

    rpc_url: str = "https://api.mainnet-beta.solana.com"
    market_cap_enabled: bool = False
    timeout_secs: float = 10.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"


class Settings(BaseModel):
    """Root settings container."""

    monitor: MonitorConfig = MonitorConfig()
    history: HistoryConfig = HistoryConfig()
    raydium: RaydiumConfig = RaydiumConfig()
    solana: SolanaConfig = SolanaConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
