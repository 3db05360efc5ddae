#!/usr/bin/env python3
"""Pool monitor entrypoint — wires all components and runs until interrupted.

Usage::

    # Monitor with defaults (30s interval, top 20 pools)
    python scripts/run.py monitor

    # Faster checks, tighter price alert
    python scripts/run.py monitor --interval 10 --top-n 5 --price-alert 0.5

    # Custom config file and log level
    python scripts/run.py --config config/settings.yaml --log-level DEBUG monitor
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from datetime import timedelta

import structlog
from pydantic import ValidationError

from poolwatch.core.config import MonitorConfig, Settings, load_settings
from poolwatch.core.logging import setup_logging
from poolwatch.feeds.probe import PoolProbe
from poolwatch.feeds.raydium import RaydiumClient
from poolwatch.feeds.solana import SolanaRpcClient
from poolwatch.history.changes import ChangeEngine
from poolwatch.history.store import HistoryStore
from poolwatch.monitor.dispatcher import EventDispatcher
from poolwatch.monitor.service import MonitorService

logger = structlog.get_logger(__name__)

ITEM_NAME = "raydium_pools"


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Fold command-line flags into the loaded settings."""
    updates: dict[str, object] = {}
    if args.interval is not None:
        updates["interval_secs"] = args.interval
    if args.top_n is not None:
        updates["top_n"] = args.top_n
    if args.price_alert is not None:
        updates["price_alert_pct"] = args.price_alert
    if args.volume_alert is not None:
        updates["volume_alert_pct"] = args.volume_alert
    if not updates:
        return settings
    monitor = MonitorConfig.model_validate({**settings.monitor.model_dump(), **updates})
    return settings.model_copy(update={"monitor": monitor})


async def run_monitor(args: argparse.Namespace) -> int:
    """Start the pool monitor and run until a shutdown signal arrives."""
    try:
        settings = apply_overrides(load_settings(args.config), args)
    except ValidationError as exc:
        print(f"Invalid monitor settings:\n{exc}", file=sys.stderr)
        return 2
    setup_logging(level=args.log_level)

    cfg = settings.monitor
    logger.info(
        "pool_monitor_starting",
        interval_secs=cfg.interval_secs,
        top_n=cfg.top_n,
        price_alert_pct=cfg.price_alert_pct,
        volume_alert_pct=cfg.volume_alert_pct,
        market_cap=settings.solana.market_cap_enabled,
    )

    # ── Data sources ─────────────────────────────────────────────
    client = RaydiumClient(settings.raydium)
    rpc: SolanaRpcClient | None = None
    if settings.solana.market_cap_enabled:
        rpc = SolanaRpcClient(settings.solana)

    history = HistoryStore(retention=timedelta(days=settings.history.retention_days))
    service = MonitorService(cfg)
    try:
        await client.connect()
        if rpc is not None:
            await rpc.connect()

        # ── History + probe ──────────────────────────────────────
        engine = ChangeEngine(history)
        probe = PoolProbe(client, history, engine, config=cfg, rpc=rpc)

        # ── Monitor service + event output ───────────────────────
        service.add_item(ITEM_NAME, cfg.interval_secs, probe)
        dispatcher = EventDispatcher(service.subscribe(), output=print)

        await dispatcher.start()
        try:
            await service.run()
            await _wait_for_shutdown()
        finally:
            # ── Graceful shutdown ────────────────────────────────
            logger.info("pool_monitor_shutting_down")
            await service.stop()
            await dispatcher.stop()
    finally:
        await client.close()
        if rpc is not None:
            await rpc.close()

    metrics = service.get_metrics(ITEM_NAME)
    logger.info(
        "pool_monitor_stopped",
        checks=metrics.check_count if metrics else 0,
        errors=metrics.error_count if metrics else 0,
        pools_tracked=len(history),
    )
    return 0


async def _wait_for_shutdown() -> None:
    """Block until SIGINT/SIGTERM (or Ctrl-C) is received."""
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monitor Raydium liquidity pools for price and volume moves.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    monitor = sub.add_parser("monitor", help="Run the periodic pool monitor")
    monitor.add_argument(
        "-i", "--interval",
        type=float,
        default=None,
        help="Check interval in seconds (default: 30)",
    )
    monitor.add_argument(
        "-t", "--top-n",
        type=int,
        default=None,
        help="Number of top pools to display (default: 20)",
    )
    monitor.add_argument(
        "--price-alert",
        type=float,
        default=None,
        help="5-minute price change alert threshold in percent (default: 1.0)",
    )
    monitor.add_argument(
        "--volume-alert",
        type=float,
        default=None,
        help="5-minute volume change alert threshold in percent (default: 5.0)",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    code = 0
    if args.command == "monitor":
        code = asyncio.run(run_monitor(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
