"""PoolProbe — one monitoring tick: fetch, record, compare, alert, report."""

from __future__ import annotations

import asyncio

import structlog

from poolwatch.core.config import MonitorConfig, get_settings
from poolwatch.core.types import MonitorStatus, PoolInfo, PoolReport
from poolwatch.feeds.exceptions import FeedError
from poolwatch.feeds.raydium import RaydiumClient
from poolwatch.feeds.solana import SolanaRpcClient, calculate_market_cap, is_sol_quoted
from poolwatch.history.alerts import evaluate_alerts
from poolwatch.history.changes import ChangeEngine
from poolwatch.history.store import HistoryStore
from poolwatch.monitor.formatters import format_pool_report
from poolwatch.monitor.runner import Probe, ProbeOutcome

logger = structlog.stdlib.get_logger()


class PoolProbe(Probe):
    """Monitors the top pools by 24h volume.

    Every successful fetch records a snapshot for *every* parsed pool so
    history keeps building even for pools outside the displayed top N.
    Fetch or parse errors propagate and surface as ERROR events; the next
    tick simply tries again.

    Usage::

        probe = PoolProbe(client, history, ChangeEngine(history))
        service.add_item("raydium_pools", 30.0, probe)
    """

    def __init__(
        self,
        client: RaydiumClient,
        history: HistoryStore,
        engine: ChangeEngine,
        config: MonitorConfig | None = None,
        rpc: SolanaRpcClient | None = None,
    ) -> None:
        self._client = client
        self._history = history
        self._engine = engine
        self._config = config or get_settings().monitor
        self._rpc = rpc

    async def check(self) -> ProbeOutcome:
        result = await self._client.fetch_pools()
        await self._history.record_many({p.id: p.to_snapshot() for p in result.pools})

        top = result.pools[: self._config.top_n]
        market_caps = await self._market_caps(top)

        reports: list[PoolReport] = []
        for pool in top:
            changes = self._engine.compute(pool.id)
            if changes is None:
                continue
            alerts = evaluate_alerts(
                changes,
                price_alert_pct=self._config.price_alert_pct,
                volume_alert_pct=self._config.volume_alert_pct,
            )
            for alert in alerts:
                logger.info(
                    "pool_change_alert",
                    pool_id=pool.id,
                    pair=pool.pair,
                    field=alert.field,
                    window=alert.window,
                    change_pct=round(alert.change_pct, 4),
                )
            reports.append(PoolReport(
                pool=pool,
                changes=changes,
                alerts=alerts,
                market_cap_usd=market_caps.get(pool.id),
            ))

        text = format_pool_report(
            result.timestamp,
            reports,
            [w.label for w in self._engine.windows],
        )
        status = MonitorStatus.WARNING if any(r.alerts for r in reports) else MonitorStatus.OK
        return ProbeOutcome(status=status, message=text)

    async def _market_caps(self, pools: list[PoolInfo]) -> dict[str, float]:
        """Best-effort market caps; lookup failures only drop the figure."""
        if self._rpc is None:
            return {}
        eligible = [p for p in pools if is_sol_quoted(p)]
        if not eligible:
            return {}

        try:
            sol_price = await self._client.get_sol_price()
        except FeedError as exc:
            logger.warning("sol_price_unavailable", error=str(exc))
            return {}

        supplies = await asyncio.gather(
            *(self._rpc.get_token_supply(p.symbol_b_address) for p in eligible),
            return_exceptions=True,
        )
        caps: dict[str, float] = {}
        for pool, supply in zip(eligible, supplies):
            if isinstance(supply, FeedError):
                logger.warning("token_supply_unavailable", pool_id=pool.id, error=str(supply))
                continue
            if isinstance(supply, BaseException):
                raise supply
            caps[pool.id] = calculate_market_cap(pool, sol_price, supply)
        return caps
