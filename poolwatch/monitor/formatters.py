"""Pure functions that render events and pool reports as text."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from poolwatch.core.types import PRICE, VOLUME, ChangeAlert, MonitorEvent, MonitorStatus, PoolReport

# ── Labels ──────────────────────────────────────────────────────

_STATUS_ICONS: dict[MonitorStatus, str] = {
    MonitorStatus.OK: "✅",
    MonitorStatus.WARNING: "⚠️",
    MonitorStatus.ERROR: "❌",
}

_FIELD_LABELS: dict[str, str] = {
    PRICE: "Price",
    VOLUME: "Volume",
}

SEPARATOR = "----------------------"


# ── Formatters ──────────────────────────────────────────────────


def format_event_header(event: MonitorEvent) -> str:
    """One-line summary, e.g. ``❌ [ERROR] raydium_pools #3 (0.41s)``."""
    icon = _STATUS_ICONS.get(event.status, "")
    return (
        f"{icon} [{event.status.value}] {event.item_name} "
        f"#{event.sequence} ({event.duration_secs:.2f}s)"
    )


def format_event(event: MonitorEvent) -> str:
    """Header line followed by the check's message, if any."""
    header = format_event_header(event)
    if not event.message:
        return header
    return f"{header}\n{event.message}"


def format_alert(alert: ChangeAlert) -> str:
    label = _FIELD_LABELS.get(alert.field, alert.field)
    return (
        f"⚠️ {label} {alert.window} change significant: {alert.change_pct:.2f}% "
        f"(threshold {alert.threshold_pct:.2f}%)"
    )


def _format_window_changes(report: PoolReport, field: str, windows: Sequence[str]) -> str:
    return " | ".join(
        f"{w}:{report.changes.change(field, w):.2f}%" for w in windows
    )


def format_pool(report: PoolReport, windows: Sequence[str]) -> str:
    """Render one pool block with change lines and any alerts."""
    pool = report.pool
    lines = [
        f"🔄 {pool.id} ({pool.pair})",
        f"💰 ${pool.price:.6f}",
        f"📈 Price: {_format_window_changes(report, PRICE, windows)}",
        f"📊 Vol: ${pool.volume_24h / 1_000_000:.2f}M",
        f"📊 Vol Chg: {_format_window_changes(report, VOLUME, windows)}",
    ]
    if report.market_cap_usd is not None:
        lines.append(f"🏦 Market cap: ${report.market_cap_usd / 1_000_000:.2f}M")
    lines.extend(format_alert(a) for a in report.alerts)
    lines.append(SEPARATOR)
    return "\n".join(lines)


def format_pool_report(
    timestamp: datetime,
    reports: Sequence[PoolReport],
    windows: Sequence[str],
) -> str:
    """Render the full multi-pool report for one check."""
    parts = [f"🕒 Update time: {timestamp:%Y-%m-%d %H:%M:%S}", ""]
    parts.extend(format_pool(r, windows) for r in reports)
    return "\n".join(parts)
