"""Threshold evaluation over computed change metrics."""

from __future__ import annotations

from poolwatch.core.types import PRICE, VOLUME, ChangeAlert, ChangeMetrics


def evaluate_alerts(
    metrics: ChangeMetrics,
    price_alert_pct: float,
    volume_alert_pct: float,
    window: str = "5m",
) -> list[ChangeAlert]:
    """Flag price/volume changes over *window* whose magnitude exceeds the threshold."""
    alerts: list[ChangeAlert] = []
    for field, threshold in ((PRICE, price_alert_pct), (VOLUME, volume_alert_pct)):
        change = metrics.change(field, window)
        if abs(change) > threshold:
            alerts.append(ChangeAlert(
                field=field,
                window=window,
                change_pct=change,
                threshold_pct=threshold,
            ))
    return alerts
