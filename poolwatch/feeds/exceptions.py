"""Exception hierarchy for market data sources."""

from __future__ import annotations


class FeedError(Exception):
    """Base exception for all data source errors."""


class FeedConnectionError(FeedError):
    """Request to a data source failed (transport error or bad HTTP status)."""


class FeedParseError(FeedError):
    """Data source returned malformed JSON or an unexpected shape."""


class FeedRateLimitError(FeedConnectionError):
    """Rate limited by the data source (HTTP 429)."""
