"""Market data sources — Raydium pools, Solana RPC, and the pool probe."""

from poolwatch.feeds.exceptions import (
    FeedConnectionError,
    FeedError,
    FeedParseError,
    FeedRateLimitError,
)
from poolwatch.feeds.probe import PoolProbe
from poolwatch.feeds.raydium import RaydiumClient, parse_pool_list
from poolwatch.feeds.solana import SolanaRpcClient, calculate_market_cap

__all__ = [
    "FeedConnectionError",
    "FeedError",
    "FeedParseError",
    "FeedRateLimitError",
    "PoolProbe",
    "RaydiumClient",
    "SolanaRpcClient",
    "calculate_market_cap",
    "parse_pool_list",
]
