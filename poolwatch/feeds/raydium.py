"""Raydium v3 API client — pool list and SOL price."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from poolwatch.core.config import RaydiumConfig, get_settings
from poolwatch.core.types import PoolDataResult, PoolInfo
from poolwatch.feeds.exceptions import FeedConnectionError, FeedParseError, FeedRateLimitError

logger = structlog.stdlib.get_logger()

WSOL_SYMBOL = "WSOL"


def _as_float(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _is_excluded_pair(symbol_a: str, symbol_b: str, excluded_quotes: list[str]) -> bool:
    """WSOL paired with a stable/LST quote tells us nothing about token moves."""
    return (symbol_a == WSOL_SYMBOL and symbol_b in excluded_quotes) or (
        symbol_b == WSOL_SYMBOL and symbol_a in excluded_quotes
    )


def _parse_pool(
    pool: dict[str, Any],
    timestamp: datetime,
    excluded_quotes: list[str],
) -> PoolInfo | None:
    """Parse one entry of ``data.data``; None if incomplete or excluded.

    Expected structure (abridged)::

        {
            "id": "6QVQ...",
            "mintA": {"symbol": "WSOL", "address": "So11...", "decimals": 9},
            "mintB": {"symbol": "$slop", "address": "Fqvt...", "decimals": 6},
            "price": 6948.93,
            "tvl": 1171602.1,
            "day": {"volume": 152266185.89, ...}
        }
    """
    mint_a = pool.get("mintA")
    mint_b = pool.get("mintB")
    if not isinstance(mint_a, dict) or not isinstance(mint_b, dict):
        return None

    pool_id = pool.get("id")
    symbol_a = mint_a.get("symbol")
    symbol_b = mint_b.get("symbol")
    address_a = mint_a.get("address")
    address_b = mint_b.get("address")
    decimals_b = mint_b.get("decimals")
    if not all(isinstance(v, str) for v in (pool_id, symbol_a, symbol_b, address_a, address_b)):
        return None
    if isinstance(decimals_b, bool) or not isinstance(decimals_b, int) or decimals_b < 0:
        return None

    if _is_excluded_pair(symbol_a, symbol_b, excluded_quotes):
        return None

    day = pool.get("day")
    volume = _as_float(day.get("volume")) if isinstance(day, dict) else 0.0

    return PoolInfo(
        id=pool_id,
        symbol_a=symbol_a,
        symbol_a_address=address_a,
        symbol_b=symbol_b,
        symbol_b_address=address_b,
        symbol_b_decimals=decimals_b,
        volume_24h=volume,
        tvl=_as_float(pool.get("tvl")),
        price=_as_float(pool.get("price")),
        timestamp=timestamp,
    )


def parse_pool_list(
    body: object,
    timestamp: datetime,
    excluded_quotes: list[str],
) -> PoolDataResult:
    """Parse a ``/pools/info/list`` response body, sorted by 24h volume desc.

    Raises:
        FeedParseError: If ``data.data`` is missing or not a list.
    """
    data = body.get("data") if isinstance(body, dict) else None
    pools = data.get("data") if isinstance(data, dict) else None
    if not isinstance(pools, list):
        raise FeedParseError("Failed to parse pool data")

    infos: list[PoolInfo] = []
    skipped = 0
    for raw in pools:
        info = _parse_pool(raw, timestamp, excluded_quotes) if isinstance(raw, dict) else None
        if info is None:
            skipped += 1
            continue
        infos.append(info)

    infos.sort(key=lambda p: p.volume_24h, reverse=True)
    if skipped:
        logger.debug("raydium_pools_skipped", skipped=skipped, parsed=len(infos))
    return PoolDataResult(pools=infos, timestamp=timestamp)


class RaydiumClient:
    """Async client for the public Raydium v3 API.

    Usage::

        async with RaydiumClient() as client:
            result = await client.fetch_pools()
    """

    def __init__(self, config: RaydiumConfig | None = None) -> None:
        self._config = config or get_settings().raydium
        self._http: httpx.AsyncClient | None = None

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        """Create the httpx async client."""
        self._http = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout_secs),
        )

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _get_json(self, path: str, params: dict[str, object]) -> Any:
        if self._http is None:
            raise FeedConnectionError("HTTP client not connected")

        try:
            response = await self._http.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise FeedRateLimitError("Raydium API rate limited") from exc
            raise FeedConnectionError(f"Raydium API returned {status}") from exc
        except httpx.HTTPError as exc:
            raise FeedConnectionError(f"Raydium API request failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise FeedParseError("Raydium API returned invalid JSON") from exc

    async def fetch_page(self, page: int = 1) -> Any:
        """Fetch one raw page of the pool list, sorted by the configured field."""
        return await self._get_json(
            "/pools/info/list",
            {
                "poolType": "all",
                "poolSortField": self._config.sort_field,
                "sortType": "desc",
                "pageSize": self._config.page_size,
                "page": page,
            },
        )

    async def fetch_pools(self, page: int = 1) -> PoolDataResult:
        """Fetch and parse one page of pools, stamped with the fetch time."""
        now = datetime.now(UTC)
        body = await self.fetch_page(page)
        result = parse_pool_list(body, now, self._config.excluded_quotes)
        logger.info("raydium_pools_fetched", page=page, pools=len(result.pools))
        return result

    async def get_sol_price(self) -> float:
        """Price of SOL in USDC, read from the configured SOL/USDC pool."""
        body = await self._get_json(
            "/pools/info/ids",
            {"ids": self._config.sol_usdc_pool_id},
        )
        data = body.get("data") if isinstance(body, dict) else None
        first = data[0] if isinstance(data, list) and data else None
        price = first.get("price") if isinstance(first, dict) else None
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise FeedParseError("Failed to extract SOL price from JSON")
        return float(price)

    async def __aenter__(self) -> RaydiumClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
