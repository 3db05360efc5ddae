"""Solana JSON-RPC client for token supply, and market cap estimation."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from poolwatch.core.config import SolanaConfig, get_settings
from poolwatch.core.types import PoolInfo
from poolwatch.feeds.exceptions import FeedConnectionError, FeedParseError, FeedRateLimitError

logger = structlog.stdlib.get_logger()

WSOL_MINT = "So11111111111111111111111111111111111111112"


def calculate_market_cap(pool: PoolInfo, sol_price: float, total_supply: int) -> float:
    """Estimate the USD market cap of the pool's B token.

    Pool price is quoted as B per A (A being WSOL), so the token's SOL
    price is its reciprocal. A zero pool price yields 0.0.
    """
    if pool.price == 0.0:
        return 0.0
    price_in_usdc = (1.0 / pool.price) * sol_price
    supply = total_supply / 10**pool.symbol_b_decimals
    return supply * price_in_usdc


def is_sol_quoted(pool: PoolInfo) -> bool:
    """Whether the market cap formula applies (A side is wrapped SOL)."""
    return pool.symbol_a_address == WSOL_MINT


class SolanaRpcClient:
    """Minimal async JSON-RPC client — only ``getTokenSupply`` is needed."""

    def __init__(self, config: SolanaConfig | None = None) -> None:
        self._config = config or get_settings().solana
        self._http: httpx.AsyncClient | None = None
        self._request_id = 0

    @property
    def connected(self) -> bool:
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        self._http = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout_secs))

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _call(self, method: str, params: list[Any]) -> Any:
        if self._http is None:
            raise FeedConnectionError("RPC client not connected")

        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        try:
            response = await self._http.post(self._config.rpc_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise FeedRateLimitError("Solana RPC rate limited") from exc
            raise FeedConnectionError(f"Solana RPC returned {status}") from exc
        except httpx.HTTPError as exc:
            raise FeedConnectionError(f"Solana RPC request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise FeedParseError("Solana RPC returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise FeedParseError("Solana RPC response is not an object")
        if "error" in body:
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise FeedConnectionError(f"Solana RPC {method} failed: {message}")
        return body.get("result")

    async def get_token_supply(self, mint: str) -> int:
        """Raw (undivided) total supply of the SPL token *mint*."""
        result = await self._call("getTokenSupply", [mint])
        value = result.get("value") if isinstance(result, dict) else None
        amount = value.get("amount") if isinstance(value, dict) else None
        try:
            supply = int(amount)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise FeedParseError(f"Invalid token supply for {mint}: {amount!r}") from exc
        logger.debug("token_supply_fetched", mint=mint, supply=supply)
        return supply

    async def __aenter__(self) -> SolanaRpcClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
