"""OKX public REST client — candles, funding, positioning, liquidations.

Every v5 endpoint wraps its payload as ``{"code": "0", "msg": "", "data": [...]}``;
a non-zero code is an API-level error even on HTTP 200. Time series come back
newest-first.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from signal_core.errors import DataFetchError
from signal_core.models import Candle, LiquidationVolume

MAX_CANDLES_PER_PAGE = 300
MAX_CANDLE_PAGES = 2
PAGE_DELAY_S = 0.2

# The long/short ratio is compared with the reading 8 periods back
LONG_SHORT_LOOKBACK = 7


def swap_inst_id(coin: str) -> str:
    return f"{coin.upper()}-USDT-SWAP"


def _ms_to_dt(ms: int | str) -> datetime:
    return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)


class OKXClient:
    """Async client for OKX's public market-data endpoints."""

    def __init__(
        self,
        base_url: str = "https://www.okx.com",
        timeout_s: float = 15.0,
        http: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._http = http

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout_s)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def _get(self, path: str, params: dict[str, Any]) -> list:
        http = await self._get_http()
        resp = await http.get(f"{self.base_url}{path}", params=params)
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, dict) or str(body.get("code", "0")) != "0":
            msg = body.get("msg") if isinstance(body, dict) else body
            raise DataFetchError(f"OKX {path} failed: {msg}")
        return body.get("data") or []

    # --- Parsers ---

    @staticmethod
    def parse_candles(rows: list[list[str]]) -> list[Candle]:
        """Convert raw ``[ts, o, h, l, c, vol, ...]`` rows to Candles (input order kept)."""
        return [
            Candle(
                open_time=_ms_to_dt(row[0]),
                open=Decimal(row[1]),
                high=Decimal(row[2]),
                low=Decimal(row[3]),
                close=Decimal(row[4]),
                volume=Decimal(row[5]),
            )
            for row in rows
        ]

    @staticmethod
    def parse_liquidations(data: list[dict]) -> LiquidationVolume | None:
        """Sum liquidated size by side from a liquidation-orders payload.

        A sell fill closes a long, so it counts toward long liquidations.
        """
        if not data or not data[0].get("details"):
            return None
        long_liq = Decimal(0)
        short_liq = Decimal(0)
        for d in data[0]["details"]:
            size = Decimal(str(d.get("sz") or 0))
            if d.get("posSide") == "long" or d.get("side") == "sell":
                long_liq += size
            else:
                short_liq += size
        return LiquidationVolume(long=long_liq, short=short_liq)

    # --- REST ---

    async def get_candles(self, inst_id: str, bar: str = "4H", limit: int = 300) -> list[Candle]:
        """Fetch up to *limit* recent candles, ascending by open time.

        Pages backwards with ``after`` (at most two pages of 300).
        """
        needed = min(limit, MAX_CANDLES_PER_PAGE * MAX_CANDLE_PAGES)
        rows: list[list[str]] = []
        after: str | None = None

        while len(rows) < needed:
            params: dict[str, Any] = {
                "instId": inst_id,
                "bar": bar,
                "limit": min(MAX_CANDLES_PER_PAGE, needed - len(rows)),
            }
            if after is not None:
                params["after"] = after
            page = await self._get("/api/v5/market/candles", params)
            if not page:
                break
            rows.extend(page)
            after = page[-1][0]
            if len(page) < params["limit"]:
                break
            await asyncio.sleep(PAGE_DELAY_S)

        rows.reverse()
        return self.parse_candles(rows)

    async def get_funding_rate(self, inst_id: str) -> Decimal | None:
        data = await self._get("/api/v5/public/funding-rate", {"instId": inst_id})
        if not data or data[0].get("fundingRate") in (None, ""):
            return None
        return Decimal(data[0]["fundingRate"])

    async def get_funding_history(self, inst_id: str, limit: int = 6) -> list[Decimal]:
        """Recent settled funding rates, newest first."""
        data = await self._get(
            "/api/v5/public/funding-rate-history",
            {"instId": inst_id, "limit": limit},
        )
        return [Decimal(d["fundingRate"]) for d in data if d.get("fundingRate") not in (None, "")]

    async def get_long_short_ratio(self, coin: str, period: str = "1H") -> tuple[Decimal, Decimal] | None:
        """Return ``(current, prior)`` account long/short ratios."""
        data = await self._get(
            "/api/v5/rubik/stat/contracts/long-short-account-ratio",
            {"ccy": coin.upper(), "period": period},
        )
        if len(data) < 2:
            return None
        current = Decimal(data[0][1])
        prior = Decimal(data[min(LONG_SHORT_LOOKBACK, len(data) - 1)][1])
        return current, prior

    async def get_liquidations(self, coin: str) -> LiquidationVolume | None:
        data = await self._get(
            "/api/v5/public/liquidation-orders",
            {"instType": "SWAP", "uly": f"{coin.upper()}-USDT", "state": "filled", "limit": 1},
        )
        return self.parse_liquidations(data)
