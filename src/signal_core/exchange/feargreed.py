"""alternative.me Fear & Greed index client."""

from __future__ import annotations

import httpx


class FearGreedClient:
    """Async client for the crypto Fear & Greed index (0 = extreme fear)."""

    def __init__(
        self,
        base_url: str = "https://api.alternative.me",
        timeout_s: float = 10.0,
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

    async def get_index(self) -> int | None:
        http = await self._get_http()
        resp = await http.get(f"{self.base_url}/fng/", params={"limit": 1})
        resp.raise_for_status()
        data = resp.json().get("data") or []
        if not data or data[0].get("value") in (None, ""):
            return None
        return int(data[0]["value"])
