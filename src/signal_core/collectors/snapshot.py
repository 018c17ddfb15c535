"""Snapshot builder — fetch every scoring input concurrently.

Optional metrics that fail to load are logged and left absent; the scorer
then simply skips their factors.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable

from signal_core.errors import DataFetchError
from signal_core.exchange import FearGreedClient, OKXClient, swap_inst_id
from signal_core.logging import get_logger
from signal_core.models import Candle, MarketSnapshot

log = get_logger(__name__)


async def _optional(name: str, coro: Awaitable[Any], coin: str) -> Any:
    try:
        return await coro
    except Exception as exc:
        log.warning("fetch_failed", source=name, coin=coin, error=str(exc))
        return None


async def build_snapshot(
    okx: OKXClient,
    fear_greed: FearGreedClient,
    coin: str = "BTC",
    bar: str = "4H",
    candle_limit: int = 50,
) -> MarketSnapshot:
    """Fan out all requests for *coin* and bundle whatever came back."""
    inst_id = swap_inst_id(coin)
    funding, history, long_short, candles, fng, liquidations = await asyncio.gather(
        _optional("funding_rate", okx.get_funding_rate(inst_id), coin),
        _optional("funding_history", okx.get_funding_history(inst_id), coin),
        _optional("long_short_ratio", okx.get_long_short_ratio(coin), coin),
        _optional("candles", okx.get_candles(inst_id, bar, candle_limit), coin),
        _optional("fear_greed", fear_greed.get_index(), coin),
        _optional("liquidations", okx.get_liquidations(coin), coin),
    )

    snapshot = MarketSnapshot(
        asset=coin.upper(),
        ts=datetime.now(timezone.utc),
        funding_rate=funding,
        funding_history=history or [],
        long_short_ratio=long_short[0] if long_short else None,
        long_short_ratio_prev=long_short[1] if long_short else None,
        fear_greed=fng,
        liquidations=liquidations,
        candles=candles or [],
    )
    log.info(
        "snapshot_built",
        coin=snapshot.asset,
        candles=len(snapshot.candles),
        funding=snapshot.funding_rate is not None,
        long_short=snapshot.long_short_ratio is not None,
        fear_greed=snapshot.fear_greed,
        liquidations=snapshot.liquidations is not None,
    )
    return snapshot


async def fetch_candles(
    okx: OKXClient,
    coin: str = "BTC",
    bar: str = "4H",
    limit: int = 500,
) -> list[Candle]:
    """Candles are required for a backtest, so failures propagate."""
    try:
        candles = await okx.get_candles(swap_inst_id(coin), bar, limit)
    except DataFetchError:
        raise
    except Exception as exc:
        raise DataFetchError(f"could not fetch {coin} {bar} candles: {exc}") from exc
    if not candles:
        raise DataFetchError(f"no {coin} {bar} candles returned")
    log.info("candles_fetched", coin=coin.upper(), bar=bar, count=len(candles))
    return candles
