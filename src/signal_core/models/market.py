"""Market data models — candles, liquidations, metric snapshots."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from signal_core.errors import MalformedInputError


class Candle(BaseModel):
    """One candlestick bar."""

    model_config = ConfigDict(frozen=True)

    open_time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


class LiquidationVolume(BaseModel):
    """Recently liquidated size, split by the side that was liquidated."""

    long: Decimal = Decimal(0)
    short: Decimal = Decimal(0)

    @property
    def total(self) -> Decimal:
        return self.long + self.short


class MarketSnapshot(BaseModel):
    """Pre-fetched bundle of market data for one asset, passed to the scorer.

    Every metric is optional. A missing metric only removes its factor from
    the aggregate. ``funding_history`` is newest-first, the order the
    exchange delivers it in.
    """

    asset: str
    ts: datetime
    funding_rate: Decimal | None = None
    funding_history: list[Decimal] = []
    long_short_ratio: Decimal | None = None
    long_short_ratio_prev: Decimal | None = None
    fear_greed: int | None = None
    liquidations: LiquidationVolume | None = None
    candles: list[Candle] = []


def validate_candles(candles: Sequence[Candle]) -> None:
    """Raise MalformedInputError unless candles are finite and strictly ascending."""
    prev: Candle | None = None
    for i, candle in enumerate(candles):
        for field in ("open", "high", "low", "close", "volume"):
            value = getattr(candle, field)
            if not Decimal(value).is_finite():
                raise MalformedInputError(f"candle {i} has non-finite {field}: {value}")
        if prev is not None and candle.open_time <= prev.open_time:
            raise MalformedInputError(
                f"candle {i} at {candle.open_time.isoformat()} is not after "
                f"candle {i - 1} at {prev.open_time.isoformat()}"
            )
        prev = candle
