"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Sequence

import pytest

from signal_core.models import Candle

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def build_candles(
    closes: Sequence[Decimal | int | str],
    opens: Sequence[Decimal | int | str] | None = None,
    step: timedelta = timedelta(hours=4),
) -> list[Candle]:
    """Candles with the given closes; each open defaults to the previous close."""
    cs = [Decimal(str(c)) for c in closes]
    if opens is None:
        os_ = [cs[0]] + cs[:-1]
    else:
        os_ = [Decimal(str(o)) for o in opens]
    return [
        Candle(
            open_time=T0 + step * i,
            open=o,
            high=max(o, c),
            low=min(o, c),
            close=c,
            volume=Decimal(1000),
        )
        for i, (o, c) in enumerate(zip(os_, cs))
    ]


@pytest.fixture
def candle_factory() -> Callable[..., list[Candle]]:
    return build_candles


@pytest.fixture
def v_shape_candles() -> list[Candle]:
    """60 bars: flat at 200, a crash to 136 at bar 30, then a linear rebound.

    Closes hold at 200 for 15 bars, fall 4 points per bar (RSI pinned at 0)
    and then rise 1% of the trough per bar. The first backtest signal is
    deeply oversold, the MACD histogram turns positive a few bars into the
    rebound, and a long entered at bar 31's open (136) reaches exactly +6%
    at bar 37's open (144.16).
    """
    closes = [Decimal(200)] * 15
    closes += [Decimal(200 - 4 * (i - 14)) for i in range(15, 31)]
    closes += [Decimal(136) + Decimal("1.36") * (i - 30) for i in range(31, 60)]
    return build_candles(closes)
