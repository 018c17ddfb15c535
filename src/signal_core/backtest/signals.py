"""Historical signal generation — candle-only score at every bar.

Funding, positioning and sentiment history are not available per bar, so
the backtest replays a reduced factor set: RSI, MACD state plus crossover
bonus, Bollinger %B and a 20/50 moving-average trend filter.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from signal_core.models import Candle, SignalPoint
from signal_core.scoring import bands
from signal_core.scoring.indicators import (
    MACD_FIRST_HIST,
    macd_series,
    percent_b_series,
    rsi_series,
    sma,
)

WARMUP_BARS = 30
TREND_FAST = 20
TREND_SLOW = 50
CROSS_BONUS = 10
TREND_SCORE = 10

# Raw candle-only totals are doubled to roughly match the live scale. The
# factor is a heuristic, not a calibration.
SCALE = 2
SCORE_LIMIT = 100

_RSI_REASONS = {
    30: "rsi_extreme_oversold",
    15: "rsi_oversold",
    -30: "rsi_extreme_overbought",
    -15: "rsi_overbought",
}
_BOLLINGER_REASONS = {
    20: "below_lower_band",
    10: "near_lower_band",
    -20: "above_upper_band",
    -10: "near_upper_band",
}


def trend_score(closes: Sequence[Decimal], i: int) -> int:
    """+10 when close > SMA20 > SMA50, -10 when close < SMA20 < SMA50."""
    if i < TREND_SLOW:
        return 0
    window = closes[: i + 1]
    fast = sma(window, TREND_FAST)
    slow = sma(window, TREND_SLOW)
    close = closes[i]
    if close > fast > slow:
        return TREND_SCORE
    if close < fast < slow:
        return -TREND_SCORE
    return 0


def clamp_score(raw: int) -> int:
    return max(-SCORE_LIMIT, min(SCORE_LIMIT, raw * SCALE))


def generate_signals(candles: Sequence[Candle]) -> list[SignalPoint]:
    """One SignalPoint per candle index >= 30, oldest first."""
    closes = [c.close for c in candles]
    rsis = rsi_series(closes)
    macds = macd_series(closes)
    pcts = percent_b_series(closes)

    signals: list[SignalPoint] = []
    for i in range(WARMUP_BARS, len(candles)):
        raw = 0
        reasons: list[str] = []

        rsi_value = rsis[i]
        if rsi_value is not None:
            s = bands.RSI.score(rsi_value)
            raw += s
            if s in _RSI_REASONS:
                reasons.append(_RSI_REASONS[s])

        m = macds[i]
        raw += bands.MACD_STATE.score(m.macd, m.hist)

        if i - 1 >= MACD_FIRST_HIST:
            prev = macds[i - 1]
            if prev.hist <= 0 < m.hist:
                raw += CROSS_BONUS
                reasons.append("macd_golden_cross")
            if prev.hist >= 0 > m.hist:
                raw -= CROSS_BONUS
                reasons.append("macd_death_cross")

        pct = pcts[i]
        if pct is not None:
            s = bands.BACKTEST_BOLLINGER.score(pct)
            raw += s
            if s in _BOLLINGER_REASONS:
                reasons.append(_BOLLINGER_REASONS[s])

        t = trend_score(closes, i)
        raw += t
        if t > 0:
            reasons.append("uptrend")
        elif t < 0:
            reasons.append("downtrend")

        signals.append(
            SignalPoint(
                index=i,
                timestamp=candles[i].open_time,
                price=candles[i].close,
                score=clamp_score(raw),
                rsi=rsi_value,
                macd_hist=m.hist,
                percent_b=pct,
                reasons=reasons,
            )
        )
    return signals
