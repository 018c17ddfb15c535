"""Live scoring factors — decorated functions are auto-registered.

Each factor reads one metric from the snapshot (or the candle closes) and
returns a FactorScore, or None when its input is unavailable.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from statistics import mean
from typing import Callable, Sequence

from signal_core.models import FactorScore, MarketSnapshot
from signal_core.scoring import bands
from signal_core.scoring.indicators import macd, percent_b, rsi

FactorFn = Callable[[MarketSnapshot, Sequence[Decimal]], "FactorScore | None"]

MIN_CANDLES_RSI = 15
MIN_CANDLES_MACD = 30
MIN_CANDLES_BOLLINGER = 20

LONG_SHORT_SHIFT = Decimal("0.3")


@dataclass(frozen=True)
class Factor:
    key: str
    weight: int
    fn: FactorFn


FACTOR_REGISTRY: dict[str, Factor] = {}


def register(key: str, weight: int) -> Callable[[FactorFn], FactorFn]:
    """Decorator that adds a factor function to the global registry."""
    if weight <= 0:
        raise ValueError(f"Factor {key!r} must have a positive weight")

    def decorator(fn: FactorFn) -> FactorFn:
        if key in FACTOR_REGISTRY:
            raise ValueError(f"Duplicate factor key: {key!r}")
        FACTOR_REGISTRY[key] = Factor(key=key, weight=weight, fn=fn)
        return fn

    return decorator


def _lean(score: int, bullish: str = "bullish", bearish: str = "bearish") -> str:
    if score > 0:
        return bullish
    if score < 0:
        return bearish
    return "neutral"


# ── Derivatives positioning ────────────────────────────────────


@register("funding", weight=15)
def funding(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    """Extreme positive funding means crowded longs (bearish), and vice versa."""
    if snapshot.funding_rate is None:
        return None
    rate = snapshot.funding_rate
    score = bands.FUNDING.score(rate)
    return FactorScore(
        key="funding",
        value=score,
        detail=f"funding {rate * 100:.4f}% -> {_lean(score)}",
    )


@register("funding_trend", weight=10)
def funding_trend(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    """Compare the mean of the 3 newest funding samples to the older ones."""
    history = snapshot.funding_history
    if len(history) < 3:
        return None
    recent_avg = Decimal(mean(history[:3]))
    older = history[3:]
    older_avg = Decimal(mean(older)) if older else recent_avg

    score = bands.FUNDING_TREND.score(recent_avg, older_avg)
    arrow = "up" if recent_avg > older_avg else "down" if recent_avg < older_avg else "flat"
    return FactorScore(
        key="funding_trend",
        value=score,
        detail=f"funding trend {arrow} -> {_lean(score)}",
    )


@register("long_short", weight=15)
def long_short(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    """Contrarian on the account long/short ratio, nudged by its 8h change."""
    ratio = snapshot.long_short_ratio
    if not ratio:
        return None
    score = bands.LONG_SHORT.score(ratio)
    detail = f"long/short {ratio:.2f}:1"

    prev = snapshot.long_short_ratio_prev
    if prev:
        change = ratio - prev
        if abs(change) > LONG_SHORT_SHIFT:
            # Crowd piling into longs is bearish
            score += -5 if change > 0 else 5
            detail += f" (change {change:+.2f})"

    return FactorScore(
        key="long_short",
        value=score,
        detail=f"{detail} -> {_lean(score, 'bullish (contrarian)', 'bearish (contrarian)')}",
    )


@register("fear_greed", weight=15)
def fear_greed(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    if snapshot.fear_greed is None:
        return None
    index = snapshot.fear_greed
    score = bands.FEAR_GREED.score(index)
    return FactorScore(
        key="fear_greed",
        value=score,
        detail=f"fear/greed {index} -> {_lean(score, 'bullish (contrarian)', 'bearish (contrarian)')}",
    )


# ── Technicals ─────────────────────────────────────────────────


@register("rsi", weight=15)
def rsi_factor(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    if len(closes) < MIN_CANDLES_RSI:
        return None
    value = rsi(closes)
    score = bands.RSI.score(value)
    return FactorScore(
        key="rsi",
        value=score,
        detail=f"RSI(14) {value:.1f} -> {_lean(score, 'oversold', 'overbought')}",
    )


@register("macd", weight=10)
def macd_factor(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    if len(closes) < MIN_CANDLES_MACD:
        return None
    value = macd(closes)
    score = bands.MACD_STATE.score(value.macd, value.hist)
    return FactorScore(
        key="macd",
        value=score,
        detail=f"MACD hist {value.hist:+.2f} -> {_lean(score)}",
    )


@register("bollinger", weight=10)
def bollinger(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    if len(closes) < MIN_CANDLES_BOLLINGER:
        return None
    pct = percent_b(closes)
    if pct is None:
        return None
    score = bands.BOLLINGER.score(pct)
    return FactorScore(
        key="bollinger",
        value=score,
        detail=f"Bollinger %B {pct * 100:.1f}% -> {_lean(score, 'near lower band', 'near upper band')}",
    )


# ── Liquidations ───────────────────────────────────────────────


@register("liquidation", weight=10)
def liquidation(snapshot: MarketSnapshot, closes: Sequence[Decimal]) -> FactorScore | None:
    """Heavy long liquidations suggest a flush-out bottom, and vice versa."""
    liq = snapshot.liquidations
    if liq is None or liq.total <= 0:
        return None
    long_share = liq.long / liq.total
    score = bands.LIQUIDATION.score(long_share)
    return FactorScore(
        key="liquidation",
        value=score,
        detail=f"liquidations long {liq.long:.1f} / short {liq.short:.1f} -> {_lean(score)}",
    )
