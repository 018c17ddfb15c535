"""Technical indicators — pure functions on price series.

Each indicator has a ``*_series`` form returning one value per input index.
The value at index ``i`` is exactly what the scalar form returns for
``values[:i + 1]``, so the backtest can compute every series once instead of
replaying the scalar form at each bar.
"""

from __future__ import annotations

from decimal import Decimal
from typing import NamedTuple, Sequence

NEUTRAL_RSI = Decimal(50)

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
# First index whose histogram comes from a real signal line
MACD_FIRST_HIST = MACD_SLOW + MACD_SIGNAL - 2

_ZERO = Decimal(0)


class MACDValue(NamedTuple):
    macd: Decimal
    signal: Decimal
    hist: Decimal


_MACD_ZERO = MACDValue(_ZERO, _ZERO, _ZERO)


# ── RSI ────────────────────────────────────────────────────────


def rsi_series(closes: Sequence[Decimal], period: int = 14) -> list[Decimal | None]:
    """Relative Strength Index (Wilder's smoothing) at every index.

    Entries before index *period* are None (fewer than ``period + 1`` closes).
    """
    out: list[Decimal | None] = [None] * len(closes)
    if len(closes) < period + 1:
        return out

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]

    # Seed with simple average of first *period* changes
    avg_gain = sum((d for d in deltas[:period] if d > 0), _ZERO) / period
    avg_loss = sum((-d for d in deltas[:period] if d < 0), _ZERO) / period
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    # Wilder smoothing over remaining deltas
    for i in range(period, len(deltas)):
        d = deltas[i]
        avg_gain = (avg_gain * (period - 1) + (d if d > 0 else _ZERO)) / period
        avg_loss = (avg_loss * (period - 1) + (-d if d < 0 else _ZERO)) / period
        out[i + 1] = _rsi_from_averages(avg_gain, avg_loss)
    return out


def _rsi_from_averages(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == 0:
        return Decimal(100)
    rs = avg_gain / avg_loss
    return Decimal(100) - Decimal(100) / (1 + rs)


def rsi(closes: Sequence[Decimal], period: int = 14) -> Decimal:
    """Latest RSI in [0, 100]; 50 when there are fewer than ``period + 1`` closes."""
    if len(closes) < period + 1:
        return NEUTRAL_RSI
    value = rsi_series(closes, period)[-1]
    return NEUTRAL_RSI if value is None else value


# ── Moving averages ────────────────────────────────────────────


def ema_series(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """Exponential moving average seeded with the first value."""
    if not values:
        return []
    k = Decimal(2) / Decimal(period + 1)
    out = [Decimal(values[0])]
    for v in values[1:]:
        out.append(v * k + out[-1] * (1 - k))
    return out


def ema(values: Sequence[Decimal], period: int) -> Decimal | None:
    """Latest EMA value, or None for an empty input."""
    series = ema_series(values, period)
    return series[-1] if series else None


def sma(values: Sequence[Decimal], period: int) -> Decimal | None:
    """Simple mean of the trailing *period* values."""
    if period <= 0 or len(values) < period:
        return None
    return sum(values[-period:], _ZERO) / period


# ── MACD ───────────────────────────────────────────────────────


def macd_series(closes: Sequence[Decimal]) -> list[MACDValue]:
    """MACD(12, 26, 9) at every index.

    The MACD line is sampled once 26 closes exist; the signal line is an EMA9
    over those samples, available from the ninth sample on. Earlier indices
    report zeros (or the bare MACD line while the signal warms up).
    """
    if not closes:
        return []
    fast = ema_series(closes, MACD_FAST)
    slow = ema_series(closes, MACD_SLOW)
    k = Decimal(2) / Decimal(MACD_SIGNAL + 1)

    out: list[MACDValue] = []
    signal: Decimal | None = None
    for i in range(len(closes)):
        if i < MACD_SLOW - 1:
            out.append(_MACD_ZERO)
            continue
        line = fast[i] - slow[i]
        signal = line if signal is None else line * k + signal * (1 - k)
        samples = i - (MACD_SLOW - 1) + 1
        if samples < MACD_SIGNAL:
            out.append(MACDValue(line, _ZERO, _ZERO))
        else:
            out.append(MACDValue(line, signal, line - signal))
    return out


def macd(closes: Sequence[Decimal]) -> MACDValue:
    """Latest MACD line, signal and histogram."""
    series = macd_series(closes)
    return series[-1] if series else _MACD_ZERO


# ── Bollinger ──────────────────────────────────────────────────


def bollinger_bands(
    closes: Sequence[Decimal],
    period: int = 20,
    num_std: int | float = 2,
) -> tuple[Decimal, Decimal, Decimal] | None:
    """Bollinger Bands (SMA +/- num_std * population stdev).

    Returns ``(lower, middle, upper)`` or None if fewer than *period* data
    points are available.
    """
    if len(closes) < period:
        return None

    window = closes[-period:]
    middle = sum(window, _ZERO) / period
    variance = sum(((p - middle) ** 2 for p in window), _ZERO) / period
    offset = variance.sqrt() * Decimal(str(num_std))
    return (middle - offset, middle, middle + offset)


def percent_b(
    closes: Sequence[Decimal],
    period: int = 20,
    num_std: int | float = 2,
) -> Decimal | None:
    """Position of the last close within the bands.

    0 is the lower band, 1 the upper band; values outside [0, 1] mean the
    close is outside the bands. Collapsed (zero-width) bands give 0.5.
    """
    bands = bollinger_bands(closes, period, num_std)
    if bands is None:
        return None
    lower, _, upper = bands
    if upper == lower:
        return Decimal("0.5")
    return (closes[-1] - lower) / (upper - lower)


def percent_b_series(
    closes: Sequence[Decimal],
    period: int = 20,
    num_std: int | float = 2,
) -> list[Decimal | None]:
    """%B at every index; None until *period* closes are available."""
    return [percent_b(closes[: i + 1], period, num_std) for i in range(len(closes))]
