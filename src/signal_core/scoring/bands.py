"""Threshold ladders — ordered (predicate, score) bands, first match wins."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

_OPS: dict[str, Callable[[Decimal, Decimal], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class Band:
    """``value <op> bound`` maps to ``score``."""

    op: str
    bound: Decimal
    score: int

    def matches(self, value: Decimal) -> bool:
        return _OPS[self.op](value, self.bound)


@dataclass(frozen=True)
class Ladder:
    """An ordered list of bands with a fallback score."""

    bands: tuple[Band, ...]
    default: int = 0

    @classmethod
    def of(cls, *bands: tuple[str, str | int, int], default: int = 0) -> Ladder:
        """Build from ``(op, bound, score)`` triples, e.g. ``("<", "-0.001", 30)``."""
        for op, _, _ in bands:
            if op not in _OPS:
                raise ValueError(f"Unknown band operator: {op!r}")
        return cls(
            bands=tuple(Band(op, Decimal(str(bound)), score) for op, bound, score in bands),
            default=default,
        )

    def score(self, value: Decimal | int | float) -> int:
        v = value if isinstance(value, Decimal) else Decimal(str(value))
        for band in self.bands:
            if band.matches(v):
                return band.score
        return self.default

    @property
    def bounds(self) -> tuple[int, int]:
        """(min, max) score this ladder can produce."""
        scores = [b.score for b in self.bands] + [self.default]
        return min(scores), max(scores)


@dataclass(frozen=True)
class Rule:
    """A compound predicate over several inputs, mapped to ``score``."""

    when: Callable[..., bool]
    score: int


@dataclass(frozen=True)
class RuleTable:
    """Ordered rules over more than one input; first match wins."""

    rules: tuple[Rule, ...]
    default: int = 0

    @classmethod
    def of(cls, *rules: tuple[Callable[..., bool], int], default: int = 0) -> RuleTable:
        return cls(rules=tuple(Rule(when, score) for when, score in rules), default=default)

    def score(self, *values: Decimal) -> int:
        for rule in self.rules:
            if rule.when(*values):
                return rule.score
        return self.default

    @property
    def bounds(self) -> tuple[int, int]:
        scores = [r.score for r in self.rules] + [self.default]
        return min(scores), max(scores)


# Live factor ladders

FUNDING = Ladder.of(
    ("<", "-0.001", 30),
    ("<", "-0.0003", 15),
    ("<", "0.0005", 0),
    ("<", "0.001", -15),
    default=-30,
)

LONG_SHORT = Ladder.of(
    (">", "3.5", -25),
    (">", "2.8", -10),
    ("<", "1.2", 25),
    ("<", "1.8", 10),
)

FEAR_GREED = Ladder.of(
    ("<=", 10, 30),
    ("<=", 25, 15),
    ("<=", 45, 5),
    ("<=", 55, 0),
    ("<=", 75, -5),
    ("<=", 90, -15),
    default=-30,
)

RSI = Ladder.of(
    ("<", 20, 30),
    ("<", 30, 15),
    ("<", 45, 5),
    (">", 80, -30),
    (">", 70, -15),
    (">", 55, -5),
)

BOLLINGER = Ladder.of(
    ("<", 0, 20),
    ("<", "0.2", 10),
    (">", 1, -20),
    (">", "0.8", -10),
)

LIQUIDATION = Ladder.of(
    (">", "0.8", 15),
    (">", "0.6", 5),
    ("<", "0.2", -15),
    ("<", "0.4", -5),
)

FUNDING_TREND_HOT = Decimal("0.0008")

# (recent_avg, older_avg) of settled funding rates
FUNDING_TREND = RuleTable.of(
    (lambda recent, older: recent < older and recent < 0, 20),
    (lambda recent, older: recent < older, 10),
    (lambda recent, older: recent > older and recent > FUNDING_TREND_HOT, -20),
    (lambda recent, older: recent > older, -10),
)

# (macd_line, histogram)
MACD_STATE = RuleTable.of(
    (lambda line, hist: hist > 0 and line > 0, 15),
    (lambda line, hist: hist > 0, 10),
    (lambda line, hist: hist < 0 and line < 0, -15),
    (lambda line, hist: hist < 0, -10),
)

# Backtest uses tighter outer bands on %B
BACKTEST_BOLLINGER = Ladder.of(
    ("<", 0, 20),
    ("<", "0.15", 10),
    (">", 1, -20),
    (">", "0.85", -10),
)

# Aggregate score → label / suggested action

LABELS: tuple[tuple[str, Decimal, str, str], ...] = (
    (">=", Decimal(15), "strong_bullish", "Scale into a long position in tranches."),
    (">=", Decimal(8), "bullish", "Small trial long; add on pullbacks."),
    (">=", Decimal(3), "mild_bullish", "Mostly wait; a small long on dips is acceptable."),
    (">", Decimal(-3), "neutral", "Stay flat and wait for a clearer signal."),
    (">", Decimal(-8), "mild_bearish", "Mostly wait; be cautious with shorts."),
    (">", Decimal(-15), "bearish", "Reduce exposure or open a light short."),
)
STRONG_BEARISH = ("strong_bearish", "Stay flat or hedge with a short.")


def label_for(value: Decimal) -> tuple[str, str]:
    """Map an aggregate score to ``(label, action)``."""
    for op, bound, label, action in LABELS:
        if _OPS[op](value, bound):
            return label, action
    return STRONG_BEARISH
