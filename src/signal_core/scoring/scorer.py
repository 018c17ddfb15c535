"""Multi-factor scorer — runs every registered factor and aggregates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

import structlog

from signal_core.models import AggregateScore, Candle, FactorScore, MarketSnapshot, validate_candles
from signal_core.scoring.bands import label_for
from signal_core.scoring.factors import FACTOR_REGISTRY

log = structlog.get_logger("scorer")

_CENT = Decimal("0.01")


def default_weights() -> dict[str, int]:
    return {key: factor.weight for key, factor in FACTOR_REGISTRY.items()}


def score_factors(
    snapshot: MarketSnapshot,
    candles: Sequence[Candle] | None = None,
) -> list[FactorScore]:
    """Evaluate every registered factor, keeping those that had data."""
    bars = snapshot.candles if candles is None else candles
    closes = [c.close for c in bars]
    results: list[FactorScore] = []
    for factor in FACTOR_REGISTRY.values():
        result = factor.fn(snapshot, closes)
        if result is not None:
            results.append(result)
    return results


def aggregate(
    factors: Sequence[FactorScore],
    weights: Mapping[str, int] | None = None,
) -> tuple[Decimal, dict[str, int]]:
    """Weighted mean over the present factors, rounded half-up to 2 dp.

    Weights renormalize over what is present, so missing data does not pull
    the score toward zero. Returns ``(value, weights_used)``; value is 0 when
    nothing is present. Raises ValueError on a negative weight.
    """
    table = default_weights() if weights is None else dict(weights)
    for key, weight in table.items():
        if weight < 0:
            raise ValueError(f"Factor {key!r} has a negative weight: {weight}")
    used: dict[str, int] = {}
    total = Decimal(0)
    for f in factors:
        weight = table.get(f.key)
        if not weight:
            continue
        used[f.key] = weight
        total += Decimal(f.value) * weight

    total_weight = sum(used.values())
    if total_weight == 0:
        return Decimal("0.00"), used

    value = (total / total_weight).quantize(_CENT, rounding=ROUND_HALF_UP)
    value = max(Decimal(-100), min(Decimal(100), value))
    return value, used


def score(
    snapshot: MarketSnapshot,
    candles: Sequence[Candle] | None = None,
    weights: Mapping[str, int] | None = None,
) -> AggregateScore:
    """Score a market snapshot (and candle window) into a value in [-100, 100].

    *candles* overrides ``snapshot.candles``. An aggregate without any
    contributing factor has ``has_data == False`` and label ``no_data``.
    """
    bars = snapshot.candles if candles is None else candles
    validate_candles(bars)

    factors = score_factors(snapshot, bars)
    value, used = aggregate(factors, weights)
    # Only factors that carried a weight contribute
    factors = [f for f in factors if f.key in used]

    if not factors:
        log.warning("no_factors_available", asset=snapshot.asset)
        return AggregateScore(value=value, weights=used)

    label, action = label_for(value)
    log.info(
        "score_computed",
        asset=snapshot.asset,
        score=float(value),
        label=label,
        factors={f.key: f.value for f in factors},
    )
    return AggregateScore(
        value=value,
        factors=factors,
        weights=used,
        label=label,
        action=action,
    )
