"""Indicator library and multi-factor scorer."""

from signal_core.scoring.bands import Band, Ladder, label_for
from signal_core.scoring.factors import FACTOR_REGISTRY, Factor, register
from signal_core.scoring.scorer import aggregate, default_weights, score, score_factors

__all__ = [
    "FACTOR_REGISTRY",
    "Band",
    "Factor",
    "Ladder",
    "aggregate",
    "default_weights",
    "label_for",
    "register",
    "score",
    "score_factors",
]
