"""Pydantic domain models."""

from signal_core.models.backtest import (
    BacktestParams,
    BacktestResult,
    BacktestStats,
    Position,
    SignalDistribution,
    SignalPoint,
    Trade,
)
from signal_core.models.market import (
    Candle,
    LiquidationVolume,
    MarketSnapshot,
    validate_candles,
)
from signal_core.models.score import AggregateScore, FactorScore

__all__ = [
    "AggregateScore",
    "BacktestParams",
    "BacktestResult",
    "BacktestStats",
    "Candle",
    "FactorScore",
    "LiquidationVolume",
    "MarketSnapshot",
    "Position",
    "SignalDistribution",
    "SignalPoint",
    "Trade",
    "validate_candles",
]
