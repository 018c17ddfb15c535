"""Composite crypto trading signal and candle-only backtester."""

from signal_core.backtest import backtest
from signal_core.scoring import score

__all__ = ["backtest", "score"]
