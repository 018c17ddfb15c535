"""Exception hierarchy for scoring, backtesting and data retrieval."""

from __future__ import annotations


class SignalCoreError(Exception):
    """Base class for all signal_core errors."""


class MalformedInputError(SignalCoreError, ValueError):
    """Candles out of order or carrying non-finite values."""


class InsufficientDataError(SignalCoreError):
    """Too few candles for a meaningful backtest."""

    def __init__(self, available: int, required: int) -> None:
        self.available = available
        self.required = required
        super().__init__(
            f"need at least {required} candles for a backtest, got {available}"
        )


class DataFetchError(SignalCoreError):
    """A required input could not be retrieved from the market-data source."""
