"""Market-data collection for the scorer and backtester."""

from signal_core.collectors.snapshot import build_snapshot, fetch_candles

__all__ = ["build_snapshot", "fetch_candles"]
