"""Historical signal generation and trade simulation."""

from signal_core.backtest.signals import generate_signals
from signal_core.backtest.simulator import SimulationState, backtest, simulate, step
from signal_core.backtest.stats import compute_stats

__all__ = [
    "SimulationState",
    "backtest",
    "compute_stats",
    "generate_signals",
    "simulate",
    "step",
]
