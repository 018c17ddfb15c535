"""Pure metric computation functions over a trade ledger.

P&L inputs are per-trade percentages; equity is their running sum starting
at 0, so drawdown is measured in percentage points.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

import numpy as np

from signal_core.models import BacktestStats


def win_rate(wins: int, total: int) -> float:
    """Win rate as a percentage 0-100."""
    if total <= 0:
        return 0.0
    return wins / total * 100


def profit_factor(wins: int, avg_win: float, losses: int, avg_loss: float) -> float | None:
    """|wins * avg_win / (losses * avg_loss)|, or None without losing trades."""
    if losses <= 0 or avg_loss == 0:
        return None
    return abs(wins * avg_win / (losses * avg_loss))


def max_drawdown(pnls: Sequence[float]) -> float:
    """Largest peak-to-current drop of cumulative P&L, in points."""
    if not pnls:
        return 0.0
    equity = np.concatenate(([0.0], np.cumsum(np.asarray(pnls, dtype=np.float64))))
    peak = np.maximum.accumulate(equity)
    return float(np.max(peak - equity))


def compute_stats(pnls: Sequence[float]) -> BacktestStats:
    """Aggregate per-trade P&L percentages. A trade wins when pnl > 0."""
    total = len(pnls)
    if total == 0:
        return BacktestStats()

    arr = np.asarray(pnls, dtype=np.float64)
    win_arr = arr[arr > 0]
    loss_arr = arr[arr <= 0]
    wins, losses = len(win_arr), len(loss_arr)
    avg_win = float(np.mean(win_arr)) if wins else 0.0
    avg_loss = float(np.mean(loss_arr)) if losses else 0.0

    return BacktestStats(
        total_trades=total,
        wins=wins,
        losses=losses,
        win_rate=win_rate(wins, total),
        total_pnl=float(np.sum(arr)),
        avg_pnl=float(np.mean(arr)),
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=profit_factor(wins, avg_win, losses, avg_loss),
        max_drawdown=max_drawdown(pnls),
    )


def buy_and_hold_pct(start: Decimal, end: Decimal) -> float | None:
    if start == 0:
        return None
    return float((end - start) / start * 100)


def grade(stats: BacktestStats, buy_and_hold: float | None) -> str:
    """Coarse verdict on whether the signal shows an edge."""
    benchmark = buy_and_hold if buy_and_hold is not None else 0.0
    if stats.win_rate >= 55 and stats.total_pnl > benchmark:
        return "excellent"
    if stats.win_rate >= 50 and stats.total_pnl > 0:
        return "pass"
    if stats.win_rate >= 45:
        return "average"
    return "fail"
