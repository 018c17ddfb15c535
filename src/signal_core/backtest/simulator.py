"""Backtest simulator — single-position state machine over a signal series.

State is FLAT (no position), LONG or SHORT. Each signal at bar ``i`` acts on
the open of bar ``i + lag``; stop-loss and take-profit are checked before
signal reversals, and a still-open position is closed at the final close.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Sequence

import structlog

from signal_core.backtest.signals import WARMUP_BARS, generate_signals
from signal_core.backtest.stats import buy_and_hold_pct, compute_stats, grade
from signal_core.errors import InsufficientDataError
from signal_core.models import (
    BacktestParams,
    BacktestResult,
    Candle,
    Position,
    SignalDistribution,
    SignalPoint,
    Trade,
    validate_candles,
)
from signal_core.models.backtest import ExitReason, Side

log = structlog.get_logger("backtest")


@dataclass(frozen=True)
class SimulationState:
    """Everything the loop carries from one bar to the next."""

    position: Position | None = None
    trades: tuple[Trade, ...] = field(default_factory=tuple)

    @property
    def is_flat(self) -> bool:
        return self.position is None


# ── Transitions ────────────────────────────────────────────────


def unrealised_pct(position: Position, price: Decimal) -> Decimal:
    """P&L of *position* at *price* as a fraction of the entry price."""
    if position.side == "long":
        return (price - position.entry_price) / position.entry_price
    return (position.entry_price - price) / position.entry_price


def check_stops(position: Position, price: Decimal, params: BacktestParams) -> ExitReason | None:
    pnl = unrealised_pct(position, price)
    if pnl <= -Decimal(str(params.stop_loss_pct)):
        return "stop_loss"
    if pnl >= Decimal(str(params.take_profit_pct)):
        return "take_profit"
    return None


def check_reversal(position: Position, score: int, params: BacktestParams) -> ExitReason | None:
    if position.side == "long" and score < -params.exit_threshold:
        return "signal_reversal"
    if position.side == "short" and score > params.exit_threshold:
        return "signal_reversal"
    return None


def check_entry(score: int, params: BacktestParams) -> Side | None:
    if score >= params.entry_threshold:
        return "long"
    if score <= -params.entry_threshold:
        return "short"
    return None


def open_position(state: SimulationState, side: Side, candle: Candle, index: int) -> SimulationState:
    if state.position is not None:
        raise RuntimeError("cannot open a position while one is already open")
    return replace(state, position=Position(side=side, entry_price=candle.open, entry_index=index))


def close_position(
    state: SimulationState,
    price: Decimal,
    index: int,
    reason: ExitReason,
    candles: Sequence[Candle],
) -> SimulationState:
    pos = state.position
    if pos is None:
        raise RuntimeError("no open position to close")
    trade = Trade(
        side=pos.side,
        entry_price=pos.entry_price,
        exit_price=price,
        exit_reason=reason,
        entry_index=pos.entry_index,
        exit_index=index,
        pnl_percent=unrealised_pct(pos, price) * 100,
        entry_time=candles[pos.entry_index].open_time,
        exit_time=candles[index].open_time,
    )
    return SimulationState(position=None, trades=state.trades + (trade,))


def step(
    state: SimulationState,
    signal: SignalPoint,
    candles: Sequence[Candle],
    params: BacktestParams,
) -> SimulationState:
    """Apply one signal, executing at the open of the bar *lag* bars later."""
    exec_index = signal.index + params.lag
    if exec_index >= len(candles):
        return state
    bar = candles[exec_index]

    if state.position is not None:
        reason = check_stops(state.position, bar.open, params)
        if reason is not None:
            # A stopped-out bar never re-enters
            return close_position(state, bar.open, exec_index, reason, candles)
        reason = check_reversal(state.position, signal.score, params)
        if reason is not None:
            state = close_position(state, bar.open, exec_index, reason, candles)

    if state.is_flat and exec_index < len(candles) - 1:
        side = check_entry(signal.score, params)
        if side is not None:
            state = open_position(state, side, bar, exec_index)
    return state


def finish(state: SimulationState, candles: Sequence[Candle]) -> SimulationState:
    """Force-close a still-open position at the last close."""
    if state.position is None:
        return state
    last = len(candles) - 1
    return close_position(state, candles[last].close, last, "end_of_data", candles)


def simulate(
    signals: Sequence[SignalPoint],
    candles: Sequence[Candle],
    params: BacktestParams | None = None,
) -> list[Trade]:
    """Run the state machine over *signals* and return the trade ledger."""
    params = params or BacktestParams()
    state = SimulationState()
    for signal in signals:
        state = step(state, signal, candles, params)
    state = finish(state, candles)
    return list(state.trades)


# ── Entry point ────────────────────────────────────────────────


def distribution(signals: Sequence[SignalPoint], threshold: int) -> SignalDistribution:
    dist = SignalDistribution()
    for s in signals:
        if s.score >= threshold:
            dist.bullish += 1
        elif s.score <= -threshold:
            dist.bearish += 1
        else:
            dist.neutral += 1
    return dist


def backtest(
    candles: Sequence[Candle],
    params: BacktestParams | None = None,
) -> BacktestResult:
    """Generate historical signals for *candles* and simulate trading them.

    Raises InsufficientDataError below ``params.min_candles`` bars and
    MalformedInputError for unordered or non-finite candles.
    """
    params = params or BacktestParams()
    validate_candles(candles)
    required = max(params.min_candles, WARMUP_BARS + params.lag + 1)
    if len(candles) < required:
        raise InsufficientDataError(len(candles), required)

    signals = generate_signals(candles)
    trades = simulate(signals, candles, params)
    stats = compute_stats([float(t.pnl_percent) for t in trades])
    bnh = buy_and_hold_pct(candles[WARMUP_BARS].close, candles[-1].close)

    log.info(
        "backtest_completed",
        candles=len(candles),
        signals=len(signals),
        trades=stats.total_trades,
        win_rate=round(stats.win_rate, 1),
        total_pnl=round(stats.total_pnl, 2),
        max_drawdown=round(stats.max_drawdown, 2),
    )
    return BacktestResult(
        trades=trades,
        stats=stats,
        params=params,
        signals=signals,
        distribution=distribution(signals, params.entry_threshold),
        buy_and_hold=bnh,
        grade=grade(stats, bnh),
    )
