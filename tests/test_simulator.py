"""Tests for the backtest state machine and the backtest entry point."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from signal_core.backtest import SimulationState, backtest, simulate, step
from signal_core.backtest.simulator import finish, open_position
from signal_core.errors import InsufficientDataError, MalformedInputError
from signal_core.models import BacktestParams, SignalPoint

from conftest import T0, build_candles

PARAMS = BacktestParams()


def _sp(index: int, score: int) -> SignalPoint:
    return SignalPoint(index=index, timestamp=T0, price=Decimal(100), score=score)


def _candles(opens: list, last_close=None):
    """Candles with explicit opens; each close is the next bar's open."""
    closes = list(opens[1:]) + [last_close if last_close is not None else opens[-1]]
    return build_candles(closes, opens=opens)


def _run(opens: list, scores: dict[int, int], last_close=None, params=PARAMS):
    candles = _candles(opens, last_close)
    signals = [_sp(i, s) for i, s in sorted(scores.items())]
    return simulate(signals, candles, params)


class TestStep:
    def test_entry_executes_at_next_open(self):
        candles = _candles([100, 101, 102, 103])
        state = step(SimulationState(), _sp(0, 30), candles, PARAMS)
        assert state.position is not None
        assert state.position.side == "long"
        assert state.position.entry_index == 1
        assert state.position.entry_price == Decimal(101)

    def test_short_entry(self):
        candles = _candles([100, 101, 102, 103])
        state = step(SimulationState(), _sp(0, -20), candles, PARAMS)
        assert state.position.side == "short"

    def test_below_threshold_stays_flat(self):
        candles = _candles([100, 101, 102, 103])
        state = SimulationState()
        for i, s in enumerate([19, -19, 0]):
            state = step(state, _sp(i, s), candles, PARAMS)
        assert state.is_flat
        assert state.trades == ()

    def test_scores_inside_entry_band_never_trade(self):
        opens = [100 + (i % 7) for i in range(60)]
        scores = {i: (i * 13) % 39 - 19 for i in range(59)}
        assert _run(opens, scores) == []

    def test_lag(self):
        candles = _candles([100, 101, 102, 103])
        state = step(SimulationState(), _sp(0, 30), candles, BacktestParams(lag=2))
        assert state.position.entry_index == 2
        assert state.position.entry_price == Decimal(102)

    def test_execution_past_end_is_ignored(self):
        candles = _candles([100, 101, 102])
        state = SimulationState()
        assert step(state, _sp(2, 50), candles, PARAMS) is state

    def test_no_entry_on_final_bar(self):
        candles = _candles([100, 101, 102])
        state = step(SimulationState(), _sp(1, 50), candles, PARAMS)
        assert state.is_flat

    def test_state_is_not_mutated(self):
        candles = _candles([100, 101, 102, 103])
        before = SimulationState()
        after = step(before, _sp(0, 30), candles, PARAMS)
        assert before.is_flat
        assert not after.is_flat

    def test_open_while_open_rejected(self):
        candles = _candles([100, 101, 102])
        state = open_position(SimulationState(), "long", candles[1], 1)
        with pytest.raises(RuntimeError):
            open_position(state, "short", candles[2], 2)

    def test_finish_when_flat_is_noop(self):
        state = SimulationState()
        assert finish(state, _candles([100, 101])) is state


class TestExits:
    def test_stop_loss(self):
        trades = _run([100, 100, 96, 96, 96], {0: 30, 1: 30})
        assert len(trades) == 1
        t = trades[0]
        assert t.exit_reason == "stop_loss"
        assert t.exit_index == 2
        assert t.exit_price == Decimal(96)
        assert t.pnl_percent == Decimal(-4)

    def test_stop_loss_boundary_is_inclusive(self):
        trades = _run([100, 100, 97, 97, 97], {0: 30, 1: 30})
        assert trades[0].exit_reason == "stop_loss"
        assert trades[0].pnl_percent == Decimal(-3)

    def test_take_profit(self):
        trades = _run([100, 100, 106, 106, 106], {0: 30, 1: 30})
        assert trades[0].exit_reason == "take_profit"
        assert trades[0].pnl_percent == Decimal(6)

    def test_no_reentry_after_stop(self):
        # The signal that coincides with the stop is strongly long, yet the
        # bar only closes the position
        trades = _run([100, 100, 96, 96, 96], {0: 30, 1: 30})
        assert len(trades) == 1

    def test_stop_takes_priority_over_reversal(self):
        trades = _run([100, 100, 96, 96, 96], {0: 30, 1: -80})
        assert len(trades) == 1
        assert trades[0].exit_reason == "stop_loss"

    def test_short_stop_and_take_profit(self):
        stopped = _run([100, 100, 104, 104], {0: -30, 1: -30})
        assert stopped[0].side == "short"
        assert stopped[0].exit_reason == "stop_loss"
        assert stopped[0].pnl_percent == Decimal(-4)

        profited = _run([100, 100, 94, 94], {0: -30, 1: -30})
        assert profited[0].exit_reason == "take_profit"
        assert profited[0].pnl_percent == Decimal(6)

    def test_signal_reversal(self):
        trades = _run([100, 100, 101, 101, 101], {0: 30, 1: -10})
        assert len(trades) == 1
        t = trades[0]
        assert t.exit_reason == "signal_reversal"
        assert t.exit_index == 2
        assert t.pnl_percent == Decimal(1)

    def test_reversal_needs_to_clear_exit_threshold(self):
        trades = _run([100, 100, 101, 101], {0: 30, 1: -5}, last_close=102)
        assert [t.exit_reason for t in trades] == ["end_of_data"]

    def test_reversal_then_reentry_same_bar(self):
        trades = _run([100, 100, 101, 99, 99], {0: 30, 1: -30}, last_close=98)
        assert [(t.side, t.exit_reason) for t in trades] == [
            ("long", "signal_reversal"),
            ("short", "end_of_data"),
        ]
        assert trades[1].entry_index == 2
        assert trades[1].entry_price == Decimal(101)

    def test_short_reversal(self):
        trades = _run([100, 100, 99, 99], {0: -30, 1: 10}, last_close=99)
        assert trades[0].side == "short"
        assert trades[0].exit_reason == "signal_reversal"
        assert trades[0].pnl_percent == Decimal(1)

    def test_end_of_data_uses_last_close(self):
        trades = _run([100, 100, 100, 100], {0: -30}, last_close=97)
        assert len(trades) == 1
        t = trades[0]
        assert t.exit_reason == "end_of_data"
        assert t.exit_index == 3
        assert t.exit_price == Decimal(97)
        assert t.pnl_percent == Decimal(3)

    def test_trade_timestamps(self):
        candles = _candles([100, 100, 100, 100], last_close=97)
        trades = simulate([_sp(0, 30)], candles, PARAMS)
        assert trades[0].entry_time == candles[1].open_time
        assert trades[0].exit_time == candles[3].open_time
        assert trades[0].hold_bars == 2


class TestBacktest:
    def test_too_few_candles(self, candle_factory):
        with pytest.raises(InsufficientDataError) as exc:
            backtest(candle_factory([100 + i for i in range(49)]))
        assert exc.value.available == 49
        assert exc.value.required == 50

    def test_warmup_and_lag_raise_the_floor(self, candle_factory):
        params = BacktestParams(min_candles=10)
        with pytest.raises(InsufficientDataError) as exc:
            backtest(candle_factory([100 + i for i in range(31)]), params)
        assert exc.value.required == 32

    def test_unordered_candles(self, v_shape_candles):
        candles = list(v_shape_candles)
        candles[10], candles[11] = candles[11], candles[10]
        with pytest.raises(MalformedInputError):
            backtest(candles)

    @pytest.mark.parametrize("field", ["entry_threshold", "exit_threshold"])
    def test_negative_thresholds_rejected(self, field):
        with pytest.raises(ValidationError):
            BacktestParams(**{field: -1})

    def test_unreachable_threshold_never_trades(self, v_shape_candles):
        result = backtest(v_shape_candles, BacktestParams(entry_threshold=101))
        assert result.trades == []
        assert result.stats.total_trades == 0
        assert result.stats.win_rate == 0.0
        assert result.stats.profit_factor is None
        assert result.distribution.bullish == 0
        assert result.distribution.bearish == 0
        assert result.distribution.neutral == len(result.signals)

    def test_v_shape(self, v_shape_candles):
        result = backtest(v_shape_candles)
        assert len(result.signals) == len(v_shape_candles) - 30
        first = result.trades[0]
        assert first.side == "long"
        assert first.entry_index == 31
        assert first.entry_price == v_shape_candles[31].open == Decimal(136)
        assert first.exit_reason == "take_profit"
        assert first.exit_index == 37
        assert first.exit_price == Decimal("144.16")
        assert first.pnl_percent == Decimal(6)
        assert result.buy_and_hold == pytest.approx(
            float((v_shape_candles[-1].close - v_shape_candles[30].close) / v_shape_candles[30].close * 100)
        )

    def test_ledger_invariants(self, v_shape_candles):
        result = backtest(v_shape_candles)
        last = len(v_shape_candles) - 1
        prev_exit = -1
        for t in result.trades:
            assert t.entry_index > 30
            assert t.entry_index >= prev_exit
            assert t.exit_index > t.entry_index
            assert t.exit_index <= last
            if t.exit_reason == "end_of_data":
                assert t.exit_index == last
                assert t.exit_price == v_shape_candles[last].close
            else:
                assert t.exit_price == v_shape_candles[t.exit_index].open
            prev_exit = t.exit_index
        assert sum(1 for t in result.trades if t.exit_reason == "end_of_data") <= 1

    def test_stats_match_ledger(self, v_shape_candles):
        result = backtest(v_shape_candles)
        stats = result.stats
        assert stats.total_trades == len(result.trades)
        assert stats.wins == sum(1 for t in result.trades if t.is_win)
        assert stats.total_pnl == pytest.approx(sum(float(t.pnl_percent) for t in result.trades))
        dist = result.distribution
        assert dist.bullish + dist.neutral + dist.bearish == len(result.signals)
        assert result.grade in {"excellent", "pass", "average", "fail"}

    def test_deterministic(self, v_shape_candles):
        assert backtest(v_shape_candles) == backtest(v_shape_candles)
