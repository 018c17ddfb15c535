"""Console and JSON rendering for scores and backtest results."""

from __future__ import annotations

import json
from decimal import Decimal

from signal_core.models import AggregateScore, BacktestResult, MarketSnapshot

BAR_WIDTH = 40
BAR_RANGE = 30


def score_bar(value: Decimal, width: int = BAR_WIDTH) -> str:
    """Horizontal gauge: bearish on the left, bullish on the right."""
    clamped = max(-BAR_RANGE, min(BAR_RANGE, float(value)))
    center = width // 2
    pos = round(center + clamped / BAR_RANGE * center)
    chars = []
    for i in range(width):
        if i == center:
            chars.append("|")
        elif i == pos:
            chars.append("*")
        elif center < i <= pos or pos <= i < center:
            chars.append("=")
        else:
            chars.append("-")
    return "".join(chars)


def render_score(snapshot: MarketSnapshot, result: AggregateScore, detail: bool = False) -> str:
    lines = [f"{snapshot.asset} composite signal", "=" * 40]
    if not result.has_data:
        lines.append("  no signal: none of the inputs could be scored")
        return "\n".join(lines)

    lines.append(f"  score: {result.value:.1f}  {result.label}")
    lines.append(f"  bear [{score_bar(result.value)}] bull")
    lines.append(f"  {result.action}")
    if detail:
        lines.append("")
        lines.append("  factors")
        lines.append("  " + "-" * 33)
        for f in result.factors:
            marker = "+" if f.value > 0 else "-" if f.value < 0 else " "
            lines.append(f"  {marker} [{f.key} x{result.weights[f.key]}] {f.value:+d}  {f.detail}")
    lines.append(f"  at {snapshot.ts.isoformat(timespec='seconds')}")
    return "\n".join(lines)


def score_json(snapshot: MarketSnapshot, result: AggregateScore) -> str:
    payload = {
        "coin": snapshot.asset,
        "score": float(result.value),
        "has_data": result.has_data,
        "label": result.label,
        "action": result.action,
        "scores": {f.key: f.value for f in result.factors},
        "details": {f.key: f.detail for f in result.factors},
        "weights": result.weights,
        "ts": snapshot.ts.isoformat(),
    }
    return json.dumps(payload, indent=2)


def _fmt_pct(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.2f}%"


def render_backtest(
    coin: str,
    bar: str,
    result: BacktestResult,
    show_trades: bool = False,
) -> str:
    s = result.stats
    p = result.params
    d = result.distribution
    lines = [
        f"{coin.upper()} signal backtest ({bar} candles)",
        "=" * 40,
        f"  signals: bullish {d.bullish} | neutral {d.neutral} | bearish {d.bearish}",
        "",
        "  results",
        "  " + "-" * 33,
        f"  trades: {s.total_trades} (won {s.wins} / lost {s.losses})",
        f"  win rate: {s.win_rate:.1f}%",
        f"  total P&L: {_fmt_pct(s.total_pnl)} (buy & hold {_fmt_pct(result.buy_and_hold)})",
        f"  avg P&L: {_fmt_pct(s.avg_pnl)} per trade",
        f"  avg win: {_fmt_pct(s.avg_win)} | avg loss: {_fmt_pct(s.avg_loss)}",
        f"  profit factor: {'n/a' if s.profit_factor is None else f'{s.profit_factor:.2f}'}",
        f"  max drawdown: {_fmt_pct(s.max_drawdown)}",
        "",
        "  parameters",
        "  " + "-" * 33,
        f"  entry threshold: +/-{p.entry_threshold} | reversal exit: {p.exit_threshold}",
        f"  stop loss: -{p.stop_loss_pct:.1%} | take profit: +{p.take_profit_pct:.1%}",
        f"  execution: open of bar +{p.lag}",
    ]
    if show_trades and result.trades:
        lines += ["", "  trades", "  " + "-" * 33]
        for t in result.trades:
            mark = "W" if t.is_win else "L"
            when = t.entry_time.strftime("%Y-%m-%d %H:%M") if t.entry_time else str(t.entry_index)
            lines.append(
                f"  {mark} {t.side.upper():<5} {t.entry_price:.2f} -> {t.exit_price:.2f} "
                f"{float(t.pnl_percent):>7.2f}% [{t.exit_reason}] {when} ({t.hold_bars} bars)"
            )
    lines += ["", f"  grade: {result.grade}"]
    return "\n".join(lines)


def backtest_json(coin: str, bar: str, result: BacktestResult) -> str:
    payload = result.model_dump(mode="json", exclude={"signals"})
    payload["coin"] = coin.upper()
    payload["bar"] = bar
    return json.dumps(payload, indent=2)
