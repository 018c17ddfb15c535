"""Command-line entry points: ``score`` and ``backtest``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

import structlog

from signal_core.backtest import backtest
from signal_core.collectors import build_snapshot, fetch_candles
from signal_core.config import AppConfig, load_config
from signal_core.errors import SignalCoreError
from signal_core.exchange import FearGreedClient, OKXClient
from signal_core.logging import setup_logging
from signal_core.report import backtest_json, render_backtest, render_score, score_json
from signal_core.scoring import default_weights, score

log = structlog.get_logger("cli")


def _okx(config: AppConfig) -> OKXClient:
    return OKXClient(base_url=config.okx.base_url, timeout_s=config.okx.timeout_s)


def _weights(config: AppConfig) -> dict[str, int]:
    weights = default_weights()
    weights.update({k: v for k, v in config.scoring.weights.items() if k in weights})
    return weights


async def run_score(config: AppConfig, coin: str, bar: str, detail: bool, as_json: bool) -> int:
    okx = _okx(config)
    fng = FearGreedClient(base_url=config.fear_greed.base_url, timeout_s=config.fear_greed.timeout_s)
    try:
        snapshot = await build_snapshot(okx, fng, coin, bar, config.defaults.score_candles)
    finally:
        await okx.close()
        await fng.close()

    result = score(snapshot, weights=_weights(config))
    print(score_json(snapshot, result) if as_json else render_score(snapshot, result, detail))
    # Distinct exit code so scripts can tell "no signal" from a neutral 0
    return 0 if result.has_data else 2


async def run_backtest(
    config: AppConfig,
    coin: str,
    bar: str,
    limit: int,
    show_trades: bool,
    as_json: bool,
) -> int:
    okx = _okx(config)
    try:
        candles = await fetch_candles(okx, coin, bar, limit)
    finally:
        await okx.close()

    result = backtest(candles, config.backtest)
    print(backtest_json(coin, bar, result) if as_json else render_backtest(coin, bar, result, show_trades))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="signal_core", description="Crypto composite signal and backtest")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    p_score = sub.add_parser("score", help="Score the current market")
    p_score.add_argument("coin", nargs="?", default=None, help="Coin symbol, e.g. BTC")
    p_score.add_argument("-d", "--detail", action="store_true", help="Show per-factor scores")
    p_score.add_argument("-j", "--json", action="store_true", help="Emit JSON")

    p_bt = sub.add_parser("backtest", help="Backtest the candle-only signal")
    p_bt.add_argument("coin", nargs="?", default=None, help="Coin symbol, e.g. BTC")
    p_bt.add_argument("bar", nargs="?", default=None, help="Candle interval, e.g. 1H, 4H, 1D")
    p_bt.add_argument("-t", "--trades", action="store_true", help="List every trade")
    p_bt.add_argument("-j", "--json", action="store_true", help="Emit JSON")
    p_bt.add_argument("--limit", type=int, default=None, help="Number of candles to fetch")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(level=config.logging.level, log_format=config.logging.format)

    coin = (args.coin or config.defaults.coin).upper()
    try:
        if args.command == "score":
            return asyncio.run(run_score(config, coin, config.defaults.bar, args.detail, args.json))
        bar = args.bar or config.defaults.bar
        limit = args.limit or config.defaults.backtest_candles
        return asyncio.run(run_backtest(config, coin, bar, limit, args.trades, args.json))
    except SignalCoreError as exc:
        log.error("command_failed", command=args.command, coin=coin, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
