"""Backtest models — signals, positions, trades and results."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Side = Literal["long", "short"]
ExitReason = Literal["stop_loss", "take_profit", "signal_reversal", "end_of_data"]


class SignalPoint(BaseModel):
    """Candle-only score computed at one historical bar."""

    index: int
    timestamp: datetime
    price: Decimal
    score: int = Field(ge=-100, le=100)
    rsi: Decimal | None = None
    macd_hist: Decimal = Decimal(0)
    percent_b: Decimal | None = None
    reasons: list[str] = Field(default_factory=list)


class BacktestParams(BaseModel):
    """Simulator knobs. Percentages are fractions (0.03 == 3%)."""

    entry_threshold: int = Field(default=20, ge=0)
    exit_threshold: int = Field(default=5, ge=0)
    stop_loss_pct: float = Field(default=0.03, gt=0)
    take_profit_pct: float = Field(default=0.06, gt=0)
    lag: int = Field(default=1, ge=1)
    min_candles: int = Field(default=50, ge=1)


class Position(BaseModel):
    """The single open position of a simulation."""

    model_config = ConfigDict(frozen=True)

    side: Side
    entry_price: Decimal
    entry_index: int


class Trade(BaseModel):
    """A closed simulated trade."""

    model_config = ConfigDict(frozen=True)

    side: Side
    entry_price: Decimal
    exit_price: Decimal
    exit_reason: ExitReason
    entry_index: int
    exit_index: int
    pnl_percent: Decimal
    entry_time: datetime | None = None
    exit_time: datetime | None = None

    @property
    def hold_bars(self) -> int:
        return self.exit_index - self.entry_index

    @property
    def is_win(self) -> bool:
        return self.pnl_percent > 0


class BacktestStats(BaseModel):
    """Summary statistics over a trade ledger. P&L figures are percent."""

    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float | None = None
    max_drawdown: float = 0.0


class SignalDistribution(BaseModel):
    bullish: int = 0
    neutral: int = 0
    bearish: int = 0


class BacktestResult(BaseModel):
    """Trade ledger plus statistics for one simulation run."""

    trades: list[Trade] = Field(default_factory=list)
    stats: BacktestStats = Field(default_factory=BacktestStats)
    params: BacktestParams = Field(default_factory=BacktestParams)
    signals: list[SignalPoint] = Field(default_factory=list)
    distribution: SignalDistribution = Field(default_factory=SignalDistribution)
    buy_and_hold: float | None = None
    grade: Literal["excellent", "pass", "average", "fail"] = "fail"
