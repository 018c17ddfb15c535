"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from pydantic import BaseModel, Field, NonNegativeInt

from signal_core.models import BacktestParams


class OKXConfig(BaseModel):
    base_url: str = "https://www.okx.com"
    timeout_s: float = 15.0


class FearGreedConfig(BaseModel):
    base_url: str = "https://api.alternative.me"
    timeout_s: float = 10.0


class ScoringConfig(BaseModel):
    # Overrides for factor weights; unknown keys are ignored
    weights: dict[str, NonNegativeInt] = Field(default_factory=dict)


class DefaultsConfig(BaseModel):
    coin: str = "BTC"
    bar: str = "4H"
    score_candles: int = 50
    backtest_candles: int = 500


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"


class AppConfig(BaseModel):
    okx: OKXConfig = Field(default_factory=OKXConfig)
    fear_greed: FearGreedConfig = Field(default_factory=FearGreedConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    backtest: BacktestParams = Field(default_factory=BacktestParams)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
