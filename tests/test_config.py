"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from signal_core.config import AppConfig, load_config

EXAMPLE = Path(__file__).parent.parent / "config.yaml.example"


class TestAppConfig:
    def test_defaults(self):
        cfg = AppConfig()
        assert cfg.okx.base_url == "https://www.okx.com"
        assert cfg.fear_greed.base_url == "https://api.alternative.me"
        assert cfg.defaults.coin == "BTC"
        assert cfg.defaults.bar == "4H"
        assert cfg.logging.level == "INFO"
        assert cfg.logging.format == "console"
        assert cfg.scoring.weights == {}

    def test_backtest_defaults(self):
        cfg = AppConfig()
        assert cfg.backtest.entry_threshold == 20
        assert cfg.backtest.exit_threshold == 5
        assert cfg.backtest.stop_loss_pct == 0.03
        assert cfg.backtest.take_profit_pct == 0.06
        assert cfg.backtest.lag == 1
        assert cfg.backtest.min_candles == 50

    def test_lag_must_be_positive(self):
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"backtest": {"lag": 0}})

    @pytest.mark.parametrize("field", ["entry_threshold", "exit_threshold"])
    def test_thresholds_must_be_non_negative(self, field):
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"backtest": {field: -3}})
        assert getattr(AppConfig.model_validate({"backtest": {field: 0}}).backtest, field) == 0

    def test_weights_must_be_non_negative(self):
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"scoring": {"weights": {"funding": -5}}})
        cfg = AppConfig.model_validate({"scoring": {"weights": {"funding": 0}}})
        assert cfg.scoring.weights == {"funding": 0}


class TestLoadConfig:
    def test_load_example_config(self):
        cfg = load_config(EXAMPLE)
        assert cfg.okx.timeout_s == 15
        assert cfg.scoring.weights["funding"] == 15
        assert cfg.scoring.weights["liquidation"] == 10
        assert cfg.backtest.take_profit_pct == 0.06
        assert cfg.defaults.backtest_candles == 500

    def test_load_nonexistent_file_returns_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "missing.yaml")
        assert cfg == AppConfig()

    def test_load_none_returns_defaults(self):
        assert load_config(None).defaults.coin == "BTC"

    def test_empty_file_returns_defaults(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert load_config(p) == AppConfig()

    def test_env_override_log_level(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_LOG_LEVEL", "DEBUG")
        cfg = load_config(None)
        assert cfg.logging.level == "DEBUG"

    def test_env_override_log_format(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_LOG_FORMAT", "json")
        cfg = load_config(None)
        assert cfg.logging.format == "json"

    def test_env_overrides_yaml_values(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_OKX_BASE_URL", "http://localhost:8080")
        cfg = load_config(EXAMPLE)
        assert cfg.okx.base_url == "http://localhost:8080"
        # Non-overridden values preserved
        assert cfg.okx.timeout_s == 15

    def test_negative_values_in_yaml_rejected(self, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text(
            "scoring:\n  weights:\n    funding: -5\n"
            "backtest:\n  entry_threshold: -3\n  exit_threshold: -50\n"
        )
        with pytest.raises(ValidationError) as exc:
            load_config(p)
        assert exc.value.error_count() == 3

    def test_load_minimal_yaml(self, tmp_path):
        p = tmp_path / "minimal.yaml"
        p.write_text("defaults:\n  coin: ETH\nbacktest:\n  entry_threshold: 30\n")
        cfg = load_config(p)
        assert cfg.defaults.coin == "ETH"
        assert cfg.backtest.entry_threshold == 30
        # Defaults still apply for unspecified keys and sections
        assert cfg.defaults.bar == "4H"
        assert cfg.backtest.exit_threshold == 5
        assert cfg.okx.base_url == "https://www.okx.com"
