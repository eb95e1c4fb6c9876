"""Tests for scalpbot.config and StrategyConfig validation."""

import pytest

from scalpbot.config import load_config
from scalpbot.errors import InvalidConfigurationError
from scalpbot.models.strategy_config import StrategyConfig

_ENV_VARS = [
    "TRADE_PAIR",
    "ACTIVE_STRATEGY",
    "EMA_FAST_PERIOD",
    "EMA_SLOW_PERIOD",
    "RSI_PERIOD",
    "RSI_OVERBOUGHT",
    "RSI_OVERSOLD",
    "PROFIT_TARGET_PIPS",
    "STOP_LOSS_PIPS",
    "RISK_PER_TRADE_PCT",
    "MAX_TRADES_PER_DAY",
    "BREAKOUT_LOOKBACK",
    "STARTING_BALANCE",
    "POLL_INTERVAL_SECONDS",
    "EXECUTION_DELAY_SECONDS",
    "DB_PATH",
    "LOG_LEVEL",
    "HEALTH_PORT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure ScalpBot env vars are cleared between tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def env_path(tmp_path):
    """A non-existent .env path so load_dotenv never reads a real file."""
    return str(tmp_path / "nonexistent.env")


# ── load_config ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults(self, env_path):
        cfg = load_config(env_path)
        assert cfg.trade_pair == "EUR_USD"
        assert cfg.active_strategy == "ema_crossover"
        assert (cfg.ema_fast_period, cfg.ema_slow_period) == (5, 13)
        assert (cfg.rsi_period, cfg.rsi_overbought, cfg.rsi_oversold) == (14, 70.0, 30.0)
        assert (cfg.profit_target_pips, cfg.stop_loss_pips) == (5.0, 3.0)
        assert cfg.risk_per_trade_pct == 1.0
        assert cfg.max_trades_per_day == 10
        assert cfg.breakout_lookback == 20
        assert cfg.starting_balance == 50_000.0
        assert cfg.poll_interval_seconds == 5.0
        assert cfg.execution_delay_seconds == 2.0
        assert cfg.db_path == "data/scalpbot.db"
        assert cfg.log_level == "INFO"
        assert cfg.health_port == 8080

    def test_overrides_from_env(self, monkeypatch, env_path):
        monkeypatch.setenv("TRADE_PAIR", "gbpusd")
        monkeypatch.setenv("ACTIVE_STRATEGY", "breakout")
        monkeypatch.setenv("RSI_PERIOD", "9")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        cfg = load_config(env_path)
        assert cfg.trade_pair == "GBP_USD"
        assert cfg.active_strategy == "breakout"
        assert cfg.rsi_period == 9
        assert cfg.log_level == "DEBUG"

    def test_reads_dotenv_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("EMA_FAST_PERIOD=3\nSTOP_LOSS_PIPS=4.5\n", encoding="utf-8")
        cfg = load_config(str(env_file))
        assert cfg.ema_fast_period == 3
        assert cfg.stop_loss_pips == 4.5

    def test_malformed_numbers_named(self, monkeypatch, env_path):
        monkeypatch.setenv("EMA_SLOW_PERIOD", "thirteen")
        monkeypatch.setenv("RISK_PER_TRADE_PCT", "1%")
        with pytest.raises(InvalidConfigurationError) as exc_info:
            load_config(env_path)
        message = str(exc_info.value)
        assert "EMA_SLOW_PERIOD" in message
        assert "RISK_PER_TRADE_PCT" in message
        assert len(exc_info.value.errors) == 2

    def test_strategy_config_snapshot(self, monkeypatch, env_path):
        monkeypatch.setenv("MAX_TRADES_PER_DAY", "4")
        sc = load_config(env_path).strategy_config()
        assert isinstance(sc, StrategyConfig)
        assert sc.max_trades_per_day == 4
        assert sc.selected_pair == "EUR_USD"
        assert sc.validate() is sc


# ── StrategyConfig ───────────────────────────────────────────────────────


class TestStrategyConfig:
    def test_defaults_are_valid(self):
        config = StrategyConfig()
        assert config.validate() is config
        assert config.warmup_period == 14

    @pytest.mark.parametrize(
        "overrides,fragment",
        [
            ({"ema_fast_period": 0}, "ema_fast_period"),
            ({"ema_fast_period": 13}, "shorter"),
            ({"rsi_period": -1}, "rsi_period"),
            ({"rsi_oversold": 70.0}, "below"),
            ({"rsi_overbought": 120.0}, "rsi_overbought"),
            ({"profit_target_pips": 0.0}, "profit_target_pips"),
            ({"stop_loss_pips": -3.0}, "stop_loss_pips"),
            ({"risk_per_trade_pct": 0.0}, "risk_per_trade_pct"),
            ({"risk_per_trade_pct": 150.0}, "risk_per_trade_pct"),
            ({"max_trades_per_day": -1}, "max_trades_per_day"),
            ({"breakout_lookback": 0}, "breakout_lookback"),
            ({"active_strategy": "grid"}, "active_strategy"),
            ({"selected_pair": ""}, "selected_pair"),
        ],
    )
    def test_invalid_values(self, overrides, fragment):
        with pytest.raises(InvalidConfigurationError, match=fragment):
            StrategyConfig(**overrides).validate()

    def test_reports_every_problem(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            StrategyConfig(rsi_period=0, stop_loss_pips=0.0).validate()
        assert len(exc_info.value.errors) == 2

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            StrategyConfig(ema_slow_period=2).validate()

    def test_with_overrides(self):
        config = StrategyConfig().with_overrides(active_strategy="reversal")
        assert config.active_strategy == "reversal"
        with pytest.raises(TypeError, match="leverage"):
            StrategyConfig().with_overrides(leverage=30)
