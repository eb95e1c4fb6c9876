"""End-to-end tests: CLI backtest mode through to SQLite and console output."""

import logging

import pytest

from scalpbot.main import _run_cli
from scalpbot.repos.backtest_repo import BacktestRepo


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    db_path = str(tmp_path / "data" / "scalpbot.db")
    monkeypatch.setenv("DB_PATH", db_path)
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    for var in ("ACTIVE_STRATEGY", "TRADE_PAIR", "STARTING_BALANCE", "MAX_TRADES_PER_DAY"):
        monkeypatch.delenv(var, raising=False)
    return {"db_path": db_path, "env": str(tmp_path / "missing.env")}


class TestBacktestCli:
    def test_backtest_persists_and_prints(self, cli_env, capsys, caplog):
        with caplog.at_level(logging.INFO, logger="scalpbot"):
            _run_cli([
                "--mode", "backtest",
                "--start", "2025-01-01",
                "--end", "2025-01-05",
                "--seed", "42",
                "--strategy", "rsi_divergence",
                "--env", cli_env["env"],
            ])

        out = capsys.readouterr().out
        assert "ScalpBot Backtest" in out
        assert "RSI Divergence" in out
        assert "Candles:          97" in out
        assert "Backtest complete" in caplog.text

        runs = BacktestRepo(cli_env["db_path"]).get_runs()
        assert len(runs) == 1
        assert runs[0]["strategy"] == "rsi_divergence"
        assert runs[0]["start_date"] == "2025-01-01"
        assert runs[0]["end_date"] == "2025-01-05"

    def test_same_seed_same_result(self, cli_env, capsys):
        args = [
            "--mode", "backtest", "--start", "2025-02-01", "--end", "2025-02-10",
            "--seed", "7", "--env", cli_env["env"],
        ]
        _run_cli(args)
        first = capsys.readouterr().out
        _run_cli(args)
        second = capsys.readouterr().out
        assert first == second

    def test_invalid_strategy_rejected(self, cli_env):
        with pytest.raises(SystemExit):
            _run_cli(["--mode", "nope", "--env", cli_env["env"]])
