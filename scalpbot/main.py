"""ScalpBot — application entry point.

Builds the FastAPI internal server and provides the CLI entry point for
paper, backtest and serve modes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import FastAPI

from scalpbot.api.routers import StatusStore, create_router
from scalpbot.execution.ledger import TradeLedger
from scalpbot.repos.backtest_repo import BacktestRepo
from scalpbot.repos.trade_repo import TradeRepo

logger = logging.getLogger("scalpbot")


def create_app(
    store: Optional[StatusStore] = None,
    ledger: Optional[TradeLedger] = None,
    trade_repo: Optional[TradeRepo] = None,
    backtest_repo: Optional[BacktestRepo] = None,
) -> FastAPI:
    """Assemble the internal API over the given collaborators."""
    app = FastAPI(title="ScalpBot Internal API", version="0.1.0")

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok"}

    app.include_router(
        create_router(
            store or StatusStore(),
            ledger=ledger,
            trade_repo=trade_repo,
            backtest_repo=backtest_repo,
        )
    )
    return app


app = create_app()


def _parse_date(value: Optional[str], default: datetime) -> datetime:
    if not value:
        return default
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv: Optional[list[str]] = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio
    import signal

    from scalpbot.config import load_config
    from scalpbot.repos.db import init_db

    parser = argparse.ArgumentParser(description="ScalpBot forex scalping bot")
    parser.add_argument(
        "--mode",
        choices=["paper", "backtest", "serve"],
        default="paper",
        help="Run mode (default: paper)",
    )
    parser.add_argument("--start", help="Backtest start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="Backtest end date (YYYY-MM-DD)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for synthetic prices")
    parser.add_argument("--strategy", help="Override ACTIVE_STRATEGY")
    parser.add_argument(
        "--max-cycles", type=int, default=0,
        help="Stop paper trading after N cycles (0 = unlimited)",
    )
    parser.add_argument("--env", dest="env_path", help="Path to a .env file")
    args = parser.parse_args(argv)

    config = load_config(args.env_path)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    init_db(config.db_path)

    strategy_config = config.strategy_config()
    if args.strategy:
        strategy_config = strategy_config.with_overrides(active_strategy=args.strategy)

    if args.mode == "backtest":
        _run_backtest(config, strategy_config, args.start, args.end, args.seed)
        return

    if args.mode == "serve":
        import uvicorn

        api = create_app(
            trade_repo=TradeRepo(config.db_path),
            backtest_repo=BacktestRepo(config.db_path),
        )
        uvicorn.run(api, host="0.0.0.0", port=config.health_port, log_level="info")
        return

    from scalpbot.data.sources import MockPriceFeed
    from scalpbot.engine import TradingEngine
    from scalpbot.execution.paper import PaperExecutor

    store = StatusStore()
    store.update_bot_status(mode="paper")
    ledger = TradeLedger()
    trade_repo = TradeRepo(config.db_path)
    ledger.add_listener(trade_repo.save_trade)
    executor = PaperExecutor(ledger, execution_delay=config.execution_delay_seconds)
    engine = TradingEngine(
        strategy_config,
        MockPriceFeed(seed=args.seed),
        executor,
        status=store,
        starting_balance=config.starting_balance,
        poll_interval=config.poll_interval_seconds,
    )
    engine.add_signal_listener(
        lambda s: logger.info("NOTIFY %s — %s", s.description, s.reason)
    )

    def handle_shutdown(signum, frame):
        logger.info("Shutdown signal received — stopping gracefully.")
        engine.stop()

    signal.signal(signal.SIGINT, handle_shutdown)

    api = create_app(
        store=store,
        ledger=ledger,
        trade_repo=trade_repo,
        backtest_repo=BacktestRepo(config.db_path),
    )
    asyncio.run(_run_paper(engine, api, config.health_port, args.max_cycles))


async def _run_paper(engine, api: FastAPI, port: int, max_cycles: int) -> None:
    """Run the API server and the paper trading engine concurrently."""
    import asyncio

    import uvicorn

    logger.info("Starting ScalpBot paper session on %s", engine.pair)
    server = uvicorn.Server(
        uvicorn.Config(api, host="0.0.0.0", port=port, log_level="info")
    )

    async def _run_engine():
        try:
            return await engine.run(max_cycles=max_cycles)
        finally:
            engine.cancel_all_pending()
            server.should_exit = True

    results = await asyncio.gather(server.serve(), _run_engine(), return_exceptions=True)
    for outcome in results:
        if isinstance(outcome, BaseException):
            logger.error("Task ended with error: %r", outcome)
    logger.info(
        "ScalpBot stopped. %d trades, win rate %.1f%%, P&L $%.2f",
        engine.stats.total_trades,
        engine.stats.win_rate * 100,
        engine.stats.total_pnl,
    )


def _run_backtest(config, strategy_config, start: Optional[str], end: Optional[str], seed) -> None:
    """Generate synthetic hourly candles for the range and run a backtest."""
    from scalpbot.backtest.engine import BacktestEngine
    from scalpbot.cli.report import format_backtest_report
    from scalpbot.data.sources import MockPriceFeed, SyntheticCandleSource

    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    start_dt = _parse_date(start, today - timedelta(days=30))
    end_dt = _parse_date(end, start_dt + timedelta(days=30))

    source = SyntheticCandleSource(
        seed=seed,
        start_price=MockPriceFeed.DEFAULT_START_PRICES.get(strategy_config.selected_pair, 1.10),
    )
    engine = BacktestEngine(strategy_config, starting_balance=config.starting_balance)
    report = engine.run_range(source, start_dt, end_dt)

    BacktestRepo(config.db_path).insert_run(
        report,
        start_date=start_dt.date().isoformat(),
        end_date=end_dt.date().isoformat(),
    )
    print(format_backtest_report(report))


if __name__ == "__main__":
    _run_cli()
