"""Command line entry point.

Usage:
  commodintel                      # hourly scheduler + interactive console
  commodintel --once               # one cycle, print dashboard, exit
  commodintel --no-interactive     # headless: scheduler until SIGINT/SIGTERM

Environment (.env is loaded from the working directory):
  GEMINI_API_KEY (required), GEMINI_MODEL
  TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID (optional; reports skipped without them)
  REFRESH_INTERVAL_SECONDS, BIAS_TOP_N
  MACRO_USD_TREND, MACRO_YIELDS_TREND, MACRO_RISK_SENTIMENT
"""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import List, Optional

from dotenv import load_dotenv

from .bias.classifier import BiasClassifier
from .core.orchestrator import IntelligenceEngine
from .core.scheduler import CycleScheduler
from .core.types import CycleOutcome, EngineConfig
from .dashboard.console import ConsoleDashboard
from .ingestion.collector import IngestionCollector
from .llm.gemini_client import get_gemini_client
from .reporting.telegram import TelegramReporter

logger = logging.getLogger("commodintel")


def build_engine(config: EngineConfig, bot_logger: Optional[logging.Logger] = None) -> IntelligenceEngine:
    bot_logger = bot_logger or logger
    client = get_gemini_client()
    return IntelligenceEngine(
        logger=bot_logger,
        config=config,
        collector=IngestionCollector(logger=logging.getLogger("commodintel.ingestion"), client=client),
        classifier=BiasClassifier(logger=logging.getLogger("commodintel.bias"), client=client, top_n=config.top_n),
        reporter=TelegramReporter(),
    )


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Commodity intelligence engine (GOLD / SILVER / OIL bias)")
    parser.add_argument("--once", action="store_true", help="Run one cycle, print the dashboard and exit")
    parser.add_argument("--interval-seconds", type=float, default=None, help="Override REFRESH_INTERVAL_SECONDS")
    parser.add_argument("--no-interactive", action="store_true", help="Run headless until SIGINT/SIGTERM")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = EngineConfig()
    if args.interval_seconds:
        config.refresh_interval_seconds = float(args.interval_seconds)

    engine = build_engine(config)
    dashboard = ConsoleDashboard(engine=engine)

    if args.once:
        outcome = engine.run_cycle(trigger="once")
        print(dashboard.render())
        return 0 if outcome == CycleOutcome.COMPLETED else 1

    scheduler = CycleScheduler(
        logger=logging.getLogger("commodintel.scheduler"),
        engine=engine,
        interval_seconds=config.refresh_interval_seconds,
        run_on_start=config.run_on_start,
    )
    dashboard.scheduler = scheduler

    shutdown = threading.Event()

    def _request_shutdown(signum, frame) -> None:
        logger.info(f"Received signal {signum}. Initiating graceful shutdown...")
        shutdown.set()

    signal.signal(signal.SIGTERM, _request_shutdown)
    if args.no_interactive:
        signal.signal(signal.SIGINT, _request_shutdown)

    scheduler.start()
    try:
        if args.no_interactive:
            while not shutdown.wait(timeout=1.0):
                pass
        else:
            dashboard.run_interactive()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        scheduler.stop()

    logger.info("Graceful shutdown complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
