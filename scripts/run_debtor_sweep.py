#!/usr/bin/env python3
"""Run the overdue debtor sweep against a generated portfolio.

With ``--once`` a single sweep runs and the resulting debtors are printed.
Otherwise the background sweeper keeps running on ``SWEEP_INTERVAL`` until
interrupted with Ctrl+C.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from nasiya.config import NasiyaConfig
from nasiya.logging import setup_logging
from nasiya.scenarios import InstallmentPortfolioScenario
from nasiya.sinks import ConsoleSink

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run the overdue debtor sweep")
    parser.add_argument(
        "--customers",
        type=int,
        default=20,
        help="Number of customers in the generated portfolio (default: 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one sweep and exit",
    )
    args = parser.parse_args()

    config = NasiyaConfig.from_env()
    setup_logging(config.log_level)

    scenario = InstallmentPortfolioScenario(num_customers=args.customers, seed=args.seed, config=config)
    scenario.generate()
    services = scenario.services

    if args.once:
        result = services.debtors.run_sweep()
        logger.info("Sweep result: %s", result)
        sink = ConsoleSink(pretty=True)
        sink.write_batch("debtors", services.store.get_all_debtors())
        sink.close()
        return

    # Graceful shutdown
    stop = threading.Event()
    original_sigint = signal.getsignal(signal.SIGINT)

    def _signal_handler(signum: int, frame: object) -> None:
        logger.info("Shutdown requested, stopping sweeper...")
        stop.set()

    signal.signal(signal.SIGINT, _signal_handler)
    sweeper = services.sweeper()
    sweeper.start()
    try:
        stop.wait()
    finally:
        sweeper.stop()
        signal.signal(signal.SIGINT, original_sigint)
        logger.info("Open debtors: %d", len(services.store.debtors))


if __name__ == "__main__":
    main()
