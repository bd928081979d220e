#!/usr/bin/env python3
"""Generate a sample installment portfolio and export it.

The portfolio is produced by running real ledger operations (contract
creation, payments, cash confirmations, postponements and a debtor sweep)
against an in-memory store, then written as one JSON file per entity type.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from nasiya.config import NasiyaConfig
from nasiya.logging import setup_logging
from nasiya.scenarios import InstallmentPortfolioScenario
from nasiya.sinks import ConsoleSink, JsonFileSink

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Generate a sample installment portfolio")
    parser.add_argument(
        "--customers",
        type=int,
        default=20,
        help="Number of customers to generate (default: 20)",
    )
    parser.add_argument(
        "--managers",
        type=int,
        default=3,
        help="Number of managers (default: 3)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for JSON files (default: OUTPUT_DIR or ./output)",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Also print the first records of each entity type",
    )
    parser.add_argument(
        "--log-format",
        choices=["standard", "json"],
        default="standard",
        help="Log output format (default: standard)",
    )
    args = parser.parse_args()

    config = NasiyaConfig.from_env()
    setup_logging(config.log_level, args.log_format)
    output_dir = args.output_dir or config.output.json_output_dir

    logger.info("=" * 60)
    logger.info("Generating installment portfolio")
    logger.info("Customers: %d, managers: %d, seed: %d", args.customers, args.managers, args.seed)
    logger.info("=" * 60)

    scenario = InstallmentPortfolioScenario(
        num_customers=args.customers,
        num_managers=args.managers,
        seed=args.seed,
        config=config,
    )
    scenario.generate()

    sinks: list = [JsonFileSink(output_dir, pretty=config.output.pretty_json)]
    if args.console:
        sinks.append(ConsoleSink(pretty=True, max_records=3))
    scenario.export(sinks)
    for sink in sinks:
        sink.close()

    for key, value in scenario.get_portfolio_summary().items():
        logger.info("  %s: %s", key, value)


if __name__ == "__main__":
    main()
