"""
Command Line Entry Point

    payments-engine transactions.csv > accounts.csv

Reads the transaction feed, applies it to a fresh ledger and writes the
final state of every account to stdout. Logs go to stderr.
"""

import argparse
import sys
from typing import Optional, Sequence

from .config import get_config
from .csv_io import process_feed, write_accounts
from .errors import MalformedRecordError
from .ledger import LedgerEngine
from .logging_config import setup_logging


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description=(
            "Apply a CSV feed of deposits, withdrawals, disputes, resolves and "
            "chargebacks and print the resulting client accounts as CSV."
        )
    )
    parser.add_argument("input", help="Path to the transactions CSV file.")
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level for diagnostics on stderr.",
    )
    parser.add_argument(
        "--log-format",
        default=config.log_format,
        choices=["json", "text"],
        type=str.lower,
        help="Log record format.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=not config.skip_malformed_rows,
        help="Abort on the first malformed row instead of skipping it.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config = get_config()
    logger = setup_logging(args.log_level, log_format=args.log_format, log_file=config.log_file)

    engine = LedgerEngine()
    try:
        with open(args.input, newline="") as source:
            process_feed(engine, source, skip_malformed_rows=not args.strict)
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return 1
    except MalformedRecordError as e:
        logger.error(str(e))
        return 1

    write_accounts(engine.accounts(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
