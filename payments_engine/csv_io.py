"""
CSV Transaction Feed Module

Reads delimited transaction records one at a time, feeds them to a
LedgerEngine and writes the final account report. Columns are located by
header name, so column order is free and extra columns are ignored.
"""

import csv
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, TextIO, Tuple

from .accounts import AccountSnapshot, REPORT_FIELDS
from .amounts import parse_amount
from .errors import LedgerError, MalformedRecordError
from .ledger import LedgerEngine
from .logging_config import get_logger, log_action
from .transactions import Transaction, TransactionType


REQUIRED_COLUMNS = ('type', 'client', 'tx')
AMOUNT_COLUMN = 'amount'

logger = get_logger("payments_engine.csv_io")


@dataclass
class FeedSummary:
    """Counts of what happened to each input record"""
    applied: int = 0
    rejected: int = 0
    malformed: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.rejected + self.malformed


def read_rows(source: TextIO) -> Iterator[Tuple[int, Dict[str, str]]]:
    """
    Yield (line number, row) pairs keyed by lower-cased header names

    Every field is whitespace-trimmed. Blank lines are skipped and short rows
    simply lack the trailing columns.

    Raises:
        MalformedRecordError: If the header lacks a required column
    """
    reader = csv.reader(source)

    header: Optional[List[str]] = None
    for row in reader:
        if not row or not any(field.strip() for field in row):
            continue
        header = [name.strip().lower() for name in row]
        break

    if header is None:
        return

    missing = [name for name in REQUIRED_COLUMNS if name not in header]
    if missing:
        raise MalformedRecordError(reader.line_num, f"header is missing column(s): {', '.join(missing)}")

    for row in reader:
        if not row or not any(field.strip() for field in row):
            continue
        yield reader.line_num, {
            name: value.strip() for name, value in zip(header, row)
        }


def parse_record(line_number: int, row: Mapping[str, str]) -> Transaction:
    """
    Build a Transaction from one trimmed row

    The amount goes through parse_amount for every type: an unparseable
    amount becomes "no amount" and is judged by the ledger, not here.

    Raises:
        MalformedRecordError: If type, client or tx cannot form a transaction
    """
    raw_type = row.get('type', '')
    try:
        transaction_type = TransactionType(raw_type.lower())
    except ValueError:
        raise MalformedRecordError(line_number, f"unknown transaction type '{raw_type}'")

    client = _parse_id(line_number, row, 'client')
    tx = _parse_id(line_number, row, 'tx')
    amount = parse_amount(row.get(AMOUNT_COLUMN))

    try:
        return Transaction(transaction_type, client, tx, amount)
    except ValueError as e:
        raise MalformedRecordError(line_number, str(e))


def _parse_id(line_number: int, row: Mapping[str, str], column: str) -> int:
    value = row.get(column, '')
    if not value:
        raise MalformedRecordError(line_number, f"missing {column}")
    try:
        return int(value)
    except ValueError:
        raise MalformedRecordError(line_number, f"{column} '{value}' is not an integer")


def read_transactions(source: TextIO) -> Iterator[Transaction]:
    """Strict reader: yields transactions, raises on the first malformed row"""
    for line_number, row in read_rows(source):
        yield parse_record(line_number, row)


def process_feed(engine: LedgerEngine, source: TextIO, skip_malformed_rows: bool = True) -> FeedSummary:
    """
    Feed every record of a CSV source into the engine, in order

    Rejected transactions are logged and skipped. Malformed rows are logged
    and skipped too unless skip_malformed_rows is False.

    Args:
        engine: Ledger to apply transactions to
        source: Open text stream with a header row
        skip_malformed_rows: Continue past rows that cannot be parsed

    Returns:
        FeedSummary with per-outcome counts

    Raises:
        MalformedRecordError: On a malformed row when not skipping, or a bad header
    """
    summary = FeedSummary()

    for line_number, row in read_rows(source):
        try:
            transaction = parse_record(line_number, row)
        except MalformedRecordError as e:
            if not skip_malformed_rows:
                raise
            summary.malformed += 1
            log_action(
                logger, "warning", f"Skipping malformed record: {e.reason}",
                action="skip_record", extra={"line": line_number}
            )
            continue

        try:
            engine.process(transaction)
        except LedgerError as e:
            summary.rejected += 1
            log_action(
                logger, "warning", f"Transaction not applied: {e.message}",
                action="reject_transaction", client_id=transaction.client,
                tx_id=transaction.tx, extra={"line": line_number, "code": e.code}
            )
            continue

        summary.applied += 1

    log_action(
        logger, "info",
        f"Feed complete: {summary.applied} applied, {summary.rejected} rejected, "
        f"{summary.malformed} malformed",
        action="feed_complete",
        extra={"applied": summary.applied, "rejected": summary.rejected, "malformed": summary.malformed}
    )
    return summary


def write_accounts(accounts: Mapping[int, AccountSnapshot], out: TextIO) -> None:
    """Write the account report: header then one row per account"""
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(REPORT_FIELDS)
    for account in accounts.values():
        writer.writerow(account.to_row())
