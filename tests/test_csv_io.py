"""
Test suite for the CSV feed

Header-driven column lookup, trimming, lenient amounts, malformed rows and
report output.
"""

import io
import logging
import pytest
from decimal import Decimal

from payments_engine.csv_io import (
    FeedSummary, read_rows, parse_record, read_transactions, process_feed, write_accounts
)
from payments_engine.errors import MalformedRecordError
from payments_engine.ledger import LedgerEngine
from payments_engine.transactions import Transaction, TransactionType


class TestReadRows:
    """Test raw row reading"""

    def test_rows_keyed_by_trimmed_header(self):
        source = io.StringIO("type, client, tx, amount\n  deposit ,  1 , 2 ,  3.5  \n")
        rows = list(read_rows(source))
        assert rows == [(2, {'type': 'deposit', 'client': '1', 'tx': '2', 'amount': '3.5'})]

    def test_short_rows_and_blank_lines(self):
        source = io.StringIO("type,client,tx,amount\n\ndispute,1,2\n\n")
        rows = list(read_rows(source))
        assert rows == [(3, {'type': 'dispute', 'client': '1', 'tx': '2'})]

    def test_empty_source(self):
        assert list(read_rows(io.StringIO(""))) == []

    def test_header_missing_column(self):
        with pytest.raises(MalformedRecordError, match="tx"):
            list(read_rows(io.StringIO("type,client,amount\ndeposit,1,1.0\n")))

    def test_header_case_insensitive(self):
        rows = list(read_rows(io.StringIO("Type,CLIENT,Tx\nresolve,1,2\n")))
        assert rows[0][1] == {'type': 'resolve', 'client': '1', 'tx': '2'}


class TestParseRecord:
    """Test building transactions from rows"""

    def test_deposit(self):
        transaction = parse_record(2, {'type': 'deposit', 'client': '1', 'tx': '7', 'amount': '1.23456'})
        assert transaction == Transaction(TransactionType.DEPOSIT, 1, 7, Decimal('1.2346'))

    def test_dispute_without_amount_column(self):
        transaction = parse_record(2, {'type': 'dispute', 'client': '1', 'tx': '7'})
        assert transaction.type == TransactionType.DISPUTE
        assert transaction.amount is None

    def test_type_is_case_insensitive(self):
        transaction = parse_record(2, {'type': 'Chargeback', 'client': '1', 'tx': '7', 'amount': ''})
        assert transaction.type == TransactionType.CHARGEBACK

    def test_unparseable_amount_becomes_no_amount(self):
        transaction = parse_record(2, {'type': 'deposit', 'client': '1', 'tx': '7', 'amount': 'abc'})
        assert transaction.amount is None

    def test_referencing_row_keeps_its_amount(self):
        transaction = parse_record(2, {'type': 'dispute', 'client': '1', 'tx': '7', 'amount': '1.0'})
        assert transaction.amount == Decimal('1.0')

    @pytest.mark.parametrize("row, reason", [
        ({'type': 'bacon', 'client': '1', 'tx': '1'}, "unknown transaction type"),
        ({'type': 'deposit', 'client': 'x', 'tx': '1'}, "client 'x' is not an integer"),
        ({'type': 'deposit', 'client': '1', 'tx': ''}, "missing tx"),
        ({'type': 'deposit', 'client': '65536', 'tx': '1'}, "out of range"),
        ({'type': 'deposit', 'client': '1', 'tx': '4294967296'}, "out of range"),
        ({'type': 'deposit', 'client': '-1', 'tx': '1'}, "out of range"),
    ])
    def test_malformed(self, row, reason):
        with pytest.raises(MalformedRecordError, match=reason) as exc_info:
            parse_record(5, row)
        assert exc_info.value.line_number == 5

    def test_read_transactions_is_strict(self):
        source = io.StringIO("type,client,tx,amount\ndeposit,1,1,1\nbacon,1,2,1\n")
        transactions = read_transactions(source)
        assert next(transactions).tx == 1
        with pytest.raises(MalformedRecordError):
            next(transactions)


class TestProcessFeed:
    """Test feeding a CSV source into the engine"""

    def setup_method(self):
        self.engine = LedgerEngine()

    def test_sample(self, fixture_path):
        with open(fixture_path("sample1.csv"), newline="") as source:
            summary = process_feed(self.engine, source)

        assert summary == FeedSummary(applied=4, rejected=1, malformed=0)
        accounts = self.engine.accounts()
        assert accounts[1].available == Decimal('1.5')
        assert accounts[1].total == Decimal('1.5')
        assert accounts[2].available == Decimal('2')
        assert accounts[2].total == Decimal('2')

    def test_reordered_columns_with_extras(self, fixture_path):
        with open(fixture_path("reordered_columns.csv"), newline="") as source:
            process_feed(self.engine, source)

        assert self.engine.accounts()[1].total == Decimal('1.5')
        assert self.engine.accounts()[2].total == Decimal('2')

    def test_disputes_fixture(self, fixture_path):
        with open(fixture_path("disputes.csv"), newline="") as source:
            summary = process_feed(self.engine, source)

        assert summary.applied == 11
        assert summary.rejected == 4
        assert summary.malformed == 1
        assert summary.total == 16

        accounts = self.engine.accounts()
        assert accounts[1].to_row() == ['1', '150.1235', '0.0000', '150.1235', 'false']
        assert accounts[2].to_row() == ['2', '10.0000', '0.0000', '10.0000', 'true']
        assert accounts[3].to_row() == ['3', '0.0000', '0.0000', '0.0000', 'true']

    def test_malformed_row_aborts_when_not_skipping(self):
        source = io.StringIO("type,client,tx,amount\ndeposit,1,1,1\nbacon,1,2,1\ndeposit,1,3,1\n")
        with pytest.raises(MalformedRecordError):
            process_feed(self.engine, source, skip_malformed_rows=False)

        assert self.engine.accounts()[1].total == Decimal('1')

    def test_oversized_amount_rejected_and_feed_continues(self):
        source = io.StringIO(
            "type,client,tx,amount\n"
            "deposit,1,1," + "1" + "0" * 30 + "\n"
            "deposit,1,2,1e30\n"
            "deposit,1,3,1.0\n"
        )
        summary = process_feed(self.engine, source)

        assert summary == FeedSummary(applied=1, rejected=2, malformed=0)
        assert self.engine.accounts()[1].total == Decimal('1')
        assert self.engine.get_transaction(1) is None

    def test_rejections_logged_as_warnings(self, caplog):
        source = io.StringIO("type,client,tx,amount\nwithdrawal,1,1,5\nbacon,1,2\n")
        with caplog.at_level(logging.WARNING, logger="payments_engine"):
            process_feed(self.engine, source)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.action for r in warnings] == ["reject_transaction", "skip_record"]
        assert warnings[0].extra == {"line": 2, "code": "insufficient_funds"}
        assert warnings[1].extra == {"line": 3}


class TestWriteAccounts:
    """Test report output"""

    def test_report(self):
        engine = LedgerEngine()
        engine.process(Transaction.deposit(2, 1, Decimal('2')))
        engine.process(Transaction.deposit(1, 2, Decimal('1.5')))
        engine.process(Transaction.dispute(1, 2))

        out = io.StringIO()
        write_accounts(engine.accounts(), out)

        assert out.getvalue() == (
            "client,available,held,total,locked\n"
            "2,2.0000,0.0000,2.0000,false\n"
            "1,0.0000,1.5000,1.5000,false\n"
        )

    def test_empty_report_has_header(self):
        out = io.StringIO()
        write_accounts(LedgerEngine().accounts(), out)
        assert out.getvalue() == "client,available,held,total,locked\n"
