"""
Ledger Engine

Owns every client account and the history of applied deposits and
withdrawals. Transactions are processed strictly one at a time: each is
classified against history, dispatched to a balance rule, and funding
transactions that apply cleanly are recorded so later disputes, resolves
and chargebacks can reference them. A rejected transaction leaves balances,
lock flags and history untouched.
"""

from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from .accounts import Account, AccountSnapshot
from .errors import (
    LedgerError, AccountLockedError, InvalidTransactionError, InsufficientFundsError,
    ClientMismatchError, UnsupportedDisputeError, UnsupportedChargebackError
)
from .logging_config import get_logger, log_action
from .transactions import Transaction, TransactionType


class Route(Enum):
    """Outcome of classifying (history entry, type, amount) for a transaction"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    REFERENCED = "referenced"
    REJECT = "reject"


def classify(referenced: Optional[Transaction], transaction: Transaction) -> Route:
    """
    Decide which balance rule applies

    (no entry, deposit, amount)        -> DEPOSIT
    (no entry, withdrawal, amount)     -> WITHDRAWAL
    (entry, dispute/resolve/chargeback, no amount) -> REFERENCED
    anything else                      -> REJECT
    """
    if referenced is None and transaction.has_amount:
        if transaction.type is TransactionType.DEPOSIT:
            return Route.DEPOSIT
        if transaction.type is TransactionType.WITHDRAWAL:
            return Route.WITHDRAWAL
        return Route.REJECT

    if referenced is not None and not transaction.has_amount and transaction.type.is_referencing:
        return Route.REFERENCED

    return Route.REJECT


class LedgerEngine:
    """
    Processes ledger transactions against lazily created client accounts

    The engine is the only writer of its account and history maps; callers
    read accounts through immutable snapshots.
    """

    def __init__(self):
        self._accounts: Dict[int, Account] = {}
        self._history: Dict[int, Transaction] = {}
        self.logger = get_logger("payments_engine.ledger")

        self._routes: Dict[Route, Callable[[Account, Transaction, Optional[Transaction]], None]] = {
            Route.DEPOSIT: self._apply_deposit,
            Route.WITHDRAWAL: self._apply_withdrawal,
            Route.REFERENCED: self._apply_referenced,
            Route.REJECT: self._reject,
        }

        self._referenced_rules: Dict[TransactionType, Callable[[Account, TransactionType, Decimal], None]] = {
            TransactionType.DISPUTE: self._dispute,
            TransactionType.RESOLVE: self._resolve,
            TransactionType.CHARGEBACK: self._chargeback,
        }

    def process(self, transaction: Transaction) -> None:
        """
        Apply one transaction

        Args:
            transaction: Transaction to apply

        Raises:
            AccountLockedError: The client's account was charged back earlier
            InvalidTransactionError: Duplicate funding id, missing or unexpected
                amount, or a reference to an unknown transaction
            InsufficientFundsError: Withdrawal exceeds available funds
            ClientMismatchError: Referenced transaction belongs to another client
            UnsupportedDisputeError: Referenced transaction cannot be disputed
            UnsupportedChargebackError: Referenced transaction cannot be charged back
        """
        account = self._get_or_create_account(transaction.client)

        try:
            self._process(account, transaction)
        except LedgerError as e:
            log_action(
                self.logger, "info", f"Transaction rejected: {e.message}",
                action=f"reject_{transaction.type.value}",
                client_id=transaction.client, tx_id=transaction.tx,
                extra={"code": e.code}
            )
            raise

        log_action(
            self.logger, "debug", f"Transaction applied: {transaction.describe()}",
            action=f"apply_{transaction.type.value}",
            client_id=transaction.client, tx_id=transaction.tx,
            extra={
                "available": str(account.available),
                "held": str(account.held),
                "total": str(account.total),
                "locked": account.locked
            }
        )

    def accounts(self) -> Mapping[int, AccountSnapshot]:
        """Read-only snapshot of every account, in first-seen client order"""
        return MappingProxyType({
            client: account.snapshot() for client, account in self._accounts.items()
        })

    def get_account(self, client: int) -> Optional[AccountSnapshot]:
        """Get a snapshot of one client's account"""
        account = self._accounts.get(client)
        if account is not None:
            return account.snapshot()
        return None

    def get_transaction(self, tx: int) -> Optional[Transaction]:
        """Look up a recorded deposit or withdrawal by id"""
        return self._history.get(tx)

    def _get_or_create_account(self, client: int) -> Account:
        account = self._accounts.get(client)
        if account is None:
            account = Account(client=client)
            self._accounts[client] = account
            log_action(
                self.logger, "debug", f"Account created for client {client}",
                action="create_account", client_id=client
            )
        return account

    def _process(self, account: Account, transaction: Transaction) -> None:
        if account.locked:
            raise AccountLockedError(account.client)

        referenced = self._history.get(transaction.tx)
        route = classify(referenced, transaction)
        self._routes[route](account, transaction, referenced)

        # Only reached on success; referencing transactions never enter history
        if transaction.is_funding:
            self._history[transaction.tx] = transaction

    def _reject(self, account: Account, transaction: Transaction,
                referenced: Optional[Transaction]) -> None:
        if transaction.is_funding and referenced is not None:
            reason = f"transaction id {transaction.tx} already used"
        elif transaction.is_funding:
            reason = "funding transaction without a valid amount"
        elif transaction.has_amount:
            reason = f"{transaction.type.value} must not carry an amount"
        else:
            reason = f"referenced transaction {transaction.tx} not found"
        raise InvalidTransactionError(f"Invalid {transaction.type.value} {transaction.tx}: {reason}")

    def _apply_deposit(self, account: Account, transaction: Transaction,
                       referenced: Optional[Transaction]) -> None:
        amount = transaction.amount
        account.apply_change(available=amount, total=amount)

    def _apply_withdrawal(self, account: Account, transaction: Transaction,
                          referenced: Optional[Transaction]) -> None:
        amount = transaction.amount
        if amount > account.available:
            raise InsufficientFundsError(account.client, amount, account.available)

        account.apply_change(available=-amount, total=-amount)

    def _apply_referenced(self, account: Account, transaction: Transaction,
                          referenced: Optional[Transaction]) -> None:
        if referenced.client != transaction.client:
            raise ClientMismatchError(transaction.client, referenced.client, transaction.tx)

        rule = self._referenced_rules.get(transaction.type)
        if referenced.amount is None or rule is None:
            raise InvalidTransactionError(
                f"Transaction {referenced.tx} cannot be referenced by a {transaction.type.value}"
            )

        rule(account, referenced.type, referenced.amount)

    def _dispute(self, account: Account, referenced_type: TransactionType, amount: Decimal) -> None:
        if referenced_type is TransactionType.DEPOSIT:
            account.apply_change(held=amount, available=-amount)
        elif referenced_type is TransactionType.WITHDRAWAL:
            # The withdrawal already left total, so the disputed amount re-enters as held
            account.apply_change(held=amount, total=amount)
        else:
            raise UnsupportedDisputeError(f"Unsupported dispute of a {referenced_type.value}")

    def _resolve(self, account: Account, referenced_type: TransactionType, amount: Decimal) -> None:
        account.apply_change(held=-amount, available=amount)

    def _chargeback(self, account: Account, referenced_type: TransactionType, amount: Decimal) -> None:
        if referenced_type is TransactionType.DEPOSIT:
            account.apply_change(held=-amount, total=-amount, lock=True)
        elif referenced_type is TransactionType.WITHDRAWAL:
            account.apply_change(held=-amount, available=amount, lock=True)
        else:
            raise UnsupportedChargebackError(f"Unsupported chargeback of a {referenced_type.value}")

        log_action(
            self.logger, "info", f"Account {account.client} locked by chargeback",
            action="lock_account", client_id=account.client
        )
