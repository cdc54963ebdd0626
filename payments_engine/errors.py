"""Ledger error kinds.

Every rejection raised by the ledger engine derives from LedgerError and
carries a stable code plus the HTTP status the API answers with:

  account_locked          423
  invalid_transaction     400
  insufficient_funds      422
  client_mismatch         409
  unsupported_dispute     400
  unsupported_chargeback  400
  amount_overflow         422

A rejected transaction never changes balances, the lock flag or history.
"""


class LedgerError(Exception):
    """Base ledger error."""

    code = "ledger_error"
    http_status = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"code": self.code, "error": type(self).__name__, "message": self.message}


class AccountLockedError(LedgerError):
    code = "account_locked"
    http_status = 423

    def __init__(self, client: int) -> None:
        self.client = client
        super().__init__(f"Account {client} is locked, no further transactions are accepted")


class InvalidTransactionError(LedgerError):
    code = "invalid_transaction"
    http_status = 400


class InsufficientFundsError(LedgerError):
    code = "insufficient_funds"
    http_status = 422

    def __init__(self, client: int, required, available) -> None:
        self.client = client
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds for client {client}: required {required}, available {available}"
        )


class ClientMismatchError(LedgerError):
    code = "client_mismatch"
    http_status = 409

    def __init__(self, client: int, referenced_client: int, tx: int) -> None:
        self.client = client
        self.referenced_client = referenced_client
        self.tx = tx
        super().__init__(
            f"Transaction {tx} belongs to client {referenced_client}, not client {client}"
        )


class UnsupportedDisputeError(LedgerError):
    code = "unsupported_dispute"
    http_status = 400


class UnsupportedChargebackError(LedgerError):
    code = "unsupported_chargeback"
    http_status = 400


class AmountOverflowError(LedgerError):
    code = "amount_overflow"
    http_status = 422

    def __init__(self, client: int) -> None:
        self.client = client
        super().__init__(f"Balance of account {client} would exceed the supported precision")


class MalformedRecordError(Exception):
    """Raised by the CSV reader for a row that cannot form a transaction."""

    def __init__(self, line_number: int, reason: str) -> None:
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Malformed record on line {line_number}: {reason}")
