"""
Transaction Record Module

Immutable description of one instruction fed to the ledger: deposits and
withdrawals carry an amount, disputes, resolves and chargebacks reference
an earlier deposit or withdrawal by its transaction id and carry none.
Records are structurally valid on construction but not business-validated.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from .amounts import round_amount


MAX_CLIENT_ID = 2 ** 16 - 1  # u16
MAX_TX_ID = 2 ** 32 - 1      # u32


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "deposit"          # Credit to the client's account
    WITHDRAWAL = "withdrawal"    # Debit from the client's account
    DISPUTE = "dispute"          # Claim that a funding transaction was erroneous
    RESOLVE = "resolve"          # Dispute settled, held funds released
    CHARGEBACK = "chargeback"    # Dispute settled by reversal, account locked

    @property
    def is_funding(self) -> bool:
        """Deposits and withdrawals move money and may be referenced later"""
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)

    @property
    def is_referencing(self) -> bool:
        """Disputes, resolves and chargebacks point at a funding transaction"""
        return not self.is_funding


@dataclass(frozen=True)
class Transaction:
    """
    One ledger instruction

    Referencing transactions reuse the tx id of the funding transaction they
    target, so tx ids are unique per funding transaction only.
    """
    type: TransactionType
    client: int
    tx: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not isinstance(self.type, TransactionType):
            raise ValueError(f"Unknown transaction type: {self.type!r}")

        if isinstance(self.client, bool) or not isinstance(self.client, int):
            raise ValueError(f"Client id must be an integer, got {self.client!r}")
        if not 0 <= self.client <= MAX_CLIENT_ID:
            raise ValueError(f"Client id {self.client} out of range 0..{MAX_CLIENT_ID}")

        if isinstance(self.tx, bool) or not isinstance(self.tx, int):
            raise ValueError(f"Transaction id must be an integer, got {self.tx!r}")
        if not 0 <= self.tx <= MAX_TX_ID:
            raise ValueError(f"Transaction id {self.tx} out of range 0..{MAX_TX_ID}")

        if self.amount is not None:
            object.__setattr__(self, 'amount', round_amount(self.amount))

    @property
    def is_funding(self) -> bool:
        return self.type.is_funding

    @property
    def has_amount(self) -> bool:
        return self.amount is not None

    @classmethod
    def deposit(cls, client: int, tx: int, amount) -> 'Transaction':
        return cls(TransactionType.DEPOSIT, client, tx, amount)

    @classmethod
    def withdrawal(cls, client: int, tx: int, amount) -> 'Transaction':
        return cls(TransactionType.WITHDRAWAL, client, tx, amount)

    @classmethod
    def dispute(cls, client: int, tx: int) -> 'Transaction':
        return cls(TransactionType.DISPUTE, client, tx)

    @classmethod
    def resolve(cls, client: int, tx: int) -> 'Transaction':
        return cls(TransactionType.RESOLVE, client, tx)

    @classmethod
    def chargeback(cls, client: int, tx: int) -> 'Transaction':
        return cls(TransactionType.CHARGEBACK, client, tx)

    def describe(self) -> str:
        """Short human readable form used in log messages"""
        if self.amount is None:
            return f"{self.type.value} tx={self.tx} client={self.client}"
        return f"{self.type.value} tx={self.tx} client={self.client} amount={self.amount}"
