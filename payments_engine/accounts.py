"""
Account Module

Per-client balance state: available funds, funds held pending a dispute,
the total of both, and the lock flag set by a chargeback. Accounts are
created lazily by the ledger and mutated only by its rules; everything
outside the ledger sees immutable AccountSnapshot copies.
"""

from decimal import Decimal, Inexact, Rounded, localcontext
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .amounts import ZERO, format_amount
from .errors import AmountOverflowError


REPORT_FIELDS = ['client', 'available', 'held', 'total', 'locked']


@dataclass
class Account:
    """
    Mutable ledger state for one client

    Invariant after every successful mutation: total == available + held.
    """
    client: int
    available: Decimal = field(default=ZERO)
    held: Decimal = field(default=ZERO)
    total: Decimal = field(default=ZERO)
    locked: bool = False

    @property
    def is_balanced(self) -> bool:
        return self.total == self.available + self.held

    def apply_change(self, available: Decimal = ZERO, held: Decimal = ZERO,
                     total: Decimal = ZERO, lock: bool = False) -> None:
        """
        Add deltas to the three balances as one step

        The new balances are computed with any rounding trapped, so every
        balance stays exact at four places, and are assigned only after all
        of them and the balance check succeed.

        Raises:
            AmountOverflowError: If a new balance needs more digits than the
                working precision holds
            ValueError: If the deltas would leave the account out of balance
        """
        try:
            with localcontext() as ctx:
                ctx.traps[Inexact] = True
                ctx.traps[Rounded] = True
                new_available = self.available + available
                new_held = self.held + held
                new_total = self.total + total
                balanced = new_total == new_available + new_held
        except (Inexact, Rounded):
            raise AmountOverflowError(self.client)

        if not balanced:
            raise ValueError(
                f"Account {self.client} out of balance: total={new_total}, "
                f"available={new_available}, held={new_held}"
            )

        self.available = new_available
        self.held = new_held
        self.total = new_total
        if lock:
            self.locked = True

    def snapshot(self) -> 'AccountSnapshot':
        """Immutable copy of the current state"""
        return AccountSnapshot(
            client=self.client,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked
        )


@dataclass(frozen=True)
class AccountSnapshot:
    """Read-only view of an account handed out by the ledger"""
    client: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    def to_dict(self) -> Dict[str, Any]:
        """Amounts rendered as four-decimal strings"""
        return {
            'client': self.client,
            'available': format_amount(self.available),
            'held': format_amount(self.held),
            'total': format_amount(self.total),
            'locked': self.locked
        }

    def to_row(self) -> List[str]:
        """Report row in REPORT_FIELDS order"""
        return [
            str(self.client),
            format_amount(self.available),
            format_amount(self.held),
            format_amount(self.total),
            'true' if self.locked else 'false'
        ]
