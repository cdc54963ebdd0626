"""
Monetary Amount Policy Module

Single rounding rule for every amount crossing the engine boundary: four
fractional digits, ties rounded away from zero. NEVER uses float for
monetary values.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Optional, Union

# High precision so sums of 4dp amounts stay exact
getcontext().prec = 28

AMOUNT_PRECISION = 4
AMOUNT_QUANTUM = Decimal('0.1') ** AMOUNT_PRECISION

ZERO = Decimal('0').quantize(AMOUNT_QUANTUM)

# Optional sign, digits, optional fraction. No exponent or digit separators
PLAIN_DECIMAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def round_amount(value: Union[Decimal, int, str]) -> Decimal:
    """
    Round a value to the engine's amount precision

    ROUND_HALF_UP in the decimal module rounds ties away from zero, so
    0.00005 becomes 0.0001 and -0.00005 becomes -0.0001.

    Args:
        value: Decimal, int or decimal string

    Returns:
        Decimal with exactly four fractional digits

    Strings must be plain decimals: an optional sign, digits and an optional
    fraction. Exponent forms such as "1e3" and "1_000" separators are refused.

    Raises:
        ValueError: If the value is not a finite decimal number, or has more
            integer digits than the working precision can hold at four places
    """
    if isinstance(value, float):
        raise ValueError("Amounts must not be given as float")

    if isinstance(value, str):
        text = value.strip()
        if not PLAIN_DECIMAL.match(text):
            raise ValueError(f"Cannot convert '{value}' to Decimal")
        value = Decimal(text)
    elif not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Cannot convert '{value}' to Decimal")

    if not value.is_finite():
        raise ValueError(f"Amount must be finite, got {value}")

    try:
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount {value} exceeds the supported precision")


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse an external amount field leniently

    Empty, missing or unparseable text means "no amount" rather than an
    error. A funding transaction without an amount is rejected later by the
    ledger as an invalid transaction.
    """
    if text is None:
        return None

    text = text.strip()
    if not text:
        return None

    try:
        return round_amount(text)
    except ValueError:
        return None


def format_amount(amount: Decimal) -> str:
    """Render an amount with exactly four fractional digits, no separators"""
    return f"{round_amount(amount):.{AMOUNT_PRECISION}f}"
