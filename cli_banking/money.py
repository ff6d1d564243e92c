"""
Money Handling Utilities

Balances are Decimal quantised to cents. NEVER uses float for monetary
values. Single currency only; the symbol is purely presentational.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Optional, Union

# Set global decimal context for financial precision
getcontext().prec = 28

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def as_money(value: Union[Decimal, int, str]) -> Decimal:
    """Normalize a value to Decimal with 2 fractional digits"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: Union[str, Decimal, int, None]) -> Optional[Decimal]:
    """
    Parse a human-entered amount.

    Returns the amount as money, or None when it is not a finite,
    non-negative number. Zero is allowed.
    """
    if raw is None:
        return None
    if isinstance(raw, Decimal):
        amount = raw
    else:
        try:
            amount = Decimal(str(raw).strip())
        except InvalidOperation:
            return None
    if not amount.is_finite() or amount < 0:
        return None
    if amount.is_zero():
        return ZERO
    try:
        return as_money(amount)
    except InvalidOperation:
        # Too many digits to represent in cents
        return None


def fit_balance(value: Decimal) -> Optional[Decimal]:
    """Quantise a computed balance, or None when it no longer fits in cents"""
    try:
        return as_money(value)
    except InvalidOperation:
        return None


def format_balance(amount: Decimal) -> str:
    """Fixed notation used by the account data file (e.g. 100.00)"""
    return f"{as_money(amount):f}"


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """Display form with thousands separators (e.g. $1,234.56)"""
    return f"{symbol}{as_money(amount):,.2f}"
