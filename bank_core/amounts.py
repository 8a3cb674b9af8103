"""
Amount Handling

Coerces caller-supplied amounts into Decimal rounded to the configured
precision. NEVER uses float arithmetic for monetary values; floats are
converted through their string form.
"""

from decimal import Decimal, Inexact, InvalidOperation as DecimalException, ROUND_HALF_UP, localcontext
from typing import Union

from .errors import InvalidAmount

AmountLike = Union[Decimal, int, float, str]

ZERO = Decimal('0')


def to_amount(value: AmountLike, precision: int = 2) -> Decimal:
    """
    Convert a value to a finite Decimal rounded to `precision` places
    
    Raises:
        InvalidAmount: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmount(value, "Amount must be a number")
    
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (DecimalException, ValueError):
            raise InvalidAmount(value, "Amount must be a number")
    
    if not amount.is_finite():
        raise InvalidAmount(value, "Amount must be a finite number")
    
    try:
        return amount.quantize(Decimal('0.1') ** precision, rounding=ROUND_HALF_UP)
    except DecimalException:
        raise InvalidAmount(value, "Amount is out of range")


def require_non_negative(amount: Decimal) -> Decimal:
    """Reject negative amounts (opening deposits may be zero)"""
    if amount < ZERO:
        raise InvalidAmount(amount, "Amount cannot be negative")
    return amount


def require_positive(amount: Decimal) -> Decimal:
    """Reject zero and negative amounts"""
    if amount <= ZERO:
        raise InvalidAmount(amount, "Amount must be positive")
    return amount


def format_amount(amount: Decimal, precision: int = 2) -> str:
    """Format for display with thousands separators"""
    return f"{amount:,.{precision}f}"


def exact_sum(balance: Decimal, delta: Decimal) -> Decimal:
    """
    Add a signed delta to a balance without any rounding
    
    Raises:
        InvalidAmount: If the result does not fit the Decimal context precision
    """
    with localcontext() as ctx:
        ctx.traps[Inexact] = True
        try:
            return balance + delta
        except (Inexact, DecimalException):
            raise InvalidAmount(delta, "Resulting balance cannot be represented exactly")
