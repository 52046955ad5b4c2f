# Overview: Conversion between rupees at the API boundary and integer paise in storage.

"""
All stored amounts are integer paise. Rupee values only exist at the boundary:

- write: paise = round(rupees * 100), computed in Decimal so that any value with
  at most two decimal places converts exactly (float 0.29 * 100 is 28.999...).
- read: rupees = paise / 100
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .validation import ValidationError


def to_minor(value, *, field: str = "amount") -> int:
    """Convert a rupee amount (int, float, Decimal or numeric string) to integer paise."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        if isinstance(value, float):
            dec = Decimal(repr(value))
        else:
            dec = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not dec.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return int((dec * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major(amount_cents: int | None) -> float:
    """Convert paise to rupees for display; missing amounts read as 0."""
    if not amount_cents:
        return 0
    return amount_cents / 100
