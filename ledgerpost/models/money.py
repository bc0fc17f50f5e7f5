"""Currency helpers. All amounts are two-place decimals."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Debits and credits must agree to within less than one cent.
BALANCE_TOLERANCE = CENT


def to_money(value: Any) -> Decimal:
    """Coerce a remote or user supplied amount to a two-place Decimal."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_wire(amount: Decimal) -> float:
    """Amounts go over the wire as JSON numbers."""
    return float(to_money(amount))
