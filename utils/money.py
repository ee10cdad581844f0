"""
Money helpers.

All cart amounts are Decimal values quantized to config.MONEY_DECIMALS with
ROUND_HALF_UP. Floats never enter totals: anything coming from a collaborator
is converted through str() first.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

import config

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _quantum() -> Decimal:
    return Decimal(1).scaleb(-config.MONEY_DECIMALS)


def to_money(value) -> Decimal:
    """
    Convert value to a quantized Decimal.

    None and "" become zero. Raises ValueError on anything that is not a number.

    Examples:
        >>> to_money("10")
        Decimal('10.00')
        >>> to_money(9.995)
        Decimal('10.00')
    """
    if value is None or value == "":
        return ZERO.quantize(_quantum())
    if isinstance(value, bool):
        raise ValueError("money value must be numeric")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"money value must be numeric (got: {value!r})")
    if not amount.is_finite():
        raise ValueError(f"money value must be finite (got: {value!r})")
    return amount.quantize(_quantum(), rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Return percent% of amount, quantized."""
    return to_money(amount * percent / HUNDRED)


def format_money(amount: Decimal) -> str:
    """Format amount for display with the configured currency."""
    return f"{to_money(amount)} {config.CURRENCY}"
