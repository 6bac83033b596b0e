"""
Module: gl_kernel.db.types
Responsibility: Decimal coercion and the single sanctioned rounding helper
    for monetary and percentage values.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.

Invariants enforced:
    - No floats anywhere in the kernel.  All amounts are Decimal.
    - round_money() is the ONLY rounding function used for financial values.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from gl_kernel.exceptions import InvalidAmountError

MONEY_DECIMAL_PLACES = 2
RATIO_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | str, field: str = "amount") -> Decimal:
    """
    Coerce an amount to a finite Decimal.

    Floats are rejected outright; their binary representation cannot carry
    an exact monetary value.

    Raises:
        TypeError: ``value`` is a float.
        InvalidAmountError: ``value`` does not parse, or is NaN or infinite.
    """
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be float")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAmountError(field, value, "is not a number") from None
    if not amount.is_finite():
        raise InvalidAmountError(field, amount, "must be finite")
    return amount


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a Decimal to the given number of places (default ROUND_HALF_UP).

    This is the only rounding function for financial values; other code
    delegates here so precision handling stays consistent.
    """
    quantize_str = "1" if decimal_places == 0 else "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)
