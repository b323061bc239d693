"""Conversion between human-readable decimal strings and fixed-point token amounts.

Token amounts travel as integers scaled by ``10 ** decimals``. Conversion uses
``Decimal`` and integer arithmetic only; digits beyond the configured precision
are truncated, never rounded up.
"""

import re
from decimal import ROUND_DOWN, Decimal, DecimalException, InvalidOperation, localcontext
from typing import Union

from simpledex.errors import InvalidAmount

UINT256_MAX = 2**256 - 1

# Plain numeric text: optional sign, ASCII digits, one point, optional exponent
_NUMERIC = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def to_fixed_point(value: Union[str, Decimal, int], decimals: int) -> int:
    """Parse a decimal amount into token base units.

    Args:
        value: Amount such as "1.5" (strings are stripped of surrounding whitespace
            and must be plain numeric text: no digit separators or words)
        decimals: Token decimal precision

    Returns:
        Integer amount in base units

    Raises:
        InvalidAmount: If the value is empty, unparseable, negative, not finite,
            or does not fit in a uint256
    """
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidAmount("Amount is empty")
        if not _NUMERIC.fullmatch(value):
            raise InvalidAmount(f"Cannot parse amount: {value!r}")

    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Cannot parse amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite: {value!r}")
    if amount < 0:
        raise InvalidAmount(f"Amount must not be negative: {value!r}")
    if amount and amount.adjusted() > 78:
        raise InvalidAmount(f"Amount out of range: {value!r}")

    with localcontext() as ctx:
        # Wide enough for any uint256 value at any precision
        ctx.prec = 80 + decimals
        try:
            scaled = amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
        except DecimalException:
            raise InvalidAmount(f"Amount out of range: {value!r}")

    result = int(scaled)
    if result > UINT256_MAX:
        raise InvalidAmount(f"Amount out of range: {value!r}")
    return result


def to_decimal_string(amount: int, decimals: int) -> str:
    """Format base units as a decimal string without trailing zeros.

    ``to_decimal_string(1500000, 6) == "1.5"``, ``to_decimal_string(2000000, 6) == "2"``.
    """
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {amount}")
    if decimals == 0:
        return str(amount)

    whole, fraction = divmod(amount, 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    if not fraction_str:
        return str(whole)
    return f"{whole}.{fraction_str}"


def parse_positive(value: str, decimals: int) -> int:
    """Parse an amount that must be strictly positive after truncation."""
    amount = to_fixed_point(value, decimals)
    if amount <= 0:
        raise InvalidAmount(f"Amount must be greater than zero: {value!r}")
    return amount
