"""
Exact fixed-point conversions between millimetres and micrometres.

Diameters are carried as integer micrometres throughout the engine so that
limit sizes such as ``25 + 0.021`` never pick up binary floating-point error.
Conversion works on the decimal text of the value only.
"""

import re
from decimal import Decimal
from typing import Union

from fitcalc.core.errors import InvalidNumber

NumberLike = Union[str, int, Decimal, float]

# Leading zeros are ignored; more than 9 integer digits is not a diameter
_MM_PATTERN = re.compile(r"^([+-])?0*(\d{1,9})(?:\.(\d{1,3}))?$")


def _as_text(value: NumberLike) -> str:
    if isinstance(value, bool):
        raise InvalidNumber(f"Invalid D={value!r}. Use a number with up to 3 decimals.")
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        if value.bit_length() > 64:
            raise InvalidNumber(f"Invalid D={value:#x}. Use a number with up to 3 decimals.")
        return str(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidNumber(f"Invalid D={value!r}. Use a number with up to 3 decimals.")
        return format(value.normalize(), "f")
    if isinstance(value, float):
        # repr() is the shortest text that round-trips, e.g. 12.5 -> "12.5"
        return repr(value)
    raise InvalidNumber(f"Invalid D={value!r}. Use a number with up to 3 decimals.")


def mm_to_um(value: NumberLike) -> int:
    """
    Convert a millimetre value to integer micrometres without rounding.

    Accepts an optional sign, a dot or comma decimal separator and at most
    three fraction digits. The integer part is limited to 9 significant
    digits.

    Example:
        >>> mm_to_um("12.5")
        12500
        >>> mm_to_um("-0,007")
        -7
    """
    text = _as_text(value).strip().replace(",", ".", 1)
    match = _MM_PATTERN.match(text)
    if match is None:
        raise InvalidNumber(
            f"Invalid D={value!r}. Use a number with up to 3 decimals.",
            {"value": str(value)},
        )
    sign = -1 if match.group(1) == "-" else 1
    int_part = int(match.group(2))
    frac_part = int((match.group(3) or "").ljust(3, "0"))
    return sign * (int_part * 1000 + frac_part)


def um_to_mm_str(um: int) -> str:
    """Render micrometres as a millimetre string with exactly 3 decimals."""
    sign = "-" if um < 0 else ""
    whole, frac = divmod(abs(int(um)), 1000)
    return f"{sign}{whole}.{frac:03d}"


def mean_half_away_from_zero(total: int) -> int:
    """Halve ``total`` rounding .5 away from zero (5 -> 3, -5 -> -3)."""
    if total >= 0:
        return (total + 1) // 2
    return -((-total + 1) // 2)


__all__ = ["mm_to_um", "um_to_mm_str", "mean_half_away_from_zero"]
