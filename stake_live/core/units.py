"""Token amount validation, conversion and display formatting for STAKE LIVE.

All accounting happens on Python ints in base units (1 MYST = 10**18 base
units). Decimal is used for exact string conversion; float only appears in
to_display(), at the rendering boundary.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Union

from ..config.settings import TOKEN_DECIMALS

_DIGITS = re.compile(r"[0-9]+")
_PRECISION = 80

Number = Union[int, float, Decimal, str]


class InvalidAmountError(ValueError):
    """Raised when a token amount is negative, fractional or not a number."""


def normalize_amount(value: Any) -> int:
    """Validate a base-unit amount and return it as an int.

    Accepts non-negative ints and strings of decimal digits (the form the
    fetcher reports counters in).

    Raises:
        InvalidAmountError: For negatives, floats, bools and anything else.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Amount must be an integer, got {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise InvalidAmountError(f"Amount must be >= 0, got {value}")
        return value
    if isinstance(value, str):
        text = value.strip()
        if not _DIGITS.fullmatch(text):
            raise InvalidAmountError(f"Amount is not a base-unit integer: {value!r}")
        return int(text)
    raise InvalidAmountError(
        f"Unsupported amount type: {type(value).__name__}"
    )


def parse_units(text: Union[str, int, Decimal], decimals: int = TOKEN_DECIMALS) -> int:
    """Convert a display-unit decimal ("0.0001") into base units.

    Raises:
        InvalidAmountError: If the value is negative, not a number, or has
            more fractional digits than the token supports.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            amount = Decimal(str(text).strip())
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Not a decimal amount: {text!r}") from exc
        if not amount.is_finite() or amount < 0:
            raise InvalidAmountError(f"Amount must be a finite value >= 0, got {text!r}")
        scaled = amount.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise InvalidAmountError(
                f"Too many decimal places for {decimals}-decimal token: {text!r}"
            )
        return int(scaled)


def format_units(units: int, decimals: int = TOKEN_DECIMALS) -> str:
    """Exact display-unit string for a base-unit amount ("1.0", "0.0001")."""
    sign = "-" if units < 0 else ""
    whole, frac = divmod(abs(units), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


def to_display(units: int, decimals: int = TOKEN_DECIMALS) -> float:
    """Base units -> float display units. Rendering boundary only."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return float(Decimal(units).scaleb(-decimals))


def format_number(value: Number, decimals: int = 4) -> str:
    """Format with "." thousands separators and "," as decimal separator.

    Non-numeric input renders as zero with the requested decimals.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            num = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            num = None
        if num is None or not num.is_finite():
            return "0" + ("," + "0" * decimals if decimals > 0 else "")

        fixed = num.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)

    text = f"{fixed:f}"
    sign = ""
    if text.startswith("-"):
        sign, text = "-", text[1:]
    whole, _, frac = text.partition(".")
    grouped = f"{int(whole):,}".replace(",", ".")
    return sign + grouped + ("," + frac if frac else "")
