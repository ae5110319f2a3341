"""
Amount codec: display-decimal strings <-> integer base units.

Base units are always Python ints (arbitrary precision). Decimal strings are
split and padded as text; no float or Decimal rounding is ever involved.
"""

import re

from x402_solana.exceptions import ErrorKind, X402Error
from x402_solana.types import MAX_AMOUNT_DIGITS

_DECIMAL_RE = re.compile(r"^(?P<whole>[0-9]*)(?:\.(?P<fraction>[0-9]*))?$")


def amount_to_base_units(amount: str, decimals: int) -> int:
    """
    Convert a display amount (e.g. "0.001") to integer base units.

    The fractional part is right-padded with zeros to ``decimals`` digits.
    Digits beyond the precision are only tolerated when they are zeros;
    anything else would be silently truncated and raises MALFORMED_AMOUNT.

    Args:
        amount: Non-negative decimal string
        decimals: Asset decimal precision

    Returns:
        Amount in base units

    Raises:
        X402Error(MALFORMED_AMOUNT): amount is not a plain non-negative decimal,
            or carries more significant fractional digits than the asset supports
        X402Error(AMOUNT_OUT_OF_RANGE): amount has more base-unit digits than
            MAX_AMOUNT_DIGITS
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    if not isinstance(amount, str):
        raise X402Error(
            ErrorKind.MALFORMED_AMOUNT,
            f"Amount must be a decimal string, got {type(amount).__name__}",
        )

    text = amount.strip()
    match = _DECIMAL_RE.match(text)
    if not text or text == "." or match is None:
        raise X402Error(ErrorKind.MALFORMED_AMOUNT, f"Malformed amount: {amount!r}")

    whole = match.group("whole") or "0"
    fraction = match.group("fraction") or ""

    if len(fraction) > decimals:
        excess = fraction[decimals:]
        if excess.strip("0"):
            raise X402Error(
                ErrorKind.MALFORMED_AMOUNT,
                f"Amount {amount!r} has more than {decimals} fractional digits",
            )
        fraction = fraction[:decimals]

    digits = (whole + fraction.ljust(decimals, "0")).lstrip("0") or "0"
    if len(digits) > MAX_AMOUNT_DIGITS:
        raise X402Error(
            ErrorKind.AMOUNT_OUT_OF_RANGE,
            f"Amount exceeds {MAX_AMOUNT_DIGITS} digits in base units",
        )
    return int(digits)


def base_units_to_amount(base_units: int, decimals: int) -> str:
    """
    Convert integer base units to the canonical display amount.

    Canonical form has no trailing fractional zeros and no trailing dot
    ("1000000" at 9 decimals -> "0.001", 5_000_000_000 -> "5").
    """
    if isinstance(base_units, bool) or not isinstance(base_units, int):
        raise X402Error(
            ErrorKind.MALFORMED_AMOUNT,
            f"Base units must be an integer, got {type(base_units).__name__}",
        )
    if base_units < 0:
        raise X402Error(ErrorKind.MALFORMED_AMOUNT, f"Negative base units: {base_units}")
    if decimals == 0:
        return str(base_units)

    digits = str(base_units).rjust(decimals + 1, "0")
    whole = digits[:-decimals]
    fraction = digits[-decimals:].rstrip("0")
    return f"{whole}.{fraction}" if fraction else whole


def canonical_amount(amount: str, decimals: int) -> str:
    """Normalize a display amount to its canonical form for the given precision"""
    return base_units_to_amount(amount_to_base_units(amount, decimals), decimals)
