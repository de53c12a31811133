from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

# Magnitudes outside [POSITIONAL_MIN, POSITIONAL_MAX) are written in exponent form.
POSITIONAL_MIN = Decimal("1e-6")
POSITIONAL_MAX = Decimal("1e21")


def _trim(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def round_sig(value: float, sig: int = 3) -> Decimal:
    """Round the exact binary value of `value` to `sig` significant figures.

    Ties go away from zero (1.125 -> 1.13, 100.5 -> 101). Values that only look
    like ties in decimal, such as 1.005, are below the tie in binary and round down.
    """
    exact = Decimal(float(value))
    quantum = Decimal(1).scaleb(exact.adjusted() - (sig - 1))
    return exact.quantize(quantum, rounding=ROUND_HALF_UP)


def format_number(value: float, sig: int = 3) -> str:
    """Round to `sig` significant figures and drop insignificant zeros.

    1.2345 -> "1.23", 100.0 -> "100", 0.001234 -> "0.00123", 1.20 -> "1.2".
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0.0:
        return "0"

    rounded = round_sig(value, sig)
    if POSITIONAL_MIN <= abs(rounded) < POSITIONAL_MAX:
        return _trim(format(rounded, "f"))

    exponent = rounded.adjusted()
    mantissa = _trim(format(rounded.scaleb(-exponent), "f"))
    return f"{mantissa}e{exponent:+d}"


def format_with_unit(value: float, unit: str, sig: int = 3) -> str:
    return f"{format_number(value, sig)} {unit}"
