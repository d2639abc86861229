"""
Numeric Helpers
===============

Parsing, rounding and formatting rules shared by the caliper model and the
rule classifier.

The measurement set travels as text (what the user typed), so every numeric
field goes through ``parse_number`` before any formula touches it. Rounding is
half-up everywhere so that 0.5 ms spans and 0.5 bpm rates resolve the same way
no matter which component computes them.
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


# Leading decimal number, optional sign and exponent. Trailing text is ignored.
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(raw: Optional[str]) -> float:
    """
    Parse the leading number of a user-entered string.

    "800" -> 800.0, "  12.5ms" -> 12.5, "" -> 0.0, "abc" -> 0.0.
    Non-finite results also collapse to 0.0.

    Args:
        raw: Text as entered, or None

    Returns:
        Parsed value, or 0.0 when nothing parseable is present
    """
    if raw is None:
        return 0.0

    match = _LEADING_NUMBER.match(str(raw))
    if not match:
        return 0.0

    value = float(match.group(1))
    if not math.isfinite(value):
        return 0.0
    return value


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity."""
    return int(math.floor(value + 0.5))


def to_fixed(value: float, digits: int = 1) -> str:
    """
    Format with a fixed number of decimals, ties rounded up.

    Uses the exact binary value of ``value`` so 0.25 -> "0.3" while
    0.05 (stored slightly above) -> "0.1".
    """
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Shortest display form: 2.0 -> "2", 1.5 -> "1.5"."""
    if value == int(value):
        return str(int(value))
    return repr(value)
