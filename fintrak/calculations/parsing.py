"""
Defensive Number Parsing

Every figure that reaches the calculators comes from a form field or a
stored JSON document, so anything non-numeric is read as zero.
"""

import math
from typing import Any


def parse_amount(value: Any) -> float:
    """
    Convert a user-supplied value to a float.

    Args:
        value: A number, numeric string, None or anything else

    Returns:
        The parsed float, or 0.0 for missing, non-numeric, NaN or
        infinite input
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0

    return number


def clamp_count(value: Any) -> float:
    """Parse a note/coin/stock count, clamping negatives to zero."""
    return max(0.0, parse_amount(value))
