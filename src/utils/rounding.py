# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Decimal rounding helpers.

Python's round() uses banker's rounding; reported figures round half up.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 2) -> float:
    """Round a number half away from zero.

    Args:
        value: Number to round.
        places: Decimal places to keep.

    Returns:
        Rounded value as a float.

    Example:
        >>> round_half_up(2.675)
        2.68
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float, places: int = 2) -> float:
    """Return ``part / whole`` as a rounded percentage, 0 when ``whole`` is 0."""
    if not whole:
        return 0.0
    return round_half_up(part / whole * 100, places)
