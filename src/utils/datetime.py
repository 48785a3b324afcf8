# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every Python
datetime handled by the services is timezone-aware. Completion, award and
graduation stamps are always produced here, never taken from the caller.

Usage:
    from src.utils.datetime import utc_now

    completed_at = utc_now()
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def year_bounds(year: int) -> tuple[date, date]:
    """Get the first and last day of a calendar year.

    Args:
        year: Calendar year.

    Returns:
        Tuple of (first, last) dates, both inclusive.
    """
    return date(year, 1, 1), date(year, 12, 31)
