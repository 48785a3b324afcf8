# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- rounding: Half-up decimal rounding for reported figures
"""

from src.utils.datetime import utc_now, year_bounds
from src.utils.logging import bind_context, clear_context, setup_logging
from src.utils.rounding import percentage, round_half_up

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "year_bounds",
    # Rounding
    "round_half_up",
    "percentage",
]
