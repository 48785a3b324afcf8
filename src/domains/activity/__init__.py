# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Activity history domain package."""

from src.domains.activity.service import ActivityService

__all__ = [
    "ActivityService",
]
