# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch domain package.

This package provides batch (cohort) management functionality including:
- Batch CRUD and status lifecycle
- Class-batch links and promotion order
- Batch statistics
"""

from src.domains.batch.service import BatchService

__all__ = [
    "BatchService",
]
