# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class enrollment domain package.

This package provides class enrollment functionality including:
- Single, bulk and whole-batch enrollment
- Completion and grading outcome
- Promotion within a batch
"""

from src.domains.class_enrollment.service import ClassEnrollmentService

__all__ = [
    "ClassEnrollmentService",
]
