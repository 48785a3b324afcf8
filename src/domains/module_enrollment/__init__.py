# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module enrollment domain package.

This package provides module enrollment functionality including:
- Single, bulk and class-roster enrollment into published modules
- Progress-guarded unenrollment
- Enrollment statistics
"""

from src.domains.module_enrollment.service import ModuleEnrollmentService

__all__ = [
    "ModuleEnrollmentService",
]
