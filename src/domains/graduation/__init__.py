# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Graduation domain package.

This package provides graduation functionality including:
- Single-student and whole-batch graduation
- Academic performance derivation and certificate numbering
- Certificate award, update, revocation and statistics
"""

from src.domains.graduation.performance import (
    compute_performance,
    format_certificate_number,
    grade_for_percentage,
)
from src.domains.graduation.service import GraduationService

__all__ = [
    "GraduationService",
    "compute_performance",
    "format_certificate_number",
    "grade_for_percentage",
]
