# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic performance and certificate number derivation.

Pure functions; the graduation service feeds them completed class
enrollments and the batch's certificate counter.
"""

from collections.abc import Iterable
from typing import Protocol

from src.models.common import Grade
from src.models.graduation import AcademicPerformance
from src.utils.rounding import round_half_up

# Lower bound of each grade, best first; anything below the last is F
GRADE_THRESHOLDS: tuple[tuple[float, Grade], ...] = (
    (90, Grade.A_PLUS),
    (80, Grade.A),
    (70, Grade.B_PLUS),
    (60, Grade.B),
    (50, Grade.C_PLUS),
    (40, Grade.C),
    (33, Grade.D),
)


class MarkedEnrollment(Protocol):
    """Anything carrying marks, such as a completed ClassEnrollment."""

    final_marks: float | None
    total_marks: float | None


def grade_for_percentage(percentage: float) -> Grade:
    """Map a percentage onto the letter grade scale.

    Example:
        >>> grade_for_percentage(70.0)
        <Grade.B_PLUS: 'B_PLUS'>
    """
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return Grade.F


def compute_performance(
    enrollments: Iterable[MarkedEnrollment],
    cgpa_scale: float = 10.0,
) -> AcademicPerformance:
    """Aggregate completed enrollments into percentage, CGPA and grade.

    The percentage is total obtained marks over total possible marks, not
    a mean of per-class percentages. Missing marks count as 0. With no
    enrollments the percentage and CGPA are 0 and no grade is assigned.

    Args:
        enrollments: Completed enrollments of one student in one batch.
        cgpa_scale: Top of the CGPA scale.

    Returns:
        The derived performance. Percentage and CGPA are rounded half up
        to 2 decimals; the grade uses the unrounded percentage.
    """
    enrollments = list(enrollments)
    if not enrollments:
        return AcademicPerformance(overall_percentage=0.0, cgpa=0.0, overall_grade=None)

    obtained = sum(e.final_marks or 0 for e in enrollments)
    possible = sum(e.total_marks or 0 for e in enrollments)
    # grade and cgpa come from the unrounded figure
    raw = obtained * 100 / possible if possible > 0 else 0.0

    return AcademicPerformance(
        overall_percentage=round_half_up(raw, 2),
        cgpa=round_half_up(raw / 100 * cgpa_scale, 2),
        overall_grade=grade_for_percentage(raw),
        completed_enrollments=len(enrollments),
    )


def format_certificate_number(
    end_year: int,
    sequence: int,
    prefix: str = "BATCH",
    digits: int = 4,
) -> str:
    """Build a certificate number such as ``BATCH-2025-0001``."""
    return f"{prefix}-{end_year}-{sequence:0{digits}d}"
