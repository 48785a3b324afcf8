# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for performance derivation and certificate numbering."""

from types import SimpleNamespace

import pytest

from src.domains.graduation import (
    compute_performance,
    format_certificate_number,
    grade_for_percentage,
)
from src.models.common import Grade
from src.utils.rounding import percentage, round_half_up


def marks(obtained, possible):
    return SimpleNamespace(final_marks=obtained, total_marks=possible)


class TestGradeScale:
    """Tests for the letter grade thresholds."""

    @pytest.mark.parametrize(
        ("value", "grade"),
        [
            (100, Grade.A_PLUS),
            (90, Grade.A_PLUS),
            (89.99, Grade.A),
            (80, Grade.A),
            (70, Grade.B_PLUS),
            (60, Grade.B),
            (50, Grade.C_PLUS),
            (40, Grade.C),
            (33, Grade.D),
            (32.99, Grade.F),
            (0, Grade.F),
        ],
    )
    def test_thresholds(self, value, grade):
        assert grade_for_percentage(value) == grade


class TestComputePerformance:
    """Tests for aggregating completed enrollments."""

    def test_totals_not_averages(self):
        """45/50 and 60/100 give 105/150, not the mean of 90% and 60%."""
        performance = compute_performance([marks(45, 50), marks(60, 100)])

        assert performance.overall_percentage == 70.0
        assert performance.cgpa == 7.0
        assert performance.overall_grade == Grade.B_PLUS
        assert performance.completed_enrollments == 2

    def test_no_enrollments(self):
        performance = compute_performance([])

        assert performance.overall_percentage == 0.0
        assert performance.cgpa == 0.0
        assert performance.overall_grade is None
        assert performance.completed_enrollments == 0

    def test_missing_marks_count_as_zero(self):
        performance = compute_performance([marks(None, 100), marks(80, 100)])

        assert performance.overall_percentage == 40.0
        assert performance.overall_grade == Grade.C

    def test_zero_possible_marks(self):
        performance = compute_performance([marks(None, None)])

        assert performance.overall_percentage == 0.0
        assert performance.overall_grade == Grade.F

    def test_rounds_half_up(self):
        # 2/3 of 100 = 66.666... -> 66.67; cgpa 6.667 -> 6.67
        performance = compute_performance([marks(2, 3)])

        assert performance.overall_percentage == 66.67
        assert performance.cgpa == 6.67

    def test_grade_uses_unrounded_percentage(self):
        # 89.995% is reported as 90.0 but still below the A_PLUS band
        performance = compute_performance([marks(89995, 100000)])

        assert performance.overall_grade == Grade.A

    def test_cgpa_rounded_once(self):
        performance = compute_performance([marks(449450001, 1000000000)])

        assert performance.overall_percentage == 44.95
        assert performance.cgpa == 4.49

    def test_custom_cgpa_scale(self):
        performance = compute_performance([marks(45, 50), marks(60, 100)], cgpa_scale=4.0)

        assert performance.cgpa == 2.8


class TestCertificateNumber:
    """Tests for certificate number formatting."""

    def test_default_format(self):
        assert format_certificate_number(2025, 1) == "BATCH-2025-0001"

    def test_sequence_wider_than_padding(self):
        assert format_certificate_number(2025, 12345) == "BATCH-2025-12345"

    def test_custom_prefix_and_digits(self):
        assert format_certificate_number(2030, 7, prefix="CERT", digits=3) == "CERT-2030-007"


class TestRounding:
    """Tests for the decimal rounding helpers."""

    def test_half_up_not_bankers(self):
        assert round_half_up(0.125) == 0.13
        assert round_half_up(2.5, 0) == 3.0
        assert round_half_up(2.675) == 2.68

    def test_percentage_of_zero_whole(self):
        assert percentage(5, 0) == 0.0

    def test_percentage(self):
        assert percentage(1, 3) == 33.33
        assert percentage(2, 3) == 66.67
