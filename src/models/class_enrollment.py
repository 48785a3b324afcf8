# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class enrollment request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import BatchSummary, ClassSummary, UserSummary


class ClassEnrollRequest(BaseModel):
    """Request to enroll one student into a class of a batch."""

    student_id: str
    class_id: str
    batch_id: str


class ClassBulkEnrollRequest(BaseModel):
    """Request to enroll several students into a class of a batch."""

    student_ids: list[str] = Field(min_length=1)
    class_id: str
    batch_id: str


class EnrollBatchRequest(BaseModel):
    """Request to enroll every active student of a batch into a class."""

    batch_id: str
    class_id: str


class AcademicData(BaseModel):
    """Outcome fields recorded when an enrollment is completed."""

    is_passed: bool | None = None
    final_grade: str | None = Field(default=None, max_length=10)
    final_marks: float | None = Field(default=None, ge=0)
    total_marks: float | None = Field(default=None, gt=0)
    attendance: float | None = Field(default=None, ge=0, le=100)
    remarks: str | None = None


class ClassEnrollmentUpdate(AcademicData):
    """Partial enrollment update.

    ``completed_at`` is never accepted from callers; it is stamped by the
    service when ``is_completed`` flips to true.
    """

    is_active: bool | None = None
    is_completed: bool | None = None


class PromoteRequest(BaseModel):
    """Request to move a student to the next class of the same batch."""

    next_class_id: str
    academic_data: AcademicData | None = None


class ClassEnrollmentFilters(BaseModel):
    """Filters for listing class enrollments."""

    student_id: str | None = None
    class_id: str | None = None
    batch_id: str | None = None
    is_active: bool | None = None
    is_completed: bool | None = None


class ClassEnrollmentResponse(BaseModel):
    """Class enrollment details with embedded summaries."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    class_id: str
    batch_id: str
    is_active: bool
    is_completed: bool
    is_passed: bool | None = None
    final_grade: str | None = None
    final_marks: float | None = None
    total_marks: float | None = None
    attendance: float | None = None
    remarks: str | None = None
    enrolled_by: str | None = None
    enrolled_at: datetime | None = None
    completed_at: datetime | None = None
    student: UserSummary | None = None
    class_: ClassSummary | None = None
    batch: BatchSummary | None = None


class BulkEnrollResult(BaseModel):
    """Outcome of a bulk class enrollment."""

    enrolled_count: int = 0
    skipped_count: int = 0
    reason: Literal["NO_VALID_STUDENTS", "ALL_ALREADY_ENROLLED"] | None = None


class PromotionResult(BaseModel):
    """The completed enrollment and the newly opened one."""

    previous: ClassEnrollmentResponse
    current: ClassEnrollmentResponse
