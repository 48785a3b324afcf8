# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Graduation request/response schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from src.models.common import BatchSummary, Grade, UserSummary


class GraduateStudentRequest(BaseModel):
    """Request to graduate one student of a batch."""

    batch_id: str
    student_id: str
    graduation_date: date
    overall_grade: Grade | None = None
    overall_percentage: float | None = Field(default=None, ge=0, le=100)
    total_credits: float | None = Field(default=None, ge=0)
    cgpa: float | None = Field(default=None, ge=0)
    honors: str | None = Field(default=None, max_length=100)
    remarks: str | None = None


class GraduateBatchRequest(BaseModel):
    """Request to graduate a batch, optionally limited to some students."""

    batch_id: str
    graduation_date: date
    student_ids: list[str] | None = None


class GraduationUpdate(BaseModel):
    """Partial graduation update."""

    graduation_date: date | None = None
    overall_grade: Grade | None = None
    overall_percentage: float | None = Field(default=None, ge=0, le=100)
    total_credits: float | None = Field(default=None, ge=0)
    cgpa: float | None = Field(default=None, ge=0)
    honors: str | None = Field(default=None, max_length=100)
    remarks: str | None = None
    is_awarded: bool | None = None


class AttachCertificateRequest(BaseModel):
    """Request to attach an issued certificate document."""

    certificate_url: HttpUrl


class GraduationResponse(BaseModel):
    """Graduation record details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    batch_id: str
    student_id: str
    graduation_date: date
    overall_grade: Grade | None = None
    overall_percentage: float | None = None
    total_credits: float | None = None
    cgpa: float | None = None
    certificate_no: str
    certificate_url: str | None = None
    honors: str | None = None
    remarks: str | None = None
    is_awarded: bool
    awarded_at: datetime | None = None
    created_by: str | None = None
    student: UserSummary | None = None
    batch: BatchSummary | None = None


class AcademicPerformance(BaseModel):
    """Aggregate outcome of a student's completed class enrollments."""

    overall_percentage: float
    cgpa: float
    overall_grade: Grade | None = None
    completed_enrollments: int = 0


class BatchGraduationResult(BaseModel):
    """Outcome of graduating a batch."""

    graduated_count: int
    skipped_count: int
    graduations: list[GraduationResponse] = Field(default_factory=list)


class GraduationStatistics(BaseModel):
    """Graduation counts and grade distribution."""

    total: int
    awarded: int
    pending: int
    grade_distribution: dict[str, int] = Field(default_factory=dict)
