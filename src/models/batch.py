# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch and class-batch request/response schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.common import BatchStatus, ClassSummary, PaginationMeta
from src.models.user import UserResponse


class BatchCreateRequest(BaseModel):
    """Request to create a batch."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    start_year: int = Field(ge=1900, le=3000)
    end_year: int = Field(ge=1900, le=3000)
    start_date: date | None = None
    end_date: date | None = None
    max_students: int | None = Field(default=None, ge=1)


class BatchUpdateRequest(BaseModel):
    """Partial batch update. Status changes go through BatchStatusRequest."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    start_year: int | None = Field(default=None, ge=1900, le=3000)
    end_year: int | None = Field(default=None, ge=1900, le=3000)
    start_date: date | None = None
    end_date: date | None = None
    max_students: int | None = Field(default=None, ge=1)


class BatchStatusRequest(BaseModel):
    """Request to move a batch to a later lifecycle status."""

    status: BatchStatus


class BatchResponse(BaseModel):
    """Batch details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    status: BatchStatus
    start_year: int
    end_year: int
    start_date: date | None = None
    end_date: date | None = None
    max_students: int | None = None
    completed_at: datetime | None = None
    graduated_at: datetime | None = None
    created_at: datetime | None = None


class AttachClassRequest(BaseModel):
    """Request to offer a class within a batch."""

    class_id: str
    sequence: int = Field(ge=1)
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "AttachClassRequest":
        """Reject an end date before the start date."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class ClassBatchResponse(BaseModel):
    """A class offered within a batch."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    batch_id: str
    class_id: str
    sequence: int
    start_date: date | None = None
    end_date: date | None = None
    class_: ClassSummary | None = None


class ClassEnrollmentCount(BaseModel):
    """Active enrollment count for one class of a batch."""

    class_id: str
    count: int


class BatchStatistics(BaseModel):
    """Enrollment and graduation figures for a batch."""

    batch_id: str
    status: BatchStatus
    total_students: int
    total_classes: int
    total_enrollments: int
    total_graduations: int
    completed_enrollments: int
    completion_rate: float
    passed_enrollments: int
    pass_rate: float
    enrollments_by_class: list[ClassEnrollmentCount] = Field(default_factory=list)


class BatchPage(BaseModel):
    """A page of batches."""

    items: list[BatchResponse]
    pagination: PaginationMeta


class BatchStudentPage(BaseModel):
    """A page of the students of a batch."""

    items: list[UserResponse]
    pagination: PaginationMeta
