# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module enrollment request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import PaginationMeta, UserSummary


class ModuleEnrollRequest(BaseModel):
    """Request to enroll a student into a module."""

    module_id: str
    student_id: str


class ModuleBulkEnrollRequest(BaseModel):
    """Request to enroll several students into a module."""

    module_id: str
    student_ids: list[str] = Field(min_length=1)


class EnrollClassInModuleRequest(BaseModel):
    """Request to enroll a class roster into a module."""

    module_id: str
    class_id: str


class UnenrollRequest(BaseModel):
    """Optional reason recorded with an unenrollment."""

    reason: str | None = Field(default=None, max_length=500)


class ModuleSummary(BaseModel):
    """Minimal module info embedded in enrollment responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    status: str


class ModuleEnrollmentResponse(BaseModel):
    """Module enrollment details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    module_id: str
    enrolled_by: str | None = None
    progress: float = 0.0
    is_active: bool
    enrolled_at: datetime | None = None
    completed_at: datetime | None = None
    student: UserSummary | None = None
    module: ModuleSummary | None = None


class ModuleEnrollmentDetail(ModuleEnrollmentResponse):
    """Enrollment details with progress counters."""

    lessons_completed: int = 0
    topics_completed: int = 0


class ModuleEnrollmentPage(BaseModel):
    """A page of module enrollments."""

    items: list[ModuleEnrollmentResponse]
    pagination: PaginationMeta


class ModuleBulkEnrollResult(BaseModel):
    """Outcome of a bulk module enrollment."""

    enrolled: int = 0
    skipped: int = 0


class ModuleEnrollmentStats(BaseModel):
    """Aggregate enrollment figures for a module."""

    total_enrollments: int = 0
    active_enrollments: int = 0
    completed_count: int = 0
    avg_progress: float = 0.0
    completion_rate: float = 0.0
