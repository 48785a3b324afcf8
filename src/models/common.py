# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations, summaries and the service result envelope.

Every public service operation returns a ServiceResult. A failed result
always carries an ErrorKind so callers can branch on the kind instead of
parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class UserRole(str, Enum):
    """Closed set of user roles."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class BatchStatus(str, Enum):
    """Batch lifecycle; statuses only move forward."""

    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    GRADUATED = "GRADUATED"

    @property
    def rank(self) -> int:
        """Position of the status in the lifecycle."""
        return list(BatchStatus).index(self)


class ModuleStatus(str, Enum):
    """Module publication status."""

    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Grade(str, Enum):
    """Letter grade scale, best first."""

    A_PLUS = "A_PLUS"
    A = "A"
    B_PLUS = "B_PLUS"
    B = "B"
    C_PLUS = "C_PLUS"
    C = "C"
    D = "D"
    F = "F"


class ActivityType(str, Enum):
    """Kinds of activity history records written by the services."""

    MODULE_ENROLLED = "MODULE_ENROLLED"
    MODULE_UNENROLLED = "MODULE_UNENROLLED"
    ENROLLMENT_STATUS_CHANGED = "ENROLLMENT_STATUS_CHANGED"


class ErrorKind(str, Enum):
    """Failure taxonomy shared by every service."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ROLE = "INVALID_ROLE"
    BATCH_MISMATCH = "BATCH_MISMATCH"
    NOT_LINKED = "NOT_LINKED"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ALREADY_GRADUATED = "ALREADY_GRADUATED"
    NOT_PUBLISHED = "NOT_PUBLISHED"
    BATCH_NOT_READY = "BATCH_NOT_READY"
    HAS_PROGRESS = "HAS_PROGRESS"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_STUDENTS = "INVALID_STUDENTS"
    NO_STUDENTS = "NO_STUDENTS"
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    HAS_ENROLLMENTS = "HAS_ENROLLMENTS"


class ServiceResult(BaseModel, Generic[T]):
    """Uniform success/failure envelope returned by service operations.

    Attributes:
        success: Whether the operation succeeded.
        message: Human-readable outcome.
        data: Payload on success.
        error: Failure kind; None on success.
    """

    success: bool
    message: str = ""
    data: T | None = None
    error: ErrorKind | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "") -> "ServiceResult":
        """Build a successful result."""
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "ServiceResult":
        """Build a failed result."""
        return cls(success=False, message=message, error=error)


class UserSummary(BaseModel):
    """Minimal user info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    symbol_no: str | None = None


class ClassSummary(BaseModel):
    """Minimal class info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    section: str | None = None


class BatchSummary(BaseModel):
    """Minimal batch info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: BatchStatus
    start_year: int
    end_year: int


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total_pages: int = Field(ge=0)

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        """Compute page count from totals."""
        return cls(total=total, page=page, limit=limit, total_pages=-(-total // limit))
