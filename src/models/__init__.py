# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response models for the LMS core services.

Modules:
    common: Enumerations, summaries and the ServiceResult envelope.
    user: Identity requests and responses.
    class_: Class requests and responses.
    batch: Batch, class-batch and statistics schemas.
    class_enrollment: Class enrollment schemas.
    module_enrollment: Module enrollment schemas.
    graduation: Graduation schemas.
    activity: Activity history schema.
"""

from src.models.common import (
    ActivityType,
    BatchStatus,
    BatchSummary,
    ClassSummary,
    ErrorKind,
    Grade,
    ModuleStatus,
    PaginationMeta,
    ServiceResult,
    UserRole,
    UserSummary,
)

__all__ = [
    "ActivityType",
    "BatchStatus",
    "BatchSummary",
    "ClassSummary",
    "ErrorKind",
    "Grade",
    "ModuleStatus",
    "PaginationMeta",
    "ServiceResult",
    "UserRole",
    "UserSummary",
]
