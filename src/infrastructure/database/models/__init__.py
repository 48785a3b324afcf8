# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the LMS schema.

Importing this package registers every table on ``Base.metadata``.
"""

from src.infrastructure.database.models.academic import (
    Batch,
    Class,
    ClassBatch,
    ClassEnrollment,
    Graduation,
)
from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.learning import (
    ActivityHistory,
    LessonProgress,
    Module,
    ModuleEnrollment,
    TopicProgress,
)
from src.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Identity
    "User",
    # Topology
    "Class",
    "Batch",
    "ClassBatch",
    # Enrollment & graduation
    "ClassEnrollment",
    "Graduation",
    # Learning
    "Module",
    "ModuleEnrollment",
    "LessonProgress",
    "TopicProgress",
    "ActivityHistory",
]
