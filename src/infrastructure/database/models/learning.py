# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning module, module enrollment, progress and activity models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.user import User
from src.utils.datetime import utc_now


class Module(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A unit of course content students are enrolled into."""

    __tablename__ = "modules"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DRAFT", index=True)
    teacher_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL")
    )
    # Maintained alongside enrollment inserts and deletes
    enrollment_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )


class ModuleEnrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's membership in a module."""

    __tablename__ = "module_enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "module_id"),
    )

    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    enrolled_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    module: Mapped["Module"] = relationship()
    student: Mapped["User"] = relationship(foreign_keys=[student_id])


class LessonProgress(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Per-lesson progress within a module enrollment."""

    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "lesson_id"),
    )

    enrollment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("module_enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lesson_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class TopicProgress(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Per-topic progress within a module enrollment."""

    __tablename__ = "topic_progress"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "topic_id"),
    )

    enrollment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("module_enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class ActivityHistory(UUIDPrimaryKeyMixin, Base):
    """Write-only audit record of a user-facing action."""

    __tablename__ = "activity_history"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("modules.id", ondelete="SET NULL"), index=True
    )
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )
