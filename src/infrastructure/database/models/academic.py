# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class, batch, class enrollment and graduation models."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.utils.datetime import utc_now

if TYPE_CHECKING:
    from src.infrastructure.database.models.user import User


class Class(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A course or grade-section grouping offered within batches."""

    __tablename__ = "classes"
    __table_args__ = (
        # (name, section) is unique among active classes only
        Index(
            "uq_classes_active_name_section",
            "name",
            "section",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    section: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    class_batches: Mapped[list["ClassBatch"]] = relationship(back_populates="class_")


class Batch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student cohort with a forward-only status lifecycle."""

    __tablename__ = "batches"
    __table_args__ = (
        CheckConstraint("end_year > start_year", name="year_order"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNING", index=True)
    start_year: Mapped[int] = mapped_column(Integer, nullable=False)
    end_year: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    max_students: Mapped[int | None] = mapped_column(Integer)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    graduated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # Last certificate sequence handed out; bumped with UPDATE ... RETURNING
    graduation_sequence: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False))

    students: Mapped[list["User"]] = relationship(back_populates="batch")
    class_batches: Mapped[list["ClassBatch"]] = relationship(
        back_populates="batch",
        order_by="ClassBatch.sequence",
    )


class ClassBatch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Link offering a class within a batch at a given sequence position."""

    __tablename__ = "class_batches"
    __table_args__ = (
        UniqueConstraint("class_id", "batch_id"),
    )

    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False
    )
    batch_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("batches.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)

    class_: Mapped["Class"] = relationship(back_populates="class_batches")
    batch: Mapped["Batch"] = relationship(back_populates="class_batches")


class ClassEnrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's membership in one class within one batch."""

    __tablename__ = "class_enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "batch_id"),
        CheckConstraint(
            "NOT is_completed OR completed_at IS NOT NULL",
            name="completed_at_set",
        ),
    )

    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    batch_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_passed: Mapped[bool | None] = mapped_column(Boolean)
    final_grade: Mapped[str | None] = mapped_column(String(10))
    final_marks: Mapped[float | None] = mapped_column(Float)
    total_marks: Mapped[float | None] = mapped_column(Float)
    attendance: Mapped[float | None] = mapped_column(Float)
    remarks: Mapped[str | None] = mapped_column(Text)
    enrolled_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False))
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    student: Mapped["User"] = relationship(foreign_keys=[student_id])
    class_: Mapped["Class"] = relationship()
    batch: Mapped["Batch"] = relationship()


class Graduation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's completion record for a batch."""

    __tablename__ = "graduations"
    __table_args__ = (
        UniqueConstraint("batch_id", "student_id"),
    )

    batch_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    graduation_date: Mapped[date] = mapped_column(Date, nullable=False)
    overall_grade: Mapped[str | None] = mapped_column(String(10))
    overall_percentage: Mapped[float | None] = mapped_column(Float)
    total_credits: Mapped[float | None] = mapped_column(Float)
    cgpa: Mapped[float | None] = mapped_column(Float)
    certificate_no: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    certificate_url: Mapped[str | None] = mapped_column(String(500))
    honors: Mapped[str | None] = mapped_column(String(100))
    remarks: Mapped[str | None] = mapped_column(Text)
    is_awarded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    awarded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False))

    student: Mapped["User"] = relationship(foreign_keys=[student_id])
    batch: Mapped["Batch"] = relationship()
