# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model shared by administrators, teachers and students."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.academic import Batch


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Any actor of the system.

    ``role`` holds one of the UserRole values. ``batch_id`` is only
    meaningful for students and decides which class enrollments are valid.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    symbol_no: Mapped[str | None] = mapped_column(String(50))
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    batch_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("batches.id", ondelete="SET NULL"),
        index=True,
    )

    batch: Mapped[Optional["Batch"]] = relationship(back_populates="students")
