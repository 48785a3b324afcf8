# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial LMS schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-06-02

This migration creates every table defined in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _fk(name: str, target: str, ondelete: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create LMS tables."""
    # ==========================================================================
    # 1. batches
    # ==========================================================================
    op.create_table(
        "batches",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PLANNING"),
        sa.Column("start_year", sa.Integer, nullable=False),
        sa.Column("end_year", sa.Integer, nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("max_students", sa.Integer, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("graduated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("graduation_sequence", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_batches_name"),
        sa.CheckConstraint("end_year > start_year", name="ck_batches_year_order"),
        sa.CheckConstraint(
            "status IN ('PLANNING', 'ACTIVE', 'COMPLETED', 'GRADUATED')",
            name="ck_batches_valid_status",
        ),
    )
    op.create_index("ix_batches_status", "batches", ["status"])

    # ==========================================================================
    # 2. classes
    # ==========================================================================
    op.create_table(
        "classes",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("section", sa.String(20), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
    )
    op.create_index(
        "uq_classes_active_name_section",
        "classes",
        ["name", "section"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    # ==========================================================================
    # 3. users
    # ==========================================================================
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("symbol_no", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        _fk("batch_id", "batches.id", "SET NULL", nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "role IN ('ADMIN', 'TEACHER', 'STUDENT')",
            name="ck_users_valid_role",
        ),
    )
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_batch_id", "users", ["batch_id"])

    # ==========================================================================
    # 4. modules
    # ==========================================================================
    op.create_table(
        "modules",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(220), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        _fk("teacher_id", "users.id", "SET NULL", nullable=True),
        sa.Column("enrollment_count", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("slug", name="uq_modules_slug"),
    )
    op.create_index("ix_modules_status", "modules", ["status"])

    # ==========================================================================
    # 5. class_batches
    # ==========================================================================
    op.create_table(
        "class_batches",
        _id(),
        _fk("class_id", "classes.id", "CASCADE"),
        _fk("batch_id", "batches.id", "CASCADE"),
        sa.Column("sequence", sa.Integer, nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("class_id", "batch_id", name="uq_class_batches_class_id"),
    )

    # ==========================================================================
    # 6. class_enrollments
    # ==========================================================================
    op.create_table(
        "class_enrollments",
        _id(),
        _fk("student_id", "users.id", "CASCADE"),
        _fk("class_id", "classes.id", "CASCADE"),
        _fk("batch_id", "batches.id", "CASCADE"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_completed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_passed", sa.Boolean, nullable=True),
        sa.Column("final_grade", sa.String(10), nullable=True),
        sa.Column("final_marks", sa.Float, nullable=True),
        sa.Column("total_marks", sa.Float, nullable=True),
        sa.Column("attendance", sa.Float, nullable=True),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("enrolled_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column(
            "enrolled_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "student_id",
            "class_id",
            "batch_id",
            name="uq_class_enrollments_student_id",
        ),
        sa.CheckConstraint(
            "NOT is_completed OR completed_at IS NOT NULL",
            name="ck_class_enrollments_completed_at_set",
        ),
    )
    op.create_index("ix_class_enrollments_student_id", "class_enrollments", ["student_id"])
    op.create_index("ix_class_enrollments_class_id", "class_enrollments", ["class_id"])
    op.create_index("ix_class_enrollments_batch_id", "class_enrollments", ["batch_id"])

    # ==========================================================================
    # 7. graduations
    # ==========================================================================
    op.create_table(
        "graduations",
        _id(),
        _fk("batch_id", "batches.id", "CASCADE"),
        _fk("student_id", "users.id", "CASCADE"),
        sa.Column("graduation_date", sa.Date, nullable=False),
        sa.Column("overall_grade", sa.String(10), nullable=True),
        sa.Column("overall_percentage", sa.Float, nullable=True),
        sa.Column("total_credits", sa.Float, nullable=True),
        sa.Column("cgpa", sa.Float, nullable=True),
        sa.Column("certificate_no", sa.String(50), nullable=False),
        sa.Column("certificate_url", sa.String(500), nullable=True),
        sa.Column("honors", sa.String(100), nullable=True),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("is_awarded", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("awarded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("batch_id", "student_id", name="uq_graduations_batch_id"),
        sa.UniqueConstraint("certificate_no", name="uq_graduations_certificate_no"),
    )
    op.create_index("ix_graduations_batch_id", "graduations", ["batch_id"])
    op.create_index("ix_graduations_student_id", "graduations", ["student_id"])

    # ==========================================================================
    # 8. module_enrollments
    # ==========================================================================
    op.create_table(
        "module_enrollments",
        _id(),
        _fk("student_id", "users.id", "CASCADE"),
        _fk("module_id", "modules.id", "CASCADE"),
        sa.Column("enrolled_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("progress", sa.Float, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "enrolled_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "module_id", name="uq_module_enrollments_student_id"),
    )
    op.create_index("ix_module_enrollments_student_id", "module_enrollments", ["student_id"])
    op.create_index("ix_module_enrollments_module_id", "module_enrollments", ["module_id"])

    # ==========================================================================
    # 9. lesson_progress / topic_progress
    # ==========================================================================
    for table, item_column in (("lesson_progress", "lesson_id"), ("topic_progress", "topic_id")):
        op.create_table(
            table,
            _id(),
            _fk("enrollment_id", "module_enrollments.id", "CASCADE"),
            sa.Column(item_column, postgresql.UUID(as_uuid=False), nullable=False),
            sa.Column("is_completed", sa.Boolean, nullable=False, server_default="false"),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint(
                "enrollment_id",
                item_column,
                name=f"uq_{table}_enrollment_id",
            ),
        )
        op.create_index(f"ix_{table}_enrollment_id", table, ["enrollment_id"])

    # ==========================================================================
    # 10. activity_history
    # ==========================================================================
    op.create_table(
        "activity_history",
        _id(),
        _fk("user_id", "users.id", "CASCADE"),
        _fk("module_id", "modules.id", "SET NULL", nullable=True),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_activity_history_user_id", "activity_history", ["user_id"])
    op.create_index("ix_activity_history_module_id", "activity_history", ["module_id"])
    op.create_index("ix_activity_history_created_at", "activity_history", ["created_at"])


def downgrade() -> None:
    """Drop LMS tables."""
    for table in (
        "activity_history",
        "topic_progress",
        "lesson_progress",
        "module_enrollments",
        "graduations",
        "class_enrollments",
        "class_batches",
        "modules",
        "users",
        "classes",
        "batches",
    ):
        op.drop_table(table)
