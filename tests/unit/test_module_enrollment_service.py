# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for ModuleEnrollmentService."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from src.domains.module_enrollment import ModuleEnrollmentService
from src.infrastructure.database.models import ActivityHistory, ModuleEnrollment
from src.models.common import ErrorKind


@pytest.fixture
def service(mock_db):
    """Create module enrollment service with mock database."""
    return ModuleEnrollmentService(db=mock_db)


@pytest.fixture
def admin(make_user):
    return make_user(name="Site Admin", email="admin@school.edu", role="ADMIN")


@pytest.fixture
def module(make_module):
    return make_module()


class TestEnrollStudent:
    """Tests for single student module enrollment."""

    @pytest.mark.asyncio
    async def test_enroll_student_success(self, service, mock_db, result, admin, module, make_user):
        student = make_user()
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=module),
            result(one=student),
            result(one=None),
            result(),
        ]

        outcome = await service.enroll_student(module.id, student.id, enrolled_by=admin.id)

        assert outcome.success is True
        assert outcome.data.student_id == student.id
        assert outcome.data.module_id == module.id
        assert outcome.data.progress == 0.0
        assert outcome.data.is_active is True
        assert outcome.data.module.title == module.title

        added = [call.args[0] for call in mock_db.add.call_args_list]
        assert isinstance(added[0], ModuleEnrollment)
        assert isinstance(added[1], ActivityHistory)
        assert added[1].activity_type == "MODULE_ENROLLED"
        assert added[1].details["enrolled_by"] == admin.name
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_enroll_requires_admin(self, service, mock_db, result, make_user):
        teacher = make_user(role="TEACHER")
        mock_db.execute.side_effect = [result(one=teacher)]

        outcome = await service.enroll_student(str(uuid4()), str(uuid4()), enrolled_by=teacher.id)

        assert outcome.error == ErrorKind.UNAUTHORIZED
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_actor_is_unauthorized(self, service, mock_db, result):
        mock_db.execute.side_effect = [result(one=None)]

        outcome = await service.enroll_student(str(uuid4()), str(uuid4()), enrolled_by=str(uuid4()))

        assert outcome.error == ErrorKind.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_enroll_in_draft_module(self, service, mock_db, result, admin, make_module):
        draft = make_module(status="DRAFT")
        mock_db.execute.side_effect = [result(one=admin), result(one=draft)]

        outcome = await service.enroll_student(draft.id, str(uuid4()), enrolled_by=admin.id)

        assert outcome.error == ErrorKind.NOT_PUBLISHED

    @pytest.mark.asyncio
    async def test_enroll_already_enrolled(
        self, service, mock_db, result, admin, module, make_user, make_module_enrollment
    ):
        student = make_user()
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=module),
            result(one=student),
            result(one=make_module_enrollment()),
        ]

        outcome = await service.enroll_student(module.id, student.id, enrolled_by=admin.id)

        assert outcome.error == ErrorKind.ALREADY_ENROLLED
        mock_db.commit.assert_not_awaited()


class TestBulkEnroll:
    """Tests for bulk and class-roster module enrollment."""

    @pytest.mark.asyncio
    async def test_bulk_enroll_success(self, service, mock_db, result, admin, module, make_user):
        students = [make_user(), make_user()]
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=module),
            result(many=students),
            result(many=[]),
            result(),
        ]

        outcome = await service.bulk_enroll_students(
            module.id, [s.id for s in students], enrolled_by=admin.id
        )

        assert outcome.data.enrolled == 2
        assert outcome.data.skipped == 0
        assert len(mock_db.add_all.call_args.args[0]) == 2
        assert mock_db.add.call_count == 2
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bulk_enroll_repeat_is_idempotent(
        self, service, mock_db, result, admin, module, make_user
    ):
        """A second identical call reports everything as skipped."""
        students = [make_user(), make_user(), make_user()]
        ids = [s.id for s in students]
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=module),
            result(many=students),
            result(many=ids),
        ]

        outcome = await service.bulk_enroll_students(module.id, ids, enrolled_by=admin.id)

        assert outcome.success is True
        assert outcome.data.enrolled == 0
        assert outcome.data.skipped == 3
        mock_db.add_all.assert_not_called()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bulk_enroll_race_maps_unique_violation(
        self, service, mock_db, result, admin, module, make_user
    ):
        """A concurrent insert for one of the students is ALREADY_ENROLLED."""
        students = [make_user(), make_user()]
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=module),
            result(many=students),
            result(many=[]),
            result(),
        ]
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        outcome = await service.bulk_enroll_students(
            module.id, [s.id for s in students], enrolled_by=admin.id
        )

        assert outcome.error == ErrorKind.ALREADY_ENROLLED
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bulk_enroll_rejects_non_students(
        self, service, mock_db, result, admin, module, make_user
    ):
        student = make_user()
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=module),
            result(many=[student]),
        ]

        outcome = await service.bulk_enroll_students(
            module.id, [student.id, str(uuid4())], enrolled_by=admin.id
        )

        assert outcome.error == ErrorKind.INVALID_STUDENTS

    @pytest.mark.asyncio
    async def test_enroll_empty_class(self, service, mock_db, result, admin, make_class):
        class_ = make_class()
        mock_db.execute.side_effect = [result(one=admin), result(one=class_), result(many=[])]

        outcome = await service.enroll_class_in_module(str(uuid4()), class_.id, enrolled_by=admin.id)

        assert outcome.error == ErrorKind.NO_STUDENTS


class TestUnenrollAndToggle:
    """Tests for unenrollment and activation toggling."""

    @pytest.mark.asyncio
    async def test_unenroll_with_progress_is_blocked(
        self, service, mock_db, result, admin, module, make_module_enrollment
    ):
        enrollment = make_module_enrollment(module_id=module.id, module=module)
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=enrollment),
            result(scalar=2),
            result(scalar=0),
        ]

        outcome = await service.unenroll_student(enrollment.id, admin.id)

        assert outcome.error == ErrorKind.HAS_PROGRESS
        assert "2 lesson(s)" in outcome.message
        mock_db.delete.assert_not_awaited()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unenroll_without_progress(
        self, service, mock_db, result, admin, module, make_module_enrollment
    ):
        enrollment = make_module_enrollment(module_id=module.id, module=module)
        mock_db.execute.side_effect = [
            result(one=admin),
            result(one=enrollment),
            result(scalar=0),
            result(scalar=0),
            result(),
        ]

        outcome = await service.unenroll_student(enrollment.id, admin.id, reason="Wrong module")

        assert outcome.success is True
        mock_db.delete.assert_awaited_once_with(enrollment)
        activity = mock_db.add.call_args.args[0]
        assert activity.activity_type == "MODULE_UNENROLLED"
        assert activity.description == "Unenrolled by Site Admin: Wrong module"
        assert activity.details["reason"] == "Wrong module"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_toggle_deactivates(
        self, service, mock_db, result, admin, module, make_user, make_module_enrollment
    ):
        enrollment = make_module_enrollment(
            module_id=module.id, module=module, student=make_user()
        )
        mock_db.execute.side_effect = [result(one=admin), result(one=enrollment)]

        outcome = await service.toggle_enrollment_status(enrollment.id, admin.id)

        assert outcome.data.is_active is False
        activity = mock_db.add.call_args.args[0]
        assert activity.activity_type == "ENROLLMENT_STATUS_CHANGED"
        assert activity.details["old_status"] == "active"
        assert activity.details["new_status"] == "inactive"


class TestQueries:
    """Tests for enrollment reads and statistics."""

    @pytest.mark.asyncio
    async def test_get_enrollment_counts_progress(
        self, service, mock_db, result, module, make_module_enrollment
    ):
        enrollment = make_module_enrollment(module_id=module.id, module=module)
        mock_db.execute.side_effect = [result(one=enrollment), result(scalar=3), result(scalar=1)]

        outcome = await service.get_enrollment(enrollment.id)

        assert outcome.data.lessons_completed == 3
        assert outcome.data.topics_completed == 1

    @pytest.mark.asyncio
    async def test_stats_for_empty_module(self, service, mock_db, result, module):
        mock_db.execute.side_effect = [result(one=module), result(rows=[])]

        outcome = await service.get_enrollment_stats(module.id)

        stats = outcome.data
        assert stats.total_enrollments == 0
        assert stats.active_enrollments == 0
        assert stats.completed_count == 0
        assert stats.avg_progress == 0
        assert stats.completion_rate == 0

    @pytest.mark.asyncio
    async def test_stats_round_half_up(self, service, mock_db, result, module):
        done = datetime(2025, 2, 1, tzinfo=timezone.utc)
        rows = [(True, 50.0, None), (False, 100.0, done), (True, 25.5, None)]
        mock_db.execute.side_effect = [result(one=module), result(rows=rows)]

        outcome = await service.get_enrollment_stats(module.id)

        stats = outcome.data
        assert stats.total_enrollments == 3
        assert stats.active_enrollments == 2
        assert stats.completed_count == 1
        assert stats.avg_progress == 59
        assert stats.completion_rate == 33

    @pytest.mark.asyncio
    async def test_module_enrollments_paginated(
        self, service, mock_db, result, module, make_user, make_module_enrollment
    ):
        items = [make_module_enrollment(module=module, student=make_user()) for _ in range(2)]
        mock_db.execute.side_effect = [result(one=module), result(scalar=12), result(many=items)]

        outcome = await service.get_module_enrollments(module.id, page=2, limit=5)

        assert len(outcome.data.items) == 2
        assert outcome.data.pagination.total == 12
        assert outcome.data.pagination.total_pages == 3
