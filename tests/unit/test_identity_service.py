# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for IdentityService."""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from src.domains.identity import IdentityService
from src.models.common import ErrorKind, UserRole
from src.models.user import UserCreateRequest


@pytest.fixture
def service(mock_db):
    """Create identity service with mock database."""
    return IdentityService(db=mock_db)


class TestCreateUser:
    """Tests for user creation."""

    @pytest.mark.asyncio
    async def test_create_student_in_batch(self, service, mock_db, result, make_batch):
        batch = make_batch()
        mock_db.execute.side_effect = [result(one=None), result(one=batch)]

        outcome = await service.create_user(
            UserCreateRequest(
                name="Bikash Thapa",
                email="Bikash@School.edu",
                role=UserRole.STUDENT,
                symbol_no="2021-017",
                batch_id=batch.id,
            )
        )

        assert outcome.success is True
        assert outcome.data.email == "bikash@school.edu"
        assert outcome.data.role == UserRole.STUDENT
        assert outcome.data.batch_id == batch.id
        assert outcome.data.is_active is True
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service, mock_db, result, make_user):
        mock_db.execute.side_effect = [result(one=make_user())]

        outcome = await service.create_user(
            UserCreateRequest(name="Asha Rai", email="asha@school.edu", role=UserRole.STUDENT)
        )

        assert outcome.error == ErrorKind.CONFLICT
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_teacher_cannot_join_batch(self, service, mock_db, result):
        mock_db.execute.side_effect = [result(one=None)]

        outcome = await service.create_user(
            UserCreateRequest(
                name="Teacher",
                email="teacher@school.edu",
                role=UserRole.TEACHER,
                batch_id=str(uuid4()),
            )
        )

        assert outcome.error == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_unknown_batch(self, service, mock_db, result):
        mock_db.execute.side_effect = [result(one=None), result(one=None)]

        outcome = await service.create_user(
            UserCreateRequest(
                name="Asha Rai",
                email="asha@school.edu",
                role=UserRole.STUDENT,
                batch_id=str(uuid4()),
            )
        )

        assert outcome.error == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_email_race_maps_to_conflict(self, service, mock_db, result):
        mock_db.execute.side_effect = [result(one=None)]
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("users_email_key"))

        outcome = await service.create_user(
            UserCreateRequest(name="Admin", email="admin@school.edu", role=UserRole.ADMIN)
        )

        assert outcome.error == ErrorKind.CONFLICT
        mock_db.rollback.assert_awaited_once()


class TestMembership:
    """Tests for batch assignment and activation."""

    @pytest.mark.asyncio
    async def test_assign_batch(self, service, mock_db, result, make_user, make_batch):
        student, batch = make_user(batch_id=str(uuid4())), make_batch()
        mock_db.execute.side_effect = [result(one=student), result(one=batch)]

        outcome = await service.assign_batch(student.id, batch.id)

        assert outcome.data.batch_id == batch.id
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_assign_batch_to_teacher(self, service, mock_db, result, make_user):
        teacher = make_user(role="TEACHER")
        mock_db.execute.side_effect = [result(one=teacher)]

        outcome = await service.assign_batch(teacher.id, str(uuid4()))

        assert outcome.error == ErrorKind.INVALID_ROLE
        assert teacher.batch_id is None

    @pytest.mark.asyncio
    async def test_deactivate_user(self, service, mock_db, result, make_user):
        user = make_user()
        mock_db.execute.side_effect = [result(one=user)]

        outcome = await service.set_user_active(user.id, False)

        assert outcome.data.is_active is False
        assert outcome.message == "User deactivated"

    @pytest.mark.asyncio
    async def test_list_users(self, service, mock_db, result, make_user):
        mock_db.execute.side_effect = [result(many=[make_user(), make_user(name="Bikash")])]

        outcome = await service.list_users(role=UserRole.STUDENT, is_active=True)

        assert len(outcome.data) == 2
