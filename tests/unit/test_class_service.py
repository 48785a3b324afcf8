# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Class service."""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from src.domains.class_ import ClassService
from src.infrastructure.database.models import Class
from src.models.class_ import ClassCreateRequest, ClassUpdateRequest
from src.models.common import ErrorKind


@pytest.fixture
def class_service(mock_db):
    """Create class service with mock database."""
    return ClassService(db=mock_db)


class TestClassServiceCreate:
    """Tests for class creation."""

    @pytest.mark.asyncio
    async def test_create_class_success(self, class_service, mock_db, result):
        """Test successful class creation."""
        mock_db.execute.side_effect = [result(many=[])]

        outcome = await class_service.create_class(
            ClassCreateRequest(name="Grade 10", section="B", description="Science stream")
        )

        assert outcome.success is True
        assert outcome.data.name == "Grade 10"
        assert outcome.data.section == "B"
        assert outcome.data.is_active is True
        assert isinstance(mock_db.add.call_args.args[0], Class)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_duplicate_active_class(self, class_service, mock_db, result, make_class):
        """An active class with the same name and section blocks creation."""
        mock_db.execute.side_effect = [result(many=[make_class(name="Grade 9", section="A")])]

        outcome = await class_service.create_class(ClassCreateRequest(name="Grade 9", section="A"))

        assert outcome.success is False
        assert outcome.error == ErrorKind.CONFLICT
        assert "Grade 9 (A)" in outcome.message
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_class_race_maps_unique_violation(self, class_service, mock_db, result):
        """An active class committed concurrently under the same name is a CONFLICT."""
        mock_db.execute.side_effect = [result(many=[])]
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        outcome = await class_service.create_class(ClassCreateRequest(name="Grade 10", section="B"))

        assert outcome.error == ErrorKind.CONFLICT
        assert "Grade 10 (B)" in outcome.message
        mock_db.rollback.assert_awaited_once()


class TestClassServiceUpdate:
    """Tests for class updates and activation."""

    @pytest.mark.asyncio
    async def test_update_description_skips_uniqueness_check(
        self, class_service, mock_db, result, make_class
    ):
        class_ = make_class()
        mock_db.execute.side_effect = [result(one=class_)]

        outcome = await class_service.update_class(
            class_.id, ClassUpdateRequest(description="Evening shift")
        )

        assert outcome.data.description == "Evening shift"
        assert mock_db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_rename_into_existing_class(self, class_service, mock_db, result, make_class):
        class_ = make_class(name="Grade 9", section="A")
        mock_db.execute.side_effect = [
            result(one=class_),
            result(many=[make_class(name="Grade 9", section="B")]),
        ]

        outcome = await class_service.update_class(class_.id, ClassUpdateRequest(section="B"))

        assert outcome.error == ErrorKind.CONFLICT
        assert class_.section == "A"

    @pytest.mark.asyncio
    async def test_update_missing_class(self, class_service, mock_db, result):
        mock_db.execute.side_effect = [result(one=None)]

        outcome = await class_service.update_class(str(uuid4()), ClassUpdateRequest(name="X"))

        assert outcome.error == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_deactivate_class(self, class_service, mock_db, result, make_class):
        class_ = make_class()
        mock_db.execute.side_effect = [result(one=class_)]

        outcome = await class_service.deactivate_class(class_.id)

        assert outcome.data.is_active is False
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_activate_clashing_class(self, class_service, mock_db, result, make_class):
        """Reactivating is refused while another active class holds the name."""
        class_ = make_class(is_active=False)
        mock_db.execute.side_effect = [result(one=class_), result(many=[make_class()])]

        outcome = await class_service.activate_class(class_.id)

        assert outcome.error == ErrorKind.CONFLICT
        assert class_.is_active is False

    @pytest.mark.asyncio
    async def test_activate_class(self, class_service, mock_db, result, make_class):
        class_ = make_class(is_active=False)
        mock_db.execute.side_effect = [result(one=class_), result(many=[])]

        outcome = await class_service.activate_class(class_.id)

        assert outcome.data.is_active is True


class TestClassServiceList:
    """Tests for class listing."""

    @pytest.mark.asyncio
    async def test_list_classes(self, class_service, mock_db, result, make_class):
        mock_db.execute.side_effect = [
            result(many=[make_class(section="A"), make_class(section="B")])
        ]

        outcome = await class_service.list_classes(is_active=True, search="Grade")

        assert [c.section for c in outcome.data] == ["A", "B"]
