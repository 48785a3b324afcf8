# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for ActivityService."""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from src.domains.activity import ActivityService
from src.models.common import ActivityType, ErrorKind


@pytest.fixture
def service(mock_db):
    return ActivityService(db=mock_db)


def _activity(user_id, module_id=None):
    activity = MagicMock()
    activity.id = str(uuid4())
    activity.user_id = user_id
    activity.module_id = module_id
    activity.activity_type = "MODULE_ENROLLED"
    activity.title = "Enrolled in Algebra Basics"
    activity.description = None
    activity.details = {"enrolled_by": "Site Admin"}
    activity.created_at = datetime(2025, 3, 1, tzinfo=timezone.utc)
    return activity


class TestRecord:
    """Tests for writing activity rows."""

    def test_record_adds_to_session_without_commit(self, service, mock_db):
        user_id, module_id = str(uuid4()), str(uuid4())

        activity = service.record(
            user_id,
            ActivityType.MODULE_ENROLLED,
            "Enrolled in Algebra Basics",
            module_id=module_id,
            details={"enrolled_by": "Site Admin"},
        )

        mock_db.add.assert_called_once_with(activity)
        mock_db.commit.assert_not_awaited()
        assert activity.activity_type == "MODULE_ENROLLED"
        assert activity.module_id == module_id
        assert activity.details == {"enrolled_by": "Site Admin"}
        assert activity.created_at is not None

    def test_record_defaults_details(self, service):
        activity = service.record(str(uuid4()), ActivityType.ENROLLMENT_STATUS_CHANGED, "Paused")

        assert activity.details == {}


class TestListing:
    """Tests for reading activity history."""

    @pytest.mark.asyncio
    async def test_list_for_user(self, service, mock_db, result, make_user):
        user = make_user()
        mock_db.execute.side_effect = [
            result(one=user),
            result(many=[_activity(user.id), _activity(user.id)]),
        ]

        outcome = await service.list_for_user(user.id)

        assert len(outcome.data) == 2
        assert outcome.data[0].activity_type == ActivityType.MODULE_ENROLLED
        assert outcome.data[0].details["enrolled_by"] == "Site Admin"

    @pytest.mark.asyncio
    async def test_list_for_missing_user(self, service, mock_db, result):
        mock_db.execute.side_effect = [result(one=None)]

        outcome = await service.list_for_user(str(uuid4()))

        assert outcome.error == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_list_for_module(self, service, mock_db, result, make_module):
        module = make_module()
        mock_db.execute.side_effect = [
            result(one=module),
            result(many=[_activity(str(uuid4()), module.id)]),
        ]

        outcome = await service.list_for_module(module.id)

        assert outcome.data[0].module_id == module.id
