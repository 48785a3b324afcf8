# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Activity history sink.

Records are added to the caller's session and committed together with the
mutation they describe. Nothing in the core updates or deletes them.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.base import service_operation
from src.domains.validation import get_module, get_user
from src.infrastructure.database.models import ActivityHistory
from src.infrastructure.database.models.base import new_id
from src.models.activity import ActivityResponse
from src.models.common import ActivityType, ServiceResult
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ActivityService:
    """Service for writing and reading activity history.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def record(
        self,
        user_id: str,
        activity_type: ActivityType,
        title: str,
        description: str | None = None,
        module_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActivityHistory:
        """Add an activity row to the current transaction.

        The row is flushed and committed by the caller's ``atomic`` block.

        Args:
            user_id: User the activity is about.
            activity_type: Kind of activity.
            title: Short headline.
            description: Longer description.
            module_id: Related module, if any.
            details: Free-form metadata stored as JSON.

        Returns:
            The pending ActivityHistory row.
        """
        activity = ActivityHistory(
            id=new_id(),
            user_id=user_id,
            module_id=module_id,
            activity_type=activity_type.value,
            title=title,
            description=description,
            details=details or {},
            created_at=utc_now(),
        )
        self.db.add(activity)

        logger.debug(
            "Recorded activity: type=%s, user=%s, module=%s",
            activity_type.value,
            user_id,
            module_id,
        )

        return activity

    @service_operation
    async def list_for_user(
        self,
        user_id: str,
        limit: int = 50,
    ) -> ServiceResult[list[ActivityResponse]]:
        """List a user's most recent activities."""
        await get_user(self.db, user_id)

        query = (
            select(ActivityHistory)
            .where(ActivityHistory.user_id == user_id)
            .order_by(ActivityHistory.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)

        return ServiceResult.ok([ActivityResponse.model_validate(a) for a in result.scalars().all()])

    @service_operation
    async def list_for_module(
        self,
        module_id: str,
        limit: int = 50,
    ) -> ServiceResult[list[ActivityResponse]]:
        """List the most recent activities recorded against a module."""
        await get_module(self.db, module_id)

        query = (
            select(ActivityHistory)
            .where(ActivityHistory.module_id == module_id)
            .order_by(ActivityHistory.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)

        return ServiceResult.ok([ActivityResponse.model_validate(a) for a in result.scalars().all()])
