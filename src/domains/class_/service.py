# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class service for managing classes.

This module provides the ClassService class for:
- Class CRUD operations
- Class activation/deactivation
- Enforcing unique (name, section) among active classes
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.base import ConflictError, service_operation
from src.domains.validation import get_class
from src.infrastructure.database.connection import atomic
from src.infrastructure.database.models import Class
from src.infrastructure.database.models.base import new_id
from src.models.class_ import ClassCreateRequest, ClassResponse, ClassUpdateRequest
from src.models.common import ServiceResult

logger = logging.getLogger(__name__)


class ClassService:
    """Service for managing classes.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize class service.

        Args:
            db: Async database session.
        """
        self.db = db

    @service_operation
    async def create_class(
        self,
        request: ClassCreateRequest,
        created_by: str | None = None,
    ) -> ServiceResult[ClassResponse]:
        """Create a new class.

        Args:
            request: Class creation data.
            created_by: ID of user creating the class.

        Returns:
            Result carrying the created class.

        Raises:
            ConflictError: If an active class has the same name and section.
        """
        await self._ensure_unique(request.name, request.section)

        class_ = Class(
            id=new_id(),
            name=request.name,
            section=request.section,
            description=request.description,
            is_active=True,
        )

        try:
            async with atomic(self.db):
                self.db.add(class_)
        except IntegrityError as e:
            label = f"{class_.name} ({class_.section})" if class_.section else class_.name
            raise ConflictError(f"An active class named {label} already exists") from e

        logger.info("Created class: %s (%s) by %s", class_.name, class_.id, created_by)

        return ServiceResult.ok(ClassResponse.model_validate(class_), "Class created")

    @service_operation
    async def list_classes(
        self,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> ServiceResult[list[ClassResponse]]:
        """List classes with filtering.

        Args:
            is_active: Filter by active status.
            search: Search in name or section.

        Returns:
            Result carrying classes ordered by name and section.
        """
        conditions = []

        if is_active is not None:
            conditions.append(Class.is_active == is_active)

        if search:
            search_pattern = f"%{search}%"
            conditions.append(
                (Class.name.ilike(search_pattern)) |
                (Class.section.ilike(search_pattern))
            )

        query = select(Class)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.db.execute(query.order_by(Class.name, Class.section))
        classes = result.scalars().all()

        return ServiceResult.ok([ClassResponse.model_validate(c) for c in classes])

    @service_operation
    async def get_class(self, class_id: str) -> ServiceResult[ClassResponse]:
        """Get class by ID."""
        class_ = await get_class(self.db, class_id)
        return ServiceResult.ok(ClassResponse.model_validate(class_))

    @service_operation
    async def update_class(
        self,
        class_id: str,
        request: ClassUpdateRequest,
    ) -> ServiceResult[ClassResponse]:
        """Update a class.

        Args:
            class_id: Class identifier.
            request: Update data; unset fields are ignored.

        Returns:
            Result carrying the updated class.

        Raises:
            NotFoundError: If class not found.
            ConflictError: If the new name/section clashes with an active class.
        """
        class_ = await get_class(self.db, class_id)
        changes = request.model_dump(exclude_unset=True)

        name = changes.get("name", class_.name)
        section = changes.get("section", class_.section)
        if class_.is_active and (name, section) != (class_.name, class_.section):
            await self._ensure_unique(name, section, exclude_id=class_.id)

        async with atomic(self.db):
            for field, value in changes.items():
                setattr(class_, field, value)

        logger.info("Updated class: %s", class_id)

        return ServiceResult.ok(ClassResponse.model_validate(class_), "Class updated")

    @service_operation
    async def deactivate_class(self, class_id: str) -> ServiceResult[ClassResponse]:
        """Deactivate a class.

        Raises:
            NotFoundError: If class not found.
        """
        class_ = await get_class(self.db, class_id)

        async with atomic(self.db):
            class_.is_active = False

        logger.info("Deactivated class: %s", class_id)

        return ServiceResult.ok(ClassResponse.model_validate(class_), "Class deactivated")

    @service_operation
    async def activate_class(self, class_id: str) -> ServiceResult[ClassResponse]:
        """Activate a class.

        Raises:
            NotFoundError: If class not found.
            ConflictError: If another active class has the same name and section.
        """
        class_ = await get_class(self.db, class_id)
        if not class_.is_active:
            await self._ensure_unique(class_.name, class_.section, exclude_id=class_.id)

        async with atomic(self.db):
            class_.is_active = True

        logger.info("Activated class: %s", class_id)

        return ServiceResult.ok(ClassResponse.model_validate(class_), "Class activated")

    async def _ensure_unique(
        self,
        name: str,
        section: str | None,
        exclude_id: str | None = None,
    ) -> None:
        """Ensure no other active class uses a name/section pair.

        Raises:
            ConflictError: If a clash exists.
        """
        query = select(Class).where(
            Class.name == name,
            Class.section.is_(None) if section is None else Class.section == section,
            Class.is_active.is_(True),
        )
        if exclude_id:
            query = query.where(Class.id != exclude_id)

        result = await self.db.execute(query)
        if result.scalars().first():
            label = f"{name} ({section})" if section else name
            raise ConflictError(f"An active class named {label} already exists")
