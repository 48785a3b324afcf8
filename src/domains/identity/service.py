# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity service for managing users, roles and batch membership.

This module provides the IdentityService class for:
- User creation with a closed set of roles
- Assigning students to batches
- Activating and deactivating users
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.base import ConflictError, ValidationError, service_operation
from src.domains.validation import get_batch, get_user, require_student
from src.infrastructure.database.connection import atomic
from src.infrastructure.database.models import User
from src.infrastructure.database.models.base import new_id
from src.models.common import ServiceResult, UserRole
from src.models.user import UserCreateRequest, UserResponse

logger = logging.getLogger(__name__)


class IdentityService:
    """Service for managing users.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize identity service.

        Args:
            db: Async database session.
        """
        self.db = db

    @service_operation
    async def create_user(self, request: UserCreateRequest) -> ServiceResult[UserResponse]:
        """Create a user.

        Args:
            request: User creation data.

        Returns:
            Result carrying the created user.

        Raises:
            ConflictError: If the email is taken.
            ValidationError: If a non-student is given a batch.
            NotFoundError: If the batch does not exist.
        """
        email = request.email.lower()
        existing = await self.db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            raise ConflictError(f"User with email {email} already exists")

        if request.batch_id:
            if request.role != UserRole.STUDENT:
                raise ValidationError("Only students can belong to a batch")
            await get_batch(self.db, request.batch_id)

        user = User(
            id=new_id(),
            name=request.name,
            email=email,
            symbol_no=request.symbol_no,
            role=request.role.value,
            is_active=True,
            batch_id=request.batch_id,
        )

        try:
            async with atomic(self.db):
                self.db.add(user)
        except IntegrityError as e:
            raise ConflictError(f"User with email {email} already exists") from e

        logger.info("Created user: %s (%s) role=%s", user.email, user.id, user.role)

        return ServiceResult.ok(UserResponse.model_validate(user), "User created")

    @service_operation
    async def get_user(self, user_id: str) -> ServiceResult[UserResponse]:
        """Get a user by ID."""
        user = await get_user(self.db, user_id)
        return ServiceResult.ok(UserResponse.model_validate(user))

    @service_operation
    async def assign_batch(self, user_id: str, batch_id: str) -> ServiceResult[UserResponse]:
        """Move a student into a batch.

        Existing class enrollments are left untouched; new enrollments are
        validated against the new batch.

        Args:
            user_id: Student identifier.
            batch_id: Target batch identifier.

        Returns:
            Result carrying the updated user.
        """
        student = await require_student(self.db, user_id)
        await get_batch(self.db, batch_id)

        previous = student.batch_id
        async with atomic(self.db):
            student.batch_id = batch_id

        logger.info("Assigned student %s to batch %s (was %s)", user_id, batch_id, previous)

        return ServiceResult.ok(UserResponse.model_validate(student), "Batch assigned")

    @service_operation
    async def set_user_active(self, user_id: str, is_active: bool) -> ServiceResult[UserResponse]:
        """Activate or deactivate a user."""
        user = await get_user(self.db, user_id)

        async with atomic(self.db):
            user.is_active = is_active

        logger.info("Set user %s active=%s", user_id, is_active)

        return ServiceResult.ok(
            UserResponse.model_validate(user),
            "User activated" if is_active else "User deactivated",
        )

    @service_operation
    async def list_users(
        self,
        role: UserRole | None = None,
        batch_id: str | None = None,
        is_active: bool | None = None,
    ) -> ServiceResult[list[UserResponse]]:
        """List users with filtering.

        Args:
            role: Filter by role.
            batch_id: Filter by batch membership.
            is_active: Filter by active flag.

        Returns:
            Result carrying users ordered by name.
        """
        query = select(User)
        if role is not None:
            query = query.where(User.role == role.value)
        if batch_id:
            query = query.where(User.batch_id == batch_id)
        if is_active is not None:
            query = query.where(User.is_active == is_active)

        result = await self.db.execute(query.order_by(User.name))
        users = result.scalars().all()

        return ServiceResult.ok([UserResponse.model_validate(u) for u in users])
