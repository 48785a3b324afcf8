# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared lookups and role checks used by the domain services.

Each helper issues exactly one query and raises a ServiceError subclass
when the entity is missing or has the wrong role.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.base import InvalidRoleError, NotFoundError, NotLinkedError, UnauthorizedError
from src.infrastructure.database.models import Batch, Class, ClassBatch, Module, User
from src.models.common import UserRole


async def get_user(db: AsyncSession, user_id: str, label: str = "User") -> User:
    """Get a user by ID.

    Args:
        db: Async database session.
        user_id: User identifier.
        label: Noun used in the error message.

    Raises:
        NotFoundError: If the user does not exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError(f"{label} {user_id} not found")
    return user


async def require_student(db: AsyncSession, student_id: str) -> User:
    """Get a user and ensure it is a student.

    Raises:
        NotFoundError: If the user does not exist.
        InvalidRoleError: If the user is not a student.
    """
    user = await get_user(db, student_id, label="Student")
    if user.role != UserRole.STUDENT.value:
        raise InvalidRoleError(f"User {student_id} is not a student")
    return user


async def require_admin(db: AsyncSession, user_id: str) -> User:
    """Ensure the acting user is an administrator.

    A missing actor is reported as unauthorized rather than not found so
    that callers cannot probe user IDs.

    Raises:
        UnauthorizedError: If the user is missing or not an admin.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or user.role != UserRole.ADMIN.value:
        raise UnauthorizedError("Only administrators can perform this action")
    return user


async def get_batch(db: AsyncSession, batch_id: str) -> Batch:
    """Get a batch by ID.

    Raises:
        NotFoundError: If the batch does not exist.
    """
    result = await db.execute(select(Batch).where(Batch.id == batch_id))
    batch = result.scalar_one_or_none()
    if not batch:
        raise NotFoundError(f"Batch {batch_id} not found")
    return batch


async def get_class(db: AsyncSession, class_id: str) -> Class:
    """Get a class by ID.

    Raises:
        NotFoundError: If the class does not exist.
    """
    result = await db.execute(select(Class).where(Class.id == class_id))
    class_ = result.scalar_one_or_none()
    if not class_:
        raise NotFoundError(f"Class {class_id} not found")
    return class_


async def get_module(db: AsyncSession, module_id: str) -> Module:
    """Get a module by ID.

    Raises:
        NotFoundError: If the module does not exist.
    """
    result = await db.execute(select(Module).where(Module.id == module_id))
    module = result.scalar_one_or_none()
    if not module:
        raise NotFoundError(f"Module {module_id} not found")
    return module


async def get_class_batch_link(
    db: AsyncSession,
    class_id: str,
    batch_id: str,
) -> ClassBatch | None:
    """Get the link offering a class within a batch, if any."""
    result = await db.execute(
        select(ClassBatch).where(
            ClassBatch.class_id == class_id,
            ClassBatch.batch_id == batch_id,
        )
    )
    return result.scalar_one_or_none()


async def require_class_batch_link(
    db: AsyncSession,
    class_id: str,
    batch_id: str,
) -> ClassBatch:
    """Ensure a class is offered within a batch.

    Raises:
        NotLinkedError: If no ClassBatch row links them.
    """
    link = await get_class_batch_link(db, class_id, batch_id)
    if not link:
        raise NotLinkedError(f"Class {class_id} is not linked to batch {batch_id}")
    return link
