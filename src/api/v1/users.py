# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management API endpoints.

Endpoints:
- POST /users - Create user
- GET /users - List users
- GET /users/{user_id} - Get user
- PUT /users/{user_id}/batch - Assign a student to a batch
- PUT /users/{user_id}/status - Activate or deactivate a user
- GET /users/{user_id}/activity - Activity history of a user
- GET /users/{user_id}/class-enrollments - Class enrollments of a student
- GET /users/{user_id}/module-enrollments - Module enrollments of a student
- GET /users/{user_id}/graduations - Graduations of a student
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, unwrap
from src.domains.activity import ActivityService
from src.domains.class_enrollment import ClassEnrollmentService
from src.domains.graduation import GraduationService
from src.domains.identity import IdentityService
from src.domains.module_enrollment import ModuleEnrollmentService
from src.models.activity import ActivityResponse
from src.models.class_enrollment import ClassEnrollmentResponse
from src.models.common import UserRole
from src.models.graduation import GraduationResponse
from src.models.module_enrollment import ModuleEnrollmentResponse
from src.models.user import (
    AssignBatchRequest,
    UserCreateRequest,
    UserResponse,
    UserStatusRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> IdentityService:
    """Create IdentityService instance."""
    return IdentityService(db)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    data: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Create a user; students may be placed in a batch right away."""
    logger.info("Creating user: %s (%s)", data.email, data.role.value)
    return unwrap(await _get_service(db).create_user(data))


@router.get("", response_model=list[UserResponse], summary="List users")
async def list_users(
    role: Annotated[UserRole | None, Query(description="Filter by role")] = None,
    batch_id: Annotated[str | None, Query(description="Filter by batch")] = None,
    is_active: Annotated[bool | None, Query(description="Filter by active status")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    """List users with optional filtering."""
    return unwrap(
        await _get_service(db).list_users(role=role, batch_id=batch_id, is_active=is_active)
    )


@router.get("/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Get a user by ID."""
    return unwrap(await _get_service(db).get_user(user_id))


@router.put("/{user_id}/batch", response_model=UserResponse, summary="Assign batch")
async def assign_batch(
    user_id: str,
    data: AssignBatchRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Move a student into a batch."""
    logger.info("Assigning user %s to batch %s", user_id, data.batch_id)
    return unwrap(await _get_service(db).assign_batch(user_id, data.batch_id))


@router.put("/{user_id}/status", response_model=UserResponse, summary="Set user status")
async def set_user_status(
    user_id: str,
    data: UserStatusRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Activate or deactivate a user."""
    return unwrap(await _get_service(db).set_user_active(user_id, data.is_active))


@router.get(
    "/{user_id}/activity",
    response_model=list[ActivityResponse],
    summary="User activity",
)
async def list_user_activity(
    user_id: str,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    db: AsyncSession = Depends(get_db),
) -> list[ActivityResponse]:
    """Most recent activity entries of a user."""
    return unwrap(await ActivityService(db).list_for_user(user_id, limit=limit))


@router.get(
    "/{user_id}/class-enrollments",
    response_model=list[ClassEnrollmentResponse],
    summary="Student class enrollments",
)
async def list_student_class_enrollments(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[ClassEnrollmentResponse]:
    """Every class enrollment of a student across batches."""
    return unwrap(await ClassEnrollmentService(db).get_student_enrollments(user_id))


@router.get(
    "/{user_id}/module-enrollments",
    response_model=list[ModuleEnrollmentResponse],
    summary="Student module enrollments",
)
async def list_student_module_enrollments(
    user_id: str,
    is_active: Annotated[bool | None, Query(description="Filter by active status")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[ModuleEnrollmentResponse]:
    """Every module enrollment of a student."""
    return unwrap(
        await ModuleEnrollmentService(db).get_student_enrollments(user_id, is_active=is_active)
    )


@router.get(
    "/{user_id}/graduations",
    response_model=list[GraduationResponse],
    summary="Student graduations",
)
async def list_student_graduations(
    user_id: str,
    batch_id: Annotated[str | None, Query(description="Filter by batch")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[GraduationResponse]:
    """Graduation records of a student."""
    return unwrap(await GraduationService(db).get_student_graduations(user_id, batch_id=batch_id))
