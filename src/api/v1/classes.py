# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class management API endpoints.

Endpoints:
- POST /classes - Create class
- GET /classes - List classes
- GET /classes/{class_id} - Get class
- PUT /classes/{class_id} - Update class
- POST /classes/{class_id}/deactivate - Deactivate class
- POST /classes/{class_id}/activate - Activate class
- GET /classes/{class_id}/enrollments - Class roster
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor_id, get_db, unwrap
from src.domains.class_ import ClassService
from src.domains.class_enrollment import ClassEnrollmentService
from src.models.class_ import ClassCreateRequest, ClassResponse, ClassUpdateRequest
from src.models.class_enrollment import ClassEnrollmentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ClassService:
    """Create ClassService instance."""
    return ClassService(db)


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
    description="Create a new class. Name and section must be unique among active classes.",
)
async def create_class(
    data: ClassCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Create a new class.

    Args:
        data: Class creation request.
        actor_id: Acting user, recorded as creator.
        db: Database session.

    Returns:
        Created class response.
    """
    logger.info("Creating class: %s %s by %s", data.name, data.section, actor_id)
    return unwrap(await _get_service(db).create_class(data, created_by=actor_id))


@router.get("", response_model=list[ClassResponse], summary="List classes")
async def list_classes(
    is_active: Annotated[bool | None, Query(description="Filter by active status")] = None,
    search: Annotated[str | None, Query(description="Search by name or section")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[ClassResponse]:
    """List classes with optional filtering."""
    return unwrap(await _get_service(db).list_classes(is_active=is_active, search=search))


@router.get("/{class_id}", response_model=ClassResponse, summary="Get class")
async def get_class(
    class_id: str,
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Get a class by ID."""
    return unwrap(await _get_service(db).get_class(class_id))


@router.put("/{class_id}", response_model=ClassResponse, summary="Update class")
async def update_class(
    class_id: str,
    data: ClassUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Update class details; unset fields are left untouched."""
    return unwrap(await _get_service(db).update_class(class_id, data))


@router.post(
    "/{class_id}/deactivate",
    response_model=ClassResponse,
    summary="Deactivate class",
)
async def deactivate_class(
    class_id: str,
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Deactivate a class. Existing enrollments are kept."""
    logger.info("Deactivating class: %s", class_id)
    return unwrap(await _get_service(db).deactivate_class(class_id))


@router.post(
    "/{class_id}/activate",
    response_model=ClassResponse,
    summary="Activate class",
)
async def activate_class(
    class_id: str,
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Reactivate a deactivated class."""
    logger.info("Activating class: %s", class_id)
    return unwrap(await _get_service(db).activate_class(class_id))


@router.get(
    "/{class_id}/enrollments",
    response_model=list[ClassEnrollmentResponse],
    summary="Class roster",
)
async def list_class_enrollments(
    class_id: str,
    batch_id: Annotated[str | None, Query(description="Filter by batch")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[ClassEnrollmentResponse]:
    """Enrollments of a class, optionally within one batch."""
    return unwrap(
        await ClassEnrollmentService(db).get_class_enrollments(class_id, batch_id=batch_id)
    )
