# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module enrollment API endpoints.

Every mutating endpoint requires the acting admin's id in the actor
header.

Endpoints:
- POST /module-enrollments - Enroll a student
- POST /module-enrollments/bulk - Enroll several students
- POST /module-enrollments/class - Enroll a class roster
- GET /module-enrollments/{enrollment_id} - Enrollment with progress counts
- POST /module-enrollments/{enrollment_id}/toggle - Flip active flag
- DELETE /module-enrollments/{enrollment_id} - Unenroll
- GET /module-enrollments/modules/{module_id} - Enrollments of a module
- GET /module-enrollments/modules/{module_id}/stats - Module statistics
- GET /module-enrollments/modules/{module_id}/activity - Module activity
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_actor_id, unwrap
from src.domains.activity import ActivityService
from src.domains.module_enrollment import ModuleEnrollmentService
from src.models.activity import ActivityResponse
from src.models.module_enrollment import (
    EnrollClassInModuleRequest,
    ModuleBulkEnrollResult,
    ModuleBulkEnrollRequest,
    ModuleEnrollmentDetail,
    ModuleEnrollmentPage,
    ModuleEnrollmentResponse,
    ModuleEnrollmentStats,
    ModuleEnrollRequest,
    UnenrollRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ModuleEnrollmentService:
    """Create ModuleEnrollmentService instance."""
    return ModuleEnrollmentService(db)


@router.post(
    "",
    response_model=ModuleEnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student in module",
)
async def enroll_student(
    data: ModuleEnrollRequest,
    admin_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
) -> ModuleEnrollmentResponse:
    """Enroll a student into a published module."""
    logger.info("Enrolling student %s in module %s", data.student_id, data.module_id)
    return unwrap(
        await _get_service(db).enroll_student(data.module_id, data.student_id, enrolled_by=admin_id)
    )


@router.post(
    "/bulk",
    response_model=ModuleBulkEnrollResult,
    summary="Bulk enroll students in module",
)
async def bulk_enroll_students(
    data: ModuleBulkEnrollRequest,
    admin_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
) -> ModuleBulkEnrollResult:
    """Enroll several students; already enrolled ones are skipped."""
    return unwrap(
        await _get_service(db).bulk_enroll_students(
            data.module_id,
            data.student_ids,
            enrolled_by=admin_id,
        )
    )


@router.post(
    "/class",
    response_model=ModuleBulkEnrollResult,
    summary="Enroll class in module",
)
async def enroll_class_in_module(
    data: EnrollClassInModuleRequest,
    admin_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
) -> ModuleBulkEnrollResult:
    """Enroll every student actively enrolled in a class."""
    return unwrap(
        await _get_service(db).enroll_class_in_module(
            data.module_id,
            data.class_id,
            enrolled_by=admin_id,
        )
    )


@router.get(
    "/modules/{module_id}",
    response_model=ModuleEnrollmentPage,
    summary="List module enrollments",
)
async def list_module_enrollments(
    module_id: str,
    is_active: Annotated[bool | None, Query(description="Filter by active status")] = None,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Page size")] = 20,
    db: AsyncSession = Depends(get_db),
) -> ModuleEnrollmentPage:
    """Enrollments of a module, newest first."""
    return unwrap(
        await _get_service(db).get_module_enrollments(
            module_id,
            is_active=is_active,
            page=page,
            limit=limit,
        )
    )


@router.get(
    "/modules/{module_id}/stats",
    response_model=ModuleEnrollmentStats,
    summary="Module enrollment statistics",
)
async def get_enrollment_stats(
    module_id: str,
    db: AsyncSession = Depends(get_db),
) -> ModuleEnrollmentStats:
    """Counts, average progress and completion rate of a module."""
    return unwrap(await _get_service(db).get_enrollment_stats(module_id))


@router.get(
    "/modules/{module_id}/activity",
    response_model=list[ActivityResponse],
    summary="Module activity",
)
async def list_module_activity(
    module_id: str,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum results")] = 50,
    db: AsyncSession = Depends(get_db),
) -> list[ActivityResponse]:
    """Most recent enrollment activity recorded against a module."""
    return unwrap(await ActivityService(db).list_for_module(module_id, limit=limit))


@router.get(
    "/{enrollment_id}",
    response_model=ModuleEnrollmentDetail,
    summary="Get module enrollment",
)
async def get_enrollment(
    enrollment_id: str,
    db: AsyncSession = Depends(get_db),
) -> ModuleEnrollmentDetail:
    """Get an enrollment with completed lesson and topic counts."""
    return unwrap(await _get_service(db).get_enrollment(enrollment_id))


@router.post(
    "/{enrollment_id}/toggle",
    response_model=ModuleEnrollmentResponse,
    summary="Toggle enrollment status",
)
async def toggle_enrollment_status(
    enrollment_id: str,
    admin_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
) -> ModuleEnrollmentResponse:
    """Flip the active flag of an enrollment."""
    return unwrap(await _get_service(db).toggle_enrollment_status(enrollment_id, admin_id))


@router.delete(
    "/{enrollment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unenroll student from module",
)
async def unenroll_student(
    enrollment_id: str,
    data: Annotated[UnenrollRequest | None, Body()] = None,
    admin_id: str = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove an enrollment that has no recorded progress."""
    reason = data.reason if data else None
    logger.info("Unenrolling module enrollment %s by %s", enrollment_id, admin_id)
    unwrap(await _get_service(db).unenroll_student(enrollment_id, admin_id, reason=reason))
