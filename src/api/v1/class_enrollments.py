# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class enrollment API endpoints.

Endpoints:
- POST /class-enrollments - Enroll a student
- POST /class-enrollments/bulk - Enroll several students
- POST /class-enrollments/batch - Enroll a whole batch into a class
- GET /class-enrollments - List enrollments
- GET /class-enrollments/{enrollment_id} - Get enrollment
- PUT /class-enrollments/{enrollment_id} - Update enrollment
- POST /class-enrollments/{enrollment_id}/complete - Mark completed
- POST /class-enrollments/{enrollment_id}/promote - Promote to next class
- DELETE /class-enrollments/{enrollment_id} - Unenroll
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor_id, get_db, unwrap
from src.domains.class_enrollment import ClassEnrollmentService
from src.models.class_enrollment import (
    AcademicData,
    BulkEnrollResult,
    ClassBulkEnrollRequest,
    ClassEnrollmentFilters,
    ClassEnrollmentResponse,
    ClassEnrollmentUpdate,
    ClassEnrollRequest,
    EnrollBatchRequest,
    PromoteRequest,
    PromotionResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ClassEnrollmentService:
    """Create ClassEnrollmentService instance."""
    return ClassEnrollmentService(db)


@router.post(
    "",
    response_model=ClassEnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
    description="Enroll a student of the batch into a class offered by that batch.",
)
async def enroll_student(
    data: ClassEnrollRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> ClassEnrollmentResponse:
    """Enroll one student into a class of a batch."""
    logger.info(
        "Enrolling student %s in class %s of batch %s",
        data.student_id,
        data.class_id,
        data.batch_id,
    )
    return unwrap(
        await _get_service(db).enroll_student(
            student_id=data.student_id,
            class_id=data.class_id,
            batch_id=data.batch_id,
            enrolled_by=actor_id,
        )
    )


@router.post("/bulk", response_model=BulkEnrollResult, summary="Bulk enroll students")
async def bulk_enroll_students(
    data: ClassBulkEnrollRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> BulkEnrollResult:
    """Enroll several students; ineligible and already enrolled ones are skipped."""
    return unwrap(
        await _get_service(db).bulk_enroll_students(
            student_ids=data.student_ids,
            class_id=data.class_id,
            batch_id=data.batch_id,
            enrolled_by=actor_id,
        )
    )


@router.post("/batch", response_model=BulkEnrollResult, summary="Enroll batch into class")
async def enroll_batch_to_class(
    data: EnrollBatchRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> BulkEnrollResult:
    """Enroll every active student of a batch into one of its classes."""
    return unwrap(
        await _get_service(db).enroll_batch_to_class(
            batch_id=data.batch_id,
            class_id=data.class_id,
            enrolled_by=actor_id,
        )
    )


@router.get("", response_model=list[ClassEnrollmentResponse], summary="List enrollments")
async def list_enrollments(
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
    class_id: Annotated[str | None, Query(description="Filter by class")] = None,
    batch_id: Annotated[str | None, Query(description="Filter by batch")] = None,
    is_active: Annotated[bool | None, Query(description="Filter by active status")] = None,
    is_completed: Annotated[bool | None, Query(description="Filter by completion")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[ClassEnrollmentResponse]:
    """List class enrollments with optional filtering."""
    filters = ClassEnrollmentFilters(
        student_id=student_id,
        class_id=class_id,
        batch_id=batch_id,
        is_active=is_active,
        is_completed=is_completed,
    )
    return unwrap(await _get_service(db).list_enrollments(filters))


@router.get(
    "/{enrollment_id}",
    response_model=ClassEnrollmentResponse,
    summary="Get enrollment",
)
async def get_enrollment(
    enrollment_id: str,
    db: AsyncSession = Depends(get_db),
) -> ClassEnrollmentResponse:
    """Get a class enrollment by ID."""
    return unwrap(await _get_service(db).get_enrollment(enrollment_id))


@router.put(
    "/{enrollment_id}",
    response_model=ClassEnrollmentResponse,
    summary="Update enrollment",
)
async def update_enrollment(
    enrollment_id: str,
    data: ClassEnrollmentUpdate,
    db: AsyncSession = Depends(get_db),
) -> ClassEnrollmentResponse:
    """Update academic data or flags of an enrollment."""
    return unwrap(await _get_service(db).update_enrollment(enrollment_id, data))


@router.post(
    "/{enrollment_id}/complete",
    response_model=ClassEnrollmentResponse,
    summary="Mark enrollment completed",
)
async def mark_as_completed(
    enrollment_id: str,
    data: Annotated[AcademicData | None, Body()] = None,
    db: AsyncSession = Depends(get_db),
) -> ClassEnrollmentResponse:
    """Complete an enrollment, optionally recording its outcome."""
    return unwrap(await _get_service(db).mark_as_completed(enrollment_id, data))


@router.post(
    "/{enrollment_id}/promote",
    response_model=PromotionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Promote to next class",
)
async def promote_to_next_class(
    enrollment_id: str,
    data: PromoteRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> PromotionResult:
    """Complete the current enrollment and open one in the next class."""
    logger.info("Promoting enrollment %s to class %s", enrollment_id, data.next_class_id)
    return unwrap(
        await _get_service(db).promote_to_next_class(
            enrollment_id,
            data.next_class_id,
            enrolled_by=actor_id,
            academic_data=data.academic_data,
        )
    )


@router.delete(
    "/{enrollment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unenroll student",
)
async def unenroll_student(
    enrollment_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a class enrollment."""
    unwrap(await _get_service(db).unenroll_student(enrollment_id))
