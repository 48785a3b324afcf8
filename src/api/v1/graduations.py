# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Graduation API endpoints.

Endpoints:
- POST /graduations - Graduate one student
- POST /graduations/batch - Graduate a batch
- GET /graduations - List graduations
- GET /graduations/statistics - Graduation statistics
- GET /graduations/{graduation_id} - Get graduation
- PUT /graduations/{graduation_id} - Update graduation
- PUT /graduations/{graduation_id}/certificate - Attach certificate
- DELETE /graduations/{graduation_id} - Revoke graduation
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor_id, get_db, unwrap
from src.domains.graduation import GraduationService
from src.models.graduation import (
    AttachCertificateRequest,
    BatchGraduationResult,
    GraduateBatchRequest,
    GraduateStudentRequest,
    GraduationResponse,
    GraduationStatistics,
    GraduationUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> GraduationService:
    """Create GraduationService instance."""
    return GraduationService(db)


@router.post(
    "",
    response_model=GraduationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Graduate student",
    description="Issue a graduation record to one student of a completed batch.",
)
async def graduate_student(
    data: GraduateStudentRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> GraduationResponse:
    """Graduate one student and issue the next certificate number."""
    logger.info("Graduating student %s of batch %s", data.student_id, data.batch_id)
    return unwrap(await _get_service(db).graduate_student(data, created_by=actor_id))


@router.post(
    "/batch",
    response_model=BatchGraduationResult,
    summary="Graduate batch",
    description=(
        "Graduate every active student of a completed batch, or the listed "
        "students. Students already graduated are skipped."
    ),
)
async def graduate_batch(
    data: GraduateBatchRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> BatchGraduationResult:
    """Graduate a batch with performance derived from completed enrollments."""
    logger.info("Graduating batch %s", data.batch_id)
    return unwrap(
        await _get_service(db).graduate_batch(
            data.batch_id,
            data.graduation_date,
            student_ids=data.student_ids,
            created_by=actor_id,
        )
    )


@router.get("", response_model=list[GraduationResponse], summary="List graduations")
async def list_graduations(
    batch_id: Annotated[str | None, Query(description="Filter by batch")] = None,
    year: Annotated[int | None, Query(ge=1900, le=3000, description="Graduation year")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[GraduationResponse]:
    """List graduations, optionally by batch and graduation year."""
    return unwrap(await _get_service(db).list_graduations(batch_id=batch_id, year=year))


@router.get(
    "/statistics",
    response_model=GraduationStatistics,
    summary="Graduation statistics",
)
async def get_graduation_statistics(
    batch_id: Annotated[str | None, Query(description="Limit to one batch")] = None,
    db: AsyncSession = Depends(get_db),
) -> GraduationStatistics:
    """Award counts and grade distribution."""
    return unwrap(await _get_service(db).get_graduation_statistics(batch_id=batch_id))


@router.get(
    "/{graduation_id}",
    response_model=GraduationResponse,
    summary="Get graduation",
)
async def get_graduation(
    graduation_id: str,
    db: AsyncSession = Depends(get_db),
) -> GraduationResponse:
    """Get a graduation by ID."""
    return unwrap(await _get_service(db).get_graduation(graduation_id))


@router.put(
    "/{graduation_id}",
    response_model=GraduationResponse,
    summary="Update graduation",
)
async def update_graduation(
    graduation_id: str,
    data: GraduationUpdate,
    db: AsyncSession = Depends(get_db),
) -> GraduationResponse:
    """Correct graduation details or award the record."""
    return unwrap(await _get_service(db).update_graduation(graduation_id, data))


@router.put(
    "/{graduation_id}/certificate",
    response_model=GraduationResponse,
    summary="Attach certificate",
)
async def attach_certificate(
    graduation_id: str,
    data: AttachCertificateRequest,
    db: AsyncSession = Depends(get_db),
) -> GraduationResponse:
    """Attach the issued certificate and mark the graduation awarded."""
    return unwrap(
        await _get_service(db).attach_certificate(graduation_id, str(data.certificate_url))
    )


@router.delete(
    "/{graduation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke graduation",
)
async def revoke_graduation(
    graduation_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a graduation record. The batch status is left unchanged."""
    logger.info("Revoking graduation: %s", graduation_id)
    unwrap(await _get_service(db).revoke_graduation(graduation_id))
