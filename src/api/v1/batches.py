# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch management API endpoints.

Endpoints:
- POST /batches - Create batch
- GET /batches - List batches (paginated)
- GET /batches/{batch_id} - Get batch
- PUT /batches/{batch_id} - Update batch
- PUT /batches/{batch_id}/status - Advance batch lifecycle
- POST /batches/{batch_id}/classes - Attach class
- GET /batches/{batch_id}/classes - Classes of a batch in sequence order
- DELETE /batches/{batch_id}/classes/{class_id} - Detach class
- GET /batches/{batch_id}/classes/{class_id}/next - Next class in sequence
- GET /batches/{batch_id}/students - Students of a batch (paginated)
- GET /batches/{batch_id}/statistics - Batch statistics
- GET /batches/{batch_id}/graduations - Graduations of a batch
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor_id, get_db, unwrap
from src.domains.batch import BatchService
from src.domains.graduation import GraduationService
from src.models.batch import (
    AttachClassRequest,
    BatchCreateRequest,
    BatchPage,
    BatchResponse,
    BatchStatistics,
    BatchStatusRequest,
    BatchStudentPage,
    BatchUpdateRequest,
    ClassBatchResponse,
)
from src.models.common import BatchStatus
from src.models.graduation import GraduationResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> BatchService:
    """Create BatchService instance."""
    return BatchService(db)


@router.post(
    "",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create batch",
)
async def create_batch(
    data: BatchCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """Create a batch in PLANNING status."""
    logger.info("Creating batch: %s (%d-%d)", data.name, data.start_year, data.end_year)
    return unwrap(await _get_service(db).create_batch(data, created_by=actor_id))


@router.get("", response_model=BatchPage, summary="List batches")
async def list_batches(
    status_filter: Annotated[
        BatchStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    search: Annotated[str | None, Query(description="Search by name")] = None,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Page size")] = 10,
    db: AsyncSession = Depends(get_db),
) -> BatchPage:
    """List batches, newest first."""
    return unwrap(
        await _get_service(db).list_batches(
            status=status_filter,
            search=search,
            page=page,
            limit=limit,
        )
    )


@router.get("/{batch_id}", response_model=BatchResponse, summary="Get batch")
async def get_batch(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """Get a batch by ID."""
    return unwrap(await _get_service(db).get_batch(batch_id))


@router.put("/{batch_id}", response_model=BatchResponse, summary="Update batch")
async def update_batch(
    batch_id: str,
    data: BatchUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """Update batch details."""
    return unwrap(await _get_service(db).update_batch(batch_id, data))


@router.put(
    "/{batch_id}/status",
    response_model=BatchResponse,
    summary="Update batch status",
    description="Advance the batch lifecycle. Status can only move forward.",
)
async def update_batch_status(
    batch_id: str,
    data: BatchStatusRequest,
    actor_id: str | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """Move a batch to a later lifecycle status."""
    logger.info("Batch %s status -> %s by %s", batch_id, data.status.value, actor_id)
    return unwrap(
        await _get_service(db).update_batch_status(batch_id, data.status, updated_by=actor_id)
    )


@router.post(
    "/{batch_id}/classes",
    response_model=ClassBatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach class",
)
async def attach_class(
    batch_id: str,
    data: AttachClassRequest,
    db: AsyncSession = Depends(get_db),
) -> ClassBatchResponse:
    """Offer a class within a batch at the given sequence position."""
    return unwrap(await _get_service(db).attach_class(batch_id, data))


@router.get(
    "/{batch_id}/classes",
    response_model=list[ClassBatchResponse],
    summary="List batch classes",
)
async def list_batch_classes(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[ClassBatchResponse]:
    """Classes of a batch in sequence order."""
    return unwrap(await _get_service(db).get_batch_classes(batch_id))


@router.delete(
    "/{batch_id}/classes/{class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Detach class",
)
async def detach_class(
    batch_id: str,
    class_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove a class from a batch. Fails while enrollments reference it."""
    unwrap(await _get_service(db).detach_class(batch_id, class_id))


@router.get(
    "/{batch_id}/classes/{class_id}/next",
    response_model=ClassBatchResponse | None,
    summary="Next class",
)
async def get_next_class(
    batch_id: str,
    class_id: str,
    db: AsyncSession = Depends(get_db),
) -> ClassBatchResponse | None:
    """The class following ``class_id`` in the batch, or null for the last one."""
    return unwrap(await _get_service(db).get_next_class(batch_id, class_id))


@router.get(
    "/{batch_id}/students",
    response_model=BatchStudentPage,
    summary="List batch students",
)
async def list_batch_students(
    batch_id: str,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Page size")] = 10,
    db: AsyncSession = Depends(get_db),
) -> BatchStudentPage:
    """Students assigned to a batch."""
    return unwrap(await _get_service(db).get_batch_students(batch_id, page=page, limit=limit))


@router.get(
    "/{batch_id}/statistics",
    response_model=BatchStatistics,
    summary="Batch statistics",
)
async def get_batch_statistics(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
) -> BatchStatistics:
    """Enrollment, completion and graduation figures of a batch."""
    return unwrap(await _get_service(db).get_batch_statistics(batch_id))


@router.get(
    "/{batch_id}/graduations",
    response_model=list[GraduationResponse],
    summary="List batch graduations",
)
async def list_batch_graduations(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[GraduationResponse]:
    """Graduations of a batch ordered by certificate number."""
    return unwrap(await GraduationService(db).get_batch_graduations(batch_id))
