# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch service for managing cohorts and the classes they offer.

This module provides the BatchService class for:
- Batch CRUD operations and the forward-only status lifecycle
- Attaching and detaching classes (ClassBatch links)
- Promotion order lookups
- Batch statistics and student listings
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.base import (
    ConflictError,
    HasEnrollmentsError,
    InvalidTransitionError,
    ValidationError,
    service_operation,
)
from src.domains.validation import get_batch, get_class, get_class_batch_link, require_class_batch_link
from src.infrastructure.database.connection import atomic
from src.infrastructure.database.models import Batch, ClassBatch, ClassEnrollment, Graduation, User
from src.infrastructure.database.models.base import new_id
from src.models.batch import (
    AttachClassRequest,
    BatchCreateRequest,
    BatchPage,
    BatchResponse,
    BatchStatistics,
    BatchStudentPage,
    BatchUpdateRequest,
    ClassBatchResponse,
    ClassEnrollmentCount,
)
from src.models.common import BatchStatus, ClassSummary, PaginationMeta, ServiceResult, UserRole
from src.models.user import UserResponse
from src.utils.datetime import utc_now
from src.utils.rounding import percentage

logger = logging.getLogger(__name__)


class BatchService:
    """Service for managing batches and class-batch links.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize batch service.

        Args:
            db: Async database session.
        """
        self.db = db

    # =========================================================================
    # Batch CRUD
    # =========================================================================

    @service_operation
    async def create_batch(
        self,
        request: BatchCreateRequest,
        created_by: str | None = None,
    ) -> ServiceResult[BatchResponse]:
        """Create a new batch in PLANNING status.

        Args:
            request: Batch creation data.
            created_by: ID of user creating the batch.

        Returns:
            Result carrying the created batch.

        Raises:
            ValidationError: If end_year does not follow start_year.
            ConflictError: If the name is taken.
        """
        self._check_years(request.start_year, request.end_year)
        await self._ensure_name_free(request.name)

        batch = Batch(
            id=new_id(),
            name=request.name,
            description=request.description,
            status=BatchStatus.PLANNING.value,
            start_year=request.start_year,
            end_year=request.end_year,
            start_date=request.start_date,
            end_date=request.end_date,
            max_students=request.max_students,
            graduation_sequence=0,
            created_by=created_by,
        )

        try:
            async with atomic(self.db):
                self.db.add(batch)
        except IntegrityError as e:
            raise ConflictError(f"Batch named {batch.name} already exists") from e

        logger.info("Created batch: %s (%s) by %s", batch.name, batch.id, created_by)

        return ServiceResult.ok(BatchResponse.model_validate(batch), "Batch created")

    @service_operation
    async def get_batch(self, batch_id: str) -> ServiceResult[BatchResponse]:
        """Get batch by ID."""
        batch = await get_batch(self.db, batch_id)
        return ServiceResult.ok(BatchResponse.model_validate(batch))

    @service_operation
    async def list_batches(
        self,
        status: BatchStatus | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> ServiceResult[BatchPage]:
        """List batches with filtering and pagination.

        Args:
            status: Filter by lifecycle status.
            search: Search in name or description.
            page: 1-based page number.
            limit: Page size.

        Returns:
            Result carrying a page of batches, newest start year first.
        """
        conditions = []

        if status is not None:
            conditions.append(Batch.status == status.value)

        if search:
            search_pattern = f"%{search}%"
            conditions.append(
                (Batch.name.ilike(search_pattern)) |
                (Batch.description.ilike(search_pattern))
            )

        query = select(Batch)
        if conditions:
            query = query.where(and_(*conditions))

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Batch.start_year.desc(), Batch.name)
        query = query.limit(limit).offset((page - 1) * limit)

        result = await self.db.execute(query)
        batches = result.scalars().all()

        return ServiceResult.ok(
            BatchPage(
                items=[BatchResponse.model_validate(b) for b in batches],
                pagination=PaginationMeta.build(total, page, limit),
            )
        )

    @service_operation
    async def update_batch(
        self,
        batch_id: str,
        request: BatchUpdateRequest,
    ) -> ServiceResult[BatchResponse]:
        """Update batch details.

        Args:
            batch_id: Batch identifier.
            request: Update data; unset fields are ignored.

        Returns:
            Result carrying the updated batch.

        Raises:
            NotFoundError: If batch not found.
            ValidationError: If the resulting years are out of order.
            ConflictError: If the new name is taken.
        """
        batch = await get_batch(self.db, batch_id)
        changes = request.model_dump(exclude_unset=True)

        self._check_years(
            changes.get("start_year", batch.start_year),
            changes.get("end_year", batch.end_year),
        )
        if "name" in changes and changes["name"] != batch.name:
            await self._ensure_name_free(changes["name"])

        async with atomic(self.db):
            for field, value in changes.items():
                setattr(batch, field, value)

        logger.info("Updated batch: %s", batch_id)

        return ServiceResult.ok(BatchResponse.model_validate(batch), "Batch updated")

    @service_operation
    async def update_batch_status(
        self,
        batch_id: str,
        status: BatchStatus,
        updated_by: str | None = None,
    ) -> ServiceResult[BatchResponse]:
        """Move a batch forward in its lifecycle.

        Reaching COMPLETED stamps ``completed_at``; reaching GRADUATED stamps
        ``graduated_at`` (and ``completed_at`` if the batch skipped it).

        Args:
            batch_id: Batch identifier.
            status: Target status.
            updated_by: ID of user changing the status.

        Returns:
            Result carrying the updated batch.

        Raises:
            NotFoundError: If batch not found.
            InvalidTransitionError: If the target is not later than the current status.
        """
        batch = await get_batch(self.db, batch_id)
        current = BatchStatus(batch.status)

        if status.rank <= current.rank:
            raise InvalidTransitionError(
                f"Cannot move batch from {current.value} to {status.value}"
            )

        now = utc_now()
        async with atomic(self.db):
            batch.status = status.value
            if status.rank >= BatchStatus.COMPLETED.rank and batch.completed_at is None:
                batch.completed_at = now
            if status == BatchStatus.GRADUATED:
                batch.graduated_at = now

        logger.info(
            "Batch %s status %s -> %s by %s",
            batch_id,
            current.value,
            status.value,
            updated_by,
        )

        return ServiceResult.ok(
            BatchResponse.model_validate(batch),
            f"Batch status updated to {status.value}",
        )

    # =========================================================================
    # Class-batch links
    # =========================================================================

    @service_operation
    async def attach_class(
        self,
        batch_id: str,
        request: AttachClassRequest,
    ) -> ServiceResult[ClassBatchResponse]:
        """Offer a class within a batch at a sequence position.

        Raises:
            NotFoundError: If the batch or class does not exist.
            ConflictError: If the class is already linked.
        """
        await get_batch(self.db, batch_id)
        class_ = await get_class(self.db, request.class_id)

        if await get_class_batch_link(self.db, request.class_id, batch_id):
            raise ConflictError(f"Class {request.class_id} is already linked to batch {batch_id}")

        link = ClassBatch(
            id=new_id(),
            class_id=request.class_id,
            batch_id=batch_id,
            sequence=request.sequence,
            start_date=request.start_date,
            end_date=request.end_date,
        )

        try:
            async with atomic(self.db):
                self.db.add(link)
        except IntegrityError as e:
            raise ConflictError(
                f"Class {request.class_id} is already linked to batch {batch_id}"
            ) from e

        logger.info(
            "Attached class %s to batch %s at sequence %d",
            request.class_id,
            batch_id,
            request.sequence,
        )

        return ServiceResult.ok(
            ClassBatchResponse(
                id=link.id,
                batch_id=link.batch_id,
                class_id=link.class_id,
                sequence=link.sequence,
                start_date=link.start_date,
                end_date=link.end_date,
                class_=ClassSummary.model_validate(class_),
            ),
            "Class attached to batch",
        )

    @service_operation
    async def detach_class(self, batch_id: str, class_id: str) -> ServiceResult[None]:
        """Remove a class from a batch.

        Raises:
            NotLinkedError: If the class is not linked to the batch.
            HasEnrollmentsError: If enrollments still reference the link.
        """
        link = await require_class_batch_link(self.db, class_id, batch_id)

        count_query = select(func.count()).select_from(ClassEnrollment).where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.batch_id == batch_id,
        )
        enrollments = await self._count(count_query)
        if enrollments > 0:
            raise HasEnrollmentsError(
                f"Cannot detach class with {enrollments} enrollment(s) in this batch"
            )

        async with atomic(self.db):
            await self.db.delete(link)

        logger.info("Detached class %s from batch %s", class_id, batch_id)

        return ServiceResult.ok(None, "Class detached from batch")

    @service_operation
    async def get_batch_classes(self, batch_id: str) -> ServiceResult[list[ClassBatchResponse]]:
        """List the classes of a batch in promotion order."""
        await get_batch(self.db, batch_id)

        query = (
            select(ClassBatch)
            .options(selectinload(ClassBatch.class_))
            .where(ClassBatch.batch_id == batch_id)
            .order_by(ClassBatch.sequence)
        )
        result = await self.db.execute(query)
        links = result.scalars().all()

        return ServiceResult.ok([ClassBatchResponse.model_validate(link) for link in links])

    @service_operation
    async def get_next_class(
        self,
        batch_id: str,
        class_id: str,
    ) -> ServiceResult[ClassBatchResponse | None]:
        """Find the class that follows ``class_id`` in the batch's sequence.

        Returns:
            Result carrying the next link, or None when ``class_id`` is last.

        Raises:
            NotLinkedError: If ``class_id`` is not offered in the batch.
        """
        current = await require_class_batch_link(self.db, class_id, batch_id)

        query = (
            select(ClassBatch)
            .options(selectinload(ClassBatch.class_))
            .where(
                ClassBatch.batch_id == batch_id,
                ClassBatch.sequence > current.sequence,
            )
            .order_by(ClassBatch.sequence)
            .limit(1)
        )
        result = await self.db.execute(query)
        next_link = result.scalars().first()

        if not next_link:
            return ServiceResult.ok(None, "No further class in this batch")
        return ServiceResult.ok(ClassBatchResponse.model_validate(next_link))

    # =========================================================================
    # Statistics
    # =========================================================================

    @service_operation
    async def get_batch_statistics(self, batch_id: str) -> ServiceResult[BatchStatistics]:
        """Compute enrollment and graduation figures for a batch.

        Completion rate is completed / total enrollments; pass rate is
        passed / completed enrollments. Both are percentages rounded half
        up to 2 decimals and 0 when the denominator is 0.

        Args:
            batch_id: Batch identifier.

        Returns:
            Result carrying the statistics.
        """
        batch = await get_batch(self.db, batch_id)

        in_batch = ClassEnrollment.batch_id == batch_id
        total_students = await self._count(
            select(func.count()).select_from(User).where(
                User.batch_id == batch_id,
                User.role == UserRole.STUDENT.value,
            )
        )
        total_classes = await self._count(
            select(func.count()).select_from(ClassBatch).where(ClassBatch.batch_id == batch_id)
        )
        total_enrollments = await self._count(
            select(func.count()).select_from(ClassEnrollment).where(in_batch)
        )
        completed = await self._count(
            select(func.count()).select_from(ClassEnrollment).where(
                in_batch, ClassEnrollment.is_completed.is_(True)
            )
        )
        passed = await self._count(
            select(func.count()).select_from(ClassEnrollment).where(
                in_batch, ClassEnrollment.is_passed.is_(True)
            )
        )
        total_graduations = await self._count(
            select(func.count()).select_from(Graduation).where(Graduation.batch_id == batch_id)
        )

        by_class_query = (
            select(ClassEnrollment.class_id, func.count())
            .where(in_batch, ClassEnrollment.is_active.is_(True))
            .group_by(ClassEnrollment.class_id)
        )
        by_class = await self.db.execute(by_class_query)

        return ServiceResult.ok(
            BatchStatistics(
                batch_id=batch.id,
                status=BatchStatus(batch.status),
                total_students=total_students,
                total_classes=total_classes,
                total_enrollments=total_enrollments,
                total_graduations=total_graduations,
                completed_enrollments=completed,
                completion_rate=percentage(completed, total_enrollments),
                passed_enrollments=passed,
                pass_rate=percentage(passed, completed),
                enrollments_by_class=[
                    ClassEnrollmentCount(class_id=class_id, count=count)
                    for class_id, count in by_class.all()
                ],
            )
        )

    @service_operation
    async def get_batch_students(
        self,
        batch_id: str,
        page: int = 1,
        limit: int = 10,
    ) -> ServiceResult[BatchStudentPage]:
        """List the students assigned to a batch, newest first."""
        await get_batch(self.db, batch_id)

        query = select(User).where(
            User.batch_id == batch_id,
            User.role == UserRole.STUDENT.value,
        )
        total = await self._count(select(func.count()).select_from(query.subquery()))

        query = query.order_by(User.created_at.desc()).limit(limit).offset((page - 1) * limit)
        result = await self.db.execute(query)
        students = result.scalars().all()

        return ServiceResult.ok(
            BatchStudentPage(
                items=[UserResponse.model_validate(s) for s in students],
                pagination=PaginationMeta.build(total, page, limit),
            )
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _count(self, query) -> int:
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def _ensure_name_free(self, name: str) -> None:
        """Raise ConflictError if a batch already uses ``name``."""
        result = await self.db.execute(select(Batch).where(Batch.name == name))
        if result.scalar_one_or_none():
            raise ConflictError(f"Batch named {name} already exists")

    @staticmethod
    def _check_years(start_year: int, end_year: int) -> None:
        if end_year <= start_year:
            raise ValidationError("end_year must be greater than start_year")
