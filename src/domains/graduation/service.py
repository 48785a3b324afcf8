# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Graduation service for issuing numbered graduation certificates.

This module provides the GraduationService class for:
- Graduating single students and whole batches
- Certificate numbering from a per-batch counter
- Awarding certificates, updates and revocation
- Graduation listings and statistics

Certificate numbers take the form ``BATCH-<end_year>-<seq>``. The sequence
comes from ``Batch.graduation_sequence``, incremented with a single
``UPDATE ... RETURNING`` inside the same transaction as the graduation
insert, so concurrent graduations of one batch never share a number.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import GraduationSettings, get_settings
from src.domains.base import (
    AlreadyGraduatedError,
    BatchMismatchError,
    BatchNotReadyError,
    NotFoundError,
    NoStudentsError,
    service_operation,
)
from src.domains.graduation.performance import compute_performance, format_certificate_number
from src.domains.validation import get_batch, get_user, require_student
from src.infrastructure.database.connection import atomic
from src.infrastructure.database.models import Batch, ClassEnrollment, Graduation, User
from src.infrastructure.database.models.base import new_id
from src.models.common import BatchStatus, BatchSummary, ServiceResult, UserRole, UserSummary
from src.models.graduation import (
    AcademicPerformance,
    BatchGraduationResult,
    GraduateStudentRequest,
    GraduationResponse,
    GraduationStatistics,
    GraduationUpdate,
)
from src.utils.datetime import utc_now, year_bounds

logger = logging.getLogger(__name__)

# Batches in these statuses may graduate students
READY_STATUSES = frozenset({BatchStatus.COMPLETED.value, BatchStatus.GRADUATED.value})

UNGRADED = "UNGRADED"

_RESPONSE_FIELDS = (
    "id",
    "batch_id",
    "student_id",
    "graduation_date",
    "overall_grade",
    "overall_percentage",
    "total_credits",
    "cgpa",
    "certificate_no",
    "certificate_url",
    "honors",
    "remarks",
    "is_awarded",
    "awarded_at",
    "created_by",
)


class GraduationService:
    """Service for managing graduations.

    Attributes:
        db: Async database session.
        settings: Certificate numbering and grading settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: GraduationSettings | None = None,
    ) -> None:
        """Initialize graduation service.

        Args:
            db: Async database session.
            settings: Graduation settings; defaults to the application settings.
        """
        self.db = db
        self.settings = settings or get_settings().graduation

    @service_operation
    async def graduate_student(
        self,
        request: GraduateStudentRequest,
        created_by: str | None = None,
    ) -> ServiceResult[GraduationResponse]:
        """Graduate one student of a batch.

        Performance fields are taken from the request as given.

        Args:
            request: Graduation data.
            created_by: ID of user creating the record.

        Returns:
            Result carrying the graduation with its certificate number.

        Raises:
            NotFoundError: If the batch or student is missing.
            BatchNotReadyError: If the batch is not COMPLETED or GRADUATED.
            InvalidRoleError: If the user is not a student.
            BatchMismatchError: If the student belongs to another batch.
            AlreadyGraduatedError: If the student already graduated.
        """
        batch = await self._get_ready_batch(request.batch_id)

        student = await require_student(self.db, request.student_id)
        if student.batch_id != batch.id:
            raise BatchMismatchError(f"Student {student.id} is not part of batch {batch.id}")

        existing = await self.db.execute(
            select(Graduation).where(
                Graduation.batch_id == batch.id,
                Graduation.student_id == student.id,
            )
        )
        if existing.scalar_one_or_none():
            raise AlreadyGraduatedError("Student has already graduated from this batch")

        graduation = await self._issue(
            batch,
            student,
            request.graduation_date,
            created_by,
            overall_grade=request.overall_grade.value if request.overall_grade else None,
            overall_percentage=request.overall_percentage,
            cgpa=request.cgpa,
            total_credits=request.total_credits,
            honors=request.honors,
            remarks=request.remarks,
        )

        return ServiceResult.ok(
            self._to_response(graduation, student, batch),
            "Student graduated successfully",
        )

    @service_operation
    async def graduate_batch(
        self,
        batch_id: str,
        graduation_date: date,
        student_ids: list[str] | None = None,
        created_by: str | None = None,
    ) -> ServiceResult[BatchGraduationResult]:
        """Graduate the students of a batch and mark it GRADUATED.

        Targets are ``student_ids`` restricted to the batch's students, or
        every active student of the batch. Already-graduated students are
        skipped. Each graduation commits on its own, so an interrupted run
        can simply be repeated.

        Args:
            batch_id: Batch identifier.
            graduation_date: Date printed on the certificates.
            student_ids: Optional subset of students to graduate.
            created_by: ID of user running the graduation.

        Returns:
            Result carrying graduated and skipped counts and the new records.

        Raises:
            NotFoundError: If the batch is missing.
            BatchNotReadyError: If the batch is not COMPLETED or GRADUATED.
            NoStudentsError: If no eligible student is found.
        """
        batch = await self._get_ready_batch(batch_id)

        query = select(User).where(
            User.batch_id == batch_id,
            User.role == UserRole.STUDENT.value,
        )
        if student_ids:
            query = query.where(User.id.in_(student_ids))
        else:
            query = query.where(User.is_active.is_(True))

        result = await self.db.execute(query.order_by(User.name))
        students = list(result.scalars().all())
        if not students:
            raise NoStudentsError("No eligible students found for graduation")

        existing_result = await self.db.execute(
            select(Graduation.student_id).where(
                Graduation.batch_id == batch_id,
                Graduation.student_id.in_([s.id for s in students]),
            )
        )
        already = set(existing_result.scalars().all())

        graduations = []
        for student in students:
            if student.id in already:
                continue
            performance = await self.calculate_performance(student.id, batch_id)
            graduation = await self._issue(
                batch,
                student,
                graduation_date,
                created_by,
                overall_grade=performance.overall_grade.value if performance.overall_grade else None,
                overall_percentage=performance.overall_percentage,
                cgpa=performance.cgpa,
            )
            graduations.append(self._to_response(graduation, student, batch))

        if batch.status != BatchStatus.GRADUATED.value:
            async with atomic(self.db):
                batch.status = BatchStatus.GRADUATED.value
                batch.graduated_at = utc_now()

        logger.info(
            "Graduated batch %s: graduated=%d, skipped=%d, by=%s",
            batch_id,
            len(graduations),
            len(already),
            created_by,
        )

        return ServiceResult.ok(
            BatchGraduationResult(
                graduated_count=len(graduations),
                skipped_count=len(already),
                graduations=graduations,
            ),
            f"Successfully graduated {len(graduations)} student(s)",
        )

    async def calculate_performance(self, student_id: str, batch_id: str) -> AcademicPerformance:
        """Derive a student's performance from completed class enrollments in a batch."""
        result = await self.db.execute(
            select(ClassEnrollment).where(
                ClassEnrollment.student_id == student_id,
                ClassEnrollment.batch_id == batch_id,
                ClassEnrollment.is_completed.is_(True),
            )
        )
        return compute_performance(result.scalars().all(), cgpa_scale=self.settings.cgpa_scale)

    @service_operation
    async def get_graduation(self, graduation_id: str) -> ServiceResult[GraduationResponse]:
        """Get graduation by ID."""
        graduation = await self._get_graduation(graduation_id)
        return ServiceResult.ok(self._to_loaded_response(graduation))

    @service_operation
    async def get_batch_graduations(self, batch_id: str) -> ServiceResult[list[GraduationResponse]]:
        """List the graduations of a batch in certificate order."""
        await get_batch(self.db, batch_id)

        graduations = await self._query_graduations(
            Graduation.batch_id == batch_id,
            order_by=Graduation.certificate_no,
        )
        return ServiceResult.ok([self._to_loaded_response(g) for g in graduations])

    @service_operation
    async def get_student_graduations(
        self,
        student_id: str,
        batch_id: str | None = None,
    ) -> ServiceResult[list[GraduationResponse]]:
        """List a student's graduations, optionally within one batch."""
        await get_user(self.db, student_id, label="Student")

        conditions = [Graduation.student_id == student_id]
        if batch_id:
            conditions.append(Graduation.batch_id == batch_id)

        graduations = await self._query_graduations(*conditions)
        return ServiceResult.ok([self._to_loaded_response(g) for g in graduations])

    @service_operation
    async def list_graduations(
        self,
        batch_id: str | None = None,
        year: int | None = None,
    ) -> ServiceResult[list[GraduationResponse]]:
        """List graduations, optionally by batch and graduation year."""
        conditions = []
        if batch_id:
            conditions.append(Graduation.batch_id == batch_id)
        if year:
            first, last = year_bounds(year)
            conditions.append(Graduation.graduation_date.between(first, last))

        graduations = await self._query_graduations(*conditions)
        return ServiceResult.ok([self._to_loaded_response(g) for g in graduations])

    @service_operation
    async def update_graduation(
        self,
        graduation_id: str,
        patch: GraduationUpdate,
    ) -> ServiceResult[GraduationResponse]:
        """Apply a partial update to a graduation.

        Marking a graduation awarded for the first time stamps ``awarded_at``.

        Raises:
            NotFoundError: If the graduation is missing.
        """
        graduation = await self._get_graduation(graduation_id)
        changes = patch.model_dump(exclude_unset=True)
        if changes.get("overall_grade") is not None:
            changes["overall_grade"] = changes["overall_grade"].value
        await self._apply_update(graduation, changes)

        logger.info("Updated graduation: %s", graduation_id)

        return ServiceResult.ok(self._to_loaded_response(graduation), "Graduation updated successfully")

    @service_operation
    async def attach_certificate(
        self,
        graduation_id: str,
        certificate_url: str,
    ) -> ServiceResult[GraduationResponse]:
        """Attach the issued certificate document and mark it awarded.

        Raises:
            NotFoundError: If the graduation is missing.
        """
        graduation = await self._get_graduation(graduation_id)
        await self._apply_update(
            graduation,
            {"certificate_url": str(certificate_url), "is_awarded": True},
        )

        logger.info("Attached certificate to graduation %s", graduation_id)

        return ServiceResult.ok(self._to_loaded_response(graduation), "Certificate attached")

    @service_operation
    async def revoke_graduation(self, graduation_id: str) -> ServiceResult[None]:
        """Delete a graduation record.

        The batch status is left as it is.

        Raises:
            NotFoundError: If the graduation is missing.
        """
        graduation = await self._get_graduation(graduation_id)

        async with atomic(self.db):
            await self.db.delete(graduation)

        logger.info(
            "Revoked graduation %s (%s) of student %s",
            graduation_id,
            graduation.certificate_no,
            graduation.student_id,
        )

        return ServiceResult.ok(None, "Graduation revoked successfully")

    @service_operation
    async def get_graduation_statistics(
        self,
        batch_id: str | None = None,
    ) -> ServiceResult[GraduationStatistics]:
        """Count graduations and awarded certificates, with grade distribution.

        Graduations without a grade are counted under ``UNGRADED``.

        Raises:
            NotFoundError: If ``batch_id`` is given and missing.
        """
        query = select(Graduation.overall_grade, Graduation.is_awarded)
        if batch_id:
            await get_batch(self.db, batch_id)
            query = query.where(Graduation.batch_id == batch_id)

        result = await self.db.execute(query)
        rows = result.all()

        distribution: dict[str, int] = {}
        awarded = 0
        for grade, is_awarded in rows:
            key = grade or UNGRADED
            distribution[key] = distribution.get(key, 0) + 1
            if is_awarded:
                awarded += 1

        return ServiceResult.ok(
            GraduationStatistics(
                total=len(rows),
                awarded=awarded,
                pending=len(rows) - awarded,
                grade_distribution=distribution,
            )
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_ready_batch(self, batch_id: str) -> Batch:
        batch = await get_batch(self.db, batch_id)
        if batch.status not in READY_STATUSES:
            raise BatchNotReadyError("Batch must be completed before graduating students")
        return batch

    async def _next_certificate_number(self, batch: Batch) -> str:
        """Reserve the next certificate number of a batch.

        Must run inside the transaction that inserts the graduation; the
        counter row stays locked until that transaction ends.
        """
        result = await self.db.execute(
            update(Batch)
            .where(Batch.id == batch.id)
            .values(graduation_sequence=Batch.graduation_sequence + 1)
            .returning(Batch.graduation_sequence)
            .execution_options(synchronize_session=False)
        )
        sequence = result.scalar_one()
        return format_certificate_number(
            batch.end_year,
            sequence,
            prefix=self.settings.certificate_prefix,
            digits=self.settings.certificate_digits,
        )

    async def _issue(
        self,
        batch: Batch,
        student: User,
        graduation_date: date,
        created_by: str | None,
        **fields: Any,
    ) -> Graduation:
        """Insert one graduation with a fresh certificate number in its own transaction.

        Args:
            batch: Batch being graduated from.
            student: Graduating student.
            graduation_date: Date printed on the certificate.
            created_by: ID of user creating the record.
            **fields: Optional Graduation columns such as grade, cgpa or honors.

        Raises:
            AlreadyGraduatedError: If a concurrent request graduated the student first.
        """
        try:
            async with atomic(self.db):
                certificate_no = await self._next_certificate_number(batch)
                graduation = Graduation(
                    id=new_id(),
                    batch_id=batch.id,
                    student_id=student.id,
                    graduation_date=graduation_date,
                    certificate_no=certificate_no,
                    is_awarded=False,
                    created_by=created_by,
                    **fields,
                )
                self.db.add(graduation)
        except IntegrityError as e:
            raise AlreadyGraduatedError(
                f"Student {student.id} has already graduated from this batch"
            ) from e

        logger.info(
            "Graduated student %s from batch %s: certificate=%s, grade=%s",
            student.id,
            batch.id,
            certificate_no,
            fields.get("overall_grade"),
        )

        return graduation

    async def _apply_update(self, graduation: Graduation, changes: dict) -> None:
        awarding = changes.get("is_awarded") is True and not graduation.is_awarded

        async with atomic(self.db):
            for field, value in changes.items():
                setattr(graduation, field, value)
            if awarding:
                graduation.awarded_at = utc_now()

    async def _get_graduation(self, graduation_id: str) -> Graduation:
        """Get graduation with student and batch loaded.

        Raises:
            NotFoundError: If not found.
        """
        result = await self.db.execute(
            select(Graduation)
            .options(
                selectinload(Graduation.student),
                selectinload(Graduation.batch),
            )
            .where(Graduation.id == graduation_id)
        )
        graduation = result.scalar_one_or_none()

        if not graduation:
            raise NotFoundError(f"Graduation record {graduation_id} not found")

        return graduation

    async def _query_graduations(self, *conditions, order_by=None) -> list[Graduation]:
        query = select(Graduation).options(
            selectinload(Graduation.student),
            selectinload(Graduation.batch),
        )
        if conditions:
            query = query.where(*conditions)
        query = query.order_by(
            order_by if order_by is not None else Graduation.graduation_date.desc()
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    def _to_loaded_response(self, graduation: Graduation) -> GraduationResponse:
        return self._to_response(graduation, graduation.student, graduation.batch)

    @staticmethod
    def _to_response(
        graduation: Graduation,
        student: User | None,
        batch: Batch | None,
    ) -> GraduationResponse:
        return GraduationResponse(
            **{field: getattr(graduation, field) for field in _RESPONSE_FIELDS},
            student=UserSummary.model_validate(student) if student else None,
            batch=BatchSummary.model_validate(batch) if batch else None,
        )
