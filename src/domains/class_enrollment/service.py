# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class enrollment service for binding students to classes of a batch.

This module provides the ClassEnrollmentService class for:
- Student enrollment in a class offered within a batch
- Bulk and whole-batch enrollment
- Recording completion and grading outcomes
- Promotion to the next class of the same batch
- Enrollment withdrawal

A student may hold one enrollment per (student, class, batch). Enrollment
moves from active to completed once and never back; ``is_active`` is an
independent visibility flag.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.base import (
    AlreadyEnrolledError,
    BatchMismatchError,
    InvalidRoleError,
    InvalidTransitionError,
    NotFoundError,
    NoStudentsError,
    service_operation,
)
from src.domains.validation import (
    get_batch,
    get_class,
    get_user,
    require_class_batch_link,
    require_student,
)
from src.infrastructure.database.connection import atomic
from src.infrastructure.database.models import Batch, Class, ClassEnrollment, User
from src.infrastructure.database.models.base import new_id
from src.models.class_enrollment import (
    AcademicData,
    BulkEnrollResult,
    ClassEnrollmentFilters,
    ClassEnrollmentResponse,
    ClassEnrollmentUpdate,
    PromotionResult,
)
from src.models.common import BatchSummary, ClassSummary, ServiceResult, UserRole, UserSummary
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_RESPONSE_FIELDS = (
    "id",
    "student_id",
    "class_id",
    "batch_id",
    "is_active",
    "is_completed",
    "is_passed",
    "final_grade",
    "final_marks",
    "total_marks",
    "attendance",
    "remarks",
    "enrolled_by",
    "enrolled_at",
    "completed_at",
)


class ClassEnrollmentService:
    """Service for managing class enrollments.

    This service handles all class enrollment operations including
    enrolling, bulk enrollment, completion, promotion and withdrawal.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize class enrollment service.

        Args:
            db: Async database session.
        """
        self.db = db

    @service_operation
    async def enroll_student(
        self,
        student_id: str,
        class_id: str,
        batch_id: str,
        enrolled_by: str | None = None,
    ) -> ServiceResult[ClassEnrollmentResponse]:
        """Enroll a student in a class of a batch.

        Checks run in order: student exists, is a student, belongs to the
        batch; batch exists; class exists; class is offered in the batch;
        student not already enrolled.

        Args:
            student_id: Student identifier.
            class_id: Class identifier.
            batch_id: Batch identifier.
            enrolled_by: ID of user performing enrollment.

        Returns:
            Result carrying the enrollment with student, class and batch summaries.

        Raises:
            NotFoundError: If the student, batch or class is missing.
            InvalidRoleError: If the user is not a student.
            BatchMismatchError: If the student belongs to another batch.
            NotLinkedError: If the class is not offered in the batch.
            AlreadyEnrolledError: If the enrollment already exists.
        """
        student = await require_student(self.db, student_id)
        self._check_batch_membership(student, batch_id)

        batch = await get_batch(self.db, batch_id)
        class_ = await get_class(self.db, class_id)
        await require_class_batch_link(self.db, class_id, batch_id)

        if await self._find_enrollment(student_id, class_id, batch_id):
            raise AlreadyEnrolledError("Student is already enrolled in this class for this batch")

        enrollment = self._new_enrollment(student_id, class_id, batch_id, enrolled_by)
        try:
            async with atomic(self.db):
                self.db.add(enrollment)
        except IntegrityError as e:
            raise AlreadyEnrolledError(
                "Student is already enrolled in this class for this batch"
            ) from e

        logger.info(
            "Enrolled student: student=%s, class=%s, batch=%s, by=%s",
            student_id,
            class_id,
            batch_id,
            enrolled_by,
        )

        return ServiceResult.ok(
            self._to_response(enrollment, student, class_, batch),
            "Student enrolled successfully",
        )

    @service_operation
    async def bulk_enroll_students(
        self,
        student_ids: list[str],
        class_id: str,
        batch_id: str,
        enrolled_by: str | None = None,
    ) -> ServiceResult[BulkEnrollResult]:
        """Enroll several students of a batch into one of its classes.

        Ids that are not students of the batch and students already enrolled
        are skipped. The remaining rows are written with a single insert.

        Args:
            student_ids: Candidate student identifiers.
            class_id: Class identifier.
            batch_id: Batch identifier.
            enrolled_by: ID of user performing enrollment.

        Returns:
            Result carrying enrolled and skipped counts. When nothing is left
            to insert the result still succeeds and carries a ``reason``.

        Raises:
            NotFoundError: If the batch or class is missing.
            NotLinkedError: If the class is not offered in the batch.
        """
        await get_batch(self.db, batch_id)
        await get_class(self.db, class_id)
        await require_class_batch_link(self.db, class_id, batch_id)

        requested = list(dict.fromkeys(student_ids))

        valid_query = select(User.id).where(
            User.id.in_(requested),
            User.role == UserRole.STUDENT.value,
            User.batch_id == batch_id,
        )
        valid_result = await self.db.execute(valid_query)
        valid_ids = set(valid_result.scalars().all())

        if not valid_ids:
            return ServiceResult.ok(
                BulkEnrollResult(
                    enrolled_count=0,
                    skipped_count=len(requested),
                    reason="NO_VALID_STUDENTS",
                ),
                "No valid students of this batch to enroll",
            )

        existing_query = select(ClassEnrollment.student_id).where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.batch_id == batch_id,
            ClassEnrollment.student_id.in_(valid_ids),
        )
        existing_result = await self.db.execute(existing_query)
        already = set(existing_result.scalars().all())

        to_enroll = [sid for sid in requested if sid in valid_ids and sid not in already]
        if not to_enroll:
            return ServiceResult.ok(
                BulkEnrollResult(
                    enrolled_count=0,
                    skipped_count=len(requested),
                    reason="ALL_ALREADY_ENROLLED",
                ),
                "All students are already enrolled",
            )

        now = utc_now()
        rows = [
            {
                "id": new_id(),
                "student_id": sid,
                "class_id": class_id,
                "batch_id": batch_id,
                "is_active": True,
                "is_completed": False,
                "enrolled_by": enrolled_by,
                "enrolled_at": now,
                "created_at": now,
                "updated_at": now,
            }
            for sid in to_enroll
        ]
        # Rows racing in from a concurrent request are skipped, not fatal
        stmt = (
            pg_insert(ClassEnrollment)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["student_id", "class_id", "batch_id"])
            .returning(ClassEnrollment.id)
        )
        async with atomic(self.db):
            insert_result = await self.db.execute(stmt)
            enrolled_count = len(insert_result.scalars().all())

        logger.info(
            "Bulk enrollment: class=%s, batch=%s, enrolled=%d, skipped=%d, by=%s",
            class_id,
            batch_id,
            enrolled_count,
            len(requested) - enrolled_count,
            enrolled_by,
        )

        return ServiceResult.ok(
            BulkEnrollResult(
                enrolled_count=enrolled_count,
                skipped_count=len(requested) - enrolled_count,
            ),
            f"{enrolled_count} student(s) enrolled",
        )

    @service_operation
    async def enroll_batch_to_class(
        self,
        batch_id: str,
        class_id: str,
        enrolled_by: str | None = None,
    ) -> ServiceResult[BulkEnrollResult]:
        """Enroll every active student of a batch into one of its classes.

        Raises:
            NotFoundError: If the batch is missing.
            NoStudentsError: If the batch has no active students.
        """
        await get_batch(self.db, batch_id)

        query = select(User.id).where(
            User.batch_id == batch_id,
            User.role == UserRole.STUDENT.value,
            User.is_active.is_(True),
        )
        result = await self.db.execute(query)
        student_ids = list(result.scalars().all())

        if not student_ids:
            raise NoStudentsError(f"Batch {batch_id} has no active students")

        return await self.bulk_enroll_students(student_ids, class_id, batch_id, enrolled_by)

    @service_operation
    async def get_enrollment(self, enrollment_id: str) -> ServiceResult[ClassEnrollmentResponse]:
        """Get enrollment details by ID."""
        enrollment = await self._get_enrollment(enrollment_id, with_relations=True)
        return ServiceResult.ok(self._to_loaded_response(enrollment))

    @service_operation
    async def list_enrollments(
        self,
        filters: ClassEnrollmentFilters | None = None,
    ) -> ServiceResult[list[ClassEnrollmentResponse]]:
        """List enrollments matching the given filters, newest first."""
        filters = filters or ClassEnrollmentFilters()
        enrollments = await self._query_enrollments(filters)
        return ServiceResult.ok([self._to_loaded_response(e) for e in enrollments])

    @service_operation
    async def get_student_enrollments(
        self,
        student_id: str,
    ) -> ServiceResult[list[ClassEnrollmentResponse]]:
        """List all class enrollments of a student.

        Raises:
            NotFoundError: If the student does not exist.
        """
        await get_user(self.db, student_id, label="Student")
        enrollments = await self._query_enrollments(ClassEnrollmentFilters(student_id=student_id))
        return ServiceResult.ok([self._to_loaded_response(e) for e in enrollments])

    @service_operation
    async def get_class_enrollments(
        self,
        class_id: str,
        batch_id: str | None = None,
    ) -> ServiceResult[list[ClassEnrollmentResponse]]:
        """List the enrollments of a class, optionally within one batch.

        Raises:
            NotFoundError: If the class does not exist.
        """
        await get_class(self.db, class_id)
        enrollments = await self._query_enrollments(
            ClassEnrollmentFilters(class_id=class_id, batch_id=batch_id)
        )
        return ServiceResult.ok([self._to_loaded_response(e) for e in enrollments])

    @service_operation
    async def update_enrollment(
        self,
        enrollment_id: str,
        patch: ClassEnrollmentUpdate,
    ) -> ServiceResult[ClassEnrollmentResponse]:
        """Apply a partial update to an enrollment.

        When ``is_completed`` flips from false to true, ``completed_at`` is
        stamped with the current time.

        Args:
            enrollment_id: Enrollment identifier.
            patch: Fields to change; unset fields are ignored.

        Returns:
            Result carrying the updated enrollment.

        Raises:
            NotFoundError: If the enrollment is missing.
            InvalidTransitionError: If a completed enrollment would be reopened.
        """
        enrollment = await self._get_enrollment(enrollment_id, with_relations=True)
        self._apply_patch(enrollment, patch)
        await self._save(enrollment)

        logger.info("Updated enrollment: %s", enrollment_id)

        return ServiceResult.ok(self._to_loaded_response(enrollment), "Enrollment updated")

    @service_operation
    async def mark_as_completed(
        self,
        enrollment_id: str,
        academic_data: AcademicData | None = None,
    ) -> ServiceResult[ClassEnrollmentResponse]:
        """Complete an enrollment, recording optional grading outcome."""
        fields = academic_data.model_dump(exclude_unset=True) if academic_data else {}
        patch = ClassEnrollmentUpdate(**fields, is_completed=True)
        return await self.update_enrollment(enrollment_id, patch)

    @service_operation
    async def unenroll_student(self, enrollment_id: str) -> ServiceResult[None]:
        """Delete a class enrollment.

        Unlike module enrollments there is no progress guard; grading
        history of the deleted row is lost.

        Raises:
            NotFoundError: If the enrollment is missing.
        """
        enrollment = await self._get_enrollment(enrollment_id)

        async with atomic(self.db):
            await self.db.delete(enrollment)

        logger.info(
            "Unenrolled student: student=%s, class=%s, batch=%s",
            enrollment.student_id,
            enrollment.class_id,
            enrollment.batch_id,
        )

        return ServiceResult.ok(None, "Student unenrolled successfully")

    @service_operation
    async def promote_to_next_class(
        self,
        enrollment_id: str,
        next_class_id: str,
        enrolled_by: str | None = None,
        academic_data: AcademicData | None = None,
    ) -> ServiceResult[PromotionResult]:
        """Complete the current enrollment and open one in the next class.

        Both writes happen in one transaction. A student who was already
        promoted gets ALREADY_ENROLLED; that failure is terminal and must
        not be retried.

        Args:
            enrollment_id: Current enrollment identifier.
            next_class_id: Class to enroll into; must be offered in the same batch.
            enrolled_by: ID of user performing the promotion.
            academic_data: Optional outcome recorded on the current enrollment.

        Returns:
            Result carrying the completed and the new enrollment.

        Raises:
            NotFoundError: If the enrollment or next class is missing.
            NotLinkedError: If the next class is not offered in the batch.
            AlreadyEnrolledError: If the student is already in the next class.
        """
        current = await self._get_enrollment(enrollment_id, with_relations=True)
        batch_id = current.batch_id

        await require_class_batch_link(self.db, next_class_id, batch_id)
        next_class = await get_class(self.db, next_class_id)

        student = current.student
        if student.role != UserRole.STUDENT.value:
            raise InvalidRoleError(f"User {student.id} is not a student")
        self._check_batch_membership(student, batch_id)

        if await self._find_enrollment(current.student_id, next_class_id, batch_id):
            raise AlreadyEnrolledError("Student is already enrolled in the next class")

        fields = academic_data.model_dump(exclude_unset=True) if academic_data else {}
        self._apply_patch(current, ClassEnrollmentUpdate(**fields, is_completed=True))
        promoted = self._new_enrollment(current.student_id, next_class_id, batch_id, enrolled_by)

        try:
            async with atomic(self.db):
                self.db.add(promoted)
        except IntegrityError as e:
            raise AlreadyEnrolledError("Student is already enrolled in the next class") from e

        logger.info(
            "Promoted student: student=%s, batch=%s, from=%s, to=%s, by=%s",
            current.student_id,
            batch_id,
            current.class_id,
            next_class_id,
            enrolled_by,
        )

        return ServiceResult.ok(
            PromotionResult(
                previous=self._to_loaded_response(current),
                current=self._to_response(promoted, student, next_class, current.batch),
            ),
            "Student promoted to next class successfully",
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _check_batch_membership(student: User, batch_id: str) -> None:
        if student.batch_id != batch_id:
            raise BatchMismatchError(f"Student {student.id} does not belong to batch {batch_id}")

    @staticmethod
    def _new_enrollment(
        student_id: str,
        class_id: str,
        batch_id: str,
        enrolled_by: str | None,
    ) -> ClassEnrollment:
        return ClassEnrollment(
            id=new_id(),
            student_id=student_id,
            class_id=class_id,
            batch_id=batch_id,
            is_active=True,
            is_completed=False,
            enrolled_by=enrolled_by,
            enrolled_at=utc_now(),
        )

    @staticmethod
    def _apply_patch(enrollment: ClassEnrollment, patch: ClassEnrollmentUpdate) -> None:
        """Copy set fields of ``patch`` onto ``enrollment``.

        Raises:
            InvalidTransitionError: If a completed enrollment would be reopened.
        """
        changes = patch.model_dump(exclude_unset=True)
        completing = changes.pop("is_completed", None)

        if completing is False and enrollment.is_completed:
            raise InvalidTransitionError("A completed enrollment cannot be reopened")

        for field, value in changes.items():
            setattr(enrollment, field, value)

        if completing and not enrollment.is_completed:
            enrollment.is_completed = True
            enrollment.completed_at = utc_now()

    async def _save(self, enrollment: ClassEnrollment) -> None:
        async with atomic(self.db):
            self.db.add(enrollment)

    async def _get_enrollment(
        self,
        enrollment_id: str,
        with_relations: bool = False,
    ) -> ClassEnrollment:
        """Get enrollment by ID.

        Args:
            enrollment_id: Enrollment identifier.
            with_relations: Eager-load student, class and batch.

        Raises:
            NotFoundError: If not found.
        """
        query = select(ClassEnrollment).where(ClassEnrollment.id == enrollment_id)
        if with_relations:
            query = query.options(
                selectinload(ClassEnrollment.student),
                selectinload(ClassEnrollment.class_),
                selectinload(ClassEnrollment.batch),
            )
        result = await self.db.execute(query)
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise NotFoundError(f"Enrollment {enrollment_id} not found")

        return enrollment

    async def _find_enrollment(
        self,
        student_id: str,
        class_id: str,
        batch_id: str,
    ) -> ClassEnrollment | None:
        query = select(ClassEnrollment).where(
            ClassEnrollment.student_id == student_id,
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.batch_id == batch_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _query_enrollments(self, filters: ClassEnrollmentFilters) -> list[ClassEnrollment]:
        query = select(ClassEnrollment).options(
            selectinload(ClassEnrollment.student),
            selectinload(ClassEnrollment.class_),
            selectinload(ClassEnrollment.batch),
        )

        for field, value in filters.model_dump(exclude_none=True).items():
            query = query.where(getattr(ClassEnrollment, field) == value)

        query = query.order_by(ClassEnrollment.enrolled_at.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    def _to_loaded_response(self, enrollment: ClassEnrollment) -> ClassEnrollmentResponse:
        return self._to_response(enrollment, enrollment.student, enrollment.class_, enrollment.batch)

    @staticmethod
    def _to_response(
        enrollment: ClassEnrollment,
        student: User | None,
        class_: Class | None,
        batch: Batch | None,
    ) -> ClassEnrollmentResponse:
        """Convert enrollment to response DTO.

        Related objects are passed in explicitly so freshly inserted rows
        never trigger a lazy load.
        """
        return ClassEnrollmentResponse(
            **{field: getattr(enrollment, field) for field in _RESPONSE_FIELDS},
            student=UserSummary.model_validate(student) if student else None,
            class_=ClassSummary.model_validate(class_) if class_ else None,
            batch=BatchSummary.model_validate(batch) if batch else None,
        )
