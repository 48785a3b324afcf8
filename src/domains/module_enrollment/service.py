# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module enrollment service for enrolling students into learning modules.

This module provides the ModuleEnrollmentService class for:
- Admin-only enrollment of students into published modules
- Bulk and whole-class enrollment
- Guarded unenrollment and activation toggling
- Enrollment statistics

Every mutation keeps ``Module.enrollment_count`` in step with inserted and
deleted rows and writes an activity history record in the same transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.activity.service import ActivityService
from src.domains.base import (
    AlreadyEnrolledError,
    HasProgressError,
    InvalidStudentsError,
    NotFoundError,
    NoStudentsError,
    NotPublishedError,
    service_operation,
)
from src.domains.validation import get_class, get_module, get_user, require_admin, require_student
from src.infrastructure.database.connection import atomic
from src.infrastructure.database.models import (
    ClassEnrollment,
    LessonProgress,
    Module,
    ModuleEnrollment,
    TopicProgress,
    User,
)
from src.infrastructure.database.models.base import new_id
from src.models.common import (
    ActivityType,
    ModuleStatus,
    PaginationMeta,
    ServiceResult,
    UserRole,
    UserSummary,
)
from src.models.module_enrollment import (
    ModuleBulkEnrollResult,
    ModuleEnrollmentDetail,
    ModuleEnrollmentPage,
    ModuleEnrollmentResponse,
    ModuleEnrollmentStats,
    ModuleSummary,
)
from src.utils.datetime import utc_now
from src.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

_RESPONSE_FIELDS = (
    "id",
    "student_id",
    "module_id",
    "enrolled_by",
    "progress",
    "is_active",
    "enrolled_at",
    "completed_at",
)


class ModuleEnrollmentService:
    """Service for managing module enrollments.

    Attributes:
        db: Async database session.
        activity: Activity sink sharing the same session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize module enrollment service.

        Args:
            db: Async database session.
        """
        self.db = db
        self.activity = ActivityService(db)

    @service_operation
    async def enroll_student(
        self,
        module_id: str,
        student_id: str,
        enrolled_by: str,
    ) -> ServiceResult[ModuleEnrollmentResponse]:
        """Enroll a student into a published module.

        The enrollment row, the counter increment and the activity record
        are written in one transaction.

        Args:
            module_id: Module identifier.
            student_id: Student identifier.
            enrolled_by: ID of the admin performing enrollment.

        Returns:
            Result carrying the new enrollment.

        Raises:
            UnauthorizedError: If ``enrolled_by`` is not an admin.
            NotFoundError: If the module or student is missing.
            NotPublishedError: If the module is not published.
            InvalidRoleError: If the user is not a student.
            AlreadyEnrolledError: If the student is already enrolled.
        """
        admin = await require_admin(self.db, enrolled_by)
        module = await self._get_published_module(module_id)
        student = await require_student(self.db, student_id)

        existing = await self.db.execute(
            select(ModuleEnrollment).where(
                ModuleEnrollment.module_id == module_id,
                ModuleEnrollment.student_id == student_id,
            )
        )
        if existing.scalar_one_or_none():
            raise AlreadyEnrolledError("Student is already enrolled in this module")

        enrollment = self._new_enrollment(module_id, student_id, enrolled_by)
        try:
            async with atomic(self.db):
                self.db.add(enrollment)
                await self._adjust_count(module_id, 1)
                self.activity.record(
                    user_id=student_id,
                    module_id=module_id,
                    activity_type=ActivityType.MODULE_ENROLLED,
                    title=f"Enrolled in module: {module.title}",
                    description=f"Enrolled by {admin.name}",
                    details={"action": "student_enrolled", "enrolled_by": admin.name},
                )
        except IntegrityError as e:
            raise AlreadyEnrolledError("Student is already enrolled in this module") from e

        logger.info(
            "Enrolled student in module: student=%s, module=%s, by=%s",
            student_id,
            module_id,
            enrolled_by,
        )

        return ServiceResult.ok(
            self._to_response(enrollment, student, module),
            "Student enrolled successfully",
        )

    @service_operation
    async def bulk_enroll_students(
        self,
        module_id: str,
        student_ids: list[str],
        enrolled_by: str,
    ) -> ServiceResult[ModuleBulkEnrollResult]:
        """Enroll several students into a published module.

        Already-enrolled students are skipped, so repeating a call reports
        ``{enrolled: 0, skipped: N}`` instead of failing.

        Args:
            module_id: Module identifier.
            student_ids: Student identifiers; every one must be a student.
            enrolled_by: ID of the admin performing enrollment.

        Returns:
            Result carrying enrolled and skipped counts.

        Raises:
            UnauthorizedError: If ``enrolled_by`` is not an admin.
            NotFoundError: If the module is missing.
            NotPublishedError: If the module is not published.
            InvalidStudentsError: If any id is not an existing student.
        """
        admin = await require_admin(self.db, enrolled_by)
        module = await self._get_published_module(module_id)

        requested = list(dict.fromkeys(student_ids))

        students_result = await self.db.execute(
            select(User).where(
                User.id.in_(requested),
                User.role == UserRole.STUDENT.value,
            )
        )
        students = students_result.scalars().all()
        if len(students) != len(requested):
            raise InvalidStudentsError("Some user IDs are invalid or not students")

        existing_result = await self.db.execute(
            select(ModuleEnrollment.student_id).where(
                ModuleEnrollment.module_id == module_id,
                ModuleEnrollment.student_id.in_(requested),
            )
        )
        already = set(existing_result.scalars().all())
        to_enroll = [sid for sid in requested if sid not in already]

        if not to_enroll:
            return ServiceResult.ok(
                ModuleBulkEnrollResult(enrolled=0, skipped=len(requested)),
                "All students are already enrolled",
            )

        try:
            async with atomic(self.db):
                self.db.add_all(
                    [self._new_enrollment(module_id, sid, enrolled_by) for sid in to_enroll]
                )
                await self._adjust_count(module_id, len(to_enroll))
                for sid in to_enroll:
                    self.activity.record(
                        user_id=sid,
                        module_id=module_id,
                        activity_type=ActivityType.MODULE_ENROLLED,
                        title=f"Enrolled in module: {module.title}",
                        description=f"Bulk enrolled by {admin.name}",
                        details={"action": "bulk_enrolled", "enrolled_by": admin.name},
                    )
        except IntegrityError as e:
            raise AlreadyEnrolledError(
                "Some students were enrolled in this module concurrently"
            ) from e

        logger.info(
            "Bulk module enrollment: module=%s, enrolled=%d, skipped=%d, by=%s",
            module_id,
            len(to_enroll),
            len(already),
            enrolled_by,
        )

        return ServiceResult.ok(
            ModuleBulkEnrollResult(enrolled=len(to_enroll), skipped=len(already)),
            f"{len(to_enroll)} student(s) enrolled",
        )

    @service_operation
    async def enroll_class_in_module(
        self,
        module_id: str,
        class_id: str,
        enrolled_by: str,
    ) -> ServiceResult[ModuleBulkEnrollResult]:
        """Enroll the roster of a class into a module.

        The roster is every student with an active enrollment in the class.

        Raises:
            UnauthorizedError: If ``enrolled_by`` is not an admin.
            NotFoundError: If the class is missing.
            NoStudentsError: If the class has no enrolled students.
        """
        await require_admin(self.db, enrolled_by)
        await get_class(self.db, class_id)

        roster_result = await self.db.execute(
            select(ClassEnrollment.student_id)
            .where(
                ClassEnrollment.class_id == class_id,
                ClassEnrollment.is_active.is_(True),
            )
            .distinct()
        )
        student_ids = list(roster_result.scalars().all())

        if not student_ids:
            raise NoStudentsError("No students found in this class")

        return await self.bulk_enroll_students(module_id, student_ids, enrolled_by)

    @service_operation
    async def unenroll_student(
        self,
        enrollment_id: str,
        admin_id: str,
        reason: str | None = None,
    ) -> ServiceResult[None]:
        """Delete a module enrollment that has no recorded progress.

        Any lesson or topic progress blocks deletion; deactivate the
        enrollment instead.

        Raises:
            UnauthorizedError: If ``admin_id`` is not an admin.
            NotFoundError: If the enrollment is missing.
            HasProgressError: If progress rows exist.
        """
        admin = await require_admin(self.db, admin_id)
        enrollment = await self._get_enrollment(enrollment_id)

        lessons = await self._count_progress(LessonProgress, enrollment_id)
        topics = await self._count_progress(TopicProgress, enrollment_id)
        if lessons or topics:
            raise HasProgressError(
                f"Cannot unenroll student with progress ({lessons} lesson(s), "
                f"{topics} topic(s)). Consider marking the enrollment inactive instead."
            )

        description = f"Unenrolled by {admin.name}"
        if reason:
            description = f"{description}: {reason}"

        async with atomic(self.db):
            await self.db.delete(enrollment)
            await self._adjust_count(enrollment.module_id, -1)
            self.activity.record(
                user_id=enrollment.student_id,
                module_id=enrollment.module_id,
                activity_type=ActivityType.MODULE_UNENROLLED,
                title=f"Unenrolled from module: {enrollment.module.title}",
                description=description,
                details={
                    "action": "student_unenrolled",
                    "unenrolled_by": admin.name,
                    "reason": reason,
                },
            )

        logger.info(
            "Unenrolled student from module: enrollment=%s, module=%s, by=%s",
            enrollment_id,
            enrollment.module_id,
            admin_id,
        )

        return ServiceResult.ok(None, "Student unenrolled successfully")

    @service_operation
    async def toggle_enrollment_status(
        self,
        enrollment_id: str,
        admin_id: str,
    ) -> ServiceResult[ModuleEnrollmentResponse]:
        """Flip an enrollment between active and inactive.

        Raises:
            UnauthorizedError: If ``admin_id`` is not an admin.
            NotFoundError: If the enrollment is missing.
        """
        admin = await require_admin(self.db, admin_id)
        enrollment = await self._get_enrollment(enrollment_id)

        old_state = "active" if enrollment.is_active else "inactive"
        new_state = "inactive" if enrollment.is_active else "active"
        verb = "activated" if new_state == "active" else "deactivated"

        async with atomic(self.db):
            enrollment.is_active = not enrollment.is_active
            self.activity.record(
                user_id=enrollment.student_id,
                module_id=enrollment.module_id,
                activity_type=ActivityType.ENROLLMENT_STATUS_CHANGED,
                title=f"Enrollment {verb}",
                description=f"{enrollment.module.title} enrollment {verb} by {admin.name}",
                details={
                    "action": "enrollment_status_changed",
                    "old_status": old_state,
                    "new_status": new_state,
                    "changed_by": admin.name,
                },
            )

        logger.info(
            "Toggled module enrollment %s: %s -> %s by %s",
            enrollment_id,
            old_state,
            new_state,
            admin_id,
        )

        return ServiceResult.ok(
            self._to_response(enrollment, enrollment.student, enrollment.module),
            f"Enrollment {verb} successfully",
        )

    @service_operation
    async def get_enrollment(self, enrollment_id: str) -> ServiceResult[ModuleEnrollmentDetail]:
        """Get enrollment details with completed lesson and topic counts."""
        enrollment = await self._get_enrollment(enrollment_id)

        lessons = await self._count_progress(LessonProgress, enrollment_id, completed_only=True)
        topics = await self._count_progress(TopicProgress, enrollment_id, completed_only=True)

        response = self._to_response(enrollment, enrollment.student, enrollment.module)
        return ServiceResult.ok(
            ModuleEnrollmentDetail(
                **response.model_dump(),
                lessons_completed=lessons,
                topics_completed=topics,
            )
        )

    @service_operation
    async def get_module_enrollments(
        self,
        module_id: str,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> ServiceResult[ModuleEnrollmentPage]:
        """List a module's enrollments with pagination, newest first.

        Raises:
            NotFoundError: If the module is missing.
        """
        await get_module(self.db, module_id)

        query = select(ModuleEnrollment).where(ModuleEnrollment.module_id == module_id)
        if is_active is not None:
            query = query.where(ModuleEnrollment.is_active == is_active)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            query.options(
                selectinload(ModuleEnrollment.student),
                selectinload(ModuleEnrollment.module),
            )
            .order_by(ModuleEnrollment.enrolled_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        result = await self.db.execute(query)
        enrollments = result.scalars().all()

        return ServiceResult.ok(
            ModuleEnrollmentPage(
                items=[self._to_response(e, e.student, e.module) for e in enrollments],
                pagination=PaginationMeta.build(total, page, limit),
            )
        )

    @service_operation
    async def get_student_enrollments(
        self,
        student_id: str,
        is_active: bool | None = None,
    ) -> ServiceResult[list[ModuleEnrollmentResponse]]:
        """List a student's module enrollments, newest first.

        Raises:
            NotFoundError: If the student is missing.
        """
        await get_user(self.db, student_id, label="Student")

        query = (
            select(ModuleEnrollment)
            .options(selectinload(ModuleEnrollment.module))
            .where(ModuleEnrollment.student_id == student_id)
        )
        if is_active is not None:
            query = query.where(ModuleEnrollment.is_active == is_active)

        result = await self.db.execute(query.order_by(ModuleEnrollment.enrolled_at.desc()))
        enrollments = result.scalars().all()

        return ServiceResult.ok([self._to_response(e, None, e.module) for e in enrollments])

    @service_operation
    async def get_enrollment_stats(self, module_id: str) -> ServiceResult[ModuleEnrollmentStats]:
        """Compute enrollment statistics for a module.

        Averages are taken over every enrollment of the module and rounded
        half up to whole numbers. An empty module yields all zeros.

        Raises:
            NotFoundError: If the module is missing.
        """
        await get_module(self.db, module_id)

        result = await self.db.execute(
            select(
                ModuleEnrollment.is_active,
                ModuleEnrollment.progress,
                ModuleEnrollment.completed_at,
            ).where(ModuleEnrollment.module_id == module_id)
        )
        rows = result.all()

        total = len(rows)
        if total == 0:
            return ServiceResult.ok(ModuleEnrollmentStats())

        active = sum(1 for is_active, _, _ in rows if is_active)
        completed = sum(1 for _, _, completed_at in rows if completed_at is not None)
        avg_progress = sum(progress or 0 for _, progress, _ in rows) / total

        return ServiceResult.ok(
            ModuleEnrollmentStats(
                total_enrollments=total,
                active_enrollments=active,
                completed_count=completed,
                avg_progress=round_half_up(avg_progress, 0),
                completion_rate=round_half_up(completed / total * 100, 0),
            )
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_published_module(self, module_id: str) -> Module:
        module = await get_module(self.db, module_id)
        if module.status != ModuleStatus.PUBLISHED.value:
            raise NotPublishedError("Can only enroll students in published modules")
        return module

    async def _get_enrollment(self, enrollment_id: str) -> ModuleEnrollment:
        """Get enrollment with its student and module loaded.

        Raises:
            NotFoundError: If not found.
        """
        result = await self.db.execute(
            select(ModuleEnrollment)
            .options(
                selectinload(ModuleEnrollment.student),
                selectinload(ModuleEnrollment.module),
            )
            .where(ModuleEnrollment.id == enrollment_id)
        )
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise NotFoundError(f"Enrollment {enrollment_id} not found")

        return enrollment

    async def _count_progress(
        self,
        model: type[LessonProgress] | type[TopicProgress],
        enrollment_id: str,
        completed_only: bool = False,
    ) -> int:
        query = select(func.count()).select_from(model).where(model.enrollment_id == enrollment_id)
        if completed_only:
            query = query.where(model.is_completed.is_(True))
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def _adjust_count(self, module_id: str, delta: int) -> None:
        """Shift the module's enrollment counter by ``delta`` in SQL."""
        await self.db.execute(
            update(Module)
            .where(Module.id == module_id)
            .values(enrollment_count=Module.enrollment_count + delta)
        )

    @staticmethod
    def _new_enrollment(module_id: str, student_id: str, enrolled_by: str) -> ModuleEnrollment:
        return ModuleEnrollment(
            id=new_id(),
            module_id=module_id,
            student_id=student_id,
            enrolled_by=enrolled_by,
            progress=0.0,
            is_active=True,
            enrolled_at=utc_now(),
        )

    @staticmethod
    def _to_response(
        enrollment: ModuleEnrollment,
        student: User | None,
        module: Module | None,
    ) -> ModuleEnrollmentResponse:
        return ModuleEnrollmentResponse(
            **{field: getattr(enrollment, field) for field in _RESPONSE_FIELDS},
            student=UserSummary.model_validate(student) if student else None,
            module=ModuleSummary.model_validate(module) if module else None,
        )
