# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service error hierarchy and the ServiceResult boundary.

Services raise the typed errors below while validating and mutating.
Public operations are wrapped with ``service_operation`` which turns a
raised ServiceError into a failed ServiceResult carrying its ErrorKind.
Anything that is not a ServiceError (database outages, programming
errors) propagates unchanged.

Example:
    class ClassService:
        @service_operation
        async def get_class(self, class_id: str) -> ServiceResult:
            class_ = await get_class(self.db, class_id)
            return ServiceResult.ok(ClassResponse.model_validate(class_))
"""

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from src.models.common import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[ServiceResult]])


class ServiceError(Exception):
    """Base exception for service-level failures.

    Attributes:
        kind: ErrorKind reported in the failed ServiceResult.
        message: Human-readable description.
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class NotFoundError(ServiceError):
    """Raised when a referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidRoleError(ServiceError):
    """Raised when a user has the wrong role for the operation."""

    kind = ErrorKind.INVALID_ROLE


class UnauthorizedError(ServiceError):
    """Raised when the acting user may not perform the operation."""

    kind = ErrorKind.UNAUTHORIZED


class BatchMismatchError(ServiceError):
    """Raised when a student does not belong to the batch."""

    kind = ErrorKind.BATCH_MISMATCH


class NotLinkedError(ServiceError):
    """Raised when a class is not offered in the batch."""

    kind = ErrorKind.NOT_LINKED


class AlreadyEnrolledError(ServiceError):
    """Raised when the enrollment already exists."""

    kind = ErrorKind.ALREADY_ENROLLED


class AlreadyGraduatedError(ServiceError):
    """Raised when the student already graduated from the batch."""

    kind = ErrorKind.ALREADY_GRADUATED


class NotPublishedError(ServiceError):
    """Raised when enrolling into a module that is not published."""

    kind = ErrorKind.NOT_PUBLISHED


class BatchNotReadyError(ServiceError):
    """Raised when a batch has not reached a graduating status."""

    kind = ErrorKind.BATCH_NOT_READY


class HasProgressError(ServiceError):
    """Raised when an enrollment with recorded progress would be deleted."""

    kind = ErrorKind.HAS_PROGRESS


class InvalidStudentsError(ServiceError):
    """Raised when a bulk request names users that are not students."""

    kind = ErrorKind.INVALID_STUDENTS


class NoStudentsError(ServiceError):
    """Raised when a roster is empty."""

    kind = ErrorKind.NO_STUDENTS


class ConflictError(ServiceError):
    """Raised when a uniqueness rule would be violated."""

    kind = ErrorKind.CONFLICT


class ValidationError(ServiceError):
    """Raised when request values are inconsistent."""

    kind = ErrorKind.VALIDATION


class InvalidTransitionError(ServiceError):
    """Raised when a batch status would move backwards."""

    kind = ErrorKind.INVALID_TRANSITION


class HasEnrollmentsError(ServiceError):
    """Raised when a class-batch link still has enrollments."""

    kind = ErrorKind.HAS_ENROLLMENTS


def service_operation(func: F) -> F:
    """Convert ServiceError raised by ``func`` into a failed ServiceResult.

    Args:
        func: Async service method returning a ServiceResult.

    Returns:
        Wrapped coroutine function with the same signature.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> ServiceResult:
        try:
            return await func(*args, **kwargs)
        except ServiceError as e:
            logger.info(
                "%s rejected: kind=%s, message=%s",
                func.__qualname__,
                e.kind.value,
                e.message,
            )
            return ServiceResult.fail(e.kind, e.message)

    return wrapper  # type: ignore[return-value]
