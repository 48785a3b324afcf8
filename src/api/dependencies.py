# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Read the acting user's id from the request
- Unwrap service results into HTTP responses

Example:
    @router.get("/batches/{batch_id}")
    async def get_batch(
        batch_id: str,
        db: AsyncSession = Depends(get_db),
    ):
        ...
"""

import logging
from typing import AsyncGenerator, TypeVar

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.infrastructure.database.connection import get_session
from src.models.common import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_GRADUATED: status.HTTP_409_CONFLICT,
    ErrorKind.HAS_PROGRESS: status.HTTP_409_CONFLICT,
    ErrorKind.HAS_ENROLLMENTS: status.HTTP_409_CONFLICT,
    ErrorKind.BATCH_NOT_READY: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session() as session:
        yield session


def get_actor_id(request: Request) -> str | None:
    """Read the acting user's id from the configured request header.

    Authentication happens upstream; the header only names who acts.

    Returns:
        The actor id, or None when the header is absent.
    """
    header = get_settings().api.actor_header
    return request.headers.get(header) or None


def require_actor_id(request: Request) -> str:
    """Same as get_actor_id but rejects requests without an actor.

    Raises:
        HTTPException: 401 if the header is missing.
    """
    actor_id = get_actor_id(request)
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {get_settings().api.actor_header} header",
        )
    return actor_id


def unwrap(result: ServiceResult[T]) -> T:
    """Return a successful result's payload or raise the matching HTTP error.

    Failure kinds without an explicit mapping become 400 Bad Request.

    Raises:
        HTTPException: If the result failed.
    """
    if result.success:
        return result.data

    status_code = ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)
    logger.debug("Service failure %s mapped to %d", result.error, status_code)
    raise HTTPException(
        status_code=status_code,
        detail={"error": result.error.value, "message": result.message},
    )
