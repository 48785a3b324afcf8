# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    users: User management and per-student listings.
    classes: Class management endpoints.
    batches: Batch lifecycle, class offering and statistics endpoints.
    class_enrollments: Class enrollment, completion and promotion endpoints.
    module_enrollments: Module enrollment endpoints.
    graduations: Graduation and certificate endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import (
    batches,
    class_enrollments,
    classes,
    graduations,
    module_enrollments,
    users,
)

router = APIRouter(prefix="/api/v1")

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(batches.router, prefix="/batches", tags=["Batches"])
router.include_router(
    class_enrollments.router,
    prefix="/class-enrollments",
    tags=["Class Enrollments"],
)
router.include_router(
    module_enrollments.router,
    prefix="/module-enrollments",
    tags=["Module Enrollments"],
)
router.include_router(graduations.router, prefix="/graduations", tags=["Graduations"])

__all__ = ["router"]
