# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.core.config import get_settings
from src.infrastructure.database.connection import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    database: ComponentHealth = Field(description="Database status")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check PostgreSQL database connection."""
    start = time.time()
    reachable = await check_database_connection()
    latency = (time.time() - start) * 1000

    if not reachable:
        return ComponentHealth(status="unhealthy", message="Database unreachable")
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    Returns:
        HealthResponse with detailed status.
    """
    settings = get_settings()
    db_health = await check_database()

    return HealthResponse(
        status="healthy" if db_health.status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.api.version,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        database=db_health,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results.
    """
    db_health = await check_database()
    checks = {"database": {"status": db_health.status, "latency_ms": db_health.latency_ms}}
    return ReadinessResponse(ready=db_health.status == "healthy", checks=checks)
