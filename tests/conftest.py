# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- A mocked AsyncSession whose ``execute`` results are queued per test
- Factories for ORM-shaped MagicMock entities
- Helpers building the result objects ``session.execute`` returns
"""

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.core.config import clear_settings_cache


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test against default settings in the test environment."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (HTTP layer)"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def result() -> Callable[..., MagicMock]:
    """Build a fake ``session.execute`` result.

    Example:
        mock_db.execute.side_effect = [result(one=student), result(many=[...])]
    """

    def build(
        one: Any = None,
        many: list[Any] | None = None,
        scalar: Any = None,
        rows: list[Any] | None = None,
    ) -> MagicMock:
        res = MagicMock()
        res.scalar_one_or_none.return_value = one
        res.scalar_one.return_value = scalar
        res.scalar.return_value = scalar
        res.scalars.return_value.all.return_value = many or []
        res.scalars.return_value.first.return_value = (many or [None])[0]
        res.all.return_value = rows or []
        return res

    return build


# =============================================================================
# Entity Factories
# =============================================================================


def _now() -> datetime:
    return datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_user() -> Callable[..., MagicMock]:
    """Factory for User-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        user = MagicMock()
        user.id = str(uuid4())
        user.name = "Asha Rai"
        user.email = "asha@school.edu"
        user.symbol_no = None
        user.role = "STUDENT"
        user.is_active = True
        user.batch_id = None
        user.created_at = _now()
        for key, value in overrides.items():
            setattr(user, key, value)
        return user

    return build


@pytest.fixture
def make_batch() -> Callable[..., MagicMock]:
    """Factory for Batch-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        batch = MagicMock()
        batch.id = str(uuid4())
        batch.name = "Batch 2021-2025"
        batch.description = None
        batch.status = "ACTIVE"
        batch.start_year = 2021
        batch.end_year = 2025
        batch.start_date = None
        batch.end_date = None
        batch.max_students = None
        batch.completed_at = None
        batch.graduated_at = None
        batch.graduation_sequence = 0
        batch.created_by = None
        batch.created_at = _now()
        for key, value in overrides.items():
            setattr(batch, key, value)
        return batch

    return build


@pytest.fixture
def make_class() -> Callable[..., MagicMock]:
    """Factory for Class-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        class_ = MagicMock()
        class_.id = str(uuid4())
        class_.name = "Grade 9"
        class_.section = "A"
        class_.description = None
        class_.is_active = True
        class_.created_at = _now()
        class_.updated_at = _now()
        for key, value in overrides.items():
            setattr(class_, key, value)
        return class_

    return build


@pytest.fixture
def make_module() -> Callable[..., MagicMock]:
    """Factory for Module-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        module = MagicMock()
        module.id = str(uuid4())
        module.title = "Algebra Basics"
        module.slug = "algebra-basics"
        module.status = "PUBLISHED"
        module.enrollment_count = 0
        for key, value in overrides.items():
            setattr(module, key, value)
        return module

    return build


@pytest.fixture
def make_class_enrollment() -> Callable[..., MagicMock]:
    """Factory for ClassEnrollment-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        enrollment = MagicMock()
        enrollment.id = str(uuid4())
        enrollment.student_id = str(uuid4())
        enrollment.class_id = str(uuid4())
        enrollment.batch_id = str(uuid4())
        enrollment.is_active = True
        enrollment.is_completed = False
        enrollment.is_passed = None
        enrollment.final_grade = None
        enrollment.final_marks = None
        enrollment.total_marks = None
        enrollment.attendance = None
        enrollment.remarks = None
        enrollment.enrolled_by = None
        enrollment.enrolled_at = _now()
        enrollment.completed_at = None
        enrollment.student = None
        enrollment.class_ = None
        enrollment.batch = None
        for key, value in overrides.items():
            setattr(enrollment, key, value)
        return enrollment

    return build


@pytest.fixture
def make_module_enrollment() -> Callable[..., MagicMock]:
    """Factory for ModuleEnrollment-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        enrollment = MagicMock()
        enrollment.id = str(uuid4())
        enrollment.student_id = str(uuid4())
        enrollment.module_id = str(uuid4())
        enrollment.enrolled_by = None
        enrollment.progress = 0.0
        enrollment.is_active = True
        enrollment.enrolled_at = _now()
        enrollment.completed_at = None
        enrollment.student = None
        enrollment.module = None
        for key, value in overrides.items():
            setattr(enrollment, key, value)
        return enrollment

    return build


@pytest.fixture
def make_graduation() -> Callable[..., MagicMock]:
    """Factory for Graduation-shaped mocks."""

    def build(**overrides: Any) -> MagicMock:
        graduation = MagicMock()
        graduation.id = str(uuid4())
        graduation.batch_id = str(uuid4())
        graduation.student_id = str(uuid4())
        graduation.graduation_date = _now().date()
        graduation.overall_grade = None
        graduation.overall_percentage = None
        graduation.total_credits = None
        graduation.cgpa = None
        graduation.certificate_no = "BATCH-2025-0001"
        graduation.certificate_url = None
        graduation.honors = None
        graduation.remarks = None
        graduation.is_awarded = False
        graduation.awarded_at = None
        graduation.created_by = None
        graduation.student = None
        graduation.batch = None
        for key, value in overrides.items():
            setattr(graduation, key, value)
        return graduation

    return build
