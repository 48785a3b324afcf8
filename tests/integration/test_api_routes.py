# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the v1 API routers.

Services are replaced with mocks so these tests cover routing, request
validation, the actor header and the error-kind to status mapping.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from src.api.dependencies import get_db, unwrap
from src.api.v1 import router as v1_router
from src.models.batch import BatchResponse
from src.models.class_ import ClassResponse
from src.models.common import BatchStatus, ErrorKind, ServiceResult
from src.models.module_enrollment import ModuleEnrollmentResponse

pytestmark = pytest.mark.integration


@pytest.fixture
def app():
    """Create test FastAPI app with a mocked database session."""
    app = FastAPI()
    app.include_router(v1_router)

    async def override_get_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def _service(**methods):
    service = MagicMock()
    for name, value in methods.items():
        setattr(service, name, AsyncMock(return_value=value))
    return service


def _batch(**overrides):
    data = {
        "id": str(uuid4()),
        "name": "Batch 2021-2025",
        "status": BatchStatus.PLANNING,
        "start_year": 2021,
        "end_year": 2025,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return BatchResponse(**data)


class TestAPIRouting:
    """Tests for router registration."""

    def test_routes_registered(self, app):
        routes = [route.path for route in app.routes]

        assert "/api/v1/users" in routes
        assert "/api/v1/users/{user_id}/batch" in routes
        assert "/api/v1/classes" in routes
        assert "/api/v1/classes/{class_id}/activate" in routes
        assert "/api/v1/batches" in routes
        assert "/api/v1/batches/{batch_id}/status" in routes
        assert "/api/v1/batches/{batch_id}/classes/{class_id}/next" in routes
        assert "/api/v1/batches/{batch_id}/statistics" in routes
        assert "/api/v1/class-enrollments/bulk" in routes
        assert "/api/v1/class-enrollments/{enrollment_id}/promote" in routes
        assert "/api/v1/module-enrollments/class" in routes
        assert "/api/v1/module-enrollments/modules/{module_id}/stats" in routes
        assert "/api/v1/graduations/batch" in routes
        assert "/api/v1/graduations/{graduation_id}/certificate" in routes


class TestBatchesAPI:
    """Tests for batch endpoints."""

    @patch("src.api.v1.batches._get_service")
    def test_create_batch(self, mock_get_service, client):
        batch = _batch()
        service = _service(create_batch=ServiceResult.ok(batch, "Batch created"))
        mock_get_service.return_value = service

        response = client.post(
            "/api/v1/batches",
            json={"name": "Batch 2021-2025", "start_year": 2021, "end_year": 2025},
            headers={"X-Actor-Id": "admin-1"},
        )

        assert response.status_code == 201
        assert response.json()["id"] == batch.id
        assert response.json()["status"] == "PLANNING"
        assert service.create_batch.await_args.kwargs["created_by"] == "admin-1"

    @patch("src.api.v1.batches._get_service")
    def test_backward_status_is_conflict(self, mock_get_service, client):
        mock_get_service.return_value = _service(
            update_batch_status=ServiceResult.fail(
                ErrorKind.INVALID_TRANSITION, "Cannot move batch from COMPLETED to ACTIVE"
            )
        )

        response = client.put(f"/api/v1/batches/{uuid4()}/status", json={"status": "ACTIVE"})

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "INVALID_TRANSITION"

    def test_invalid_status_value(self, client):
        response = client.put(f"/api/v1/batches/{uuid4()}/status", json={"status": "ARCHIVED"})

        assert response.status_code == 422

    @patch("src.api.v1.batches._get_service")
    def test_detach_class(self, mock_get_service, client):
        service = _service(detach_class=ServiceResult.ok(None))
        mock_get_service.return_value = service

        response = client.delete(f"/api/v1/batches/{uuid4()}/classes/{uuid4()}")

        assert response.status_code == 204


class TestClassesAPI:
    """Tests for class endpoints."""

    @patch("src.api.v1.classes._get_service")
    def test_get_missing_class(self, mock_get_service, client):
        mock_get_service.return_value = _service(
            get_class=ServiceResult.fail(ErrorKind.NOT_FOUND, "Class not found")
        )

        response = client.get(f"/api/v1/classes/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"] == {
            "error": "NOT_FOUND",
            "message": "Class not found",
        }

    @patch("src.api.v1.classes._get_service")
    def test_list_classes(self, mock_get_service, client):
        class_ = ClassResponse(id=str(uuid4()), name="Grade 9", section="A", is_active=True)
        mock_get_service.return_value = _service(list_classes=ServiceResult.ok([class_]))

        response = client.get("/api/v1/classes", params={"is_active": "true"})

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Grade 9"


class TestModuleEnrollmentsAPI:
    """Tests for module enrollment endpoints."""

    def test_enroll_requires_actor_header(self, client):
        response = client.post(
            "/api/v1/module-enrollments",
            json={"module_id": str(uuid4()), "student_id": str(uuid4())},
        )

        assert response.status_code == 401

    @patch("src.api.v1.module_enrollments._get_service")
    def test_enroll_passes_actor(self, mock_get_service, client):
        module_id, student_id = str(uuid4()), str(uuid4())
        enrollment = ModuleEnrollmentResponse(
            id=str(uuid4()),
            student_id=student_id,
            module_id=module_id,
            is_active=True,
        )
        service = _service(enroll_student=ServiceResult.ok(enrollment))
        mock_get_service.return_value = service

        response = client.post(
            "/api/v1/module-enrollments",
            json={"module_id": module_id, "student_id": student_id},
            headers={"X-Actor-Id": "admin-1"},
        )

        assert response.status_code == 201
        assert response.json()["module_id"] == module_id
        service.enroll_student.assert_awaited_once_with(
            module_id, student_id, enrolled_by="admin-1"
        )

    @patch("src.api.v1.module_enrollments._get_service")
    def test_non_admin_is_forbidden(self, mock_get_service, client):
        mock_get_service.return_value = _service(
            toggle_enrollment_status=ServiceResult.fail(
                ErrorKind.UNAUTHORIZED, "Only administrators can perform this action"
            )
        )

        response = client.post(
            f"/api/v1/module-enrollments/{uuid4()}/toggle",
            headers={"X-Actor-Id": "teacher-1"},
        )

        assert response.status_code == 403


class TestClassEnrollmentsAPI:
    """Tests for class enrollment endpoints."""

    @patch("src.api.v1.class_enrollments._get_service")
    def test_duplicate_enrollment_is_conflict(self, mock_get_service, client):
        mock_get_service.return_value = _service(
            enroll_student=ServiceResult.fail(ErrorKind.ALREADY_ENROLLED, "Already enrolled")
        )

        response = client.post(
            "/api/v1/class-enrollments",
            json={"student_id": str(uuid4()), "class_id": str(uuid4()), "batch_id": str(uuid4())},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ALREADY_ENROLLED"

    @patch("src.api.v1.class_enrollments._get_service")
    def test_unenroll(self, mock_get_service, client):
        mock_get_service.return_value = _service(unenroll_student=ServiceResult.ok(None))

        response = client.delete(f"/api/v1/class-enrollments/{uuid4()}")

        assert response.status_code == 204


class TestUnwrap:
    """Tests for the result to HTTP mapping."""

    def test_success_returns_payload(self):
        assert unwrap(ServiceResult.ok({"id": "1"})) == {"id": "1"}

    @pytest.mark.parametrize(
        ("kind", "status_code"),
        [
            (ErrorKind.VALIDATION, 422),
            (ErrorKind.HAS_PROGRESS, 409),
            (ErrorKind.BATCH_NOT_READY, 409),
            (ErrorKind.NOT_LINKED, 400),
            (ErrorKind.INVALID_ROLE, 400),
        ],
    )
    def test_failure_status(self, kind, status_code):
        with pytest.raises(HTTPException) as exc_info:
            unwrap(ServiceResult.fail(kind, "nope"))

        assert exc_info.value.status_code == status_code
        assert exc_info.value.detail["error"] == kind.value
