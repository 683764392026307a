"""HTTP tests for the enrollment and project endpoints."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from classroom.core.database import get_db
from classroom.core.security import create_access_token
from classroom.main import app


@pytest_asyncio.fixture
async def client(db_session, school):
    """HTTP client bound to the test database."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def staff_headers(lecturer):
    return {"Authorization": f"Bearer {create_access_token(lecturer)}"}


@pytest.fixture
def student_headers(student_actor):
    return {"Authorization": f"Bearer {create_access_token(student_actor)}"}


async def _enroll(client, headers, student_id=5, course_id=10):
    response = await client.post(
        "/api/enrollments",
        json={"student_id": student_id, "course_id": course_id},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestEnrollmentEndpoints:
    """Lifecycle over HTTP."""

    @pytest.mark.asyncio
    async def test_enroll_returns_view(self, client, staff_headers):
        body = await _enroll(client, staff_headers)

        assert body["enrollment_id"] == 1
        assert body["student_code"] == "SE170005"
        assert body["student_name"] == "Linh Tran"
        assert body["course_code"] == "SWP391"
        assert body["project_id"] is None
        assert body["project_name"] is None
        assert body["deleted_at"] is None

    @pytest.mark.asyncio
    async def test_duplicate_enroll_is_409(self, client, staff_headers):
        await _enroll(client, staff_headers)

        response = await client.post(
            "/api/enrollments",
            json={"student_id": 5, "course_id": 10},
            headers=staff_headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "already_enrolled"

    @pytest.mark.asyncio
    async def test_unknown_course_is_404(self, client, staff_headers):
        response = await client.post(
            "/api/enrollments",
            json={"student_id": 5, "course_id": 999},
            headers=staff_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Course not found with ID: 999"

    @pytest.mark.asyncio
    async def test_assign_remove_and_restore_project(self, client, staff_headers):
        await _enroll(client, staff_headers)

        response = await client.put(
            "/api/enrollments/1/project",
            json={"project_id": 7, "role_in_project": "leader", "group_number": 2},
            headers=staff_headers,
        )
        assert response.status_code == 200
        assert response.json()["project_name"] == "Library Management"

        response = await client.post("/api/enrollments/1/remove-from-project", headers=staff_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["removed_from_project_at"] is not None
        assert body["project_id"] == 7
        assert body["group_number"] == 2

        response = await client.get("/api/enrollments/projects/7/history", headers=staff_headers)
        assert [e["enrollment_id"] for e in response.json()] == [1]

        response = await client.post("/api/enrollments/1/restore-to-project", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["removed_from_project_at"] is None

        response = await client.get("/api/enrollments", params={"project_id": 7}, headers=staff_headers)
        assert [e["enrollment_id"] for e in response.json()] == [1]

    @pytest.mark.asyncio
    async def test_assign_wrong_course_is_409(self, client, staff_headers):
        await _enroll(client, staff_headers)

        response = await client.put(
            "/api/enrollments/1/project",
            json={"project_id": 9},
            headers=staff_headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "wrong_course"

    @pytest.mark.asyncio
    async def test_update_assignment(self, client, staff_headers):
        await _enroll(client, staff_headers)
        await client.put("/api/enrollments/1/project", json={"project_id": 7}, headers=staff_headers)

        response = await client.put(
            "/api/enrollments/1",
            json={"project_id": 8, "group_number": 4},
            headers=staff_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["project_id"] == 8
        assert body["group_number"] == 4

    @pytest.mark.asyncio
    async def test_soft_delete_restore_and_purge(self, client, staff_headers):
        await _enroll(client, staff_headers)

        response = await client.delete("/api/enrollments/1", headers=staff_headers)
        assert response.status_code == 204

        response = await client.get("/api/enrollments/1", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["deleted_at"] is not None

        response = await client.get("/api/enrollments", params={"course_id": 10}, headers=staff_headers)
        assert response.json() == []

        response = await client.post("/api/enrollments/1/restore", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["deleted_at"] is None

        response = await client.delete(
            "/api/enrollments/1", params={"permanent": "true"}, headers=staff_headers
        )
        assert response.status_code == 204

        response = await client.get("/api/enrollments/1", headers=staff_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_resolve(self, client, staff_headers):
        await _enroll(client, staff_headers)

        response = await client.get(
            "/api/enrollments/resolve",
            params={"student_id": 5, "course_id": 10},
            headers=staff_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"enrollment_id": 1}

    @pytest.mark.asyncio
    async def test_list_requires_a_filter(self, client, staff_headers):
        response = await client.get("/api/enrollments", headers=staff_headers)

        assert response.status_code == 400


class TestAccess:
    """Authentication and role checks."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/enrollments", params={"course_id": 10})

        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, client):
        response = await client.get(
            "/api/enrollments",
            params={"course_id": 10},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_student_can_read(self, client, staff_headers, student_headers):
        await _enroll(client, staff_headers)

        response = await client.get("/api/enrollments", params={"student_id": 5}, headers=student_headers)

        assert response.status_code == 200
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_student_cannot_write(self, client, student_headers):
        response = await client.post(
            "/api/enrollments",
            json={"student_id": 5, "course_id": 10},
            headers=student_headers,
        )

        assert response.status_code == 403


class TestProjectEndpoints:
    """Project guards over HTTP."""

    @pytest.mark.asyncio
    async def test_member_counts(self, client, staff_headers):
        await _enroll(client, staff_headers)
        await client.put("/api/enrollments/1/project", json={"project_id": 7}, headers=staff_headers)
        await client.post("/api/enrollments/1/remove-from-project", headers=staff_headers)

        response = await client.get("/api/projects/7/member-counts", headers=staff_headers)

        assert response.json() == {"project_id": 7, "active": 0, "total": 1}

    @pytest.mark.asyncio
    async def test_delete_project_with_history_is_409(self, client, staff_headers):
        await _enroll(client, staff_headers)
        await client.put("/api/enrollments/1/project", json={"project_id": 7}, headers=staff_headers)

        response = await client.delete("/api/projects/7", headers=staff_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_empty_project(self, client, staff_headers):
        response = await client.delete("/api/projects/8", headers=staff_headers)

        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_change_course(self, client, staff_headers):
        response = await client.put(
            "/api/projects/8/course", json={"course_id": 11}, headers=staff_headers
        )

        assert response.status_code == 200
        assert response.json()["course_id"] == 11

    @pytest.mark.asyncio
    async def test_audit_log(self, client, staff_headers):
        await _enroll(client, staff_headers)

        response = await client.get(
            "/api/audit/logs", params={"entity_type": "enrollment"}, headers=staff_headers
        )

        body = response.json()
        assert body["total"] == 1
        assert body["logs"][0]["action_type"] == "ENROLL"
        assert body["logs"][0]["actor_role"] == "LECTURER"
