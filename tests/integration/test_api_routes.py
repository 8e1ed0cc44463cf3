"""
API integration tests using FastAPI TestClient with in-memory DB.
Health, auth and the course catalogue.
"""
import pytest
from fastapi.testclient import TestClient

from gurmania.models import UserRole


@pytest.mark.integration
class TestHealthRoutes:
    """Health and root endpoints (no auth)."""

    def test_root_returns_healthy(self, api_client: TestClient):
        response = api_client.get("/")
        assert response.status_code == 200
        assert "Healthy" in response.json()["message"]

    def test_request_id_is_echoed(self, api_client: TestClient):
        response = api_client.get("/", headers={"x-request-id": "req-123"})
        assert response.headers.get("x-request-id") == "req-123"

    def test_request_id_is_generated(self, api_client: TestClient):
        response = api_client.get("/")
        assert response.headers.get("x-request-id")


@pytest.mark.integration
class TestAuthRoutes:
    """Auth: register, login, logout, me."""

    def test_register_sets_cookie(self, api_client: TestClient):
        response = api_client.post(
            "/api/auth/register",
            json={
                "email": "newcook@example.com",
                "name": "New Cook",
                "password": "securepass123",
                "confirm_password": "securepass123",
            },
        )
        assert response.status_code == 201
        assert "access_token" in response.cookies

        me = api_client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "newcook@example.com"
        assert me.json()["role"] == "STUDENT"

    def test_register_duplicate_fails(self, api_client: TestClient, factory):
        factory.user(email="dup@example.com")
        response = api_client.post(
            "/api/auth/register",
            json={"email": "dup@example.com", "password": "password123", "confirm_password": "password123"},
        )
        assert response.status_code == 400

    def test_register_password_mismatch(self, api_client: TestClient):
        response = api_client.post(
            "/api/auth/register",
            json={"email": "mismatch@example.com", "password": "password123", "confirm_password": "password124"},
        )
        assert response.status_code == 400

    def test_register_short_password_is_validation_error(self, api_client: TestClient):
        response = api_client.post(
            "/api/auth/register",
            json={"email": "short@example.com", "password": "abc", "confirm_password": "abc"},
        )
        assert response.status_code == 422

    def test_login_success(self, api_client: TestClient, factory):
        factory.user(email="login@example.com", password="mypassword")
        response = api_client.post("/api/auth/login", json={"email": "login@example.com", "password": "mypassword"})
        assert response.status_code == 200
        assert response.json()["token_set"] is True

    def test_login_wrong_password_fails(self, api_client: TestClient, factory):
        factory.user(email="wrong@example.com", password="correct-horse")
        response = api_client.post("/api/auth/login", json={"email": "wrong@example.com", "password": "nope-nope"})
        assert response.status_code == 401

    def test_me_without_cookie(self, api_client: TestClient):
        assert api_client.get("/api/auth/me").status_code == 401

    def test_invalid_token(self, api_client: TestClient):
        api_client.cookies.set("access_token", "not-a-jwt")
        assert api_client.get("/api/auth/me").status_code == 401

    def test_logout_returns_ok(self, api_client: TestClient):
        assert api_client.post("/api/auth/logout").status_code == 200


@pytest.mark.integration
class TestCourseRoutes:
    def test_list_requires_auth(self, api_client: TestClient):
        assert api_client.get("/api/courses").status_code == 401

    def test_list_shows_published_only(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        factory.course(chef, [[None]], title="Sourdough")
        factory.course(chef, [[None]], title="Secret drafts", published=False)
        client = login_as(factory.user())

        titles = [c["title"] for c in client.get("/api/courses").json()["courses"]]
        assert titles == ["Sourdough"]

    def test_search_filters_by_title(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        factory.course(chef, [[None]], title="Sourdough")
        factory.course(chef, [[None]], title="Ramen")
        client = login_as(factory.user())

        titles = [c["title"] for c in client.get("/api/courses", params={"search": "ram"}).json()["courses"]]
        assert titles == ["Ramen"]

    def test_detail_locks_modules_without_progress(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None], [None], [None]])
        client = login_as(factory.user())

        data = client.get(f"/api/courses/{course.id}").json()
        assert data["is_enrolled"] is False
        assert data["locked_modules"] == [course.modules[1].id, course.modules[2].id]
        assert data["modules"][0]["locked"] is False
        assert data["course"]["lesson_count"] == 3

    def test_detail_for_enrolled_learner_without_quizzes(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None], [None]])
        learner = factory.user()
        factory.enroll(learner, course)
        client = login_as(learner)

        data = client.get(f"/api/courses/{course.id}").json()
        assert data["is_enrolled"] is True
        assert data["locked_modules"] == []
        assert data["progress_percentage"] == 0.0

    def test_unpublished_course_hidden_from_learners(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None]], published=False)

        assert login_as(factory.user()).get(f"/api/courses/{course.id}").status_code == 403
        assert login_as(chef).get(f"/api/courses/{course.id}").status_code == 200

    def test_admin_sees_unpublished_course(self, api_client: TestClient, factory, login_as):
        course = factory.course(factory.instructor(), [[None]], published=False)
        admin = factory.user(role=UserRole.ADMIN)
        assert login_as(admin).get(f"/api/courses/{course.id}").status_code == 200

    def test_missing_course(self, api_client: TestClient, factory, login_as):
        response = login_as(factory.user()).get("/api/courses/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "Course not found"

    def test_enroll_is_idempotent(self, api_client: TestClient, factory, login_as):
        course = factory.course(factory.instructor(), [[None]])
        client = login_as(factory.user())

        first = client.post(f"/api/courses/{course.id}/enroll")
        second = client.post(f"/api/courses/{course.id}/enroll")
        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["enrolled"] is True
        assert client.get(f"/api/courses/{course.id}").json()["is_enrolled"] is True

    def test_enroll_in_unpublished_course_fails(self, api_client: TestClient, factory, login_as):
        chef = factory.instructor()
        course = factory.course(chef, [[None]], published=False)
        assert login_as(factory.user()).post(f"/api/courses/{course.id}/enroll").status_code == 403
