"""
Integration test fixtures. Overrides get_db for API tests with the in-memory DB
that the shared ``factory`` fixture writes to.
"""
import pytest


@pytest.fixture
def override_get_db(session_factory):
    """Session dependency bound to the test's in-memory engine."""

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def api_client(override_get_db):
    """FastAPI TestClient with in-memory DB override."""
    from fastapi.testclient import TestClient
    from gurmania.api import app
    from gurmania.config import get_db
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(api_client):
    """Switch the client's auth cookie to ``user``."""
    from gurmania.schemas.auth_schemas import AuthTokenPayload
    from gurmania.utils.jwt import create_access_token

    def _login(user):
        token = create_access_token(AuthTokenPayload(sub=user.email, role=user.role.value))
        api_client.cookies.set("access_token", token)
        return api_client

    return _login
