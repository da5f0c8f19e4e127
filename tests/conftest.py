"""Pytest configuration and fixtures."""

import os

# Use test database - PostgreSQL when DATABASE_URL is set, SQLite locally.
# Must be settled before the application modules build their engine.
if os.getenv("DATABASE_URL"):
    _base_url, _db_name = os.environ["DATABASE_URL"].rsplit("/", 1)
    SQLALCHEMY_DATABASE_URL = f"{_base_url}/{_db_name}_test"
else:
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from accounts.database import Base, engine, get_db  # noqa: E402
from accounts.main import app  # noqa: E402

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    from accounts import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_payload():
    """Valid registration body."""
    return {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "password": "analytical1",
    }


@pytest.fixture
def created_user(client, user_payload):
    """Register a user through the API and return its data."""
    response = client.post("/api/v1/users", json=user_payload)
    assert response.status_code == 201
    return response.json()["data"]
