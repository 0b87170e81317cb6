"""
Test configuration and fixtures.

Provides:
- SQLite in-memory database, tables created and dropped per test
- Seeded permission catalog
- User factories and JWT token minting for authenticated tests
- FastAPI TestClient wired to the test session
"""
import os
from typing import Callable, Generator

# Settings are read once on first import; configure the environment first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SEED_PERMISSIONS_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.database import SessionLocal, engine, get_db
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models.registry import Base
from app.models.user import User, UserRole, UserStatus
from app.repositories.customer_repository import CustomerRepository
from app.repositories.user_repository import UserRepository
from app.services.seed_service import seed_default_permissions

TEST_PASSWORD = "Secret123!"
_password_hash: str | None = None


def _hashed_test_password() -> str:
    # bcrypt is slow; hash once per session
    global _password_hash
    if _password_hash is None:
        _password_hash = get_password_hash(TEST_PASSWORD)
    return _password_hash


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and seeded permission catalog for every test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_default_permissions(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def factory(
        role: UserRole | str = UserRole.USER,
        *,
        name: str | None = None,
        email: str | None = None,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        counter["n"] += 1
        role_value = role.value if isinstance(role, UserRole) else role
        return UserRepository(db).create(
            {
                "name": name or f"{role_value.title()} {counter['n']}",
                "email": email or f"{role_value.lower()}{counter['n']}@example.com",
                "hashed_password": _hashed_test_password(),
                "role": role_value,
                "status": status,
            }
        )

    return factory


@pytest.fixture
def make_customer(db: Session):
    counter = {"n": 0}

    def factory(**overrides):
        counter["n"] += 1
        data = {"name": f"Customer {counter['n']:02d}"}
        data.update(overrides)
        return CustomerRepository(db).create(data)

    return factory


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(UserRole.ADMIN, name="Ada Admin", email="admin@example.com")


@pytest.fixture
def employee_user(make_user) -> User:
    return make_user(UserRole.EMPLOYEE, name="Erik Employee", email="employee@example.com")


# =============================================================================
# Auth Fixtures
# =============================================================================

def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token(subject=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
def employee_headers(employee_user: User) -> dict[str, str]:
    return auth_headers_for(employee_user)


# =============================================================================
# HTTP Client
# =============================================================================

@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """TestClient sharing the test session (lifespan is not run)."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers_for
