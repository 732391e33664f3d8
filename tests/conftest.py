"""
Pytest configuration and shared fixtures for the permit service tests.

The database URL and JWT secret are set before anything under ``shared`` is
imported, so the engine is bound to a throwaway SQLite file.

- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="permit-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'permit.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["APP_URL"] = "https://permits.example.test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from shared.core.auth import create_access_token  # noqa: E402
from shared.core.database import Base, PermitSessionLocal, permit_engine  # noqa: E402
from shared.core.schemas import UserToken  # noqa: E402
from permit_service.app.main import app  # noqa: E402

MANAGER_ID = "manager-1"
OTHER_MANAGER_ID = "manager-2"


@pytest.fixture(autouse=True)
def reset_database():
    """Every test starts from empty tables."""
    Base.metadata.drop_all(bind=permit_engine)
    Base.metadata.create_all(bind=permit_engine)
    yield


@pytest.fixture
def db():
    session = PermitSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    """Open extra sessions (simulating concurrent requests); all closed at teardown."""
    sessions = []

    def _open():
        session = PermitSessionLocal()
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.close()


@pytest.fixture
def manager() -> UserToken:
    return UserToken(user_id=MANAGER_ID, name="Maria Manager", email="maria@example.com",
                     account_type="staff", role="permit_manager")


@pytest.fixture
def other_manager() -> UserToken:
    return UserToken(user_id=OTHER_MANAGER_ID, name="Omar Other", email="omar@example.com",
                     account_type="staff", role="permit_manager")


def token_for(user: UserToken) -> str:
    return create_access_token({
        "user_id": user.user_id,
        "name": user.name,
        "email": user.email,
        "account_type": user.account_type,
        "role": user.role,
    })


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers(manager: UserToken) -> dict:
    return {"Authorization": f"Bearer {token_for(manager)}"}


@pytest.fixture
def other_auth_headers(other_manager: UserToken) -> dict:
    return {"Authorization": f"Bearer {token_for(other_manager)}"}


@pytest.fixture
def owner(db, manager):
    """A fresh UNVERIFIED owner assigned to ``manager``."""
    from permit_service.app.crud import business_owners_crud
    from permit_service.app.schemas.business_owners_schemas import BusinessOwnerCreate

    return business_owners_crud.create_owner(db, BusinessOwnerCreate(
        first_name="Ana",
        last_name="Rivera",
        email="ana.rivera@example.com",
        tax_id="123456789",
        id_license_number="D1234-5678",
        city="San Juan",
        state="PR",
    ), manager)


@pytest.fixture
def make_token():
    return token_for
