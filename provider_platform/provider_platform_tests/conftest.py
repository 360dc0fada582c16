"""
Pytest configuration for Provider API tests.

Points the service at a throwaway SQLite database before the application
modules (and their settings) are imported.
"""
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "provider_platform_test.db")
os.environ["ENVIRONMENT"] = "development"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-bytes!!"
os.environ["LOCKOUT_MAX_FAILED_ATTEMPTS"] = "3"
os.environ["LOCKOUT_MINUTES"] = "5"
os.environ.pop("LOG_DIR", None)

import pytest
from fastapi.testclient import TestClient

from provider_platform.provider_platform.provider_service.main import app
from provider_platform.provider_platform.provider_service.db import Base, engine, SessionLocal
from provider_platform.provider_platform.provider_service.auth import (
    add_user_claim,
    create_access_token,
    create_user,
    find_user_by_email,
)


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def reset_database():
    # Drop all tables and recreate them before each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def ensure_user(email="owner@example.com", password="Secret123!", claims=()):
    db = SessionLocal()
    try:
        user = find_user_by_email(db, email)
        if not user:
            user, errors = create_user(db, email, password)
            assert not errors
        for claim_type in claims:
            add_user_claim(db, user, claim_type)
        return {"id": user.id, "email": user.email, "password": password}
    finally:
        db.close()


def auth_header_for(email: str):
    db = SessionLocal()
    try:
        token = create_access_token(find_user_by_email(db, email))["access_token"]
    finally:
        db.close()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    ensure_user()
    return auth_header_for("owner@example.com")


@pytest.fixture
def admin_headers():
    ensure_user("admin@example.com", claims=("DeleteProvider",))
    return auth_header_for("admin@example.com")
