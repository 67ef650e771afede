# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import os

# Safety check to prevent tests from running against production database
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from smartplate.app import app
from smartplate.db.database import Base, SessionLocal, engine, get_db
from smartplate.db.models import AppRole
from smartplate.events.realtime import change_feed
from smartplate.services.storage import BlobStorage, get_storage
from tests.test_helpers import approved_ngo, approved_volunteer, auth_headers, create_user


@pytest.fixture(name="db_session", scope="function")
def db_session_fixture():
    """
    Creates a new database session for each test, with all tables created.
    The application engine is an in-memory SQLite database while TESTING=1.
    """
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after the test to ensure a clean slate
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="storage")
def storage_fixture(tmp_path):
    return BlobStorage(str(tmp_path / "uploads"), "/files")


@pytest.fixture(name="notifications")
def notifications_fixture(mocker):
    """
    Replaces the e-mail background tasks so no notification leaves the test.
    """
    return {
        "verification": mocker.patch(
            "smartplate.events.notification_handlers.notify_verification_decision"
        ),
        "food_request": mocker.patch(
            "smartplate.events.notification_handlers.notify_food_request_status"
        ),
    }


@pytest.fixture(name="client")
def client_fixture(db_session: Session, storage: BlobStorage, notifications):
    """
    Provides a FastAPI TestClient that overrides the get_db dependency
    to use the test database session and stores uploads in a temporary directory.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def isolated_change_feed():
    yield
    change_feed._subscriptions.clear()


@pytest.fixture(name="admin")
def admin_fixture(db_session: Session):
    user = create_user(db_session, "admin@example.com", AppRole.ADMIN, full_name="Admin")
    return user, auth_headers(user)


@pytest.fixture(name="donor")
def donor_fixture(db_session: Session):
    user = create_user(db_session, "donor@example.com", AppRole.DONOR, full_name="Dana Donor")
    return user, auth_headers(user)


@pytest.fixture(name="ngo")
def ngo_fixture(db_session: Session):
    user, details = approved_ngo(db_session)
    return user, details, auth_headers(user)


@pytest.fixture(name="volunteer")
def volunteer_fixture(db_session: Session):
    user, details = approved_volunteer(db_session)
    return user, details, auth_headers(user)
