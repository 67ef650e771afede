'''
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Thu Jul 17 2025
# SPDX-License-Identifier: MIT
'''

from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from smartplate.app import app
from smartplate.crud import crud_user
from smartplate.db import models
from smartplate.db.models import AppRole
from smartplate.events.realtime import AUTH_CHANNEL, ROLE_CHANGED, SIGNED_IN, SIGNED_OUT, change_feed
from smartplate.services.session_service import AuthError, AuthResult, get_session_provider
from smartplate.utils.tokens import create_access_token, verify_token
from tests.test_helpers import DEFAULT_PASSWORD, auth_headers, create_user


def _register(client, email="donor@example.com", role="donor", **overrides):
    payload = {"email": email, "password": DEFAULT_PASSWORD, "full_name": "Dana Donor", "role": role}
    payload.update(overrides)
    return client.post("/api/v1/register", json=payload)


def test_register_creates_identity_profile_and_role(client: TestClient, db_session: Session):
    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "donor"
    assert body["profile"]["full_name"] == "Dana Donor"
    user = crud_user.get_user_by_email(db_session, "donor@example.com")
    assert crud_user.get_role(db_session, user.id) == AppRole.DONOR
    assert user.password != DEFAULT_PASSWORD


def test_register_existing_email(client: TestClient):
    assert _register(client).status_code == 201

    response = _register(client, full_name="Someone Else")

    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


@pytest.mark.parametrize(
    "overrides",
    [
        {"password": "12345"},
        {"confirm_password": "different"},
        {"full_name": "   "},
        {"email": "not-an-email"},
        {"role": "superuser"},
    ],
)
def test_register_validation_errors(client: TestClient, db_session: Session, overrides):
    response = _register(client, **overrides)

    assert response.status_code == 422
    assert db_session.query(models.User).count() == 0


def test_register_admin_is_forbidden(client: TestClient):
    response = _register(client, email="boss@example.com", role="admin")

    assert response.status_code == 403


def test_login_invalid_credentials(client: TestClient, db_session: Session):
    response = client.post("/api/v1/login", data={"username": "nobody@example.com", "password": "whatever"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect email or password"

    create_user(db_session, "donor@example.com", AppRole.DONOR)
    response = client.post("/api/v1/login", data={"username": "donor@example.com", "password": "wrongpassword"})
    assert response.status_code == 401


def test_login_inactive_user(client: TestClient, db_session: Session):
    user = create_user(db_session, "inactive@example.com", AppRole.DONOR)
    user.is_active = 0
    db_session.commit()

    response = client.post("/api/v1/login", data={"username": "inactive@example.com", "password": DEFAULT_PASSWORD})

    assert response.status_code == 400
    assert response.json()["detail"] == "Inactive user"


def test_login_and_logout_publish_auth_events(client: TestClient, db_session: Session):
    user = create_user(db_session, "donor@example.com", AppRole.DONOR)
    events = []
    change_feed.subscribe(AUTH_CHANNEL, events.append)

    response = client.post("/api/v1/login", data={"username": "donor@example.com", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.post("/api/v1/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 204

    assert [(event.event, event.user_id) for event in events] == [(SIGNED_IN, user.id), (SIGNED_OUT, user.id)]


def test_login_signs_in_through_the_session_service(client: TestClient, mocker):
    service = mocker.MagicMock()
    service.sign_in = mocker.AsyncMock(return_value=AuthResult())
    service.close = mocker.AsyncMock()
    service.access_token = "issued-token"
    provider = mocker.MagicMock()
    provider.create.return_value = service
    app.dependency_overrides[get_session_provider] = lambda: provider

    response = client.post("/api/v1/login", data={"username": "donor@example.com", "password": DEFAULT_PASSWORD})

    assert response.json() == {"access_token": "issued-token", "token_type": "bearer"}
    service.sign_in.assert_awaited_once_with("donor@example.com", DEFAULT_PASSWORD)
    service.close.assert_awaited_once()


def test_register_reports_session_service_errors(client: TestClient, mocker):
    service = mocker.MagicMock()
    service.sign_up = mocker.AsyncMock(return_value=AuthResult(AuthError("unavailable", "database is down")))
    service.close = mocker.AsyncMock()
    provider = mocker.MagicMock()
    provider.create.return_value = service
    app.dependency_overrides[get_session_provider] = lambda: provider

    response = _register(client)

    assert response.status_code == 503
    assert response.json()["detail"] == "database is down"
    service.sign_up.assert_awaited_once_with("donor@example.com", DEFAULT_PASSWORD, "Dana Donor", AppRole.DONOR)


def test_me_and_role(client: TestClient, db_session: Session):
    user = create_user(db_session, "ngo@example.com", AppRole.NGO, full_name="Asha")

    me = client.get("/api/v1/me", headers=auth_headers(user))
    role = client.get("/api/v1/me/role", headers=auth_headers(user))

    assert me.status_code == 200
    assert me.json()["email"] == "ngo@example.com"
    assert role.json() == {"role": "ngo"}


def test_me_requires_valid_token(client: TestClient):
    assert client.get("/api/v1/me").status_code == 401
    response = client.get("/api/v1/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"


def test_token_for_unknown_user_is_rejected(client: TestClient):
    token = create_access_token({"sub": "ghost@example.com"})

    response = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_role_guard_rejects_other_roles(client: TestClient, db_session: Session):
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)

    response = client.get("/api/v1/admin/stats", headers=auth_headers(donor))

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


def test_verify_token_round_trip():
    token = create_access_token({"sub": "test@example.com"}, expires_delta=timedelta(minutes=60))

    assert verify_token(token, HTTPException(status_code=401)).email == "test@example.com"


def test_verify_token_expired():
    token = create_access_token({"sub": "test@example.com"}, expires_delta=timedelta(minutes=-1))

    with pytest.raises(HTTPException):
        verify_token(token, HTTPException(status_code=401))


def test_verify_token_without_subject():
    token = create_access_token({"scope": "none"})

    with pytest.raises(HTTPException):
        verify_token(token, HTTPException(status_code=401))


def test_admin_assigns_missing_role(client: TestClient, db_session: Session):
    admin = create_user(db_session, "admin@example.com", AppRole.ADMIN)
    orphan = models.User(email="orphan@example.com", password="not-used", is_active=1)
    db_session.add(orphan)
    db_session.commit()
    events = []
    change_feed.subscribe(AUTH_CHANNEL, events.append)

    response = client.put(
        f"/api/v1/admin/users/{orphan.id}/role", json={"role": "volunteer"}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["role"] == "volunteer"
    assert [(event.event, event.user_id) for event in events] == [(ROLE_CHANGED, orphan.id)]
    assert client.get("/api/v1/me/role", headers=auth_headers(orphan)).json() == {"role": "volunteer"}


def test_role_assignment_requires_admin_and_known_user(client: TestClient, db_session: Session):
    admin = create_user(db_session, "admin@example.com", AppRole.ADMIN)
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)

    forbidden = client.put(f"/api/v1/admin/users/{donor.id}/role", json={"role": "ngo"}, headers=auth_headers(donor))
    missing = client.put("/api/v1/admin/users/999/role", json={"role": "ngo"}, headers=auth_headers(admin))

    assert forbidden.status_code == 403
    assert missing.status_code == 404
