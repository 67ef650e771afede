# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import pytest
from sqlalchemy.orm import Session

from smartplate.crud import crud_food_request, crud_verification
from smartplate.db import models
from smartplate.events import notification_handlers
from smartplate.schemas import schemas
from tests.test_helpers import approved_ngo, create_user, food_request_payload, submit_ngo_details


@pytest.fixture(name="email_service")
def email_service_fixture(db_session: Session, mocker):
    mocker.patch("smartplate.events.notification_handlers.get_db", return_value=iter([db_session]))
    email_service = mocker.MagicMock()
    email_service.send_food_request_update = mocker.AsyncMock()
    email_service.send_verification_decision = mocker.AsyncMock()
    mocker.patch("smartplate.events.notification_handlers.EmailService", return_value=email_service)
    return email_service


async def test_food_request_notification_request_not_found(email_service, caplog):
    await notification_handlers.notify_food_request_status(99999)

    assert "Food request 99999 not found for notification." in caplog.text
    email_service.send_food_request_update.assert_not_called()


async def test_food_request_notification_mails_owner(db_session: Session, email_service):
    ngo_user, ngo = approved_ngo(db_session)
    db_request = crud_food_request.create_food_request(
        db_session, schemas.FoodRequestCreate(**food_request_payload()), ngo, ngo_user.id
    )
    crud_food_request.approve_food_request(db_session, db_request.id)

    await notification_handlers.notify_food_request_status(db_request.id)

    email_service.send_food_request_update.assert_called_once()
    to_email, name, food_request = email_service.send_food_request_update.call_args[0]
    assert (to_email, name) == ("ngo@example.com", "NGO Contact")
    assert food_request.status == models.FoodRequestStatus.APPROVED


async def test_verification_notification_mails_decision(db_session: Session, email_service):
    user = create_user(db_session, "ngo@example.com", models.AppRole.NGO)
    admin = create_user(db_session, "admin@example.com", models.AppRole.ADMIN)
    details = submit_ngo_details(db_session, user)
    crud_verification.review_details(db_session, models.NgoDetails, details.id, admin.id, False, "Blurry scan")

    await notification_handlers.notify_verification_decision(models.NgoDetails.__tablename__, details.id)

    email_service.send_verification_decision.assert_called_once_with(
        "ngo@example.com", "Helping Hands", "NGO", False, "Blurry scan"
    )


async def test_verification_notification_details_not_found(email_service, caplog):
    await notification_handlers.notify_verification_decision(models.VolunteerDetails.__tablename__, 4242)

    assert "volunteer_details 4242 not found for notification." in caplog.text
    email_service.send_verification_decision.assert_not_called()
