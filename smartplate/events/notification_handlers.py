"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Jul 15 2025
# SPDX-License-Identifier: MIT
"""

import logging

from sqlalchemy.orm import Session

from smartplate.crud import crud_food_request, crud_user, crud_verification
from smartplate.db import models
from smartplate.db.database import get_db
from smartplate.services.email_service import EmailService

logger = logging.getLogger(__name__)

SUBJECT_LABELS = {
    models.NgoDetails.__tablename__: ("NGO", models.NgoDetails, "organization_name"),
    models.VolunteerDetails.__tablename__: ("volunteer", models.VolunteerDetails, "full_name"),
}


async def notify_verification_decision(table: str, details_id: int):
    """
    E-mails the owner of NGO/volunteer details about an approve/reject decision.
    This function is designed to run as a background task.
    """
    label, model, name_field = SUBJECT_LABELS[table]
    db: Session = next(get_db())
    try:
        details = crud_verification.get_details(db, model, details_id)
        if details is None:
            logger.warning("Background Task Warning: %s %d not found for notification.", table, details_id)
            return
        owner = crud_user.get_user(db, details.user_id)
        if owner is None:
            logger.warning("Background Task Warning: owner of %s %d not found.", table, details_id)
            return
        approved = details.verification_status == models.VerificationStatus.APPROVED
        await EmailService().send_verification_decision(
            owner.email, getattr(details, name_field), label, approved, details.rejection_reason
        )
    finally:
        db.close()


async def notify_food_request_status(request_id: int):
    """
    E-mails the owning NGO user when their food request changes status.
    This function is designed to run as a background task.
    """
    db: Session = next(get_db())
    try:
        food_request = crud_food_request.get_food_request(db, request_id)
        if food_request is None:
            logger.warning("Background Task Warning: Food request %d not found for notification.", request_id)
            return
        owner = crud_user.get_user(db, food_request.user_id)
        if owner is None:
            logger.warning("Background Task Warning: owner of food request %d not found.", request_id)
            return
        name = owner.profile.full_name if owner.profile else owner.email
        await EmailService().send_food_request_update(owner.email, name, food_request)
    finally:
        db.close()
