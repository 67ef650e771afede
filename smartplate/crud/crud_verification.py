"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Wed Feb 04 2026
# SPDX-License-Identifier: MIT
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartplate.crud.conditional import TransitionOutcome, conditional_update
from smartplate.db import models
from smartplate.db.models import VerificationStatus, utcnow
from smartplate.events import notification_handlers, realtime
from smartplate.services.verification import DEFAULT_REJECTION_REASON

logger = logging.getLogger(__name__)

# Details model per verifiable role
DETAILS_MODELS = {
    models.AppRole.NGO: models.NgoDetails,
    models.AppRole.VOLUNTEER: models.VolunteerDetails,
}


def get_details(db: Session, model, details_id: int):
    return db.query(model).filter(model.id == details_id).first()


def get_details_by_user(db: Session, model, user_id: int):
    return db.query(model).filter(model.user_id == user_id).first()


def get_details_by_status(db: Session, model, status: VerificationStatus, skip: int = 0, limit: int = 100):
    return (
        db.query(model)
        .filter(model.verification_status == status)
        .order_by(model.created_at.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_by_status(db: Session, model, status: VerificationStatus) -> int:
    return db.query(model).filter(model.verification_status == status).count()


def submit_details(db: Session, model, user_id: int, details: BaseModel):
    """
    Creates or updates the owner's verification details and (re-)enters the pending state.
    Returns None once the details are approved: approved records are only changed by admins.
    """
    db_details = get_details_by_user(db, model, user_id)
    if db_details is not None and db_details.verification_status == VerificationStatus.APPROVED:
        return None

    if db_details is None:
        db_details = model(user_id=user_id)
        db.add(db_details)
        event = "INSERT"
    else:
        event = "UPDATE"

    for key, value in details.model_dump().items():
        setattr(db_details, key, value)
    db_details.verification_status = VerificationStatus.PENDING
    db_details.rejection_reason = None
    db_details.verified_by = None
    db_details.verified_at = None

    try:
        db.commit()
        db.refresh(db_details)
    except IntegrityError:
        db.rollback()
        return None

    realtime.notify_change(model.__tablename__, event, db_details.id, user_id)
    return db_details


def review_details(
    db: Session,
    model,
    details_id: int,
    reviewer_id: int,
    approve: bool,
    reason: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> TransitionOutcome:
    """
    Moves details to approved or rejected, stamping the reviewing admin and time. Admins may
    revoke an approval or overturn a rejection; details already in the target status are left untouched.
    """
    target = VerificationStatus.APPROVED if approve else VerificationStatus.REJECTED
    sources = tuple(status for status in VerificationStatus if status != target)
    values = {
        "verification_status": target,
        "rejection_reason": None if approve else ((reason or "").strip() or DEFAULT_REJECTION_REASON),
        "verified_by": reviewer_id,
        "verified_at": utcnow(),
    }
    outcome = conditional_update(
        db, model, details_id, {"verification_status": sources}, values
    )
    if outcome == TransitionOutcome.APPLIED:
        logger.info(
            "%s %s %d by admin %d", model.__tablename__, values["verification_status"].value, details_id, reviewer_id
        )
        realtime.notify_change(model.__tablename__, "UPDATE", details_id)
        if background_tasks is not None:
            background_tasks.add_task(
                notification_handlers.notify_verification_decision, model.__tablename__, details_id
            )
    return outcome


def get_approved_ngos_with_location(db: Session):
    return (
        db.query(models.NgoDetails)
        .filter(
            models.NgoDetails.verification_status == VerificationStatus.APPROVED,
            models.NgoDetails.latitude.isnot(None),
            models.NgoDetails.longitude.isnot(None),
        )
        .all()
    )
