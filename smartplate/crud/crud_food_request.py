# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartplate.crud.conditional import TransitionOutcome, conditional_delete, conditional_update
from smartplate.db import models
from smartplate.db.models import AppRole, FoodRequestStatus, utcnow
from smartplate.events import notification_handlers, realtime
from smartplate.schemas import schemas
from smartplate.services.food_requests import can_transition

logger = logging.getLogger(__name__)

TABLE = models.FoodRequest.__tablename__
MAX_PHOTOS_PER_REQUEST = 5


def _changed(request_id: int, event: str = "UPDATE", user_id: Optional[int] = None):
    realtime.notify_change(TABLE, event, request_id, user_id)


def _notify(background_tasks: Optional[BackgroundTasks], request_id: int):
    if background_tasks is not None:
        background_tasks.add_task(notification_handlers.notify_food_request_status, request_id)


def get_food_request(db: Session, request_id: int):
    return db.query(models.FoodRequest).filter(models.FoodRequest.id == request_id).first()


def get_food_requests_for_owner(db: Session, user_id: int, skip: int = 0, limit: int = 100):
    return (
        db.query(models.FoodRequest)
        .filter(models.FoodRequest.user_id == user_id)
        .order_by(models.FoodRequest.created_at.desc(), models.FoodRequest.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_pending_food_requests(db: Session, skip: int = 0, limit: int = 100):
    return (
        db.query(models.FoodRequest)
        .filter(models.FoodRequest.status == FoodRequestStatus.PENDING)
        .order_by(models.FoodRequest.created_at.asc(), models.FoodRequest.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_available_for_donors(db: Session):
    return (
        db.query(models.FoodRequest)
        .filter(
            models.FoodRequest.status == FoodRequestStatus.APPROVED,
            models.FoodRequest.donor_id.is_(None),
        )
        .all()
    )


def get_available_for_volunteers(db: Session):
    return (
        db.query(models.FoodRequest)
        .filter(models.FoodRequest.status.in_([FoodRequestStatus.MATCHED, FoodRequestStatus.IN_PROGRESS]))
        .order_by(models.FoodRequest.created_at.desc())
        .all()
    )


def get_donations(db: Session, donor_id: int):
    return (
        db.query(models.FoodRequest)
        .filter(
            models.FoodRequest.donor_id == donor_id,
            models.FoodRequest.status.in_(
                [FoodRequestStatus.MATCHED, FoodRequestStatus.IN_PROGRESS, FoodRequestStatus.COMPLETED]
            ),
        )
        .order_by(models.FoodRequest.updated_at.desc())
        .all()
    )


def count_by_status(db: Session, *statuses: FoodRequestStatus, donor_id: Optional[int] = None,
                    unassigned: bool = False) -> int:
    query = db.query(models.FoodRequest).filter(models.FoodRequest.status.in_(list(statuses)))
    if donor_id is not None:
        query = query.filter(models.FoodRequest.donor_id == donor_id)
    if unassigned:
        query = query.filter(models.FoodRequest.donor_id.is_(None))
    return query.count()


def create_food_request(
    db: Session,
    food_request: schemas.FoodRequestCreate,
    ngo: models.NgoDetails,
    owner_id: int,
    background_tasks: Optional[BackgroundTasks] = None,
):
    db_request = models.FoodRequest(
        ngo_id=ngo.id,
        user_id=owner_id,
        title=food_request.title,
        description=food_request.description,
        quantity_needed=food_request.quantity_needed,
        quantity_unit=food_request.quantity_unit,
        urgency_level=food_request.urgency_level,
        latitude=food_request.latitude,
        longitude=food_request.longitude,
        address=food_request.address,
        needed_by=food_request.needed_by,
        status=FoodRequestStatus.PENDING,
    )
    try:
        db.add(db_request)
        db.commit()
        db.refresh(db_request)
    except IntegrityError:
        db.rollback()
        return None

    _changed(db_request.id, "INSERT", owner_id)
    return db_request


def update_food_request(db: Session, request_id: int, food_request: schemas.FoodRequestCreate, owner_id: int):
    """
    Applies the owner's edits while the request is still pending.
    """
    outcome = conditional_update(
        db,
        models.FoodRequest,
        request_id,
        {"user_id": owner_id, "status": FoodRequestStatus.PENDING},
        food_request.model_dump(),
    )
    if outcome == TransitionOutcome.APPLIED:
        _changed(request_id, user_id=owner_id)
    return outcome


def delete_food_request(db: Session, request_id: int, owner_id: int) -> TransitionOutcome:
    """
    Deletes an owner's request, only while it is pending.
    """
    outcome = conditional_delete(
        db, models.FoodRequest, request_id, {"user_id": owner_id, "status": FoodRequestStatus.PENDING}
    )
    if outcome == TransitionOutcome.APPLIED:
        db.query(models.FoodRequestPhoto).filter(models.FoodRequestPhoto.request_id == request_id).delete()
        db.commit()
        _changed(request_id, "DELETE", owner_id)
    return outcome


def _transition(db: Session, request_id: int, expected: dict, values: dict, role: AppRole,
                background_tasks: Optional[BackgroundTasks]) -> TransitionOutcome:
    target = values["status"]
    sources = expected["status"] if isinstance(expected["status"], tuple) else (expected["status"],)
    if not all(can_transition(source, target, role) for source in sources):
        logger.warning("Role %s may not move food request %d to %s", role.value, request_id, target.value)
        return TransitionOutcome.FORBIDDEN

    outcome = conditional_update(db, models.FoodRequest, request_id, expected, values)
    if outcome == TransitionOutcome.APPLIED:
        logger.info("Food request %d moved to %s", request_id, target.value)
        _changed(request_id)
        _notify(background_tasks, request_id)
    else:
        logger.info("Food request %d not moved to %s: %s", request_id, target.value, outcome.value)
    return outcome


def approve_food_request(db: Session, request_id: int, role: AppRole = AppRole.ADMIN,
                         background_tasks: Optional[BackgroundTasks] = None):
    return _transition(
        db, request_id,
        {"status": FoodRequestStatus.PENDING},
        {"status": FoodRequestStatus.APPROVED},
        role,
        background_tasks,
    )


def reject_food_request(db: Session, request_id: int, reason: Optional[str] = None, role: AppRole = AppRole.ADMIN,
                        background_tasks: Optional[BackgroundTasks] = None):
    return _transition(
        db, request_id,
        {"status": (FoodRequestStatus.PENDING, FoodRequestStatus.APPROVED)},
        {"status": FoodRequestStatus.CANCELLED, "rejection_reason": (reason or "").strip() or None},
        role,
        background_tasks,
    )


def accept_by_donor(db: Session, request_id: int, donor_id: int, role: AppRole = AppRole.DONOR,
                    background_tasks: Optional[BackgroundTasks] = None):
    """
    First donor to accept wins: applied only while approved and no donor is assigned.
    """
    return _transition(
        db, request_id,
        {"status": FoodRequestStatus.APPROVED, "donor_id": None},
        {"status": FoodRequestStatus.MATCHED, "donor_id": donor_id},
        role,
        background_tasks,
    )


def accept_by_volunteer(db: Session, request_id: int, volunteer_id: int, role: AppRole = AppRole.VOLUNTEER,
                        background_tasks: Optional[BackgroundTasks] = None):
    return _transition(
        db, request_id,
        {"status": FoodRequestStatus.MATCHED, "volunteer_id": None},
        {"status": FoodRequestStatus.IN_PROGRESS, "volunteer_id": volunteer_id},
        role,
        background_tasks,
    )


def complete_food_request(db: Session, request_id: int, actor_id: int, role: AppRole = AppRole.VOLUNTEER,
                          background_tasks: Optional[BackgroundTasks] = None):
    """
    Completes an in-progress delivery. Volunteers may only complete their own deliveries.
    """
    expected = {"status": FoodRequestStatus.IN_PROGRESS}
    if role != AppRole.ADMIN:
        expected["volunteer_id"] = actor_id
    return _transition(
        db, request_id,
        expected,
        {"status": FoodRequestStatus.COMPLETED, "completed_at": utcnow()},
        role,
        background_tasks,
    )


def get_photos(db: Session, request_id: int):
    return (
        db.query(models.FoodRequestPhoto)
        .filter(models.FoodRequestPhoto.request_id == request_id)
        .order_by(models.FoodRequestPhoto.uploaded_at.asc())
        .all()
    )


def count_photos(db: Session, request_id: int) -> int:
    return db.query(models.FoodRequestPhoto).filter(models.FoodRequestPhoto.request_id == request_id).count()


def add_photo(
    db: Session,
    request_id: int,
    user_id: int,
    photo_url: str,
    file_name: str,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    captured_at: Optional[datetime] = None,
):
    db_photo = models.FoodRequestPhoto(
        request_id=request_id,
        user_id=user_id,
        photo_url=photo_url,
        file_name=file_name,
        latitude=latitude,
        longitude=longitude,
        captured_at=captured_at or utcnow(),
    )
    db.add(db_photo)
    db.commit()
    db.refresh(db_photo)
    realtime.notify_change("food_request_photos", "INSERT", db_photo.id, user_id)
    return db_photo
