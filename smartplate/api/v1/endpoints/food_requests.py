# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from smartplate.crud import crud_food_request, crud_verification
from smartplate.crud.conditional import TransitionOutcome
from smartplate.db import models
from smartplate.db.database import get_db
from smartplate.db.models import AppRole, FoodRequestStatus
from smartplate.dependencies import (
    get_current_active_user,
    get_current_admin,
    get_current_donor,
    get_current_ngo_user,
    get_verified_ngo,
    get_verified_volunteer,
    get_viewer_position,
    read_upload,
    require_role,
)
from smartplate.schemas import schemas
from smartplate.services.food_requests import NO_LONGER_AVAILABLE, VISIBLE_STATUSES, allowed_targets, rank_requests
from smartplate.services.storage import (
    FOOD_REQUEST_PHOTOS_BUCKET,
    BlobStorage,
    StorageError,
    get_storage,
    object_name,
)
from smartplate.utils.geo import format_distance

router = APIRouter(
    tags=["Food Requests"],
    responses={404: {"description": "Not found"}},
)

get_delivery_actor = require_role(AppRole.VOLUNTEER, AppRole.ADMIN)


def _detail(food_request: models.FoodRequest, role: AppRole, distance_km: Optional[float] = None,
            schema=schemas.FoodRequestDetail, **extra):
    ngo = food_request.ngo
    return schema(
        **schemas.FoodRequest.model_validate(food_request).model_dump(),
        ngo_name=ngo.organization_name if ngo else None,
        ngo_city=ngo.city if ngo else None,
        ngo_state=ngo.state if ngo else None,
        distance_km=round(distance_km, 2) if distance_km is not None else None,
        distance_label=format_distance(distance_km) if distance_km is not None else None,
        photos=[schemas.FoodRequestPhoto.model_validate(photo) for photo in food_request.photos],
        allowed_transitions=allowed_targets(food_request.status, role),
        **extra,
    )


def _ranked(requests, position, role: AppRole) -> List[schemas.FoodRequestDetail]:
    lat, lng = position
    return [_detail(food_request, role, distance_km) for food_request, distance_km in rank_requests(requests, lat, lng)]


def _raise_for(outcome: TransitionOutcome, not_available: str = NO_LONGER_AVAILABLE):
    if outcome == TransitionOutcome.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Food request not found")
    if outcome == TransitionOutcome.FORBIDDEN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    if outcome == TransitionOutcome.NOT_AVAILABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=not_available)


def _owned_request(db: Session, request_id: int, user_id: int) -> models.FoodRequest:
    db_request = crud_food_request.get_food_request(db, request_id)
    if db_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Food request not found")
    if db_request.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return db_request


def _with_ngo_location(food_request: schemas.FoodRequestCreate, ngo: Optional[models.NgoDetails]):
    if ngo is None or (food_request.latitude is not None and food_request.longitude is not None):
        return food_request
    return food_request.model_copy(update={"latitude": ngo.latitude, "longitude": ngo.longitude})


# --- NGO ---

@router.post("/food-requests", response_model=schemas.FoodRequestDetail, status_code=status.HTTP_201_CREATED)
def create_food_request(
    food_request: schemas.FoodRequestCreate,
    ngo: models.NgoDetails = Depends(get_verified_ngo),
    db: Session = Depends(get_db),
):
    """
    Creates a pending food request for the current (verified) NGO.
    Requests without coordinates fall back to the NGO's location.
    """
    food_request = _with_ngo_location(food_request, ngo)
    db_request = crud_food_request.create_food_request(db, food_request, ngo, ngo.user_id)
    if db_request is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Food request could not be created")
    return _detail(db_request, AppRole.NGO)


@router.get("/food-requests/mine", response_model=List[schemas.FoodRequestDetail])
def read_my_food_requests(
    current_user: models.User = Depends(get_current_ngo_user),
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
):
    return [
        _detail(food_request, current_user.role)
        for food_request in crud_food_request.get_food_requests_for_owner(db, current_user.id, skip=skip, limit=limit)
    ]


@router.put("/food-requests/{request_id}", response_model=schemas.FoodRequestDetail)
def update_food_request(
    request_id: int,
    food_request: schemas.FoodRequestCreate,
    current_user: models.User = Depends(get_current_ngo_user),
    db: Session = Depends(get_db),
):
    db_request = _owned_request(db, request_id, current_user.id)
    food_request = _with_ngo_location(food_request, db_request.ngo)
    outcome = crud_food_request.update_food_request(db, request_id, food_request, current_user.id)
    _raise_for(outcome, "Only pending requests can be edited")
    return _detail(crud_food_request.get_food_request(db, request_id), current_user.role)


@router.delete("/food-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_food_request(
    request_id: int,
    current_user: models.User = Depends(get_current_ngo_user),
    db: Session = Depends(get_db),
):
    """
    Deletes one of the NGO's own requests. Only pending requests can be deleted.
    """
    _owned_request(db, request_id, current_user.id)
    outcome = crud_food_request.delete_food_request(db, request_id, current_user.id)
    _raise_for(outcome, "Only pending requests can be deleted")


@router.post(
    "/food-requests/{request_id}/photos",
    response_model=schemas.FoodRequestPhoto,
    status_code=status.HTTP_201_CREATED,
)
def upload_food_request_photo(
    request_id: int,
    file: UploadFile = File(...),
    latitude: Optional[float] = Form(default=None, ge=-90, le=90),
    longitude: Optional[float] = Form(default=None, ge=-180, le=180),
    captured_at: Optional[datetime] = Form(default=None),
    current_user: models.User = Depends(get_current_ngo_user),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    """
    Attaches a geo-tagged photo to one of the NGO's own requests.
    """
    _owned_request(db, request_id, current_user.id)
    if crud_food_request.count_photos(db, request_id) >= crud_food_request.MAX_PHOTOS_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A request can have at most {crud_food_request.MAX_PHOTOS_PER_REQUEST} photos",
        )
    data = read_upload(file, image_only=True)
    key = object_name(f"{current_user.id}/{request_id}/", file.filename)
    try:
        url = storage.upload(FOOD_REQUEST_PHOTOS_BUCKET, current_user.id, key, data)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return crud_food_request.add_photo(
        db, request_id, current_user.id, url, file.filename or key, latitude, longitude, captured_at
    )


@router.get("/food-requests/{request_id}/photos", response_model=List[schemas.FoodRequestPhoto])
def read_food_request_photos(
    request_id: int,
    current_user: models.User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    db_request = crud_food_request.get_food_request(db, request_id)
    if db_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Food request not found")

    role = current_user.role
    if role == AppRole.NGO:
        allowed = db_request.user_id == current_user.id
    elif role == AppRole.ADMIN:
        allowed = True
    else:
        allowed = FoodRequestStatus(db_request.status) in VISIBLE_STATUSES.get(role, ())
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return crud_food_request.get_photos(db, request_id)


# --- Admin ---

@router.get("/admin/food-requests/pending", response_model=List[schemas.FoodRequestDetail])
def read_pending_food_requests(
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
):
    return [
        _detail(food_request, current_admin.role)
        for food_request in crud_food_request.get_pending_food_requests(db, skip, limit)
    ]


@router.post("/admin/food-requests/{request_id}/approve", response_model=schemas.FoodRequestDetail)
def approve_food_request(
    request_id: int,
    background_tasks: BackgroundTasks,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    outcome = crud_food_request.approve_food_request(db, request_id, role=current_admin.role, background_tasks=background_tasks)
    _raise_for(outcome)
    return _detail(crud_food_request.get_food_request(db, request_id), current_admin.role)


@router.post("/admin/food-requests/{request_id}/reject", response_model=schemas.FoodRequestDetail)
def reject_food_request(
    request_id: int,
    background_tasks: BackgroundTasks,
    decision: Optional[schemas.ReviewDecision] = None,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    reason = decision.reason if decision else None
    outcome = crud_food_request.reject_food_request(db, request_id, reason, role=current_admin.role, background_tasks=background_tasks)
    _raise_for(outcome)
    return _detail(crud_food_request.get_food_request(db, request_id), current_admin.role)


# --- Donor ---

@router.get("/donor/food-requests", response_model=List[schemas.FoodRequestDetail])
def read_available_for_donor(
    current_donor: models.User = Depends(get_current_donor),
    position=Depends(get_viewer_position),
    db: Session = Depends(get_db),
):
    """
    Approved requests without a donor, most urgent first and then nearest first.
    """
    return _ranked(crud_food_request.get_available_for_donors(db), position, current_donor.role)


@router.post("/donor/food-requests/{request_id}/accept", response_model=schemas.FoodRequestDetail)
def accept_as_donor(
    request_id: int,
    background_tasks: BackgroundTasks,
    current_donor: models.User = Depends(get_current_donor),
    db: Session = Depends(get_db),
):
    outcome = crud_food_request.accept_by_donor(db, request_id, current_donor.id, role=current_donor.role, background_tasks=background_tasks)
    _raise_for(outcome)
    return _detail(crud_food_request.get_food_request(db, request_id), current_donor.role)


@router.get("/donor/donations", response_model=List[schemas.Donation])
def read_my_donations(current_donor: models.User = Depends(get_current_donor), db: Session = Depends(get_db)):
    """
    The donor's accepted requests. Volunteer contact details are shown once a volunteer
    has picked the delivery up.
    """
    donations = []
    for food_request in crud_food_request.get_donations(db, current_donor.id):
        volunteer = None
        if food_request.volunteer_id is not None and food_request.status in (
            FoodRequestStatus.IN_PROGRESS, FoodRequestStatus.COMPLETED
        ):
            details = crud_verification.get_details_by_user(db, models.VolunteerDetails, food_request.volunteer_id)
            if details is not None:
                volunteer = schemas.VolunteerContact(full_name=details.full_name, phone_number=details.phone_number)
        donations.append(_detail(food_request, current_donor.role, schema=schemas.Donation, volunteer=volunteer))
    return donations


# --- Volunteer ---

@router.get("/volunteer/food-requests", response_model=List[schemas.FoodRequestDetail])
def read_available_for_volunteer(
    current_volunteer: models.User = Depends(get_verified_volunteer),
    position=Depends(get_viewer_position),
    db: Session = Depends(get_db),
):
    return _ranked(crud_food_request.get_available_for_volunteers(db), position, current_volunteer.role)


@router.post("/volunteer/food-requests/{request_id}/accept", response_model=schemas.FoodRequestDetail)
def accept_as_volunteer(
    request_id: int,
    background_tasks: BackgroundTasks,
    current_volunteer: models.User = Depends(get_verified_volunteer),
    db: Session = Depends(get_db),
):
    outcome = crud_food_request.accept_by_volunteer(
        db, request_id, current_volunteer.id, role=current_volunteer.role, background_tasks=background_tasks
    )
    _raise_for(outcome)
    return _detail(crud_food_request.get_food_request(db, request_id), current_volunteer.role)


@router.post("/food-requests/{request_id}/complete", response_model=schemas.FoodRequestDetail)
def complete_food_request(
    request_id: int,
    background_tasks: BackgroundTasks,
    current_user: models.User = Depends(get_delivery_actor),
    db: Session = Depends(get_db),
):
    """
    Marks an in-progress delivery as completed. Volunteers can only complete their own deliveries.
    """
    outcome = crud_food_request.complete_food_request(
        db,
        request_id,
        current_user.id,
        role=current_user.role,
        background_tasks=background_tasks,
    )
    _raise_for(outcome)
    return _detail(crud_food_request.get_food_request(db, request_id), current_user.role)
