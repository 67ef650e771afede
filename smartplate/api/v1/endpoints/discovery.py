# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smartplate.crud import crud_food_request, crud_user, crud_verification
from smartplate.db import models
from smartplate.db.database import get_db
from smartplate.db.models import AppRole, FoodRequestStatus, VerificationStatus
from smartplate.dependencies import get_current_active_user, get_current_admin, get_current_donor
from smartplate.schemas import schemas
from smartplate.utils.geo import filter_by_radius, format_distance

router = APIRouter(
    tags=["Discovery"],
    responses={404: {"description": "Not found"}},
)


@router.get("/ngos/nearby", response_model=List[schemas.NearbyNgo])
def read_nearby_ngos(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(default=10.0, gt=0, le=500),
    current_user: models.User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """
    Approved NGOs within `radius_km` of the given point, nearest first.
    """
    return [
        schemas.NearbyNgo(
            id=entry.item.id,
            organization_name=entry.item.organization_name,
            city=entry.item.city,
            state=entry.item.state,
            latitude=entry.item.latitude,
            longitude=entry.item.longitude,
            distance_km=round(entry.distance, 2),
            distance_label=format_distance(entry.distance),
        )
        for entry in filter_by_radius(crud_verification.get_approved_ngos_with_location(db), lat, lng, radius_km)
    ]


@router.get("/admin/stats", response_model=schemas.AdminStats)
def read_admin_stats(current_admin: models.User = Depends(get_current_admin), db: Session = Depends(get_db)):
    return schemas.AdminStats(
        pending_ngos=crud_verification.count_by_status(db, models.NgoDetails, VerificationStatus.PENDING),
        approved_ngos=crud_verification.count_by_status(db, models.NgoDetails, VerificationStatus.APPROVED),
        rejected_ngos=crud_verification.count_by_status(db, models.NgoDetails, VerificationStatus.REJECTED),
        pending_volunteers=crud_verification.count_by_status(db, models.VolunteerDetails, VerificationStatus.PENDING),
        approved_volunteers=crud_verification.count_by_status(
            db, models.VolunteerDetails, VerificationStatus.APPROVED
        ),
        rejected_volunteers=crud_verification.count_by_status(
            db, models.VolunteerDetails, VerificationStatus.REJECTED
        ),
        active_donors=crud_user.count_users_by_role(db, AppRole.DONOR),
        pending_food_requests=crud_food_request.count_by_status(db, FoodRequestStatus.PENDING),
        completed_deliveries=crud_food_request.count_by_status(db, FoodRequestStatus.COMPLETED),
    )


@router.get("/donor/stats", response_model=schemas.DonorStats)
def read_donor_stats(current_donor: models.User = Depends(get_current_donor), db: Session = Depends(get_db)):
    return schemas.DonorStats(
        available_requests=crud_food_request.count_by_status(db, FoodRequestStatus.APPROVED, unassigned=True),
        my_donations=crud_food_request.count_by_status(
            db,
            FoodRequestStatus.MATCHED,
            FoodRequestStatus.IN_PROGRESS,
            FoodRequestStatus.COMPLETED,
            donor_id=current_donor.id,
        ),
        completed_donations=crud_food_request.count_by_status(
            db, FoodRequestStatus.COMPLETED, donor_id=current_donor.id
        ),
    )
