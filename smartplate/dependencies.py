"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Jul 08 2025
# SPDX-License-Identifier: MIT
"""

from typing import Optional

from fastapi import Depends, HTTPException, Query, UploadFile, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from smartplate.config import settings
from smartplate.crud import crud_user, crud_verification
from smartplate.db.database import get_db
from smartplate.db.models import AppRole, NgoDetails, User, VolunteerDetails
from smartplate.services import verification
from smartplate.services.location import LocationService, get_location_service
from smartplate.utils.tokens import verify_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/login")


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    FastAPI dependency to get the current authenticated user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token_data = verify_token(token, credentials_exception)
    user = crud_user.get_user_by_email(db, email=token_data.email)
    if user is None:
        raise credentials_exception
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


def require_role(*roles: AppRole):
    """
    Builds a dependency that admits only users holding one of `roles`.
    """
    def dependency(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{' or '.join(role.value for role in roles).capitalize()} access required",
            )
        return current_user

    return dependency


get_current_admin = require_role(AppRole.ADMIN)
get_current_ngo_user = require_role(AppRole.NGO)
get_current_donor = require_role(AppRole.DONOR)
get_current_volunteer = require_role(AppRole.VOLUNTEER)


def get_verified_ngo(
    current_user: User = Depends(get_current_ngo_user), db: Session = Depends(get_db)
) -> NgoDetails:
    """
    FastAPI dependency resolving the current user's NGO details, which must be approved.
    """
    ngo = crud_verification.get_details_by_user(db, NgoDetails, current_user.id)
    if not verification.is_approved(ngo):
        decision = verification.gate(verification.verification_state(ngo), AppRole.NGO)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.message)
    return ngo


def get_verified_volunteer(
    current_user: User = Depends(get_current_volunteer), db: Session = Depends(get_db)
) -> User:
    details = crud_verification.get_details_by_user(db, VolunteerDetails, current_user.id)
    if not verification.is_approved(details):
        decision = verification.gate(verification.verification_state(details), AppRole.VOLUNTEER)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.message)
    return current_user


async def get_viewer_position(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    location: LocationService = Depends(get_location_service),
):
    """
    The viewer's coordinates: taken from the query when given, otherwise from the
    configured default position when there is one.
    """
    if lat is not None and lng is not None:
        return lat, lng
    position = await location.refresh()
    if position is None:
        return None, None
    return position.latitude, position.longitude


def read_upload(file: UploadFile, image_only: bool = False) -> bytes:
    """
    Reads an uploaded file, rejecting empty, oversized or (optionally) non-image content.
    """
    if image_only and not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Only image files are allowed")
    data = file.file.read(settings.max_upload_bytes + 1)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Uploaded file is too large")
    return data
