"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Jul 08 2025
# SPDX-License-Identifier: MIT
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from smartplate.crud import crud_user
from smartplate.db import models
from smartplate.db.database import get_db
from smartplate.dependencies import get_current_active_user, get_current_admin
from smartplate.events import realtime
from smartplate.schemas import schemas
from smartplate.services.session_service import AuthResult, SessionServiceProvider, get_session_provider

router = APIRouter(
    tags=["Authentication"],
    responses={404: {"description": "Not found"}},
)

AUTH_ERROR_STATUS = {
    "email_taken": status.HTTP_400_BAD_REQUEST,
    "invalid": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "inactive": status.HTTP_400_BAD_REQUEST,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_for_auth(result: AuthResult):
    if result.ok:
        return
    status_code = AUTH_ERROR_STATUS.get(result.error.code, status.HTTP_400_BAD_REQUEST)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    raise HTTPException(status_code=status_code, detail=result.error.message, headers=headers)


@router.post("/register", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
async def register_user(
    user: schemas.UserCreate,
    provider: SessionServiceProvider = Depends(get_session_provider),
    db: Session = Depends(get_db),
):
    """
    Registers a new user with a profile and a role.
    """
    if user.role == models.AppRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin accounts cannot self-register")

    session = provider.create()
    try:
        _raise_for_auth(await session.sign_up(user.email, user.password, user.full_name, user.role))
        return crud_user.get_user(db, session.user_id)
    finally:
        await session.close()


@router.post("/login", response_model=schemas.Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    provider: SessionServiceProvider = Depends(get_session_provider),
):
    """
    Authenticates a user and returns an access token.
    """
    session = provider.create()
    try:
        _raise_for_auth(await session.sign_in(form_data.username, form_data.password))
        return {"access_token": session.access_token, "token_type": "bearer"}
    finally:
        await session.close()


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(current_user: models.User = Depends(get_current_active_user)):
    """
    Signs the user out of every open realtime session.
    """
    realtime.notify_auth(realtime.SIGNED_OUT, current_user.id)


@router.get("/me", response_model=schemas.User)
def read_users_me(current_user: models.User = Depends(get_current_active_user)):
    return current_user


@router.get("/me/role", response_model=schemas.RoleRead)
def read_my_role(current_user: models.User = Depends(get_current_active_user), db: Session = Depends(get_db)):
    """
    Re-reads the role of the current user.
    """
    return {"role": crud_user.get_role(db, current_user.id)}


@router.put("/admin/users/{user_id}/role", response_model=schemas.User)
def assign_user_role(
    user_id: int,
    assignment: schemas.RoleAssign,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Assigns a role to a user, e.g. an account left without one. Open sessions of that user
    pick up the new role.
    """
    db_user = crud_user.assign_role(db, user_id, assignment.role)
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return db_user
