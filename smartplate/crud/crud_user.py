# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartplate.db import models
from smartplate.events import realtime
from smartplate.schemas import schemas
from smartplate.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_role(db: Session, user_id: int):
    assignment = db.query(models.UserRole).filter(models.UserRole.user_id == user_id).first()
    return assignment.role if assignment else None


def get_profile(db: Session, user_id: int):
    return db.query(models.Profile).filter(models.Profile.user_id == user_id).first()


def sign_up(db: Session, user: schemas.UserCreate):
    """
    Creates the identity, its profile and its role assignment in a single transaction.
    Either all three rows exist afterwards or none do.
    """
    db_user = models.User(email=user.email, password=get_password_hash(user.password), is_active=1)
    db_user.profile = models.Profile(full_name=user.full_name)
    db_user.role_assignment = models.UserRole(role=user.role)
    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        db.rollback()
        logger.warning("Sign-up rejected for %s: integrity error", user.email)
        return None

    realtime.notify_change("user_roles", "INSERT", db_user.role_assignment.id, db_user.id)
    return db_user


def assign_role(db: Session, user_id: int, role: models.AppRole):
    """
    Sets the user's role, creating the assignment when it is missing. Live sessions of the
    user are told to re-read their role.
    """
    db_user = get_user(db, user_id)
    if db_user is None:
        return None
    if db_user.role_assignment is None:
        db_user.role_assignment = models.UserRole(role=role)
        event = "INSERT"
    else:
        db_user.role_assignment.role = role
        event = "UPDATE"
    db.commit()
    db.refresh(db_user)

    logger.info("Role of user %d set to %s", user_id, role.value)
    realtime.notify_change("user_roles", event, db_user.role_assignment.id, user_id)
    realtime.notify_auth(realtime.ROLE_CHANGED, user_id)
    return db_user


def authenticate(db: Session, email: str, password: str):
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password):
        return None
    return user


def count_users_by_role(db: Session, role: models.AppRole) -> int:
    return db.query(models.UserRole).filter(models.UserRole.role == role).count()
