# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from sqlalchemy.orm import Session

from smartplate.crud.conditional import TransitionOutcome, conditional_update
from smartplate.db import models
from smartplate.db.models import utcnow
from smartplate.events import realtime


def get_document(db: Session, document_id: int):
    return db.query(models.VerificationDocument).filter(models.VerificationDocument.id == document_id).first()


def get_documents_for_user(db: Session, user_id: int):
    return (
        db.query(models.VerificationDocument)
        .filter(models.VerificationDocument.user_id == user_id)
        .order_by(models.VerificationDocument.uploaded_at.desc())
        .all()
    )


def add_document(db: Session, user_id: int, document_type: str, file_name: str, document_url: str):
    db_document = models.VerificationDocument(
        user_id=user_id,
        document_type=document_type,
        file_name=file_name,
        document_url=document_url,
    )
    db.add(db_document)
    db.commit()
    db.refresh(db_document)
    realtime.notify_change("verification_documents", "INSERT", db_document.id, user_id)
    return db_document


def mark_verified(db: Session, document_id: int, reviewer_id: int) -> TransitionOutcome:
    outcome = conditional_update(
        db,
        models.VerificationDocument,
        document_id,
        {"verified": False},
        {"verified": True, "verified_by": reviewer_id, "verified_at": utcnow()},
    )
    if outcome == TransitionOutcome.APPLIED:
        realtime.notify_change("verification_documents", "UPDATE", document_id)
    return outcome
