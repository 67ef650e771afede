# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from smartplate.crud import crud_document, crud_user, crud_verification
from smartplate.crud.conditional import TransitionOutcome
from smartplate.db import models
from smartplate.db.database import get_db
from smartplate.db.models import AppRole, VerificationStatus
from smartplate.dependencies import get_current_admin, get_current_ngo_user, get_current_volunteer, read_upload
from smartplate.schemas import schemas
from smartplate.services import verification
from smartplate.services.storage import (
    NGO_DOCUMENTS_BUCKET,
    VOLUNTEER_DOCUMENTS_BUCKET,
    BlobStorage,
    StorageError,
    get_storage,
    object_name,
)

router = APIRouter(
    tags=["Verification"],
    responses={404: {"description": "Not found"}},
)

DOCUMENT_BUCKETS = {
    AppRole.NGO: NGO_DOCUMENTS_BUCKET,
    AppRole.VOLUNTEER: VOLUNTEER_DOCUMENTS_BUCKET,
}


def _read_details(db: Session, role: AppRole, user_id: int):
    details = crud_verification.get_details_by_user(db, crud_verification.DETAILS_MODELS[role], user_id)
    if details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Verification details not found")
    return details


def _missing_documents(db: Session, role: AppRole, user_id: int) -> List[str]:
    uploaded = [document.document_type for document in crud_document.get_documents_for_user(db, user_id)]
    return verification.missing_documents(role, uploaded)


def _submit(db: Session, role: AppRole, user_id: int, details):
    missing = _missing_documents(db, role, user_id)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Upload the required documents first: {', '.join(missing)}",
        )
    db_details = crud_verification.submit_details(db, crud_verification.DETAILS_MODELS[role], user_id, details)
    if db_details is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Approved details cannot be changed")
    return db_details


def _gate(db: Session, role: AppRole, user_id: int) -> schemas.GateDecision:
    details = crud_verification.get_details_by_user(db, crud_verification.DETAILS_MODELS[role], user_id)
    decision = verification.gate(verification.verification_state(details), role)
    return decision.model_copy(update={"missing_documents": _missing_documents(db, role, user_id)})


def _upload_document(
    db: Session, storage: BlobStorage, role: AppRole, user_id: int, document_type: str, file: UploadFile
):
    allowed = verification.REQUIRED_DOCUMENTS[role] + ("other",)
    if document_type not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Document type must be one of: {', '.join(allowed)}",
        )
    data = read_upload(file)
    key = object_name(f"{user_id}/{document_type}-", file.filename)
    try:
        url = storage.upload(DOCUMENT_BUCKETS[role], user_id, key, data)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return crud_document.add_document(db, user_id, document_type, file.filename or key, url)


def _review(db: Session, role: AppRole, details_id: int, admin: models.User, approve: bool,
            reason: Optional[str], background_tasks: BackgroundTasks):
    model = crud_verification.DETAILS_MODELS[role]
    outcome = crud_verification.review_details(
        db, model, details_id, admin.id, approve, reason, background_tasks=background_tasks
    )
    if outcome == TransitionOutcome.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Verification details not found")
    if outcome == TransitionOutcome.NOT_AVAILABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Verification is already {'approved' if approve else 'rejected'}")
    return crud_verification.get_details(db, model, details_id)


def _documents(db: Session, user_id: int) -> List[schemas.VerificationDocument]:
    return [
        schemas.VerificationDocument.model_validate(doc)
        for doc in crud_document.get_documents_for_user(db, user_id)
    ]


# --- NGO ---

@router.get("/ngo/verification", response_model=schemas.NgoDetails)
def read_ngo_verification(
    current_user: models.User = Depends(get_current_ngo_user), db: Session = Depends(get_db)
):
    return _read_details(db, AppRole.NGO, current_user.id)


@router.put("/ngo/verification", response_model=schemas.NgoDetails)
def submit_ngo_details(
    details: schemas.NgoDetailsSubmit,
    current_user: models.User = Depends(get_current_ngo_user),
    db: Session = Depends(get_db),
):
    """
    Creates or resubmits the NGO's organization details for review.
    """
    return _submit(db, AppRole.NGO, current_user.id, details)


@router.get("/ngo/verification/gate", response_model=schemas.GateDecision)
def read_ngo_gate(current_user: models.User = Depends(get_current_ngo_user), db: Session = Depends(get_db)):
    return _gate(db, AppRole.NGO, current_user.id)


@router.post(
    "/ngo/verification/documents",
    response_model=schemas.VerificationDocument,
    status_code=status.HTTP_201_CREATED,
)
def upload_ngo_document(
    document_type: str = Form(...),
    file: UploadFile = File(...),
    current_user: models.User = Depends(get_current_ngo_user),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    return _upload_document(db, storage, AppRole.NGO, current_user.id, document_type, file)


@router.get("/ngo/verification/documents", response_model=List[schemas.VerificationDocument])
def read_ngo_documents(current_user: models.User = Depends(get_current_ngo_user), db: Session = Depends(get_db)):
    return crud_document.get_documents_for_user(db, current_user.id)


# --- Volunteer ---

@router.get("/volunteer/verification", response_model=schemas.VolunteerDetails)
def read_volunteer_verification(
    current_user: models.User = Depends(get_current_volunteer), db: Session = Depends(get_db)
):
    return _read_details(db, AppRole.VOLUNTEER, current_user.id)


@router.put("/volunteer/verification", response_model=schemas.VolunteerDetails)
def submit_volunteer_details(
    details: schemas.VolunteerDetailsSubmit,
    current_user: models.User = Depends(get_current_volunteer),
    db: Session = Depends(get_db),
):
    return _submit(db, AppRole.VOLUNTEER, current_user.id, details)


@router.get("/volunteer/verification/gate", response_model=schemas.GateDecision)
def read_volunteer_gate(current_user: models.User = Depends(get_current_volunteer), db: Session = Depends(get_db)):
    return _gate(db, AppRole.VOLUNTEER, current_user.id)


@router.post(
    "/volunteer/verification/documents",
    response_model=schemas.VerificationDocument,
    status_code=status.HTTP_201_CREATED,
)
def upload_volunteer_document(
    document_type: str = Form(...),
    file: UploadFile = File(...),
    current_user: models.User = Depends(get_current_volunteer),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
):
    return _upload_document(db, storage, AppRole.VOLUNTEER, current_user.id, document_type, file)


@router.get("/volunteer/verification/documents", response_model=List[schemas.VerificationDocument])
def read_volunteer_documents(
    current_user: models.User = Depends(get_current_volunteer), db: Session = Depends(get_db)
):
    return crud_document.get_documents_for_user(db, current_user.id)


# --- Admin review ---

@router.get("/admin/ngos/pending", response_model=List[schemas.PendingNgo])
def read_pending_ngos(
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
):
    """
    Lists NGOs awaiting review, oldest first, with their contact name and uploaded documents.
    """
    pending = []
    for ngo in crud_verification.get_details_by_status(
        db, models.NgoDetails, VerificationStatus.PENDING, skip=skip, limit=limit
    ):
        profile = crud_user.get_profile(db, ngo.user_id)
        pending.append(
            schemas.PendingNgo(
                **schemas.NgoDetails.model_validate(ngo).model_dump(),
                contact_name=profile.full_name if profile else None,
                documents=_documents(db, ngo.user_id),
            )
        )
    return pending


@router.post("/admin/ngos/{ngo_id}/approve", response_model=schemas.NgoDetails)
def approve_ngo(
    ngo_id: int,
    background_tasks: BackgroundTasks,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return _review(db, AppRole.NGO, ngo_id, current_admin, True, None, background_tasks)


@router.post("/admin/ngos/{ngo_id}/reject", response_model=schemas.NgoDetails)
def reject_ngo(
    ngo_id: int,
    background_tasks: BackgroundTasks,
    decision: Optional[schemas.ReviewDecision] = None,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    reason = decision.reason if decision else None
    return _review(db, AppRole.NGO, ngo_id, current_admin, False, reason, background_tasks)


@router.get("/admin/volunteers/pending", response_model=List[schemas.PendingVolunteer])
def read_pending_volunteers(
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
):
    return [
        schemas.PendingVolunteer(
            **schemas.VolunteerDetails.model_validate(details).model_dump(),
            documents=_documents(db, details.user_id),
        )
        for details in crud_verification.get_details_by_status(
            db, models.VolunteerDetails, VerificationStatus.PENDING, skip=skip, limit=limit
        )
    ]


@router.post("/admin/volunteers/{details_id}/approve", response_model=schemas.VolunteerDetails)
def approve_volunteer(
    details_id: int,
    background_tasks: BackgroundTasks,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return _review(db, AppRole.VOLUNTEER, details_id, current_admin, True, None, background_tasks)


@router.post("/admin/volunteers/{details_id}/reject", response_model=schemas.VolunteerDetails)
def reject_volunteer(
    details_id: int,
    background_tasks: BackgroundTasks,
    decision: Optional[schemas.ReviewDecision] = None,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    reason = decision.reason if decision else None
    return _review(db, AppRole.VOLUNTEER, details_id, current_admin, False, reason, background_tasks)


@router.post("/admin/documents/{document_id}/verify", response_model=schemas.VerificationDocument)
def verify_document(
    document_id: int,
    current_admin: models.User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    outcome = crud_document.mark_verified(db, document_id, current_admin.id)
    if outcome == TransitionOutcome.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    if outcome == TransitionOutcome.NOT_AVAILABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Document is already verified")
    return crud_document.get_document(db, document_id)
