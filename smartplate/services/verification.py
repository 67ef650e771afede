"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Wed Feb 04 2026
# SPDX-License-Identifier: MIT
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from smartplate.db.models import AppRole, VerificationStatus
from smartplate.schemas import schemas

DEFAULT_REJECTION_REASON = "Documents could not be verified"

REQUIRED_DOCUMENTS = {
    AppRole.NGO: ("registration_certificate", "address_proof"),
    AppRole.VOLUNTEER: ("government_id",),
}


@dataclass(frozen=True)
class Unsubmitted:
    name = "unsubmitted"


@dataclass(frozen=True)
class Pending:
    name = "pending"


@dataclass(frozen=True)
class Approved:
    name = "approved"


@dataclass(frozen=True)
class Rejected:
    reason: Optional[str] = None
    name = "rejected"


VerificationState = Union[Unsubmitted, Pending, Approved, Rejected]


def verification_state(details) -> VerificationState:
    """
    Maps an NGO/volunteer details row (or its absence) onto the verification variant.
    """
    if details is None:
        return Unsubmitted()
    status = VerificationStatus(details.verification_status)
    if status == VerificationStatus.APPROVED:
        return Approved()
    if status == VerificationStatus.REJECTED:
        return Rejected(details.rejection_reason)
    return Pending()


def gate(state: VerificationState, role: AppRole) -> schemas.GateDecision:
    """
    Decides what a role-specific dashboard shows for the given verification state.
    """
    subject = "NGO" if role == AppRole.NGO else "volunteer"
    if isinstance(state, Approved):
        return schemas.GateDecision(
            state=state.name, allowed=True, can_submit=False,
            title="Verified", message=f"Your {subject} account is verified.",
        )
    if isinstance(state, Pending):
        return schemas.GateDecision(
            state=state.name, allowed=False, can_submit=True,
            title="Account Under Verification",
            message=(
                "Your account is being reviewed by our admin team. "
                "You will be notified once your verification is complete."
            ),
        )
    if isinstance(state, Rejected):
        return schemas.GateDecision(
            state=state.name, allowed=False, can_submit=True,
            title="Verification Rejected",
            message=state.reason
            or "Your verification was rejected. Please update your information and resubmit.",
        )
    return schemas.GateDecision(
        state="unsubmitted", allowed=False, can_submit=True,
        title="Verification Required",
        message="Please complete the verification process to access all features.",
    )


def is_approved(details) -> bool:
    return isinstance(verification_state(details), Approved)


def missing_documents(role: AppRole, document_types: Iterable[str]) -> list:
    uploaded = set(document_types)
    return [doc_type for doc_type in REQUIRED_DOCUMENTS.get(role, ()) if doc_type not in uploaded]


def has_required_documents(role: AppRole, document_types: Iterable[str]) -> bool:
    return not missing_documents(role, document_types)
