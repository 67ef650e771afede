# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from smartplate.db.models import AppRole, FoodRequestStatus, UrgencyLevel, VerificationStatus
from smartplate.utils.security import MIN_PASSWORD_LENGTH

GovernmentIdType = Literal["aadhaar", "pan", "driving_license", "voter_id", "passport"]


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    email: Optional[str] = None


# --- Users ---

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None
    full_name: str
    role: AppRole

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class Profile(BaseModel):
    full_name: str
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class User(BaseModel):
    id: int
    email: EmailStr
    is_active: bool
    role: Optional[AppRole] = None
    profile: Optional[Profile] = None

    model_config = ConfigDict(from_attributes=True)


class RoleRead(BaseModel):
    role: Optional[AppRole] = None


class RoleAssign(BaseModel):
    role: AppRole


# --- Verification ---

class NgoDetailsBase(BaseModel):
    organization_name: str
    registration_number: str
    address: str
    city: str
    state: str
    pincode: str
    website: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class NgoDetailsSubmit(NgoDetailsBase):
    pass


class NgoDetails(NgoDetailsBase):
    id: int
    user_id: int
    verification_status: VerificationStatus
    rejection_reason: Optional[str] = None
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VolunteerDetailsBase(BaseModel):
    full_name: str
    phone_number: str
    address: str
    city: str
    state: str
    pincode: str
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    government_id_type: GovernmentIdType
    government_id_number: str
    associated_organization: Optional[str] = None


class VolunteerDetailsSubmit(VolunteerDetailsBase):
    pass


class VolunteerDetails(VolunteerDetailsBase):
    id: int
    user_id: int
    verification_status: VerificationStatus
    rejection_reason: Optional[str] = None
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VerificationDocument(BaseModel):
    id: int
    user_id: int
    document_type: str
    document_url: str
    file_name: str
    uploaded_at: datetime
    verified: bool
    verified_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewDecision(BaseModel):
    reason: Optional[str] = None


class GateDecision(BaseModel):
    state: Literal["unsubmitted", "pending", "approved", "rejected"]
    allowed: bool
    can_submit: bool
    title: str
    message: str
    missing_documents: List[str] = []


class PendingNgo(NgoDetails):
    contact_name: Optional[str] = None
    documents: List[VerificationDocument] = []


class PendingVolunteer(VolunteerDetails):
    documents: List[VerificationDocument] = []


class NearbyNgo(BaseModel):
    id: int
    organization_name: str
    city: str
    state: str
    latitude: float
    longitude: float
    distance_km: float
    distance_label: str


# --- Food requests ---

class FoodRequestBase(BaseModel):
    title: str
    description: Optional[str] = None
    quantity_needed: int = 10
    quantity_unit: str = "meals"
    urgency_level: UrgencyLevel = UrgencyLevel.NORMAL
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = None
    needed_by: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a title for your request")
        return value

    @field_validator("quantity_needed")
    @classmethod
    def quantity_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Quantity must be at least 1")
        return value

    @field_validator("description", "address")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class FoodRequestCreate(FoodRequestBase):
    pass


class FoodRequestPhoto(BaseModel):
    id: int
    request_id: int
    photo_url: str
    file_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    captured_at: Optional[datetime] = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FoodRequest(FoodRequestBase):
    id: int
    ngo_id: int
    user_id: int
    status: FoodRequestStatus
    rejection_reason: Optional[str] = None
    donor_id: Optional[int] = None
    volunteer_id: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FoodRequestDetail(FoodRequest):
    ngo_name: Optional[str] = None
    ngo_city: Optional[str] = None
    ngo_state: Optional[str] = None
    distance_km: Optional[float] = None
    distance_label: Optional[str] = None
    photos: List[FoodRequestPhoto] = []
    allowed_transitions: List[FoodRequestStatus] = []


class VolunteerContact(BaseModel):
    full_name: str
    phone_number: str


class Donation(FoodRequestDetail):
    volunteer: Optional[VolunteerContact] = None


# --- Stats ---

class AdminStats(BaseModel):
    pending_ngos: int
    approved_ngos: int
    rejected_ngos: int
    pending_volunteers: int
    approved_volunteers: int
    rejected_volunteers: int
    active_donors: int
    pending_food_requests: int
    completed_deliveries: int


class DonorStats(BaseModel):
    available_requests: int
    my_donations: int
    completed_donations: int
