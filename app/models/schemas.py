"""
Pydantic schemas for API request/response validation.

Attributes are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from app.core.lifecycle import UserStatus, UserType
from app.db.models import BookingStatus, JobStatus


class CamelModel(BaseModel):
    """Base for all API models: camelCase aliases, readable from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StrictCamelModel(CamelModel):
    """Request bodies that reject unknown fields."""

    model_config = ConfigDict(extra="forbid")


class StatusMessageResponse(CamelModel):
    """Plain acknowledgement."""

    message: str


# ============ User Schemas ============

class UserResponse(CamelModel):
    """The caller's own account (never includes credentials or tokens)."""

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    phone: str
    user_type: UserType
    status: UserStatus
    verification_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PublicUser(CamelModel):
    """Minimal user card shown to other participants."""

    id: int
    username: str
    first_name: str
    last_name: str
    user_type: UserType


# ============ Registration & Login Schemas ============

class Vehicle(CamelModel):
    """Vehicle entry embedded in a trucker profile."""

    vehicle_type: str = Field(..., min_length=1)
    vehicle_make: str = Field(..., min_length=1)
    plate_number: str = Field(..., min_length=1)
    weight_capacity: str = Field(..., min_length=1)
    truck_documents: Optional[str] = None


class AccountFields(CamelModel):
    """Fields common to every registration form."""

    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=8, description="Minimum 8 characters")
    confirm_password: Optional[str] = None
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=32)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class TruckerRegisterRequest(AccountFields):
    """Registration of a trucker and their initial profile."""

    user_type: Literal["trucker"]

    company_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    contact_number: Optional[str] = None
    business_email: Optional[EmailStr] = None

    bir_2303_certificate: Optional[str] = None
    business_permit: Optional[str] = None
    insurance_coverage: Optional[str] = None
    permit_to_operate: Optional[str] = None

    vehicles: List[Vehicle] = Field(default_factory=list)
    service_areas: List[str] = Field(default_factory=list)
    license_plate: Optional[str] = None
    license_number: Optional[str] = None
    truck_type: Optional[str] = None
    truck_capacity: Optional[str] = None


class BrokerRegisterRequest(AccountFields):
    """Registration of a broker and their company profile."""

    user_type: Literal["broker"]

    company_name: str = Field(..., min_length=1)
    company_address: str = Field(..., min_length=1)
    company_city: str = Field(..., min_length=1)
    company_state: str = Field(..., min_length=1)
    company_zip: str = Field(..., min_length=1)
    contact_number: Optional[str] = None
    business_email: Optional[EmailStr] = None

    contact_person_name: Optional[str] = None
    contact_person_position: Optional[str] = None

    dti_sec_registration: Optional[str] = None
    bir_2303_certificate: Optional[str] = None
    mayors_permit: Optional[str] = None
    boc_accreditation: Optional[str] = None

    business_type: Optional[str] = None
    tax_id: Optional[str] = None


# Tagged on user_type; routes attach the discriminator with Body(discriminator=...)
RegisterRequest = Union[TruckerRegisterRequest, BrokerRegisterRequest]


class AdminRegisterRequest(AccountFields):
    """Admin self-registration, gated by the configured admin key."""

    confirm_password: str
    admin_key: str = Field(..., min_length=1)


class RegistrationResponse(CamelModel):
    """Result of a trucker/broker registration."""

    id: int
    email: str
    username: str
    status: UserStatus
    registration_complete: bool = True
    message: str


class LoginRequest(CamelModel):
    """Login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ============ Profile Schemas ============

class TruckerProfileResponse(CamelModel):
    id: int
    user_id: int
    company_name: str
    address: str
    city: str
    state: str
    zip: str
    contact_number: str
    business_email: str
    bir_2303_certificate: Optional[str] = None
    business_permit: Optional[str] = None
    insurance_coverage: Optional[str] = None
    permit_to_operate: Optional[str] = None
    vehicles: List[Vehicle] = Field(default_factory=list)
    service_areas: Optional[List[str]] = None
    license_plate: Optional[str] = None
    license_number: Optional[str] = None
    truck_type: Optional[str] = None
    truck_capacity: Optional[str] = None
    available: bool = True


class TruckerProfileUpdate(StrictCamelModel):
    """Partial update; only the fields sent are changed."""

    company_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    contact_number: Optional[str] = None
    business_email: Optional[EmailStr] = None
    bir_2303_certificate: Optional[str] = None
    business_permit: Optional[str] = None
    insurance_coverage: Optional[str] = None
    permit_to_operate: Optional[str] = None
    vehicles: Optional[List[Vehicle]] = None
    service_areas: Optional[List[str]] = None
    license_plate: Optional[str] = None
    license_number: Optional[str] = None
    truck_type: Optional[str] = None
    truck_capacity: Optional[str] = None
    available: Optional[bool] = None


class BrokerProfileResponse(CamelModel):
    id: int
    user_id: int
    company_name: str
    company_address: str
    company_city: str
    company_state: str
    company_zip: str
    contact_number: str
    business_email: str
    contact_person_name: str
    contact_person_position: str
    dti_sec_registration: Optional[str] = None
    bir_2303_certificate: Optional[str] = None
    mayors_permit: Optional[str] = None
    boc_accreditation: Optional[str] = None
    business_type: Optional[str] = None
    tax_id: Optional[str] = None


class BrokerProfileUpdate(StrictCamelModel):
    """Partial update; only the fields sent are changed."""

    company_name: Optional[str] = Field(None, min_length=1)
    company_address: Optional[str] = Field(None, min_length=1)
    company_city: Optional[str] = Field(None, min_length=1)
    company_state: Optional[str] = Field(None, min_length=1)
    company_zip: Optional[str] = Field(None, min_length=1)
    contact_number: Optional[str] = None
    business_email: Optional[EmailStr] = None
    contact_person_name: Optional[str] = None
    contact_person_position: Optional[str] = None
    dti_sec_registration: Optional[str] = None
    bir_2303_certificate: Optional[str] = None
    mayors_permit: Optional[str] = None
    boc_accreditation: Optional[str] = None
    business_type: Optional[str] = None
    tax_id: Optional[str] = None


ProfileResponse = Union[TruckerProfileResponse, BrokerProfileResponse]


# ============ Job Schemas ============

class JobCreate(CamelModel):
    """New job posting. Ownership comes from the session, never the body."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    origin_city: str = Field(..., min_length=1)
    origin_state: str = Field(..., min_length=1)
    destination_city: str = Field(..., min_length=1)
    destination_state: str = Field(..., min_length=1)
    distance: Optional[int] = Field(None, ge=0)
    price: int = Field(..., ge=0)
    cargo_type: str = Field(..., min_length=1)
    weight: Optional[int] = Field(None, ge=0)
    load_type: str = Field(..., min_length=1)
    pickup_date: datetime
    company_name: Optional[str] = None


class JobUpdate(StrictCamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    origin_city: Optional[str] = Field(None, min_length=1)
    origin_state: Optional[str] = Field(None, min_length=1)
    destination_city: Optional[str] = Field(None, min_length=1)
    destination_state: Optional[str] = Field(None, min_length=1)
    distance: Optional[int] = Field(None, ge=0)
    price: Optional[int] = Field(None, ge=0)
    cargo_type: Optional[str] = Field(None, min_length=1)
    weight: Optional[int] = Field(None, ge=0)
    load_type: Optional[str] = Field(None, min_length=1)
    pickup_date: Optional[datetime] = None
    company_name: Optional[str] = None
    status: Optional[JobStatus] = None


class JobResponse(CamelModel):
    id: int
    broker_id: int
    title: str
    description: str
    origin_city: str
    origin_state: str
    destination_city: str
    destination_state: str
    distance: Optional[int] = None
    price: int
    cargo_type: str
    weight: Optional[int] = None
    load_type: str
    pickup_date: datetime
    company_name: Optional[str] = None
    status: JobStatus
    created_at: datetime


# ============ Booking Schemas ============

class BookingCreate(CamelModel):
    job_id: int = Field(..., ge=1)


class BookingStatusUpdate(CamelModel):
    status: BookingStatus


class BookingResponse(CamelModel):
    id: int
    job_id: int
    trucker_id: int
    status: BookingStatus
    created_at: datetime


class TruckerBookingResponse(BookingResponse):
    """Booking together with the job it was filed against."""

    job: Optional[JobResponse] = None


class ApplicationResponse(BookingResponse):
    """Booking together with the applying trucker, as seen by the job owner."""

    trucker: Optional[PublicUser] = None
    trucker_profile: Optional[TruckerProfileResponse] = None


# ============ Messaging Schemas ============

class SendMessageRequest(CamelModel):
    receiver_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(CamelModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    created_at: datetime
    is_read: bool


class SentMessageResponse(MessageResponse):
    conversation_id: int


class ConversationSummaryResponse(CamelModel):
    id: int
    user1_id: int
    user2_id: int
    last_message_time: datetime
    other_user: Optional[PublicUser] = None
    latest_message: Optional[MessageResponse] = None
    unread_count: int = 0


# ============ Admin Schemas ============

class ApproveUserRequest(StrictCamelModel):
    user_id: int = Field(..., ge=1)
    approved: bool
    message: Optional[str] = Field(None, max_length=2000)


class AdminActionResponse(CamelModel):
    id: int
    admin_id: int
    user_id: int
    action: Literal["approve", "reject"]
    reason: Optional[str] = None
    created_at: datetime


class AdminUserProfileResponse(CamelModel):
    user: UserResponse
    profile: Optional[ProfileResponse] = None
