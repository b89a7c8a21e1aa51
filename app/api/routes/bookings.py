"""
Booking (job application) endpoints.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from app.api.deps import BrokerDep, CurrentUserDep, SessionDep, TruckerDep, require_role
from app.core.lifecycle import UserType
from app.db.models import UserModel
from app.models.schemas import (
    ApplicationResponse,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    TruckerBookingResponse,
)
from app.services.booking_service import BookingService

router = APIRouter()

ApplicantDep = Annotated[
    UserModel,
    Depends(require_role(UserType.TRUCKER, detail="Only truckers can apply for jobs")),
]


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def apply_for_job(
    request: BookingCreate,
    current_user: ApplicantDep,
    session: SessionDep,
):
    """Apply to a job as the calling trucker. A second application is rejected."""
    return await BookingService(session).create(request.job_id, current_user.id)


@router.get("/trucker/bookings", response_model=List[TruckerBookingResponse])
async def list_trucker_bookings(current_user: TruckerDep, session: SessionDep):
    """The calling trucker's bookings, each with its job."""
    return await BookingService(session).list_for_trucker(current_user.id)


@router.get("/broker/job/{job_id}/applications", response_model=List[ApplicationResponse])
async def list_job_applications(job_id: int, current_user: BrokerDep, session: SessionDep):
    """Applications to one of the calling broker's jobs, with applicant details."""
    return await BookingService(session).list_applications(job_id, current_user.id)


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    request: BookingStatusUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """
    Move a booking to a new status.

    Brokers accept or reject applications to their jobs; truckers mark
    their own bookings completed.
    """
    return await BookingService(session).update_status(booking_id, current_user, request.status)
