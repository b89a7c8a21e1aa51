"""
Trucker applications ("bookings") against jobs.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DuplicateApplicationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from app.core.lifecycle import UserType
from app.db.database import dialect_insert
from app.db.models import BookingModel, BookingStatus, JobModel, JobStatus, UserModel
from app.db.models.base import utcnow
from app.models.schemas import (
    ApplicationResponse,
    JobResponse,
    PublicUser,
    TruckerBookingResponse,
    TruckerProfileResponse,
)
from app.services.job_service import JobService
from app.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

# Target statuses each role may set
ALLOWED_TARGETS: dict[str, frozenset[BookingStatus]] = {
    UserType.BROKER.value: frozenset(
        {BookingStatus.PENDING, BookingStatus.ACCEPTED, BookingStatus.REJECTED}
    ),
    UserType.TRUCKER.value: frozenset({BookingStatus.COMPLETED}),
}


def check_booking_transition(user_type: str, target: BookingStatus, current: Optional[str] = None) -> None:
    """
    Raise PermissionDeniedError unless ``user_type`` may set ``target``.

    A booking the trucker has completed is closed to further broker changes.
    """
    if user_type == UserType.BROKER.value and current == BookingStatus.COMPLETED.value:
        raise PermissionDeniedError(
            f"broker may not reopen completed booking (target {target.value})",
            "Completed bookings can no longer be changed",
        )
    if target in ALLOWED_TARGETS.get(user_type, frozenset()):
        return
    if user_type == UserType.BROKER.value:
        message = "Only truckers can mark jobs as completed"
    elif user_type == UserType.TRUCKER.value:
        message = "Only brokers can accept or reject applications"
    else:
        message = "Not authorized to update this booking"
    raise PermissionDeniedError(f"{user_type} may not set booking status {target.value}", message)


class BookingService:
    """Service for applying to jobs and moving applications through their statuses."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.jobs = JobService(session)

    async def create(self, job_id: int, trucker_id: int) -> BookingModel:
        """
        Apply ``trucker_id`` to ``job_id``.

        The (job, trucker) pair is unique in the table; the insert is
        ``ON CONFLICT DO NOTHING`` so a concurrent duplicate loses cleanly.

        Raises:
            NotFoundError: If the job does not exist
            ValidationFailedError: If the job is not active
            DuplicateApplicationError: If the trucker already applied
        """
        job = await self.jobs.require(job_id)
        if job.status != JobStatus.ACTIVE.value:
            raise ValidationFailedError(
                f"Job {job_id} is {job.status}", "This job is no longer accepting applications"
            )

        existing = await self.session.execute(
            select(BookingModel.id).where(
                BookingModel.job_id == job_id,
                BookingModel.trucker_id == trucker_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            logger.warning("Duplicate application by trucker id=%s for job id=%s", trucker_id, job_id)
            raise DuplicateApplicationError(f"Trucker {trucker_id} already applied to job {job_id}")

        stmt = (
            dialect_insert(self.session, BookingModel)
            .values(
                job_id=job_id,
                trucker_id=trucker_id,
                status=BookingStatus.PENDING.value,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["job_id", "trucker_id"])
            .returning(BookingModel.id)
        )
        booking_id = (await self.session.execute(stmt)).scalar_one_or_none()
        if booking_id is None:
            logger.warning("Concurrent duplicate application by trucker id=%s for job id=%s", trucker_id, job_id)
            raise DuplicateApplicationError(f"Trucker {trucker_id} already applied to job {job_id}")

        booking = await self.session.get(BookingModel, booking_id)
        logger.info("Trucker id=%s applied to job id=%s (booking id=%s)", trucker_id, job_id, booking_id)
        return booking

    async def get(self, booking_id: int) -> BookingModel:
        booking = await self.session.get(BookingModel, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} does not exist", "Booking not found")
        return booking

    async def list_by_job(self, job_id: int) -> List[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.job_id == job_id)
            .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_trucker(self, trucker_id: int) -> List[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.trucker_id == trucker_id)
            .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_trucker(self, trucker_id: int) -> List[TruckerBookingResponse]:
        """The trucker's bookings, each with the job it was filed against."""
        bookings = await self.list_by_trucker(trucker_id)
        items = []
        for booking in bookings:
            job = await self.jobs.get(booking.job_id)
            item = TruckerBookingResponse.model_validate(booking)
            item.job = JobResponse.model_validate(job) if job else None
            items.append(item)
        return items

    async def list_applications(self, job_id: int, broker_id: int) -> List[ApplicationResponse]:
        """
        Applications to a job, as seen by the broker who owns it.

        Raises:
            NotFoundError: If the job does not exist
            PermissionDeniedError: If ``broker_id`` does not own the job
        """
        job = await self.jobs.require(job_id)
        if job.broker_id != broker_id:
            raise PermissionDeniedError(
                f"User {broker_id} does not own job {job_id}",
                "Not authorized to view applications for this job",
            )

        profiles = ProfileService(self.session)
        items = []
        for booking in await self.list_by_job(job_id):
            trucker = await self.session.get(UserModel, booking.trucker_id)
            profile = await profiles.get(UserType.TRUCKER.value, booking.trucker_id)
            item = ApplicationResponse.model_validate(booking)
            item.trucker = PublicUser.model_validate(trucker) if trucker else None
            item.trucker_profile = TruckerProfileResponse.model_validate(profile) if profile else None
            items.append(item)
        return items

    async def update_status(self, booking_id: int, actor: UserModel, target: BookingStatus) -> BookingModel:
        """
        Move a booking to ``target`` on behalf of ``actor``.

        Brokers may set pending/accepted/rejected on bookings for their own
        jobs until the booking is completed; truckers may set completed on
        their own bookings.

        Raises:
            NotFoundError: Booking or its job does not exist
            PermissionDeniedError: Wrong owner or the role may not set ``target``
        """
        booking = await self.get(booking_id)
        job = await self.session.get(JobModel, booking.job_id)
        if job is None:
            raise NotFoundError(f"Job {booking.job_id} missing for booking {booking_id}", "Associated job not found")

        owns = (
            (actor.user_type == UserType.BROKER.value and job.broker_id == actor.id)
            or (actor.user_type == UserType.TRUCKER.value and booking.trucker_id == actor.id)
        )
        if not owns:
            logger.warning("User id=%s tried to update booking id=%s", actor.id, booking_id)
            raise PermissionDeniedError(
                f"User {actor.id} may not update booking {booking_id}",
                "Not authorized to update this booking",
            )

        check_booking_transition(actor.user_type, target, current=booking.status)

        booking.status = target.value
        await self.session.flush()
        logger.info("Booking id=%s set to %s by user id=%s", booking_id, target.value, actor.id)
        return booking
