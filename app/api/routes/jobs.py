"""
Job posting endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from app.api.deps import BrokerDep, CurrentUserDep, SessionDep
from app.models.schemas import JobCreate, JobResponse, JobUpdate
from app.services.job_service import JobService

router = APIRouter()


@router.get("/jobs", response_model=List[JobResponse])
async def list_jobs(
    current_user: CurrentUserDep,
    session: SessionDep,
    origin_state: Optional[str] = Query(None, alias="originState"),
    destination_state: Optional[str] = Query(None, alias="destinationState"),
    load_type: Optional[str] = Query(None, alias="loadType"),
    cargo_type: Optional[str] = Query(None, alias="cargoType"),
):
    """
    List active jobs, newest first.

    Filters are exact matches; omitted filters are ignored.
    """
    return await JobService(session).list(
        active_only=True,
        origin_state=origin_state,
        destination_state=destination_state,
        load_type=load_type,
        cargo_type=cargo_type,
    )


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, current_user: CurrentUserDep, session: SessionDep):
    """Get a single job by ID, whatever its status."""
    return await JobService(session).require(job_id)


@router.post("/jobs", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(request: JobCreate, current_user: BrokerDep, session: SessionDep):
    """Post a job as the calling broker."""
    return await JobService(session).create(current_user.id, **request.model_dump())


@router.put("/jobs/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    request: JobUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """Update a job. Only the broker who posted it may do so."""
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    if "status" in fields:
        fields["status"] = fields["status"].value
    return await JobService(session).update(job_id, current_user.id, **fields)


@router.get("/broker/jobs", response_model=List[JobResponse])
async def list_broker_jobs(current_user: BrokerDep, session: SessionDep):
    """The calling broker's jobs in every status, newest first."""
    return await JobService(session).list_by_broker(current_user.id)
