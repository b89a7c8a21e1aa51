"""
Job postings owned by brokers.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.db.models import JobModel, JobStatus
from app.db.models.base import utcnow

logger = logging.getLogger(__name__)

# Query parameters accepted by the public listing, mapped to exact-match columns
JOB_FILTERS = ("origin_state", "destination_state", "load_type", "cargo_type")


class JobService:
    """Service for creating, listing and updating jobs."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, broker_id: int, **fields: Any) -> JobModel:
        """
        Create a job owned by ``broker_id``.

        Status is always ``active`` and any owner or status in ``fields`` is ignored.
        """
        fields.pop("broker_id", None)
        fields.pop("status", None)
        job = JobModel(
            broker_id=broker_id,
            status=JobStatus.ACTIVE.value,
            created_at=utcnow(),
            **fields,
        )
        self.session.add(job)
        await self.session.flush()
        logger.info("Broker id=%s posted job id=%s", broker_id, job.id)
        return job

    async def get(self, job_id: int) -> Optional[JobModel]:
        """Get job by ID."""
        return await self.session.get(JobModel, job_id)

    async def require(self, job_id: int) -> JobModel:
        job = await self.get(job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} does not exist", "Job not found")
        return job

    async def list(
        self,
        active_only: bool = True,
        **filters: Optional[str],
    ) -> List[JobModel]:
        """
        List jobs, newest first.

        Args:
            active_only: Restrict to ``active`` jobs
            **filters: Exact-match values for the columns in JOB_FILTERS; None is ignored
        """
        stmt = select(JobModel)
        if active_only:
            stmt = stmt.where(JobModel.status == JobStatus.ACTIVE.value)
        for name in JOB_FILTERS:
            value = filters.get(name)
            if value:
                stmt = stmt.where(getattr(JobModel, name) == value)
        stmt = stmt.order_by(JobModel.created_at.desc(), JobModel.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_broker(self, broker_id: int) -> List[JobModel]:
        """All jobs of one broker regardless of status, newest first."""
        result = await self.session.execute(
            select(JobModel)
            .where(JobModel.broker_id == broker_id)
            .order_by(JobModel.created_at.desc(), JobModel.id.desc())
        )
        return list(result.scalars().all())

    async def update(self, job_id: int, broker_id: int, **fields: Any) -> JobModel:
        """
        Apply a partial update on behalf of ``broker_id``.

        Raises:
            NotFoundError: If the job does not exist
            PermissionDeniedError: If ``broker_id`` does not own the job
        """
        job = await self.require(job_id)
        if job.broker_id != broker_id:
            logger.warning("User id=%s tried to update job id=%s it does not own", broker_id, job_id)
            raise PermissionDeniedError(
                f"User {broker_id} does not own job {job_id}", "Not authorized to update this job"
            )

        fields.pop("broker_id", None)
        for key, value in fields.items():
            setattr(job, key, value)
        await self.session.flush()
        return job
