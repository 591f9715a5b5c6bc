"""Jobs service: canonical job records and the status state machine."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId

from app.core.clock import utc_now
from app.core.exceptions import (
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from app.jobs.models import Job, JobCreateRequest, ProgressionEntry
from app.jobs.repository import JobRepository
from app.jobs.state_machine import (
    CANCELLABLE_STATUSES,
    STATUS_MESSAGES,
    can_transition,
    is_known_status,
)

logger = logging.getLogger(__name__)


class JobStore:
    """
    Owns job lifecycle rules on top of a JobRepository.

    Every transition is validated against the adjacency table and written as a
    compare-and-set on (job_id, current status), so two writers racing on the
    same job cannot both apply.
    """

    def __init__(self, repository: JobRepository, clock: Callable[[], datetime] = utc_now):
        self._repository = repository
        self._now = clock

    # ========================================================================
    # Queries
    # ========================================================================

    async def get(self, job_id: str) -> Job:
        job = await self._repository.get(job_id)
        if job is None:
            raise NotFoundException("Job not found")
        return job

    async def list_by_customer(self, customer_id: str) -> List[Job]:
        return await self._repository.list_by_customer(customer_id)

    async def list_by_mechanic(self, mechanic_id: str) -> List[Job]:
        return await self._repository.list_by_mechanic(mechanic_id)

    # ========================================================================
    # Creation
    # ========================================================================

    async def create_job(self, customer_id: str, request: JobCreateRequest) -> Job:
        """Open a job in 'pending', or straight in 'posted' when asked to."""
        now = self._now()
        status = "posted" if request.post_immediately else "pending"

        job = Job(
            id=str(ObjectId()),
            customer_id=customer_id,
            status=status,
            vehicle=request.vehicle,
            title=request.title,
            description=request.description,
            category=request.category,
            subcategory=request.subcategory,
            service_type=request.service_type,
            urgency=request.urgency,
            location=request.location,
            price=request.price,
            created_at=now,
            updated_at=now,
            progression=[
                ProgressionEntry(
                    status=status,
                    message=STATUS_MESSAGES[status],
                    actor=customer_id,
                    timestamp=now,
                )
            ],
        )
        await self._repository.insert(job)
        logger.info(f"Job {job.id} created by customer {customer_id} in '{status}'")
        return job

    # ========================================================================
    # Transitions
    # ========================================================================

    async def update_status(
        self,
        job_id: str,
        new_status: str,
        *,
        mechanic_id: Optional[str] = None,
        actor: Optional[str] = None,
        note: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Job:
        """
        Move a job along one edge of the lifecycle.

        Raises:
            ValidationException: unknown status, mechanic id missing/misplaced,
                or a reason given for anything but a cancellation.
            NotFoundException: unknown job id.
            InvalidTransitionException: edge not in the table, or the job moved
                under us before the write landed.
        """
        if not is_known_status(new_status):
            raise ValidationException(f"Unknown job status '{new_status}'")
        if reason and new_status != "cancelled":
            raise ValidationException("A reason can only be given when cancelling a job")

        job = await self.get(job_id)
        if not can_transition(job.status, new_status):
            raise InvalidTransitionException(job.status, new_status)

        now = self._now()
        changes: Dict[str, Any] = {"status": new_status, "updated_at": now}

        if new_status == "accepted":
            assigned = mechanic_id or job.selected_mechanic_id
            if not assigned:
                raise ValidationException("A mechanic must be selected to accept a job")
            changes["selected_mechanic_id"] = assigned
        elif mechanic_id:
            raise ValidationException("A mechanic can only be assigned when accepting a job")

        if new_status == "in_progress":
            changes["started_at"] = now
        elif new_status == "completed":
            changes["completed_at"] = now
        elif new_status == "cancelled":
            changes["cancelled_at"] = now
            changes["cancellation_reason"] = reason

        entry = ProgressionEntry(
            status=new_status,
            message=note or STATUS_MESSAGES[new_status],
            actor=actor,
            timestamp=now,
        )

        updated = await self._repository.update_status(job_id, job.status, changes, entry)
        if updated is None:
            current = await self._repository.get(job_id)
            if current is None:
                raise NotFoundException("Job not found")
            logger.warning(
                f"Job {job_id} moved to '{current.status}' while applying "
                f"'{job.status}' -> '{new_status}'"
            )
            raise InvalidTransitionException(current.status, new_status)

        logger.info(f"Job {job_id}: '{job.status}' -> '{new_status}' (actor={actor})")
        return updated

    async def request_cancel(
        self,
        job_id: str,
        *,
        actor: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Job:
        """Cancel a job that has not been accepted yet."""
        job = await self.get(job_id)
        if job.status not in CANCELLABLE_STATUSES:
            raise InvalidTransitionException(
                job.status,
                "cancelled",
                detail=f"A job that is '{job.status}' can no longer be cancelled",
            )
        return await self.update_status(job_id, "cancelled", actor=actor, reason=reason)
