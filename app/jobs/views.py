"""Jobs API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Path

from app.api.deps import get_job_store, get_vehicle_resolver
from app.core.dependencies import get_current_user
from app.core.exceptions import ForbiddenException
from app.jobs.costs import format_job_cost, total_job_cost
from app.jobs.models import (
    CancelJobRequest,
    Job,
    JobCreateRequest,
    JobListResponse,
    JobPartitionCounts,
    JobResponse,
    StatusUpdateRequest,
)
from app.jobs.service import JobStore
from app.jobs.state_machine import allowed_transitions, partition_jobs
from app.vehicles.resolver import VehicleResolver

router = APIRouter(prefix="/jobs", tags=["Jobs"])

# Who may move a job into each status.
CUSTOMER_TARGETS = {"posted", "bidding", "accepted", "cancelled"}
MECHANIC_TARGETS = {"in_progress", "completed"}


async def _to_response(job: Job, vehicles: VehicleResolver) -> JobResponse:
    return JobResponse(
        id=job.id,
        customer_id=job.customer_id,
        selected_mechanic_id=job.selected_mechanic_id,
        status=job.status,
        title=job.display_title,
        description=job.description,
        category=job.category,
        subcategory=job.subcategory,
        service_type=job.service_type,
        urgency=job.urgency,
        location=job.location,
        price=job.price,
        additional_work_amount=job.additional_work_amount,
        total_cost=total_job_cost(job),
        cost_display=format_job_cost(job, show_breakdown=True),
        vehicle_description=await vehicles.describe(job.vehicle),
        allowed_transitions=sorted(allowed_transitions(job.status)),
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        cancelled_at=job.cancelled_at,
        cancellation_reason=job.cancellation_reason,
        progression=job.progression,
    )


def _ensure_participant(job: Job, user: dict) -> None:
    if user["id"] not in (job.customer_id, job.selected_mechanic_id):
        raise ForbiddenException("You do not have access to this job")


def _ensure_can_move(job: Job, user: dict, target: str) -> None:
    if target in MECHANIC_TARGETS:
        if user["id"] != job.selected_mechanic_id:
            raise ForbiddenException("Only the assigned mechanic can update this job")
    elif target in CUSTOMER_TARGETS:
        if user["id"] != job.customer_id:
            raise ForbiddenException("Only the customer can update this job")
    else:
        _ensure_participant(job, user)


@router.post("", response_model=JobResponse)
async def create_job(
    body: JobCreateRequest,
    current_user: dict = Depends(get_current_user),
    store: JobStore = Depends(get_job_store),
    vehicles: VehicleResolver = Depends(get_vehicle_resolver),
):
    if current_user["role"] != "customer":
        raise ForbiddenException("Only customers can create jobs")
    job = await store.create_job(current_user["id"], body)
    return await _to_response(job, vehicles)


@router.get("/mine", response_model=JobListResponse)
async def list_my_jobs(
    current_user: dict = Depends(get_current_user),
    store: JobStore = Depends(get_job_store),
    vehicles: VehicleResolver = Depends(get_vehicle_resolver),
):
    """Jobs for the current customer, or jobs assigned to the current mechanic."""
    if current_user["role"] == "mechanic":
        jobs = await store.list_by_mechanic(current_user["id"])
    else:
        jobs = await store.list_by_customer(current_user["id"])

    partitions = partition_jobs(jobs)
    items: List[JobResponse] = [await _to_response(job, vehicles) for job in jobs]
    return JobListResponse(
        jobs=items,
        counts=JobPartitionCounts(
            completed=len(partitions.completed),
            in_progress=len(partitions.in_progress),
            pending=len(partitions.pending_like),
        ),
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str = Path(..., description="Job ID"),
    current_user: dict = Depends(get_current_user),
    store: JobStore = Depends(get_job_store),
    vehicles: VehicleResolver = Depends(get_vehicle_resolver),
):
    job = await store.get(job_id)
    _ensure_participant(job, current_user)
    return await _to_response(job, vehicles)


@router.post("/{job_id}/status", response_model=JobResponse)
async def update_job_status(
    body: StatusUpdateRequest,
    job_id: str = Path(..., description="Job ID"),
    current_user: dict = Depends(get_current_user),
    store: JobStore = Depends(get_job_store),
    vehicles: VehicleResolver = Depends(get_vehicle_resolver),
):
    job = await store.get(job_id)
    _ensure_can_move(job, current_user, body.status)
    updated = await store.update_status(
        job_id,
        body.status,
        mechanic_id=body.mechanic_id,
        actor=current_user["id"],
        note=body.note,
    )
    return await _to_response(updated, vehicles)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    body: CancelJobRequest,
    job_id: str = Path(..., description="Job ID"),
    current_user: dict = Depends(get_current_user),
    store: JobStore = Depends(get_job_store),
    vehicles: VehicleResolver = Depends(get_vehicle_resolver),
):
    job = await store.get(job_id)
    _ensure_can_move(job, current_user, "cancelled")
    cancelled = await store.request_cancel(job_id, actor=current_user["id"], reason=body.reason)
    return await _to_response(cancelled, vehicles)
