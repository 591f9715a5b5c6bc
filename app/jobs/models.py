"""Job models and schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.clock import ensure_utc
from app.vehicles.models import VehicleRef, dump_vehicle_ref, parse_vehicle_ref


JobStatus = Literal[
    "pending",
    "posted",
    "bidding",
    "accepted",
    "in_progress",
    "completed",
    "cancelled",
]
ServiceType = Literal["mobile", "shop"]
Urgency = Literal["low", "medium", "high"]

# Older documents carry the cost under different names; first non-empty wins.
LEGACY_PRICE_FIELDS = ("estimated_cost", "estimatedCost", "amount", "cost")

DEFAULT_JOB_TITLE = "Service request"


class ProgressionEntry(BaseModel):
    """One step of a job's timeline."""
    status: str
    message: str
    actor: Optional[str] = None
    timestamp: datetime

    @field_validator("timestamp", mode="after")
    @classmethod
    def _utc(cls, v):
        return ensure_utc(v)


class Job(BaseModel):
    """Canonical job record as stored in the `jobs` collection."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "job_id", "jobId"))
    customer_id: str = Field(..., validation_alias=AliasChoices("customer_id", "customerId"))
    selected_mechanic_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("selected_mechanic_id", "selectedMechanicId")
    )
    status: JobStatus
    vehicle: Optional[VehicleRef] = None

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    service_type: Optional[str] = Field(None, validation_alias=AliasChoices("service_type", "serviceType"))
    urgency: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None
    additional_work_amount: float = Field(
        0.0, validation_alias=AliasChoices("additional_work_amount", "additionalWorkAmount")
    )

    created_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    started_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("started_at", "startedAt"))
    completed_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("completed_at", "completedAt"))
    cancelled_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("cancelled_at", "cancelledAt"))
    cancellation_reason: Optional[str] = None

    progression: List[ProgressionEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _resolve_price(cls, data: Any):
        if isinstance(data, dict) and data.get("price") is None:
            for name in LEGACY_PRICE_FIELDS:
                if data.get(name):
                    data = {**data, "price": data[name]}
                    break
        return data

    @field_validator("vehicle", mode="before")
    @classmethod
    def _parse_vehicle(cls, v):
        ref = parse_vehicle_ref(v)
        return ref.model_dump() if ref is not None else None

    @field_validator("additional_work_amount", mode="before")
    @classmethod
    def _default_amount(cls, v):
        return v or 0.0

    @field_validator("created_at", "updated_at", "started_at", "completed_at", "cancelled_at", mode="after")
    @classmethod
    def _utc(cls, v):
        return ensure_utc(v)

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        parts = [p for p in (self.category, self.subcategory) if p]
        return " - ".join(parts) if parts else DEFAULT_JOB_TITLE

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Job":
        doc = dict(doc)
        object_id = doc.pop("_id", None)
        if object_id is not None and not any(doc.get(k) for k in ("id", "job_id", "jobId")):
            doc["job_id"] = str(object_id)
        return cls.model_validate(doc)

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude={"id", "vehicle"})
        doc["job_id"] = self.id
        doc["vehicle"] = dump_vehicle_ref(self.vehicle)
        return doc


# Fields rewritten when normalizing documents written by older clients.
CANONICAL_JOB_FIELDS = (
    "job_id",
    "customer_id",
    "selected_mechanic_id",
    "service_type",
    "price",
    "additional_work_amount",
    "vehicle",
)


def canonical_job_updates(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    `$set` payload that brings a stored job to canonical field names and a
    tagged vehicle reference. Empty when the document is already canonical.

    Raises pydantic.ValidationError when the document is not a readable job.
    """
    canonical = Job.from_document(doc).to_document()
    return {
        field: canonical[field]
        for field in CANONICAL_JOB_FIELDS
        if doc.get(field) != canonical[field]
    }


# ============================================================================
# Request Schemas
# ============================================================================

class JobCreateRequest(BaseModel):
    """Customer request to open a new service job."""
    title: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    category: str = Field(..., min_length=1, max_length=80)
    subcategory: Optional[str] = Field(None, max_length=80)
    service_type: ServiceType = "mobile"
    urgency: Urgency = "medium"
    location: Optional[str] = Field(None, max_length=300)
    price: Optional[float] = Field(None, ge=0)
    vehicle: Optional[Any] = Field(None, description="Inline vehicle record, catalog id or label")
    post_immediately: bool = Field(False, description="Create in 'posted' instead of 'pending'")


class StatusUpdateRequest(BaseModel):
    """Move a job along the lifecycle."""
    status: str
    mechanic_id: Optional[str] = Field(None, description="Required when accepting a job")
    note: Optional[str] = Field(None, max_length=600)


class CancelJobRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=600)


# ============================================================================
# Response Schemas
# ============================================================================

class JobResponse(BaseModel):
    """Job as returned to the app, with display-ready vehicle and cost."""
    id: str
    customer_id: str
    selected_mechanic_id: Optional[str] = None
    status: JobStatus
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    service_type: Optional[str] = None
    urgency: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None
    additional_work_amount: float = 0.0
    total_cost: float = 0.0
    cost_display: str = "TBD"
    vehicle_description: str = ""
    allowed_transitions: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    progression: List[ProgressionEntry] = []


class JobPartitionCounts(BaseModel):
    completed: int = 0
    in_progress: int = 0
    pending: int = 0


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    counts: JobPartitionCounts
