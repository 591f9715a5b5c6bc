"""Job status lifecycle.

The adjacency table below is the only place job transitions are defined;
cancellation goes through it like every other edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Tuple

from app.jobs.models import Job


JOB_STATUSES: Tuple[str, ...] = (
    "pending",
    "posted",
    "bidding",
    "accepted",
    "in_progress",
    "completed",
    "cancelled",
)

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"posted", "cancelled"}),
    "posted": frozenset({"bidding", "cancelled"}),
    "bidding": frozenset({"accepted", "cancelled"}),
    "accepted": frozenset({"in_progress"}),
    "in_progress": frozenset({"completed"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}

CANCELLABLE_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if "cancelled" in targets)
TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# selected_mechanic_id is set in exactly these states
MECHANIC_ASSIGNED_STATUSES = frozenset({"accepted", "in_progress", "completed"})

ACTIVELY_SERVICED_STATUSES = frozenset({"accepted", "in_progress"})
AWAITING_QUOTES_STATUSES = frozenset({"pending", "posted", "bidding"})

# Default timeline messages per target status
STATUS_MESSAGES: Dict[str, str] = {
    "pending": "Job created",
    "posted": "Job posted for quotes",
    "bidding": "Mechanics are bidding",
    "accepted": "Mechanic selected",
    "in_progress": "Work started by mechanic",
    "completed": "Job completed by mechanic",
    "cancelled": "Job cancelled",
}


def is_known_status(status: str) -> bool:
    return status in TRANSITIONS


def allowed_transitions(current: str) -> FrozenSet[str]:
    return TRANSITIONS.get(current, frozenset())


def can_transition(current: str, new: str) -> bool:
    return new in allowed_transitions(current)


@dataclass(frozen=True)
class JobPartitions:
    """Status groupings used by the job list and analytics screens."""
    completed: Tuple[Job, ...]
    in_progress: Tuple[Job, ...]
    pending_like: Tuple[Job, ...]


def partition_jobs(jobs: Iterable[Job]) -> JobPartitions:
    completed, in_progress, pending_like = [], [], []
    for job in jobs:
        if job.status == "completed":
            completed.append(job)
        elif job.status in ACTIVELY_SERVICED_STATUSES:
            in_progress.append(job)
        elif job.status in AWAITING_QUOTES_STATUSES:
            pending_like.append(job)
    return JobPartitions(
        completed=tuple(completed),
        in_progress=tuple(in_progress),
        pending_like=tuple(pending_like),
    )
