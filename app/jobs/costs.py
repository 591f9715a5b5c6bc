"""Job cost helpers: original quote plus approved additional work."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.jobs.models import Job


@dataclass(frozen=True)
class CostBreakdown:
    original_cost: float
    additional_work_amount: float
    total_cost: float

    @property
    def has_additional_work(self) -> bool:
        return self.additional_work_amount > 0


def cost_breakdown(job: Optional[Job]) -> CostBreakdown:
    if job is None:
        return CostBreakdown(0.0, 0.0, 0.0)
    original = float(job.price or 0)
    additional = float(job.additional_work_amount or 0)
    return CostBreakdown(original, additional, original + additional)


def total_job_cost(job: Optional[Job]) -> float:
    return cost_breakdown(job).total_cost


def format_job_cost(job: Optional[Job], show_breakdown: bool = False) -> str:
    """
    "$150.00", "$175.00 ($150.00 + $25.00)" with breakdown, or "TBD" when
    there is no cost information at all.
    """
    breakdown = cost_breakdown(job)
    if breakdown.has_additional_work and show_breakdown:
        return (
            f"${breakdown.total_cost:.2f} "
            f"(${breakdown.original_cost:.2f} + ${breakdown.additional_work_amount:.2f})"
        )
    if breakdown.total_cost > 0:
        return f"${breakdown.total_cost:.2f}"
    return "TBD"
