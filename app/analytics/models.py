"""Analytics schemas."""

from typing import Dict, Literal

from pydantic import BaseModel


AnalyticsPeriod = Literal["week", "month", "year", "all"]


class AnalyticsSummary(BaseModel):
    """Summary of a job set for one period (computed on demand, never stored)."""
    period: str
    total_jobs: int = 0
    completed: int = 0
    actively_serviced: int = 0
    awaiting_quotes: int = 0
    cancelled: int = 0
    total_spent: float = 0.0
    average_job_cost: float = 0.0
    by_urgency: Dict[str, int] = {}
    by_category: Dict[str, int] = {}
