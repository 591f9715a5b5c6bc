"""Customer analytics derived from a job set.

Pure functions: nothing is stored, the input jobs are never modified, and the
same jobs with the same `now` always give the same summary.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from app.analytics.models import AnalyticsSummary
from app.core.clock import ensure_utc
from app.jobs.models import Job
from app.jobs.state_machine import ACTIVELY_SERVICED_STATUSES, AWAITING_QUOTES_STATUSES


# Rolling windows ending at `now`; each one contains the shorter ones.
PERIOD_WINDOWS: Dict[str, Optional[timedelta]] = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
    "all": None,
}


def filter_by_period(jobs: Iterable[Job], period: str, now: datetime) -> List[Job]:
    """Jobs created inside the period. 'all' (and any unknown period) keeps everything."""
    window = PERIOD_WINDOWS.get(period)
    if window is None:
        return list(jobs)

    now = ensure_utc(now)
    start = now - window
    selected = []
    for job in jobs:
        created = ensure_utc(job.created_at)
        if created is not None and start <= created <= now:
            selected.append(job)
    return selected


def summarize(jobs: Iterable[Job], period: str = "all", *, now: datetime) -> AnalyticsSummary:
    scoped = filter_by_period(jobs, period, now)

    completed_jobs = [job for job in scoped if job.status == "completed"]
    total_spent = sum(float(job.price or 0) for job in completed_jobs)
    average_job_cost = total_spent / len(completed_jobs) if completed_jobs else 0.0

    return AnalyticsSummary(
        period=period if period in PERIOD_WINDOWS else "all",
        total_jobs=len(scoped),
        completed=len(completed_jobs),
        actively_serviced=sum(1 for job in scoped if job.status in ACTIVELY_SERVICED_STATUSES),
        awaiting_quotes=sum(1 for job in scoped if job.status in AWAITING_QUOTES_STATUSES),
        cancelled=sum(1 for job in scoped if job.status == "cancelled"),
        total_spent=round(total_spent, 2),
        average_job_cost=round(average_job_cost, 2),
        by_urgency=dict(Counter((job.urgency or "unknown").lower() for job in scoped)),
        by_category=dict(Counter(job.category or "uncategorized" for job in scoped)),
    )
