"""Analytics API routes."""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Query

from app.analytics.models import AnalyticsPeriod, AnalyticsSummary
from app.analytics.service import summarize
from app.api.deps import get_job_store
from app.core.dependencies import get_clock, get_current_user
from app.core.exceptions import NotFoundException
from app.core.features import FeatureCapabilities, get_features
from app.jobs.service import JobStore


router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/summary", response_model=AnalyticsSummary)
async def get_summary(
    period: AnalyticsPeriod = Query("month"),
    current_user: dict = Depends(get_current_user),
    features: FeatureCapabilities = Depends(get_features),
    store: JobStore = Depends(get_job_store),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Spending and status summary of the current user's jobs for a period."""
    if not features.analytics:
        raise NotFoundException("Analytics are not available")

    if current_user["role"] == "mechanic":
        jobs = await store.list_by_mechanic(current_user["id"])
    else:
        jobs = await store.list_by_customer(current_user["id"])

    return summarize(jobs, period, now=clock())
