from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from studiobook.db import LocalStoreError
from studiobook.deps import get_job_store, get_user_id
from studiobook.models import Customer, DashboardSummary, Job, JobCategory, MonthlyReport
from studiobook.reports import (
    PERIODS,
    PeriodRange,
    customer_directory,
    filter_by_period,
    monthly_breakdown,
    period_range,
    summarize,
)
from studiobook.store import JobStore

router = APIRouter(tags=["dashboard"])


def _period_jobs(
    store: JobStore,
    user_id: str,
    period: str,
    start: Optional[date],
    end: Optional[date],
    category: Optional[JobCategory],
) -> tuple[PeriodRange, List[Job]]:
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(PERIODS)}")
    try:
        rng = period_range(period, start=start, end=end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        jobs = store.list_jobs(user_id, category.value if category else None)
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading jobs: {e}")
    return rng, filter_by_period(jobs, rng)


@router.get("/dashboard/summary", response_model=DashboardSummary)
def dashboard_summary(
    period: str = Query("this_month"),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    category: Optional[JobCategory] = Query(default=None),
    store: JobStore = Depends(get_job_store),
    user_id: str = Depends(get_user_id),
):
    rng, jobs = _period_jobs(store, user_id, period, start, end, category)
    return summarize(jobs, period, rng)


@router.get("/reports/monthly", response_model=MonthlyReport)
def monthly_report(
    period: str = Query("this_month"),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    category: Optional[JobCategory] = Query(default=None),
    store: JobStore = Depends(get_job_store),
    user_id: str = Depends(get_user_id),
):
    rng, jobs = _period_jobs(store, user_id, period, start, end, category)
    return monthly_breakdown(jobs, period, rng)


@router.get("/customers", response_model=List[Customer])
def customers(
    store: JobStore = Depends(get_job_store),
    user_id: str = Depends(get_user_id),
):
    try:
        return customer_directory(store.list_jobs(user_id))
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading jobs: {e}")
