# studiobook/reports.py
"""
Pure folds over an in-memory job list: period ranges, dashboard totals,
monthly breakdown and the customer directory. No I/O happens here.

All calendar math is on local calendar dates. Job dates are parsed from their
explicit year/month/day components, never through a timestamp, so a job dated
2024-01-31 stays on the 31st whatever the process timezone is.
"""
from __future__ import annotations

import re
from calendar import monthrange
from datetime import date
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .models import (
    CategoryTotals,
    Customer,
    DashboardSummary,
    Job,
    JobCategory,
    JobStatus,
    MonthlyReport,
    MonthlyRow,
    PaymentStatus,
    StatusCounts,
)

PERIODS = (
    "this_month",
    "last_month",
    "this_quarter",
    "last_quarter",
    "six_months",
    "this_year",
    "last_year",
    "all_time",
    "custom",
)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")


class PeriodRange(NamedTuple):
    start: date
    end: date
    label: str


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def _month_end(year: int, month: int) -> date:
    return date(year, month, monthrange(year, month)[1])


def period_range(
    period: str,
    today: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> PeriodRange:
    """Inclusive [start, end] calendar range for a period token."""
    today = today or date.today()
    y, m = today.year, today.month
    quarter = (m - 1) // 3

    if period == "this_month":
        return PeriodRange(date(y, m, 1), _month_end(y, m), "This Month")
    if period == "last_month":
        ly, lm = _shift_month(y, m, -1)
        return PeriodRange(date(ly, lm, 1), _month_end(ly, lm), "Last Month")
    if period == "this_quarter":
        first = quarter * 3 + 1
        return PeriodRange(date(y, first, 1), _month_end(y, first + 2), f"Q{quarter + 1} {y}")
    if period == "last_quarter":
        qy, q = (y - 1, 3) if quarter == 0 else (y, quarter - 1)
        first = q * 3 + 1
        return PeriodRange(date(qy, first, 1), _month_end(qy, first + 2), f"Q{q + 1} {qy}")
    if period == "six_months":
        sy, sm = _shift_month(y, m, -5)
        return PeriodRange(date(sy, sm, 1), _month_end(y, m), "Last 6 Months")
    if period == "this_year":
        return PeriodRange(date(y, 1, 1), date(y, 12, 31), f"Year {y}")
    if period == "last_year":
        return PeriodRange(date(y - 1, 1, 1), date(y - 1, 12, 31), f"Year {y - 1}")
    if period == "all_time":
        return PeriodRange(date(2000, 1, 1), date(y + 10, 12, 31), "All Time")
    if period == "custom":
        if start is None or end is None:
            raise ValueError("custom period needs both start and end")
        if end < start:
            raise ValueError("custom period ends before it starts")
        return PeriodRange(start, end, f"{start.isoformat()} to {end.isoformat()}")
    raise ValueError(f"unknown period: {period}")


def parse_local_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    m = _DATE_RE.match(value)
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def phone_digits(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


def effective_date(job: Job) -> Optional[date]:
    return parse_local_date(job.end_date or job.start_date)


def filter_by_period(jobs: Iterable[Job], rng: PeriodRange) -> List[Job]:
    out = []
    for job in jobs:
        d = effective_date(job)
        if d is not None and rng.start <= d <= rng.end:
            out.append(job)
    return out


def summarize(jobs: List[Job], period: str, rng: PeriodRange) -> DashboardSummary:
    by_category: Dict[JobCategory, CategoryTotals] = {c: CategoryTotals() for c in JobCategory}
    counts = StatusCounts()
    income = paid = 0.0

    for job in jobs:
        income += job.total_price
        paid += job.amount_paid
        cat = by_category[job.category]
        cat.income += job.total_price
        cat.paid += job.amount_paid
        cat.jobs += 1
        if job.status == JobStatus.PENDING:
            counts.pending += 1
        elif job.status == JobStatus.IN_PROGRESS:
            counts.in_progress += 1
        elif job.status == JobStatus.COMPLETED:
            counts.completed += 1

    for cat in by_category.values():
        cat.pending = cat.income - cat.paid

    return DashboardSummary(
        period=period,
        label=rng.label,
        start=rng.start,
        end=rng.end,
        total_income=income,
        total_paid=paid,
        total_pending=income - paid,
        total_jobs=len(jobs),
        by_category=by_category,
        status_counts=counts,
    )


def monthly_breakdown(jobs: Iterable[Job], period: str, rng: PeriodRange) -> MonthlyReport:
    buckets: Dict[Tuple[int, int], MonthlyRow] = {}
    total = MonthlyRow(month="Total")

    for job in jobs:
        d = effective_date(job)
        if d is None:
            continue
        row = buckets.get((d.year, d.month))
        if row is None:
            row = buckets[(d.year, d.month)] = MonthlyRow(month=f"{_MONTHS[d.month - 1]} {d.year}")
        for r in (row, total):
            r.income += job.total_price
            r.paid += job.amount_paid
            r.pending += job.total_price - job.amount_paid
            r.jobs += 1

    months = [buckets[k] for k in sorted(buckets, reverse=True)]
    return MonthlyReport(
        period=period,
        label=rng.label,
        start=rng.start,
        end=rng.end,
        months=months,
        total=total,
    )


def customer_directory(jobs: Iterable[Job]) -> List[Customer]:
    """Distinct customers by name (first occurrence wins) with their unpaid job count."""
    jobs = list(jobs)
    customers: Dict[str, Customer] = {}
    for job in jobs:
        if job.customer_name and job.customer_name not in customers:
            customers[job.customer_name] = Customer(
                name=job.customer_name,
                phone=job.customer_phone,
                client_name=job.client_name,
                studio_name=job.studio_name,
            )

    unpaid: Dict[str, int] = {}
    for job in jobs:
        digits = phone_digits(job.customer_phone)
        if digits and job.payment_status != PaymentStatus.COMPLETED:
            unpaid[digits] = unpaid.get(digits, 0) + 1

    for c in customers.values():
        c.pending_jobs = unpaid.get(phone_digits(c.phone), 0)
    return list(customers.values())
