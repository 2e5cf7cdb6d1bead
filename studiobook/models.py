# studiobook/models.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator


class JobCategory(str, Enum):
    EDITING = "EDITING"
    EXPOSING = "EXPOSING"
    OTHER = "OTHER"


class JobStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    COMPLETED = "COMPLETED"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class SyncStatus(str, Enum):
    LOCAL_ONLY = "local_only"
    SYNCED = "synced"
    FAILED = "failed"


class TemplateKind(str, Enum):
    SINGLE = "single"
    CONSOLIDATED = "consolidated"
    JOB_STATUS = "job_status"
    PAYMENT_STATUS = "payment_status"


# Never written to the remote "jobs" table
LOCAL_ONLY_FIELDS = {"sync_status"}


# ──────────────────────────────────────────────────────────────────────────────
# Jobs
# ──────────────────────────────────────────────────────────────────────────────
class JobFields(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    client_name: Optional[str] = None
    studio_name: Optional[str] = None

    event_type: Optional[str] = None
    event_location: Optional[str] = None
    session_type: Optional[str] = None
    expose_type: Optional[str] = None
    number_of_cameras: Optional[int] = Field(default=None, ge=0)
    camera_type: Optional[str] = None
    duration_hours: Optional[float] = Field(default=None, ge=0)
    rate_per_hour: Optional[float] = Field(default=None, ge=0)
    type_of_work: Optional[str] = None

    total_price: float = Field(default=0, ge=0)
    amount_paid: float = Field(default=0, ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: JobStatus = JobStatus.PENDING
    priority: Optional[Priority] = None
    notes: Optional[str] = None


class JobIn(JobFields):
    """Create payload. Dates are validated here, stored as ISO strings."""

    category: JobCategory
    start_date: date
    end_date: Optional[date] = None
    estimated_due_date: Optional[date] = None
    payment_date: Optional[date] = None

    @model_validator(mode="after")
    def _price_from_hours(self) -> "JobIn":
        if (
            not self.total_price
            and self.duration_hours
            and self.rate_per_hour
        ):
            self.total_price = round(self.duration_hours * self.rate_per_hour)
        return self


class JobUpdate(BaseModel):
    """Partial update. Category is not editable."""

    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_phone: Optional[str] = None
    client_name: Optional[str] = None
    studio_name: Optional[str] = None
    event_type: Optional[str] = None
    event_location: Optional[str] = None
    session_type: Optional[str] = None
    expose_type: Optional[str] = None
    number_of_cameras: Optional[int] = Field(default=None, ge=0)
    camera_type: Optional[str] = None
    duration_hours: Optional[float] = Field(default=None, ge=0)
    rate_per_hour: Optional[float] = Field(default=None, ge=0)
    type_of_work: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    estimated_due_date: Optional[date] = None
    payment_date: Optional[date] = None
    total_price: Optional[float] = Field(default=None, ge=0)
    amount_paid: Optional[float] = Field(default=None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    status: Optional[JobStatus] = None
    priority: Optional[Priority] = None
    notes: Optional[str] = None


class PriorityIn(BaseModel):
    priority: Optional[Priority] = None


class Job(JobFields):
    """A stored job. Dates stay as strings so legacy rows still load."""

    id: str
    user_id: Optional[str] = None
    category: JobCategory
    start_date: str
    end_date: Optional[str] = None
    estimated_due_date: Optional[str] = None
    payment_date: Optional[str] = None
    created_at: str
    updated_at: str
    sync_status: Optional[SyncStatus] = None

    @property
    def balance(self) -> float:
        return self.total_price - self.amount_paid

    def to_remote_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude=LOCAL_ONLY_FIELDS)


def row_to_job(row: Dict[str, Any]) -> Job:
    # remote rows can carry extra columns and null text fields
    known = {k: v for k, v in row.items() if k in Job.model_fields and v is not None}
    for key in ("start_date", "end_date", "estimated_due_date", "payment_date", "created_at", "updated_at"):
        if key in known:
            known[key] = str(known[key])
    return Job(**known)


# ──────────────────────────────────────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────────────────────────────────────
TemplateContent = Union[str, Dict[str, str]]


class TemplateIn(BaseModel):
    kind: TemplateKind
    category: Optional[JobCategory] = None
    content: TemplateContent

    @model_validator(mode="after")
    def _content_shape(self) -> "TemplateIn":
        status_set = self.kind in (TemplateKind.JOB_STATUS, TemplateKind.PAYMENT_STATUS)
        if status_set and not isinstance(self.content, dict):
            raise ValueError(f"{self.kind.value} templates must map status -> text")
        if not status_set and not isinstance(self.content, str):
            raise ValueError(f"{self.kind.value} templates must be text")
        return self


class TemplateOut(BaseModel):
    kind: TemplateKind
    category: Optional[JobCategory] = None
    source: str
    content: TemplateContent


# ──────────────────────────────────────────────────────────────────────────────
# Reminders / migration
# ──────────────────────────────────────────────────────────────────────────────
class ReminderOut(BaseModel):
    message: str
    url: Optional[str] = None


class MigrateJobsIn(BaseModel):
    jobs: Optional[List[Job]] = None


class MigrateOut(BaseModel):
    ok: bool = True
    inserted: int


# ──────────────────────────────────────────────────────────────────────────────
# Dashboard / reports
# ──────────────────────────────────────────────────────────────────────────────
class CategoryTotals(BaseModel):
    income: float = 0
    paid: float = 0
    pending: float = 0
    jobs: int = 0


class StatusCounts(BaseModel):
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class DashboardSummary(BaseModel):
    period: str
    label: str
    start: date
    end: date
    total_income: float
    total_paid: float
    total_pending: float
    total_jobs: int
    by_category: Dict[JobCategory, CategoryTotals]
    status_counts: StatusCounts


class MonthlyRow(BaseModel):
    month: str
    income: float = 0
    paid: float = 0
    pending: float = 0
    jobs: int = 0


class MonthlyReport(BaseModel):
    period: str
    label: str
    start: date
    end: date
    months: List[MonthlyRow]
    total: MonthlyRow


class Customer(BaseModel):
    name: str
    phone: Optional[str] = None
    client_name: Optional[str] = None
    studio_name: Optional[str] = None
    pending_jobs: int = 0
