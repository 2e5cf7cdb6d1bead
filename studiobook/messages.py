# studiobook/messages.py
"""
Rendering of reminder and status messages, plus the WhatsApp hand-off link.

Templates use ``{name}`` placeholders from a closed set. Substitution is a
single regex pass: replacement text is never re-scanned, and placeholders
that are unknown or unbound are left in the output as written.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from .config import DEFAULT_COUNTRY_CODE
from .models import Job, JobStatus, PaymentStatus, TemplateKind
from .reports import parse_local_date, phone_digits
from .templates import TemplateResolver

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
# unreserved set of JavaScript encodeURIComponent
_URI_SAFE = "-_.!~*'()"

SERVICE_ICONS = {"EDITING": "✨", "EXPOSING": "📷", "OTHER": "📋"}


class Placeholder(str, Enum):
    CUSTOMER_NAME = "customer_name"
    SERVICE_TYPE = "service_type"
    SERVICE_ICON = "service_icon"
    DATE = "date"
    TOTAL_AMOUNT = "total_amount"
    AMOUNT_PAID = "amount_paid"
    BALANCE = "balance"
    BALANCE_MESSAGE = "balance_message"
    COUNT = "count"
    JOBS_LIST = "jobs_list"
    TOTAL_BALANCE = "total_balance"


_KNOWN = {p.value for p in Placeholder}


@dataclass
class MessageContext:
    customer_name: Optional[str] = None
    service_type: Optional[str] = None
    service_icon: Optional[str] = None
    date: Optional[str] = None
    total_amount: Optional[str] = None
    amount_paid: Optional[str] = None
    balance: Optional[str] = None
    balance_message: Optional[str] = None
    count: Optional[str] = None
    jobs_list: Optional[str] = None
    total_balance: Optional[str] = None

    def bindings(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def render(template: str, ctx: MessageContext) -> str:
    values = ctx.bindings()

    def _sub(m: re.Match) -> str:
        name = m.group(1)
        if name in _KNOWN and name in values:
            return values[name]
        return m.group(0)

    return _PLACEHOLDER_RE.sub(_sub, template)


# ──────────────────────────────────────────────────────────────────────────────
# Formatting
# ──────────────────────────────────────────────────────────────────────────────
def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_amount(value: float) -> str:
    """en-IN grouping: 6000 -> '6,000', 150000 -> '1,50,000'; at most 2 decimals."""
    value = round(value, 2)
    sign = "-" if value < 0 else ""
    whole, _, frac = f"{abs(value):.2f}".partition(".")
    frac = frac.rstrip("0")
    out = sign + _group_indian(whole)
    return f"{out}.{frac}" if frac else out


def format_date(value: Optional[str], with_year: bool = True) -> str:
    d = parse_local_date(value)
    if d is None:
        return value or ""
    if with_year:
        return f"{d.day} {_MONTHS[d.month - 1]} {d.year}"
    return f"{d.day} {_MONTHS[d.month - 1]}"


def service_icon(category: Optional[str]) -> str:
    return SERVICE_ICONS.get((category or "").upper(), "📌")


def service_label(job: Job) -> str:
    return job.event_type or job.type_of_work or "Service"


def job_context(job: Job) -> MessageContext:
    balance = job.balance
    if balance > 0:
        balance_message = f"💰 Pending Balance: Rs.{format_amount(balance)}"
    else:
        balance_message = "✅ All payments are complete."
    return MessageContext(
        customer_name=job.customer_name,
        service_type=service_label(job),
        service_icon=service_icon(job.category.value),
        date=format_date(job.start_date),
        total_amount=format_amount(job.total_price),
        amount_paid=format_amount(job.amount_paid),
        balance=format_amount(balance),
        balance_message=balance_message,
    )


# ──────────────────────────────────────────────────────────────────────────────
# Messages
# ──────────────────────────────────────────────────────────────────────────────
def single_reminder(resolver: TemplateResolver, job: Job) -> str:
    template = resolver.text(TemplateKind.SINGLE, job.category.value)
    return render(template, job_context(job))


def job_status_message(resolver: TemplateResolver, job: Job, status: Optional[JobStatus] = None) -> str:
    status = status or job.status
    template = resolver.status_text(TemplateKind.JOB_STATUS, status.value, job.category.value)
    return render(template, job_context(job))


def payment_status_message(resolver: TemplateResolver, job: Job, status: Optional[PaymentStatus] = None) -> str:
    status = status or job.payment_status
    template = resolver.status_text(TemplateKind.PAYMENT_STATUS, status.value, job.category.value)
    return render(template, job_context(job))


def pending_jobs_for(jobs: Iterable[Job], phone: str) -> List[Job]:
    """Jobs of the customer with this phone that are not fully paid, in input order."""
    wanted = phone_digits(phone)
    if not wanted:
        return []
    return [
        j for j in jobs
        if phone_digits(j.customer_phone) == wanted and j.payment_status != PaymentStatus.COMPLETED
    ]


def consolidated_reminder(resolver: TemplateResolver, customer_name: str, jobs: List[Job]) -> str:
    lines = []
    for i, job in enumerate(jobs, start=1):
        lines.append(
            f"{i}. {service_icon(job.category.value)} {service_label(job)} "
            f"({format_date(job.start_date, with_year=False)})\n"
            f"   Balance: Rs.{format_amount(job.balance)}"
        )
    total_balance = sum(j.balance for j in jobs)
    ctx = MessageContext(
        customer_name=customer_name,
        count=str(len(jobs)),
        jobs_list="\n\n".join(lines),
        total_balance=format_amount(total_balance),
    )
    return render(resolver.text(TemplateKind.CONSOLIDATED), ctx)


def whatsapp_url(phone: str, message: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    cleaned = re.sub(r"[\s\-()]", "", phone or "")
    has_plus = cleaned.startswith("+")
    digits = phone_digits(cleaned)
    if not has_plus and not digits.startswith(country_code):
        digits = country_code + digits
    text = quote(message, safe=_URI_SAFE)
    return f"https://wa.me/{digits}?text={text}"
