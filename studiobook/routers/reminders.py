from fastapi import APIRouter, Depends, HTTPException, Query

from studiobook.db import LocalStoreError
from studiobook.deps import get_job_store, get_resolver, get_user_id
from studiobook.messages import consolidated_reminder, pending_jobs_for, whatsapp_url
from studiobook.models import ReminderOut
from studiobook.store import JobStore
from studiobook.templates import TemplateResolver

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("/consolidated", response_model=ReminderOut)
def consolidated(
    phone: str = Query(..., min_length=1),
    store: JobStore = Depends(get_job_store),
    resolver: TemplateResolver = Depends(get_resolver),
    user_id: str = Depends(get_user_id),
):
    """One message covering every unpaid job of the customer with this phone."""
    try:
        jobs = store.list_jobs(user_id)
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading jobs: {e}")
    pending = pending_jobs_for(jobs, phone)
    if not pending:
        raise HTTPException(status_code=404, detail="No pending jobs for this customer")
    message = consolidated_reminder(resolver, pending[0].customer_name, pending)
    return ReminderOut(message=message, url=whatsapp_url(phone, message))
