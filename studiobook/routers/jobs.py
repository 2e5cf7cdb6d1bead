# studiobook/routers/jobs.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from studiobook.db import LocalStoreError
from studiobook.deps import get_job_store, get_resolver, get_user_id
from studiobook.messages import job_status_message, payment_status_message, single_reminder, whatsapp_url
from studiobook.models import Job, JobCategory, JobIn, JobUpdate, PriorityIn, ReminderOut, TemplateKind
from studiobook.store import JobNotFoundError, JobStore
from studiobook.templates import TemplateResolver

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _load(store: JobStore, user_id: str, job_id: str) -> Job:
    try:
        return store.get_job(user_id, job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading job: {e}")


# ──────────────────────────────────────────────────────────────────────────────
# GET /jobs: merged local + remote list, newest first
# ──────────────────────────────────────────────────────────────────────────────
@router.get("", response_model=List[Job])
def list_jobs(
    category: Optional[JobCategory] = Query(default=None),
    store: JobStore = Depends(get_job_store),
    user_id: str = Depends(get_user_id),
):
    try:
        return store.list_jobs(user_id, category.value if category else None)
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error loading jobs: {e}")


@router.post("", response_model=Job, status_code=201)
def create_job(
    payload: JobIn,
    store: JobStore = Depends(get_job_store),
    user_id: str = Depends(get_user_id),
):
    try:
        return store.create_job(user_id, payload)
    except LocalStoreError as e:
        log.error(f"create_job failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error saving job: {e}")


@router.get("/{job_id}", response_model=Job)
def get_job(
    job_id: str,
    store: JobStore = Depends(get_job_store),
    user_id: str = Depends(get_user_id),
):
    return _load(store, user_id, job_id)


@router.put("/{job_id}", response_model=Job)
def update_job(
    job_id: str,
    payload: JobUpdate,
    store: JobStore = Depends(get_job_store),
):
    try:
        return store.update_job(job_id, payload)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except LocalStoreError as e:
        log.error(f"update_job {job_id} failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error saving job: {e}")


@router.patch("/{job_id}/priority", response_model=Job)
def set_priority(
    job_id: str,
    payload: PriorityIn,
    store: JobStore = Depends(get_job_store),
):
    try:
        return store.set_priority(job_id, payload.priority)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=f"Error updating priority: {e}")


@router.delete("/{job_id}", status_code=204)
def delete_job(job_id: str, store: JobStore = Depends(get_job_store)):
    try:
        store.delete_job(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except LocalStoreError as e:
        log.error(f"delete_job {job_id} failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error deleting job: {e}")
    except Exception as e:
        # Supabase failed for a job not held locally
        raise HTTPException(status_code=503, detail=f"Error deleting job: {e}")


# ──────────────────────────────────────────────────────────────────────────────
# Messages for one job
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/{job_id}/reminder", response_model=ReminderOut)
def job_reminder(
    job_id: str,
    store: JobStore = Depends(get_job_store),
    resolver: TemplateResolver = Depends(get_resolver),
    user_id: str = Depends(get_user_id),
):
    job = _load(store, user_id, job_id)
    message = single_reminder(resolver, job)
    url = whatsapp_url(job.customer_phone, message) if job.customer_phone else None
    return ReminderOut(message=message, url=url)


@router.get("/{job_id}/status-message", response_model=ReminderOut)
def job_status_reminder(
    job_id: str,
    kind: TemplateKind = Query(default=TemplateKind.JOB_STATUS),
    store: JobStore = Depends(get_job_store),
    resolver: TemplateResolver = Depends(get_resolver),
    user_id: str = Depends(get_user_id),
):
    job = _load(store, user_id, job_id)
    if kind == TemplateKind.JOB_STATUS:
        message = job_status_message(resolver, job)
    elif kind == TemplateKind.PAYMENT_STATUS:
        message = payment_status_message(resolver, job)
    else:
        raise HTTPException(status_code=400, detail="kind must be job_status or payment_status")
    url = whatsapp_url(job.customer_phone, message) if job.customer_phone else None
    return ReminderOut(message=message, url=url)
