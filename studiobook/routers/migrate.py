import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from studiobook.deps import get_job_store, get_template_store
from studiobook.models import MigrateJobsIn, MigrateOut
from studiobook.remote import RemoteNotConfigured
from studiobook.store import JobStore
from studiobook.templates import TemplateStore

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/migrate", tags=["migrate"])


@router.post("/jobs", response_model=MigrateOut)
def migrate_jobs(
    payload: Optional[MigrateJobsIn] = None,
    store: JobStore = Depends(get_job_store),
):
    """Upsert jobs into Supabase by id; without a body, every local job is pushed."""
    jobs = payload.jobs if payload else None
    try:
        inserted = store.push(jobs)
    except RemoteNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        log.error(f"job migration failed: {e}")
        raise HTTPException(status_code=500, detail=f"Migration failed: {e}")
    return MigrateOut(inserted=inserted)


@router.post("/templates", response_model=MigrateOut)
def migrate_templates(store: TemplateStore = Depends(get_template_store)):
    try:
        inserted = store.push()
    except RemoteNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        log.error(f"template migration failed: {e}")
        raise HTTPException(status_code=500, detail=f"Migration failed: {e}")
    return MigrateOut(inserted=inserted)
