# studiobook/store.py
"""
Job record store: local-first persistence with an optional Supabase mirror.

Writes go to the local store first and always; the remote mirror is
best-effort and its outcome is recorded on the local copy as ``sync_status``.
Reads merge remote rows with any local-only records.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .db import LocalStore
from .models import Job, JobIn, JobUpdate, Priority, SyncStatus, LOCAL_ONLY_FIELDS
from .remote import RemoteNotConfigured, RemoteStore

log = logging.getLogger("uvicorn.error")

JOBS_KEY = "jobs"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_NOT_NULLABLE = ("customer_name", "start_date", "total_price", "amount_paid", "status", "payment_status")


class JobNotFoundError(LookupError):
    pass


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_ts(value: Optional[str]) -> datetime:
    if not value:
        return _EPOCH
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def newest_first(jobs: List[Job]) -> List[Job]:
    return sorted(jobs, key=lambda j: _parse_ts(j.created_at), reverse=True)


class JobStore:
    def __init__(self, local: LocalStore, remote: Optional[RemoteStore] = None) -> None:
        self.local = local
        self.remote = remote

    # ── local list ──────────────────────────────────────────────────────────
    def local_jobs(self) -> List[Job]:
        return [Job(**row) for row in self.local.get(JOBS_KEY, [])]

    def _save_local(self, jobs: List[Job]) -> None:
        self.local.set(JOBS_KEY, [j.model_dump(mode="json") for j in jobs])

    def _mark(self, job_id: str, status: SyncStatus) -> Optional[Job]:
        jobs = self.local_jobs()
        for i, j in enumerate(jobs):
            if j.id == job_id:
                jobs[i] = j.model_copy(update={"sync_status": status})
                self._save_local(jobs)
                return jobs[i]
        return None

    def _initial_status(self) -> SyncStatus:
        return SyncStatus.SYNCED if self.remote else SyncStatus.LOCAL_ONLY

    # ── reads ───────────────────────────────────────────────────────────────
    def list_jobs(self, user_id: str, category: Optional[str] = None) -> List[Job]:
        local_jobs = self.local_jobs()
        log.debug(f"local store has {len(local_jobs)} jobs")

        merged: Optional[List[Job]] = None
        if self.remote:
            try:
                remote_jobs = self.remote.list_jobs(user_id, category)
            except Exception as e:
                log.warning(f"Supabase read failed, using local store only: {e}")
                remote_jobs = []
            if remote_jobs:
                merged = self._merge(remote_jobs, local_jobs)

        if merged is None:
            merged = local_jobs
        if category:
            merged = [j for j in merged if j.category.value == category]
        return newest_first(merged)

    def _merge(self, remote_jobs: List[Job], local_jobs: List[Job]) -> List[Job]:
        local_by_id = {j.id: j for j in local_jobs}
        out: List[Job] = []
        for rj in remote_jobs:
            lj = local_by_id.get(rj.id)
            if lj and _parse_ts(lj.updated_at) > _parse_ts(rj.updated_at):
                log.warning(f"job {rj.id} is newer locally than in Supabase; showing remote copy")
            out.append(rj.model_copy(update={"sync_status": SyncStatus.SYNCED}))
        remote_ids = {j.id for j in remote_jobs}
        local_only = [j for j in local_jobs if j.id not in remote_ids]
        if local_only:
            log.info(f"merging {len(local_only)} local-only jobs")
        return out + local_only

    def get_job(self, user_id: str, job_id: str) -> Job:
        for j in self.list_jobs(user_id):
            if j.id == job_id:
                return j
        raise JobNotFoundError(job_id)

    # ── writes ──────────────────────────────────────────────────────────────
    def create_job(self, user_id: str, payload: JobIn) -> Job:
        now = utcnow_iso()
        job = Job(
            **payload.model_dump(mode="json"),
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            sync_status=self._initial_status(),
        )
        jobs = self.local_jobs()
        jobs.insert(0, job)
        self._save_local(jobs)
        log.info(f"job {job.id} ({job.category.value}, {job.customer_name}) saved locally")

        if self.remote:
            try:
                self.remote.insert_job(job)
            except Exception as e:
                log.error(f"Supabase insert failed for job {job.id} (kept locally): {e}")
                job = self._mark(job.id, SyncStatus.FAILED) or job
        return job

    def update_job(self, job_id: str, changes: JobUpdate | Dict[str, Any]) -> Job:
        if isinstance(changes, JobUpdate):
            values = changes.model_dump(mode="json", exclude_unset=True)
        else:
            values = dict(changes)
        # category and identity never change after creation
        for key in ("id", "category", "user_id", "created_at", *LOCAL_ONLY_FIELDS):
            values.pop(key, None)
        for key in _NOT_NULLABLE:
            if key in values and values[key] is None:
                del values[key]
        values["updated_at"] = utcnow_iso()

        jobs = self.local_jobs()
        idx = next((i for i, j in enumerate(jobs) if j.id == job_id), None)
        if idx is None:
            adopted = self._fetch_remote(job_id)
            if adopted is None:
                raise JobNotFoundError(job_id)
            jobs.insert(0, adopted)
            idx = 0

        updated = Job(**{**jobs[idx].model_dump(mode="json"), **values, "sync_status": self._initial_status()})
        jobs[idx] = updated
        self._save_local(jobs)
        log.info(f"job {job_id} updated locally ({', '.join(sorted(values))})")

        if self.remote:
            try:
                if not self.remote.update_job(job_id, values):
                    # no remote row to update: send the whole record
                    log.info(f"job {job_id} missing in Supabase; upserting full row")
                    self.remote.upsert_jobs([updated])
            except Exception as e:
                log.error(f"Supabase update failed for job {job_id} (kept locally): {e}")
                updated = self._mark(job_id, SyncStatus.FAILED) or updated
        return updated

    def set_priority(self, job_id: str, priority: Optional[Priority]) -> Job:
        return self.update_job(job_id, {"priority": priority.value if priority else None})

    def delete_job(self, job_id: str) -> None:
        jobs = self.local_jobs()
        kept = [j for j in jobs if j.id != job_id]
        removed_locally = len(kept) != len(jobs)
        if removed_locally:
            self._save_local(kept)
            log.info(f"job {job_id} deleted locally")

        removed_remotely = False
        if self.remote:
            try:
                removed_remotely = self.remote.delete_job(job_id)
            except Exception as e:
                log.error(f"Supabase delete failed for job {job_id}: {e}")
                if not removed_locally:
                    # the job may only exist remotely; don't report it as missing
                    raise
        if not (removed_locally or removed_remotely):
            raise JobNotFoundError(job_id)

    def _fetch_remote(self, job_id: str) -> Optional[Job]:
        if not self.remote:
            return None
        try:
            return self.remote.get_job(job_id)
        except Exception as e:
            log.warning(f"Supabase lookup failed for job {job_id}: {e}")
            return None

    # ── bulk migration ──────────────────────────────────────────────────────
    def push(self, jobs: Optional[List[Job]] = None) -> int:
        """Upsert jobs (default: every local job) into Supabase by id."""
        if not self.remote:
            raise RemoteNotConfigured("Supabase not configured")
        if jobs is None:
            jobs = self.local_jobs()
        count = self.remote.upsert_jobs(jobs)
        pushed = {j.id for j in jobs}
        local = self.local_jobs()
        if any(j.id in pushed for j in local):
            self._save_local([
                j.model_copy(update={"sync_status": SyncStatus.SYNCED}) if j.id in pushed else j
                for j in local
            ])
        log.info(f"pushed {count} jobs to Supabase")
        return count
