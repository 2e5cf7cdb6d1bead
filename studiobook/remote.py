# studiobook/remote.py
from typing import Any, Dict, List, Optional

from supabase import Client

from .models import Job, TemplateContent, TemplateKind, row_to_job

JOBS_TABLE = "jobs"
TEMPLATES_TABLE = "whatsapp_templates"


class RemoteNotConfigured(RuntimeError):
    """Raised by operations that need the remote store when there is none."""


class RemoteStore:
    """
    Thin wrapper over the Supabase tables. Every method raises whatever the
    client raises; callers decide whether a failure matters.
    """

    def __init__(self, client: Client) -> None:
        self.sb = client

    # ── jobs ────────────────────────────────────────────────────────────────
    def list_jobs(self, user_id: str, category: Optional[str] = None) -> List[Job]:
        q = self.sb.table(JOBS_TABLE).select("*").eq("user_id", user_id)
        if category:
            q = q.eq("category", category)
        r = q.order("created_at", desc=True).execute()
        return [row_to_job(row) for row in (r.data or [])]

    def get_job(self, job_id: str) -> Optional[Job]:
        r = self.sb.table(JOBS_TABLE).select("*").eq("id", job_id).limit(1).execute()
        rows = r.data or []
        return row_to_job(rows[0]) if rows else None

    def insert_job(self, job: Job) -> None:
        self.sb.table(JOBS_TABLE).insert(job.to_remote_row()).execute()

    def update_job(self, job_id: str, values: Dict[str, Any]) -> bool:
        r = self.sb.table(JOBS_TABLE).update(values).eq("id", job_id).execute()
        return bool(r.data)

    def delete_job(self, job_id: str) -> bool:
        r = self.sb.table(JOBS_TABLE).delete().eq("id", job_id).execute()
        return bool(r.data)

    def upsert_jobs(self, jobs: List[Job]) -> int:
        if not jobs:
            return 0
        r = (
            self.sb.table(JOBS_TABLE)
            .upsert([j.to_remote_row() for j in jobs], on_conflict="id")
            .execute()
        )
        return len(r.data) if isinstance(r.data, list) else 1

    # ── templates ───────────────────────────────────────────────────────────
    def get_template(self, kind: TemplateKind, category: Optional[str]) -> Optional[TemplateContent]:
        q = self.sb.table(TEMPLATES_TABLE).select("id, content").eq("kind", kind.value)
        if category:
            q = q.eq("category", category)
        else:
            q = q.is_("category", "null")
        r = q.limit(1).execute()
        rows = r.data or []
        return rows[0]["content"] if rows else None

    def list_templates(self, kind: TemplateKind) -> Dict[str, TemplateContent]:
        r = (
            self.sb.table(TEMPLATES_TABLE)
            .select("id, category, kind, content")
            .eq("kind", kind.value)
            .execute()
        )
        return {(row.get("category") or "GLOBAL"): row["content"] for row in (r.data or [])}

    def upsert_templates(self, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        # kind+category as conflict target: global rows have a NULL user_id
        payload = [{"user_id": None, **row} for row in rows]
        r = (
            self.sb.table(TEMPLATES_TABLE)
            .upsert(payload, on_conflict="kind,category")
            .execute()
        )
        return len(r.data) if isinstance(r.data, list) else 1

    def upsert_template(self, kind: TemplateKind, category: Optional[str], content: TemplateContent) -> None:
        self.upsert_templates([{"kind": kind.value, "category": category, "content": content}])

    def delete_template(self, kind: TemplateKind, category: Optional[str]) -> None:
        q = self.sb.table(TEMPLATES_TABLE).delete().eq("kind", kind.value)
        if category:
            q = q.eq("category", category)
        else:
            q = q.is_("category", "null")
        q.execute()
