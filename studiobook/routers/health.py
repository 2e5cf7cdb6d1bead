from typing import Optional

from fastapi import APIRouter, Depends

from studiobook.db import LocalStore
from studiobook.deps import get_local, get_remote
from studiobook.remote import RemoteStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    return {"ok": True}


@router.get("/db")
def health_db(
    local: LocalStore = Depends(get_local),
    remote: Optional[RemoteStore] = Depends(get_remote),
):
    out = {"local": None, "remote_configured": remote is not None, "errors": []}
    try:
        out["local"] = local.ping()
    except Exception as e:
        # surface the error so we know exactly what's wrong
        out["errors"].append(f"local store: {e}")
    return out
