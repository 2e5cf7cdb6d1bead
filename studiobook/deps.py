# studiobook/deps.py
from typing import Optional

from fastapi import Header

from .config import DEMO_USER_ID, get_supabase
from .db import LocalStore
from .remote import RemoteStore
from .store import JobStore
from .templates import TemplateResolver, TemplateStore

_local: Optional[LocalStore] = None
_remote: Optional[RemoteStore] = None
_remote_checked = False


def get_local() -> LocalStore:
    global _local
    if _local is None:
        _local = LocalStore()
    return _local


def get_remote() -> Optional[RemoteStore]:
    global _remote, _remote_checked
    if not _remote_checked:
        client = get_supabase()
        _remote = RemoteStore(client) if client is not None else None
        _remote_checked = True
    return _remote


def get_job_store() -> JobStore:
    return JobStore(get_local(), get_remote())


def get_template_store() -> TemplateStore:
    return TemplateStore(get_local(), get_remote())


def get_resolver() -> TemplateResolver:
    return TemplateResolver(get_template_store())


async def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    # no auth: the owner id is taken on trust, demo owner by default
    return x_user_id or DEMO_USER_ID
