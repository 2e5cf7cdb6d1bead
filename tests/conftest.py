from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from studiobook import deps
from studiobook.db import LocalStore
from studiobook.main import app
from studiobook.remote import RemoteStore
from studiobook.store import JobStore
from studiobook.templates import TemplateResolver, TemplateStore


# ──────────────────────────────────────────────────────────────────────────────
# In-memory stand-in for the supabase query builder (only what RemoteStore uses)
# ──────────────────────────────────────────────────────────────────────────────
class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List = []
        self.order_by = None
        self.limit_n = None
        self.on_conflict = None

    def select(self, *_):
        return self

    def insert(self, row):
        self.op, self.payload = "insert", row
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def upsert(self, rows, on_conflict=None):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def eq(self, col, value):
        self.filters.append(lambda r: r.get(col) == value)
        return self

    def is_(self, col, value):
        assert value == "null"
        self.filters.append(lambda r: r.get(col) is None)
        return self

    def order(self, col, desc=False):
        self.order_by = (col, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _match(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if self.db.fail:
            raise ConnectionError("supabase unreachable")
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[dict(self.payload)])
        if self.op == "update":
            hit = [r for r in rows if self._match(r)]
            for r in hit:
                r.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in hit])
        if self.op == "delete":
            hit = [r for r in rows if self._match(r)]
            self.db.tables[self.table] = [r for r in rows if not self._match(r)]
            return SimpleNamespace(data=hit)
        if self.op == "upsert":
            keys = self.on_conflict.split(",")
            for new in self.payload:
                old = next((r for r in rows if all(r.get(k) == new.get(k) for k in keys)), None)
                if old is not None:
                    old.update(new)
                else:
                    rows.append(dict(new))
            return SimpleNamespace(data=[dict(r) for r in self.payload])
        out = [dict(r) for r in rows if self._match(r)]
        if self.order_by:
            col, desc = self.order_by
            out.sort(key=lambda r: r.get(col) or "", reverse=desc)
        if self.limit_n is not None:
            out = out[: self.limit_n]
        return SimpleNamespace(data=out)


class FakeSupabase:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.tables: Dict[str, List[Dict[str, Any]]] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def local(tmp_path) -> LocalStore:
    engine = create_engine(f"sqlite:///{tmp_path / 'local.db'}")
    return LocalStore(engine)


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def broken_supabase() -> FakeSupabase:
    return FakeSupabase(fail=True)


@pytest.fixture
def store(local, supabase) -> JobStore:
    return JobStore(local, RemoteStore(supabase))


@pytest.fixture
def local_only_store(local) -> JobStore:
    return JobStore(local)


@pytest.fixture
def template_store(local, supabase) -> TemplateStore:
    return TemplateStore(local, RemoteStore(supabase))


@pytest.fixture
def resolver(local) -> TemplateResolver:
    return TemplateResolver(TemplateStore(local))


@pytest.fixture
def client(local, supabase):
    remote = RemoteStore(supabase)
    app.dependency_overrides[deps.get_local] = lambda: local
    app.dependency_overrides[deps.get_remote] = lambda: remote
    app.dependency_overrides[deps.get_job_store] = lambda: JobStore(local, remote)
    app.dependency_overrides[deps.get_template_store] = lambda: TemplateStore(local, remote)
    app.dependency_overrides[deps.get_resolver] = lambda: TemplateResolver(TemplateStore(local, remote))
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def local_client(local):
    app.dependency_overrides[deps.get_local] = lambda: local
    app.dependency_overrides[deps.get_remote] = lambda: None
    app.dependency_overrides[deps.get_job_store] = lambda: JobStore(local)
    app.dependency_overrides[deps.get_template_store] = lambda: TemplateStore(local)
    app.dependency_overrides[deps.get_resolver] = lambda: TemplateResolver(TemplateStore(local))
    yield TestClient(app)
    app.dependency_overrides.clear()
