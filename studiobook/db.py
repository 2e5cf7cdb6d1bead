# studiobook/db.py
import json
from typing import Any, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import LOCAL_DB_URL

_engine: Optional[Engine] = None


class LocalStoreError(RuntimeError):
    """The device-local store could not be read or written."""


def _ensure_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(LOCAL_DB_URL, echo=False)
    return _engine


class LocalStore:
    """
    Key-value store on a single SQL table. Values are JSON documents:
    one key holds the whole job list, one key per template scope.
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self.engine = engine or _ensure_engine()
        self._create_table()

    def _create_table(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                    create table if not exists local_store (
                        key text primary key,
                        value text not null
                    )
                """))
        except SQLAlchemyError as e:
            raise LocalStoreError(f"could not initialise local store: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    text("select value from local_store where key = :key"), {"key": key}
                ).first()
        except SQLAlchemyError as e:
            raise LocalStoreError(f"read failed for {key}: {e}") from e
        if row is None:
            return default
        try:
            return json.loads(row.value)
        except ValueError as e:
            raise LocalStoreError(f"corrupt value under {key}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise LocalStoreError(f"could not serialise {key}: {e}") from e
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text("""
                        insert into local_store (key, value) values (:key, :value)
                        on conflict(key) do update set value = excluded.value
                    """),
                    {"key": key, "value": payload},
                )
        except SQLAlchemyError as e:
            raise LocalStoreError(f"write failed for {key}: {e}") from e

    def remove(self, key: str) -> bool:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text("delete from local_store where key = :key"), {"key": key})
        except SQLAlchemyError as e:
            raise LocalStoreError(f"delete failed for {key}: {e}") from e
        return result.rowcount > 0

    def keys(self, prefix: str = "") -> List[str]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    text("select key from local_store where key like :prefix order by key"),
                    {"prefix": f"{prefix}%"},
                ).all()
        except SQLAlchemyError as e:
            raise LocalStoreError(f"key scan failed: {e}") from e
        # LIKE treats "_" as a wildcard
        return [r.key for r in rows if r.key.startswith(prefix)]

    def ping(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(text("select 1")).scalar_one()
