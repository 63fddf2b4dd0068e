from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from cvforge.core.config import settings

SETTINGS_AI_CONFIG = "ai_config"
SETTINGS_RETRY_COUNT = "retry_count"
SETTINGS_PROMPT_SYSTEM = "prompt_system"
SETTINGS_PROMPT_INSTRUCTION_PREFIX = "prompt_instruction_"
SETTINGS_CV_PARSED_DATA = "cv_parsed_data"
SETTINGS_CV_ANALYSIS_STATUS = "cv_analysis_status"
SETTINGS_USER_INFO = "user_info"

COLLECTION_OPTIMIZED_CVS = "optimized_cvs"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class RecordStore(Protocol):
    def add_record(self, collection: str, record_id: str, payload: dict[str, Any]) -> None: ...

    def put_record(self, collection: str, record_id: str, payload: dict[str, Any]) -> None: ...

    def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None: ...

    def list_records(self, collection: str) -> list[dict[str, Any]]: ...

    def delete_record(self, collection: str, record_id: str) -> bool: ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordExistsError(KeyError):
    pass


class LocalStore:
    def __init__(self, db_path: str):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = self._connect()

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        if self._db_path != ":memory:":
            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

        conn = sqlite3.connect(
            self._db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                collection TEXT NOT NULL,
                record_id TEXT NOT NULL,
                payload_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (collection, record_id)
            );
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_records_collection_created
            ON records (collection, created_at);
            """
        )
        return conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def get(self, key: str) -> Any | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value_json FROM settings WHERE key = ?",
                (key,),
            ).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def put(self, key: str, value: Any) -> None:
        payload_json = json.dumps(value, ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO settings (key, value_json, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, updated_at = excluded.updated_at
                """,
                (key, payload_json, _utc_now()),
            )

    def delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM settings WHERE key = ?", (key,))

    def add_record(self, collection: str, record_id: str, payload: dict[str, Any]) -> None:
        now = _utc_now()
        payload_json = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO records (collection, record_id, payload_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (collection, record_id, payload_json, now, now),
                )
            except sqlite3.IntegrityError as exc:
                raise RecordExistsError(f"{collection}/{record_id} already exists") from exc

    def put_record(self, collection: str, record_id: str, payload: dict[str, Any]) -> None:
        now = _utc_now()
        payload_json = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO records (collection, record_id, payload_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(collection, record_id) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    updated_at = excluded.updated_at
                """,
                (collection, record_id, payload_json, now, now),
            )

    def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload_json FROM records WHERE collection = ? AND record_id = ?",
                (collection, record_id),
            ).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def list_records(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT payload_json FROM records
                WHERE collection = ?
                ORDER BY created_at DESC, record_id DESC
                """,
                (collection,),
            ).fetchall()
        return [json.loads(row[0]) for row in rows]

    def delete_record(self, collection: str, record_id: str) -> bool:
        with self._lock:
            cur = self._conn.execute(
                "DELETE FROM records WHERE collection = ? AND record_id = ?",
                (collection, record_id),
            )
        return cur.rowcount > 0


@lru_cache(maxsize=1)
def get_store() -> LocalStore:
    return LocalStore(settings.store_db_path)


@lru_cache(maxsize=1)
def get_device_store() -> LocalStore:
    return LocalStore(settings.device_store_db_path)
