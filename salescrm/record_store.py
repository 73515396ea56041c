# salescrm/record_store.py
"""
Record Store - string-keyed blob storage

The CRM keeps every collection as one JSON document under a fixed key.
Two backends share the same contract:

- MemoryRecordStore: process-local dict (tests, throwaway sessions)
- SQLRecordStore: a key/value table behind the shared SQLAlchemy engine,
  so several browser sessions (and processes) see the same data

Usage:
    store = get_record_store()
    store.write("crm_users", json.dumps(users))
    raw = store.read("crm_users")  # str or None
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from .db import get_db_engine, get_transaction, execute_query, execute_update

logger = logging.getLogger(__name__)

KV_TABLE = "crm_kv_store"


class RecordStore(ABC):
    """Minimal get/set contract over string keys and string values."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key. Removing an absent key is a no-op."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All keys currently stored."""


class MemoryRecordStore(RecordStore):
    """Thread-safe in-memory store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Record store values must be str, got {type(value).__name__}")
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def __repr__(self) -> str:
        return f"MemoryRecordStore(keys={len(self._data)})"


class SQLRecordStore(RecordStore):
    """
    Key/value table accessed through SQLAlchemy text queries.

    Writes are delete + insert inside one transaction so the same SQL
    works on SQLite and MySQL. The table is created on first use.
    """

    def __init__(self, engine: Optional[Engine] = None, table: str = KV_TABLE):
        self.engine = engine or get_db_engine()
        self.table = table
        self._ensure_table()

    def _ensure_table(self):
        execute_update(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                store_key VARCHAR(191) NOT NULL PRIMARY KEY,
                store_value TEXT NOT NULL,
                modified_date VARCHAR(40)
            )
        """, engine=self.engine)
        logger.debug(f"Record store table ready: {self.table}")

    def read(self, key: str) -> Optional[str]:
        rows = execute_query(
            f"SELECT store_value FROM {self.table} WHERE store_key = :key",
            {'key': key},
            engine=self.engine,
        )
        return rows[0]['store_value'] if rows else None

    def write(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Record store values must be str, got {type(value).__name__}")

        with get_transaction(self.engine) as conn:
            conn.execute(
                text(f"DELETE FROM {self.table} WHERE store_key = :key"),
                {'key': key},
            )
            conn.execute(
                text(f"""
                    INSERT INTO {self.table} (store_key, store_value, modified_date)
                    VALUES (:key, :value, :modified)
                """),
                {'key': key, 'value': value, 'modified': datetime.now().isoformat()},
            )

    def remove(self, key: str) -> None:
        execute_update(
            f"DELETE FROM {self.table} WHERE store_key = :key",
            {'key': key},
            engine=self.engine,
        )

    def keys(self) -> List[str]:
        rows = execute_query(
            f"SELECT store_key FROM {self.table} ORDER BY store_key",
            engine=self.engine,
        )
        return [row['store_key'] for row in rows]

    def __repr__(self) -> str:
        return f"SQLRecordStore(table='{self.table}', dialect='{self.engine.dialect.name}')"


# ==================== SINGLETON STORE ====================

_store: Optional[RecordStore] = None
_store_lock = threading.Lock()


def get_record_store() -> RecordStore:
    """
    Get the process-wide record store (SQL-backed).

    Thread-safe lazy creation using double-checked locking.
    """
    global _store

    if _store is None:
        with _store_lock:
            if _store is None:
                _store = SQLRecordStore()

    return _store


def reset_record_store():
    """Drop the cached store; the next call reconnects."""
    global _store

    with _store_lock:
        _store = None

    logger.info("🔄 Record store reset")


__all__ = [
    'RecordStore',
    'MemoryRecordStore',
    'SQLRecordStore',
    'get_record_store',
    'reset_record_store',
]
