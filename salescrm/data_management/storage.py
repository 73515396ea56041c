# salescrm/data_management/storage.py
"""
CRM Storage - typed collections over the record store

Every collection is one JSON document under a prefixed key. Reads never
raise on bad stored data: a missing or malformed value falls back to the
documented default (seed users, default products, empty lists).

Usage:
    storage = CRMStorage(get_record_store())
    users = storage.get_users()
    storage.save_sales_records(sales)
    storage.append_log('sync_log', {...}, limit=100)
"""

import copy
import json
import logging
import threading
from typing import Any, Dict, List, Optional

from ..config import config
from ..record_store import RecordStore, get_record_store
from .constants import STORAGE_KEYS, LOG_KEYS, DEFAULT_USERS, DEFAULT_PRODUCTS

logger = logging.getLogger(__name__)


class CRMStorage:
    """JSON collection access with a key namespace."""

    def __init__(self, store: RecordStore, prefix: Optional[str] = None):
        self.store = store
        self.prefix = prefix if prefix is not None else config.get_app_setting("STORAGE_KEY_PREFIX", "crm_")

    # =========================================================================
    # KEYS
    # =========================================================================

    def key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def is_own_key(self, key: Optional[str]) -> bool:
        """Whether a storage key belongs to this namespace."""
        return bool(key) and key.startswith(self.prefix)

    # =========================================================================
    # RAW JSON ACCESS
    # =========================================================================

    def _read_json(self, name: str, default: Any) -> Any:
        """
        Read and decode a document, falling back to a copy of default when the
        key is absent, undecodable, or of the wrong container type.
        """
        raw = self.store.read(self.key(name))
        if raw is None:
            return copy.deepcopy(default)

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed JSON under '{self.key(name)}', using default: {e}")
            return copy.deepcopy(default)

        if default is not None and not isinstance(value, type(default)):
            logger.error(
                f"Unexpected {type(value).__name__} under '{self.key(name)}', "
                f"expected {type(default).__name__}; using default"
            )
            return copy.deepcopy(default)

        return value

    def _write_json(self, name: str, value: Any) -> None:
        self.store.write(self.key(name), json.dumps(value, default=str))

    def has(self, name: str) -> bool:
        return self.store.read(self.key(name)) is not None

    # =========================================================================
    # USERS
    # =========================================================================

    def get_users(self) -> List[Dict]:
        return self._read_json(STORAGE_KEYS['USERS'], DEFAULT_USERS)

    def save_users(self, users: List[Dict]) -> None:
        self._write_json(STORAGE_KEYS['USERS'], users)

    def get_current_user(self) -> Optional[Dict]:
        user = self._read_json(STORAGE_KEYS['CURRENT_USER'], None)
        return user if isinstance(user, dict) else None

    def set_current_user(self, user: Optional[Dict]) -> None:
        if user:
            self._write_json(STORAGE_KEYS['CURRENT_USER'], user)
        else:
            self.store.remove(self.key(STORAGE_KEYS['CURRENT_USER']))

    # =========================================================================
    # ATTENDANCE / SALES / TARGETS / PRODUCTS
    # =========================================================================

    def get_attendance_records(self) -> List[Dict]:
        return self._read_json(STORAGE_KEYS['ATTENDANCE'], [])

    def save_attendance_records(self, records: List[Dict]) -> None:
        self._write_json(STORAGE_KEYS['ATTENDANCE'], records)

    def get_sales_records(self) -> List[Dict]:
        return self._read_json(STORAGE_KEYS['SALES'], [])

    def save_sales_records(self, records: List[Dict]) -> None:
        self._write_json(STORAGE_KEYS['SALES'], records)

    def get_sales_targets(self) -> List[Dict]:
        return self._read_json(STORAGE_KEYS['TARGETS'], [])

    def save_sales_targets(self, targets: List[Dict]) -> None:
        self._write_json(STORAGE_KEYS['TARGETS'], targets)

    def get_products(self) -> List[Dict]:
        return self._read_json(STORAGE_KEYS['PRODUCTS'], DEFAULT_PRODUCTS)

    def save_products(self, products: List[Dict]) -> None:
        self._write_json(STORAGE_KEYS['PRODUCTS'], products)

    # =========================================================================
    # LOCKOUT DATA
    # =========================================================================

    def get_lockout_data(self) -> Dict[str, Dict]:
        return self._read_json(STORAGE_KEYS['LOCKOUT_DATA'], {})

    def save_lockout_data(self, lockouts: Dict[str, Dict]) -> None:
        self._write_json(STORAGE_KEYS['LOCKOUT_DATA'], lockouts)

    # =========================================================================
    # AUDIT LOGS
    # =========================================================================

    def get_log(self, log_name: str) -> List[Dict]:
        return self._read_json(log_name, [])

    def append_log(self, log_name: str, entry: Dict, limit: Optional[int] = None) -> List[Dict]:
        """
        Append an entry to an append-only log.

        Args:
            log_name: one of LOG_KEYS values
            entry: JSON-serializable dict, normally carrying 'timestamp'
            limit: keep only the most recent `limit` entries

        Returns:
            The log as written
        """
        if log_name not in LOG_KEYS.values():
            logger.warning(f"Appending to unregistered log: {log_name}")

        log = self.get_log(log_name)
        log.append(entry)
        if limit is not None and len(log) > limit:
            log = log[len(log) - limit:]
        self._write_json(log_name, log)
        return log

    # =========================================================================
    # BOOTSTRAP
    # =========================================================================

    def initialize_default_data(self) -> None:
        """Materialize seed users and products on first run."""
        if not self.has(STORAGE_KEYS['USERS']):
            self.save_users(copy.deepcopy(DEFAULT_USERS))
            logger.info(f"🌱 Seeded {len(DEFAULT_USERS)} default users")
        if not self.has(STORAGE_KEYS['PRODUCTS']):
            self.save_products(copy.deepcopy(DEFAULT_PRODUCTS))
            logger.info(f"🌱 Seeded {len(DEFAULT_PRODUCTS)} default products")

    def __repr__(self) -> str:
        return f"CRMStorage(prefix='{self.prefix}', store={self.store!r})"


# ==================== SINGLETON STORAGE ====================

_storage: Optional[CRMStorage] = None
_storage_lock = threading.Lock()


def get_storage() -> CRMStorage:
    """Process-wide storage over the shared record store."""
    global _storage

    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = CRMStorage(get_record_store())
                _storage.initialize_default_data()

    return _storage


__all__ = ['CRMStorage', 'get_storage']
