# salescrm/data_management/realtime_sync.py
"""
Real-time data synchronization

RealTimeDataManager re-reads users, sales and attendance from storage and
broadcasts them to registered listeners:
- on construction (initial sync) and then every SYNC_INTERVAL_SECONDS
- when the host view becomes visible again
- when a storage key in our namespace changes elsewhere
- on force_sync()

It is also the write path: update_users / update_sales / update_attendance
persist a collection, notify that category's listeners, append to the sync
log, and trigger a full re-sync. Listeners therefore see the written data
twice (once directly, once from the re-read); they must treat every
notification as a full snapshot.

Timer ticks run on a daemon thread. All broadcasts and writes hold one
re-entrant lock, so a pass always completes before another begins.

Usage:
    manager = get_realtime_manager()
    manager.add_listener('sales', on_sales)
    manager.update_sales(sales, actor_id=current_user['id'])
    ...
    manager.remove_listener('sales', on_sales)
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from ..config import config
from .constants import DATA_TYPES, LISTENER_CATEGORIES, LOG_KEYS, SYNC_TIME
from .storage import CRMStorage, get_storage

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class RealTimeDataManager:
    """Polling broadcaster and single write path for the CRM collections."""

    def __init__(
        self,
        storage: CRMStorage,
        sync_interval: Optional[float] = None,
        log_limit: Optional[int] = None,
        auto_start: bool = True,
    ):
        self.storage = storage
        self.sync_interval = float(
            sync_interval if sync_interval is not None
            else config.get_app_setting("SYNC_INTERVAL_SECONDS", 10)
        )
        self.log_limit = int(
            log_limit if log_limit is not None
            else config.get_app_setting("SYNC_LOG_LIMIT", 100)
        )

        self._listeners: Dict[str, List[Listener]] = {name: [] for name in LISTENER_CATEGORIES}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_sync_time: Optional[str] = None
        self.sync_count = 0

        if auto_start:
            self.start()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return (self._thread is not None and self._thread.is_alive()
                and not self._stop_event.is_set())

    def start(self) -> None:
        """Initial sync, then start the interval timer. No-op if running."""
        if self.is_running:
            return

        # A timer still finishing its last pass must exit before the event is reset
        previous = self._thread
        if previous is not None and previous.is_alive() and previous is not threading.current_thread():
            previous.join()

        self._stop_event.clear()
        self.sync_data(reason='initial')

        self._thread = threading.Thread(
            target=self._run_timer,
            name="crm-realtime-sync",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"⏱️ Real-time sync started (every {self.sync_interval:g}s)")

    def _run_timer(self) -> None:
        while not self._stop_event.wait(self.sync_interval):
            self.sync_data(reason='timer')

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the timer and clear all listeners."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

        with self._lock:
            for callbacks in self._listeners.values():
                callbacks.clear()

        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            logger.warning("Sync timer still finishing its last pass; keeping its handle")
        else:
            self._thread = None

        logger.info("⏹️ Real-time sync stopped")

    destroy = stop

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def add_listener(self, data_type: str, callback: Listener) -> None:
        """Subscribe to a category. Registering the same callback twice is a no-op."""
        if data_type not in self._listeners:
            raise ValueError(
                f"Unknown data type '{data_type}'. Expected one of: {', '.join(LISTENER_CATEGORIES)}"
            )
        with self._lock:
            if callback not in self._listeners[data_type]:
                self._listeners[data_type].append(callback)

    def remove_listener(self, data_type: str, callback: Listener) -> None:
        """Unsubscribe. Unknown categories or callbacks are ignored."""
        with self._lock:
            callbacks = self._listeners.get(data_type)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)

    def listener_count(self, data_type: str) -> int:
        return len(self._listeners.get(data_type, []))

    def _notify_listeners(self, data_type: str, data: Any) -> None:
        """Invoke every callback; one failing callback never stops the others."""
        with self._lock:
            callbacks = list(self._listeners.get(data_type, []))

            for callback in callbacks:
                try:
                    callback(data)
                except Exception as e:
                    logger.error(
                        f"Listener {getattr(callback, '__name__', callback)!s} for '{data_type}' failed: {e}",
                        exc_info=True,
                    )

    # =========================================================================
    # SYNC
    # =========================================================================

    def sync_data(self, reason: str = 'manual') -> bool:
        """
        Re-read all collections and broadcast them.

        Returns:
            True when the pass completed, False when reading storage failed
        """
        with self._lock:
            try:
                users = self.storage.get_users()
                sales = self.storage.get_sales_records()
                attendance = self.storage.get_attendance_records()
            except Exception as e:
                logger.error(f"Error syncing data ({reason}): {e}")
                return False

            self._notify_listeners('users', users)
            self._notify_listeners('sales', sales)
            self._notify_listeners('attendance', attendance)

            self.last_sync_time = datetime.now().isoformat()
            self.sync_count += 1
            self._notify_listeners(SYNC_TIME, self.last_sync_time)

            logger.debug(
                f"Sync pass ({reason}): {len(users)} users, {len(sales)} sales, "
                f"{len(attendance)} attendance"
            )
            return True

    def force_sync(self) -> bool:
        return self.sync_data(reason='force')

    def handle_visibility_change(self, hidden: bool) -> None:
        """Host view shown/hidden. Sync when it comes back to the foreground."""
        if not hidden:
            self.sync_data(reason='visible')

    def handle_storage_event(self, key: Optional[str]) -> None:
        """A storage key changed outside this manager (another session)."""
        if self.storage.is_own_key(key):
            self.sync_data(reason=f'storage:{key}')

    # =========================================================================
    # WRITE PATH
    # =========================================================================

    def update_users(self, users: List[Dict], actor_id: Optional[str] = None) -> None:
        with self._lock:
            self.storage.save_users(users)
            self._after_write('users', users, actor_id)

    def update_sales(self, sales: List[Dict], actor_id: Optional[str] = None) -> None:
        with self._lock:
            self.storage.save_sales_records(sales)
            self._after_write('sales', sales, actor_id)

    def update_attendance(self, attendance: List[Dict], actor_id: Optional[str] = None) -> None:
        with self._lock:
            self.storage.save_attendance_records(attendance)
            self._after_write('attendance', attendance, actor_id)

    def _after_write(self, data_type: str, data: List[Dict], actor_id: Optional[str]) -> None:
        self._notify_listeners(data_type, data)
        self._log_data_change(data_type, len(data), actor_id)
        self.sync_data(reason=f'update:{data_type}')

    def _log_data_change(self, data_type: str, count: int, actor_id: Optional[str]) -> None:
        timestamp = datetime.now().isoformat()
        logger.info(f"Real-time sync: {data_type} updated ({count} records) by {actor_id or 'system'}")

        self.storage.append_log(
            LOG_KEYS['SYNC'],
            {
                'timestamp': timestamp,
                'dataType': data_type,
                'count': count,
                'action': 'update',
                'userId': actor_id,
            },
            limit=self.log_limit,
        )

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def get_sync_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Summary of the sync log (write events)."""
        sync_log = self.storage.get_log(LOG_KEYS['SYNC'])
        now = now or datetime.now()
        cutoff = now - timedelta(hours=24)

        def _recent(entry: Dict) -> bool:
            try:
                return datetime.fromisoformat(entry.get('timestamp', '')) > cutoff
            except (TypeError, ValueError):
                return False

        return {
            'totalSyncs': len(sync_log),
            'last24Hours': sum(1 for entry in sync_log if _recent(entry)),
            'lastSync': sync_log[-1].get('timestamp') if sync_log else None,
            'dataTypes': {
                data_type: sum(1 for entry in sync_log if entry.get('dataType') == data_type)
                for data_type in DATA_TYPES
            },
        }

    def __repr__(self) -> str:
        return (
            f"RealTimeDataManager(interval={self.sync_interval:g}s, "
            f"running={self.is_running}, last_sync={self.last_sync_time!r})"
        )


# ==================== PROCESS HANDLE ====================

_manager: Optional[RealTimeDataManager] = None
_manager_lock = threading.Lock()


def get_realtime_manager() -> RealTimeDataManager:
    """
    Lazily create the process-wide manager over the shared storage.

    The timer starts on first access when ENABLE_REALTIME_SYNC is on.
    """
    global _manager

    if _manager is None:
        with _manager_lock:
            if _manager is None:
                _manager = RealTimeDataManager(
                    get_storage(),
                    auto_start=config.is_feature_enabled("REALTIME_SYNC"),
                )

    return _manager


def reset_realtime_manager() -> None:
    """Stop and drop the process-wide manager."""
    global _manager

    with _manager_lock:
        if _manager is not None:
            _manager.stop()
            _manager = None

    logger.info("🔄 Real-time manager reset")


__all__ = [
    'RealTimeDataManager',
    'get_realtime_manager',
    'reset_realtime_manager',
]
