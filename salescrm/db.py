# salescrm/db.py
"""
Database Connection Management

Version: 1.0.0
Features:
- Singleton pattern with thread-safe double-checked locking
- Connection pooling (server databases) or a shared SQLite file
- Health check utilities
- Query execution helpers
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.exc import OperationalError
import logging
import threading
from typing import Tuple, Optional, Dict, Any, List
from contextlib import contextmanager

from .config import config

logger = logging.getLogger(__name__)

# ==================== SINGLETON ENGINE ====================

_engine = None
_engine_lock = threading.Lock()


def get_db_engine() -> Engine:
    """
    Get SQLAlchemy database engine (singleton pattern)

    Thread-safe implementation using double-checked locking.
    Reuses the same engine across all calls so every page and the
    sync thread share one pool.

    Returns:
        SQLAlchemy Engine instance
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()

    return _engine


def _create_engine() -> Engine:
    """Create new database engine with configured settings"""
    db = config.get_database()

    logger.info(f"🔌 Creating database engine: {db.masked_url()}")

    if db.is_sqlite:
        # The sync thread and Streamlit script threads share connections
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if db.url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(db.url, echo=False, **kwargs)
    else:
        engine = create_engine(
            db.url,
            poolclass=QueuePool,
            pool_size=db.pool_size,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=True,  # Auto-reconnect on stale connections
            echo=False
        )

    logger.info(f"✅ Database engine created ({engine.dialect.name})")

    return engine


# ==================== CONNECTION MANAGEMENT ====================

def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    try:
        engine = get_db_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except OperationalError as e:
        error_msg = "Cannot open the data store. Please check DB_URL."
        logger.error(f"❌ Database connection failed: {e}")
        return False, error_msg
    except Exception as e:
        error_msg = f"Database error: {str(e)}"
        logger.error(f"❌ Database error: {e}")
        return False, error_msg


def reset_db_engine():
    """
    Reset the database engine (force new connection)
    """
    global _engine

    with _engine_lock:
        if _engine is not None:
            try:
                _engine.dispose()
                logger.info("🔄 Database engine disposed")
            except Exception as e:
                logger.error(f"Error disposing engine: {e}")
            _engine = None

    logger.info("🔄 Database engine reset - will reconnect on next query")


# ==================== CONTEXT MANAGERS ====================

@contextmanager
def get_transaction(engine: Optional[Engine] = None):
    """
    Context manager for database transactions

    Usage:
        with get_transaction() as conn:
            conn.execute(text("DELETE ..."))
            conn.execute(text("INSERT ..."))
            # Auto-commit on success, auto-rollback on exception
    """
    engine = engine or get_db_engine()
    conn = engine.connect()
    trans = conn.begin()
    try:
        yield conn
        trans.commit()
    except Exception:
        trans.rollback()
        raise
    finally:
        conn.close()


# ==================== QUERY HELPERS ====================

def execute_query(query: str, params: Dict = None, engine: Optional[Engine] = None) -> List[Dict]:
    """
    Execute SELECT query and return results as list of dicts

    Args:
        query: SQL query string
        params: Query parameters
        engine: Engine override (defaults to the shared engine)

    Returns:
        List of dictionaries
    """
    engine = engine or get_db_engine()

    with engine.connect() as conn:
        result = conn.execute(text(query), params or {})
        return [dict(row._mapping) for row in result]


def execute_update(query: str, params: Dict = None, engine: Optional[Engine] = None) -> int:
    """
    Execute INSERT/UPDATE/DELETE/DDL statement

    Returns:
        Number of affected rows
    """
    engine = engine or get_db_engine()

    with engine.connect() as conn:
        result = conn.execute(text(query), params or {})
        conn.commit()
        return result.rowcount


# ==================== EXPORTS ====================

__all__ = [
    'get_db_engine',
    'check_db_connection',
    'reset_db_engine',
    'get_transaction',
    'execute_query',
    'execute_update',
]
