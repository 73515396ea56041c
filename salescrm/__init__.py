# salescrm/__init__.py
"""
Shared package for the Sales CRM Streamlit app

- auth: Authentication, lockout and session management
- config: Configuration management (local + Streamlit Cloud)
- db: Database engine with pooling
- record_store: Key/value blob store (memory or SQL table)
- data_management: CRM storage, integrity, visibility, sync and reporting

Usage:
    from salescrm import AuthManager, config, get_record_store
    from salescrm.data_management import CRMService, get_storage
"""

# Authentication
from .auth import (
    AuthManager,
    require_login,
    require_roles,
)

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    DB_CONFIG,
    APP_CONFIG,
)

# Database
from .db import (
    get_db_engine,
    check_db_connection,
    reset_db_engine,
    get_transaction,
    execute_query,
    execute_update,
)

# Record store
from .record_store import (
    RecordStore,
    MemoryRecordStore,
    SQLRecordStore,
    get_record_store,
    reset_record_store,
)

__all__ = [
    # Auth
    'AuthManager',
    'require_login',
    'require_roles',

    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'DB_CONFIG',
    'APP_CONFIG',

    # Database
    'get_db_engine',
    'check_db_connection',
    'reset_db_engine',
    'get_transaction',
    'execute_query',
    'execute_update',

    # Record store
    'RecordStore',
    'MemoryRecordStore',
    'SQLRecordStore',
    'get_record_store',
    'reset_record_store',
]

__version__ = '1.0.0'
