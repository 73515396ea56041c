# salescrm/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Environment detection
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///crm_data.db"


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class DatabaseConfig:
    """Database configuration container"""
    url: str = DEFAULT_DB_URL
    pool_size: int = 5
    pool_recycle: int = 3600

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def masked_url(self) -> str:
        """URL safe for logging (password hidden)"""
        if "@" not in self.url or "://" not in self.url:
            return self.url
        scheme, rest = self.url.split("://", 1)
        credentials, location = rest.rsplit("@", 1)
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{location}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'pool_size': self.pool_size,
            'pool_recycle': self.pool_recycle,
        }


class Config:
    """
    Centralized configuration management

    Usage:
        from salescrm.config import config

        # Get database config
        db_config = config.get_db_config()

        # Get app settings
        interval = config.get_app_setting("SYNC_INTERVAL_SECONDS", 10)

        # Check feature flags
        if config.is_feature_enabled("REALTIME_SYNC"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        db_secrets = st.secrets.get("DB", {})
        self._db_config = DatabaseConfig(
            url=db_secrets.get("URL", DEFAULT_DB_URL),
            pool_size=int(db_secrets.get("POOL_SIZE", 5)),
            pool_recycle=int(db_secrets.get("POOL_RECYCLE", 3600)),
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._db_config = DatabaseConfig(
            url=os.getenv("DB_URL", DEFAULT_DB_URL),
            pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "3600")),
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Session
            "SESSION_TIMEOUT_HOURS": int(os.getenv("SESSION_TIMEOUT_HOURS", "8")),

            # Record store namespace
            "STORAGE_KEY_PREFIX": os.getenv("STORAGE_KEY_PREFIX", "crm_"),

            # Real-time sync
            "SYNC_INTERVAL_SECONDS": float(os.getenv("SYNC_INTERVAL_SECONDS", "10")),
            "SYNC_LOG_LIMIT": int(os.getenv("SYNC_LOG_LIMIT", "100")),

            # Login lockout
            "MAX_FAILED_LOGINS": int(os.getenv("MAX_FAILED_LOGINS", "5")),
            "LOCKOUT_MINUTES": int(os.getenv("LOCKOUT_MINUTES", "30")),

            # Cache
            "CACHE_TTL_SECONDS": int(os.getenv("CACHE_TTL_SECONDS", "60")),

            # Localization
            "TIMEZONE": os.getenv("TIMEZONE", "Asia/Kolkata"),

            # Feature flags
            "ENABLE_REALTIME_SYNC": _env_bool("ENABLE_REALTIME_SYNC", "true"),
            "ENABLE_DEBUG_MODE": _env_bool("ENABLE_DEBUG_MODE", "false"),
        }

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(f"✅ Database: {self._db_config.masked_url()}")
        logger.info(f"✅ Sync interval: {self._app_config['SYNC_INTERVAL_SECONDS']}s")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration as dictionary"""
        return self._db_config.to_dict()

    def get_database(self) -> DatabaseConfig:
        return self._db_config

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def db_config(self) -> Dict[str, Any]:
        return self.get_db_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
DB_CONFIG = config.db_config
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
    'IS_RUNNING_ON_CLOUD',
    'DB_CONFIG',
    'APP_CONFIG',
]
