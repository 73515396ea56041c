# salescrm/auth.py
"""
Authentication Manager for the CRM

Features:
- Employee id + password login (case-insensitive id, active users only)
- Account lockout after repeated failures
- Password change with strength rules
- Session management with timeout; the actor is resolved per Streamlit
  session from session_state, never from shared storage
- Role-based page guards
"""

import streamlit as st
from datetime import datetime, timedelta
from typing import Dict, List, MutableMapping, Optional, Tuple
from functools import wraps
import logging

from .config import config
from .data_management.models import get_role, is_user_active
from .data_management.storage import CRMStorage, get_storage
from .data_management.validation import check_password_strength

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid employee ID or password"


class AuthManager:
    """
    Authentication manager for Streamlit pages.

    Usage:
        auth = AuthManager()
        ok, result = auth.authenticate(employee_id, password)
        if ok:
            auth.login(result)
    """

    def __init__(self, storage: Optional[CRMStorage] = None, service=None,
                 session: Optional[MutableMapping] = None):
        self.storage = storage or get_storage()
        self._service = service
        # Per-browser session; st.session_state unless a mapping is injected
        self.session = session if session is not None else st.session_state
        self.session_timeout = timedelta(
            hours=float(config.get_app_setting("SESSION_TIMEOUT_HOURS", 8))
        )
        self.max_failed_logins = int(config.get_app_setting("MAX_FAILED_LOGINS", 5))
        self.lockout_minutes = int(config.get_app_setting("LOCKOUT_MINUTES", 30))

    @property
    def service(self):
        """CRMService used for login bookkeeping; built on first use."""
        if self._service is None:
            from .data_management.realtime_sync import get_realtime_manager
            from .data_management.services import CRMService
            self._service = CRMService(self.storage, get_realtime_manager())
        return self._service

    # ==================== AUTHENTICATION ====================

    def authenticate(self, employee_id: str, password: str) -> Tuple[bool, Dict]:
        """
        Authenticate by employee id.

        Args:
            employee_id: Employee id, any case
            password: Plain text password

        Returns:
            Tuple of (success, user dict or {"error": message})
        """
        if not employee_id or not password:
            return False, {"error": "Please enter both employee ID and password"}

        lockout_key = employee_id.strip().upper()

        try:
            if self.is_account_locked(lockout_key):
                logger.warning(f"🔒 Login attempt for locked account: {lockout_key}")
                return False, {
                    "error": f"Account locked after too many failed attempts. "
                             f"Try again in {self.lockout_minutes} minutes."
                }

            users = self.storage.get_users()
            user = next(
                (u for u in users
                 if str(u.get('employeeId', '')).lower() == lockout_key.lower()
                 and is_user_active(u)),
                None,
            )

            if user is None or user.get('password') != password:
                logger.warning(f"Failed login for employee id: {lockout_key}")
                self.record_failed_attempt(lockout_key)
                return False, {"error": INVALID_CREDENTIALS}

            self.clear_failed_attempts(lockout_key)
            user = self.service.record_login(user)

            logger.info(f"✅ {user.get('name')} ({user.get('employeeId')}) authenticated")
            return True, user

        except Exception as e:
            logger.error(f"Authentication error: {e}", exc_info=True)
            return False, {"error": "Authentication failed. Please try again."}

    # ==================== LOCKOUT ====================

    def is_account_locked(self, employee_id: str, now: Optional[datetime] = None) -> bool:
        """True while lockedUntil is in the future. Expired lockouts are removed."""
        now = now or datetime.now()
        lockouts = self.storage.get_lockout_data()
        entry = lockouts.get(employee_id)
        if not entry or not entry.get('lockedUntil'):
            return False

        try:
            locked_until = datetime.fromisoformat(entry['lockedUntil'])
        except (TypeError, ValueError):
            locked_until = None

        if locked_until is None or now > locked_until:
            del lockouts[employee_id]
            self.storage.save_lockout_data(lockouts)
            return False

        return True

    def record_failed_attempt(self, employee_id: str, now: Optional[datetime] = None) -> Dict:
        now = now or datetime.now()
        lockouts = self.storage.get_lockout_data()
        entry = lockouts.setdefault(employee_id, {'attempts': 0, 'firstAttempt': now.isoformat()})

        entry['attempts'] = int(entry.get('attempts', 0)) + 1
        entry['lastAttempt'] = now.isoformat()
        if entry['attempts'] >= self.max_failed_logins:
            entry['lockedUntil'] = (now + timedelta(minutes=self.lockout_minutes)).isoformat()
            logger.warning(f"🔒 {employee_id} locked for {self.lockout_minutes} minutes")

        self.storage.save_lockout_data(lockouts)
        return entry

    def clear_failed_attempts(self, employee_id: str) -> None:
        lockouts = self.storage.get_lockout_data()
        if employee_id in lockouts:
            del lockouts[employee_id]
            self.storage.save_lockout_data(lockouts)

    # ==================== PASSWORD ====================

    def change_password(self, user_id: str, current_password: str, new_password: str) -> Tuple[bool, List[str]]:
        """
        Change a user's own password.

        Returns:
            Tuple of (success, errors)
        """
        users = self.storage.get_users()
        user = next((u for u in users if u.get('id') == user_id), None)
        if user is None:
            return False, ["User not found"]

        if user.get('password') != current_password:
            return False, ["Current password is incorrect"]

        ok, errors = check_password_strength(new_password)
        if not ok:
            return False, errors

        if new_password == current_password:
            return False, ["New password must be different from the current password"]

        user['password'] = new_password
        self.service.manager.update_users(users, actor_id=user_id)

        logger.info(f"🔑 Password changed for {user.get('employeeId')}")
        return True, []

    # ==================== SESSION USER ====================

    def _find_active_user(self, user_id: Optional[str]) -> Optional[Dict]:
        if not user_id:
            return None
        user = next((u for u in self.storage.get_users() if u.get('id') == user_id), None)
        return user if user is not None and is_user_active(user) else None

    def is_session_valid(self) -> bool:
        """This session's user still exists and is active."""
        return self.get_current_user() is not None

    def refresh_user_session(self, user_id: str) -> Optional[Dict]:
        """
        Reload a user record for this session.

        Updates the cached name and role in the session; returns None when
        the user is gone or inactive.
        """
        user = self._find_active_user(user_id)
        if user is not None and self.session.get('user_id') == user_id:
            self.session['user_role'] = get_role(user).value
            self.session['user_fullname'] = user.get('name')
        return user

    # ==================== STREAMLIT SESSION ====================

    def check_session(self) -> bool:
        """Session is authenticated, not expired, and the user is still active."""
        if not self.session.get('authenticated'):
            return False

        login_time = self.session.get('login_time')
        if login_time and datetime.now() - login_time > self.session_timeout:
            logger.info(f"Session expired for: {self.session.get('employee_id')}")
            self.logout()
            return False

        if self.refresh_user_session(self.session.get('user_id')) is None:
            logger.info(f"Session user no longer active: {self.session.get('employee_id')}")
            self.logout()
            return False

        return True

    def login(self, user: Dict):
        """Initialize session after successful authentication"""
        self.session['authenticated'] = True
        self.session['user_id'] = user['id']
        self.session['employee_id'] = user.get('employeeId')
        self.session['user_role'] = get_role(user).value
        self.session['user_fullname'] = user.get('name')
        self.session['login_time'] = datetime.now()
        self.session['debug_mode'] = config.is_feature_enabled("DEBUG_MODE")

        logger.info(f"User {user.get('employeeId')} logged in")

    def logout(self):
        """Clear this session's state and cache"""
        employee_id = self.session.get('employee_id', 'Unknown')

        for key in ['authenticated', 'user_id', 'employee_id', 'user_role',
                    'user_fullname', 'login_time', 'debug_mode']:
            if key in self.session:
                del self.session[key]

        st.cache_data.clear()

        logger.info(f"User {employee_id} logged out")

    # ==================== ACCESS CONTROL ====================

    def require_auth(self) -> bool:
        """Call at the top of every protected page."""
        if not self.check_session():
            st.warning("⚠️ Please login to access this page")
            st.stop()
            return False
        return True

    def require_role(self, allowed_roles: List[str]) -> bool:
        """
        Usage:
            auth.require_role(['admin', 'manager'])
        """
        if not self.require_auth():
            return False

        if self.session.get('user_role', '') not in allowed_roles:
            st.error(f"🚫 Access denied. Required role: {', '.join(allowed_roles)}")
            st.stop()
            return False

        return True

    def has_role(self, role: str) -> bool:
        return self.session.get('user_role', '') == role

    def is_admin(self) -> bool:
        return self.has_role('admin')

    # ==================== USER INFO HELPERS ====================

    def get_user_display_name(self) -> str:
        return self.session.get('user_fullname') or self.session.get('employee_id', 'User')

    def get_current_user(self) -> Optional[Dict]:
        """Full, current record of this session's user; None when logged out."""
        return self._find_active_user(self.session.get('user_id'))


# ==================== DECORATORS ====================

def require_login(func):
    """Decorator to require login for a function"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if AuthManager().require_auth():
            return func(*args, **kwargs)
    return wrapper


def require_roles(*roles):
    """Decorator to require specific roles"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if AuthManager().require_role(list(roles)):
                return func(*args, **kwargs)
        return wrapper
    return decorator


__all__ = [
    'AuthManager',
    'require_login',
    'require_roles',
]
