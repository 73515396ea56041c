# salescrm/data_management/access_control.py
"""
Role-based Data Visibility for the CRM

Handles what an acting user may read:
- admin: everything, unfiltered
- manager: self + direct reports (users whose `manager` is the actor's id).
  One level only; a manager's manager does not see the grand-reports.
- employee (and any unrecognized role): own records only

The module-level functions are pure filters over full collections.
AccessControl wraps them for pages that ask several questions about the
same actor.
"""

import logging
from typing import Dict, List, Optional, Set

import pandas as pd

from .constants import FULL_ACCESS_ROLES, TEAM_ACCESS_ROLES
from .models import Role, get_role

logger = logging.getLogger(__name__)


def _team_user_ids(actor: Dict, all_users: List[Dict]) -> Set[str]:
    """Ids of the manager's direct reports plus the manager."""
    actor_id = actor.get('id')
    ids = {u.get('id') for u in all_users if u.get('manager') == actor_id}
    ids.add(actor_id)
    return ids


def get_visible_users(actor: Dict, all_users: List[Dict]) -> List[Dict]:
    """Users the actor may see, in collection order."""
    role = get_role(actor)
    actor_id = actor.get('id')

    if role is Role.ADMIN:
        return all_users

    if role is Role.MANAGER:
        return [u for u in all_users if u.get('manager') == actor_id or u.get('id') == actor_id]

    return [u for u in all_users if u.get('id') == actor_id]


def get_visible_sales_records(actor: Dict, all_sales: List[Dict], all_users: List[Dict]) -> List[Dict]:
    """Sales records owned by users the actor may see."""
    role = get_role(actor)

    if role is Role.ADMIN:
        return all_sales

    if role is Role.MANAGER:
        team_ids = _team_user_ids(actor, all_users)
        return [s for s in all_sales if s.get('userId') in team_ids]

    return [s for s in all_sales if s.get('userId') == actor.get('id')]


def get_visible_attendance_records(
    actor: Dict,
    all_attendance: List[Dict],
    all_users: List[Dict]
) -> List[Dict]:
    """Attendance records owned by users the actor may see."""
    role = get_role(actor)

    if role is Role.ADMIN:
        return all_attendance

    if role is Role.MANAGER:
        team_ids = _team_user_ids(actor, all_users)
        return [a for a in all_attendance if a.get('userId') in team_ids]

    return [a for a in all_attendance if a.get('userId') == actor.get('id')]


def can_view_user_data(actor: Dict, target_user_id: str, all_users: List[Dict]) -> bool:
    """Mirror of the visibility rule for a single target user."""
    role = get_role(actor)

    if role is Role.ADMIN:
        return True

    if actor.get('id') == target_user_id:
        return True

    if role is Role.MANAGER:
        target = next((u for u in all_users if u.get('id') == target_user_id), None)
        return target is not None and target.get('manager') == actor.get('id')

    return False


def get_team_hierarchy(manager_id: str, all_users: List[Dict]) -> Optional[Dict]:
    """
    The manager record and their direct reports.

    Returns:
        {'manager': user, 'teamMembers': [users]} or None when manager_id
        does not resolve to a user with role manager
    """
    manager = next((u for u in all_users if u.get('id') == manager_id), None)
    if manager is None or get_role(manager) is not Role.MANAGER:
        return None

    return {
        'manager': manager,
        'teamMembers': [u for u in all_users if u.get('manager') == manager_id],
    }


def get_reporting_structure(all_users: List[Dict]) -> Dict[str, List[Dict]]:
    """Every manager id mapped to its direct reports (possibly empty)."""
    return {
        manager.get('id'): [u for u in all_users if u.get('manager') == manager.get('id')]
        for manager in all_users
        if get_role(manager) is Role.MANAGER
    }


class AccessControl:
    """
    Visibility for one acting user.

    Usage:
        access = AccessControl(actor=current_user, all_users=users)

        level = access.get_access_level()  # 'full', 'team', or 'self'
        ids = access.get_accessible_user_ids()
        filtered_df = access.filter_dataframe(sales_df, 'userId')
    """

    def __init__(self, actor: Dict, all_users: List[Dict]):
        self.actor = actor or {}
        self.all_users = all_users
        self.role = get_role(self.actor)
        self._accessible_ids: Optional[List[str]] = None

        logger.debug(f"AccessControl initialized: role={self.role.value}, user_id={self.actor.get('id')}")

    # =========================================================================
    # ACCESS LEVEL DETERMINATION
    # =========================================================================

    def get_access_level(self) -> str:
        """
        Returns:
            'full' - all users
            'team' - self + direct reports
            'self' - own data only
        """
        if self.role.value in FULL_ACCESS_ROLES:
            return 'full'
        if self.role.value in TEAM_ACCESS_ROLES:
            return 'team'
        return 'self'

    def can_view_all(self) -> bool:
        return self.get_access_level() == 'full'

    def can_manage_users(self) -> bool:
        """Add / edit / delete employees and run data repair."""
        return self.role is Role.ADMIN

    def can_mark_attendance(self) -> bool:
        """Mark attendance for someone else."""
        return self.role in (Role.ADMIN, Role.MANAGER)

    # =========================================================================
    # ACCESSIBLE USERS
    # =========================================================================

    def get_visible_users(self) -> List[Dict]:
        return get_visible_users(self.actor, self.all_users)

    def get_accessible_user_ids(self) -> List[str]:
        """Ids of visible users. Cached after first call."""
        if self._accessible_ids is None:
            self._accessible_ids = [u.get('id') for u in self.get_visible_users()]
            logger.debug(
                f"Accessible user IDs ({self.get_access_level()}): {len(self._accessible_ids)} users"
            )
        return self._accessible_ids

    def can_view(self, target_user_id: str) -> bool:
        return can_view_user_data(self.actor, target_user_id, self.all_users)

    # =========================================================================
    # DATA FILTERING
    # =========================================================================

    def filter_sales(self, all_sales: List[Dict]) -> List[Dict]:
        return get_visible_sales_records(self.actor, all_sales, self.all_users)

    def filter_attendance(self, all_attendance: List[Dict]) -> List[Dict]:
        return get_visible_attendance_records(self.actor, all_attendance, self.all_users)

    def filter_dataframe(self, df: pd.DataFrame, user_id_col: str = 'userId') -> pd.DataFrame:
        """
        Filter a DataFrame of records to the rows the actor may see.

        Args:
            df: DataFrame to filter
            user_id_col: column holding the owning user's id

        Returns:
            Filtered DataFrame (same object for full access)
        """
        if df.empty or self.can_view_all():
            return df

        if user_id_col not in df.columns:
            logger.warning(f"Column '{user_id_col}' not found in DataFrame")
            return df.head(0)

        if self.get_access_level() == 'team':
            allowed = _team_user_ids(self.actor, self.all_users)
        else:
            allowed = {self.actor.get('id')}

        filtered = df[df[user_id_col].isin(allowed)]
        logger.debug(f"Filtered DataFrame: {len(df)} -> {len(filtered)} rows")
        return filtered

    def validate_selected_users(self, selected_ids: List[str]) -> List[str]:
        """Drop selected ids the actor is not allowed to see."""
        valid_ids = [uid for uid in selected_ids if self.can_view(uid)]

        if len(valid_ids) < len(selected_ids):
            logger.warning(
                f"Some selected users were filtered out: "
                f"selected={len(selected_ids)}, valid={len(valid_ids)}"
            )

        return valid_ids

    def __repr__(self) -> str:
        return (
            f"AccessControl(role='{self.role.value}', "
            f"user_id={self.actor.get('id')!r}, "
            f"level='{self.get_access_level()}')"
        )


__all__ = [
    'AccessControl',
    'get_visible_users',
    'get_visible_sales_records',
    'get_visible_attendance_records',
    'can_view_user_data',
    'get_team_hierarchy',
    'get_reporting_structure',
]
