# salescrm/data_management/metrics.py
"""
KPI Calculations for the CRM dashboard

Handles:
- Dashboard headline stats (employees, attendance today, sales)
- Team performance vs target
- Monthly sales series
- Per-user attendance summary for a month

All inputs are the (already visibility-filtered) collections as lists of
dicts; all outputs are plain dicts or DataFrames ready for st.dataframe
and the charts module.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .date_utils import calculate_hours
from .models import Role, get_role, get_user_target, is_user_active

logger = logging.getLogger(__name__)

SALES_COLUMNS = ['id', 'userId', 'date', 'totalAmount']
ATTENDANCE_COLUMNS = ['id', 'userId', 'date', 'status', 'checkIn', 'checkOut']


def _frame(records: List[Dict], columns: List[str]) -> pd.DataFrame:
    """DataFrame that always carries the expected columns, even when empty."""
    df = pd.DataFrame(records)
    for col in columns:
        if col not in df.columns:
            df[col] = np.nan
    return df


class CRMMetrics:
    """
    Metric calculations over users, sales and attendance.

    Usage:
        metrics = CRMMetrics(users, sales, attendance)

        stats = metrics.get_dashboard_stats()
        team_df = metrics.get_team_performance('2024-05')
        monthly_df = metrics.get_monthly_sales(months=6)
    """

    def __init__(self, users: List[Dict], sales: List[Dict], attendance: List[Dict]):
        self.users = users
        self.sales_df = self._prepare_sales(sales)
        self.attendance_df = _frame(attendance, ATTENDANCE_COLUMNS)

    @staticmethod
    def _prepare_sales(sales: List[Dict]) -> pd.DataFrame:
        df = _frame(sales, SALES_COLUMNS)
        df['totalAmount'] = pd.to_numeric(df['totalAmount'], errors='coerce').fillna(0.0)
        df['sale_date'] = pd.to_datetime(df['date'], errors='coerce')
        df['month'] = df['sale_date'].dt.strftime('%Y-%m')
        return df

    def _sales_in_month(self, month: str) -> pd.DataFrame:
        return self.sales_df[self.sales_df['month'] == month]

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def get_dashboard_stats(self, today: Optional[date] = None) -> Dict:
        """
        Headline numbers for the dashboard cards.

        Returns:
            Dict with totalEmployees, activeEmployees, presentToday,
            lateToday, absentToday, salesToday, salesThisMonth,
            totalRevenue, topPerformer, averageAchievement
        """
        today = today or date.today()
        today_str = today.strftime('%Y-%m-%d')
        month = today.strftime('%Y-%m')

        employees = [u for u in self.users if get_role(u) is not Role.ADMIN]
        active_ids = {u.get('id') for u in employees if is_user_active(u)}

        today_att = self.attendance_df[self.attendance_df['date'] == today_str]
        status_counts = today_att['status'].value_counts()
        present = int(status_counts.get('present', 0))
        late = int(status_counts.get('late', 0))
        marked_absent = int(status_counts.get('absent', 0))
        unmarked = len(active_ids - set(today_att['userId']))

        month_sales = self._sales_in_month(month)
        sales_today = self.sales_df[self.sales_df['date'] == today_str]['totalAmount'].sum()

        team_df = self.get_team_performance(month)
        top_performer = None
        if not team_df.empty and team_df['sales'].max() > 0:
            top = team_df.loc[team_df['sales'].idxmax()]
            top_performer = {'userId': top['userId'], 'name': top['name'], 'sales': float(top['sales'])}

        with_target = team_df[team_df['target'] > 0] if not team_df.empty else team_df
        average_achievement = float(with_target['achievement'].mean()) if not with_target.empty else 0.0

        return {
            'totalEmployees': len(employees),
            'activeEmployees': len(active_ids),
            'presentToday': present,
            'lateToday': late,
            'absentToday': marked_absent + unmarked,
            'salesToday': float(sales_today),
            'salesThisMonth': float(month_sales['totalAmount'].sum()),
            'totalRevenue': float(self.sales_df['totalAmount'].sum()),
            'topPerformer': top_performer,
            'averageAchievement': round(average_achievement, 1),
        }

    # =========================================================================
    # TEAM PERFORMANCE
    # =========================================================================

    def get_team_performance(self, month: Optional[str] = None) -> pd.DataFrame:
        """
        Sales vs target per non-admin user.

        Args:
            month: 'YYYY-MM' to restrict sales; None for all time

        Returns:
            DataFrame[userId, name, role, sales, deals, target, achievement]
            sorted by sales descending
        """
        columns = ['userId', 'name', 'role', 'sales', 'deals', 'target', 'achievement']
        people = [u for u in self.users if get_role(u) is not Role.ADMIN]
        if not people:
            return pd.DataFrame(columns=columns)

        sales = self.sales_df if month is None else self._sales_in_month(month)
        by_user = sales.groupby('userId')['totalAmount'].agg(['sum', 'count'])

        df = pd.DataFrame({
            'userId': [u.get('id') for u in people],
            'name': [u.get('name', '') for u in people],
            'role': [get_role(u).value for u in people],
            'target': [get_user_target(u) for u in people],
        })
        df['sales'] = df['userId'].map(by_user['sum']).fillna(0.0)
        df['deals'] = df['userId'].map(by_user['count']).fillna(0).astype(int)
        df['achievement'] = np.where(
            df['target'] > 0,
            (df['sales'] / df['target'].replace(0, np.nan) * 100).fillna(0).round(1),
            0.0,
        )

        return df[columns].sort_values('sales', ascending=False).reset_index(drop=True)

    # =========================================================================
    # MONTHLY SALES
    # =========================================================================

    def get_monthly_sales(self, months: int = 6, as_of: Optional[date] = None) -> pd.DataFrame:
        """
        Sales total and deal count for the last `months` months, zero-filled.

        Returns:
            DataFrame[month, totalAmount, deals] oldest first
        """
        as_of = as_of or date.today()
        periods = pd.period_range(end=pd.Period(as_of.strftime('%Y-%m'), freq='M'), periods=months, freq='M')
        month_labels = [p.strftime('%Y-%m') for p in periods]

        grouped = self.sales_df.groupby('month')['totalAmount'].agg(['sum', 'count'])
        df = pd.DataFrame({'month': month_labels})
        df['totalAmount'] = df['month'].map(grouped['sum']).fillna(0.0)
        df['deals'] = df['month'].map(grouped['count']).fillna(0).astype(int)
        return df

    # =========================================================================
    # ATTENDANCE
    # =========================================================================

    def get_attendance_summary(self, month: str) -> pd.DataFrame:
        """
        Per-user attendance counts for a 'YYYY-MM' month.

        Returns:
            DataFrame[userId, name, present, late, absent, totalHours,
            attendanceRate]; rate = (present + late) / marked days * 100
        """
        columns = ['userId', 'name', 'present', 'late', 'absent', 'totalHours', 'attendanceRate']
        people = [u for u in self.users if get_role(u) is not Role.ADMIN]
        if not people:
            return pd.DataFrame(columns=columns)

        att = self.attendance_df[self.attendance_df['date'].astype(str).str.startswith(month)].copy()
        att['hours'] = pd.to_numeric(pd.Series([
            calculate_hours(ci, co) if isinstance(ci, str) and isinstance(co, str) else None
            for ci, co in zip(att['checkIn'], att['checkOut'])
        ], index=att.index, dtype=object), errors='coerce')
        counts = pd.crosstab(att['userId'], att['status']) if not att.empty else pd.DataFrame()
        hours = att.groupby('userId')['hours'].sum(min_count=1) if not att.empty else pd.Series(dtype=float)

        df = pd.DataFrame({
            'userId': [u.get('id') for u in people],
            'name': [u.get('name', '') for u in people],
        })
        for status in ['present', 'late', 'absent']:
            source = counts[status] if status in counts.columns else pd.Series(dtype=int)
            df[status] = df['userId'].map(source).fillna(0).astype(int)

        df['totalHours'] = df['userId'].map(hours).fillna(0.0).astype(float).round(1)
        marked = df['present'] + df['late'] + df['absent']
        df['attendanceRate'] = np.where(
            marked > 0,
            ((df['present'] + df['late']) / marked.replace(0, np.nan) * 100).fillna(0).round(1),
            0.0,
        )
        return df[columns]


__all__ = ['CRMMetrics']
