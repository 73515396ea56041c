# salescrm/data_management/charts.py
"""
Altair chart builders for the CRM dashboard.

Every builder takes a DataFrame produced by CRMMetrics and returns an
alt.Chart; rendering (st.altair_chart) is left to the page.
"""

import logging

import altair as alt
import pandas as pd

from .constants import COLORS, CHART_WIDTH, CHART_HEIGHT

logger = logging.getLogger(__name__)


class CRMCharts:
    """
    Usage:
        monthly_df = metrics.get_monthly_sales()
        st.altair_chart(CRMCharts.build_monthly_sales_chart(monthly_df), use_container_width=True)
    """

    @staticmethod
    def _empty_chart(message: str) -> alt.Chart:
        return alt.Chart(pd.DataFrame({'text': [message]})).mark_text(
            size=14, color='#888'
        ).encode(text='text:N').properties(width=CHART_WIDTH, height=80)

    @staticmethod
    def build_monthly_sales_chart(monthly_df: pd.DataFrame) -> alt.Chart:
        """Bars of monthly sales with value labels."""
        if monthly_df.empty:
            return CRMCharts._empty_chart("No sales data")

        bars = alt.Chart(monthly_df).mark_bar(color=COLORS['sales']).encode(
            x=alt.X('month:N', sort=list(monthly_df['month']), title='Month'),
            y=alt.Y('totalAmount:Q', title='Sales', axis=alt.Axis(format='~s')),
            tooltip=[
                alt.Tooltip('month:N', title='Month'),
                alt.Tooltip('totalAmount:Q', title='Sales', format=',.0f'),
                alt.Tooltip('deals:Q', title='Deals'),
            ]
        )

        text = alt.Chart(monthly_df).mark_text(dy=-8, fontSize=11).encode(
            x=alt.X('month:N', sort=list(monthly_df['month'])),
            y=alt.Y('totalAmount:Q'),
            text=alt.Text('totalAmount:Q', format=',.0f'),
        )

        return alt.layer(bars, text).properties(
            width=CHART_WIDTH, height=CHART_HEIGHT, title='Monthly Sales'
        )

    @staticmethod
    def build_team_achievement_chart(team_df: pd.DataFrame) -> alt.Chart:
        """Horizontal sales bars per user with a target tick."""
        if team_df.empty:
            return CRMCharts._empty_chart("No team data")

        chart_df = team_df.assign(
            onTrack=team_df['achievement'] >= 100,
        )

        bars = alt.Chart(chart_df).mark_bar().encode(
            y=alt.Y('name:N', sort='-x', title=None),
            x=alt.X('sales:Q', title='Sales', axis=alt.Axis(format='~s')),
            color=alt.Color(
                'onTrack:N',
                scale=alt.Scale(
                    domain=[True, False],
                    range=[COLORS['achievement_good'], COLORS['achievement_bad']],
                ),
                legend=alt.Legend(title='Target met', orient='bottom'),
            ),
            tooltip=[
                alt.Tooltip('name:N', title='Name'),
                alt.Tooltip('sales:Q', title='Sales', format=',.0f'),
                alt.Tooltip('target:Q', title='Target', format=',.0f'),
                alt.Tooltip('achievement:Q', title='Achievement %', format='.1f'),
            ]
        )

        targets = alt.Chart(chart_df[chart_df['target'] > 0]).mark_tick(
            color=COLORS['target'], thickness=2, size=20
        ).encode(
            y=alt.Y('name:N', sort='-x'),
            x=alt.X('target:Q'),
        )

        return alt.layer(bars, targets).properties(
            width=CHART_WIDTH, height=max(CHART_HEIGHT // 2, 28 * len(chart_df)),
            title='Sales vs Target'
        )

    @staticmethod
    def build_attendance_status_chart(summary_df: pd.DataFrame) -> alt.Chart:
        """Stacked present / late / absent counts per user."""
        if summary_df.empty:
            return CRMCharts._empty_chart("No attendance data")

        long_df = summary_df.melt(
            id_vars=['name'],
            value_vars=['present', 'late', 'absent'],
            var_name='status',
            value_name='days',
        )

        return alt.Chart(long_df).mark_bar().encode(
            x=alt.X('name:N', title=None),
            y=alt.Y('days:Q', title='Days'),
            color=alt.Color(
                'status:N',
                scale=alt.Scale(
                    domain=['present', 'late', 'absent'],
                    range=[COLORS['present'], COLORS['late'], COLORS['absent']],
                ),
                legend=alt.Legend(orient='bottom'),
            ),
            tooltip=['name:N', 'status:N', 'days:Q'],
        ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title='Attendance')


__all__ = ['CRMCharts']
