# app.py
"""
Sales CRM - Main Entry Point

Login page and dashboard. Feature pages live under pages/.
"""

import streamlit as st
from salescrm.auth import AuthManager
from salescrm.db import check_db_connection
from salescrm.data_management import (
    AccessControl,
    CRMCharts,
    CRMMetrics,
    get_realtime_manager,
    get_storage,
)
from salescrm.data_management.date_utils import get_current_month
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Sales CRM"
APP_ICON = "📈"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

storage = get_storage()
sync_manager = get_realtime_manager()
auth = AuthManager(storage)

# ==================== HELPER FUNCTIONS ====================

def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Employees, attendance and sales in one place</p>', unsafe_allow_html=True)

    db_ok, db_error = check_db_connection()
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        st.info("Please check the DB_URL setting or contact IT support.")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Login")

            employee_id = st.text_input(
                "Employee ID",
                placeholder="e.g. BM001",
                key="login_employee_id"
            )
            password = st.text_input(
                "Password",
                type="password",
                placeholder="Enter your password",
                key="login_password"
            )

            submit = st.form_submit_button("🔑 Login", type="primary", use_container_width=True)

            if submit:
                with st.spinner("Authenticating..."):
                    success, result = auth.authenticate(employee_id, password)

                if success:
                    auth.login(result)
                    st.success("✅ Login successful!")
                    st.rerun()
                else:
                    st.error(result.get("error", "Authentication failed"))

        with st.expander("ℹ️ Need Help?"):
            st.info(f"""
            - Login with your employee ID (not case sensitive)
            - Accounts lock for {auth.lockout_minutes} minutes after {auth.max_failed_logins} failed attempts
            - Contact your administrator to reset a forgotten password
            """)


def show_sidebar(access: AccessControl):
    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")

        level = access.get_access_level()
        if level == 'full':
            st.success("🔓 Full Access")
        elif level == 'team':
            st.info("👥 Team Access")
        else:
            st.warning("👤 Personal Access")

        st.caption(f"Role: {access.role.value} | ID: {st.session_state.get('employee_id')}")
        st.markdown("---")

        if sync_manager.last_sync_time:
            st.caption(f"🔄 Last sync: {sync_manager.last_sync_time[11:19]}")
        if st.button("🔄 Refresh data", use_container_width=True):
            sync_manager.force_sync()
            st.rerun()

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()


def show_dashboard():
    """Dashboard over the data visible to the current user"""
    current_user = auth.get_current_user()
    users = storage.get_users()
    access = AccessControl(current_user, users)

    show_sidebar(access)

    visible_users = access.get_visible_users()
    visible_sales = access.filter_sales(storage.get_sales_records())
    visible_attendance = access.filter_attendance(storage.get_attendance_records())

    metrics = CRMMetrics(visible_users, visible_sales, visible_attendance)
    stats = metrics.get_dashboard_stats()

    st.title(f"Welcome, {auth.get_user_display_name()}! 👋")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Active Employees", stats['activeEmployees'], help=f"{stats['totalEmployees']} total")
    with col2:
        st.metric("Present Today", stats['presentToday'], delta=f"{stats['lateToday']} late", delta_color="off")
    with col3:
        st.metric("Sales Today", f"{stats['salesToday']:,.0f}")
    with col4:
        st.metric("Sales This Month", f"{stats['salesThisMonth']:,.0f}")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Revenue", f"{stats['totalRevenue']:,.0f}")
    with col2:
        st.metric("Avg Target Achievement", f"{stats['averageAchievement']:.1f}%")
    with col3:
        top = stats['topPerformer']
        st.metric("Top Performer (month)", top['name'] if top else "—",
                  delta=f"{top['sales']:,.0f}" if top else None, delta_color="off")

    st.markdown("---")

    tab_sales, tab_team, tab_attendance = st.tabs(["📈 Monthly Sales", "🎯 Team vs Target", "📅 Attendance"])

    with tab_sales:
        monthly_df = metrics.get_monthly_sales(months=6)
        st.altair_chart(CRMCharts.build_monthly_sales_chart(monthly_df), use_container_width=True)

    with tab_team:
        team_df = metrics.get_team_performance(get_current_month())
        st.altair_chart(CRMCharts.build_team_achievement_chart(team_df), use_container_width=True)
        st.dataframe(team_df, hide_index=True, use_container_width=True)

    with tab_attendance:
        summary_df = metrics.get_attendance_summary(get_current_month())
        st.altair_chart(CRMCharts.build_attendance_status_chart(summary_df), use_container_width=True)
        st.dataframe(summary_df, hide_index=True, use_container_width=True)

    if access.can_manage_users():
        st.markdown("---")
        with st.expander("🔧 Sync Status (Admin Only)"):
            sync_stats = sync_manager.get_sync_stats()
            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Logged Writes", sync_stats['totalSyncs'])
            with col2:
                st.metric("Last 24 Hours", sync_stats['last24Hours'])
            with col3:
                st.metric("Sync Passes", sync_manager.sync_count)
            st.json(sync_stats['dataTypes'])

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    # A rerun means the view is in the foreground again
    sync_manager.handle_visibility_change(hidden=False)

    if not auth.check_session():
        show_login_page()
    else:
        show_dashboard()


if __name__ == "__main__":
    main()
