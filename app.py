# app.py
"""
Sales Planning - entry script

Version: 1.0.0
- Login form until a session exists
- Home page: links to every planning page the role can open
- Directors also see where the planning store lives and its pool counters
"""

import logging

import streamlit as st

from salesplan.auth import AuthManager
from salesplan.config import config
from salesplan.db import check_db_connection, get_connection_pool_status
from salesplan.brand_performance.constants import ROLE_LABELS

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_NAME = "Sales Planning"
APP_ICON = "📊"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} - Brand Targets & Forecasts",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# (page script, label, icon, blurb)
PLANNING_PAGES = [
    ("pages/1_📊_Dashboard.py", "Dashboard", "📊",
     "Target, forecast and actual totals for a period and set of brands."),
    ("pages/2_🎯_Targets.py", "Targets", "🎯",
     "Quarterly revenue and profit targets per brand."),
    ("pages/3_🔮_Forecasts.py", "Forecasts", "🔮",
     "Quarterly revenue and profit forecasts per brand."),
    ("pages/4_✅_Actuals.py", "Actuals", "✅",
     "Monthly results and quarter closing."),
    ("pages/5_📈_Analysis.py", "Analysis", "📈",
     "Achievement, forecast accuracy, growth and manager ranking."),
    ("pages/6_🏷️_Brands.py", "Brands", "🏷️",
     "Brand list and sales manager assignment."),
]

USER_MANAGEMENT_PAGE = (
    "pages/7_👤_User_Management.py", "User Management", "👤",
    "Create profiles, change roles, reset passwords.",
)

auth = AuthManager()


# ==================== LOGIN ====================

def render_login():
    st.title(f"{APP_ICON} {APP_NAME}")
    st.caption("Brand targets, forecasts & actuals")

    db_ok, db_error = check_db_connection()
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        return

    _, center, _ = st.columns([1, 2, 1])
    with center:
        with st.form("login_form"):
            st.subheader("🔐 Sign in")
            username = st.text_input("Username", key="login_username")
            password = st.text_input("Password", type="password", key="login_password")
            submitted = st.form_submit_button("🔑 Login", type="primary", use_container_width=True)

        if submitted:
            if not username or not password:
                st.warning("Please enter both username and password")
                return

            with st.spinner("Checking credentials..."):
                ok, result = auth.authenticate(username, password)

            if ok:
                auth.login(result)
                st.rerun()
            else:
                st.error(result.get("error", "Authentication failed"))

        hours = int(auth.session_timeout.total_seconds() // 3600)
        st.caption(f"Accounts are created by a director. Sessions last {hours} hours.")


# ==================== HOME ====================

def visible_pages():
    pages = list(PLANNING_PAGES)
    if auth.is_director() and config.is_feature_enabled("USER_MANAGEMENT"):
        pages.append(USER_MANAGEMENT_PAGE)
    return pages


def render_sidebar():
    role = st.session_state.get('user_role', '')
    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")
        st.caption(ROLE_LABELS.get(role, role))

        expires_at = auth.session_expires_at()
        if expires_at:
            st.caption(f"Session ends {expires_at:%H:%M}")

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()


def render_page_cards(pages, per_row: int = 3):
    for start in range(0, len(pages), per_row):
        cols = st.columns(per_row)
        for col, (script, label, icon, blurb) in zip(cols, pages[start:start + per_row]):
            with col:
                with st.container(border=True):
                    st.page_link(script, label=label, icon=icon)
                    st.caption(blurb)


def render_system_status():
    with st.expander("🔧 System status"):
        st.caption(f"Store: {config.store.describe()}")
        pool = get_connection_pool_status()

        col1, col2, col3 = st.columns(3)
        col1.metric("Engine", pool.get("status", "-"))
        col2.metric("Checked out", pool.get("checked_out", "-"))
        col3.metric("Idle", pool.get("checked_in", "-"))

        if config.is_feature_enabled("DEBUG_MODE"):
            st.json(config.app_config)


def render_home():
    render_sidebar()

    st.title(f"Welcome, {auth.get_user_display_name()} 👋")
    if auth.is_director():
        st.success("🔓 Director: you can edit targets, forecasts, actuals and brands.")
    else:
        st.info("👁️ Sales manager: planning pages are read-only, preset to your brands.")

    render_page_cards(visible_pages())

    if auth.is_director():
        render_system_status()

    st.divider()
    st.caption(f"{APP_NAME} v{APP_VERSION}")


def main():
    if auth.check_session():
        render_home()
    else:
        render_login()


if __name__ == "__main__":
    main()
