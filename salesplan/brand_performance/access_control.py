# salesplan/brand_performance/access_control.py
"""
Access Control for Brand Performance Module

Two roles see the same data; only directors can change it.

VERSION: 1.0.0
"""

import logging
from typing import Optional

from .constants import ALLOWED_ROLES, EDITOR_ROLES, ROLE_DIRECTOR, ROLE_SALES_MANAGER, ROLE_LABELS

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Access control for planning and analysis pages.

    - director: view everything, edit targets/forecasts/actuals/brands/users
    - sales_manager: view everything, edit nothing; their own brands are
      preselected in the manager filter

    Usage:
        access = AccessControl(user_role, user_id)
        if not access.can_access_page():
            st.error(access.get_denied_message())
    """

    def __init__(self, user_role: str, user_id: Optional[str] = None):
        self.user_role = user_role
        self.user_id = user_id

    def can_access_page(self) -> bool:
        return self.user_role in ALLOWED_ROLES

    def can_edit(self) -> bool:
        """Add/edit/delete targets, forecasts, actuals and brands."""
        return self.user_role in EDITOR_ROLES

    def can_manage_users(self) -> bool:
        return self.user_role == ROLE_DIRECTOR

    def can_close_quarters(self) -> bool:
        return self.user_role == ROLE_DIRECTOR

    def get_access_level(self) -> str:
        """
        Returns:
            'edit' for directors, 'view' for sales managers, 'none' otherwise
        """
        if self.can_edit():
            return 'edit'
        if self.can_access_page():
            return 'view'
        return 'none'

    def default_manager_id(self) -> Optional[str]:
        """Manager filter preset: sales managers start on their own brands."""
        if self.user_role == ROLE_SALES_MANAGER:
            return self.user_id
        return None

    def role_label(self) -> str:
        return ROLE_LABELS.get(self.user_role, self.user_role or 'Unknown')

    def get_denied_message(self) -> str:
        """Get message to show when access is denied."""
        return (
            f"⚠️ Access Denied. Your role ({self.user_role}) does not have permission "
            f"to view this page. Required roles: {', '.join(ALLOWED_ROLES)}"
        )

    def get_read_only_message(self) -> str:
        return "👁️ View only. Only directors can add, edit or delete records."

    def __repr__(self) -> str:
        return f"AccessControl(role={self.user_role}, level={self.get_access_level()})"


# =============================================================================
# PAGE GUARD
# =============================================================================

def check_page_access(require_editor: bool = False) -> AccessControl:
    """
    Stop the page unless a logged-in user with page access is present.

    Args:
        require_editor: also require edit rights (director-only pages)
    """
    import streamlit as st
    from ..auth import AuthManager
    from ..db import check_db_connection

    auth = AuthManager()

    if not auth.check_session():
        st.warning("⚠️ Please login to access this page")
        st.info("Go to the main page to login")
        st.stop()

    db_connected, db_error = check_db_connection()
    if not db_connected:
        st.error(f"❌ Database connection failed: {db_error}")
        st.stop()

    access = AccessControl(
        st.session_state.get('user_role', ''),
        st.session_state.get('user_id')
    )

    if not access.can_access_page() or (require_editor and not access.can_edit()):
        logger.warning(f"Page access denied: {access}")
        st.error(access.get_denied_message())
        st.stop()

    return access
