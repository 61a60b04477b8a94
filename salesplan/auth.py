# salesplan/auth.py
"""
Login and session handling for the planning app

Version: 1.0.0
- Profiles live in the `profiles` table; passwords are SHA-256 with a
  per-user salt
- Only active profiles with a planning role (director / sales_manager)
  can log in
- The session expires SESSION_TIMEOUT_HOURS after login
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

import streamlit as st
from sqlalchemy import text

from .config import config
from .db import get_db_engine
from .brand_performance.constants import ALLOWED_ROLES, ROLE_DIRECTOR

logger = logging.getLogger(__name__)

SESSION_KEYS = [
    'authenticated', 'user_id', 'username', 'user_email',
    'user_role', 'user_fullname', 'login_time',
]

INVALID_CREDENTIALS = "Invalid username or password"


class AuthManager:
    """
    Usage:
        auth = AuthManager()
        ok, result = auth.authenticate(username, password)
        if ok:
            auth.login(result)
    """

    def __init__(self):
        self.session_timeout = timedelta(hours=config.planning.session_timeout_hours)

    # ==================== PASSWORDS ====================

    @staticmethod
    def hash_password(password: str, salt: str = None) -> Tuple[str, str]:
        """
        Returns:
            (hex digest of sha256(password + salt), salt)
        """
        salt = salt or secrets.token_hex(32)
        return hashlib.sha256((password + salt).encode()).hexdigest(), salt

    def verify_password(self, password: str, stored_hash: str, salt: str) -> bool:
        if not stored_hash or not salt:
            return False
        candidate, _ = self.hash_password(password, salt)
        return hmac.compare_digest(candidate, stored_hash)

    # ==================== AUTHENTICATION ====================

    @staticmethod
    def _find_profile(username: str) -> Optional[Dict]:
        query = text("""
            SELECT id, username, password_hash, password_salt,
                   email, role, full_name, is_active
            FROM profiles
            WHERE username = :username
        """)
        with get_db_engine().connect() as conn:
            row = conn.execute(query, {'username': username.strip()}).fetchone()
        return dict(row._mapping) if row else None

    def authenticate(self, username: str, password: str) -> Tuple[bool, Dict]:
        """
        Returns:
            (True, user info for login()) or (False, {'error': message})
        """
        try:
            profile = self._find_profile(username)
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            return False, {"error": "Authentication failed. Please try again."}

        if profile is None or not self.verify_password(
            password, profile['password_hash'], profile['password_salt']
        ):
            logger.warning(f"Failed login for: {username}")
            return False, {"error": INVALID_CREDENTIALS}

        if not profile['is_active']:
            logger.warning(f"Login attempt for inactive profile: {username}")
            return False, {"error": "Account is inactive. Please contact a director."}

        if profile['role'] not in ALLOWED_ROLES:
            logger.warning(f"Login attempt without planning role: {username} ({profile['role']})")
            return False, {"error": "Your account has no planning role. Please contact a director."}

        logger.info(f"User {profile['username']} authenticated")
        return True, {
            'id': profile['id'],
            'username': profile['username'],
            'email': profile['email'],
            'role': profile['role'],
            'full_name': profile['full_name'] or profile['username'],
            'login_time': datetime.now(),
        }

    # ==================== SESSION ====================

    def login(self, user_info: Dict):
        st.session_state.authenticated = True
        st.session_state.user_id = user_info['id']
        st.session_state.username = user_info['username']
        st.session_state.user_email = user_info['email']
        st.session_state.user_role = user_info['role']
        st.session_state.user_fullname = user_info['full_name']
        st.session_state.login_time = user_info['login_time']

        logger.info(f"User {user_info['username']} ({user_info['role']}) logged in")

    def logout(self):
        username = st.session_state.get('username', 'Unknown')
        for key in SESSION_KEYS:
            st.session_state.pop(key, None)
        logger.info(f"User {username} logged out")

    def session_expires_at(self) -> Optional[datetime]:
        login_time = st.session_state.get('login_time')
        return login_time + self.session_timeout if login_time else None

    def check_session(self) -> bool:
        """True for a logged-in, unexpired session; expired sessions are logged out."""
        if not st.session_state.get('authenticated'):
            return False

        expires_at = self.session_expires_at()
        if expires_at and datetime.now() > expires_at:
            logger.info(f"Session expired for user: {st.session_state.get('username')}")
            self.logout()
            return False

        return True

    # ==================== CURRENT USER ====================

    def is_director(self) -> bool:
        return st.session_state.get('user_role') == ROLE_DIRECTOR

    def get_user_display_name(self) -> str:
        return st.session_state.get('user_fullname') or st.session_state.get('username', 'User')


__all__ = [
    'AuthManager',
]
