import pytest
from sqlalchemy import text

from salesplan.auth import INVALID_CREDENTIALS, AuthManager


def add_profile(engine, username, role, password="pw1234", is_active=1):
    pwd_hash, salt = AuthManager.hash_password(password)
    with engine.begin() as conn:
        conn.execute(text("""
            INSERT INTO profiles (id, username, full_name, email, role,
                                  password_hash, password_salt, is_active)
            VALUES (:id, :username, NULL, :email, :role, :hash, :salt, :active)
        """), {
            'id': f"p-{username}", 'username': username, 'email': f"{username}@example.com",
            'role': role, 'hash': pwd_hash, 'salt': salt, 'active': is_active,
        })


class TestPasswords:
    def test_salt_changes_hash(self):
        first, salt1 = AuthManager.hash_password("pw1234")
        second, salt2 = AuthManager.hash_password("pw1234")
        assert salt1 != salt2
        assert first != second

    def test_same_salt_same_hash(self):
        digest, salt = AuthManager.hash_password("pw1234")
        assert AuthManager.hash_password("pw1234", salt) == (digest, salt)

    def test_verify(self):
        auth = AuthManager()
        digest, salt = AuthManager.hash_password("pw1234")
        assert auth.verify_password("pw1234", digest, salt)
        assert not auth.verify_password("pw12345", digest, salt)

    @pytest.mark.parametrize("digest,salt", [(None, "s"), ("d", None), ("", "")])
    def test_missing_hash_never_verifies(self, digest, salt):
        assert not AuthManager().verify_password("pw1234", digest, salt)


class TestAuthenticate:
    def test_sales_manager_login(self, engine):
        add_profile(engine, "mina", "sales_manager")

        ok, user = AuthManager().authenticate(" mina ", "pw1234")

        assert ok is True
        assert user['role'] == "sales_manager"
        # Falls back to the username when no full name is stored
        assert user['full_name'] == "mina"
        assert user['login_time'] is not None

    def test_wrong_password(self, engine):
        add_profile(engine, "mina", "sales_manager")
        ok, info = AuthManager().authenticate("mina", "wrong")
        assert ok is False
        assert info['error'] == INVALID_CREDENTIALS

    def test_unknown_user_gets_same_message(self, engine):
        ok, info = AuthManager().authenticate("ghost", "pw1234")
        assert ok is False
        assert info['error'] == INVALID_CREDENTIALS

    def test_role_outside_planning_is_rejected(self, engine):
        add_profile(engine, "vic", "viewer")
        ok, info = AuthManager().authenticate("vic", "pw1234")
        assert ok is False
        assert "planning role" in info['error']

    def test_store_failure_is_reported(self, engine):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE profiles"))
        ok, info = AuthManager().authenticate("mina", "pw1234")
        assert ok is False
        assert info['error'] == "Authentication failed. Please try again."


def test_session_timeout_follows_config():
    from salesplan.config import config
    assert AuthManager().session_timeout.total_seconds() == config.planning.session_timeout_hours * 3600
