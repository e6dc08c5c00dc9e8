"""Tests for admin sessions."""

from datetime import datetime, timezone

import pytest

from app.application.admin_session import AdminSessionManager
from app.domain.exceptions import AuthenticationError


@pytest.fixture
def sessions() -> AdminSessionManager:
    """Session manager with a 30 minute lifetime."""
    return AdminSessionManager("hunter22", secret="signing-secret", ttl_minutes=30)


class TestLogin:
    """Tests for password login."""

    def test_issues_token(self, sessions: AdminSessionManager) -> None:
        """The right password yields a 30 minute session."""
        session = sessions.login("hunter22", now=1000.0)

        assert session.token.startswith("2800.")
        assert session.expires_at == datetime.fromtimestamp(2800, tz=timezone.utc)

    def test_wrong_password(self, sessions: AdminSessionManager) -> None:
        """Wrong passwords are rejected."""
        with pytest.raises(AuthenticationError) as exc_info:
            sessions.login("hunter2")
        assert exc_info.value.message == "Invalid password"
        assert exc_info.value.error_code == "UNAUTHORIZED"

    def test_empty_password(self, sessions: AdminSessionManager) -> None:
        """An empty password never matches."""
        with pytest.raises(AuthenticationError):
            sessions.login("")

    def test_unconfigured(self) -> None:
        """Without a configured password nobody can log in."""
        manager = AdminSessionManager("", secret="signing-secret")
        with pytest.raises(AuthenticationError) as exc_info:
            manager.login("")
        assert exc_info.value.message == "Admin login is not available"


class TestVerify:
    """Tests for token verification."""

    def test_valid_token(self, sessions: AdminSessionManager) -> None:
        """A fresh token verifies and reports its expiry."""
        session = sessions.login("hunter22", now=1000.0)
        assert sessions.verify(session.token, now=2799.0) == session.expires_at

    def test_expired_token(self, sessions: AdminSessionManager) -> None:
        """Tokens stop working at their expiry."""
        session = sessions.login("hunter22", now=1000.0)

        with pytest.raises(AuthenticationError) as exc_info:
            sessions.verify(session.token, now=2800.0)
        assert exc_info.value.error_code == "SESSION_EXPIRED"

    def test_tampered_expiry(self, sessions: AdminSessionManager) -> None:
        """Extending the expiry breaks the signature."""
        session = sessions.login("hunter22", now=1000.0)
        _, signature = session.token.split(".")

        with pytest.raises(AuthenticationError) as exc_info:
            sessions.verify(f"99999999999.{signature}", now=1000.0)
        assert exc_info.value.message == "Invalid session token"

    def test_other_secret(self, sessions: AdminSessionManager) -> None:
        """Tokens signed with another secret are rejected."""
        other = AdminSessionManager("hunter22", secret="another-secret")
        token = other.login("hunter22", now=1000.0).token

        with pytest.raises(AuthenticationError):
            sessions.verify(token, now=1000.0)

    @pytest.mark.parametrize("token", ["garbage", "abc.def", "123.", ".abc"])
    def test_malformed(self, sessions: AdminSessionManager, token: str) -> None:
        """Tokens without the expected shape are rejected."""
        with pytest.raises(AuthenticationError) as exc_info:
            sessions.verify(token)
        assert exc_info.value.message == "Malformed session token"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing(self, sessions: AdminSessionManager, token: str | None) -> None:
        """Missing tokens are rejected."""
        with pytest.raises(AuthenticationError) as exc_info:
            sessions.verify(token)
        assert exc_info.value.message == "Missing session token"
