"""Admin password check and signed session tokens.

A token is ``<expires_epoch>.<hex HMAC-SHA256(secret, expires_epoch)>``.
Nothing is stored server side; expiry is carried in the token itself.
"""

import hashlib
import hmac
import time
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from app.domain.exceptions import AuthenticationError

logger = structlog.get_logger()


@dataclass
class AdminSession:
    """An issued admin session.

    Attributes:
        token: Bearer token.
        expires_at: Expiry time (UTC).
    """

    token: str
    expires_at: datetime


class AdminSessionManager:
    """Issues and verifies admin session tokens."""

    def __init__(
        self,
        admin_password: str,
        secret: str,
        ttl_minutes: int = 30,
    ) -> None:
        """Initialize manager.

        Args:
            admin_password: The single admin credential.
            secret: HMAC key for signing tokens.
            ttl_minutes: Session lifetime.
        """
        self.admin_password = admin_password
        self.secret = secret
        self.ttl_seconds = ttl_minutes * 60

    def _sign(self, expires: int) -> str:
        return hmac.new(
            self.secret.encode(),
            str(expires).encode(),
            hashlib.sha256,
        ).hexdigest()

    def login(self, password: str, now: float | None = None) -> AdminSession:
        """Check the password and issue a session.

        Raises:
            AuthenticationError: If the password is wrong or not configured.
        """
        if not self.admin_password:
            logger.error("Admin password is not configured")
            raise AuthenticationError("Admin login is not available")

        if not password or not hmac.compare_digest(
            password.encode(), self.admin_password.encode()
        ):
            logger.warning("Admin login rejected")
            raise AuthenticationError("Invalid password")

        issued = time.time() if now is None else now
        expires = int(issued) + self.ttl_seconds
        logger.info("Admin session issued", expires=expires)
        return AdminSession(
            token=f"{expires}.{self._sign(expires)}",
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
        )

    def verify(self, token: str | None, now: float | None = None) -> datetime:
        """Check a token.

        Returns:
            Expiry time of the valid session.

        Raises:
            AuthenticationError: ``UNAUTHORIZED`` if malformed or forged,
                ``SESSION_EXPIRED`` if past its expiry.
        """
        if not token:
            raise AuthenticationError("Missing session token")

        expires_raw, _, signature = token.partition(".")
        if not expires_raw.isdigit() or not signature:
            raise AuthenticationError("Malformed session token")

        expires = int(expires_raw)
        if not hmac.compare_digest(signature, self._sign(expires)):
            raise AuthenticationError("Invalid session token")

        current = time.time() if now is None else now
        if current >= expires:
            raise AuthenticationError("Session expired", error_code="SESSION_EXPIRED")

        return datetime.fromtimestamp(expires, tz=timezone.utc)
