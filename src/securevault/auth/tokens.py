# Auth - Session Tokens
#
# Signed, time-bounded session tokens (JWT, HS256). The token names the
# account in its ``sub`` claim; nothing about the vault key is in it.

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from ..core.errors import InvalidToken

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)


class SessionTokenService:
    """Issues and verifies session tokens bound to an account id."""

    ALGORITHM = "HS256"

    def __init__(self, secret_key: str, ttl: Optional[timedelta] = None):
        if not secret_key:
            raise ValueError("Token signing key cannot be empty")
        self._secret_key = secret_key
        self.ttl = ttl or DEFAULT_TTL

    def issue(self, account_id: str) -> str:
        """Create a token for ``account_id`` that expires after ``ttl``."""
        now = datetime.now(timezone.utc)
        claims = {
            "sub": account_id,
            "iat": now,
            "exp": now + self.ttl,
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.ALGORITHM)

    def verify(self, token: str) -> str:
        """
        Validate signature and expiry.

        Returns:
            The account id the token was issued to

        Raises:
            InvalidToken: malformed, expired, badly signed or missing subject
        """
        if not token:
            raise InvalidToken("Missing session token")
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self.ALGORITHM])
        except JWTError as exc:
            logger.debug("Session token rejected: %s", type(exc).__name__)
            raise InvalidToken("Invalid or expired session token") from exc

        account_id = claims.get("sub")
        if not account_id:
            raise InvalidToken("Session token has no subject")
        return account_id
