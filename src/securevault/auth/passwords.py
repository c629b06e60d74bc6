# Auth - Password Hashing
#
# bcrypt over a SHA-256 pre-hash: the hex digest is 64 bytes, under bcrypt's
# 72-byte input limit, so long passphrases are not silently truncated.
# Verification is constant time (bcrypt.checkpw). Unknown accounts still pay
# for one bcrypt check, so response timing does not reveal which emails exist.

import hashlib
import logging
from typing import Optional

import bcrypt

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Salted, slow hashing of login passwords."""

    DEFAULT_ROUNDS = 12

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds
        self._dummy_hash: Optional[bytes] = None

    @staticmethod
    def _prehash(password: str) -> bytes:
        return hashlib.sha256(password.encode("utf-8")).hexdigest().encode("ascii")

    def hash(self, password: str) -> str:
        """Return a bcrypt hash string (salt and cost embedded)."""
        hashed = bcrypt.hashpw(self._prehash(password), bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode("ascii")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check ``password`` against a stored hash."""
        try:
            return bcrypt.checkpw(self._prehash(password), password_hash.encode("ascii"))
        except ValueError:
            # Malformed stored hash: treat as mismatch, never as success
            logger.warning("Stored password hash is malformed")
            return False

    def dummy_verify(self, password: str) -> bool:
        """Spend the same work as ``verify`` for an account that does not exist.

        Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"dummy", bcrypt.gensalt(rounds=self.rounds))
        bcrypt.checkpw(self._prehash(password), self._dummy_hash)
        return False
