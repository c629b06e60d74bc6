# Credential Store
# SQLite-backed account credentials: password hash and TOTP state.
# Follows the core.db connection helpers (WAL, fresh connection per call).
#
# The password hash and OTP secret never leave this store except through the
# auth flow; API responses only ever expose account id and 2FA status.

import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from ..core.db import reader, transaction
from ..core.errors import AccountExists

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Credential:
    """Stored login material for one account."""
    account_id: str
    password_hash: str
    otp_secret: Optional[str] = None
    otp_enabled: bool = False
    otp_pending_secret: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Credential":
        return cls(
            account_id=row["account_id"],
            password_hash=row["password_hash"],
            otp_secret=row["otp_secret"],
            otp_enabled=bool(row["otp_enabled"]),
            otp_pending_secret=row["otp_pending_secret"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def __repr__(self) -> str:
        # Keep hashes and secrets out of tracebacks and debug logs
        return (
            f"Credential(account_id={self.account_id!r}, "
            f"otp_enabled={self.otp_enabled}, "
            f"otp_secret={'set' if self.otp_secret else None}, "
            f"otp_pending_secret={'set' if self.otp_pending_secret else None})"
        )


class CredentialStore:
    """SQLite store of credentials keyed by unique account id.

    Args:
        db_path: Path to SQLite file. Defaults to data/securevault.db.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else Path("data/securevault.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        with transaction(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS credentials (
                    account_id TEXT PRIMARY KEY,
                    password_hash TEXT NOT NULL,
                    otp_secret TEXT,
                    otp_enabled INTEGER NOT NULL DEFAULT 0,
                    otp_pending_secret TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    def find(self, account_id: str) -> Optional[Credential]:
        """Return the credential for ``account_id`` or None."""
        with reader(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM credentials WHERE account_id = ?", (account_id,)
            ).fetchone()
        return Credential.from_row(row) if row else None

    def create(self, credential: Credential) -> Credential:
        """Insert a new credential.

        Raises:
            AccountExists: the account id is already registered
        """
        now = _now()
        stored = replace(credential, created_at=now, updated_at=now)
        try:
            with transaction(self.db_path) as conn:
                conn.execute(
                    """INSERT INTO credentials
                       (account_id, password_hash, otp_secret, otp_enabled,
                        otp_pending_secret, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        stored.account_id,
                        stored.password_hash,
                        stored.otp_secret,
                        int(stored.otp_enabled),
                        stored.otp_pending_secret,
                        stored.created_at,
                        stored.updated_at,
                    ),
                )
        except sqlite3.IntegrityError:
            raise AccountExists(f"Account already exists: {credential.account_id}")
        logger.info("Credential created for account=%s", stored.account_id)
        return stored

    def update_password_or_otp(
        self,
        account_id: str,
        *,
        password_hash: Optional[str] = _UNSET,
        otp_secret: Optional[str] = _UNSET,
        otp_enabled: bool = _UNSET,
        otp_pending_secret: Optional[str] = _UNSET,
    ) -> Optional[Credential]:
        """Update any of the password hash, OTP secrets and OTP flag.

        Pass ``None`` for a secret to clear it. Fields left out are not
        touched. The read and the write happen in one immediate transaction.

        Returns:
            The updated credential, or None if the account does not exist.
        """
        fields = {}
        if password_hash is not _UNSET:
            fields["password_hash"] = password_hash
        if otp_secret is not _UNSET:
            fields["otp_secret"] = otp_secret
        if otp_enabled is not _UNSET:
            fields["otp_enabled"] = int(bool(otp_enabled))
        if otp_pending_secret is not _UNSET:
            fields["otp_pending_secret"] = otp_pending_secret

        with transaction(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM credentials WHERE account_id = ?", (account_id,)
            ).fetchone()
            if row is None:
                return None
            if fields:
                fields["updated_at"] = _now()
                assignments = ", ".join(f"{name} = ?" for name in fields)
                conn.execute(
                    f"UPDATE credentials SET {assignments} WHERE account_id = ?",
                    (*fields.values(), account_id),
                )
                row = conn.execute(
                    "SELECT * FROM credentials WHERE account_id = ?", (account_id,)
                ).fetchone()
        return Credential.from_row(row)
