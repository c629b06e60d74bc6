# Record Store
# SQLite-backed storage of sealed vault records.
#
# The server only ever holds ciphertext + IV. Every query is scoped by
# owner_id: a record id alone never reads, changes or deletes anything.

import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from ..core.db import reader, transaction
from ..core.errors import ValidationError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class VaultRecord:
    """An encrypted vault item as stored server-side."""
    id: str
    owner_id: str
    ciphertext: str
    iv: str
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "VaultRecord":
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            ciphertext=row["ciphertext"],
            iv=row["iv"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def _require_sealed(ciphertext: str, iv: str) -> None:
    if not ciphertext or not iv:
        raise ValidationError("ciphertext and iv are required")


class RecordStore:
    """Owner-scoped CRUD for sealed vault records.

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
                CREATE TABLE IF NOT EXISTS vault_records (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    ciphertext TEXT NOT NULL,
                    iv TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_vault_records_owner "
                "ON vault_records(owner_id, updated_at)"
            )

    def list(self, owner_id: str) -> List[VaultRecord]:
        """All records of ``owner_id``, most recently updated first."""
        with reader(self.db_path) as conn:
            rows = conn.execute(
                """SELECT * FROM vault_records WHERE owner_id = ?
                   ORDER BY updated_at DESC, rowid DESC""",
                (owner_id,),
            ).fetchall()
        return [VaultRecord.from_row(row) for row in rows]

    def create(self, owner_id: str, ciphertext: str, iv: str) -> VaultRecord:
        """Store a new sealed record for ``owner_id``."""
        _require_sealed(ciphertext, iv)
        now = _now()
        record = VaultRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            ciphertext=ciphertext,
            iv=iv,
            created_at=now,
            updated_at=now,
        )
        with transaction(self.db_path) as conn:
            conn.execute(
                """INSERT INTO vault_records
                   (id, owner_id, ciphertext, iv, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (record.id, record.owner_id, record.ciphertext, record.iv,
                 record.created_at, record.updated_at),
            )
        logger.debug("Vault record created: owner=%s id=%s", owner_id, record.id)
        return record

    def update(
        self, record_id: str, owner_id: str, ciphertext: str, iv: str,
    ) -> Optional[VaultRecord]:
        """Replace ciphertext and IV of an owned record.

        Returns:
            The updated record, or None if no record with that id belongs
            to ``owner_id``.
        """
        _require_sealed(ciphertext, iv)
        with transaction(self.db_path) as conn:
            cur = conn.execute(
                """UPDATE vault_records
                   SET ciphertext = ?, iv = ?, updated_at = ?
                   WHERE id = ? AND owner_id = ?""",
                (ciphertext, iv, _now(), record_id, owner_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM vault_records WHERE id = ?", (record_id,)
            ).fetchone()
        return VaultRecord.from_row(row)

    def delete(self, record_id: str, owner_id: str) -> bool:
        """Delete an owned record. Returns True if it existed."""
        with transaction(self.db_path) as conn:
            cur = conn.execute(
                "DELETE FROM vault_records WHERE id = ? AND owner_id = ?",
                (record_id, owner_id),
            )
            return cur.rowcount > 0
