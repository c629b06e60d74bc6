"""
VaultSession - the client's hold on the master key.

The key is derived from the password the user just typed and lives only in
this object. A session restored without the password has no key: using it
raises ``VaultLocked`` ("re-authenticate"), which callers must keep apart
from a ``None`` result ("this record is corrupted or not ours").

Security Note:
    Never log the key or decrypted payloads. ``repr()`` hides the key.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..core.errors import VaultLocked
from ..crypto.cipher import VaultCipher
from ..crypto.key_derivation import derive_master_key, normalize_account_id
from ..crypto.models import DecryptionFailure, SealedItem, VaultItemPayload
from ..store.records import VaultRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecryptedItem:
    """A stored record next to its decrypted payload (None if unreadable)."""
    record: VaultRecord
    payload: Optional[VaultItemPayload]

    @property
    def is_readable(self) -> bool:
        return self.payload is not None


class VaultSession:
    """Holds the master key for an authenticated session."""

    def __init__(self, account_id: str, master_key: Optional[bytes] = None):
        self.account_id = normalize_account_id(account_id)
        self._key = master_key

    @classmethod
    def unlock(cls, password: str, account_id: str) -> "VaultSession":
        """Derive the master key from the freshly entered password."""
        return cls(account_id, derive_master_key(password, account_id))

    def __repr__(self) -> str:
        state = "unlocked" if self.is_unlocked else "locked"
        return f"VaultSession(account_id={self.account_id!r}, {state})"

    @property
    def is_unlocked(self) -> bool:
        return self._key is not None

    def lock(self) -> None:
        """Drop the key. Further use raises VaultLocked until unlocked again."""
        self._key = None

    def _require_key(self) -> bytes:
        if self._key is None:
            raise VaultLocked("Vault is locked. Re-enter your master password.")
        return self._key

    def encrypt_for_storage(self, payload: VaultItemPayload) -> SealedItem:
        """Seal ``payload`` with the held key.

        Raises:
            VaultLocked: no key in memory
        """
        return VaultCipher.seal(payload, self._require_key())

    def decrypt_from_storage(self, ciphertext: str, iv: str) -> Optional[VaultItemPayload]:
        """Open a stored item.

        Returns:
            The payload, or None when the item cannot be decrypted.

        Raises:
            VaultLocked: no key in memory
        """
        result = VaultCipher.open(ciphertext, iv, self._require_key())
        if isinstance(result, DecryptionFailure):
            return None
        return result

    def decrypt_records(self, records: Iterable[VaultRecord]) -> List[DecryptedItem]:
        """Decrypt each record on its own; one bad record never stops the rest.

        Raises:
            VaultLocked: no key in memory (checked before touching any record)
        """
        self._require_key()
        items = []
        failed = 0
        for record in records:
            payload = self.decrypt_from_storage(record.ciphertext, record.iv)
            if payload is None:
                failed += 1
            items.append(DecryptedItem(record=record, payload=payload))
        if failed:
            logger.warning(
                "Vault for account=%s: %d of %d item(s) could not be decrypted",
                self.account_id, failed, len(items),
            )
        return items
