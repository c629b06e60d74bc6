"""
Vault item types shared by the cipher, the client session and the API client.

``VaultItemPayload`` only ever exists in client memory and inside ciphertext.
The server sees ``SealedItem`` values: opaque base64 ciphertext plus hex IV.
"""
import json
from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class VaultItemPayload(BaseModel):
    """Plaintext form of a vault item.

    Optional fields default to empty strings, never ``None``, so an item with
    no username or notes round-trips unchanged. Unknown keys and wrongly typed
    values are rejected when decoding.
    """

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    title: str = ""
    username: str = ""
    password: str = ""
    url: str = ""
    notes: str = ""
    tags: List[str] = Field(default_factory=list)

    def to_canonical_bytes(self) -> bytes:
        """Serialize with sorted keys and compact separators (UTF-8)."""
        return json.dumps(
            self.model_dump(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")

    @classmethod
    def from_canonical_bytes(cls, data: bytes) -> "VaultItemPayload":
        """Parse bytes produced by ``to_canonical_bytes``.

        Raises:
            UnicodeDecodeError: data is not UTF-8
            pydantic.ValidationError: data is not a JSON object of the
                expected fields and types
        """
        return cls.model_validate_json(data.decode("utf-8"))

    def matches(self, query: str) -> bool:
        """Case-insensitive search across title, username, url, notes and tags."""
        needle = query.strip().lower()
        if not needle:
            return True
        haystack = [self.title, self.username, self.url, self.notes, *self.tags]
        return any(needle in field.lower() for field in haystack)


@dataclass(frozen=True)
class SealedItem:
    """Ciphertext (base64, includes the GCM tag) and IV (hex) of one item."""
    ciphertext: str
    iv: str


@dataclass(frozen=True)
class DecryptionFailure:
    """An item could not be opened.

    A wrong master key and a corrupted record produce the same value.
    """
    message: str = "Unable to decrypt vault item"

    def __bool__(self) -> bool:
        return False
