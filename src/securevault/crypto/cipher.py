# Vault - Item Encryption Service
#
# Vault item payload → canonical JSON → AES-256-GCM (authenticated)
# Each call to seal() draws a fresh 128-bit IV; the same key never sees the
# same IV twice.
#
# Wire format:
#   ciphertext = base64(encrypted_json + 16-byte GCM tag)
#   iv         = hex(16 random bytes)

import base64
import binascii
import logging
import os
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError as PayloadValidationError

from ..core.errors import ValidationError
from .key_derivation import KEY_LENGTH
from .models import DecryptionFailure, SealedItem, VaultItemPayload

logger = logging.getLogger(__name__)

OpenResult = Union[VaultItemPayload, DecryptionFailure]


class VaultCipher:
    """
    Seals and opens vault items with a master key.

    Flow:
    1. Payload serialized to canonical JSON (sorted keys, UTF-8)
    2. Fresh random IV generated per item
    3. AES-256-GCM encrypts and authenticates the JSON
    4. Ciphertext and IV encoded as text for the record store

    open() never raises on bad data: a wrong key, a flipped bit or a
    payload of the wrong shape all come back as DecryptionFailure.
    """

    IV_LENGTH = 16  # 128-bit IV
    TAG_LENGTH = 16  # GCM authentication tag

    @staticmethod
    def _check_key(key: bytes) -> None:
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_LENGTH:
            raise ValidationError(f"Master key must be {KEY_LENGTH} bytes")

    @staticmethod
    def seal(payload: VaultItemPayload, key: bytes) -> SealedItem:
        """
        Encrypt a vault item payload.

        Args:
            payload: Plaintext item
            key: 256-bit master key (from derive_master_key)

        Returns:
            SealedItem with base64 ciphertext and hex IV

        Raises:
            ValidationError: key is not 32 bytes or payload is not a
                VaultItemPayload
        """
        VaultCipher._check_key(key)
        if not isinstance(payload, VaultItemPayload):
            raise ValidationError("Payload must be a VaultItemPayload")

        iv = os.urandom(VaultCipher.IV_LENGTH)
        ciphertext = AESGCM(bytes(key)).encrypt(iv, payload.to_canonical_bytes(), None)

        return SealedItem(
            ciphertext=base64.b64encode(ciphertext).decode("ascii"),
            iv=iv.hex(),
        )

    @staticmethod
    def open(ciphertext: str, iv: str, key: bytes) -> OpenResult:
        """
        Decrypt a sealed vault item.

        Args:
            ciphertext: base64 ciphertext with GCM tag
            iv: hex IV used at seal time
            key: 256-bit master key (same as at seal time)

        Returns:
            The decoded VaultItemPayload, or DecryptionFailure

        Raises:
            ValidationError: key is not 32 bytes (a programming error,
                not a property of the stored record)
        """
        VaultCipher._check_key(key)

        try:
            raw_iv = bytes.fromhex(iv)
            raw_ct = base64.b64decode(ciphertext, validate=True)
        except (TypeError, ValueError, binascii.Error):
            logger.debug("Vault item rejected: malformed encoding")
            return DecryptionFailure()

        # Only the exact text seal() produces is accepted: hex is lowercase,
        # base64 carries no stray bits in its final character.
        if raw_iv.hex() != iv or base64.b64encode(raw_ct).decode("ascii") != ciphertext:
            logger.debug("Vault item rejected: non-canonical encoding")
            return DecryptionFailure()

        if len(raw_iv) != VaultCipher.IV_LENGTH or len(raw_ct) < VaultCipher.TAG_LENGTH:
            logger.debug("Vault item rejected: bad IV or ciphertext length")
            return DecryptionFailure()

        try:
            plaintext = AESGCM(bytes(key)).decrypt(raw_iv, raw_ct, None)
        except InvalidTag:
            logger.debug("Vault item rejected: authentication failed")
            return DecryptionFailure()

        try:
            return VaultItemPayload.from_canonical_bytes(plaintext)
        except (UnicodeDecodeError, PayloadValidationError):
            logger.debug("Vault item rejected: payload is not a vault item")
            return DecryptionFailure()
