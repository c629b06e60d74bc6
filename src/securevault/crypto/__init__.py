# Vault Crypto - client-side key derivation and item encryption
#
# Master password + account id → master key (PBKDF2)
# Vault items sealed with AES-256-GCM, fresh IV per item

from .cipher import VaultCipher
from .key_derivation import derive_master_key, normalize_account_id
from .models import DecryptionFailure, SealedItem, VaultItemPayload

__all__ = [
    "VaultCipher",
    "derive_master_key",
    "normalize_account_id",
    "DecryptionFailure",
    "SealedItem",
    "VaultItemPayload",
]
