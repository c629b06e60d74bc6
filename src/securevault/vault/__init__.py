# Vault Module - client-held session key and per-item decryption

from .session import DecryptedItem, VaultSession

__all__ = ["DecryptedItem", "VaultSession"]
