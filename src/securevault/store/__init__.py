# Storage Module - SQLite credential and vault record stores

from .credentials import Credential, CredentialStore
from .records import RecordStore, VaultRecord

__all__ = ["Credential", "CredentialStore", "RecordStore", "VaultRecord"]
