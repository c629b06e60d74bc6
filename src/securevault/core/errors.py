"""
SecureVault exception classes.

Outcomes that callers are expected to branch on (wrong password, wrong
one-time code, undecryptable record) are returned as typed results, not
raised. The classes below cover malformed input and misuse.
"""


class SecureVaultError(Exception):
    """Base exception for SecureVault operations"""
    pass


class ValidationError(SecureVaultError):
    """Raised when an operation receives malformed input"""
    pass


class AccountExists(SecureVaultError):
    """Raised when creating a credential for an account id that is taken"""
    pass


class InvalidToken(SecureVaultError):
    """Raised when a session token is malformed, expired or badly signed"""
    pass


class VaultLocked(SecureVaultError):
    """Raised when vault data is used without a master key in memory.

    Distinct from a decryption failure: the user must re-authenticate,
    the stored data is not known to be damaged.
    """
    pass


class ApiError(SecureVaultError):
    """Raised by VaultClient when the server answers with an error status"""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
