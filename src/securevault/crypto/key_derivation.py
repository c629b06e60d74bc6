# Vault - Master Key Derivation
#
# Master password + account id → 256-bit master key (PBKDF2-HMAC-SHA256)
#
# The account id (normalized email) is the salt; no per-user salt is stored.
# Runs on the client. The server never sees the password or the key.

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..core.errors import ValidationError

PBKDF2_ITERATIONS = 600_000  # OWASP 2023: 600k iterations for PBKDF2-SHA256
KEY_LENGTH = 32  # 256 bits for AES-256


def normalize_account_id(account_id: str) -> str:
    """Canonical form of an account id (email): stripped and lower-cased.

    Used for the credential lookup and as the key derivation salt, so the
    same address typed with different case yields the same key.
    """
    if not isinstance(account_id, str):
        raise ValidationError("Account id must be a string")
    normalized = account_id.strip().lower()
    if not normalized:
        raise ValidationError("Account id cannot be empty")
    return normalized


def derive_master_key(password: str, account_id: str) -> bytes:
    """
    Derive the master key from the master password using PBKDF2.

    Deterministic: the same (password, account_id) always gives the same key,
    which is what lets records sealed in an earlier session be opened again.

    Args:
        password: User's master password (never stored, never sent)
        account_id: Account identifier, normalized and used as the salt

    Returns:
        32-byte master key

    Raises:
        ValidationError: empty password or account id
    """
    if not isinstance(password, str) or password == "":
        raise ValidationError("Master password cannot be empty")
    salt = normalize_account_id(account_id).encode("utf-8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))
