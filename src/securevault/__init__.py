# SecureVault - Main Package
#
# Zero-knowledge password vault: the master key is derived and held on the
# client; the server stores password hashes, TOTP secrets and opaque
# ciphertext only.

__version__ = "1.0.0"
__author__ = "SecureVault Team"
__description__ = "Zero-knowledge password vault with TOTP two-factor login"

from .core import (
    EventSeverity,
    EventType,
    Settings,
    get_audit_logger,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "Settings",
    "get_audit_logger",
]
