# Core Module - Shared Utilities
#
# Core module provides shared functionality across SecureVault modules:
# - Audit logging
# - Configuration
# - Error types
# - SQLite connection helpers

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
    log_security_event,
)
from .config import Settings
from .errors import (
    AccountExists,
    ApiError,
    InvalidToken,
    SecureVaultError,
    ValidationError,
    VaultLocked,
)

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "configure_audit_logger",
    "get_audit_logger",
    "log_security_event",
    # Configuration
    "Settings",
    # Errors
    "SecureVaultError",
    "ValidationError",
    "AccountExists",
    "InvalidToken",
    "VaultLocked",
    "ApiError",
]
