# Core - Security Audit Logging
#
# Append-only audit trail for authentication, two-factor and vault events.
# Every login attempt, 2FA change and vault write is recorded with a
# timestamp, event id and the account it concerns.
#
# Never log secret material: passwords, master keys, OTP secrets, one-time
# codes, session tokens or decrypted vault payloads. Detail keys with those
# names are dropped before the event is written.

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "securevault.audit"

_SENSITIVE_KEYS = frozenset({
    "password",
    "master_password",
    "master_key",
    "key",
    "otp_secret",
    "secret",
    "code",
    "otp_code",
    "token",
    "plaintext",
    "payload",
    "ciphertext",
    "iv",
})


class EventType(str, Enum):
    """Types of security events that can be logged."""

    # Account / login
    ACCOUNT_CREATED = "account.created"
    LOGIN_SUCCEEDED = "login.succeeded"
    LOGIN_FAILED = "login.failed"
    LOGIN_OTP_REQUIRED = "login.otp_required"
    LOGIN_OTP_REJECTED = "login.otp_rejected"
    LOGIN_THROTTLED = "login.throttled"

    # Two-factor lifecycle
    TWO_FACTOR_SETUP_REQUESTED = "2fa.setup_requested"
    TWO_FACTOR_ENABLED = "2fa.enabled"
    TWO_FACTOR_CONFIRM_FAILED = "2fa.confirm_failed"
    TWO_FACTOR_DISABLED = "2fa.disabled"
    TWO_FACTOR_DISABLE_FAILED = "2fa.disable_failed"

    # Vault records (ciphertext only ever passes through the server)
    VAULT_ITEM_CREATED = "vault.item.created"
    VAULT_ITEM_UPDATED = "vault.item.updated"
    VAULT_ITEM_DELETED = "vault.item.deleted"

    # System
    SYSTEM_START = "system.start"


class EventSeverity(str, Enum):
    """
    Severity levels for security events.

    - INFO: Normal activity
    - INVESTIGATE: Unusual but expected (wrong password, wrong code)
    - ALERT: Repeated failures, throttling
    - CRITICAL: Reserved for integrity problems
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


def _scrub(details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop detail keys that could carry secret material."""
    if not details:
        return {}
    return {k: v for k, v in details.items() if k.lower() not in _SENSITIVE_KEYS}


class AuditLogger:
    """
    Append-only audit logger for security events.

    Features:
    - Structured JSON logging via structlog
    - Automatic timestamp and event ID
    - One log file per day in ``log_dir``
    - Recent-event query for diagnostics and tests
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir or "audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._setup_file_handler()

        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _log_file_for(self, day: datetime) -> Path:
        return self.log_dir / f"audit_{day.strftime('%Y-%m-%d')}.log"

    def _setup_file_handler(self):
        """Attach a daily file handler to the audit logger.

        Handlers from a previous AuditLogger instance are replaced, so
        re-creating the logger (tests, reconfiguration) never duplicates lines.
        """
        log_file = self._log_file_for(datetime.now())

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))  # structlog formats

        audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        for handler in list(audit_logger.handlers):
            audit_logger.removeHandler(handler)
            handler.close()
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        audit_logger.propagate = False

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        account_id: Optional[str] = None,
    ) -> str:
        """
        Log a security event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (sensitive keys are dropped)
            account_id: Account the event concerns, if any

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "account_id": account_id,
            "details": _scrub(details),
        }

        self.logger.info("security_event", **event_data)

        return event_id

    def log_auth_event(
        self,
        event_type: EventType,
        account_id: Optional[str],
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Log a login or two-factor event for an account."""
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Auth: {message}",
            details=details,
            account_id=account_id,
        )

    def log_vault_event(
        self,
        event_type: EventType,
        account_id: str,
        record_id: str,
        message: str,
    ) -> str:
        """
        Log a vault record event.

        Only ids are recorded; ciphertext and IVs stay out of the audit trail.
        """
        return self.log_event(
            event_type=event_type,
            severity=EventSeverity.INFO,
            message=f"Vault: {message}",
            details={"record_id": record_id},
            account_id=account_id,
        )

    def recent_events(
        self,
        event_types: Optional[Iterable[EventType]] = None,
        account_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Return the most recent events from today's log file, newest last.

        Args:
            event_types: Only events of these types
            account_id: Only events for this account
            limit: Maximum number of events to return
        """
        log_file = self._log_file_for(datetime.now())
        if not log_file.exists():
            return []

        wanted = {t.value for t in event_types} if event_types else None
        events = []
        with open(log_file, encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if record.get("event") != "security_event":
                    continue
                if wanted is not None and record.get("event_type") not in wanted:
                    continue
                if account_id is not None and record.get("account_id") != account_id:
                    continue
                events.append(record)
        return events[-limit:]


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Path) -> AuditLogger:
    """Replace the global audit logger with one writing to ``log_dir``."""
    global _audit_logger
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging security events.

    Usage:
        log_security_event(
            EventType.SYSTEM_START,
            EventSeverity.INFO,
            "SecureVault starting",
            details={"version": "1.0.0"}
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
