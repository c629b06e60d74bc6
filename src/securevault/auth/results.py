"""
Outcomes of the login and two-factor flows.

Every operation of ``AuthSessionFlow`` returns one of these values. Callers
branch on the type; nothing here is raised. ``OtpRequired`` is a normal
step of the login flow, not a failure.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class FailureKind(str, Enum):
    """Named failure kinds surfaced to the API layer."""
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_OTP = "invalid_otp"
    ACCOUNT_EXISTS = "account_exists"
    ACCOUNT_NOT_FOUND = "account_not_found"
    OTP_NOT_CONFIGURED = "otp_not_configured"
    VALIDATION_ERROR = "validation_error"
    THROTTLED = "throttled"


# One message per kind. Unknown account and wrong password share a message.
FAILURE_MESSAGES = {
    FailureKind.INVALID_CREDENTIALS: "Invalid credentials",
    FailureKind.INVALID_OTP: "Invalid 2FA token",
    FailureKind.ACCOUNT_EXISTS: "User already exists",
    FailureKind.ACCOUNT_NOT_FOUND: "User not found",
    FailureKind.OTP_NOT_CONFIGURED: "No 2FA setup found",
    FailureKind.VALIDATION_ERROR: "Invalid request",
    FailureKind.THROTTLED: "Too many attempts. Try again later.",
}


@dataclass(frozen=True)
class OtpSetup:
    """Secret, otpauth URI and QR data URI handed to the user once."""
    secret: str
    uri: str
    qr_code: str

    def __repr__(self) -> str:
        return f"OtpSetup(uri=<hidden>, qr_code=<{len(self.qr_code)} chars>)"


@dataclass(frozen=True)
class Authorized:
    """Login or signup succeeded; ``token`` is a fresh session token."""
    account_id: str
    token: str
    two_factor: Optional[OtpSetup] = None


@dataclass(frozen=True)
class OtpRequired:
    """Password accepted; resubmit together with a one-time code."""
    message: str = "2FA token required"


@dataclass(frozen=True)
class Completed:
    """A two-factor change was applied."""
    message: str


@dataclass(frozen=True)
class OtpStatus:
    enabled: bool


@dataclass(frozen=True)
class AuthFailure:
    kind: FailureKind
    message: str = ""

    @classmethod
    def of(cls, kind: FailureKind, message: Optional[str] = None) -> "AuthFailure":
        return cls(kind=kind, message=message or FAILURE_MESSAGES[kind])

    def __bool__(self) -> bool:
        return False


LoginResult = Union[Authorized, OtpRequired, AuthFailure]
SignupResult = Union[Authorized, AuthFailure]
SetupResult = Union[OtpSetup, AuthFailure]
ChangeResult = Union[Completed, AuthFailure]
StatusResult = Union[OtpStatus, AuthFailure]
