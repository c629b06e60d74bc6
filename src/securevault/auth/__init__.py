# Auth Module - password login, session tokens and two-factor lifecycle

from .flow import MIN_PASSWORD_LENGTH, AuthSessionFlow
from .passwords import PasswordHasher
from .results import (
    AuthFailure,
    Authorized,
    Completed,
    FailureKind,
    OtpRequired,
    OtpSetup,
    OtpStatus,
)
from .tokens import SessionTokenService

__all__ = [
    "AuthSessionFlow",
    "MIN_PASSWORD_LENGTH",
    "PasswordHasher",
    "SessionTokenService",
    "AuthFailure",
    "Authorized",
    "Completed",
    "FailureKind",
    "OtpRequired",
    "OtpSetup",
    "OtpStatus",
]
