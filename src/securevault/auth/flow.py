# Auth - Login and Two-Factor Flow
#
# Anonymous → PasswordChecked → (OtpRequired | Authorized) → Authorized
#
#   signup          creates the credential with 2FA on and a fresh secret,
#                   then issues a token straight away
#   login           password check, then the one-time code if 2FA is on
#   request_setup   stores a *pending* secret (not trusted for login)
#   confirm_setup   one good code against the pending secret turns 2FA on
#   disable         needs the login password, not a code
#
# The flow never sees the vault master key. Every collaborator is passed in
# at construction; every call names its account explicitly.

import logging
import re
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..core.audit_log import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..core.errors import AccountExists, ValidationError
from ..crypto.key_derivation import normalize_account_id
from ..otp.provisioner import OtpProvisioner
from ..otp.qr import QrRenderer
from ..otp.verifier import DEFAULT_WINDOW, OtpVerifier
from ..store.credentials import Credential, CredentialStore
from .passwords import PasswordHasher
from .results import (
    AuthFailure,
    Authorized,
    ChangeResult,
    Completed,
    FailureKind,
    LoginResult,
    OtpRequired,
    OtpSetup,
    OtpStatus,
    SetupResult,
    SignupResult,
    StatusResult,
)
from .tokens import SessionTokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _AccountLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class AuthSessionFlow:
    """
    Orchestrates signup, login and the two-factor lifecycle.

    Setup, confirm and disable for the same account are serialized by a
    per-account lock; each store write is its own transaction.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        hasher: PasswordHasher,
        tokens: SessionTokenService,
        provisioner: OtpProvisioner,
        verifier: OtpVerifier,
        qr_renderer: QrRenderer,
        otp_window: int = DEFAULT_WINDOW,
        audit: Optional[AuditLogger] = None,
    ):
        self._credentials = credentials
        self._hasher = hasher
        self._tokens = tokens
        self._provisioner = provisioner
        self._verifier = verifier
        self._qr = qr_renderer
        self._otp_window = otp_window
        self._audit = audit

        self._locks: Dict[str, _AccountLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def audit(self) -> AuditLogger:
        return self._audit or get_audit_logger()

    @contextmanager
    def _account_lock(self, account_id: str) -> Iterator[None]:
        """Hold the lock for ``account_id``; dropped once no caller holds or waits on it."""
        with self._locks_guard:
            entry = self._locks.get(account_id)
            if entry is None:
                entry = self._locks[account_id] = _AccountLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[account_id]

    def _otp_setup(self, account_id: str) -> OtpSetup:
        provisioning = self._provisioner.generate(account_id)
        return OtpSetup(
            secret=provisioning.secret,
            uri=provisioning.uri,
            qr_code=self._qr.render(provisioning.uri),
        )

    def _password_matches(self, credential: Optional[Credential], password: str) -> bool:
        if credential is None:
            return self._hasher.dummy_verify(password or "")
        return self._hasher.verify(password or "", credential.password_hash)

    # ------------------------------------------------------------------
    # Signup / login
    # ------------------------------------------------------------------

    def signup(self, email: str, password: str) -> SignupResult:
        """
        Create an account with two-factor forced on and log it in.

        The returned ``Authorized.two_factor`` carries the secret and QR code;
        it is the only time the secret is shown.
        """
        try:
            account_id = normalize_account_id(email)
        except ValidationError as exc:
            return AuthFailure.of(FailureKind.VALIDATION_ERROR, str(exc))
        if not _EMAIL_PATTERN.match(account_id):
            return AuthFailure.of(FailureKind.VALIDATION_ERROR, "Invalid email address")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            return AuthFailure.of(
                FailureKind.VALIDATION_ERROR,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )

        if self._credentials.find(account_id) is not None:
            return AuthFailure.of(FailureKind.ACCOUNT_EXISTS)

        setup = self._otp_setup(account_id)
        credential = Credential(
            account_id=account_id,
            password_hash=self._hasher.hash(password),
            otp_secret=setup.secret,
            otp_enabled=True,
        )
        try:
            self._credentials.create(credential)
        except AccountExists:
            # Lost a race with a concurrent signup for the same address
            return AuthFailure.of(FailureKind.ACCOUNT_EXISTS)

        token = self._tokens.issue(account_id)
        self.audit.log_auth_event(
            EventType.ACCOUNT_CREATED, account_id, "account created with 2FA enabled",
        )
        return Authorized(account_id=account_id, token=token, two_factor=setup)

    def login(
        self, email: str, password: str, otp_code: Optional[str] = None,
    ) -> LoginResult:
        """
        Check the password and, if 2FA is on, the one-time code.

        Returns:
            Authorized with a session token; OtpRequired when 2FA is on and
            no code was given; AuthFailure INVALID_CREDENTIALS or INVALID_OTP.
        """
        try:
            account_id = normalize_account_id(email)
        except ValidationError:
            return AuthFailure.of(FailureKind.INVALID_CREDENTIALS)

        credential = self._credentials.find(account_id)
        if not self._password_matches(credential, password):
            self.audit.log_auth_event(
                EventType.LOGIN_FAILED, account_id, "invalid credentials",
                severity=EventSeverity.INVESTIGATE,
            )
            return AuthFailure.of(FailureKind.INVALID_CREDENTIALS)

        if credential.otp_enabled:
            if otp_code is None or str(otp_code).strip() == "":
                self.audit.log_auth_event(
                    EventType.LOGIN_OTP_REQUIRED, account_id, "password accepted, code required",
                )
                return OtpRequired()

            if not credential.otp_secret or not self._verifier.verify(
                credential.otp_secret, otp_code, window=self._otp_window,
            ):
                self.audit.log_auth_event(
                    EventType.LOGIN_OTP_REJECTED, account_id, "one-time code rejected",
                    severity=EventSeverity.INVESTIGATE,
                )
                return AuthFailure.of(FailureKind.INVALID_OTP)

        token = self._tokens.issue(account_id)
        self.audit.log_auth_event(
            EventType.LOGIN_SUCCEEDED, account_id, "login succeeded",
            details={"two_factor": credential.otp_enabled},
        )
        return Authorized(account_id=account_id, token=token)

    # ------------------------------------------------------------------
    # Two-factor lifecycle (caller is already authenticated)
    # ------------------------------------------------------------------

    def request_setup(self, account_id: str) -> SetupResult:
        """Generate a pending secret; 2FA state is unchanged until confirmed."""
        with self._account_lock(account_id):
            if self._credentials.find(account_id) is None:
                return AuthFailure.of(FailureKind.ACCOUNT_NOT_FOUND)

            setup = self._otp_setup(account_id)
            self._credentials.update_password_or_otp(
                account_id, otp_pending_secret=setup.secret,
            )

        self.audit.log_auth_event(
            EventType.TWO_FACTOR_SETUP_REQUESTED, account_id, "2FA setup requested",
        )
        return setup

    def confirm_setup(self, account_id: str, code: Optional[str]) -> ChangeResult:
        """Verify a code against the pending secret and enable 2FA with it."""
        with self._account_lock(account_id):
            credential = self._credentials.find(account_id)
            if credential is None:
                return AuthFailure.of(FailureKind.ACCOUNT_NOT_FOUND)
            pending = credential.otp_pending_secret
            if not pending:
                return AuthFailure.of(FailureKind.OTP_NOT_CONFIGURED)

            if not self._verifier.verify(pending, code, window=self._otp_window):
                self.audit.log_auth_event(
                    EventType.TWO_FACTOR_CONFIRM_FAILED, account_id, "setup code rejected",
                    severity=EventSeverity.INVESTIGATE,
                )
                return AuthFailure.of(FailureKind.INVALID_OTP, "Invalid token")

            self._credentials.update_password_or_otp(
                account_id,
                otp_secret=pending,
                otp_pending_secret=None,
                otp_enabled=True,
            )

        self.audit.log_auth_event(EventType.TWO_FACTOR_ENABLED, account_id, "2FA enabled")
        return Completed("2FA enabled successfully")

    def disable(self, account_id: str, password: str) -> ChangeResult:
        """Turn 2FA off after re-checking the login password."""
        with self._account_lock(account_id):
            credential = self._credentials.find(account_id)
            if credential is None:
                return AuthFailure.of(FailureKind.ACCOUNT_NOT_FOUND)

            if not self._password_matches(credential, password):
                self.audit.log_auth_event(
                    EventType.TWO_FACTOR_DISABLE_FAILED, account_id,
                    "disable refused: wrong password",
                    severity=EventSeverity.INVESTIGATE,
                )
                return AuthFailure.of(FailureKind.INVALID_CREDENTIALS, "Invalid password")

            self._credentials.update_password_or_otp(
                account_id,
                otp_secret=None,
                otp_pending_secret=None,
                otp_enabled=False,
            )

        self.audit.log_auth_event(
            EventType.TWO_FACTOR_DISABLED, account_id, "2FA disabled",
            severity=EventSeverity.ALERT,
        )
        return Completed("2FA disabled successfully")

    def status(self, account_id: str) -> StatusResult:
        credential = self._credentials.find(account_id)
        if credential is None:
            return AuthFailure.of(FailureKind.ACCOUNT_NOT_FOUND)
        return OtpStatus(enabled=credential.otp_enabled)
