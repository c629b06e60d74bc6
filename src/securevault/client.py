"""
VaultClient - the client side of the zero-knowledge split.

Talks to the SecureVault API over httpx and keeps the ``VaultSession`` (the
master key) in this process. Item fields are sealed before they leave and
opened after they arrive; the server only ever sees ciphertext and IVs.

Usage::

    client = VaultClient("http://127.0.0.1:8000")
    result = client.login("me@example.com", password)
    if isinstance(result, OtpRequired):
        result = client.login("me@example.com", password, otp_code="123456")
    items = client.list_items()

Security Note:
    The password is used twice on login: sent to the server for the hash
    check, and fed to PBKDF2 locally for the master key. The key is never
    sent anywhere.
"""
import logging
from typing import Iterable, List, Optional, Union

import httpx

from .auth.results import Authorized, OtpRequired, OtpSetup
from .core.errors import ApiError, VaultLocked
from .crypto.key_derivation import normalize_account_id
from .crypto.models import VaultItemPayload
from .store.records import VaultRecord
from .vault.session import DecryptedItem, VaultSession

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000"
REQUEST_TIMEOUT_SEC = 10.0


class VaultClient:
    """
    HTTP client for the SecureVault API.

    Args:
        base_url: API root (ignored when ``http`` is given)
        http: Pre-built httpx.Client, e.g. a FastAPI TestClient
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.Client] = None,
        timeout: float = REQUEST_TIMEOUT_SEC,
    ):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token: Optional[str] = None
        self.session: Optional[VaultSession] = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self.logout()
        self._http.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, json=None) -> httpx.Response:
        resp = self._http.request(method, path, json=json, headers=self._headers())
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            logger.debug("API %s %s -> %d", method, path, resp.status_code)
            raise ApiError(resp.status_code, str(detail))
        return resp

    def _require_session(self) -> VaultSession:
        if self.session is None:
            raise VaultLocked("Not logged in")
        return self.session

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def signup(self, email: str, password: str) -> OtpSetup:
        """
        Create an account and log in.

        Returns the 2FA secret and QR code; add them to an authenticator app
        now, the next login will ask for a code.

        Raises:
            ApiError: validation failure or existing account (400)
        """
        data = self._request(
            "POST", "/api/auth/signup", json={"email": email, "password": password},
        ).json()
        self.token = data["token"]
        self.session = VaultSession.unlock(password, email)
        two_factor = data["two_factor"]
        return OtpSetup(
            secret=two_factor["secret"],
            uri=two_factor["uri"],
            qr_code=two_factor["qr_code"],
        )

    def login(
        self, email: str, password: str, otp_code: Optional[str] = None,
    ) -> Union[Authorized, OtpRequired]:
        """
        Log in, deriving the master key on success.

        Returns OtpRequired when the account has 2FA on and no code was
        given; call again with ``otp_code``.

        Raises:
            ApiError: wrong password or code (401), throttled (429)
        """
        body = {"email": email, "password": password}
        if otp_code:
            body["two_factor_token"] = otp_code
        data = self._request("POST", "/api/auth/login", json=body).json()

        if data.get("requires_two_factor"):
            return OtpRequired(message=data.get("message", OtpRequired.message))

        self.token = data["token"]
        self.session = VaultSession.unlock(password, email)
        return Authorized(account_id=data["user"]["id"], token=self.token)

    def resume(self, email: str, token: str) -> None:
        """
        Reattach to a stored token without the password.

        The session is locked: 2FA calls work, vault calls raise
        ``VaultLocked`` until the user logs in again.
        """
        self.token = token
        self.session = VaultSession(normalize_account_id(email))

    def logout(self) -> None:
        """Forget the token and drop the master key."""
        if self.session is not None:
            self.session.lock()
        self.session = None
        self.token = None

    # ------------------------------------------------------------------
    # Two-factor
    # ------------------------------------------------------------------

    def setup_two_factor(self) -> OtpSetup:
        data = self._request("POST", "/api/2fa/setup").json()
        return OtpSetup(secret=data["secret"], uri=data["uri"], qr_code=data["qr_code"])

    def verify_two_factor(self, code: str) -> str:
        return self._request("POST", "/api/2fa/verify", json={"token": code}).json()["message"]

    def disable_two_factor(self, password: str) -> str:
        return self._request(
            "POST", "/api/2fa/disable", json={"password": password},
        ).json()["message"]

    def two_factor_enabled(self) -> bool:
        return bool(self._request("GET", "/api/2fa/status").json()["enabled"])

    # ------------------------------------------------------------------
    # Vault items
    # ------------------------------------------------------------------

    def _record(self, data: dict) -> VaultRecord:
        return VaultRecord(
            id=data["id"],
            owner_id=self._require_session().account_id,
            ciphertext=data["ciphertext"],
            iv=data["iv"],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    def list_items(self) -> List[DecryptedItem]:
        """
        Fetch and decrypt every item.

        Items that fail to decrypt are kept with ``payload=None`` so the
        caller can flag them; the rest are unaffected.

        Raises:
            VaultLocked: no master key in memory
        """
        session = self._require_session()
        if not session.is_unlocked:
            raise VaultLocked("Vault is locked. Re-enter your master password.")
        records = [self._record(d) for d in self._request("GET", "/api/vault").json()]
        return session.decrypt_records(records)

    def create_item(self, payload: VaultItemPayload) -> DecryptedItem:
        sealed = self._require_session().encrypt_for_storage(payload)
        data = self._request(
            "POST", "/api/vault", json={"ciphertext": sealed.ciphertext, "iv": sealed.iv},
        ).json()
        return DecryptedItem(record=self._record(data), payload=payload)

    def update_item(self, record_id: str, payload: VaultItemPayload) -> DecryptedItem:
        """
        Re-seal ``payload`` with a fresh IV and replace the stored item.

        Raises:
            ApiError: 404 if the item does not exist or is not ours
        """
        sealed = self._require_session().encrypt_for_storage(payload)
        data = self._request(
            "PUT", f"/api/vault/{record_id}",
            json={"ciphertext": sealed.ciphertext, "iv": sealed.iv},
        ).json()
        return DecryptedItem(record=self._record(data), payload=payload)

    def delete_item(self, record_id: str) -> None:
        self._request("DELETE", f"/api/vault/{record_id}")

    @staticmethod
    def filter_items(
        items: Iterable[DecryptedItem],
        query: str = "",
        tag: Optional[str] = None,
    ) -> List[DecryptedItem]:
        """Search readable items by text and optionally by exact tag."""
        results = []
        for item in items:
            if not item.is_readable:
                continue
            if tag and tag not in item.payload.tags:
                continue
            if item.payload.matches(query):
                results.append(item)
        return results

    @staticmethod
    def all_tags(items: Iterable[DecryptedItem]) -> List[str]:
        """Sorted set of tags across readable items."""
        tags = set()
        for item in items:
            if item.is_readable:
                tags.update(item.payload.tags)
        return sorted(tags)
