"""
Tests for the FastAPI routes.

Uses FastAPI TestClient against create_app() with a temp database. No auth
bypass: tokens come from the real signup/login endpoints.
"""

import time

import pyotp
import pytest
from fastapi.testclient import TestClient

from securevault.api.main import build_services, create_app
from securevault.auth.passwords import PasswordHasher
from securevault.core.audit_log import EventType
from securevault.store.credentials import Credential


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _wrong_code(secret):
    totp = pyotp.TOTP(secret)
    now = time.time()
    valid = {totp.at(now + step * 30) for step in range(-3, 4)}
    return next(f"{n:06d}" for n in range(1_000_000) if f"{n:06d}" not in valid)


@pytest.fixture
def signup(client):
    resp = client.post("/api/auth/signup", json={"email": "a@x.com", "password": "secret1"})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def auth(signup):
    return _bearer(signup["token"])


@pytest.fixture
def plain_account(services):
    services.credentials.create(Credential(
        account_id="plain@x.com",
        password_hash=PasswordHasher(rounds=4).hash("password1"),
    ))
    return "plain@x.com"


class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestAuthRoutes:

    def test_signup_response(self, signup):
        assert signup["user"] == {"id": "a@x.com", "email": "a@x.com"}
        assert signup["token"]
        assert len(signup["two_factor"]["secret"]) == 32
        assert signup["two_factor"]["qr_code"].startswith("data:image/svg+xml;base64,")
        assert signup["two_factor"]["uri"].startswith("otpauth://totp/")

    def test_signup_duplicate(self, client, signup):
        resp = client.post("/api/auth/signup", json={"email": "a@x.com", "password": "secret1"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "User already exists"

    def test_signup_short_password(self, client):
        resp = client.post("/api/auth/signup", json={"email": "b@x.com", "password": "123"})
        assert resp.status_code == 400

    def test_signup_missing_field(self, client):
        resp = client.post("/api/auth/signup", json={"email": "b@x.com"})
        assert resp.status_code == 422

    def test_login_requires_two_factor(self, client, signup):
        resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert resp.status_code == 200
        assert resp.json()["requires_two_factor"] is True
        assert "token" not in resp.json()

    def test_login_with_code(self, client, signup):
        code = pyotp.TOTP(signup["two_factor"]["secret"]).now()
        resp = client.post("/api/auth/login", json={
            "email": "a@x.com", "password": "secret1", "two_factor_token": code,
        })
        assert resp.status_code == 200
        assert resp.json()["token"]
        assert resp.json()["user"]["email"] == "a@x.com"

    def test_login_wrong_code(self, client, signup):
        resp = client.post("/api/auth/login", json={
            "email": "a@x.com", "password": "secret1",
            "two_factor_token": _wrong_code(signup["two_factor"]["secret"]),
        })
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid 2FA token"

    def test_login_wrong_password(self, client, signup):
        resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid credentials"

    def test_login_unknown_account(self, client):
        resp = client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid credentials"

    def test_login_without_two_factor(self, client, plain_account):
        resp = client.post("/api/auth/login", json={"email": plain_account, "password": "password1"})
        assert resp.status_code == 200
        assert resp.json()["token"]


class TestLoginThrottling:

    @pytest.fixture
    def strict_services(self, settings):
        return build_services(settings.model_copy(update={"login_attempts_per_minute": 3}))

    @pytest.fixture
    def strict_client(self, strict_services):
        with TestClient(create_app(services=strict_services)) as test_client:
            yield test_client

    def test_429_after_limit(self, strict_client):
        body = {"email": "a@x.com", "password": "wrong"}
        for _ in range(3):
            assert strict_client.post("/api/auth/login", json=body).status_code == 401
        resp = strict_client.post("/api/auth/login", json=body)
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) > 0

    def test_limit_is_per_account(self, strict_client):
        for _ in range(3):
            strict_client.post("/api/auth/login", json={"email": "a@x.com", "password": "x"})
        resp = strict_client.post("/api/auth/login", json={"email": "b@x.com", "password": "x"})
        assert resp.status_code == 401

    def test_limit_ignores_email_case(self, strict_client):
        for email in ("a@x.com", "A@x.com", " a@X.COM"):
            strict_client.post("/api/auth/login", json={"email": email, "password": "x"})
        resp = strict_client.post("/api/auth/login", json={"email": "a@x.com", "password": "x"})
        assert resp.status_code == 429

    def test_forwarded_for_does_not_reset_limit(self, strict_client):
        codes = [
            strict_client.post(
                "/api/auth/login",
                json={"email": "v@x.com", "password": "wrong"},
                headers={"X-Forwarded-For": f"10.0.0.{i}"},
            ).status_code
            for i in range(20)
        ]
        assert codes[:3] == [401, 401, 401]
        assert set(codes[3:]) == {429}

    def test_throttle_audited_with_peer_address(self, strict_client, strict_services):
        for _ in range(4):
            strict_client.post(
                "/api/auth/login",
                json={"email": "a@x.com", "password": "x"},
                headers={"X-Forwarded-For": "10.9.9.9"},
            )
        events = strict_services.audit.recent_events(event_types=[EventType.LOGIN_THROTTLED])
        assert events[-1]["details"]["client_ip"] == "testclient"

    def test_two_factor_verify_limit_ignores_forwarded_for(self, strict_client):
        signup = strict_client.post(
            "/api/auth/signup", json={"email": "a@x.com", "password": "secret1"},
        ).json()
        codes = [
            strict_client.post(
                "/api/2fa/verify",
                headers={**_bearer(signup["token"]), "X-Forwarded-For": f"10.0.0.{i}"},
                json={"token": "123456"},
            ).status_code
            for i in range(5)
        ]
        assert codes[:3] == [400, 400, 400]
        assert set(codes[3:]) == {429}


class TestTwoFactorRoutes:

    def test_requires_auth(self, client):
        assert client.get("/api/2fa/status").status_code == 401
        assert client.post("/api/2fa/setup").status_code == 401

    def test_rejects_bad_token(self, client):
        resp = client.get("/api/2fa/status", headers=_bearer("not-a-token"))
        assert resp.status_code == 401

    def test_rejects_non_bearer_scheme(self, client, signup):
        resp = client.get("/api/2fa/status", headers={"Authorization": f"Token {signup['token']}"})
        assert resp.status_code == 401

    def test_status(self, client, auth):
        resp = client.get("/api/2fa/status", headers=auth)
        assert resp.json() == {"enabled": True}

    def test_setup_and_verify(self, client, auth):
        setup = client.post("/api/2fa/setup", headers=auth).json()
        assert set(setup) == {"secret", "qr_code", "uri"}

        code = pyotp.TOTP(setup["secret"]).now()
        resp = client.post("/api/2fa/verify", headers=auth, json={"token": code})
        assert resp.status_code == 200
        assert resp.json()["message"] == "2FA enabled successfully"

    def test_verify_wrong_code(self, client, auth):
        setup = client.post("/api/2fa/setup", headers=auth).json()
        resp = client.post(
            "/api/2fa/verify", headers=auth, json={"token": _wrong_code(setup["secret"])},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid token"

    def test_verify_without_setup(self, client, auth):
        resp = client.post("/api/2fa/verify", headers=auth, json={"token": "123456"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No 2FA setup found"

    def test_disable_wrong_password(self, client, auth):
        resp = client.post("/api/2fa/disable", headers=auth, json={"password": "nope"})
        assert resp.status_code == 401
        assert client.get("/api/2fa/status", headers=auth).json() == {"enabled": True}

    def test_disable(self, client, auth):
        resp = client.post("/api/2fa/disable", headers=auth, json={"password": "secret1"})
        assert resp.status_code == 200
        assert client.get("/api/2fa/status", headers=auth).json() == {"enabled": False}

        login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert login.json()["token"]


class TestVaultRoutes:

    SEALED = {"ciphertext": "c2VhbGVk", "iv": "00112233445566778899aabbccddeeff"}

    def test_requires_auth(self, client):
        assert client.get("/api/vault").status_code == 401
        assert client.post("/api/vault", json=self.SEALED).status_code == 401

    def test_empty_list(self, client, auth):
        resp = client.get("/api/vault", headers=auth)
        assert resp.status_code == 200
        assert resp.json() == []

    def test_create_and_list(self, client, auth):
        resp = client.post("/api/vault", headers=auth, json=self.SEALED)
        assert resp.status_code == 201
        record = resp.json()
        assert record["ciphertext"] == self.SEALED["ciphertext"]
        assert "owner_id" not in record

        listed = client.get("/api/vault", headers=auth).json()
        assert [r["id"] for r in listed] == [record["id"]]

    def test_create_requires_fields(self, client, auth):
        resp = client.post("/api/vault", headers=auth, json={"ciphertext": "", "iv": "00"})
        assert resp.status_code == 422

    def test_update(self, client, auth):
        record = client.post("/api/vault", headers=auth, json=self.SEALED).json()
        resp = client.put(
            f"/api/vault/{record['id']}", headers=auth,
            json={"ciphertext": "bmV3", "iv": "ff" * 16},
        )
        assert resp.status_code == 200
        assert resp.json()["ciphertext"] == "bmV3"
        assert resp.json()["id"] == record["id"]

    def test_update_missing(self, client, auth):
        resp = client.put("/api/vault/does-not-exist", headers=auth, json=self.SEALED)
        assert resp.status_code == 404

    def test_delete(self, client, auth):
        record = client.post("/api/vault", headers=auth, json=self.SEALED).json()
        assert client.delete(f"/api/vault/{record['id']}", headers=auth).status_code == 200
        assert client.delete(f"/api/vault/{record['id']}", headers=auth).status_code == 404
        assert client.get("/api/vault", headers=auth).json() == []

    def test_other_account_cannot_touch_items(self, client, auth, services):
        record = client.post("/api/vault", headers=auth, json=self.SEALED).json()
        other = _bearer(services.tokens.issue("b@x.com"))

        assert client.get("/api/vault", headers=other).json() == []
        assert client.put(
            f"/api/vault/{record['id']}", headers=other, json=self.SEALED,
        ).status_code == 404
        assert client.delete(f"/api/vault/{record['id']}", headers=other).status_code == 404
        assert len(client.get("/api/vault", headers=auth).json()) == 1

    def test_writes_audited_without_ciphertext(self, client, auth, services):
        record = client.post("/api/vault", headers=auth, json=self.SEALED).json()
        client.delete(f"/api/vault/{record['id']}", headers=auth)
        events = services.audit.recent_events(account_id="a@x.com")
        types = [e["event_type"] for e in events]
        assert "vault.item.created" in types
        assert "vault.item.deleted" in types
        assert self.SEALED["ciphertext"] not in str(events)
