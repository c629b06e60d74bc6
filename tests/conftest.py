"""
Shared pytest fixtures for the SecureVault test suite.

Autouse fixtures below isolate tests from live application data:
  - Audit logger -> temp directory (prevents test events in ./audit_logs)

Tests lower bcrypt cost through Settings; PBKDF2 runs at full strength, so
fixtures that need a master key derive it once per session.
"""

import pytest
from fastapi.testclient import TestClient

from securevault.api.main import build_services, create_app
from securevault.core.config import Settings
from securevault.crypto.key_derivation import derive_master_key

TEST_EMAIL = "a@x.com"
TEST_PASSWORD = "secret1"


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) calls
    ``get_audit_logger().log_event(...)`` writes into the real
    ``./audit_logs/`` directory.
    """
    import securevault.core.audit_log as audit_mod

    # Reset the singleton so the next call to get_audit_logger() creates
    # a fresh instance pointing at the temp directory.
    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None):
        orig_init(self, log_dir=log_dir or tmp_path / "audit_logs")

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture
def settings(tmp_path):
    return Settings(
        secret_key="test-signing-key-0123456789abcdef",
        db_path=tmp_path / "vault.db",
        audit_dir=tmp_path / "audit_logs",
        bcrypt_rounds=4,
        login_attempts_per_minute=50,
        cors_origins=[],
    )


@pytest.fixture
def services(settings):
    return build_services(settings)


@pytest.fixture
def app(services):
    return create_app(services=services)


@pytest.fixture
def client(app):
    """TestClient against a fresh app and database."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session")
def master_key():
    """Master key for TEST_EMAIL / TEST_PASSWORD (derived once)."""
    return derive_master_key(TEST_PASSWORD, TEST_EMAIL)

