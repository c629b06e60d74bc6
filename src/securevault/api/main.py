# SecureVault - FastAPI Backend
#
# App factory for the zero-knowledge vault API. `create_app()` builds every
# collaborator from Settings (or takes a prepared Services bundle) and hangs
# it on `app.state.services`; routers reach it through `get_services`.

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..auth.flow import AuthSessionFlow
from ..auth.passwords import PasswordHasher
from ..auth.tokens import SessionTokenService
from ..core.audit_log import AuditLogger, configure_audit_logger
from ..core.config import Settings
from ..otp.provisioner import OtpProvisioner
from ..otp.qr import QrRenderer
from ..otp.verifier import OtpVerifier
from ..store.credentials import CredentialStore
from ..store.records import RecordStore
from .auth_routes import router as auth_router
from .rate_limiter import AttemptLimiter
from .twofactor_routes import router as twofactor_router
from .vault_routes import router as vault_router

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the routers need, built once per app."""
    settings: Settings
    credentials: CredentialStore
    records: RecordStore
    tokens: SessionTokenService
    flow: AuthSessionFlow
    limiter: AttemptLimiter
    audit: AuditLogger


def build_services(settings: Settings, audit: Optional[AuditLogger] = None) -> Services:
    """Wire stores, hasher, token service and auth flow from ``settings``."""
    audit = audit or configure_audit_logger(settings.audit_dir)
    credentials = CredentialStore(settings.db_path)
    records = RecordStore(settings.db_path)
    tokens = SessionTokenService(
        settings.secret_key, ttl=timedelta(days=settings.token_ttl_days),
    )
    flow = AuthSessionFlow(
        credentials=credentials,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=tokens,
        provisioner=OtpProvisioner(issuer=settings.otp_issuer),
        verifier=OtpVerifier(window=settings.otp_window),
        qr_renderer=QrRenderer(),
        otp_window=settings.otp_window,
        audit=audit,
    )
    return Services(
        settings=settings,
        credentials=credentials,
        records=records,
        tokens=tokens,
        flow=flow,
        limiter=AttemptLimiter(limit=settings.login_attempts_per_minute),
        audit=audit,
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[Services] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Runtime settings (default: ``Settings.from_env()``)
        services: Pre-built collaborators; overrides what ``settings`` would build
    """
    if services is None:
        services = build_services(settings or Settings.from_env())
    settings = services.settings

    app = FastAPI(
        title="SecureVault API",
        description="Zero-knowledge password vault API",
        version=__version__,
    )
    app.state.services = services

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(auth_router)
    app.include_router(twofactor_router)
    app.include_router(vault_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    logger.info("SecureVault API ready (db=%s)", settings.db_path)
    return app


def start_api_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    settings: Optional[Settings] = None,
):
    """
    Start FastAPI server.

    Args:
        host: Host to bind to (default: localhost only for security)
        port: Port to listen on
        settings: Runtime settings (default: from environment)
    """
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")
