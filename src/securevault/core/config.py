"""
SecureVault Configuration - validated runtime settings.

Values come from the environment (optionally seeded from a ``.env`` file via
python-dotenv). Every setting is passed explicitly into ``create_app()``;
nothing reads the environment after startup.

Security Note:
    Never log the signing secret. Only log whether one was supplied.
"""
import os
import secrets
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "SECUREVAULT_"

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


class Settings(BaseModel):
    """Validated application settings."""

    secret_key: str = Field(min_length=16)
    db_path: Path = Path("data/securevault.db")
    audit_dir: Path = Path("audit_logs")
    token_ttl_days: int = Field(default=7, ge=1)
    otp_issuer: str = Field(default="SecureVault", min_length=1)
    otp_window: int = Field(default=2, ge=0, le=10)
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)
    login_attempts_per_minute: int = Field(default=10, ge=1)
    cors_origins: List[str] = Field(default_factory=list)
    trusted_proxies: List[str] = Field(default_factory=list)

    @field_validator("otp_issuer")
    @classmethod
    def validate_issuer(cls, v: str) -> str:
        """Issuer is embedded in otpauth:// URIs, where ':' separates fields."""
        if ":" in v:
            raise ValueError("OTP issuer cannot contain ':'")
        return v

    @field_validator("cors_origins", "trusted_proxies", mode="before")
    @classmethod
    def split_origins(cls, v):
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Settings":
        """Create Settings from ``SECUREVAULT_*`` environment variables.

        A missing ``SECUREVAULT_SECRET_KEY`` falls back to a random key for
        this process only: every issued token becomes invalid on restart.

        Returns:
            Populated Settings instance.
        """
        load_dotenv(dotenv_path)

        secret_key = _env("SECRET_KEY")
        if not secret_key:
            logger.warning(
                "%sSECRET_KEY not set; using an ephemeral signing key. "
                "Sessions will not survive a restart.", ENV_PREFIX,
            )
            secret_key = secrets.token_urlsafe(32)

        return cls(
            secret_key=secret_key,
            db_path=Path(_env("DB_PATH", "data/securevault.db")),
            audit_dir=Path(_env("AUDIT_DIR", "audit_logs")),
            token_ttl_days=int(_env("TOKEN_TTL_DAYS", "7")),
            otp_issuer=_env("OTP_ISSUER", "SecureVault"),
            otp_window=int(_env("OTP_WINDOW", "2")),
            bcrypt_rounds=int(_env("BCRYPT_ROUNDS", "12")),
            login_attempts_per_minute=int(_env("LOGIN_ATTEMPTS_PER_MINUTE", "10")),
            cors_origins=_env("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            trusted_proxies=_env("TRUSTED_PROXIES", ""),
        )
