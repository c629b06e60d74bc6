# Auth API - signup and login
#
#   POST /api/auth/signup   create an account (2FA on) and return a token
#   POST /api/auth/login    password, then one-time code when 2FA is on
#
# Login attempts are limited per account, whatever address they come from.
# The client IP is recorded on throttle events. Both routes run the bcrypt
# work in FastAPI's threadpool (plain ``def`` handlers).

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from ..auth.results import AuthFailure, Authorized, OtpRequired
from ..core.audit_log import EventSeverity, EventType
from .errors import failure_to_http
from .rate_limiter import enforce_limit, get_client_ip
from .security import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request Models
class SignupRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str
    two_factor_token: Optional[str] = Field(None, max_length=16)


def _user(account_id: str) -> dict:
    return {"id": account_id, "email": account_id}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, services=Depends(get_services)):
    """
    Create an account.

    The response carries the new account's 2FA secret and QR code. It is
    the only time they are shown; the next login already needs a code.
    """
    result = services.flow.signup(body.email, body.password)
    if isinstance(result, AuthFailure):
        raise failure_to_http(result)

    setup = result.two_factor
    return {
        "token": result.token,
        "user": _user(result.account_id),
        "two_factor": {
            "secret": setup.secret,
            "qr_code": setup.qr_code,
            "uri": setup.uri,
        },
    }


@router.post("/login")
def login(body: LoginRequest, request: Request, services=Depends(get_services)):
    """
    Log in.

    Returns ``{"requires_two_factor": true}`` with status 200 when the
    password is right and a code is still needed.
    """
    email = body.email.strip().lower()
    client_ip = get_client_ip(request, services.settings.trusted_proxies)

    def _throttled():
        services.audit.log_auth_event(
            EventType.LOGIN_THROTTLED, email, "login attempt limit reached",
            severity=EventSeverity.ALERT,
            details={"client_ip": client_ip},
        )

    enforce_limit(services.limiter, f"login:{email}", on_reject=_throttled)

    result = services.flow.login(body.email, body.password, body.two_factor_token)
    if isinstance(result, OtpRequired):
        return {"requires_two_factor": True, "message": result.message}
    if isinstance(result, Authorized):
        return {"token": result.token, "user": _user(result.account_id)}
    raise failure_to_http(result)
