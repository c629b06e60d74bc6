# Two-Factor API - setup, verify, disable, status
#
# All routes need a valid Bearer token. Setup stores a pending secret that is
# only trusted after /verify accepts a code generated from it.

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from ..auth.results import AuthFailure, FailureKind
from ..core.audit_log import EventSeverity, EventType
from .errors import failure_to_http
from .rate_limiter import enforce_limit, get_client_ip
from .security import AccountContext, get_current_account, get_services

router = APIRouter(prefix="/api/2fa", tags=["2fa"])


class VerifyRequest(BaseModel):
    token: str = Field(..., max_length=16)


class DisableRequest(BaseModel):
    password: str


def _limit(request: Request, services, account_id: str, action: str) -> None:
    def _throttled():
        services.audit.log_auth_event(
            EventType.LOGIN_THROTTLED, account_id, f"2FA {action} attempt limit reached",
            severity=EventSeverity.ALERT,
            details={"client_ip": get_client_ip(request, services.settings.trusted_proxies)},
        )

    enforce_limit(services.limiter, f"2fa-{action}:{account_id}", on_reject=_throttled)


@router.post("/setup")
def setup_two_factor(
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    """Generate a pending secret and its QR code."""
    result = services.flow.request_setup(account.account_id)
    if isinstance(result, AuthFailure):
        raise failure_to_http(result)
    return {"secret": result.secret, "qr_code": result.qr_code, "uri": result.uri}


@router.post("/verify")
def verify_two_factor(
    body: VerifyRequest,
    request: Request,
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    """Confirm the pending secret with a code and enable 2FA."""
    _limit(request, services, account.account_id, "verify")
    result = services.flow.confirm_setup(account.account_id, body.token)
    if isinstance(result, AuthFailure):
        raise failure_to_http(
            result, overrides={FailureKind.INVALID_OTP: status.HTTP_400_BAD_REQUEST},
        )
    return {"message": result.message}


@router.post("/disable")
def disable_two_factor(
    body: DisableRequest,
    request: Request,
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    """Turn 2FA off; requires the account password."""
    _limit(request, services, account.account_id, "disable")
    result = services.flow.disable(account.account_id, body.password)
    if isinstance(result, AuthFailure):
        raise failure_to_http(result)
    return {"message": result.message}


@router.get("/status")
def two_factor_status(
    account: AccountContext = Depends(get_current_account),
    services=Depends(get_services),
):
    result = services.flow.status(account.account_id)
    if isinstance(result, AuthFailure):
        raise failure_to_http(result)
    return {"enabled": result.enabled}
