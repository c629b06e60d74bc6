# API Errors - flow results to HTTP responses
#
# The only place a FailureKind becomes an HTTP status. Routes that need a
# different status for a kind (2FA verify answers a bad code with 400, not
# 401) pass an override.

from typing import Dict, Optional

from fastapi import HTTPException, status

from ..auth.results import AuthFailure, FailureKind

STATUS_BY_KIND: Dict[FailureKind, int] = {
    FailureKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    FailureKind.INVALID_OTP: status.HTTP_401_UNAUTHORIZED,
    FailureKind.ACCOUNT_EXISTS: status.HTTP_400_BAD_REQUEST,
    FailureKind.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.OTP_NOT_CONFIGURED: status.HTTP_400_BAD_REQUEST,
    FailureKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    FailureKind.THROTTLED: status.HTTP_429_TOO_MANY_REQUESTS,
}


def failure_to_http(
    failure: AuthFailure,
    overrides: Optional[Dict[FailureKind, int]] = None,
) -> HTTPException:
    """Build the HTTPException for a failed flow result."""
    code = (overrides or {}).get(failure.kind, STATUS_BY_KIND[failure.kind])
    return HTTPException(status_code=code, detail=failure.message)
