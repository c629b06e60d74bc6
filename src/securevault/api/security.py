# API Security - Bearer token authentication
#
# Every protected route depends on `get_current_account`, which validates the
# session token from the Authorization header and returns an explicit
# AccountContext. Routes pass that context into the flow and stores; nothing
# reads the caller's identity from global or thread-local state.

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from ..core.errors import InvalidToken


@dataclass(frozen=True)
class AccountContext:
    """Identity of the authenticated caller for one request."""
    account_id: str


def get_services(request: Request):
    """FastAPI dependency returning the services wired in create_app()."""
    return request.app.state.services


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


async def get_current_account(
    authorization: Optional[str] = Header(None),
    services=Depends(get_services),
) -> AccountContext:
    """
    FastAPI dependency to authenticate the caller.

    Usage in routes:
        @router.get("/protected")
        def handler(account: AccountContext = Depends(get_current_account)): ...

    Raises:
        HTTPException: 401 if the token is missing, expired or invalid
    """
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        account_id = services.tokens.verify(token)
    except InvalidToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AccountContext(account_id=account_id)
