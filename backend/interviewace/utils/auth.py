"""
Authentication utilities - resolve JWT bearer tokens to an owner id.

Tokens are issued by the account service; this backend only verifies them.
"""

from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..models import TokenData

# Bearer token security
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decode and verify a JWT access token.

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None
    return TokenData(user_id=str(user_id), email=payload.get("email"))


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> str:
    """
    Dependency to get current user ID from JWT token.

    Raises:
        HTTPException: If token is invalid
    """
    token_data = decode_access_token(credentials.credentials)
    if token_data is None or token_data.user_id is None:
        raise _credentials_exception()
    return token_data.user_id


async def get_stream_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    token: Optional[str] = Query(None, description="Access token for clients that cannot set headers"),
) -> str:
    """
    Like :func:`get_current_user_id`, but also accepts ``?token=`` because
    browser EventSource connections cannot send an Authorization header.
    """
    raw_token = credentials.credentials if credentials else token
    if not raw_token:
        raise _credentials_exception()
    token_data = decode_access_token(raw_token)
    if token_data is None or token_data.user_id is None:
        raise _credentials_exception()
    return token_data.user_id
