"""FastAPI Dependencies

Request handlers reach the store and the caller's identity through these
instead of module globals, so each app instance (and each test) gets its
own state.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from electora.config import Settings
from electora.schemas import TokenData
from electora.security import decode_access_token
from electora.storage import MemoryStorage


def get_storage(request: Request) -> MemoryStorage:
    return request.app.state.storage


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def _decode(token: str, settings: Settings) -> TokenData:
    payload = decode_access_token(token, settings=settings)
    if not payload:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")
    try:
        return TokenData(id=payload["id"], username=payload["username"], role=payload["role"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")


def get_current_user(request: Request, settings: Settings = Depends(get_app_settings)) -> TokenData:
    """
    Extract the caller from the Authorization header.

    Raises:
        HTTPException 401 if no token was sent
        HTTPException 403 if the token is invalid or expired
    """
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")
    return _decode(token, settings)


def get_optional_user(request: Request, settings: Settings = Depends(get_app_settings)) -> Optional[TokenData]:
    """Caller if a valid token was sent, otherwise None."""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return _decode(token, settings)
    except HTTPException:
        return None


def require_manager(user: TokenData = Depends(get_current_user)) -> TokenData:
    if not user.is_manager:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return user
