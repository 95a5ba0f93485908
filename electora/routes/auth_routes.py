import logging

from fastapi import APIRouter, Depends, HTTPException, status

from electora.config import Settings
from electora.crud import login_user, register_user
from electora.dependencies import get_app_settings, get_current_user, get_storage, require_manager
from electora.schemas import LoginRequest, RegisterRequest, TokenData, UserOut, UserRecord
from electora.security import create_access_token
from electora.storage import MemoryStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


def _token_for(user: UserRecord, settings: Settings) -> str:
    return create_access_token({"id": user.id, "username": user.username, "role": user.role}, settings=settings)


def _public(user: UserRecord) -> dict:
    return UserOut.model_validate(user).model_dump()


@router.post("/auth/login")
def login(
    credentials: LoginRequest,
    storage: MemoryStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    if not credentials.username or not credentials.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username and password are required")

    user, error = login_user(storage, credentials.username, credentials.password)
    if error:
        logger.warning(f"Failed login for {credentials.username}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error)

    return {
        "success": True,
        "message": "Login successful",
        "data": {"token": _token_for(user, settings), "user": _public(user)},
    }


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    storage: MemoryStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    user = register_user(storage, data)
    return {
        "success": True,
        "message": "Registration successful",
        "data": {"token": _token_for(user, settings), "user": _public(user)},
    }


# Tokens are stateless; the client drops its copy
@router.post("/auth/logout")
def logout(user: TokenData = Depends(get_current_user)):
    return {"success": True, "message": "Logout successful"}


@router.get("/auth/profile")
def profile(user: TokenData = Depends(get_current_user), storage: MemoryStorage = Depends(get_storage)):
    record = storage.get_user(user.id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"success": True, "data": _public(record)}


@router.get("/users")
def list_users(user: TokenData = Depends(require_manager), storage: MemoryStorage = Depends(get_storage)):
    return {"success": True, "data": [_public(u) for u in storage.list_users()]}
