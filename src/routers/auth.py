# src/routers/auth.py

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import AppSettings, get_settings
from src.auth.schemas import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, User
from src.auth.tokens import UserRegistry, authenticate_user, default_registry, validate_token

_log = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])

# --- Error Definitions ---
AUTH_ERROR_DETAIL_MISSING = ErrorDetail(code="AUTH_001", message="Authentication credentials were not provided.")
AUTH_ERROR_DETAIL_INVALID = ErrorDetail(code="AUTH_002", message="Invalid or expired token.")

# auto_error=False: a missing header yields None instead of a 403
bearer_scheme = HTTPBearer(auto_error=False, description="Bearer token from /auth/login.")


@lru_cache()
def get_user_registry() -> UserRegistry:
    return default_registry()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    registry: UserRegistry = Depends(get_user_registry),
    settings: AppSettings = Depends(get_settings),
) -> Optional[User]:
    """The caller if a valid token was sent, otherwise None."""
    if credentials is None:
        return None
    return validate_token(credentials.credentials, registry, settings)


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user: Optional[User] = Depends(get_current_user),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorResponse(detail=AUTH_ERROR_DETAIL_MISSING).model_dump(),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorResponse(detail=AUTH_ERROR_DETAIL_INVALID).model_dump(),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# --- Endpoint Implementations ---

@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in by email",
    responses={
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"description": "Malformed email address"},
    },
)
def login(
    request: LoginRequest,
    registry: UserRegistry = Depends(get_user_registry),
    settings: AppSettings = Depends(get_settings),
):
    """
    Logs a user in with just an email address.
    - Unknown emails get an account on the spot.
    - The returned token is opaque; send it back as `Authorization: Bearer <token>`.
    """
    result = authenticate_user(request.email, registry, settings)
    _log.info(f"User {result['user'].id} logged in.")
    return LoginResponse(token=result["token"], user=result["user"])


@router.get(
    "/me",
    response_model=User,
    summary="Current user",
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse, "description": "Missing or invalid token"},
    },
)
def read_current_user(user: User = Depends(require_user)):
    return user
