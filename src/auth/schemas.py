# src/auth/schemas.py
from datetime import datetime

from pydantic import Field

from services.style_engine.models import CamelModel


class User(CamelModel):
    id: str
    email: str
    name: str
    created_at: datetime


class ErrorDetail(CamelModel):
    """Standard error response detail."""
    code: str = Field(..., description="Application-specific error code.")
    message: str = Field(..., description="User-friendly error message.")


class ErrorResponse(CamelModel):
    """Standard error response model."""
    detail: ErrorDetail


# --- Endpoint Schemas ---

class LoginRequest(CamelModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$", description="User's email address.")


class LoginResponse(CamelModel):
    token: str = Field(..., description="Bearer token for subsequent requests.")
    token_type: str = Field("bearer", description="Token type (always 'bearer').")
    user: User
