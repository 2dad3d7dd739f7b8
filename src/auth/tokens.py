# src/auth/tokens.py
# Login stub: users live in memory, tokens are HS256 JWTs that clients treat as opaque.
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt

from config.settings import AppSettings, get_settings
from src.auth.schemas import User

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "kinetic-style-assessment"


# --- Custom Exceptions ---
class TokenError(Exception):
    """Base class for token-related errors."""
    def __init__(self, message="Token error occurred", code="TOKEN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

class TokenExpired(TokenError):
    """Raised when a token's expiration time has passed."""
    def __init__(self, message="Token has expired", code="TOKEN_EXPIRED"):
        super().__init__(message, code)

class TokenInvalid(TokenError):
    """Raised when a token is invalid (bad signature, wrong format, claims etc.)."""
    def __init__(self, message="Token is invalid", code="TOKEN_INVALID"):
        super().__init__(message, code)


class UserRegistry:
    """In-memory user store. Not durable; a restart forgets everyone."""

    def __init__(self, users: Optional[List[User]] = None):
        self._users: Dict[str, User] = {u.id: u for u in users or []}

    def find_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self._users.values() if u.email == email), None)

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def create(self, email: str, name: Optional[str] = None) -> User:
        email = email.lower()
        user = User(
            id=uuid.uuid4().hex,
            email=email,
            name=name or email.split("@")[0],
            created_at=datetime.now(timezone.utc),
        )
        self._users[user.id] = user
        logger.info(f"Created user {user.id} for {email}")
        return user


def default_registry() -> UserRegistry:
    return UserRegistry([
        User(id="1", email="demo@example.com", name="Demo User", created_at=datetime.now(timezone.utc)),
    ])


def create_token(user: User, settings: Optional[AppSettings] = None) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user.id,
        "iat": now,
        "exp": now + timedelta(seconds=settings.auth_token_ttl_seconds),
        "iss": TOKEN_ISSUER,
    }
    return jwt.encode(payload, settings.auth_secret, algorithm=settings.auth_algorithm)


def decode_token(token: str, settings: Optional[AppSettings] = None) -> Dict[str, Any]:
    """
    Decodes and validates a token.

    Raises:
        TokenExpired: If the token has expired.
        TokenInvalid: If the token is malformed or its signature does not match.
    """
    settings = settings or get_settings()
    if not token:
        raise TokenInvalid("Token cannot be empty.")
    try:
        return jwt.decode(
            token,
            settings.auth_secret,
            algorithms=[settings.auth_algorithm],
            issuer=TOKEN_ISSUER,
            options={"require": ["exp", "iat", "sub", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.PyJWTError as e:
        raise TokenInvalid(f"Token is invalid: {e}")


def authenticate_user(email: str, registry: UserRegistry, settings: Optional[AppSettings] = None) -> Dict[str, Any]:
    """Logs a user in by email alone, creating the account on first use."""
    user = registry.find_by_email(email)
    if user is None:
        user = registry.create(email)
    return {"user": user, "token": create_token(user, settings)}


def validate_token(token: str, registry: UserRegistry, settings: Optional[AppSettings] = None) -> Optional[User]:
    """The user a token belongs to, or None when the token is unusable."""
    try:
        payload = decode_token(token, settings)
    except TokenError as e:
        logger.info(f"Rejected token: {e.code}")
        return None
    return registry.get(payload["sub"])
