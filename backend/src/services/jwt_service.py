"""
JWT Service for staff access tokens and password hashing.

Provides token creation and validation for the staff API, and the bcrypt
password hashing used at login.
"""

import base64
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from pydantic import BaseModel

from core.config import JWT_SECRET_KEY, JWT_ACCESS_TOKEN_EXPIRE_MINUTES


class TokenPayload(BaseModel):
    """Payload structure for JWT tokens."""
    sub: str  # Staff user ID
    email: str
    role: str  # "admin" or "staff"
    name: str
    iat: Optional[int] = None  # Set by JWT service
    exp: Optional[int] = None  # Set by JWT service


class JWTService:
    """Service for JWT token operations."""

    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = JWT_ACCESS_TOKEN_EXPIRE_MINUTES

    @classmethod
    def create_access_token(cls, payload: TokenPayload) -> str:
        """Create a JWT access token."""
        to_encode = payload.model_dump(exclude={"iat", "exp"})
        now = datetime.now(timezone.utc)
        to_encode.update({"exp": now + timedelta(minutes=cls.ACCESS_TOKEN_EXPIRE_MINUTES), "iat": now})
        return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def verify_token(cls, token: str) -> Optional[TokenPayload]:
        """Verify and decode a JWT token."""
        try:
            payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[cls.ALGORITHM])
            return TokenPayload(**payload)
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    @classmethod
    def _prehash(cls, password: str) -> bytes:
        # SHA-256 first so long passwords stay within bcrypt's 72-byte limit
        return base64.b64encode(hashlib.sha256(password.encode('utf-8')).digest())

    @classmethod
    def hash_password(cls, password: str) -> str:
        """Create a bcrypt hash of a password."""
        return bcrypt.hashpw(cls._prehash(password), bcrypt.gensalt()).decode('utf-8')

    @classmethod
    def verify_password(cls, password: str, hashed_password: str) -> bool:
        """Verify a password against its bcrypt hash."""
        try:
            return bcrypt.checkpw(cls._prehash(password), hashed_password.encode('utf-8'))
        except ValueError:
            return False
