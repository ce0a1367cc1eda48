# pyright: reportMissingTypeStubs=false
"""
Authentication and authorization dependencies for FastAPI.

Provides dependency injection functions for staff authentication and
role-based access control. Public booking endpoints use none of these.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.database import get_db
from services.jwt_service import JWTService, TokenPayload
from models import User

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated staff user context extracted from JWT token."""

    def __init__(
        self,
        user_id: int,
        email: str,
        role: str,
        name: str,
    ):
        self.user_id = user_id  # Also the owner_id of the user's availability data
        self.email = email
        self.role = role  # "admin" or "staff"
        self.name = name

    def has_role(self, role: str) -> bool:
        """Check if user has a specific role. Admins have every role."""
        return self.role == role or self.role == "admin"

    def __repr__(self) -> str:
        return f"UserContext(user_id={self.user_id}, email='{self.email}', role='{self.role}')"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None
    return JWTService.verify_token(credentials.credentials)


def get_current_user(
    payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> UserContext:
    """Get authenticated user context from JWT token."""
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    try:
        user_id = int(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject"
        )

    user = db.query(User).filter(User.id == user_id, User.email == payload.email).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled, contact an administrator"
        )

    return UserContext(
        user_id=user.id,
        email=user.email,
        role=user.role,
        name=user.full_name,
    )


# Role-based authorization dependencies
def require_staff(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Require any staff role (staff or admin)."""
    if not user.has_role("staff"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required"
        )
    return user


def require_admin_role(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Require admin role."""
    if not user.has_role("admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
