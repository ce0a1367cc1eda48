# pyright: reportMissingTypeStubs=false
"""
Authentication API endpoints.

Handles staff login with email and password, and staff account creation
by admins.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth.dependencies import UserContext, get_current_user, require_admin_role
from core.database import get_db
from services.jwt_service import JWTService, TokenPayload
from services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


class UserCreateRequest(BaseModel):
    email: str
    password: str
    full_name: str
    role: str = "staff"


@router.post("/login", summary="Log in with email and password")
def login(request: LoginRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Exchange staff credentials for a bearer access token."""
    user = UserService.authenticate(db, request.email, request.password)
    if not user:
        logger.info(f"Failed login attempt for {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    access_token = JWTService.create_access_token(TokenPayload(
        sub=str(user.id),
        email=user.email,
        role=user.role,
        name=user.full_name,
    ))
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": JWTService.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": {
            "user_id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role,
        },
    }


@router.get("/me", summary="Current user")
def me(current_user: UserContext = Depends(get_current_user)) -> Dict[str, Any]:
    """Return the user behind the provided access token."""
    return {
        "user_id": current_user.user_id,
        "email": current_user.email,
        "full_name": current_user.name,
        "role": current_user.role,
    }


@router.post("/users", summary="Create a staff user", status_code=status.HTTP_201_CREATED)
def create_user(
    request: UserCreateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_admin_role),
) -> Dict[str, Any]:
    user = UserService.create_user(
        db, request.email, request.password, request.full_name, request.role
    )
    logger.info(f"User {current_user.user_id} created user {user.id}")
    return {
        "user_id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
    }
