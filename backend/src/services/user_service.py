"""
Staff user management: creation and password login.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.constants import STAFF_ROLES
from models import User
from services.jwt_service import JWTService
from utils.datetime_utils import local_now

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class UserService:
    """Service class for staff user operations."""

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        full_name: str,
        role: str = "staff",
    ) -> User:
        """
        Create a staff user.

        Raises:
            ValueError: On an invalid role, empty name or short password
            HTTPException: 409 if the email is already registered
        """
        if role not in STAFF_ROLES:
            raise ValueError(f"Invalid role: {role}")
        if not full_name or not full_name.strip():
            raise ValueError("Full name is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = User(
            email=email.strip().lower(),
            password_hash=JWTService.hash_password(password),
            full_name=full_name.strip(),
            role=role,
            is_active=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A user with this email already exists"
            )
        db.refresh(user)
        logger.info(f"Created {role} user {user.id}")
        return user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Optional[User]:
        """
        Check a login.

        Returns:
            The user if the email exists, the account is active and the
            password matches; None otherwise
        """
        user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        if not user or not user.is_active:
            return None
        if not JWTService.verify_password(password, user.password_hash):
            return None
        user.last_login_at = local_now()
        db.commit()
        return user
