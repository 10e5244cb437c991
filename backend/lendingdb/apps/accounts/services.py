from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from lendingdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or the account is inactive."""


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.email == _normalise_email(email))
        .first()
    )


def list_users(db: Session) -> List[models.User]:
    return db.query(models.User).order_by(models.User.created_at.desc()).all()


def count_users(db: Session) -> int:
    return db.query(models.User).count()


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    email = _normalise_email(data.email)
    if get_user_by_email(db, email):
        raise ValueError("A user with this email already exists.")

    name = data.name.strip()
    if not name:
        raise ValueError("Name is required.")

    user = models.User(
        email=email,
        name=name,
        role=data.role,
        hashed_password=get_password_hash(data.password),
        is_active=True,
    )
    db.add(user)
    db.flush()
    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, *, login_req: schemas.LoginRequest) -> models.User:
    user = get_user_by_email(db, login_req.email)
    if user is None or not verify_password(login_req.password, user.hashed_password):
        logger.warning("Login failed", extra={"email": _normalise_email(login_req.email)})
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is inactive")
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "role": user.role.value if hasattr(user.role, "value") else str(user.role),
    }
    token = create_access_token(data=payload, expires_delta=expires_delta)
    return token, int(ACCESS_TOKEN_EXPIRE_MINUTES * 60)
