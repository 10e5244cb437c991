# backend/lendingdb/security.py

"""
Authentication and role checks for the lending API.

- Argon2id password hashes
- HS256 bearer tokens carrying the user id (`sub`) and role
- FastAPI dependencies: current user, active user, admin-only, role sets

Only routers use these. The item ledger and the borrow workflow take user
ids as plain references and never look at roles.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Callable, FrozenSet, Optional, Union

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .database import get_db
from lendingdb.apps.accounts import models as account_models
from lendingdb.apps.accounts import schemas as account_schemas
from lendingdb.apps.accounts.models import AccountRole

# ---------------------------------------------------------------------------
# CONFIG
# ---------------------------------------------------------------------------

SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

_pwd_hasher = PasswordHasher(
    time_cost=int(os.getenv("ARGON2_TIME_COST", "3")),
    memory_cost=int(os.getenv("ARGON2_MEMORY_COST", "65536")),  # KiB
    parallelism=int(os.getenv("ARGON2_PARALLELISM", "2")),
)


# ---------------------------------------------------------------------------
# PASSWORDS
# ---------------------------------------------------------------------------


def get_password_hash(password: str) -> str:
    return _pwd_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    # Accounts created without a password (seeded fixtures) can never log in.
    if not plain_password or not hashed_password:
        return False
    try:
        return _pwd_hasher.verify(hashed_password, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


# ---------------------------------------------------------------------------
# TOKENS
# ---------------------------------------------------------------------------


def create_access_token(*, data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign `data` (expects at least `sub`) with an `exp` claim added."""
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> account_schemas.TokenData:
    """Raises JWTError for bad signatures or expiry, ValidationError for bad claims."""
    claims = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    return account_schemas.TokenData(**claims)


# ---------------------------------------------------------------------------
# DEPENDENCIES
# ---------------------------------------------------------------------------


def get_user_by_id(db: Session, user_id: Union[str, None]) -> Optional[account_models.User]:
    if not user_id:
        return None
    return db.get(account_models.User, str(user_id).strip())


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> account_models.User:
    unauthorised = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token_data = decode_access_token(token)
    except (JWTError, ValidationError):
        raise unauthorised

    user = get_user_by_id(db, token_data.sub)
    if user is None:
        raise unauthorised
    return user


def get_current_active_user(
    current_user: account_models.User = Depends(get_current_user),
) -> account_models.User:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user account",
        )
    return current_user


def require_admin(
    current_user: account_models.User = Depends(get_current_active_user),
) -> account_models.User:
    if current_user.role != AccountRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient privileges",
        )
    return current_user


def require_roles(
    *allowed_roles: Union[AccountRole, str],
) -> Callable[[account_models.User], account_models.User]:
    """
    Dependency factory for role-gated routes:

        current_user: User = Depends(require_roles(AccountRole.STAFF))

    Admins always pass. Unknown role names fail at import time.
    """
    roles: FrozenSet[AccountRole] = frozenset(AccountRole(role) for role in allowed_roles)

    def dependency(
        current_user: account_models.User = Depends(get_current_active_user),
    ) -> account_models.User:
        if current_user.role == AccountRole.ADMIN or current_user.role in roles:
            return current_user
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions for this operation",
        )

    return dependency
