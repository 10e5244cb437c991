# backend/lendingdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Index,
    String,
)

from lendingdb.database import Base
from lendingdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountRole(str, enum.Enum):
    """Roles used by the routers; the borrow workflow itself never checks them."""

    ADMIN = "admin"
    STAFF = "staff"


class User(Base):
    """
    Staff or administrator account.

    Loan records reference users only as creator / verifier ids.
    """

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_role_active", "role", "is_active"),)

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(
        Enum(
            AccountRole,
            name="account_role_enum",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=AccountRole.STAFF,
        index=True,
    )
    hashed_password = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
