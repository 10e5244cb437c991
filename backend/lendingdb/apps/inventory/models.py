from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
)

from lendingdb.database import Base
from lendingdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ItemConditionEnum(str, enum.Enum):
    GOOD = "good"
    DAMAGED = "damaged"
    NEEDS_REPAIR = "needs_repair"


class Item(Base):
    """
    A lendable item and its on-shelf stock.

    `stock` counts units currently on the shelf; units out on loan are
    represented by `borrowed` loan records, not by a second counter.
    """

    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        Index("ix_items_category_name", "category", "name"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(255), nullable=False, index=True)
    stock = Column(Integer, nullable=False, default=0)
    location = Column(String(255), nullable=False)
    condition = Column(
        SAEnum(
            ItemConditionEnum,
            name="item_condition_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=ItemConditionEnum.GOOD,
        index=True,
    )
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} stock={self.stock}>"
