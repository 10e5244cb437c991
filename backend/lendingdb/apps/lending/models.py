from __future__ import annotations

import enum
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from lendingdb.database import Base
from lendingdb.utils.identifiers import generate_uuid7
from lendingdb.apps.inventory import models as inventory_models


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoanStatusEnum(str, enum.Enum):
    BORROWED = "borrowed"
    RETURNED = "returned"
    # Derived for display only; never written to loan_records.status.
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class LoanRecord(Base):
    """
    One borrow transaction against an item.

    `item_name` is a snapshot taken when the loan is created and is kept for
    history if the item is later renamed. `item_live_name` resolves the
    current name through the joined item.
    """

    __tablename__ = "loan_records"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_loan_records_quantity_positive"),
        Index("ix_loan_records_item_status", "item_id", "status"),
        Index("ix_loan_records_status_return_date", "status", "return_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    item_id = Column(String(36), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    borrower_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    borrow_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    actual_return_date = Column(Date, nullable=True)
    status = Column(
        SAEnum(
            LoanStatusEnum,
            name="loan_status_enum",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=LoanStatusEnum.BORROWED,
        index=True,
    )
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    item = relationship(inventory_models.Item, lazy="joined")

    @property
    def item_live_name(self) -> Optional[str]:
        return self.item.name if self.item is not None else None

    def overdue_on(self, today: date) -> bool:
        return self.status == LoanStatusEnum.BORROWED and self.return_date < today

    @property
    def is_overdue(self) -> bool:
        return self.overdue_on(date.today())

    def __repr__(self) -> str:
        return f"<LoanRecord id={self.id} item={self.item_id} qty={self.quantity} status={self.status}>"
