from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from . import models


class LoanCreate(BaseModel):
    # quantity and dates are checked by the workflow so violations come back
    # as InvalidInputError (400) rather than request validation errors.
    item_id: str
    borrower_name: str = Field(..., max_length=255)
    quantity: int
    borrow_date: Optional[date] = None
    return_date: date
    notes: Optional[str] = None


class LoanTransition(BaseModel):
    """PATCH body: move a loan to `returned` or `cancelled`."""

    status: models.LoanStatusEnum
    actual_return_date: Optional[date] = None
    notes: Optional[str] = None
    reason: Optional[str] = None


class LoanRead(BaseModel):
    id: str
    item_id: str
    item_name: str
    item_live_name: Optional[str] = None
    borrower_name: str
    quantity: int
    borrow_date: date
    return_date: date
    actual_return_date: Optional[date] = None
    status: models.LoanStatusEnum
    is_overdue: bool = False
    notes: Optional[str] = None
    created_by: Optional[str] = None
    verified_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoanDeleted(BaseModel):
    success: bool = True
    id: str
    message: str = "Loan record deleted successfully"
