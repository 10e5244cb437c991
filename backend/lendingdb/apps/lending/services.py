"""
Loan record store.

Plain persistence for loan records. Business rules (stock checks, allowed
status changes) belong to `workflow.py`; the guarded helpers at the bottom
only give the workflow compare-and-swap primitives.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from lendingdb.errors import NotFoundError
from . import models


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_loan(db: Session, loan_id: str, *, refresh: bool = False) -> Optional[models.LoanRecord]:
    if not loan_id:
        return None
    return db.get(models.LoanRecord, loan_id, populate_existing=refresh)


def create_loan_record(
    db: Session,
    *,
    item_id: str,
    item_name: str,
    borrower_name: str,
    quantity: int,
    borrow_date: date,
    return_date: date,
    status: models.LoanStatusEnum = models.LoanStatusEnum.BORROWED,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> models.LoanRecord:
    record = models.LoanRecord(
        item_id=item_id,
        item_name=item_name,
        borrower_name=borrower_name,
        quantity=quantity,
        borrow_date=borrow_date,
        return_date=return_date,
        status=status,
        notes=notes,
        created_by=created_by,
    )
    db.add(record)
    db.flush()
    return record


def update_loan_record(db: Session, loan_id: str, **fields) -> models.LoanRecord:
    record = get_loan(db, loan_id)
    if record is None:
        raise NotFoundError("Loan record", loan_id)
    for field, value in fields.items():
        setattr(record, field, value)
    record.updated_at = _utcnow()
    db.add(record)
    db.flush()
    return record


def delete_loan_record(db: Session, loan_id: str) -> bool:
    record = get_loan(db, loan_id)
    if record is None:
        return False
    db.delete(record)
    db.flush()
    return True


def list_loans(
    db: Session,
    *,
    status: Optional[models.LoanStatusEnum] = None,
    overdue: Optional[bool] = None,
    today: Optional[date] = None,
) -> List[models.LoanRecord]:
    query = db.query(models.LoanRecord)
    if status == models.LoanStatusEnum.OVERDUE:
        overdue, status = True, None
    if status is not None:
        query = query.filter(models.LoanRecord.status == status)
    if overdue is not None:
        today = today or date.today()
        late = (models.LoanRecord.status == models.LoanStatusEnum.BORROWED) & (
            models.LoanRecord.return_date < today
        )
        query = query.filter(late if overdue else ~late)
    return query.order_by(models.LoanRecord.created_at.desc()).all()


def list_loans_by_item(db: Session, *, item_id: str) -> List[models.LoanRecord]:
    return (
        db.query(models.LoanRecord)
        .filter(models.LoanRecord.item_id == item_id)
        .order_by(models.LoanRecord.created_at.desc())
        .all()
    )


def list_recent_loans(db: Session, *, limit: int = 10) -> List[models.LoanRecord]:
    return (
        db.query(models.LoanRecord)
        .order_by(models.LoanRecord.created_at.desc())
        .limit(limit)
        .all()
    )


# ---------------------------------------------------------------------------
# Guarded writes
# ---------------------------------------------------------------------------


def transition_status(
    db: Session,
    loan_id: str,
    *,
    from_status: models.LoanStatusEnum,
    to_status: models.LoanStatusEnum,
    **fields,
) -> bool:
    """
    Set the status only if it still equals `from_status`.

    Returns False when another request changed (or deleted) the record first.
    """
    values = {getattr(models.LoanRecord, name): value for name, value in fields.items()}
    values[models.LoanRecord.status] = to_status
    values[models.LoanRecord.updated_at] = _utcnow()
    updated = (
        db.query(models.LoanRecord)
        .filter(models.LoanRecord.id == loan_id, models.LoanRecord.status == from_status)
        .update(values, synchronize_session=False)
    )
    return updated == 1


def delete_if_status(db: Session, loan_id: str, *, status: models.LoanStatusEnum) -> bool:
    deleted = (
        db.query(models.LoanRecord)
        .filter(models.LoanRecord.id == loan_id, models.LoanRecord.status == status)
        .delete(synchronize_session="fetch")
    )
    return deleted == 1
