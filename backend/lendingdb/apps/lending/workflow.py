"""
Borrow workflow.

Every operation here pairs a loan record change with the matching stock
change on its item and runs both in one unit of work: either both are
committed or the session is rolled back. Stock and status checks are made
by guarded UPDATE/DELETE statements (see `inventory.services.adjust_stock`
and `services.transition_status`), so concurrent requests against the same
item or record cannot both pass the check.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lendingdb.errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    StorageFailureError,
)
from lendingdb.apps.inventory import services as inventory_services
from lendingdb.apps.workflow import TransitionError, apply_transition
from . import models, schemas, services

logger = logging.getLogger(__name__)

ENTITY_TYPE = "loan_record"
LOAN_DELETE_MAX_ATTEMPTS = int(os.getenv("LOAN_DELETE_MAX_ATTEMPTS", "3"))


@contextmanager
def unit_of_work(db: Session, operation: str, **context) -> Iterator[None]:
    """
    Commit on success, roll back on any error.

    Storage errors are logged and re-raised as StorageFailureError; domain
    errors propagate unchanged after the rollback.
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Loan %s failed in storage", operation, extra=context)
        raise StorageFailureError(f"Failed to {operation}: storage error.") from exc
    except Exception:
        db.rollback()
        raise


def _validate_new_loan(
    *,
    borrower_name: str,
    quantity: int,
    borrow_date: date,
    return_date: date,
) -> None:
    if not borrower_name or not borrower_name.strip():
        raise InvalidInputError("Borrower name is required.", field="borrower_name")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidInputError("Quantity must be a positive whole number.", field="quantity")
    if return_date <= borrow_date:
        raise InvalidInputError("Return date must be after the borrow date.", field="return_date")


def create_loan(
    db: Session,
    *,
    item_id: str,
    borrower_name: str,
    quantity: int,
    return_date: date,
    borrow_date: Optional[date] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> models.LoanRecord:
    borrow_date = borrow_date or date.today()
    _validate_new_loan(
        borrower_name=borrower_name,
        quantity=quantity,
        borrow_date=borrow_date,
        return_date=return_date,
    )

    with unit_of_work(db, "create loan", item_id=item_id, quantity=quantity):
        # Reserve first: the item row stays locked until commit.
        item = inventory_services.adjust_stock(db, item_id=item_id, delta=-quantity)
        record = services.create_loan_record(
            db,
            item_id=item.id,
            item_name=item.name,
            borrower_name=borrower_name.strip(),
            quantity=quantity,
            borrow_date=borrow_date,
            return_date=return_date,
            notes=notes,
            created_by=created_by,
        )

    logger.info(
        "Loan created",
        extra={"loan_id": record.id, "item_id": item_id, "quantity": quantity, "stock": item.stock},
    )
    return services.get_loan(db, record.id, refresh=True)


def _check_transition(
    record: models.LoanRecord,
    to_state: models.LoanStatusEnum,
    after_obj: dict,
) -> None:
    try:
        apply_transition(
            None,
            entity_type=ENTITY_TYPE,
            entity_id=record.id,
            from_state=record.status.value,
            to_state=to_state.value,
            before_obj=record,
            after_obj=after_obj,
        )
    except TransitionError as exc:
        if exc.code == "missing_requirements":
            field = exc.detail[0]["field"] if exc.detail else None
            raise InvalidInputError(str(exc), field=field) from exc
        raise InvalidTransitionError(record.status.value, to_state.value) from exc


def _release(
    db: Session,
    *,
    loan_id: str,
    to_state: models.LoanStatusEnum,
    operation: str,
    fields: dict,
) -> models.LoanRecord:
    """Move a borrowed record to a terminal state and put its quantity back on the shelf."""
    with unit_of_work(db, operation, loan_id=loan_id):
        record = services.get_loan(db, loan_id, refresh=True)
        if record is None:
            raise NotFoundError("Loan record", loan_id)
        _check_transition(record, to_state, fields)

        if not services.transition_status(
            db,
            loan_id,
            from_status=record.status,
            to_status=to_state,
            **fields,
        ):
            current = services.get_loan(db, loan_id, refresh=True)
            if current is None:
                raise NotFoundError("Loan record", loan_id)
            raise InvalidTransitionError(current.status.value, to_state.value)

        item = inventory_services.adjust_stock(db, item_id=record.item_id, delta=record.quantity)

    logger.info(
        "Loan %s",
        to_state.value,
        extra={"loan_id": loan_id, "item_id": item.id, "quantity": record.quantity, "stock": item.stock},
    )
    return services.get_loan(db, loan_id, refresh=True)


def return_loan(
    db: Session,
    *,
    loan_id: str,
    actual_return_date: Optional[date] = None,
    notes: Optional[str] = None,
    verified_by: Optional[str] = None,
) -> models.LoanRecord:
    fields = {
        "actual_return_date": actual_return_date or date.today(),
        "verified_by": verified_by,
    }
    if notes is not None:
        fields["notes"] = notes
    return _release(
        db,
        loan_id=loan_id,
        to_state=models.LoanStatusEnum.RETURNED,
        operation="return loan",
        fields=fields,
    )


def cancel_loan(
    db: Session,
    *,
    loan_id: str,
    reason: Optional[str] = None,
) -> models.LoanRecord:
    fields = {"notes": reason} if reason is not None else {}
    return _release(
        db,
        loan_id=loan_id,
        to_state=models.LoanStatusEnum.CANCELLED,
        operation="cancel loan",
        fields=fields,
    )


def transition_loan(
    db: Session,
    *,
    loan_id: str,
    payload: schemas.LoanTransition,
    actor_user_id: Optional[str] = None,
) -> models.LoanRecord:
    """Route a PATCH status change to the matching workflow operation."""
    if payload.status == models.LoanStatusEnum.RETURNED:
        return return_loan(
            db,
            loan_id=loan_id,
            actual_return_date=payload.actual_return_date,
            notes=payload.notes,
            verified_by=actor_user_id,
        )
    if payload.status == models.LoanStatusEnum.CANCELLED:
        return cancel_loan(db, loan_id=loan_id, reason=payload.reason or payload.notes)

    record = services.get_loan(db, loan_id, refresh=True)
    if record is None:
        raise NotFoundError("Loan record", loan_id)
    _check_transition(record, payload.status, payload.model_dump())
    # Every pair the table accepts is handled above.
    raise InvalidTransitionError(record.status.value, payload.status.value)


def delete_loan(db: Session, *, loan_id: str) -> bool:
    """
    Administrative delete. A still-borrowed record gives its quantity back to
    the item; returned and cancelled records were reconciled already.
    """
    for attempt in range(1, LOAN_DELETE_MAX_ATTEMPTS + 1):
        with unit_of_work(db, "delete loan", loan_id=loan_id):
            record = services.get_loan(db, loan_id, refresh=True)
            if record is None:
                return False
            seen_status = record.status
            item_id, quantity = record.item_id, record.quantity

            if services.delete_if_status(db, loan_id, status=seen_status):
                if seen_status == models.LoanStatusEnum.BORROWED:
                    inventory_services.adjust_stock(db, item_id=item_id, delta=quantity)
                logger.info(
                    "Loan deleted",
                    extra={"loan_id": loan_id, "item_id": item_id, "status": seen_status.value},
                )
                return True

        logger.warning("Loan changed during delete, retrying", extra={"loan_id": loan_id, "attempt": attempt})

    raise StorageFailureError(f"Failed to delete loan {loan_id}: record kept changing.")
