from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from lendingdb.database import get_db
from lendingdb.errors import translate_errors
from lendingdb.security import get_current_active_user, require_admin, require_roles
from lendingdb.apps.accounts import models as account_models
from lendingdb.apps.accounts.models import AccountRole

from . import models, schemas, services, workflow

router = APIRouter(prefix="/loans", tags=["loans"])

LOAN_WRITE_ROLES = [AccountRole.ADMIN, AccountRole.STAFF]


@router.post(
    "",
    response_model=schemas.LoanRead,
    status_code=status.HTTP_201_CREATED,
)
def create_loan(
    payload: schemas.LoanCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LOAN_WRITE_ROLES)),
):
    with translate_errors():
        return workflow.create_loan(
            db,
            item_id=payload.item_id,
            borrower_name=payload.borrower_name,
            quantity=payload.quantity,
            borrow_date=payload.borrow_date,
            return_date=payload.return_date,
            notes=payload.notes,
            created_by=current_user.id,
        )


@router.get("", response_model=List[schemas.LoanRead])
def list_loans(
    status_filter: Annotated[Optional[models.LoanStatusEnum], Query(alias="status")] = None,
    overdue: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_loans(db, status=status_filter, overdue=overdue)


@router.get("/{loan_id}", response_model=schemas.LoanRead)
def get_loan(
    loan_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    record = services.get_loan(db, loan_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Loan record {loan_id} not found.")
    return record


@router.patch("/{loan_id}", response_model=schemas.LoanRead)
def transition_loan(
    loan_id: str,
    payload: schemas.LoanTransition,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LOAN_WRITE_ROLES)),
):
    with translate_errors():
        return workflow.transition_loan(
            db,
            loan_id=loan_id,
            payload=payload,
            actor_user_id=current_user.id,
        )


@router.delete("/{loan_id}", response_model=schemas.LoanDeleted)
def delete_loan(
    loan_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    with translate_errors():
        deleted = workflow.delete_loan(db, loan_id=loan_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Loan record {loan_id} not found.")
    return schemas.LoanDeleted(id=loan_id)
