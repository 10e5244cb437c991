from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lendingdb.database import get_db
from lendingdb.errors import translate_errors
from lendingdb.security import get_current_active_user, require_admin
from lendingdb.apps.accounts import models as account_models
from lendingdb.apps.lending import schemas as lending_schemas
from lendingdb.apps.lending import services as lending_services

from . import schemas, services

router = APIRouter(prefix="/items", tags=["items"])


@router.get("", response_model=List[schemas.ItemRead])
def list_items(
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_items(db, category=category, search=search)


@router.post(
    "",
    response_model=schemas.ItemRead,
    status_code=status.HTTP_201_CREATED,
)
def create_item(
    payload: schemas.ItemCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    item = services.create_item(db, payload)
    db.commit()
    db.refresh(item)
    return item


@router.get("/{item_id}", response_model=schemas.ItemRead)
def get_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    with translate_errors():
        return services.require_item(db, item_id)


@router.put("/{item_id}", response_model=schemas.ItemRead)
def update_item(
    item_id: str,
    payload: schemas.ItemUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    with translate_errors():
        item = services.update_item(db, item_id=item_id, payload=payload)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{item_id}")
def delete_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    if not services.delete_item(db, item_id=item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Item {item_id} not found.")
    db.commit()
    return {"success": True, "id": item_id}


@router.get("/{item_id}/loans", response_model=List[lending_schemas.LoanRead])
def list_item_loans(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    with translate_errors():
        services.require_item(db, item_id)
    return lending_services.list_loans_by_item(db, item_id=item_id)
