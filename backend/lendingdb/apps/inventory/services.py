from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lendingdb.errors import InsufficientStockError, NotFoundError
from . import models, schemas

logger = logging.getLogger(__name__)

# NOT NULL columns an update may not clear.
REQUIRED_ITEM_FIELDS = frozenset({"name", "category", "stock", "location", "condition"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_item(db: Session, item_id: str, *, refresh: bool = False) -> Optional[models.Item]:
    if not item_id:
        return None
    return db.get(models.Item, item_id, populate_existing=refresh)


def require_item(db: Session, item_id: str, *, refresh: bool = False) -> models.Item:
    item = get_item(db, item_id, refresh=refresh)
    if item is None:
        raise NotFoundError("Item", item_id)
    return item


def adjust_stock(db: Session, *, item_id: str, delta: int) -> models.Item:
    """
    Apply `stock += delta` as one guarded statement.

    The WHERE clause carries the non-negative check, so the compare and the
    write happen under the same row lock (PostgreSQL) or database write lock
    (SQLite). Nothing is committed here; the caller owns the transaction.
    """
    updated = (
        db.query(models.Item)
        .filter(models.Item.id == item_id, models.Item.stock + delta >= 0)
        .update(
            {models.Item.stock: models.Item.stock + delta, models.Item.updated_at: _utcnow()},
            synchronize_session=False,
        )
    )
    if updated == 0:
        item = get_item(db, item_id, refresh=True)
        if item is None:
            raise NotFoundError("Item", item_id)
        raise InsufficientStockError(item_id=item_id, requested=abs(delta), available=item.stock)

    item = get_item(db, item_id, refresh=True)
    logger.debug("Stock adjusted", extra={"item_id": item_id, "delta": delta, "stock": item.stock})
    return item


def list_items(
    db: Session,
    *,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> List[models.Item]:
    query = db.query(models.Item)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                models.Item.name.ilike(pattern),
                models.Item.category.ilike(pattern),
                models.Item.location.ilike(pattern),
                models.Item.description.ilike(pattern),
            )
        )
    if category:
        return query.filter(models.Item.category == category).order_by(models.Item.name.asc()).all()
    return query.order_by(models.Item.created_at.desc()).all()


def create_item(db: Session, payload: schemas.ItemCreate) -> models.Item:
    item = models.Item(**payload.model_dump())
    db.add(item)
    db.flush()
    logger.info("Item created", extra={"item_id": item.id, "stock": item.stock})
    return item


def update_item(db: Session, *, item_id: str, payload: schemas.ItemUpdate) -> models.Item:
    """
    Administrative edit. Writing `stock` here bypasses the borrow workflow and
    is not covered by its stock conservation guarantee.
    """
    item = require_item(db, item_id)
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_ITEM_FIELDS
    }
    if "stock" in changes:
        logger.info(
            "Item stock overwritten by direct edit",
            extra={"item_id": item_id, "old_stock": item.stock, "new_stock": changes["stock"]},
        )
    for field, value in changes.items():
        setattr(item, field, value)
    item.updated_at = _utcnow()
    db.add(item)
    db.flush()
    return item


def delete_item(db: Session, *, item_id: str) -> bool:
    from lendingdb.apps.lending import models as lending_models

    item = get_item(db, item_id)
    if item is None:
        return False

    loans = db.query(lending_models.LoanRecord).filter(lending_models.LoanRecord.item_id == item_id)
    open_loans = loans.filter(
        lending_models.LoanRecord.status == lending_models.LoanStatusEnum.BORROWED
    ).count()
    if open_loans:
        logger.warning(
            "Deleting item with loans still out",
            extra={"item_id": item_id, "open_loans": open_loans},
        )
    # Same effect as the ON DELETE CASCADE, also on SQLite without FK enforcement.
    loans.delete(synchronize_session=False)
    db.delete(item)
    db.flush()
    return True
