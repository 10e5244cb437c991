from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from lendingdb.apps.accounts import models as account_models
from lendingdb.apps.inventory import models as inventory_models
from lendingdb.apps.lending import models as lending_models
from lendingdb.apps.lending import services as lending_services
from . import schemas


def get_dashboard_stats(db: Session) -> schemas.DashboardStats:
    total_items = db.query(inventory_models.Item).count()
    # Counts loan records, not units: a record with quantity 3 counts once.
    total_borrowed = (
        db.query(lending_models.LoanRecord)
        .filter(lending_models.LoanRecord.status == lending_models.LoanStatusEnum.BORROWED)
        .count()
    )
    damaged_items = (
        db.query(inventory_models.Item)
        .filter(inventory_models.Item.condition == inventory_models.ItemConditionEnum.DAMAGED)
        .count()
    )
    total_users = db.query(account_models.User).count()
    return schemas.DashboardStats(
        total_items=total_items,
        total_borrowed=total_borrowed,
        damaged_items=damaged_items,
        total_users=total_users,
    )


def get_recent_activities(db: Session, *, limit: int = 10) -> List[schemas.RecentActivity]:
    activities: List[schemas.RecentActivity] = []
    for record in lending_services.list_recent_loans(db, limit=limit):
        activities.append(
            schemas.RecentActivity(
                id=record.id,
                title=f"Loan of {record.item_live_name or record.item_name}",
                description=f"Borrowed by {record.borrower_name}",
                date=record.created_at,
                status=record.status,
            )
        )
    return activities
