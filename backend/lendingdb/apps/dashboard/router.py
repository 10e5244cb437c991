from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lendingdb.database import get_read_db
from lendingdb.security import get_current_active_user
from lendingdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=schemas.DashboardRead)
def read_dashboard(
    limit: int = 10,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return schemas.DashboardRead(
        stats=services.get_dashboard_stats(db),
        recent_activities=services.get_recent_activities(db, limit=limit),
    )
