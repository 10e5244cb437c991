from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel

from lendingdb.apps.lending.models import LoanStatusEnum


class DashboardStats(BaseModel):
    total_items: int
    total_borrowed: int
    damaged_items: int
    total_users: int


class RecentActivity(BaseModel):
    id: str
    type: str = "borrow"
    title: str
    description: str
    date: datetime
    status: LoanStatusEnum


class DashboardRead(BaseModel):
    stats: DashboardStats
    recent_activities: List[RecentActivity]
