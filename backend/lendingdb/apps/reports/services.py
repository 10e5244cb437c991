from __future__ import annotations

import csv
import enum
import io
from datetime import date, datetime
from typing import Any, Iterable, List, Sequence

from sqlalchemy.orm import Session

from lendingdb.apps.accounts import services as account_services
from lendingdb.apps.inventory import services as inventory_services
from lendingdb.apps.lending import services as lending_services

USER_COLUMNS = ["name", "email", "role", "created_at"]
ITEM_COLUMNS = [
    "id",
    "name",
    "category",
    "stock",
    "location",
    "condition",
    "description",
    "created_at",
    "updated_at",
]
LOAN_COLUMNS = [
    "id",
    "item_id",
    "item_name",
    "borrower_name",
    "quantity",
    "borrow_date",
    "return_date",
    "actual_return_date",
    "status",
    "is_overdue",
    "notes",
    "created_by",
    "verified_by",
    "created_at",
]


def _serialize_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _render_csv(columns: Sequence[str], rows: Iterable[Any]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_serialize_value(getattr(row, column)) for column in columns])
    return buffer.getvalue()


def export_users_csv(db: Session) -> str:
    return _render_csv(USER_COLUMNS, account_services.list_users(db))


def export_items_csv(db: Session) -> str:
    return _render_csv(ITEM_COLUMNS, inventory_services.list_items(db))


def export_loans_csv(db: Session) -> str:
    return _render_csv(LOAN_COLUMNS, lending_services.list_loans(db))


def export_filename(kind: str, *, today: date | None = None) -> str:
    today = today or date.today()
    return f"{kind}-{today.isoformat()}.csv"


REPORTS = {
    "users": export_users_csv,
    "items": export_items_csv,
    "loans": export_loans_csv,
}


def available_reports() -> List[str]:
    return sorted(REPORTS)
