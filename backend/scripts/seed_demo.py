from __future__ import annotations

from datetime import date, timedelta

from lendingdb.database import WriteSessionLocal
from lendingdb.apps.accounts import models as account_models
from lendingdb.apps.accounts import schemas as account_schemas
from lendingdb.apps.accounts import services as account_services
from lendingdb.apps.inventory import models as inventory_models
from lendingdb.apps.inventory import schemas as inventory_schemas
from lendingdb.apps.inventory import services as inventory_services
from lendingdb.apps.lending import services as lending_services
from lendingdb.apps.lending import workflow

DEMO_USERS = [
    ("admin@kdju.com", "Administrator", account_models.AccountRole.ADMIN, "admin123"),
    ("staff@kdju.com", "Staff KDJU", account_models.AccountRole.STAFF, "staff123"),
]

DEMO_ITEMS = [
    inventory_schemas.ItemCreate(
        name="Proyektor Epson",
        category="Elektronik",
        stock=3,
        location="Gudang A",
        description="Proyektor untuk presentasi",
    ),
    inventory_schemas.ItemCreate(
        name="Kursi Lipat",
        category="Furnitur",
        stock=50,
        location="Gudang B",
        description="Kursi lipat untuk acara",
    ),
    inventory_schemas.ItemCreate(
        name="Sound System",
        category="Elektronik",
        stock=2,
        location="Gudang A",
        condition=inventory_models.ItemConditionEnum.NEEDS_REPAIR,
        description="Speaker dan mixer",
    ),
]


def _get_or_create_users(db) -> dict:
    users = {}
    for email, name, role, password in DEMO_USERS:
        user = account_services.get_user_by_email(db, email)
        if user is None:
            user = account_services.create_user(
                db,
                account_schemas.UserCreate(email=email, name=name, role=role, password=password),
            )
            print(f"[OK] Created user {email} ({role.value})")
        users[role] = user
    db.commit()
    return users


def _get_or_create_items(db) -> list:
    items = []
    for payload in DEMO_ITEMS:
        existing = inventory_services.list_items(db, search=payload.name)
        item = next((candidate for candidate in existing if candidate.name == payload.name), None)
        if item is None:
            item = inventory_services.create_item(db, payload)
            print(f"[OK] Created item {item.name} (stock {item.stock})")
        items.append(item)
    db.commit()
    return items


def _seed_loans(db, items: list, staff: account_models.User) -> None:
    if lending_services.list_recent_loans(db, limit=1):
        print("[INFO] Loans already present, skipping.")
        return
    projector, chairs, _ = items
    today = date.today()
    workflow.create_loan(
        db,
        item_id=projector.id,
        borrower_name="Budi Santoso",
        quantity=1,
        borrow_date=today - timedelta(days=10),
        return_date=today - timedelta(days=3),
        notes="Rapat bulanan",
        created_by=staff.id,
    )
    returned = workflow.create_loan(
        db,
        item_id=chairs.id,
        borrower_name="Siti Aminah",
        quantity=20,
        borrow_date=today - timedelta(days=5),
        return_date=today - timedelta(days=1),
        created_by=staff.id,
    )
    workflow.return_loan(db, loan_id=returned.id, actual_return_date=today - timedelta(days=1))
    workflow.create_loan(
        db,
        item_id=chairs.id,
        borrower_name="Andi Wijaya",
        quantity=10,
        return_date=today + timedelta(days=7),
        created_by=staff.id,
    )
    print("[OK] Seeded demo loans")


def main() -> None:
    db = WriteSessionLocal()
    try:
        users = _get_or_create_users(db)
        items = _get_or_create_items(db)
        _seed_loans(db, items, users[account_models.AccountRole.STAFF])
    finally:
        db.close()


if __name__ == "__main__":
    main()
