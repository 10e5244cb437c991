# backend/create_initial_admin.py

import os

from lendingdb.database import SessionLocal
from lendingdb.apps.accounts import models as account_models
from lendingdb.apps.accounts import schemas as account_schemas
from lendingdb.apps.accounts import services as account_services


def main() -> None:
    db = SessionLocal()
    try:
        email = os.getenv("INITIAL_ADMIN_EMAIL", "admin@kdju.com")
        password = os.getenv("INITIAL_ADMIN_PASSWORD", "ChangeMe123!")

        existing = account_services.get_user_by_email(db, email)
        if existing:
            print(f"[INFO] User already exists: id={existing.id}, email={existing.email}")
            return

        user = account_services.create_user(
            db,
            account_schemas.UserCreate(
                email=email,
                name=os.getenv("INITIAL_ADMIN_NAME", "Administrator"),
                role=account_models.AccountRole.ADMIN,
                password=password,
            ),
        )
        db.commit()
        db.refresh(user)

        print("[OK] Created admin user:")
        print(f"  id:      {user.id}")
        print(f"  email:   {user.email}")
        print(f"  role:    {user.role.value}")
        print(f"  login password: {password}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
