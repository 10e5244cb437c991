# backend/lendingdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User accounts and their admin / staff role
- Password login issuing bearer tokens
- Admin endpoints to list and create users

Services are imported explicitly (`from lendingdb.apps.accounts import services`)
because they depend on `lendingdb.security`, which itself imports these models.
"""

from . import models, schemas  # noqa: F401

__all__ = ["models", "schemas"]
