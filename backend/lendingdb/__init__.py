# backend/lendingdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- Cross-app foreign keys (loan_records -> items, users) resolve.

The actual model classes are kept in lendingdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models      # users / auth
from .apps.inventory import models as inventory_models    # items + stock
from .apps.lending import models as lending_models        # loan records

__all__ = [
    "accounts_models",
    "inventory_models",
    "lending_models",
]
