"""
Inventory module.

Item ledger: item master data and guarded on-shelf stock adjustments.
"""

from . import models  # noqa: F401
