"""
Lending module.

Loan records and the borrow workflow that keeps them in step with item stock.
"""

from . import models  # noqa: F401
