# backend/lendingdb/errors.py
"""
Error taxonomy for the item ledger and the borrow workflow.

Services raise these; routers translate them into HTTP responses with
`translate_errors()` so the services stay usable from scripts and tests.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import HTTPException, status


class LendingError(Exception):
    """Base class for every failure the lending core reports to callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(LendingError):
    """Raised when an item or loan record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found.")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(LendingError):
    """Raised when a requested quantity exceeds the item's current stock."""

    def __init__(self, *, item_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock: requested {requested}, only {available} available."
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available


class InvalidTransitionError(LendingError):
    """Raised when a loan record cannot move from its current status to the requested one."""

    def __init__(self, from_state: str, to_state: str, reason: Optional[str] = None) -> None:
        message = reason or f"Cannot transition loan from {from_state} to {to_state}."
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state


class InvalidInputError(LendingError):
    """Raised for non-positive quantities, inverted date ranges and similar input faults."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class StorageFailureError(LendingError):
    """Raised after a failed commit or lost connection; the unit of work was rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(exc: LendingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@contextmanager
def translate_errors() -> Iterator[None]:
    """
    Router helper:

        with translate_errors():
            record = workflow.create_loan(db, ...)
    """
    try:
        yield
    except LendingError as exc:
        raise to_http_exception(exc) from exc
