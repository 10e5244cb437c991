from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.orm import Session

GuardResult = List[Dict[str, str]]


def _get_value(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def guard_loan_return(
    db: Session,
    *,
    before_obj: Any,
    after_obj: Any,
    from_state: str,
    to_state: str,
) -> GuardResult:
    actual_return_date = _get_value(after_obj, "actual_return_date")
    borrow_date = _get_value(before_obj, "borrow_date")

    if not actual_return_date:
        return [{"field": "actual_return_date", "reason": "return date required"}]
    if borrow_date and actual_return_date < borrow_date:
        return [{"field": "actual_return_date", "reason": "cannot be before the borrow date"}]
    return []
