from __future__ import annotations

from .guards import guard_loan_return

# from_state -> {to_state: [guards]}; a state with no entry is terminal.
WORKFLOWS = {
    "loan_record": {
        "transitions": {
            "borrowed": {
                "returned": [guard_loan_return],
                "cancelled": [],
            },
            "returned": {},
            "cancelled": {},
            # Display-only state; nothing is ever persisted as overdue.
            "overdue": {},
        }
    },
}
