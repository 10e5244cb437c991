from __future__ import annotations

import threading
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from lendingdb.errors import (
    InsufficientStockError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    StorageFailureError,
)
from lendingdb.apps.inventory import models as inventory_models
from lendingdb.apps.inventory import services as inventory_services
from lendingdb.apps.lending import models as lending_models
from lendingdb.apps.lending import schemas as lending_schemas
from lendingdb.apps.lending import services as lending_services
from lendingdb.apps.lending import workflow

BORROW_DATE = date(2026, 3, 1)
DUE_DATE = date(2026, 3, 8)


def _create_item(db, *, stock: int = 5, name: str = "Proyektor Epson") -> inventory_models.Item:
    item = inventory_models.Item(
        name=name,
        category="Elektronik",
        stock=stock,
        location="Gudang A",
    )
    db.add(item)
    db.commit()
    return item


def _borrow(db, item, *, quantity: int = 2, **overrides) -> lending_models.LoanRecord:
    data = {
        "item_id": item.id,
        "borrower_name": "Budi",
        "quantity": quantity,
        "borrow_date": BORROW_DATE,
        "return_date": DUE_DATE,
    }
    data.update(overrides)
    return workflow.create_loan(db, **data)


def _stock(db, item_id: str) -> int:
    return inventory_services.get_item(db, item_id, refresh=True).stock


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


def test_create_loan_reserves_stock(db_session, staff_user):
    item = _create_item(db_session, stock=5)

    record = _borrow(db_session, item, quantity=2, created_by=staff_user.id, notes="Rapat")

    assert record.status == lending_models.LoanStatusEnum.BORROWED
    assert record.item_name == "Proyektor Epson"
    assert record.quantity == 2
    assert record.created_by == staff_user.id
    assert record.notes == "Rapat"
    assert _stock(db_session, item.id) == 3


def test_create_loan_defaults_borrow_date_to_today(db_session):
    item = _create_item(db_session)

    record = workflow.create_loan(
        db_session,
        item_id=item.id,
        borrower_name="Sari",
        quantity=1,
        return_date=date.today() + timedelta(days=3),
    )

    assert record.borrow_date == date.today()


def test_create_loan_with_insufficient_stock_changes_nothing(db_session):
    item = _create_item(db_session, stock=2)

    with pytest.raises(InsufficientStockError) as excinfo:
        _borrow(db_session, item, quantity=3)

    assert "only 2 available" in excinfo.value.message
    assert _stock(db_session, item.id) == 2
    assert lending_services.list_loans(db_session) == []


def test_create_loan_unknown_item(db_session):
    with pytest.raises(NotFoundError):
        workflow.create_loan(
            db_session,
            item_id="missing",
            borrower_name="Budi",
            quantity=1,
            borrow_date=BORROW_DATE,
            return_date=DUE_DATE,
        )


@pytest.mark.parametrize("quantity", [0, -1, True])
def test_create_loan_rejects_bad_quantity(db_session, quantity):
    item = _create_item(db_session, stock=5)

    with pytest.raises(InvalidInputError) as excinfo:
        _borrow(db_session, item, quantity=quantity)

    assert excinfo.value.field == "quantity"
    assert _stock(db_session, item.id) == 5


@pytest.mark.parametrize("return_date", [BORROW_DATE, BORROW_DATE - timedelta(days=1)])
def test_create_loan_rejects_return_date_not_after_borrow_date(db_session, return_date):
    item = _create_item(db_session, stock=5)

    with pytest.raises(InvalidInputError) as excinfo:
        _borrow(db_session, item, return_date=return_date)

    assert excinfo.value.field == "return_date"
    assert _stock(db_session, item.id) == 5


def test_create_loan_rejects_blank_borrower(db_session):
    item = _create_item(db_session)

    with pytest.raises(InvalidInputError):
        _borrow(db_session, item, borrower_name="   ")


def test_loan_keeps_item_name_snapshot_after_rename(db_session):
    item = _create_item(db_session, name="Proyektor Epson")
    record = _borrow(db_session, item)

    item = inventory_services.get_item(db_session, item.id)
    item.name = "Proyektor Epson EB-X06"
    db_session.commit()

    reloaded = lending_services.get_loan(db_session, record.id, refresh=True)
    assert reloaded.item_name == "Proyektor Epson"
    assert reloaded.item_live_name == "Proyektor Epson EB-X06"


# ---------------------------------------------------------------------------
# return / cancel
# ---------------------------------------------------------------------------


def test_return_loan_restores_stock(db_session, admin_user):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)

    returned = workflow.return_loan(
        db_session,
        loan_id=record.id,
        actual_return_date=date(2026, 3, 5),
        verified_by=admin_user.id,
    )

    assert returned.status == lending_models.LoanStatusEnum.RETURNED
    assert returned.actual_return_date == date(2026, 3, 5)
    assert returned.verified_by == admin_user.id
    assert _stock(db_session, item.id) == 5


def test_return_loan_defaults_actual_return_date_to_today(db_session):
    item = _create_item(db_session)
    record = workflow.create_loan(
        db_session,
        item_id=item.id,
        borrower_name="Budi",
        quantity=1,
        return_date=date.today() + timedelta(days=7),
    )

    returned = workflow.return_loan(db_session, loan_id=record.id)

    assert returned.actual_return_date == date.today()


def test_return_before_borrow_date_is_rejected(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)

    with pytest.raises(InvalidInputError):
        workflow.return_loan(db_session, loan_id=record.id, actual_return_date=date(2026, 2, 1))

    assert lending_services.get_loan(db_session, record.id, refresh=True).status == lending_models.LoanStatusEnum.BORROWED
    assert _stock(db_session, item.id) == 3


def test_second_return_is_rejected_and_stock_restored_once(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)
    workflow.return_loan(db_session, loan_id=record.id, actual_return_date=date(2026, 3, 5))

    with pytest.raises(InvalidTransitionError):
        workflow.return_loan(db_session, loan_id=record.id, actual_return_date=date(2026, 3, 6))

    assert _stock(db_session, item.id) == 5


def test_cancel_loan_restores_stock_and_stores_reason(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=3)

    cancelled = workflow.cancel_loan(db_session, loan_id=record.id, reason="Acara batal")

    assert cancelled.status == lending_models.LoanStatusEnum.CANCELLED
    assert cancelled.notes == "Acara batal"
    assert _stock(db_session, item.id) == 5


def test_cancel_after_return_is_rejected(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)
    workflow.return_loan(db_session, loan_id=record.id, actual_return_date=date(2026, 3, 5))

    with pytest.raises(InvalidTransitionError):
        workflow.cancel_loan(db_session, loan_id=record.id)

    assert _stock(db_session, item.id) == 5


def test_return_unknown_loan(db_session):
    with pytest.raises(NotFoundError):
        workflow.return_loan(db_session, loan_id="missing")


def test_transition_loan_dispatches_by_status(db_session):
    item = _create_item(db_session, stock=5)
    first = _borrow(db_session, item, quantity=1)
    second = _borrow(db_session, item, quantity=1)

    returned = workflow.transition_loan(
        db_session,
        loan_id=first.id,
        payload=lending_schemas.LoanTransition(status="returned", actual_return_date=date(2026, 3, 2)),
    )
    cancelled = workflow.transition_loan(
        db_session,
        loan_id=second.id,
        payload=lending_schemas.LoanTransition(status="cancelled", reason="Salah input"),
    )

    assert returned.status == lending_models.LoanStatusEnum.RETURNED
    assert cancelled.status == lending_models.LoanStatusEnum.CANCELLED
    assert cancelled.notes == "Salah input"
    assert _stock(db_session, item.id) == 5


@pytest.mark.parametrize("target", ["borrowed", "overdue"])
def test_transition_loan_rejects_other_targets(db_session, target):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=1)

    with pytest.raises(InvalidTransitionError):
        workflow.transition_loan(
            db_session,
            loan_id=record.id,
            payload=lending_schemas.LoanTransition(status=target),
        )

    assert _stock(db_session, item.id) == 4


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_borrowed_loan_restores_stock(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)

    assert workflow.delete_loan(db_session, loan_id=record.id) is True

    assert lending_services.get_loan(db_session, record.id) is None
    assert _stock(db_session, item.id) == 5


def test_delete_returned_loan_leaves_stock(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)
    workflow.return_loan(db_session, loan_id=record.id, actual_return_date=date(2026, 3, 5))

    assert workflow.delete_loan(db_session, loan_id=record.id) is True

    assert _stock(db_session, item.id) == 5


def test_delete_missing_loan_returns_false(db_session):
    assert workflow.delete_loan(db_session, loan_id="missing") is False


# ---------------------------------------------------------------------------
# record store
# ---------------------------------------------------------------------------


def test_update_loan_record_sets_fields(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=1)

    updated = lending_services.update_loan_record(db_session, record.id, notes="Dibawa ke aula")
    db_session.commit()

    assert updated.notes == "Dibawa ke aula"
    assert lending_services.get_loan(db_session, record.id, refresh=True).notes == "Dibawa ke aula"


def test_update_loan_record_missing(db_session):
    with pytest.raises(NotFoundError):
        lending_services.update_loan_record(db_session, "missing", notes="x")


def test_delete_loan_record(db_session):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=1)

    assert lending_services.delete_loan_record(db_session, record.id) is True
    db_session.commit()

    assert lending_services.get_loan(db_session, record.id) is None
    assert lending_services.delete_loan_record(db_session, "missing") is False


# ---------------------------------------------------------------------------
# stock conservation
# ---------------------------------------------------------------------------


def test_stock_plus_borrowed_quantity_is_conserved(db_session):
    item = _create_item(db_session, stock=10)
    initial = 10

    def outstanding() -> int:
        return sum(
            record.quantity
            for record in lending_services.list_loans_by_item(db_session, item_id=item.id)
            if record.status == lending_models.LoanStatusEnum.BORROWED
        )

    a = _borrow(db_session, item, quantity=3)
    b = _borrow(db_session, item, quantity=4)
    c = _borrow(db_session, item, quantity=2)
    assert _stock(db_session, item.id) + outstanding() == initial

    with pytest.raises(InsufficientStockError):
        _borrow(db_session, item, quantity=2)
    assert _stock(db_session, item.id) + outstanding() == initial

    workflow.return_loan(db_session, loan_id=a.id, actual_return_date=date(2026, 3, 3))
    workflow.cancel_loan(db_session, loan_id=b.id)
    with pytest.raises(InvalidTransitionError):
        workflow.return_loan(db_session, loan_id=a.id, actual_return_date=date(2026, 3, 4))
    workflow.delete_loan(db_session, loan_id=c.id)

    assert _stock(db_session, item.id) + outstanding() == initial
    assert _stock(db_session, item.id) == initial


def test_concurrent_loans_cannot_oversell(file_session_factory):
    setup = file_session_factory()
    item = _create_item(setup, stock=1)
    item_id = item.id
    setup.close()

    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def borrow(name: str) -> None:
        session = file_session_factory()
        try:
            barrier.wait()
            workflow.create_loan(
                session,
                item_id=item_id,
                borrower_name=name,
                quantity=1,
                borrow_date=BORROW_DATE,
                return_date=DUE_DATE,
            )
            outcome = "ok"
        except InsufficientStockError:
            outcome = "insufficient"
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=borrow, args=(name,)) for name in ("Budi", "Sari")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(results) == ["insufficient", "ok"]

    check = file_session_factory()
    try:
        assert inventory_services.get_item(check, item_id).stock == 0
        assert len(lending_services.list_loans(check)) == 1
    finally:
        check.close()


def test_concurrent_return_and_cancel_release_stock_once(file_session_factory):
    setup = file_session_factory()
    item = _create_item(setup, stock=3)
    record = _borrow(setup, item, quantity=2)
    item_id, loan_id = item.id, record.id
    setup.close()

    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def release(operation) -> None:
        session = file_session_factory()
        try:
            barrier.wait()
            operation(session, loan_id=loan_id)
            outcome = "ok"
        except InvalidTransitionError:
            outcome = "rejected"
        finally:
            session.close()
        with lock:
            results.append(outcome)

    def do_return(session, *, loan_id):
        workflow.return_loan(session, loan_id=loan_id, actual_return_date=date(2026, 3, 5))

    threads = [
        threading.Thread(target=release, args=(do_return,)),
        threading.Thread(target=release, args=(workflow.cancel_loan,)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(results) == ["ok", "rejected"]

    check = file_session_factory()
    try:
        assert inventory_services.get_item(check, item_id).stock == 3
        final = lending_services.get_loan(check, loan_id)
        assert final.status in (
            lending_models.LoanStatusEnum.RETURNED,
            lending_models.LoanStatusEnum.CANCELLED,
        )
    finally:
        check.close()


# ---------------------------------------------------------------------------
# overdue
# ---------------------------------------------------------------------------


def test_overdue_is_derived_not_stored(db_session):
    item = _create_item(db_session, stock=5)
    late = _borrow(db_session, item, quantity=1)
    on_time = workflow.create_loan(
        db_session,
        item_id=item.id,
        borrower_name="Sari",
        quantity=1,
        borrow_date=date.today(),
        return_date=date.today() + timedelta(days=7),
    )

    assert late.is_overdue is True
    assert late.status == lending_models.LoanStatusEnum.BORROWED
    assert on_time.is_overdue is False

    overdue = lending_services.list_loans(db_session, status=lending_models.LoanStatusEnum.OVERDUE)
    assert [record.id for record in overdue] == [late.id]

    not_overdue = lending_services.list_loans(db_session, overdue=False)
    assert [record.id for record in not_overdue] == [on_time.id]

    workflow.return_loan(db_session, loan_id=late.id, actual_return_date=date(2026, 3, 9))
    assert lending_services.list_loans(db_session, overdue=True) == []


# ---------------------------------------------------------------------------
# storage failures
# ---------------------------------------------------------------------------


def test_storage_failure_rolls_back_stock_reservation(db_session, monkeypatch):
    item = _create_item(db_session, stock=5)

    def broken_insert(*args, **kwargs):
        raise OperationalError("INSERT INTO loan_records", {}, Exception("disk I/O error"))

    monkeypatch.setattr(lending_services, "create_loan_record", broken_insert)

    with pytest.raises(StorageFailureError):
        _borrow(db_session, item, quantity=2)

    assert _stock(db_session, item.id) == 5


def test_delete_gives_up_when_record_keeps_changing(db_session, monkeypatch):
    item = _create_item(db_session, stock=5)
    record = _borrow(db_session, item, quantity=2)
    monkeypatch.setattr(lending_services, "delete_if_status", lambda *args, **kwargs: False)

    with pytest.raises(StorageFailureError):
        workflow.delete_loan(db_session, loan_id=record.id)

    assert lending_services.get_loan(db_session, record.id, refresh=True) is not None
    assert _stock(db_session, item.id) == 3
