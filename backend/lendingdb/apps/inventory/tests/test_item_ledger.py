from __future__ import annotations

import pytest
from fastapi import HTTPException

from lendingdb.errors import InsufficientStockError, NotFoundError
from lendingdb.apps.inventory import models as inventory_models
from lendingdb.apps.inventory import router as inventory_router
from lendingdb.apps.inventory import schemas as inventory_schemas
from lendingdb.apps.inventory import services as inventory_services


def _create_item(db, **overrides) -> inventory_models.Item:
    data = {
        "name": "Proyektor Epson",
        "category": "Elektronik",
        "stock": 5,
        "location": "Gudang A",
    }
    data.update(overrides)
    item = inventory_services.create_item(db, inventory_schemas.ItemCreate(**data))
    db.commit()
    return item


def test_adjust_stock_applies_delta(db_session):
    item = _create_item(db_session, stock=5)

    updated = inventory_services.adjust_stock(db_session, item_id=item.id, delta=-2)
    db_session.commit()

    assert updated.stock == 3
    assert inventory_services.get_item(db_session, item.id, refresh=True).stock == 3


def test_adjust_stock_can_drain_to_zero(db_session):
    item = _create_item(db_session, stock=2)

    updated = inventory_services.adjust_stock(db_session, item_id=item.id, delta=-2)

    assert updated.stock == 0


def test_adjust_stock_rejects_negative_result_without_writing(db_session):
    item = _create_item(db_session, stock=2)

    with pytest.raises(InsufficientStockError) as excinfo:
        inventory_services.adjust_stock(db_session, item_id=item.id, delta=-3)
    db_session.rollback()

    assert excinfo.value.requested == 3
    assert excinfo.value.available == 2
    assert "only 2 available" in excinfo.value.message
    assert inventory_services.get_item(db_session, item.id, refresh=True).stock == 2


def test_adjust_stock_unknown_item(db_session):
    with pytest.raises(NotFoundError):
        inventory_services.adjust_stock(db_session, item_id="missing", delta=1)


def test_list_items_filters_by_category_and_search(db_session):
    _create_item(db_session, name="Proyektor Epson", category="Elektronik")
    _create_item(db_session, name="Kursi Lipat", category="Furnitur", stock=50, location="Aula")
    _create_item(
        db_session,
        name="Sound System",
        category="Elektronik",
        stock=2,
        description="Speaker aktif untuk aula",
    )

    electronics = inventory_services.list_items(db_session, category="Elektronik")
    assert [item.name for item in electronics] == ["Proyektor Epson", "Sound System"]

    aula = inventory_services.list_items(db_session, search="aula")
    assert {item.name for item in aula} == {"Kursi Lipat", "Sound System"}

    assert len(inventory_services.list_items(db_session)) == 3


def test_update_item_keeps_unset_fields(db_session):
    item = _create_item(db_session, stock=4, description="Ruang rapat")

    updated = inventory_services.update_item(
        db_session,
        item_id=item.id,
        payload=inventory_schemas.ItemUpdate(
            location="Gudang B",
            condition=inventory_models.ItemConditionEnum.DAMAGED,
        ),
    )
    db_session.commit()

    assert updated.location == "Gudang B"
    assert updated.condition == inventory_models.ItemConditionEnum.DAMAGED
    assert updated.stock == 4
    assert updated.description == "Ruang rapat"


def test_update_item_can_overwrite_stock(db_session):
    item = _create_item(db_session, stock=4)

    updated = inventory_services.update_item(
        db_session,
        item_id=item.id,
        payload=inventory_schemas.ItemUpdate(stock=10),
    )

    assert updated.stock == 10


@pytest.mark.parametrize("field", ["name", "category", "location", "condition", "stock"])
def test_item_update_rejects_null_for_required_fields(field):
    with pytest.raises(ValueError):
        inventory_schemas.ItemUpdate.model_validate({field: None})


def test_item_update_allows_clearing_description():
    payload = inventory_schemas.ItemUpdate.model_validate({"description": None})
    assert payload.model_dump(exclude_unset=True) == {"description": None}


def test_update_item_ignores_null_required_fields(db_session, admin_user):
    item = _create_item(db_session, stock=4, description="Ruang rapat")
    # Built without validation, as a caller bypassing the request schema would.
    payload = inventory_schemas.ItemUpdate.model_construct(name=None, location=None, description=None)

    updated = inventory_router.update_item(
        item_id=item.id,
        payload=payload,
        db=db_session,
        current_user=admin_user,
    )

    assert updated.name == "Proyektor Epson"
    assert updated.location == "Gudang A"
    assert updated.description is None
    assert updated.stock == 4


def test_item_schema_rejects_blank_name_and_negative_stock():
    with pytest.raises(ValueError):
        inventory_schemas.ItemCreate(name="  ", category="Elektronik", stock=1, location="Gudang")
    with pytest.raises(ValueError):
        inventory_schemas.ItemCreate(name="Kabel", category="Elektronik", stock=-1, location="Gudang")


def test_delete_item(db_session):
    item = _create_item(db_session)

    assert inventory_services.delete_item(db_session, item_id=item.id) is True
    db_session.commit()

    assert inventory_services.get_item(db_session, item.id) is None
    assert inventory_services.delete_item(db_session, item_id=item.id) is False


def test_router_get_item_maps_missing_to_404(db_session, admin_user):
    with pytest.raises(HTTPException) as excinfo:
        inventory_router.get_item(item_id="missing", db=db_session, current_user=admin_user)
    assert excinfo.value.status_code == 404


def test_router_create_and_delete_item(db_session, admin_user):
    created = inventory_router.create_item(
        payload=inventory_schemas.ItemCreate(
            name="Kursi Lipat",
            category="Furnitur",
            stock=50,
            location="Aula",
        ),
        db=db_session,
        current_user=admin_user,
    )
    assert created.id

    result = inventory_router.delete_item(item_id=created.id, db=db_session, current_user=admin_user)
    assert result == {"success": True, "id": created.id}

    with pytest.raises(HTTPException) as excinfo:
        inventory_router.delete_item(item_id=created.id, db=db_session, current_user=admin_user)
    assert excinfo.value.status_code == 404
