from decimal import Decimal

import pytest

from storefront.core.database import SessionLocal
from storefront.core.errors import NotFoundError
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.schemas.inventory_schemas import InventoryItemCreate, InventoryItemUpdate
from storefront.services.inventory_services import InventoryService


@pytest.fixture
def service():
    session = SessionLocal()
    yield InventoryService(InventoryRepository(session))
    session.close()


def test_add_and_get(service):
    item = service.add_item(InventoryItemCreate(name="Kettle", quantity=10, price="120.00"))
    fetched = service.get_item(item.id)

    assert fetched.name == "Kettle"
    assert fetched.price == Decimal("120.00")
    assert fetched.low_stock is False


def test_get_missing(service):
    with pytest.raises(NotFoundError):
        service.get_item(404)


def test_partial_update_keeps_other_fields(service):
    item = service.add_item(InventoryItemCreate(name="Mug", quantity=10, price="4.50", image="mug.png"))
    updated = service.update_item(item.id, InventoryItemUpdate(quantity=2))

    assert updated.quantity == 2
    assert updated.image == "mug.png"
    assert updated.low_stock is True


def test_low_stock_listing(service):
    service.add_item(InventoryItemCreate(name="Plenty", quantity=5, price="1"))
    service.add_item(InventoryItemCreate(name="Scarce", quantity=4, price="1"))
    service.add_item(InventoryItemCreate(name="Gone", quantity=0, price="1"))

    assert [i.name for i in service.list_low_stock()] == ["Scarce", "Gone"]
    assert len(service.list_items()) == 3


def test_delete(service):
    item = service.add_item(InventoryItemCreate(name="Temp", quantity=1, price="1"))
    service.delete_item(item.id)
    with pytest.raises(NotFoundError):
        service.get_item(item.id)
    with pytest.raises(NotFoundError):
        service.delete_item(item.id)
