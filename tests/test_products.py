from decimal import Decimal

import pytest

from storefront.errors import ResourceNotFoundError
from storefront.products import ProductService
from storefront.schemas import ProductIn
from tests.fakes import FakeProductStore, make_product


@pytest.fixture
def store():
    return FakeProductStore([
        make_product(1, "Test Product", "99.99"),
        make_product(2, "Another Product", "49.99"),
    ])


@pytest.fixture
def service(store):
    return ProductService(store)


def test_get_all(service):
    out = service.get_all()
    assert [(p.id, p.name, p.price) for p in out] == [
        (1, "Test Product", Decimal("99.99")),
        (2, "Another Product", Decimal("49.99")),
    ]


def test_get_by_id(service):
    assert service.get_by_id(1).name == "Test Product"


def test_get_by_id_unknown(service):
    with pytest.raises(ResourceNotFoundError):
        service.get_by_id(999)


def test_create_assigns_id(service, store):
    out = service.create(ProductIn(name="New Product", price=Decimal("79.99")))
    assert out.id == 3
    assert store.exists_by_id(3)


def test_update_replaces_name_and_price(service, store):
    out = service.update(1, ProductIn(name="Updated Product", price=Decimal("129.99")))
    assert (out.id, out.name, out.price) == (1, "Updated Product", Decimal("129.99"))
    assert store.find_by_id(1).price == Decimal("129.99")


def test_update_unknown(service):
    with pytest.raises(ResourceNotFoundError):
        service.update(999, ProductIn(name="x", price=Decimal("1.00")))


def test_delete(service, store):
    service.delete(1)
    assert not store.exists_by_id(1)


def test_delete_unknown(service, store):
    with pytest.raises(ResourceNotFoundError):
        service.delete(999)
    assert ("delete_by_id", 999) not in store.calls


@pytest.mark.parametrize("payload", [
    {"name": "", "price": "1.00"},
    {"name": "   ", "price": "1.00"},
    {"name": "ok", "price": "0"},
    {"name": "ok", "price": "-1.0"},
    {"name": "ok", "price": "1.001"},
])
def test_product_in_rejects_bad_payload(payload):
    with pytest.raises(ValueError):
        ProductIn.model_validate(payload)
