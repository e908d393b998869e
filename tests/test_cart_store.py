import json
from decimal import Decimal

import pytest

from storefront.cart_store import CartStore
from storefront.config import CART_STORAGE_KEY
from storefront.models import CartItem, PromoLine
from storefront.persistence import MemoryStorage


def _ceviche(quantity=1):
    return CartItem.regular("5", "Ceviche", "10.00", quantity=quantity)


def test_add_same_product_merges_quantities(store):
    store.add_item(_ceviche(2))
    store.add_item(_ceviche(1))

    assert len(store.items) == 1
    assert store.get_item_quantity("5") == 3
    assert store.total() == Decimal("30.00")
    assert store.item_count() == 3


def test_added_item_is_copied(store):
    item = _ceviche()
    store.add_item(item)
    store.add_item(_ceviche())

    assert item.quantity == 1


@pytest.mark.parametrize("quantity", [0, -1])
def test_update_quantity_to_zero_removes_item(store, quantity):
    store.add_item(_ceviche(2))
    store.update_quantity("5", quantity)

    assert store.items == []
    assert not store.is_in_cart("5")


def test_update_quantity_sets_value(store):
    store.add_item(_ceviche())
    store.update_quantity("5", 4)

    assert store.get_item_quantity("5") == 4


def test_remove_missing_item_is_noop(store):
    store.add_item(_ceviche())
    store.remove_item("999")

    assert store.get_item_quantity("5") == 1


def test_regular_and_promo_lines_do_not_merge(store):
    store.add_item(_ceviche())
    store.add_item(CartItem(line=PromoLine(promotion_id=1, product_id="5"), name="Ceviche", price=Decimal("10")))

    assert len(store.items) == 2
    assert store.get_item_quantity("5") == 1
    assert store.get_item_quantity("promo-5") == 1


def test_clear_cart_drops_promotion(store, combo_promotion):
    store.add_item(_ceviche())
    store.apply_promotion(combo_promotion)
    store.clear_cart()

    assert store.items == []
    assert store.selected_promotion is None


def test_line_count_includes_promotion(store, combo_promotion):
    store.add_item(_ceviche())
    assert store.line_count() == 1

    store.apply_promotion(combo_promotion)
    assert store.line_count() == 2

    store.remove_promotion()
    assert store.line_count() == 1


def test_state_survives_restart(local_storage, combo_promotion):
    first = CartStore(local_storage)
    first.add_item(_ceviche(2))
    first.apply_promotion(combo_promotion)

    second = CartStore(local_storage)

    assert second.get_item_quantity("5") == 2
    assert second.items[0].price == Decimal("10.00")
    assert second.selected_promotion == combo_promotion


def test_version_zero_snapshot_is_upgraded():
    storage = MemoryStorage()
    storage.set_item(
        CART_STORAGE_KEY,
        json.dumps(
            {
                "state": {
                    "items": [
                        {"id": "5", "name": "Ceviche", "price": 10, "quantity": 2},
                        {"id": "promo-11", "name": "Lomo Saltado", "price": 60, "quantity": 1},
                    ],
                    "selectedPromotion": {"id": 3, "title": "Combo", "discount": "20%", "products": []},
                },
                "version": 0,
            }
        ),
    )

    store = CartStore(storage)

    assert [item.id for item in store.items] == ["5"]
    assert store.items[0].quantity == 2
    assert store.selected_promotion.title == "Combo"


def test_unknown_version_starts_empty():
    storage = MemoryStorage()
    storage.set_item(CART_STORAGE_KEY, json.dumps({"version": 99, "state": {"items": []}}))

    store = CartStore(storage)

    assert store.items == []
    assert store.selected_promotion is None


def test_corrupt_snapshot_starts_empty():
    storage = MemoryStorage()
    storage.set_item(CART_STORAGE_KEY, "{not json")

    assert CartStore(storage).items == []


def test_mutations_write_versioned_envelope(store, memory_storage):
    store.add_item(_ceviche())

    envelope = json.loads(memory_storage.get_item(CART_STORAGE_KEY))
    assert envelope["version"] == 1
    assert envelope["state"]["items"][0]["line"] == {"kind": "regular", "product_id": "5"}
