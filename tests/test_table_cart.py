from decimal import Decimal

import pytest

from storefront.api import ApiError, UnauthorizedError
from storefront.models import Product, WaiterUser
from storefront.table_cart import (
    TableCartStore,
    WaiterAuthStore,
    sign_in,
    submit_qr_order,
    submit_table_order,
)

ANTICUCHO = Product(id=21, name="Anticuchos", price=Decimal("22.00"))
LUIS = WaiterUser(id=2, name="Luis", email="luis@sabor.pe", role="waiter")


@pytest.fixture
def table_cart(memory_storage) -> TableCartStore:
    cart = TableCartStore(memory_storage)
    cart.add_item(ANTICUCHO, 2, notes="sin picante")
    return cart


@pytest.fixture
def auth(memory_storage) -> WaiterAuthStore:
    store = WaiterAuthStore(memory_storage)
    store.login("tok-1", LUIS)
    return store


def test_same_product_merges(table_cart):
    table_cart.add_item(ANTICUCHO)

    assert len(table_cart.items) == 1
    assert table_cart.items[0].quantity == 3
    assert table_cart.total() == Decimal("66.00")


def test_update_quantity_zero_removes(table_cart):
    table_cart.update_quantity(21, 0)

    assert table_cart.items == []


def test_table_cart_survives_restart(table_cart, memory_storage):
    restored = TableCartStore(memory_storage)

    assert restored.order_items() == [{"product_id": 21, "quantity": 2, "notes": "sin picante"}]


def test_waiter_session_survives_restart(auth, memory_storage):
    restored = WaiterAuthStore(memory_storage)

    assert restored.is_authenticated
    assert restored.user == LUIS


def test_logout_forgets_session(auth, memory_storage):
    auth.logout()

    assert not WaiterAuthStore(memory_storage).is_authenticated


def test_sign_in_stores_token(waiter_client, memory_storage):
    waiter_client.login.return_value = ("tok-9", LUIS)
    auth = WaiterAuthStore(memory_storage)

    assert sign_in(waiter_client, auth, "luis@sabor.pe", "secret") == LUIS
    assert auth.token == "tok-9"


def test_table_order_clears_cart_on_success(table_cart, waiter_client, auth):
    waiter_client.create_table_order.return_value = {"id": 40}

    assert submit_table_order(table_cart, waiter_client, auth, table_id=3) == {"id": 40}
    waiter_client.create_table_order.assert_called_once_with(
        "tok-1", 3, [{"product_id": 21, "quantity": 2, "notes": "sin picante"}]
    )
    assert table_cart.items == []


def test_table_order_failure_keeps_cart(table_cart, waiter_client, auth):
    waiter_client.create_table_order.side_effect = ApiError("Kitchen offline", 503)

    with pytest.raises(ApiError):
        submit_table_order(table_cart, waiter_client, auth, table_id=3)

    assert len(table_cart.items) == 1
    assert auth.is_authenticated


def test_rejected_token_logs_out(table_cart, waiter_client, auth):
    waiter_client.create_table_order.side_effect = UnauthorizedError("Token expired", 401)

    with pytest.raises(UnauthorizedError):
        submit_table_order(table_cart, waiter_client, auth, table_id=3)

    assert not auth.is_authenticated
    assert len(table_cart.items) == 1


def test_signed_out_waiter_sends_nothing(table_cart, waiter_client, memory_storage):
    with pytest.raises(UnauthorizedError):
        submit_table_order(table_cart, waiter_client, WaiterAuthStore(), table_id=3)

    waiter_client.create_table_order.assert_not_called()


def test_empty_table_cart_is_not_sent(waiter_client, auth):
    assert submit_table_order(TableCartStore(), waiter_client, auth, table_id=3) is None
    waiter_client.create_table_order.assert_not_called()


def test_qr_order_clears_cart(table_cart, api_client):
    api_client.create_qr_order.return_value = {"id": 41}

    submit_qr_order(table_cart, api_client, table_id=3)

    api_client.create_qr_order.assert_called_once_with(3, [{"product_id": 21, "quantity": 2, "notes": "sin picante"}])
    assert table_cart.items == []
