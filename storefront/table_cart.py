"""Table-side ordering state for QR self-order and the waiter dashboard."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from storefront.api import ApiClient, UnauthorizedError, WaiterClient
from storefront.config import TABLE_CART_STORAGE_KEY, WAITER_AUTH_STORAGE_KEY
from storefront.models import Product, TableCartItem, WaiterUser, to_decimal
from storefront.persistence import Storage, dump_state, load_state

logger = logging.getLogger(__name__)


class TableCartStore:
    """Cart for a single table, keyed by product id, with per-item kitchen notes."""

    def __init__(self, storage: Storage | None = None, key: str = TABLE_CART_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self.items: list[TableCartItem] = []
        self._hydrate()

    def add_item(self, product: Product, quantity: int = 1, notes: str = "") -> None:
        for item in self.items:
            if item.product_id == product.id:
                item.quantity += quantity
                break
        else:
            self.items.append(
                TableCartItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                    notes=notes,
                    image=product.image_url,
                )
            )
        self._persist()

    def remove_item(self, product_id: int) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]
        self._persist()

    def update_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return
        for item in self.items:
            if item.product_id == product_id:
                item.quantity = quantity
        self._persist()

    def clear_cart(self) -> None:
        self.items = []
        self._persist()

    def total(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.items), Decimal("0"))

    def order_items(self) -> list[dict[str, Any]]:
        return [
            {"product_id": item.product_id, "quantity": item.quantity, "notes": item.notes}
            for item in self.items
        ]

    def _persist(self) -> None:
        if self.storage is None:
            return
        state = {
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "price": str(item.price),
                    "quantity": item.quantity,
                    "notes": item.notes,
                    "image": item.image,
                }
                for item in self.items
            ]
        }
        self.storage.set_item(self.key, dump_state(state))

    def _hydrate(self) -> None:
        if self.storage is None:
            return
        state = load_state(self.storage.get_item(self.key))
        if state is None:
            return
        try:
            self.items = [
                TableCartItem(
                    product_id=int(raw["product_id"]),
                    name=str(raw.get("name", "")),
                    price=to_decimal(raw.get("price")),
                    quantity=int(raw.get("quantity", 1)),
                    notes=str(raw.get("notes") or ""),
                    image=raw.get("image"),
                )
                for raw in state.get("items") or []
            ]
        except (KeyError, TypeError, ValueError, ArithmeticError):
            logger.warning("Discarding unreadable table cart under %r", self.key, exc_info=True)
            self.items = []


class WaiterAuthStore:
    """Persisted staff session: bearer token and the signed-in user."""

    def __init__(self, storage: Storage | None = None, key: str = WAITER_AUTH_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self.token: str | None = None
        self.user: WaiterUser | None = None
        self._hydrate()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def login(self, token: str, user: WaiterUser) -> None:
        self.token = token
        self.user = user
        if self.storage is not None:
            self.storage.set_item(self.key, dump_state({"token": token, "user": user.to_dict()}))

    def logout(self) -> None:
        self.token = None
        self.user = None
        if self.storage is not None:
            self.storage.remove_item(self.key)

    def _hydrate(self) -> None:
        if self.storage is None:
            return
        state = load_state(self.storage.get_item(self.key))
        if not state or not state.get("token"):
            return
        try:
            self.user = WaiterUser.from_api(state["user"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable waiter session under %r", self.key, exc_info=True)
            return
        self.token = str(state["token"])


def sign_in(client: WaiterClient, auth: WaiterAuthStore, email: str, password: str) -> WaiterUser:
    token, user = client.login(email, password)
    auth.login(token, user)
    return user


def submit_table_order(
    cart: TableCartStore, client: WaiterClient, auth: WaiterAuthStore, table_id: int
) -> dict[str, Any] | None:
    """Send the table cart to the kitchen; the cart is only cleared once the backend accepts it."""
    if not cart.items:
        return None
    if auth.token is None:
        raise UnauthorizedError("Unauthorized", 401)
    try:
        response = client.create_table_order(auth.token, table_id, cart.order_items())
    except UnauthorizedError:
        auth.logout()
        raise
    cart.clear_cart()
    logger.info("Table %s order sent to kitchen", table_id)
    return response


def submit_qr_order(cart: TableCartStore, client: ApiClient, table_id: int) -> dict[str, Any] | None:
    """Self-order from a table's QR menu; same clear-on-success rule as staff orders."""
    if not cart.items:
        return None
    response = client.create_qr_order(table_id, cart.order_items())
    cart.clear_cart()
    return response
