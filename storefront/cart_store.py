"""Shopping cart state container with the selected promotion."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from storefront.config import CART_STORAGE_KEY, PROMO_ITEM_PREFIX
from storefront.models import CartItem, LineRef, PromoLine, Promotion, RegularLine, to_decimal
from storefront.persistence import Storage, dump_state, load_state

logger = logging.getLogger(__name__)


def _line_to_dict(line: LineRef) -> dict[str, Any]:
    if isinstance(line, PromoLine):
        return {"kind": line.kind, "promotion_id": line.promotion_id, "product_id": line.product_id}
    return {"kind": line.kind, "product_id": line.product_id}


def _line_from_dict(data: dict[str, Any]) -> LineRef:
    if data.get("kind") == PromoLine.kind:
        return PromoLine(promotion_id=int(data["promotion_id"]), product_id=str(data["product_id"]))
    return RegularLine(product_id=str(data["product_id"]))


def _item_to_dict(item: CartItem) -> dict[str, Any]:
    return {
        "line": _line_to_dict(item.line),
        "name": item.name,
        "price": str(item.price),
        "quantity": item.quantity,
        "image": item.image,
    }


def _item_from_dict(data: dict[str, Any]) -> CartItem:
    return CartItem(
        line=_line_from_dict(data["line"]),
        name=str(data.get("name", "")),
        price=to_decimal(data.get("price")),
        quantity=int(data.get("quantity", 1)),
        image=data.get("image"),
    )


def _upgrade_v0(state: dict[str, Any]) -> dict[str, Any]:
    """Upgrade the web storefront's untagged snapshot to tagged cart lines."""
    items = []
    for raw in state.get("items") or []:
        item_id = str(raw.get("id", ""))
        if not item_id or item_id.startswith(PROMO_ITEM_PREFIX):
            continue
        items.append(
            {
                "line": {"kind": RegularLine.kind, "product_id": item_id},
                "name": raw.get("name", ""),
                "price": str(raw.get("price", 0)),
                "quantity": raw.get("quantity", 1),
                "image": raw.get("image"),
            }
        )
    return {"items": items, "selected_promotion": state.get("selectedPromotion")}


CART_MIGRATIONS = {0: _upgrade_v0}


class CartStore:
    """
    Single source of truth for cart contents and the active promotion.

    Each mutation writes a versioned snapshot to ``storage`` (when given) so the
    cart survives restarts. Inputs are not validated here.
    """

    def __init__(self, storage: Storage | None = None, key: str = CART_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self.items: list[CartItem] = []
        self.selected_promotion: Promotion | None = None
        self._hydrate()

    def add_item(self, item: CartItem) -> None:
        for existing in self.items:
            if existing.line == item.line:
                existing.quantity += item.quantity
                break
        else:
            self.items.append(
                CartItem(line=item.line, name=item.name, price=item.price, quantity=item.quantity, image=item.image)
            )
        self._persist()

    def remove_item(self, item_id: str) -> None:
        remaining = [item for item in self.items if item.id != item_id]
        if len(remaining) == len(self.items):
            return
        self.items = remaining
        self._persist()

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set an item's quantity; zero or less removes the item instead."""
        if quantity <= 0:
            self.remove_item(item_id)
            return
        for item in self.items:
            if item.id == item_id:
                item.quantity = quantity
        self._persist()

    def clear_cart(self) -> None:
        self.items = []
        self.selected_promotion = None
        self._persist()

    def apply_promotion(self, promotion: Promotion) -> None:
        self.selected_promotion = promotion
        self._persist()

    def remove_promotion(self) -> None:
        self.selected_promotion = None
        self._persist()

    def total(self) -> Decimal:
        """Sum of price * quantity over stored items, promotion not included."""
        return sum((item.line_total for item in self.items), Decimal("0"))

    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def line_count(self) -> int:
        """Badge count: stored rows plus one for an active promotion."""
        return len(self.items) + (1 if self.selected_promotion else 0)

    def is_in_cart(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self.items)

    def get_item_quantity(self, item_id: str) -> int:
        for item in self.items:
            if item.id == item_id:
                return item.quantity
        return 0

    def _snapshot(self) -> dict[str, Any]:
        return {
            "items": [_item_to_dict(item) for item in self.items],
            "selected_promotion": self.selected_promotion.to_dict() if self.selected_promotion else None,
        }

    def _persist(self) -> None:
        if self.storage is None:
            return
        self.storage.set_item(self.key, dump_state(self._snapshot()))

    def _hydrate(self) -> None:
        if self.storage is None:
            return
        state = load_state(self.storage.get_item(self.key), CART_MIGRATIONS)
        if state is None:
            return
        try:
            items = [_item_from_dict(raw) for raw in state.get("items") or []]
            promotion_data = state.get("selected_promotion")
            promotion = Promotion.from_api(promotion_data) if promotion_data else None
        except (KeyError, TypeError, ValueError, ArithmeticError):
            logger.warning("Discarding unreadable cart snapshot under %r", self.key, exc_info=True)
            return
        self.items = items
        self.selected_promotion = promotion
