"""Derived cart partitions and totals. Everything here is side-effect free."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable

from storefront.cart_store import CartStore
from storefront.config import DELIVERY_FEE, PROMO_ITEM_PREFIX
from storefront.models import CartItem, CartTotals, ProcessedCart, PromoLine, Promotion, to_decimal

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")
_ZERO = Decimal("0")


def parse_percentage(discount: str | None) -> Decimal | None:
    """
    Parse a percentage token such as ``"20%"``.

    Only strings containing ``%`` count; the number leading the string is the
    percentage. Flat amounts, ``None`` and unparsable strings yield ``None``.
    """
    if not discount or "%" not in discount:
        return None
    match = _LEADING_NUMBER.match(discount.replace("%", "", 1))
    if match is None:
        return None
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def promo_items_for(promotion: Promotion | None) -> list[CartItem]:
    if promotion is None:
        return []
    return [
        CartItem(
            line=PromoLine(promotion_id=promotion.id, product_id=str(product.id)),
            name=product.name,
            price=product.price,
            quantity=1,
            image=product.image,
        )
        for product in promotion.products
    ]


def process_cart_items(items: Iterable[CartItem], selected_promotion: Promotion | None) -> ProcessedCart:
    """Split the cart into promotion-bundle rows and regular rows."""
    promo_items = promo_items_for(selected_promotion)
    regular_items = [item for item in items if not item.is_promo and not item.id.startswith(PROMO_ITEM_PREFIX)]
    return ProcessedCart(
        promo_items=promo_items,
        regular_items=regular_items,
        display_items=[*promo_items, *regular_items],
    )


def _sum_lines(items: Iterable[CartItem]) -> Decimal:
    return sum((item.line_total for item in items), _ZERO)


def calculate_cart_totals(
    promo_items: list[CartItem],
    regular_items: list[CartItem],
    selected_promotion: Promotion | None,
    delivery_fee: Decimal | int | float | str = 0,
) -> CartTotals:
    """Totals for a processed cart. A percentage promotion is clamped to 0..100."""
    promo_original_total = _sum_lines(promo_items)
    regular_total = _sum_lines(regular_items)

    promo_discount = _ZERO
    percentage = parse_percentage(selected_promotion.discount) if selected_promotion else None
    if percentage is not None:
        percentage = min(max(percentage, _ZERO), Decimal("100"))
        promo_discount = promo_original_total * percentage / Decimal("100")

    promo_net_total = promo_original_total - promo_discount
    subtotal = promo_net_total + regular_total
    shipping = to_decimal(delivery_fee)
    # Prices already include tax.
    taxes = _ZERO
    return CartTotals(
        promo_original_total=promo_original_total,
        regular_total=regular_total,
        promo_discount=promo_discount,
        promo_net_total=promo_net_total,
        subtotal=subtotal,
        shipping=shipping,
        taxes=taxes,
        final_total=subtotal + shipping + taxes,
    )


def cart_totals(store: CartStore, delivery_fee: Decimal | int | float | str = DELIVERY_FEE) -> CartTotals:
    """Recompute totals from the store's current state."""
    processed = process_cart_items(store.items, store.selected_promotion)
    return calculate_cart_totals(
        processed.promo_items, processed.regular_items, store.selected_promotion, delivery_fee
    )
