from decimal import Decimal

import pytest

from storefront.aggregation import (
    calculate_cart_totals,
    cart_totals,
    parse_percentage,
    process_cart_items,
)
from storefront.models import CartItem, Promotion


@pytest.mark.parametrize(
    "discount, expected",
    [
        ("20%", Decimal("20")),
        ("15.5%", Decimal("15.5")),
        ("10% OFF", Decimal("10")),
        ("S/ 10", None),
        ("2x1", None),
        ("%", None),
        (None, None),
    ],
)
def test_parse_percentage(discount, expected):
    assert parse_percentage(discount) == expected


def test_percentage_discount_applies_to_bundle_only(combo_promotion):
    processed = process_cart_items([CartItem.regular("5", "Ceviche", "10.00", quantity=2)], combo_promotion)
    totals = calculate_cart_totals(processed.promo_items, processed.regular_items, combo_promotion)

    assert totals.promo_original_total == Decimal("100")
    assert totals.promo_discount == Decimal("20")
    assert totals.promo_net_total == Decimal("80")
    assert totals.regular_total == Decimal("20")
    assert totals.subtotal == Decimal("100")
    assert totals.final_total == totals.subtotal + totals.shipping + totals.taxes


def test_flat_discount_is_ignored(combo_promotion):
    flat = Promotion(id=4, title="Flat", discount="S/ 15", products=combo_promotion.products)
    processed = process_cart_items([], flat)
    totals = calculate_cart_totals(processed.promo_items, processed.regular_items, flat)

    assert totals.promo_discount == 0
    assert totals.promo_net_total == Decimal("100")


def test_discount_above_hundred_percent_is_clamped(combo_promotion):
    greedy = Promotion(id=5, title="Greedy", discount="150%", products=combo_promotion.products)
    processed = process_cart_items([], greedy)
    totals = calculate_cart_totals(processed.promo_items, processed.regular_items, greedy)

    assert totals.promo_discount == Decimal("100")
    assert totals.promo_net_total == 0


def test_negative_percentage_gives_no_discount(combo_promotion):
    markup = Promotion(id=6, title="Markup", discount="-10%", products=combo_promotion.products)
    processed = process_cart_items([], markup)
    totals = calculate_cart_totals(processed.promo_items, processed.regular_items, markup)

    assert totals.promo_discount == 0
    assert totals.promo_net_total == Decimal("100")


def test_empty_cart_totals_are_zero():
    totals = calculate_cart_totals([], [], None)

    assert totals.subtotal == 0
    assert totals.promo_discount == 0
    assert totals.final_total == 0


def test_delivery_fee_is_added_to_final_total():
    items = [CartItem.regular("5", "Ceviche", "10.00")]
    totals = calculate_cart_totals([], items, None, delivery_fee="5.50")

    assert totals.shipping == Decimal("5.50")
    assert totals.final_total == Decimal("15.50")


def test_totals_are_pure_and_sum(combo_promotion):
    processed = process_cart_items([CartItem.regular("5", "Ceviche", "10.00", quantity=2)], combo_promotion)

    first = calculate_cart_totals(processed.promo_items, processed.regular_items, combo_promotion, delivery_fee="7.00")
    second = calculate_cart_totals(processed.promo_items, processed.regular_items, combo_promotion, delivery_fee="7.00")

    assert first == second
    assert first.final_total == first.subtotal + first.shipping + first.taxes
    assert first.final_total == Decimal("107.00")
    assert [item.quantity for item in processed.regular_items] == [2]


def test_promo_prefixed_ids_never_count_as_regular(combo_promotion):
    stale = CartItem.regular("promo-11", "Lomo Saltado", "60.00")
    regular = CartItem.regular("5", "Ceviche", "10.00")

    processed = process_cart_items([stale, regular], combo_promotion)

    assert [item.id for item in processed.regular_items] == ["5"]
    assert [item.id for item in processed.promo_items] == ["promo-11", "promo-12"]
    assert [item.id for item in processed.display_items] == ["promo-11", "promo-12", "5"]


def test_processing_does_not_touch_inputs(combo_promotion):
    items = [CartItem.regular("5", "Ceviche", "10.00", quantity=2)]

    first = process_cart_items(items, combo_promotion)
    second = process_cart_items(items, combo_promotion)

    assert first == second
    assert items[0].quantity == 2
    assert len(items) == 1


def test_cart_totals_reads_store(store, combo_promotion):
    store.add_item(CartItem.regular("5", "Ceviche", "10.00"))
    store.apply_promotion(combo_promotion)

    totals = cart_totals(store)

    assert totals.final_total == Decimal("90")
