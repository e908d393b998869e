from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from storefront.api import ApiClient, ApiError
from storefront.checkout import CheckoutFlow, CheckoutState, InvalidTransition
from storefront.models import CartItem, OrderType, PaymentMethod
from storefront.validation import CardDetails

VALID_CARD = CardDetails(number="4111 1111 1111 1111", holder="ANA PEREZ", expiry="12/99", cvv="123")


@pytest.fixture
def flow(store, api_client, notifier) -> CheckoutFlow:
    store.add_item(CartItem.regular("5", "Ceviche", "10.00", quantity=3))
    return CheckoutFlow(store, api_client, notifier)


def _fill_delivery(flow, **overrides):
    values = dict(
        name="Ana",
        last_name="Perez",
        dni="12345678",
        email="ana@example.com",
        phone="987654321",
        address="Av. Larco 123",
    )
    values.update(overrides)
    flow.select_order_type(OrderType.DELIVERY)
    flow.select_payment_method(PaymentMethod.CASH)
    flow.update_customer(**values)


def test_opening_moves_to_order_type(flow):
    flow.open()

    assert flow.sidebar_open
    assert flow.state == CheckoutState.AWAITING_ORDER_TYPE


def test_missing_order_type_blocks_without_network(flow, api_client, notifier):
    flow.open()

    assert flow.handle_proceed_to_payment() is False
    assert notifier.messages == [("warning", "Order type", "Please choose delivery or online pickup")]
    api_client.create_order.assert_not_called()


def test_missing_payment_method_warns(flow, notifier):
    flow.select_order_type(OrderType.ONLINE)

    assert flow.handle_proceed_to_payment() is False
    assert notifier.messages[-1][1] == "Payment method"


@pytest.mark.parametrize(
    "missing, title",
    [
        ({"dni": ""}, "Incomplete details"),
        ({"email": "  "}, "Contact required"),
        ({"address": ""}, "Address required"),
    ],
)
def test_delivery_requires_customer_data(flow, notifier, missing, title):
    _fill_delivery(flow, **missing)

    assert flow.handle_proceed_to_payment() is False
    assert len(notifier.messages) == 1
    assert notifier.messages[0][1] == title


def test_personal_details_checked_before_address(flow, notifier):
    _fill_delivery(flow, name="", address="")

    flow.handle_proceed_to_payment()

    assert notifier.messages == [("warning", "Incomplete details", "Please fill in all your personal details")]


def test_online_pickup_skips_customer_data(flow):
    flow.select_order_type(OrderType.ONLINE)
    flow.select_payment_method(PaymentMethod.YAPE)

    assert flow.state == CheckoutState.AWAITING_PAYMENT_METHOD
    assert flow.handle_proceed_to_payment() is True
    assert flow.state == CheckoutState.AWAITING_PAYMENT_CONFIRMATION
    assert flow.payment_modal_open


def test_cancel_payment_returns_to_form(flow):
    _fill_delivery(flow)
    flow.handle_proceed_to_payment()

    flow.cancel_payment()

    assert flow.state == CheckoutState.AWAITING_CUSTOMER_DATA


def test_confirm_outside_payment_step_raises(flow):
    with pytest.raises(InvalidTransition):
        flow.handle_confirm_payment()


def test_successful_order_waits_for_acknowledgment(flow, store, api_client, notifier):
    _fill_delivery(flow)
    flow.handle_proceed_to_payment()

    assert flow.handle_confirm_payment() is True
    assert flow.state == CheckoutState.SUCCESS
    assert notifier.messages[-1] == (
        "success",
        "Order created!",
        "Your order ORD-0007 was created. Total: S/ 30.00",
    )
    assert store.get_item_quantity("5") == 3

    flow.acknowledge_success()

    assert store.items == []
    assert store.selected_promotion is None
    assert flow.state == CheckoutState.IDLE
    assert flow.order_type is None
    api_client.create_order.assert_called_once()


def test_failed_order_keeps_cart(flow, store, api_client, notifier):
    api_client.create_order.side_effect = ApiError("Kitchen closed", 503)
    _fill_delivery(flow)
    flow.handle_proceed_to_payment()

    assert flow.handle_confirm_payment() is False
    assert flow.state == CheckoutState.ERROR
    assert notifier.messages[-1] == ("error", "Could not create order", "Kitchen closed")
    assert store.get_item_quantity("5") == 3

    # the form stays editable for a retry
    assert flow.handle_proceed_to_payment() is True


def test_failed_order_without_message_uses_generic_text(flow, api_client, notifier):
    api_client.create_order.side_effect = ApiError("", 500)
    _fill_delivery(flow)
    flow.handle_proceed_to_payment()

    flow.handle_confirm_payment()

    assert notifier.messages[-1][2] == "There was a problem processing your order. Please try again."


def test_unreadable_order_response_keeps_cart(store, notifier):
    resp = Mock(spec=requests.Response)
    resp.status_code = 201
    resp.json.return_value = {"order": {"id": 1, "order_number": "ORD-1", "total": "S/ 30.00"}}
    session = Mock()
    session.headers = {}
    session.request.return_value = resp
    store.add_item(CartItem.regular("5", "Ceviche", "10.00", quantity=3))
    flow = CheckoutFlow(store, ApiClient(base_url="http://backend.test", session=session), notifier)
    flow.select_order_type(OrderType.ONLINE)
    flow.select_payment_method(PaymentMethod.CASH)
    flow.handle_proceed_to_payment()

    assert flow.handle_confirm_payment() is False
    assert flow.state == CheckoutState.ERROR
    assert notifier.messages[-1] == ("error", "Could not create order", "Unexpected response from server")
    assert store.get_item_quantity("5") == 3
    assert flow.handle_proceed_to_payment() is True


def test_card_payment_requires_valid_card(flow, api_client, notifier):
    flow.select_order_type(OrderType.ONLINE)
    flow.select_payment_method(PaymentMethod.CARD)
    flow.handle_proceed_to_payment()

    bad_card = CardDetails(number="4111 1111 1111 1112", holder="ANA", expiry="12/99", cvv="123")
    assert flow.handle_confirm_payment(bad_card) is False
    assert notifier.messages[-1] == ("warning", "Card details", "Card number is not valid")
    api_client.create_order.assert_not_called()

    assert flow.handle_confirm_payment(VALID_CARD) is True


def test_empty_cart_is_not_submitted(store, api_client, notifier):
    flow = CheckoutFlow(store, api_client, notifier)
    flow.select_order_type(OrderType.ONLINE)
    flow.select_payment_method(PaymentMethod.CASH)
    flow.handle_proceed_to_payment()

    assert flow.handle_confirm_payment() is False
    assert notifier.messages[-1][1] == "Empty cart"
    api_client.create_order.assert_not_called()


def test_order_payload(flow, store, api_client, combo_promotion):
    store.apply_promotion(combo_promotion)
    _fill_delivery(flow, notes="Sin cebolla")
    flow.handle_proceed_to_payment()

    flow.handle_confirm_payment()

    order = api_client.create_order.call_args.args[0]
    payload = order.to_payload()
    assert payload["order_type"] == "delivery"
    assert payload["payment_method"] == "cash"
    assert payload["delivery_address"] == "Av. Larco 123"
    assert payload["customer_lastname"] == "Perez"
    assert payload["notes"] == "Sin cebolla"
    assert payload["items"] == [
        {"product_id": 5, "quantity": 3},
        {"product_id": 11, "quantity": 1, "special_instructions": "** PROMOTION: Combo Familiar **"},
        {"product_id": 12, "quantity": 1, "special_instructions": "** PROMOTION: Combo Familiar **"},
    ]


def test_pickup_order_is_sent_as_online(flow, api_client):
    flow.select_order_type(OrderType.ONLINE)
    flow.select_payment_method(PaymentMethod.PLIN)
    flow.update_customer(address="ignored")
    flow.handle_proceed_to_payment()

    flow.handle_confirm_payment()

    payload = api_client.create_order.call_args.args[0].to_payload()
    assert payload["order_type"] == "online"
    assert "delivery_address" not in payload


def test_totals_follow_store(flow, store, combo_promotion):
    store.apply_promotion(combo_promotion)

    assert flow.totals().final_total == Decimal("110")


def test_unknown_customer_field_is_rejected(flow):
    with pytest.raises(TypeError):
        flow.update_customer(nickname="Anita")
