"""Cart sidebar checkout flow: form, payment confirmation, order submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from enum import Enum
from typing import Protocol

from storefront.aggregation import cart_totals, process_cart_items
from storefront.api import ApiClient, ApiError
from storefront.cart_store import CartStore
from storefront.config import DELIVERY_FEE
from storefront.models import (
    CartTotals,
    OrderItemRequest,
    OrderReceipt,
    OrderRequest,
    OrderType,
    PaymentMethod,
    ProcessedCart,
)
from storefront.rendering import format_price
from storefront.validation import CardDetails, not_empty, validate_card

logger = logging.getLogger(__name__)

GENERIC_ORDER_ERROR = "There was a problem processing your order. Please try again."


class Notifier(Protocol):
    def warning(self, title: str, text: str) -> None: ...

    def error(self, title: str, text: str) -> None: ...

    def success(self, title: str, text: str) -> None: ...


class InvalidTransition(RuntimeError):
    """Raised when a flow operation is called from a state that does not allow it."""


class CheckoutState(str, Enum):
    IDLE = "idle"
    AWAITING_ORDER_TYPE = "awaiting_order_type"
    AWAITING_PAYMENT_METHOD = "awaiting_payment_method"
    AWAITING_CUSTOMER_DATA = "awaiting_customer_data"
    AWAITING_PAYMENT_CONFIRMATION = "awaiting_payment_confirmation"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


FORM_STATES = frozenset(
    {
        CheckoutState.AWAITING_ORDER_TYPE,
        CheckoutState.AWAITING_PAYMENT_METHOD,
        CheckoutState.AWAITING_CUSTOMER_DATA,
        CheckoutState.ERROR,
    }
)


@dataclass(frozen=True)
class CustomerData:
    name: str = ""
    last_name: str = ""
    dni: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    notes: str = ""


# Delivery orders need every field except the free-text notes, checked in this order.
_DELIVERY_RULES: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("name", "last_name", "dni"), "Incomplete details", "Please fill in all your personal details"),
    (("email", "phone"), "Contact required", "Please enter your email and phone"),
    (("address",), "Address required", "Please enter your delivery address"),
)


class CheckoutFlow:
    """
    Explicit state machine behind the cart sidebar.

    Validation failures never reach the network, network failures never touch
    the cart, and the cart is only cleared once the user acknowledges a
    successful order.
    """

    def __init__(
        self,
        store: CartStore,
        client: ApiClient,
        notifier: Notifier,
        delivery_fee: Decimal | int = DELIVERY_FEE,
    ) -> None:
        self.store = store
        self.client = client
        self.notifier = notifier
        self.delivery_fee = delivery_fee
        self.state = CheckoutState.IDLE
        self.sidebar_open = False
        self.order_type: OrderType | None = None
        self.payment_method: PaymentMethod | None = None
        self.customer = CustomerData()
        self.receipt: OrderReceipt | None = None
        self.last_error: str | None = None

    @property
    def payment_modal_open(self) -> bool:
        return self.state in (CheckoutState.AWAITING_PAYMENT_CONFIRMATION, CheckoutState.SUBMITTING)

    def processed(self) -> ProcessedCart:
        return process_cart_items(self.store.items, self.store.selected_promotion)

    def totals(self) -> CartTotals:
        return cart_totals(self.store, self.delivery_fee)

    def open(self) -> None:
        self.sidebar_open = True
        if self.state == CheckoutState.IDLE:
            self.state = self._form_state()

    def close(self) -> None:
        self.sidebar_open = False

    def select_order_type(self, order_type: OrderType | str) -> None:
        self._require_form()
        self.order_type = OrderType(order_type)
        self.state = self._form_state()

    def select_payment_method(self, payment_method: PaymentMethod | str) -> None:
        self._require_form()
        self.payment_method = PaymentMethod(payment_method)
        self.state = self._form_state()

    def update_customer(self, **values: str) -> None:
        self._require_form()
        known = {f.name for f in fields(CustomerData)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"Unknown customer fields: {', '.join(sorted(unknown))}")
        self.customer = replace(self.customer, **values)

    def handle_proceed_to_payment(self) -> bool:
        """Validate the form and open the payment confirmation step."""
        self._require_form()
        problem = self._first_form_problem()
        if problem is not None:
            self.notifier.warning(*problem)
            return False
        self.last_error = None
        self.state = CheckoutState.AWAITING_PAYMENT_CONFIRMATION
        return True

    def cancel_payment(self) -> None:
        if self.state != CheckoutState.AWAITING_PAYMENT_CONFIRMATION:
            raise InvalidTransition(f"No payment step to cancel in state {self.state.value}")
        self.state = self._form_state()

    def handle_confirm_payment(self, card: CardDetails | None = None) -> bool:
        """Submit the order. Returns True once the server acknowledged it."""
        if self.state != CheckoutState.AWAITING_PAYMENT_CONFIRMATION:
            raise InvalidTransition(f"Cannot confirm payment in state {self.state.value}")

        processed = self.processed()
        if not processed.display_items:
            self.notifier.warning("Empty cart", "There are no products in the cart")
            return False

        if self.payment_method == PaymentMethod.CARD:
            card_problem = "Enter your card details" if card is None else validate_card(card)
            if card_problem is not None:
                self.notifier.warning("Card details", card_problem)
                return False

        try:
            order = self._build_order(processed)
        except ValueError:
            self.notifier.warning("Invalid cart", "The cart contains a product that cannot be ordered")
            return False

        self.state = CheckoutState.SUBMITTING
        try:
            receipt = self.client.create_order(order)
        except ApiError as exc:
            logger.warning("Order submission failed: %s", exc.message)
            self.state = CheckoutState.ERROR
            self.last_error = exc.message or GENERIC_ORDER_ERROR
            self.notifier.error("Could not create order", self.last_error)
            return False

        self.receipt = receipt
        self.state = CheckoutState.SUCCESS
        self.sidebar_open = False
        logger.info("Order %s created", receipt.order_number)
        self.notifier.success(
            "Order created!",
            f"Your order {receipt.order_number} was created. Total: {format_price(receipt.total)}",
        )
        return True

    def acknowledge_success(self) -> None:
        """The user dismissed the success notice: clear the cart and reset the form."""
        if self.state != CheckoutState.SUCCESS:
            raise InvalidTransition(f"Nothing to acknowledge in state {self.state.value}")
        self.store.clear_cart()
        self.reset_form()
        self.state = CheckoutState.IDLE

    def reset_form(self) -> None:
        self.order_type = None
        self.payment_method = None
        self.customer = CustomerData()
        self.receipt = None
        self.last_error = None

    def _require_form(self) -> None:
        if self.state == CheckoutState.IDLE:
            self.state = self._form_state()
        if self.state not in FORM_STATES:
            raise InvalidTransition(f"Form is not editable in state {self.state.value}")

    def _form_state(self) -> CheckoutState:
        if self.order_type is None:
            return CheckoutState.AWAITING_ORDER_TYPE
        if self.payment_method is None or self.order_type != OrderType.DELIVERY:
            return CheckoutState.AWAITING_PAYMENT_METHOD
        return CheckoutState.AWAITING_CUSTOMER_DATA

    def _first_form_problem(self) -> tuple[str, str] | None:
        if self.order_type is None:
            return ("Order type", "Please choose delivery or online pickup")
        if self.payment_method is None:
            return ("Payment method", "Please choose a payment method")
        if self.order_type == OrderType.DELIVERY:
            for field_names, title, text in _DELIVERY_RULES:
                if not all(not_empty(getattr(self.customer, name)) for name in field_names):
                    return (title, text)
        return None

    def _build_order(self, processed: ProcessedCart) -> OrderRequest:
        is_delivery = self.order_type == OrderType.DELIVERY
        promotion = self.store.selected_promotion
        items = [OrderItemRequest(product_id=int(item.line.product_id), quantity=item.quantity)
                 for item in processed.regular_items]
        items.extend(
            OrderItemRequest(
                product_id=int(item.line.product_id),
                quantity=item.quantity,
                special_instructions=f"** PROMOTION: {promotion.title if promotion else 'Combo'} **",
            )
            for item in processed.promo_items
        )
        customer = self.customer
        return OrderRequest(
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_lastname=customer.last_name or None,
            customer_dni=customer.dni or None,
            customer_email=customer.email or None,
            order_type=OrderType.DELIVERY if is_delivery else OrderType.ONLINE,
            payment_method=self.payment_method,
            delivery_address=customer.address if is_delivery else None,
            notes=customer.notes or None,
            items=items,
        )
