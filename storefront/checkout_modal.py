"""Checkout form and payment confirmation modal screens."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, RadioButton, RadioSet, Static

from storefront.checkout import CheckoutFlow
from storefront.data import ORDER_TYPE_LABELS, PAYMENT_METHOD_LABELS
from storefront.models import OrderType, PaymentMethod
from storefront.rendering import format_price, format_totals
from storefront.validation import CardDetails, validate_card

_CUSTOMER_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "First name"),
    ("last_name", "Last name"),
    ("dni", "DNI"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("address", "Delivery address"),
    ("notes", "Notes for the kitchen"),
)


class CheckoutModal(ModalScreen[bool]):
    """Order type, payment method and customer data. Dismisses True once validated."""

    BINDINGS = [("escape", "close", "Close")]

    CSS = """
    CheckoutModal {
        align: center middle;
        background: $background 60%;
    }

    #checkout-dialog {
        width: 72;
        height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    .section-title {
        text-style: bold;
        margin-top: 1;
        color: white;
    }

    #checkout-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, flow: CheckoutFlow) -> None:
        super().__init__()
        self.flow = flow

    def compose(self) -> ComposeResult:
        flow = self.flow
        with VerticalScroll(id="checkout-dialog"):
            yield Static("Checkout", classes="section-title")
            yield Static("Order type", classes="section-title")
            with RadioSet(id="order-type"):
                for order_type, label in ORDER_TYPE_LABELS.items():
                    yield RadioButton(label, value=flow.order_type == order_type, name=order_type.value)
            yield Static("Payment method", classes="section-title")
            with RadioSet(id="payment-method"):
                for method, label in PAYMENT_METHOD_LABELS.items():
                    yield RadioButton(label, value=flow.payment_method == method, name=method.value)
            yield Static("Your details", classes="section-title")
            for field_name, placeholder in _CUSTOMER_FIELDS:
                yield Input(
                    value=getattr(flow.customer, field_name),
                    placeholder=placeholder,
                    id=f"customer-{field_name}",
                )
            yield Static(format_totals(flow.totals()), id="checkout-totals")
            with Horizontal(id="checkout-buttons"):
                yield Button("Proceed to payment", variant="primary", id="proceed")
                yield Button("Cancel", id="cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.action_close()
            return
        if event.button.id == "proceed":
            self._sync_form()
            if self.flow.handle_proceed_to_payment():
                self.dismiss(True)

    def action_close(self) -> None:
        self._sync_form()
        self.dismiss(False)

    def _sync_form(self) -> None:
        order_button = self.query_one("#order-type", RadioSet).pressed_button
        if order_button is not None and order_button.name:
            self.flow.select_order_type(OrderType(order_button.name))
        payment_button = self.query_one("#payment-method", RadioSet).pressed_button
        if payment_button is not None and payment_button.name:
            self.flow.select_payment_method(PaymentMethod(payment_button.name))
        values = {name: self.query_one(f"#customer-{name}", Input).value for name, _ in _CUSTOMER_FIELDS}
        self.flow.update_customer(**values)


@dataclass(frozen=True)
class PaymentConfirmation:
    card: CardDetails | None = None


class PaymentModal(ModalScreen[PaymentConfirmation | None]):
    """Payment-method specific confirmation step before the order is sent."""

    BINDINGS = [("escape", "close", "Close")]

    CSS = """
    PaymentModal {
        align: center middle;
        background: $background 60%;
    }

    #payment-dialog {
        width: 60;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #payment-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #payment-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, flow: CheckoutFlow) -> None:
        super().__init__()
        self.flow = flow
        self.method = flow.payment_method

    def compose(self) -> ComposeResult:
        label = PAYMENT_METHOD_LABELS.get(self.method, "") if self.method else ""
        with Container(id="payment-dialog"):
            yield Static(f"Pay with {label}", id="payment-title")
            yield Static(self._summary(), id="payment-summary")
            if self.method == PaymentMethod.CARD:
                yield Input(placeholder="1234 5678 9012 3456", max_length=19, id="card-number")
                yield Input(placeholder="NAME ON CARD", id="card-holder")
                yield Input(placeholder="MM/YY", max_length=5, id="card-expiry")
                yield Input(placeholder="CVV", max_length=4, password=True, id="card-cvv")
            with Horizontal(id="payment-buttons"):
                yield Button("Confirm order", variant="success", id="confirm")
                yield Button("Back", id="back")

    def _summary(self) -> Text:
        text = Text()
        if self.method in (PaymentMethod.YAPE, PaymentMethod.PLIN):
            text.append("Scan the QR code in your app after confirming.\n\n")
        elif self.method == PaymentMethod.CASH:
            text.append("Pay in cash when you receive your order.\n\n")
        text.append(f"Amount to pay: {format_price(self.flow.totals().final_total)}", style="bold")
        return text

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "back":
            self.action_close()
            return
        if event.button.id != "confirm":
            return
        card = None
        if self.method == PaymentMethod.CARD:
            card = CardDetails(
                number=self.query_one("#card-number", Input).value,
                holder=self.query_one("#card-holder", Input).value.upper(),
                expiry=self.query_one("#card-expiry", Input).value,
                cvv=self.query_one("#card-cvv", Input).value,
            )
            problem = validate_card(card)
            if problem is not None:
                self.app.notify(problem, title="Card details", severity="warning", timeout=3)
                return
        self.dismiss(PaymentConfirmation(card=card))

    def action_close(self) -> None:
        self.dismiss(None)

