"""Table ordering screen: QR self-order and the waiter dashboard."""

from __future__ import annotations

import logging

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from storefront.api import ApiClient, ApiError, NotFoundError, UnauthorizedError, WaiterClient
from storefront.models import Product, TableInfo, WaiterUser
from storefront.notify import AppNotifier
from storefront.persistence import Storage
from storefront.rendering import format_price, format_table_cart_line, format_table_info
from storefront.table_cart import (
    TableCartStore,
    WaiterAuthStore,
    sign_in,
    submit_qr_order,
    submit_table_order,
)

logger = logging.getLogger(__name__)


class TableScreen(Screen[None]):
    """
    Order for a dining table.

    Guests open the table with its QR code and order for themselves; a signed-in
    waiter picks any table from the dashboard and orders on the guests' behalf.
    The table cart and the waiter session persist between runs.
    """

    BINDINGS = [("escape", "close", "Back to menu")]

    CSS = """
    #table-layout {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #table-status {
        height: auto;
        margin-bottom: 1;
    }

    #table-access {
        height: auto;
    }

    #table-access Input {
        width: 1fr;
    }

    #table-body {
        height: 1fr;
    }

    #table-menu, #table-list, #table-cart {
        height: 1fr;
        border: tall $surface;
    }

    .field-label {
        text-style: bold;
        margin-top: 1;
    }

    #table-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        client: ApiClient,
        products: list[Product],
        storage: Storage | None = None,
        waiter_client: WaiterClient | None = None,
    ) -> None:
        super().__init__()
        self.client = client
        self.waiter_client = waiter_client or WaiterClient(base_url=client.base_url, timeout=client.timeout)
        self.products = products
        self.cart = TableCartStore(storage)
        self.auth = WaiterAuthStore(storage)
        self.table: TableInfo | None = None
        self.waiter_tables: list[TableInfo] = []
        self.notice = ""
        self._sending = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="table-layout"):
            yield Static(id="table-status")
            with Horizontal(id="table-access"):
                yield Input(placeholder="Table QR code, Enter to open", id="qr-code")
                yield Input(placeholder="Waiter email", id="waiter-email")
                yield Input(placeholder="Password, Enter to sign in", password=True, id="waiter-password")
            with Horizontal(id="table-body"):
                with Vertical():
                    yield Static("Menu (Enter adds one)", classes="field-label")
                    yield OptionList(id="table-menu")
                    yield Input(placeholder="Kitchen notes for the next dish", id="item-notes")
                with Vertical():
                    yield Static("Waiter tables", classes="field-label")
                    yield OptionList(id="table-list")
                with Vertical():
                    yield Static("Table order (Enter removes one)", classes="field-label")
                    yield OptionList(id="table-cart")
                    yield Static(id="table-total")
            with Horizontal(id="table-buttons"):
                yield Button("Send order", variant="primary", id="send-order")
                yield Button("Call waiter", id="call-waiter")
                yield Button("Request bill", id="request-bill")
                yield Button("Sign out", id="waiter-logout")

    def on_mount(self) -> None:
        self.notifier = AppNotifier(self.app)
        self.query_one("#table-menu", OptionList).add_options(
            [Option(f"{product.name}  {format_price(product.price)}", id=str(product.id)) for product in self.products]
        )
        if self.auth.token is not None:
            self._load_waiter_tables(self.auth.token)
        self._refresh()

    def action_close(self) -> None:
        self.app.pop_screen()

    # Table access ---------------------------------------------------------

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "qr-code":
            code = event.value.strip()
            if code:
                self._lookup_qr(code)
        elif event.input.id == "waiter-password":
            email = self.query_one("#waiter-email", Input).value.strip()
            password = event.value
            if not email or not password:
                self.notifier.warning("Sign in", "Enter your email and password")
                return
            event.input.value = ""
            self._sign_in(email, password)

    @work(thread=True, exclusive=True, group="table-lookup")
    def _lookup_qr(self, code: str) -> None:
        try:
            table = self.client.get_qr_table(code)
        except NotFoundError:
            logger.info("No table for QR code %r", code)
            self.app.call_from_thread(self._table_missing, code)
            return
        except ApiError as exc:
            self.notifier.error("Table", exc.message)
            return
        self.app.call_from_thread(self._table_opened, table)

    def _table_opened(self, table: TableInfo) -> None:
        self.table = table
        self.notice = ""
        self._refresh()

    def _table_missing(self, code: str) -> None:
        self.table = None
        self.notice = f"Invalid QR code: {code}"
        self._refresh()

    @work(thread=True, exclusive=True, group="waiter-auth")
    def _sign_in(self, email: str, password: str) -> None:
        try:
            user = sign_in(self.waiter_client, self.auth, email, password)
        except ApiError as exc:
            self.notifier.error("Sign in", exc.message or "Invalid credentials")
            return
        self.app.call_from_thread(self._signed_in, user)

    def _signed_in(self, user: WaiterUser) -> None:
        self.table = None
        self.notice = f"Signed in as {user.name}"
        self._refresh()
        if self.auth.token is not None:
            self._load_waiter_tables(self.auth.token)

    @work(thread=True, exclusive=True, group="waiter-tables")
    def _load_waiter_tables(self, token: str) -> None:
        try:
            tables = self.waiter_client.get_tables(token)
        except UnauthorizedError:
            self.auth.logout()
            self.app.call_from_thread(self._signed_out, "Your session expired, sign in again")
            return
        except ApiError as exc:
            self.notifier.error("Tables", exc.message)
            return
        self.app.call_from_thread(self._waiter_tables_loaded, tables)

    def _waiter_tables_loaded(self, tables: list[TableInfo]) -> None:
        self.waiter_tables = tables
        self._refresh()

    def _signed_out(self, message: str) -> None:
        self.waiter_tables = []
        self.table = None
        self.notice = message
        self._refresh()

    # Cart -----------------------------------------------------------------

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        option_id = event.option.id or ""
        if event.option_list.id == "table-menu":
            product = next((p for p in self.products if str(p.id) == option_id), None)
            if product is None:
                return
            notes_input = self.query_one("#item-notes", Input)
            self.cart.add_item(product, notes=notes_input.value.strip())
            notes_input.value = ""
        elif event.option_list.id == "table-cart":
            item = next((i for i in self.cart.items if str(i.product_id) == option_id), None)
            if item is None:
                return
            self.cart.update_quantity(item.product_id, item.quantity - 1)
        elif event.option_list.id == "table-list":
            self.table = next((t for t in self.waiter_tables if str(t.id) == option_id), None)
            self.notice = ""
        self._refresh()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "waiter-logout":
            if self.auth.is_authenticated:
                self.auth.logout()
                self._signed_out("Signed out")
            return
        if self.table is None:
            self.notifier.warning("Table", "Open a table with its QR code or pick one from the list")
            return
        if button_id == "send-order":
            if not self.cart.items:
                self.notifier.warning("Empty order", "Add at least one dish")
                return
            if not self._sending:
                self._sending = True
                self._refresh()
                self._send_order(self.table, self.auth.is_authenticated)
        elif button_id in ("call-waiter", "request-bill"):
            self._table_service(self.table, button_id)

    @work(thread=True, exclusive=True, group="table-order")
    def _send_order(self, table: TableInfo, as_waiter: bool) -> None:
        try:
            if as_waiter:
                submit_table_order(self.cart, self.waiter_client, self.auth, table.id)
            else:
                submit_qr_order(self.cart, self.client, table.id)
        except UnauthorizedError:
            self.app.call_from_thread(self._signed_out, "Your session expired, sign in again")
        except ApiError as exc:
            self.notifier.error("Could not send order", exc.message or "Please try again")
        else:
            self.notifier.success("Order sent!", f"The kitchen received the order for table {table.table_number}.")
        self.app.call_from_thread(self._order_finished)

    def _order_finished(self) -> None:
        self._sending = False
        self._refresh()

    @work(thread=True, group="table-service")
    def _table_service(self, table: TableInfo, action: str) -> None:
        try:
            if action == "call-waiter":
                self.client.call_waiter(table.id)
            else:
                self.client.request_bill(table.id)
        except ApiError as exc:
            self.notifier.error("Table service", exc.message)
            return
        message = "A waiter is on the way" if action == "call-waiter" else "Your bill is on the way"
        self.app.call_from_thread(self.app.notify, message, title=f"Table {table.table_number}", timeout=3)

    # Rendering ------------------------------------------------------------

    def _refresh(self) -> None:
        self.query_one("#table-status", Static).update(self._status())

        tables_widget = self.query_one("#table-list", OptionList)
        tables_widget.clear_options()
        tables_widget.add_options(
            [
                Option(format_table_info(table, selected=self.table is not None and table.id == self.table.id),
                       id=str(table.id))
                for table in self.waiter_tables
            ]
        )

        cart_widget = self.query_one("#table-cart", OptionList)
        cart_widget.clear_options()
        cart_widget.add_options(
            [Option(format_table_cart_line(item), id=str(item.product_id)) for item in self.cart.items]
        )
        self.query_one("#table-total", Static).update(Text(f"Total {format_price(self.cart.total())}", style="bold"))

        self.query_one("#send-order", Button).disabled = self._sending
        self.query_one("#waiter-logout", Button).disabled = not self.auth.is_authenticated

    def _status(self) -> Text:
        text = Text()
        if self.auth.user is not None:
            text.append(f"Waiter {self.auth.user.name}  ", style="bold #5fbf72")
        if self.table is None:
            text.append("No table open", style="dim")
        else:
            text.append(f"Table {self.table.table_number}", style="bold")
        if self.notice:
            text.append(f"\n{self.notice}", style="italic")
        if self._sending:
            text.append("\nSending order...", style="dim")
        return text
