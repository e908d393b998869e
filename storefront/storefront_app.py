"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from storefront.api import ApiClient, ApiError
from storefront.blog_screen import BlogScreen
from storefront.cart_store import CartStore
from storefront.checkout import FORM_STATES, CheckoutFlow, CheckoutState
from storefront.checkout_modal import CheckoutModal, PaymentConfirmation, PaymentModal
from storefront.data import RESTAURANT_NAME
from storefront.models import CartItem, Category, Product, Promotion
from storefront.notify import AppNotifier
from storefront.persistence import LocalStorage
from storefront.promotions_modal import PromotionsModal
from storefront.rendering import format_cart_line, format_price, format_totals
from storefront.reservation_screen import ReservationScreen
from storefront.table_screen import TableScreen
from storefront.validation import CardDetails

logger = logging.getLogger(__name__)


class StorefrontApp(App):
    """Menu search, cart with promotions, checkout and reservations against the restaurant API."""

    TITLE = RESTAURANT_NAME
    SUB_TITLE = "Menu / Cart / Reservations / Tables"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #cart-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #search-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-totals {
        height: auto;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    search_query = reactive("")
    selected_index = reactive(0)
    cart_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "add_selected", "Add to cart"),
        ("backspace", "backspace_query", "Delete query char"),
        ("escape", "cancel_active_mode", "Exit search"),
        Binding("ctrl+s", "checkout", "Checkout", priority=True),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        client: ApiClient | None = None,
        store: CartStore | None = None,
    ) -> None:
        super().__init__()
        self.client = client or ApiClient()
        if store is None:
            store = CartStore(LocalStorage())
        self.store = store
        self.notifier = AppNotifier(self, on_success=self._order_acknowledged)
        self.flow = CheckoutFlow(self.store, self.client, self.notifier)
        self.products: list[Product] = []
        self.categories: dict[int, Category] = {}
        self.promotions: list[Promotion] = []
        self.system_status = "Loading menu..."
        self._log_debug("app_init")

    def _log_debug(self, message: str) -> None:
        logger.debug(message)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="cart-pane"):
                yield Static("Your cart", classes="pane-title")
                yield Static("(cart is empty)", id="cart-list")
                yield Static(id="cart-totals")
            with Vertical(id="search-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")

    def on_mount(self) -> None:
        self._refresh_all()
        self._load_catalog()

    @work(thread=True, exclusive=True, group="catalog")
    def _load_catalog(self) -> None:
        try:
            products = self.client.get_products()
            categories = self.client.get_categories()
            promotions = self.client.get_promotions()
        except ApiError as exc:
            logger.warning("Catalog load failed: %s", exc.message)
            self.call_from_thread(self._catalog_failed, exc.message)
            return
        self.call_from_thread(self._catalog_loaded, products, categories, promotions)

    def _catalog_loaded(
        self, products: list[Product], categories: list[Category], promotions: list[Promotion]
    ) -> None:
        self.products = [product for product in products if product.is_available]
        self.categories = {category.id: category for category in categories}
        self.promotions = promotions
        self.system_status = f"{len(self.products)} dishes, {len(self.promotions)} promotions"
        self._log_debug(f"catalog_loaded products={len(self.products)} promotions={len(self.promotions)}")
        self._refresh_search()

    def _catalog_failed(self, message: str) -> None:
        self.system_status = f"Menu unavailable: {message}"
        self._refresh_search()

    def _is_main_screen(self) -> bool:
        return len(self.screen_stack) <= 1

    def on_key(self, event: Key) -> None:
        if not self._is_main_screen():
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        if self.input_state == "active":
            self.search_query += event.character
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        key = event.character.lower()
        handlers = {
            "/": self._start_search,
            "s": self._start_search,
            "j": lambda: self._move_cart_selection(1),
            "k": lambda: self._move_cart_selection(-1),
            "+": lambda: self._change_selected_quantity(1),
            "=": lambda: self._change_selected_quantity(1),
            "-": lambda: self._change_selected_quantity(-1),
            "d": self._delete_selected_line,
            "p": self._open_promotions,
            "x": self._remove_promotion,
            "r": self._open_reservations,
            "t": self._open_table_ordering,
            "b": self._open_blog,
            "c": self.action_checkout,
        }
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    def _start_search(self) -> None:
        self.input_state = "active"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cancel_active_mode(self) -> None:
        if not self._is_main_screen() or self.input_state == "normal":
            return
        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if not self._is_main_screen() or self.input_state != "active":
            return
        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_add_selected(self) -> None:
        if not self._is_main_screen() or self.input_state != "active":
            return
        results = self._filtered_results()
        if not results:
            return
        product = results[self.selected_index]
        self.store.add_item(product.to_cart_item())
        self.cart_selected_index = self._cart_index_of(str(product.id))
        self.system_status = f"Added {product.name}"
        self._log_debug(f"cart_add product_id={product.id}")
        self._refresh_all()

    def action_backspace_query(self) -> None:
        if not self._is_main_screen() or self.input_state != "active" or not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    # Cart -----------------------------------------------------------------

    def _cart_lines(self) -> list[CartItem]:
        return self.flow.processed().display_items

    def _cart_index_of(self, item_id: str) -> int | None:
        for idx, item in enumerate(self._cart_lines()):
            if item.id == item_id:
                return idx
        return None

    def _selected_line(self) -> CartItem | None:
        lines = self._cart_lines()
        if self.cart_selected_index is None or not (0 <= self.cart_selected_index < len(lines)):
            return None
        return lines[self.cart_selected_index]

    def _move_cart_selection(self, delta: int) -> None:
        lines = self._cart_lines()
        if not lines:
            return
        if self.cart_selected_index is None:
            self.cart_selected_index = 0 if delta > 0 else len(lines) - 1
        else:
            self.cart_selected_index = (self.cart_selected_index + delta) % len(lines)
        self._refresh_cart()

    def _change_selected_quantity(self, delta: int) -> None:
        item = self._selected_line()
        if item is None:
            return
        if item.is_promo:
            self.system_status = "Promotion items change with the promotion (x to remove)"
            self._refresh_search()
            return
        self.store.update_quantity(item.id, item.quantity + delta)
        self._refresh_all()

    def _delete_selected_line(self) -> None:
        item = self._selected_line()
        if item is None:
            return
        if item.is_promo:
            self._remove_promotion()
            return
        self.store.remove_item(item.id)
        self._log_debug(f"cart_remove item_id={item.id}")
        self._refresh_all()

    def _open_promotions(self) -> None:
        def _chosen(promotion: Promotion | None) -> None:
            if promotion is None:
                return
            self.store.apply_promotion(promotion)
            self.system_status = f"Promotion applied: {promotion.title}"
            self._log_debug(f"promotion_applied id={promotion.id}")
            self._refresh_all()

        self.push_screen(PromotionsModal(self.promotions, self.store.selected_promotion), callback=_chosen)

    def _remove_promotion(self) -> None:
        if self.store.selected_promotion is None:
            return
        self.store.remove_promotion()
        self.system_status = "Promotion removed"
        self._refresh_all()

    def _open_reservations(self) -> None:
        self.push_screen(ReservationScreen(self.client, self.notifier))

    def _open_table_ordering(self) -> None:
        self.push_screen(TableScreen(self.client, self.products, self.store.storage))

    def _open_blog(self) -> None:
        self.push_screen(BlogScreen(self.client))

    # Checkout -------------------------------------------------------------

    def action_checkout(self) -> None:
        self._log_debug(f"checkout_enter state={self.flow.state.value} lines={len(self._cart_lines())}")
        if not self._is_main_screen():
            return
        if self.flow.state != CheckoutState.IDLE and self.flow.state not in FORM_STATES:
            self._log_debug("checkout_blocked reason=busy")
            return
        if not self._cart_lines():
            self.notifier.warning("Empty cart", "Add a dish or a promotion first")
            return
        self.flow.open()
        self.push_screen(CheckoutModal(self.flow), callback=self._checkout_form_closed)

    def _checkout_form_closed(self, proceed: bool | None) -> None:
        if not proceed:
            self.flow.close()
            return
        self.push_screen(PaymentModal(self.flow), callback=self._payment_closed)

    def _payment_closed(self, result: PaymentConfirmation | None) -> None:
        if result is None:
            self.flow.cancel_payment()
            self.push_screen(CheckoutModal(self.flow), callback=self._checkout_form_closed)
            return
        self.system_status = "Sending order..."
        self._refresh_search()
        self._confirm_payment(result.card)

    @work(thread=True, exclusive=True, group="checkout")
    def _confirm_payment(self, card: CardDetails | None) -> None:
        self.flow.handle_confirm_payment(card)
        self.call_from_thread(self._payment_finished)

    def _payment_finished(self) -> None:
        state = self.flow.state
        self._log_debug(f"checkout_finished state={state.value}")
        if state == CheckoutState.AWAITING_PAYMENT_CONFIRMATION:
            self.flow.cancel_payment()
        if state == CheckoutState.ERROR:
            self.system_status = "Order failed, your cart is unchanged"
        elif state == CheckoutState.SUCCESS and self.flow.receipt is not None:
            self.system_status = f"Order {self.flow.receipt.order_number} created"
        else:
            self.system_status = "Ready"
        self._refresh_all()

    def _order_acknowledged(self) -> None:
        self.flow.acknowledge_success()
        self.cart_selected_index = None
        self._log_debug("checkout_acknowledged")
        self._refresh_all()

    # Rendering ------------------------------------------------------------

    def _filtered_results(self) -> list[Product]:
        if not self.search_query:
            return self.products
        q = self.search_query.lower()
        return [
            product
            for product in self.products
            if q in product.name.lower() or q in product.description.lower()
        ]

    def _refresh_all(self) -> None:
        self._refresh_cart()
        self._refresh_search()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            start = max(0, selected - rows // 2)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_cart(self) -> None:
        try:
            cart_widget = self.query_one("#cart-list", Static)
            totals_widget = self.query_one("#cart-totals", Static)
        except NoMatches:
            return

        lines = self._cart_lines()
        totals_widget.update(format_totals(self.flow.totals()))
        if not lines:
            self.cart_selected_index = None
            cart_widget.update("(cart is empty)")
            return

        if self.cart_selected_index is not None and self.cart_selected_index >= len(lines):
            self.cart_selected_index = len(lines) - 1

        start, end = self._window_bounds(len(lines), self._visible_rows(cart_widget), self.cart_selected_index)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            text.append("➤ " if idx == self.cart_selected_index else "  ")
            text.append_text(format_cart_line(lines[idx]))
        if end < len(lines):
            text.append("\n⋮", style="dim")
        cart_widget.update(text)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            promotion = self.store.selected_promotion
            applied = f"  Promotion: {promotion.title}" if promotion else ""
            bar.update(
                "/ search, J/K select, +/- qty, D delete, P promos, X drop promo, R reserve, T table, B news, C checkout\n"
                f"{self.system_status or 'Ready'}{applied}"
            )
            return

        text = Text()
        text.append(" MENU ", style="bold #0b1f0f on #5fbf72")
        text.append(f" {self.search_query}")
        bar.update(text)

    def _refresh_results(self, results: list[Product]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        start, end = self._window_bounds(len(results), self._visible_rows(results_widget), self.selected_index)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            product = results[idx]
            text.append("➤ " if idx == self.selected_index else "  ")
            text.append(product.name)
            text.append(f"  {format_price(product.price)}", style="dim")
            category = self.categories.get(product.category_id) if product.category_id is not None else None
            if category is not None:
                text.append(f"  {category.name}", style="italic dim")
        if end < len(results):
            text.append("\n⋮", style="dim")
        results_widget.update(text)
