"""Promotions modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from storefront.models import Promotion
from storefront.rendering import format_price


class PromotionsModal(ModalScreen[Promotion | None]):
    """Centered modal listing promotions; Enter selects one for the cart."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "choose", "Apply"),
    ]

    CSS = """
    PromotionsModal {
        align: center middle;
        background: $background 60%;
    }

    #promotions-dialog {
        width: 72;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #promotions-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #promotions-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, promotions: list[Promotion], selected: Promotion | None = None) -> None:
        super().__init__()
        self.promotions = promotions
        self.selected = selected

    def compose(self) -> ComposeResult:
        with Container(id="promotions-dialog"):
            yield Static("Promotions", id="promotions-title")
            yield Static(id="promotions-body")
            yield Static("J/K/↑/↓ move, Enter apply, Esc/q close", id="promotions-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        if not self.promotions:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self.promotions)
        self._refresh_content()

    def action_choose(self) -> None:
        if not self.promotions:
            return
        self.dismiss(self.promotions[self.cursor_index])

    def _refresh_content(self) -> None:
        body = self.query_one("#promotions-body", Static)
        if not self.promotions:
            body.update("No promotions right now")
            return

        content = Text(style="white")
        for idx, promotion in enumerate(self.promotions):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            active = self.selected is not None and self.selected.id == promotion.id
            content.append(pointer)
            content.append(promotion.title, style="bold white" if active else "white")
            if promotion.discount:
                content.append(f"  {promotion.discount}", style="bold #d9731a")
            if promotion.badge:
                content.append(f"  [{promotion.badge}]", style="dim")
            if active:
                content.append("  (applied)", style="#5fbf72")
            bundle = ", ".join(f"{p.name} {format_price(p.price)}" for p in promotion.products)
            if bundle:
                content.append(f"\n      {bundle}", style="dim")
        body.update(content)
