"""Rendering helpers for prices, cart rows, reservation slots, table orders and posts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from rich.text import Text

from storefront.config import CURRENCY_PREFIX
from storefront.data import AVAILABILITY_LABELS
from storefront.models import BlogPost, CartItem, CartTotals, Table, TableCartItem, TableInfo, TimeSlot

_CENT = Decimal("0.01")


def format_price(amount: Decimal | int | float) -> str:
    """Format an amount as ``S/ 12.50``."""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return f"{CURRENCY_PREFIX} {value.quantize(_CENT, rounding=ROUND_HALF_UP)}"


def tier_style(tier: str) -> str:
    """Return a consistent badge style for availability tiers."""
    if tier == "high":
        return "bold #0b1f0f on #5fbf72"
    if tier == "medium":
        return "bold #1f1a0b on #e0c050"
    if tier == "low":
        return "bold #ffffff on #b23a48"
    return "dim"


def availability_label(tier: str) -> str:
    return AVAILABILITY_LABELS.get(tier, "Not available")


def format_cart_line(item: CartItem) -> Text:
    """Render a cart row with a promo tag for bundled products."""
    text = Text()
    if item.is_promo:
        text.append("PROMO", style="bold #ffffff on #d9731a")
        text.append(" ")
    text.append(f"{item.quantity} x {item.name}")
    text.append(f"  {format_price(item.line_total)}", style="dim")
    return text


def format_totals(totals: CartTotals) -> Text:
    text = Text()
    if totals.promo_original_total:
        text.append(f"Promotion  {format_price(totals.promo_original_total)}\n")
    if totals.promo_discount:
        text.append(f"Discount  -{format_price(totals.promo_discount)}\n", style="#5fbf72")
    text.append(f"Subtotal   {format_price(totals.subtotal)}\n")
    text.append(f"Shipping   {format_price(totals.shipping)}\n")
    text.append(f"Total      {format_price(totals.final_total)}", style="bold")
    return text


def format_slot(slot: TimeSlot, selected: bool = False) -> Text:
    text = Text()
    text.append("➤ " if selected else "  ")
    text.append(f"{slot.time:<8}")
    if slot.is_available:
        text.append(f" {availability_label(slot.tier)} ", style=tier_style(slot.tier))
    else:
        text.append(" Full ", style=tier_style("low"))
    return text


def format_table(table: Table, selected: bool = False) -> Text:
    text = Text()
    text.append("➤ " if selected else "  ")
    text.append(f"Table {table.table_number}  {table.capacity} p.  {table.location}")
    if table.is_blocked:
        reason = f" ({table.block_reason})" if table.block_reason else ""
        text.append(f"  OCCUPIED{reason}", style="bold #b23a48")
    return text


def format_table_info(table: TableInfo, selected: bool = False) -> Text:
    text = Text()
    text.append("➤ " if selected else "  ")
    text.append(f"Table {table.table_number}")
    if table.capacity:
        text.append(f"  {table.capacity} p.", style="dim")
    if table.status:
        text.append(f"  {table.status}", style="italic dim")
    return text


def format_table_cart_line(item: TableCartItem) -> Text:
    text = Text()
    text.append(f"{item.quantity} x {item.name}")
    text.append(f"  {format_price(item.price * item.quantity)}", style="dim")
    if item.notes:
        text.append(f"  ({item.notes})", style="italic dim")
    return text


def format_blog_post(post: BlogPost) -> Text:
    text = Text()
    text.append(post.title, style="bold")
    if post.published_at:
        text.append(f"\n{post.published_at[:10]}", style="dim")
    body = post.content or post.excerpt
    if body:
        text.append(f"\n\n{body}")
    return text
