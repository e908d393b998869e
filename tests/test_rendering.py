from decimal import Decimal

from storefront.models import BlogPost, CartItem, PromoLine, Table, TableCartItem, TableInfo
from storefront.rendering import (
    format_blog_post,
    format_cart_line,
    format_price,
    format_table,
    format_table_cart_line,
    format_table_info,
)


def test_format_price_rounds_half_up():
    assert format_price(Decimal("12.5")) == "S/ 12.50"
    assert format_price(Decimal("0.125")) == "S/ 0.13"
    assert format_price(3) == "S/ 3.00"


def test_promo_line_is_tagged():
    promo = CartItem(line=PromoLine(promotion_id=3, product_id="11"), name="Lomo Saltado", price=Decimal("60"))

    assert format_cart_line(promo).plain == "PROMO 1 x Lomo Saltado  S/ 60.00"


def test_blocked_table_shows_reason():
    table = Table(id=10, table_number="T10", capacity=4, location="interior", is_blocked=True, block_reason="Evento")

    assert format_table(table).plain.endswith("OCCUPIED (Evento)")


def test_table_cart_line_shows_notes():
    item = TableCartItem(product_id=21, name="Anticuchos", price=Decimal("22.00"), quantity=2, notes="sin picante")

    assert format_table_cart_line(item).plain == "2 x Anticuchos  S/ 44.00  (sin picante)"


def test_table_info_marks_selection():
    table = TableInfo(id=3, table_number="A3", status="occupied", capacity=4)

    assert format_table_info(table, selected=True).plain == "➤ Table A3  4 p.  occupied"


def test_blog_post_falls_back_to_excerpt():
    post = BlogPost(slug="ceviche-day", title="Ceviche Day", excerpt="Fresh fish", published_at="2030-06-28T10:00:00Z")

    assert format_blog_post(post).plain == "Ceviche Day\n2030-06-28\n\nFresh fish"
