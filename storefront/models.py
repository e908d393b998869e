"""Domain models for the storefront client."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from storefront.config import PROMO_ITEM_PREFIX


def to_decimal(value: Any) -> Decimal:
    """Convert a JSON number or numeric string into a Decimal amount."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class RegularLine:
    """A product added to the cart on its own."""

    product_id: str
    kind: ClassVar[str] = "regular"

    @property
    def display_id(self) -> str:
        return self.product_id


@dataclass(frozen=True)
class PromoLine:
    """A product synthesized from the selected promotion bundle."""

    promotion_id: int
    product_id: str
    kind: ClassVar[str] = "promo"

    @property
    def display_id(self) -> str:
        return f"{PROMO_ITEM_PREFIX}{self.product_id}"


LineRef = RegularLine | PromoLine


@dataclass
class CartItem:
    """One cart row. Quantity is never observable below 1."""

    line: LineRef
    name: str
    price: Decimal
    quantity: int = 1
    image: str | None = None

    @classmethod
    def regular(
        cls,
        id: str | int,
        name: str,
        price: Decimal | float | int | str,
        quantity: int = 1,
        image: str | None = None,
    ) -> CartItem:
        return cls(
            line=RegularLine(str(id)),
            name=name,
            price=to_decimal(price),
            quantity=quantity,
            image=image,
        )

    @property
    def id(self) -> str:
        return self.line.display_id

    @property
    def is_promo(self) -> bool:
        return isinstance(self.line, PromoLine)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class PromotionProduct:
    id: int
    name: str
    price: Decimal
    image: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PromotionProduct:
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            price=to_decimal(data.get("price")),
            image=data.get("image") or data.get("image_url"),
        )


@dataclass(frozen=True)
class Promotion:
    """A promotion, optionally bundling a fixed set of products."""

    id: int
    title: str
    description: str = ""
    discount: str | None = None
    valid_until: str = ""
    image: str | None = None
    badge: str | None = None
    color: str = ""
    products: tuple[PromotionProduct, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Promotion:
        discount = data.get("discount")
        return cls(
            id=int(data["id"]),
            title=str(data.get("title", "")),
            description=str(data.get("description") or ""),
            discount=str(discount) if discount is not None else None,
            valid_until=str(data.get("validUntil") or data.get("valid_until") or ""),
            image=data.get("image"),
            badge=data.get("badge"),
            color=str(data.get("color") or ""),
            products=tuple(PromotionProduct.from_api(p) for p in data.get("products") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "discount": self.discount,
            "validUntil": self.valid_until,
            "image": self.image,
            "badge": self.badge,
            "color": self.color,
            "products": [
                {"id": p.id, "name": p.name, "price": str(p.price), "image": p.image} for p in self.products
            ],
        }


@dataclass(frozen=True)
class CartTotals:
    promo_original_total: Decimal
    regular_total: Decimal
    promo_discount: Decimal
    promo_net_total: Decimal
    subtotal: Decimal
    shipping: Decimal
    taxes: Decimal
    final_total: Decimal


@dataclass(frozen=True)
class ProcessedCart:
    promo_items: list[CartItem]
    regular_items: list[CartItem]
    display_items: list[CartItem]


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    slug: str = ""
    description: str | None = None


@dataclass(frozen=True)
class Product:
    """A menu product as served by the backend."""

    id: int
    name: str
    price: Decimal
    description: str = ""
    category_id: int | None = None
    image_url: str | None = None
    is_available: bool = True

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Product:
        image_url = data.get("image_url")
        if not (isinstance(image_url, str) and image_url.startswith("http")):
            image_url = None
        category_id = data.get("category_id")
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            price=to_decimal(data.get("price")),
            description=str(data.get("description") or ""),
            category_id=int(category_id) if category_id is not None else None,
            image_url=image_url,
            is_available=bool(data.get("is_available", True)),
        )

    def to_cart_item(self, quantity: int = 1) -> CartItem:
        return CartItem.regular(self.id, self.name, self.price, quantity=quantity, image=self.image_url)


@dataclass(frozen=True)
class BlogPost:
    slug: str
    title: str
    excerpt: str = ""
    content: str = ""
    published_at: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> BlogPost:
        return cls(
            slug=str(data.get("slug", "")),
            title=str(data.get("title", "")),
            excerpt=str(data.get("excerpt") or ""),
            content=str(data.get("content") or ""),
            published_at=str(data.get("published_at") or data.get("created_at") or ""),
        )


class OrderType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dine-in"
    ONLINE = "online"


class PaymentMethod(str, Enum):
    CARD = "card"
    YAPE = "yape"
    PLIN = "plin"
    CASH = "cash"


@dataclass(frozen=True)
class OrderItemRequest:
    product_id: int
    quantity: int
    special_instructions: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"product_id": self.product_id, "quantity": self.quantity}
        if self.special_instructions:
            payload["special_instructions"] = self.special_instructions
        return payload


@dataclass(frozen=True)
class OrderRequest:
    """Body of ``POST /api/orders``."""

    customer_name: str
    customer_phone: str
    order_type: OrderType
    items: list[OrderItemRequest]
    customer_lastname: str | None = None
    customer_dni: str | None = None
    customer_email: str | None = None
    payment_method: PaymentMethod | None = None
    delivery_address: str | None = None
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "order_type": self.order_type.value,
            "items": [item.to_payload() for item in self.items],
        }
        optional = {
            "customer_lastname": self.customer_lastname,
            "customer_dni": self.customer_dni,
            "customer_email": self.customer_email,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "delivery_address": self.delivery_address,
            "notes": self.notes,
        }
        payload.update({key: value for key, value in optional.items() if value})
        return payload


@dataclass(frozen=True)
class OrderReceipt:
    """Server acknowledgment of a created order."""

    id: int | None
    order_number: str
    total: Decimal
    status: str = ""
    items: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> OrderReceipt:
        order = data.get("order") if isinstance(data.get("order"), dict) else data
        order_id = order.get("id")
        return cls(
            id=int(order_id) if order_id is not None else None,
            order_number=str(order.get("order_number") or "N/A"),
            total=to_decimal(order.get("total")),
            status=str(order.get("status") or ""),
            items=list(order.get("items") or []),
        )


@dataclass(frozen=True)
class TimeSlot:
    """A bookable reservation time window."""

    time: str
    value: str
    table_id: int
    is_available: bool
    remaining_capacity: int | None
    tier: str


@dataclass(frozen=True)
class Table:
    id: int
    table_number: str
    capacity: int
    location: str = ""
    is_blocked: bool = False
    block_reason: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Table:
        return cls(
            id=int(data["id"]),
            table_number=str(data.get("table_number", "")),
            capacity=int(data.get("capacity") or 0),
            location=str(data.get("location") or ""),
            is_blocked=bool(data.get("is_blocked", False)),
            block_reason=data.get("block_reason"),
        )


@dataclass(frozen=True)
class ReservationRequest:
    """Body of ``POST /api/reservations``."""

    table_id: int
    customer_name: str
    customer_email: str
    customer_phone: str
    reservation_date: str
    reservation_time: str
    party_size: int
    special_request: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "table_id": self.table_id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "reservation_date": self.reservation_date,
            "reservation_time": self.reservation_time,
            "party_size": self.party_size,
            "special_request": self.special_request,
        }


@dataclass(frozen=True)
class WaiterUser:
    id: int
    name: str
    email: str
    role: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WaiterUser:
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            email=str(data.get("email", "")),
            role=str(data.get("role") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}


@dataclass(frozen=True)
class TableInfo:
    """A dining table as seen from the QR and waiter surfaces."""

    id: int
    table_number: str
    status: str = ""
    qr_code: str = ""
    capacity: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TableInfo:
        return cls(
            id=int(data["id"]),
            table_number=str(data.get("table_number", "")),
            status=str(data.get("status") or ""),
            qr_code=str(data.get("qr_code") or ""),
            capacity=int(data.get("capacity") or 0),
        )


@dataclass
class TableCartItem:
    product_id: int
    name: str
    price: Decimal
    quantity: int = 1
    notes: str = ""
    image: str | None = None
