"""Static vocabulary shown by the storefront screens."""

from __future__ import annotations

from storefront.models import OrderType, PaymentMethod

RESTAURANT_NAME = "Sabor Restaurante"

ORDER_TYPE_LABELS: dict[OrderType, str] = {
    OrderType.DELIVERY: "Delivery",
    OrderType.ONLINE: "Pick up (online)",
}

PAYMENT_METHOD_LABELS: dict[PaymentMethod, str] = {
    PaymentMethod.CARD: "Card",
    PaymentMethod.YAPE: "Yape",
    PaymentMethod.PLIN: "Plin",
    PaymentMethod.CASH: "Cash",
}

AVAILABILITY_LABELS: dict[str, str] = {
    "high": "High availability",
    "medium": "Medium availability",
    "low": "Few tables left",
}

# 9 stands for the "9+ (group)" option.
PARTY_SIZE_OPTIONS: list[int] = list(range(1, 10))

ZONE_OPTIONS: dict[str, str] = {
    "interior": "Interior",
    "ventana": "By the window",
    "terraza": "Terrace",
    "privado": "Private area",
    "barra": "Bar",
}
