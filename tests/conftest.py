from decimal import Decimal
from unittest.mock import Mock

import pytest

from storefront.api import ApiClient, WaiterClient
from storefront.cart_store import CartStore
from storefront.models import OrderReceipt, Promotion, PromotionProduct
from storefront.persistence import LocalStorage, MemoryStorage


class RecordingNotifier:
    """Collects (kind, title, text) tuples instead of showing anything."""

    def __init__(self):
        self.messages = []

    def warning(self, title, text):
        self.messages.append(("warning", title, text))

    def error(self, title, text):
        self.messages.append(("error", title, text))

    def success(self, title, text):
        self.messages.append(("success", title, text))

    def kinds(self):
        return [kind for kind, _, _ in self.messages]


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def local_storage(tmp_path) -> LocalStorage:
    """SQLite storage in a throwaway directory."""
    return LocalStorage(tmp_path / "storefront.db")


@pytest.fixture
def store(memory_storage) -> CartStore:
    return CartStore(memory_storage)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def api_client():
    """Fake backend; tests set return values or side effects per call."""
    client = Mock(spec=ApiClient)
    client.create_order.return_value = OrderReceipt(id=7, order_number="ORD-0007", total=Decimal("30.00"))
    client.get_availability.return_value = []
    client.get_available_tables.return_value = []
    client.create_reservation.return_value = {"id": 1}
    return client


@pytest.fixture
def waiter_client():
    return Mock(spec=WaiterClient)


@pytest.fixture
def combo_promotion() -> Promotion:
    """Two-product bundle worth 100 with 20% off."""
    return Promotion(
        id=3,
        title="Combo Familiar",
        discount="20%",
        products=(
            PromotionProduct(id=11, name="Lomo Saltado", price=Decimal("60.00")),
            PromotionProduct(id=12, name="Chicha Morada", price=Decimal("40.00")),
        ),
    )
