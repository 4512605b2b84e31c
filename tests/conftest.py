"""Pytest configuration and fixtures"""
import os
import random
from datetime import datetime
from typing import Optional
from unittest.mock import AsyncMock, Mock

import pytest

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("STOREFRONT_STORAGE", "memory")

from storefront.cart.models import CartItem, ProductSnapshot  # noqa: E402
from storefront.cart.remote import RemoteCartAPI  # noqa: E402
from storefront.errors import RemoteCartError  # noqa: E402
from storefront.models import Product  # noqa: E402
from storefront.notifications import NotificationCenter  # noqa: E402
from storefront.storage import MemoryStorage  # noqa: E402


class FakeCartAPI(RemoteCartAPI):
    """In-memory server cart that records calls and can fail on demand."""

    def __init__(self, catalog: dict[str, Product]):
        self.catalog = catalog
        self.rows: list[CartItem] = []
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self.fail_add_after: Optional[int] = None
        self._next_id = 1
        self._adds = 0

    def _check(self, operation: str) -> None:
        self.calls.append((operation,))
        if operation in self.fail_on:
            raise RemoteCartError(operation, "backend unavailable")

    async def get_cart(self) -> list[CartItem]:
        self._check("get_cart")
        return [CartItem.from_dict(item.to_dict()) for item in self.rows]

    async def add_to_cart(self, product_id: str, quantity: int, variant_id: Optional[str] = None) -> None:
        self._check("add_to_cart")
        if self.fail_add_after is not None and self._adds >= self.fail_add_after:
            raise RemoteCartError("add_to_cart", "backend unavailable")
        self._adds += 1
        self.calls[-1] = ("add_to_cart", product_id, quantity, variant_id)

        existing = next((row for row in self.rows if row.matches(product_id, variant_id)), None)
        if existing:
            existing.quantity += quantity
            return
        self.rows.append(
            CartItem(
                id=f"srv-{self._next_id}",
                product=ProductSnapshot.from_product(self.catalog[product_id]),
                quantity=quantity,
                variant_id=variant_id,
            )
        )
        self._next_id += 1

    async def update_cart_item(self, item_id: str, quantity: int) -> None:
        self._check("update_cart_item")
        for row in self.rows:
            if row.id == item_id:
                row.quantity = quantity

    async def remove_from_cart(self, item_id: str) -> None:
        self._check("remove_from_cart")
        self.rows = [row for row in self.rows if row.id != item_id]

    async def clear_cart(self) -> None:
        self._check("clear_cart")
        self.rows = []

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)


def make_product(**overrides) -> Product:
    data = {
        "id": "product-1",
        "name": "Royal Oudh",
        "category": "Oudh Attars",
        "price": 1000,
        "stock": 10,
        "rating": 4.5,
        "images": ["https://cdn.test/royal-oudh.jpg"],
        "featured": False,
    }
    data.update(overrides)
    return Product(**data)


@pytest.fixture
def storage():
    """Fresh in-memory local storage"""
    return MemoryStorage()


@pytest.fixture
def notifier():
    return NotificationCenter()


@pytest.fixture
def product_a():
    return make_product(id="prod-a", name="Royal Oudh", price=500)


@pytest.fixture
def product_b():
    return make_product(id="prod-b", name="Rose Garden", category="Floral Attars", price=750)


@pytest.fixture
def fake_api(product_a, product_b):
    return FakeCartAPI({product_a.id: product_a, product_b.id: product_b})


@pytest.fixture
def attar_catalog():
    """Small attar catalog covering every scoring branch"""
    return [
        make_product(id="oudh-1", name="Cambodian Oudh", category="Oudh Attars", price=1000, rating=4.5,
                     seller_name="Al Haramain", tags=["woody", "smoky"], created_at=datetime(2024, 1, 10)),
        make_product(id="oudh-2", name="Assam Oudh", category="Oudh Attars", price=1100, rating=4.4,
                     seller_name="Al Haramain", tags=["woody"], created_at=datetime(2024, 3, 5)),
        make_product(id="floral-1", name="Gulab Rose", category="Floral Attars", price=5000, rating=3.0,
                     seller_name="Kannauj House", created_at=datetime(2023, 12, 1)),
        make_product(id="amber-1", name="Amber Night", category="Amber Attars", price=300, rating=4.8,
                     seller_name="Kannauj House", featured=True, created_at=datetime(2024, 2, 1)),
        make_product(id="musk-1", name="White Musk", category="Musk Attars", price=450, rating=3.5,
                     stock=0, created_at=None),
        make_product(id="saffron-1", name="Kesar", category="Saffron Attars", price=2500, rating=4.1,
                     featured=True, created_at=datetime(2024, 4, 20)),
    ]


@pytest.fixture
def seeded_rng():
    return random.Random(42)


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client: builder chain with awaitable execute()"""
    client = Mock()

    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.insert.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.delete.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.order.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    rpc_mock = Mock()
    rpc_mock.execute = AsyncMock(return_value=Mock(data=[{"success": True, "message": "ok"}]))

    client.table.return_value = table_mock
    client.rpc.return_value = rpc_mock

    return client


@pytest.fixture
def product_factory():
    return make_product
