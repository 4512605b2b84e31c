"""
Tests for cart models and totals
"""

from decimal import Decimal

import pytest

from storefront.cart import CartItem, ProductSnapshot, calculate_subtotal, count_items
from storefront.cart.models import generate_guest_item_id


def _item(item_id="item-1", price="500", quantity=1, variant_id=None, product_id="prod-a"):
    return CartItem(
        id=item_id,
        product=ProductSnapshot(id=product_id, name="Royal Oudh", price=Decimal(price) if price is not None else None),
        quantity=quantity,
        variant_id=variant_id,
    )


class TestProductSnapshot:
    """Tests for ProductSnapshot."""

    def test_from_product(self, product_a):
        snapshot = ProductSnapshot.from_product(product_a)

        assert snapshot.id == "prod-a"
        assert snapshot.price == Decimal("500")
        assert snapshot.images == product_a.images

    def test_non_numeric_price_becomes_none(self):
        snapshot = ProductSnapshot.from_dict({"id": "p1", "name": "Test", "price": "abc"})
        assert snapshot.price is None

    def test_image_url_fallback(self):
        snapshot = ProductSnapshot.from_dict({"id": "p1", "name": "Test", "price": 10, "image_url": "a.jpg"})
        assert snapshot.images == ["a.jpg"]


class TestCartItem:
    """Tests for CartItem dataclass."""

    def test_create_cart_item(self):
        item = _item(quantity=2)

        assert item.product_id == "prod-a"
        assert item.quantity == 2
        assert item.added_at != ""

    def test_line_total(self):
        assert _item(price="500", quantity=3).line_total == Decimal("1500")

    def test_line_total_without_price(self):
        assert _item(price=None).line_total is None

    def test_matches_variant(self):
        plain = _item()
        sized = _item(variant_id="12ml")

        assert plain.matches("prod-a")
        assert not plain.matches("prod-a", "12ml")
        assert sized.matches("prod-a", "12ml")
        assert not sized.matches("prod-a")

    def test_to_dict_uses_storefront_keys(self):
        data = _item(variant_id="12ml").to_dict()

        assert data["variantId"] == "12ml"
        assert data["product"]["price"] == "500"
        assert "addedAt" in data

    def test_to_dict_omits_missing_variant(self):
        assert "variantId" not in _item().to_dict()

    def test_from_dict_accepts_legacy_browser_shape(self):
        data = {
            "id": "guest-1700000000000-abc123",
            "product": {"id": "prod-a", "name": "Royal Oudh", "price": 500, "stock": 4},
            "quantity": 2,
            "variantId": "6ml",
        }

        item = CartItem.from_dict(data)

        assert item.variant_id == "6ml"
        assert item.product.price == Decimal("500")
        assert item.product.stock == 4

    def test_from_dict_missing_quantity_raises(self):
        with pytest.raises(KeyError):
            CartItem.from_dict({"id": "x", "product": {"id": "p"}})


class TestTotals:
    """Tests for subtotal and item count."""

    def test_empty_cart(self):
        assert calculate_subtotal([]) == Decimal("0")
        assert count_items([]) == 0

    def test_subtotal_and_count(self):
        items = [_item("1", "500", 2), _item("2", "199.99", 1, product_id="prod-b")]

        assert calculate_subtotal(items) == Decimal("1199.99")
        assert count_items(items) == 3

    def test_subtotal_skips_item_without_price(self):
        items = [_item("1", "500", 1), _item("2", None, 4, product_id="prod-b")]

        assert calculate_subtotal(items) == Decimal("500.00")
        # Count still includes every unit
        assert count_items(items) == 5

    def test_subtotal_skips_item_without_product(self):
        items = [_item("1", "500", 1), CartItem(id="2", product=None, quantity=1)]
        assert calculate_subtotal(items) == Decimal("500.00")


def test_guest_item_id_composite():
    item_id = generate_guest_item_id("prod-a", "12ml")

    assert item_id.startswith("guest-prod-a-12ml-")
    assert generate_guest_item_id("prod-a") != generate_guest_item_id("prod-a")
    assert "-default-" in generate_guest_item_id("prod-a")
