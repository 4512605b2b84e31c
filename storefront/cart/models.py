"""Cart models with Decimal-based pricing."""
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.money import multiply, parse_price, round_money

logger = get_logger(__name__)


@dataclass
class ProductSnapshot:
    """Copy of the product taken when it was added to the cart."""
    id: str
    name: str
    price: Optional[Decimal]  # None when missing or non-numeric
    stock: int = 0
    images: list[str] = field(default_factory=list)

    @classmethod
    def from_product(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            stock=product.stock,
            images=list(product.images),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price) if self.price is not None else None,
            "stock": self.stock,
            "images": list(self.images),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProductSnapshot":
        images = data.get("images")
        if images is None and data.get("image_url"):
            images = [data["image_url"]]
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            price=parse_price(data.get("price")),
            stock=int(data.get("stock") or 0),
            images=list(images or []),
        )


def generate_guest_item_id(product_id: str, variant_id: Optional[str] = None) -> str:
    """Composite id for guest items: product, variant, ms timestamp, random suffix."""
    timestamp_ms = int(time.time() * 1000)
    return f"guest-{product_id}-{variant_id or 'default'}-{timestamp_ms}-{secrets.token_hex(3)}"


@dataclass
class CartItem:
    """Single line in the cart."""
    id: str
    product: Optional[ProductSnapshot]
    quantity: int
    variant_id: Optional[str] = None
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = datetime.now(timezone.utc).isoformat()

    @property
    def product_id(self) -> Optional[str]:
        return self.product.id if self.product else None

    def matches(self, product_id: str, variant_id: Optional[str] = None) -> bool:
        """True if this line holds the given product/variant pair."""
        return self.product_id == product_id and (self.variant_id or None) == (variant_id or None)

    @property
    def line_total(self) -> Optional[Decimal]:
        """price * quantity, or None if the price is unknown."""
        if self.product is None or self.product.price is None:
            return None
        return multiply(self.product.price, self.quantity)

    def to_dict(self) -> dict:
        """Convert to the storefront's JSON shape."""
        data = {
            "id": self.id,
            "product": self.product.to_dict() if self.product else None,
            "quantity": self.quantity,
            "addedAt": self.added_at,
        }
        if self.variant_id:
            data["variantId"] = self.variant_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """Create from dictionary (camelCase or snake_case keys)."""
        product_data = data.get("product")
        return cls(
            id=str(data["id"]),
            product=ProductSnapshot.from_dict(product_data) if product_data else None,
            quantity=int(data["quantity"]),
            variant_id=data.get("variantId", data.get("variant_id")) or None,
            added_at=data.get("addedAt") or data.get("added_at") or data.get("created_at") or "",
        )


def calculate_subtotal(items: Iterable[CartItem]) -> Decimal:
    """Sum of price * quantity, skipping lines without a usable price."""
    total = Decimal("0")
    for item in items:
        line_total = item.line_total
        if line_total is None:
            logger.warning(f"Cart item {sanitize_id_for_logging(item.id)} missing product or price, excluded from subtotal")
            continue
        total += line_total
    return round_money(total)


def count_items(items: Iterable[CartItem]) -> int:
    """Total number of units in the cart."""
    return sum(item.quantity for item in items)
