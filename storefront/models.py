"""Catalog Models - Pydantic models for products consumed by the core."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from storefront.money import to_decimal as _to_decimal


class Product(BaseModel):
    """Product model.

    Built from catalog rows. Accepts both database snake_case keys and
    the storefront's camelCase keys (sellerName, originalPrice, createdAt).
    """
    id: str
    name: str
    category: str = ""
    price: Decimal = Decimal("0")
    original_price: Optional[Decimal] = Field(default=None, alias="originalPrice")
    stock: int = 0
    rating: float = 0.0
    images: list[str] = []
    tags: Optional[list[str]] = None
    seller_name: Optional[str] = Field(default=None, alias="sellerName")
    brand: Optional[str] = None
    featured: bool = False
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        extra = "ignore"  # Ignore unknown fields from DB
        populate_by_name = True

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return _to_decimal(v)

    @field_validator("original_price", mode="before")
    @classmethod
    def convert_original_price(cls, v):
        return _to_decimal(v) if v is not None else None

    @field_validator("stock", mode="before")
    @classmethod
    def clamp_stock(cls, v):
        return max(0, int(v or 0))

    @field_validator("rating", mode="before")
    @classmethod
    def default_rating(cls, v):
        return float(v or 0)

    @field_validator("images", mode="before")
    @classmethod
    def default_images(cls, v):
        return list(v or [])

    @property
    def brand_name(self) -> Optional[str]:
        """Brand used for scoring: seller name, falling back to brand."""
        return self.seller_name or self.brand or None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
