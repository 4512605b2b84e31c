"""Wishlist Service.

Handles the signed-in user's wishlist (wishlist_items table).
Guests cannot keep a wishlist; they get an "Authentication Required" notice.
All methods use async/await with supabase-py v2.
"""

from dataclasses import dataclass
from typing import Optional

from storefront.cart.models import ProductSnapshot
from storefront.errors import (
    ERROR_WISHLIST_ADD,
    ERROR_WISHLIST_CLEAR,
    ERROR_WISHLIST_LOAD,
    ERROR_WISHLIST_REMOVE,
    INFO_WISHLIST_AUTH,
    TITLE_ADDED_TO_WISHLIST,
    TITLE_AUTH_REQUIRED,
    TITLE_ERROR,
    TITLE_REMOVED_FROM_WISHLIST,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.notifications import NotificationCenter

logger = get_logger(__name__)

WISHLIST_SELECT = "id,product_id,created_at,products(id,name,price,stock,images,image_url)"


@dataclass
class WishlistItem:
    """Wishlist item."""

    id: str
    product: ProductSnapshot
    added_at: str = ""


class WishlistService:
    """Wishlist for one user.

    The item list mirrors the server after every successful call; failed
    calls keep it unchanged and emit an error notification.
    """

    def __init__(self, client, user_id: Optional[str] = None, notifier: Optional[NotificationCenter] = None) -> None:
        self.client = client
        self.user_id = user_id
        self.notifier = notifier or NotificationCenter()
        self.items: list[WishlistItem] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    async def load(self) -> list[WishlistItem]:
        """Fetch wishlist items. Guests always have an empty wishlist."""
        if not self.is_authenticated:
            self.items = []
            return []

        try:
            result = (
                await self.client.table("wishlist_items")
                .select(WISHLIST_SELECT)
                .eq("user_id", self.user_id)
                .order("created_at")
                .execute()
            )
            items = []
            for row in result.data or []:
                product_data = row.get("products") or {}
                product_data = {**product_data, "id": product_data.get("id") or row["product_id"]}
                items.append(
                    WishlistItem(
                        id=str(row["id"]),
                        product=ProductSnapshot.from_dict(product_data),
                        added_at=row.get("created_at") or "",
                    )
                )
        except Exception as e:
            logger.error("Failed to get wishlist: %s", type(e).__name__, exc_info=True)
            self.notifier.error(TITLE_ERROR, ERROR_WISHLIST_LOAD)
            return list(self.items)

        self.items = items
        return list(self.items)

    def is_in_wishlist(self, product_id: str) -> bool:
        return any(item.product.id == product_id for item in self.items)

    async def add_item(self, product: Product) -> bool:
        """Toggle product: add it, or remove it if it is already saved.

        Returns:
            True if the wishlist changed
        """
        if not self.is_authenticated:
            self.notifier.info(TITLE_AUTH_REQUIRED, INFO_WISHLIST_AUTH)
            return False

        if self.is_in_wishlist(product.id):
            removed = await self.remove_item(product.id)
            if removed:
                self.notifier.info(TITLE_REMOVED_FROM_WISHLIST, f"{product.name} removed from your wishlist.")
            return removed

        try:
            await (
                self.client.table("wishlist_items")
                .insert({"user_id": self.user_id, "product_id": product.id})
                .execute()
            )
        except Exception as e:
            # Unique (user_id, product_id): another tab already saved it
            if "duplicate" not in str(e).lower() and "unique" not in str(e).lower():
                logger.error("Failed to add to wishlist: %s", type(e).__name__, exc_info=True)
                self.notifier.error(TITLE_ERROR, ERROR_WISHLIST_ADD)
                return False

        await self.load()
        self.notifier.success(TITLE_ADDED_TO_WISHLIST, f"{product.name} added to your wishlist.")
        return True

    async def _delete(self, product_id: str) -> None:
        await (
            self.client.table("wishlist_items")
            .delete()
            .eq("user_id", self.user_id)
            .eq("product_id", product_id)
            .execute()
        )

    async def remove_item(self, product_id: str) -> bool:
        if not self.is_authenticated:
            return False

        try:
            await self._delete(product_id)
        except Exception as e:
            logger.error(
                "Failed to remove %s from wishlist: %s",
                sanitize_id_for_logging(product_id),
                type(e).__name__,
                exc_info=True,
            )
            self.notifier.error(TITLE_ERROR, ERROR_WISHLIST_REMOVE)
            return False

        await self.load()
        return True

    async def clear(self) -> bool:
        """Remove every item, one call per product."""
        if not self.is_authenticated:
            return False

        remaining = list(self.items)
        for item in list(self.items):
            try:
                await self._delete(item.product.id)
            except Exception as e:
                logger.error("Failed to clear wishlist: %s", type(e).__name__, exc_info=True)
                self.notifier.error(TITLE_ERROR, ERROR_WISHLIST_CLEAR)
                self.items = remaining
                return False
            remaining = [i for i in remaining if i.id != item.id]

        self.items = []
        return True
