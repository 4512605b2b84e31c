"""Cart service: one cart abstraction over guest and authenticated backends."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront.cart.backends import CartBackend, GuestCartBackend, RemoteCartBackend
from storefront.cart.models import CartItem, calculate_subtotal, count_items
from storefront.cart.remote import RemoteCartAPI
from storefront.cart.storage import GuestCartStore
from storefront.errors import (
    ERROR_CART_ADD,
    ERROR_CART_CLEAR,
    ERROR_CART_LOAD,
    ERROR_CART_MERGE,
    ERROR_CART_REMOVE,
    ERROR_CART_UPDATE,
    TITLE_ADDED_TO_CART,
    TITLE_CART_CLEARED,
    TITLE_CART_NOT_SAVED,
    TITLE_ERROR,
    TITLE_REMOVED_FROM_CART,
    WARNING_CART_NOT_PERSISTED,
    RemoteCartError,
    StorageError,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.money import format_money, to_float
from storefront.notifications import NotificationCenter
from storefront.storage import KeyValueStorage

logger = get_logger(__name__)


@dataclass
class MergeResult:
    """Outcome of moving the guest cart into the server cart."""

    success: bool
    attempted: int = 0
    merged: int = 0
    error: Optional[str] = None
    # True when there was nothing to merge; not a failure, nothing to retry
    skipped: bool = False


class CartService:
    """
    Single cart abstraction for the storefront.

    Features:
    - Guest or authenticated backend, fixed at construction
    - Guest cart merged into the server cart on login
    - Failed mutations keep the previous item list and emit an error notification
    - quantity <= 0 on update removes the line, on both backends
    """

    def __init__(
        self,
        backend: CartBackend,
        guest_store: GuestCartStore,
        notifier: Optional[NotificationCenter] = None,
    ):
        self.backend = backend
        self.guest_store = guest_store
        self.notifier = notifier or NotificationCenter()
        self.items: list[CartItem] = []
        self.loading = False
        self.merged = False

        if self.guest_store.on_degraded is None:
            self.guest_store.on_degraded = self._on_storage_degraded

    @classmethod
    def for_guest(cls, storage: KeyValueStorage, notifier: Optional[NotificationCenter] = None) -> "CartService":
        store = GuestCartStore(storage)
        return cls(GuestCartBackend(store), store, notifier)

    @classmethod
    def for_user(
        cls,
        api: RemoteCartAPI,
        storage: KeyValueStorage,
        notifier: Optional[NotificationCenter] = None,
    ) -> "CartService":
        return cls(RemoteCartBackend(api), GuestCartStore(storage), notifier)

    @property
    def is_authenticated(self) -> bool:
        return self.backend.is_authenticated

    @property
    def subtotal(self) -> Decimal:
        return calculate_subtotal(self.items)

    @property
    def item_count(self) -> int:
        return count_items(self.items)

    def _on_storage_degraded(self, error: StorageError) -> None:
        self.notifier.warning(TITLE_CART_NOT_SAVED, WARNING_CART_NOT_PERSISTED)

    async def load_cart(self) -> list[CartItem]:
        """
        Load the cart from the backend.

        A remote failure empties the cart and emits an error notification;
        it is never raised.
        """
        self.loading = True
        try:
            self.items = await self.backend.load()
        except RemoteCartError as e:
            logger.error(f"Failed to load cart: {e}")
            self.notifier.error(TITLE_ERROR, ERROR_CART_LOAD)
            self.items = []
        finally:
            self.loading = False
        return list(self.items)

    async def add_item(self, product: Product, quantity: int = 1, variant_id: Optional[str] = None) -> bool:
        """Add product to cart, merging into an existing product/variant line."""
        if not isinstance(quantity, int) or quantity < 1:
            raise ValueError("quantity must be a positive integer")

        try:
            self.items = await self.backend.add(self.items, product, quantity, variant_id)
        except RemoteCartError as e:
            logger.error(f"Failed to add {sanitize_id_for_logging(product.id)} to cart: {e}")
            self.notifier.error(TITLE_ERROR, ERROR_CART_ADD)
            return False

        self.notifier.success(TITLE_ADDED_TO_CART, f"{product.name} has been added to your cart.")
        return True

    async def update_quantity(self, item_id: str, quantity: int) -> bool:
        """Set line quantity. Zero or less removes the line."""
        if not isinstance(quantity, int):
            raise ValueError("quantity must be an integer")
        if quantity <= 0:
            return await self.remove_item(item_id)

        try:
            self.items = await self.backend.update(self.items, item_id, quantity)
        except RemoteCartError as e:
            logger.error(f"Failed to update cart item {sanitize_id_for_logging(item_id)}: {e}")
            self.notifier.error(TITLE_ERROR, ERROR_CART_UPDATE)
            return False
        return True

    async def remove_item(self, item_id: str) -> bool:
        """Remove line from cart."""
        try:
            self.items = await self.backend.remove(self.items, item_id)
        except RemoteCartError as e:
            logger.error(f"Failed to remove cart item {sanitize_id_for_logging(item_id)}: {e}")
            self.notifier.error(TITLE_ERROR, ERROR_CART_REMOVE)
            return False

        self.notifier.info(TITLE_REMOVED_FROM_CART, "Item removed from your cart.")
        return True

    async def clear_cart(self) -> bool:
        """
        Clear the cart.

        The guest cart key is deleted whatever the backend and whatever the
        outcome of the remote clear.
        """
        remote_error = None
        try:
            await self.backend.clear()
        except RemoteCartError as e:
            remote_error = e
        finally:
            self.guest_store.delete()

        if remote_error is not None:
            logger.error(f"Failed to clear cart: {remote_error}")
            self.notifier.error(TITLE_ERROR, ERROR_CART_CLEAR)
            return False

        self.items = []
        self.notifier.success(TITLE_CART_CLEARED, "Cart cleared successfully.")
        return True

    async def merge_guest_cart_on_login(self) -> MergeResult:
        """
        Move guest cart lines into the server cart.

        Lines are added one at a time, in cart order. The guest cart is only
        deleted once every line made it; on the first failure it is kept
        for a later retry and nothing is rolled back on the server.

        Returns success=False with skipped=True when there is nothing to do
        (guest service, empty guest cart, already merged); only a result
        with skipped=False and success=False is worth retrying.
        """
        if self.merged or not isinstance(self.backend, RemoteCartBackend):
            return MergeResult(success=False, skipped=True)

        guest_items = self.guest_store.load()
        if not guest_items:
            return MergeResult(success=False, skipped=True)

        merged = 0
        for item in guest_items:
            if item.product_id is None:
                logger.warning(f"Skipping guest item {sanitize_id_for_logging(item.id)} without product")
                continue
            try:
                await self.backend.import_item(item)
            except RemoteCartError as e:
                logger.warning(f"Guest cart merge stopped after {merged}/{len(guest_items)} items: {e}")
                self.notifier.error(TITLE_ERROR, ERROR_CART_MERGE)
                return MergeResult(success=False, attempted=len(guest_items), merged=merged, error=str(e))
            merged += 1

        self.guest_store.delete()
        self.merged = True
        logger.info(f"Merged {merged} guest cart items into server cart")
        await self.load_cart()
        return MergeResult(success=True, attempted=len(guest_items), merged=merged)

    def find_item(self, product_id: str, variant_id: Optional[str] = None) -> Optional[CartItem]:
        """Line holding this product/variant. A line without variant only matches variant_id=None."""
        return next((item for item in self.items if item.matches(product_id, variant_id)), None)

    def is_in_cart(self, product_id: str, variant_id: Optional[str] = None) -> bool:
        return self.find_item(product_id, variant_id) is not None

    async def remove_product(self, product_id: str, variant_id: Optional[str] = None) -> bool:
        item = self.find_item(product_id, variant_id)
        if item is None:
            return False
        return await self.remove_item(item.id)

    async def update_product_quantity(self, product_id: str, quantity: int, variant_id: Optional[str] = None) -> bool:
        item = self.find_item(product_id, variant_id)
        if item is None:
            return False
        return await self.update_quantity(item.id, quantity)

    def get_cart_summary(self) -> dict:
        """Cart summary for API responses."""
        if not self.items:
            return {"is_empty": True, "item_count": 0, "subtotal": 0.0, "subtotal_display": format_money(0), "items": []}

        return {
            "is_empty": False,
            "item_count": self.item_count,
            "items": [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": item.product.name if item.product else None,
                    "variant_id": item.variant_id,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.product.price) if item.product and item.product.price is not None else None,
                    "total": to_float(item.line_total) if item.line_total is not None else None,
                }
                for item in self.items
            ],
            "subtotal": to_float(self.subtotal),
            "subtotal_display": format_money(self.subtotal),
        }


def create_cart_service(
    is_authenticated: bool,
    storage: KeyValueStorage,
    api: Optional[RemoteCartAPI] = None,
    notifier: Optional[NotificationCenter] = None,
) -> CartService:
    """Build a CartService for the current session state."""
    if is_authenticated:
        if api is None:
            raise ValueError("api is required for an authenticated cart")
        return CartService.for_user(api, storage, notifier)
    return CartService.for_guest(storage, notifier)
