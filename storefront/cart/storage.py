"""Guest cart persistence in local key-value storage."""
from typing import Callable, Optional

from storefront.cart.models import CartItem
from storefront.config import StorageKeys
from storefront.errors import StorageError
from storefront.logging import get_logger
from storefront.storage import KeyValueStorage

logger = get_logger(__name__)


class GuestCartStore:
    """
    Reads and writes the guest cart under a fixed storage key.

    Missing or malformed data loads as an empty cart. The first failed write
    switches the store to in-memory mode for the rest of its lifetime and
    fires `on_degraded` once.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = StorageKeys.GUEST_CART,
        on_degraded: Optional[Callable[[StorageError], None]] = None,
    ):
        self.storage = storage
        self.key = key
        self.on_degraded = on_degraded
        self.persistent = True
        self._memory: list[CartItem] = []

    def load(self) -> list[CartItem]:
        """Get guest cart items. Never raises."""
        if not self.persistent:
            return list(self._memory)

        try:
            data = self.storage.get_json(self.key)
        except StorageError as e:
            logger.debug(f"Guest cart unreadable, starting empty: {e}")
            return []

        if not data or not isinstance(data, list):
            return []

        try:
            return [CartItem.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug(f"Corrupted guest cart data, starting empty: {e}")
            return []

    def save(self, items: list[CartItem]) -> bool:
        """Persist guest cart. Returns False when running without persistence."""
        self._memory = list(items)
        if not self.persistent:
            return False

        try:
            self.storage.set_json(self.key, [item.to_dict() for item in items])
            return True
        except StorageError as e:
            logger.warning(f"Guest cart not persisted, continuing in memory: {e}")
            self.persistent = False
            if self.on_degraded is not None:
                self.on_degraded(e)
            return False

    def delete(self) -> bool:
        """Remove the guest cart key."""
        self._memory = []
        try:
            self.storage.delete(self.key)
            return True
        except StorageError as e:
            logger.warning(f"Failed to delete guest cart: {e}")
            return False
