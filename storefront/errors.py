"""
Storefront errors.

Exception hierarchy plus the user-facing message constants shared by the
cart and wishlist services.
"""

# Notification titles
TITLE_ERROR = "Error"
TITLE_ADDED_TO_CART = "Added to Cart"
TITLE_REMOVED_FROM_CART = "Removed from Cart"
TITLE_CART_CLEARED = "Cart Cleared"
TITLE_CART_NOT_SAVED = "Cart not saved"
TITLE_AUTH_REQUIRED = "Authentication Required"
TITLE_ADDED_TO_WISHLIST = "Added to Wishlist"
TITLE_REMOVED_FROM_WISHLIST = "Removed from Wishlist"

# Cart errors
ERROR_CART_LOAD = "Failed to load cart"
ERROR_CART_ADD = "Failed to add to cart"
ERROR_CART_UPDATE = "Failed to update cart"
ERROR_CART_REMOVE = "Failed to remove from cart"
ERROR_CART_CLEAR = "Failed to clear cart"
ERROR_CART_MERGE = "Failed to move your saved cart to your account"
WARNING_CART_NOT_PERSISTED = "Your cart could not be saved on this device and will be lost when you leave."

# Wishlist errors
ERROR_WISHLIST_LOAD = "Failed to fetch wishlist items. Please try again later."
ERROR_WISHLIST_ADD = "Failed to add item to wishlist. Please try again later."
ERROR_WISHLIST_REMOVE = "Failed to remove item from wishlist. Please try again later."
ERROR_WISHLIST_CLEAR = "Failed to clear wishlist. Please try again later."
INFO_WISHLIST_AUTH = "Please log in or create an account to add items to your wishlist."


class StorefrontError(Exception):
    """Base class for storefront core errors."""


class ConfigurationError(StorefrontError):
    """Required setting is missing or invalid."""


class RemoteCartError(StorefrontError):
    """Remote cart backend call failed."""

    def __init__(self, operation: str, message: str, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation}: {message}")


class StorageError(StorefrontError):
    """Local key-value storage read or write failed."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"{key}: {message}")
