"""
Storefront Core

Cart reconciliation and recommendation scoring for the attar storefront:
- cart: guest/authenticated cart with login merge
- recommendations: related, bought-together and personalized ranking
- wishlist: authenticated wishlist
- notifications: events for the UI to render

Note: Imports are lazy so importing the package does not pull in the
Supabase client.
"""

__all__ = [
    "CartService",
    "create_cart_service",
    "RecommendationEngine",
    "RecentlyViewedStore",
    "WishlistService",
    "NotificationCenter",
    "Product",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name in ("CartService", "create_cart_service"):
        from storefront import cart
        return getattr(cart, name)
    elif name in ("RecommendationEngine", "RecentlyViewedStore"):
        from storefront import recommendations
        return getattr(recommendations, name)
    elif name == "WishlistService":
        from storefront.wishlist import WishlistService
        return WishlistService
    elif name == "NotificationCenter":
        from storefront.notifications import NotificationCenter
        return NotificationCenter
    elif name == "Product":
        from storefront.models import Product
        return Product
    raise AttributeError(f"module 'storefront' has no attribute '{name}'")
