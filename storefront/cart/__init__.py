"""Cart package: models, guest storage, backends and the service facade."""
from .models import CartItem, ProductSnapshot, calculate_subtotal, count_items
from .storage import GuestCartStore
from .remote import RemoteCartAPI, SupabaseCartAPI, RestCartAPI
from .backends import CartBackend, GuestCartBackend, RemoteCartBackend
from .service import CartService, MergeResult, create_cart_service

__all__ = [
    "CartItem",
    "ProductSnapshot",
    "calculate_subtotal",
    "count_items",
    "GuestCartStore",
    "RemoteCartAPI",
    "SupabaseCartAPI",
    "RestCartAPI",
    "CartBackend",
    "GuestCartBackend",
    "RemoteCartBackend",
    "CartService",
    "MergeResult",
    "create_cart_service",
]
