"""
Cart backends.

CartService talks to exactly one backend, chosen when the service is built:
- GuestCartBackend: guest cart in local storage, synchronous underneath
- RemoteCartBackend: server cart, every mutation followed by a full refresh

Mutations take the current item list and return the new one without
modifying the input, so a failed call leaves the caller's state intact.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from storefront.cart.models import CartItem, ProductSnapshot, generate_guest_item_id
from storefront.cart.remote import RemoteCartAPI
from storefront.cart.storage import GuestCartStore
from storefront.models import Product


class CartBackend(ABC):
    """Storage strategy behind CartService."""

    is_authenticated: bool = False

    @abstractmethod
    async def load(self) -> list[CartItem]:
        ...

    @abstractmethod
    async def add(self, items: list[CartItem], product: Product, quantity: int, variant_id: Optional[str]) -> list[CartItem]:
        ...

    @abstractmethod
    async def update(self, items: list[CartItem], item_id: str, quantity: int) -> list[CartItem]:
        ...

    @abstractmethod
    async def remove(self, items: list[CartItem], item_id: str) -> list[CartItem]:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class GuestCartBackend(CartBackend):
    """Guest cart persisted through GuestCartStore."""

    is_authenticated = False

    def __init__(self, store: GuestCartStore) -> None:
        self.store = store

    async def load(self) -> list[CartItem]:
        return self.store.load()

    async def add(self, items: list[CartItem], product: Product, quantity: int, variant_id: Optional[str]) -> list[CartItem]:
        existing_index = next(
            (i for i, item in enumerate(items) if item.matches(product.id, variant_id)),
            None,
        )

        if existing_index is not None:
            updated = [
                replace(item, quantity=item.quantity + quantity) if i == existing_index else item
                for i, item in enumerate(items)
            ]
        else:
            new_item = CartItem(
                id=generate_guest_item_id(product.id, variant_id),
                product=ProductSnapshot.from_product(product),
                quantity=quantity,
                variant_id=variant_id or None,
            )
            updated = [*items, new_item]

        self.store.save(updated)
        return updated

    async def update(self, items: list[CartItem], item_id: str, quantity: int) -> list[CartItem]:
        updated = [replace(item, quantity=quantity) if item.id == item_id else item for item in items]
        self.store.save(updated)
        return updated

    async def remove(self, items: list[CartItem], item_id: str) -> list[CartItem]:
        updated = [item for item in items if item.id != item_id]
        self.store.save(updated)
        return updated

    async def clear(self) -> None:
        self.store.delete()


class RemoteCartBackend(CartBackend):
    """Server cart. No optimistic updates: state is whatever get_cart returns."""

    is_authenticated = True

    def __init__(self, api: RemoteCartAPI) -> None:
        self.api = api

    async def load(self) -> list[CartItem]:
        return await self.api.get_cart()

    async def add(self, items: list[CartItem], product: Product, quantity: int, variant_id: Optional[str]) -> list[CartItem]:
        await self.api.add_to_cart(product.id, quantity, variant_id)
        return await self.api.get_cart()

    async def update(self, items: list[CartItem], item_id: str, quantity: int) -> list[CartItem]:
        await self.api.update_cart_item(item_id, quantity)
        return await self.api.get_cart()

    async def remove(self, items: list[CartItem], item_id: str) -> list[CartItem]:
        await self.api.remove_from_cart(item_id)
        return await self.api.get_cart()

    async def clear(self) -> None:
        await self.api.clear_cart()

    async def import_item(self, item: CartItem) -> None:
        """Add a guest line to the server cart (used by the login merge)."""
        await self.api.add_to_cart(item.product_id, item.quantity, item.variant_id)
