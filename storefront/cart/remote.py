"""
Remote cart API clients.

Two build variants of the storefront keep the authenticated cart in
different places:
- SupabaseCartAPI: cart_items table + add_to_cart RPC (supabase-py v2, async)
- RestCartAPI: storefront REST API (/cart) over httpx

Both raise RemoteCartError for every backend failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from storefront import config
from storefront.cart.models import CartItem, ProductSnapshot
from storefront.errors import RemoteCartError
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)

NO_RESPONSE_BODY = "No response body"

CART_ITEMS_SELECT = "id,product_id,variant_id,quantity,created_at,products(id,name,price,stock,images,image_url)"


class RemoteCartAPI(ABC):
    """Server-side cart. Every call either completes or raises RemoteCartError."""

    @abstractmethod
    async def get_cart(self) -> list[CartItem]:
        ...

    @abstractmethod
    async def add_to_cart(self, product_id: str, quantity: int, variant_id: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def update_cart_item(self, item_id: str, quantity: int) -> None:
        ...

    @abstractmethod
    async def remove_from_cart(self, item_id: str) -> None:
        ...

    @abstractmethod
    async def clear_cart(self) -> None:
        ...


def extract_cart_items(payload: Any) -> list[dict]:
    """
    Pull the item list out of a cart response.

    Accepts {"items": [...]}, {"data": {"items": [...]}}, {"data": [...]}
    or a bare list.
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []

    if isinstance(payload.get("items"), list):
        return payload["items"]

    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    if isinstance(data, list):
        return data
    return []


def _row_to_item(row: dict) -> CartItem:
    """Map a cart_items row joined with products to a CartItem."""
    product_data = row.get("products")
    product = None
    if product_data:
        product_data = {**product_data, "id": product_data.get("id") or row.get("product_id")}
        product = ProductSnapshot.from_dict(product_data)
    return CartItem(
        id=str(row["id"]),
        product=product,
        quantity=int(row["quantity"]),
        variant_id=row.get("variant_id"),
        added_at=row.get("created_at") or "",
    )


def _rpc_rejection(data: Any) -> Optional[str]:
    """
    Reason the add_to_cart RPC refused the add, or None if it went through.

    The RPC returns a bare boolean; newer deployments return a
    {"success", "message"} row (as a dict or a one-row list).
    """
    if isinstance(data, list):
        data = data[0] if data else None

    if data is False:
        return "rejected (insufficient stock or no session)"
    if isinstance(data, dict) and data.get("success") is False:
        return data.get("message") or "rejected"
    return None


class SupabaseCartAPI(RemoteCartAPI):
    """
    Cart stored in Supabase.

    The client must carry the user's session: the add_to_cart RPC resolves
    the owner through auth.uid().
    """

    def __init__(self, client, user_id: str) -> None:
        self.client = client
        self.user_id = user_id

    async def get_cart(self) -> list[CartItem]:
        try:
            result = (
                await self.client.table("cart_items")
                .select(CART_ITEMS_SELECT)
                .eq("user_id", self.user_id)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            raise RemoteCartError("get_cart", str(e)) from e

        try:
            return [_row_to_item(row) for row in result.data or []]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteCartError("get_cart", f"unexpected row shape: {e}") from e

    async def add_to_cart(self, product_id: str, quantity: int, variant_id: Optional[str] = None) -> None:
        try:
            result = (
                await self.client.rpc(
                    "add_to_cart",
                    {"p_product_id": product_id, "p_variant_id": variant_id, "p_quantity": quantity},
                ).execute()
            )
        except Exception as e:
            raise RemoteCartError("add_to_cart", str(e)) from e

        rejection = _rpc_rejection(result.data)
        if rejection is not None:
            raise RemoteCartError("add_to_cart", rejection)

    async def update_cart_item(self, item_id: str, quantity: int) -> None:
        try:
            await (
                self.client.table("cart_items")
                .update({"quantity": quantity})
                .eq("id", item_id)
                .eq("user_id", self.user_id)
                .execute()
            )
        except Exception as e:
            raise RemoteCartError("update_cart_item", str(e)) from e

    async def remove_from_cart(self, item_id: str) -> None:
        try:
            await (
                self.client.table("cart_items")
                .delete()
                .eq("id", item_id)
                .eq("user_id", self.user_id)
                .execute()
            )
        except Exception as e:
            raise RemoteCartError("remove_from_cart", str(e)) from e

    async def clear_cart(self) -> None:
        try:
            await self.client.table("cart_items").delete().eq("user_id", self.user_id).execute()
        except Exception as e:
            raise RemoteCartError("clear_cart", str(e)) from e


class RestCartAPI(RemoteCartAPI):
    """Cart behind the storefront REST API."""

    def __init__(
        self,
        base_url: str = "",
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = config.STOREFRONT_API_TIMEOUT,
    ) -> None:
        self.base_url = (base_url or config.STOREFRONT_API_URL).rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, payload: Optional[dict]) -> httpx.Response:
        return await client.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)

    async def _request(self, operation: str, method: str, path: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._send(self._client, method, url, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._send(client, method, url, payload)
        except httpx.TimeoutException as e:
            raise RemoteCartError(operation, "Timeout") from e
        except httpx.HTTPError as e:
            raise RemoteCartError(operation, f"Connection error: {e}") from e

        if response.status_code >= 400:
            error_text = response.text[:200] if response.text else NO_RESPONSE_BODY
            logger.warning(
                f"Cart API {operation} failed: status={response.status_code} "
                f"body={sanitize_string_for_logging(error_text)}"
            )
            raise RemoteCartError(operation, error_text, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteCartError(operation, "invalid JSON response") from e

    async def get_cart(self) -> list[CartItem]:
        payload = await self._request("get_cart", "GET", "/cart")
        try:
            return [CartItem.from_dict(item) for item in extract_cart_items(payload)]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteCartError("get_cart", f"unexpected item shape: {e}") from e

    async def add_to_cart(self, product_id: str, quantity: int, variant_id: Optional[str] = None) -> None:
        body = {"productId": product_id, "quantity": quantity}
        if variant_id:
            body["variantId"] = variant_id
        await self._request("add_to_cart", "POST", "/cart", body)

    async def update_cart_item(self, item_id: str, quantity: int) -> None:
        logger.debug(f"Updating cart item {sanitize_id_for_logging(item_id)}")
        await self._request("update_cart_item", "PUT", f"/cart/{item_id}", {"quantity": quantity})

    async def remove_from_cart(self, item_id: str) -> None:
        await self._request("remove_from_cart", "DELETE", f"/cart/{item_id}")

    async def clear_cart(self) -> None:
        await self._request("clear_cart", "DELETE", "/cart")
