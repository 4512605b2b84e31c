"""
Storefront configuration.

All settings come from environment variables and are read once at import.
"""

import os

# Supabase (authenticated cart, wishlist)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "") or os.environ.get("SUPABASE_ANON_KEY", "")

# REST build variant of the cart API
STOREFRONT_API_URL = os.environ.get("STOREFRONT_API_URL", "")
STOREFRONT_API_TIMEOUT = float(os.environ.get("STOREFRONT_API_TIMEOUT", "10"))

# Guest persistence: memory | file | redis
STOREFRONT_STORAGE = os.environ.get("STOREFRONT_STORAGE", "file").lower()
STOREFRONT_STORAGE_PATH = os.environ.get("STOREFRONT_STORAGE_PATH", ".storefront/local_storage.json")

# Upstash Redis (server-side guest sessions)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


class StorageKeys:
    """Fixed keys in local key-value storage."""

    GUEST_CART = "guestCart"
    RECENTLY_VIEWED = "recentlyViewed"

    # Redis namespace: storefront:{session_id}:{key}
    REDIS_PREFIX = "storefront:"

    @staticmethod
    def session_prefix(session_id: str) -> str:
        return f"{StorageKeys.REDIS_PREFIX}{session_id}:"


class Limits:
    """Caps for locally persisted sequences."""

    RECENTLY_VIEWED_MAX_ITEMS = 20
    RECENTLY_VIEWED_MAX_AGE_DAYS = 30
    NOTIFICATION_HISTORY = 50
    NOTIFICATION_DURATION_MS = 5000
