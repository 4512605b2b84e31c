"""
Backend clients - Supabase and Upstash Redis.

Provides singleton instances of:
- Async Supabase client for the authenticated cart and wishlist
- Sync Upstash Redis client for server-side guest storage
"""

from typing import Optional

from supabase._async.client import AsyncClient, create_client as acreate_client
from upstash_redis import Redis

from storefront import config
from storefront.errors import ConfigurationError

# Singleton instances
_async_supabase_client: Optional[AsyncClient] = None
_sync_redis_client: Optional[Redis] = None


async def get_supabase() -> AsyncClient:
    """
    Get async Supabase client (singleton).

    Requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY).
    """
    global _async_supabase_client

    if _async_supabase_client is None:
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _async_supabase_client = await acreate_client(config.SUPABASE_URL, config.SUPABASE_KEY)

    return _async_supabase_client


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Guest storage is synchronous, so only the sync client is used.
    """
    global _sync_redis_client

    if _sync_redis_client is None:
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise ConfigurationError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _sync_redis_client = Redis(url=config.UPSTASH_REDIS_REST_URL, token=config.UPSTASH_REDIS_REST_TOKEN)

    return _sync_redis_client
