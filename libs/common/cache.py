"""In-process TTL cache for read-mostly API responses.

Usage:
    from libs.common.cache import catalog_cache, CacheKeys

    key = catalog_cache.make_key(CacheKeys.PRODUCTS, {"store_id": store_id})
    cached = catalog_cache.get(key)
    if cached is None:
        cached = await load_products(...)
        catalog_cache.set(key, cached)

    # After an admin write
    catalog_cache.invalidate_prefix(CacheKeys.PRODUCTS)
"""
import time
from typing import Any, Callable, Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class CacheKeys:
    STORES = "stores"
    STORE = "store"
    PRODUCTS = "products"
    CATEGORIES = "categories"


class TTLCache:
    """Dictionary cache whose entries expire ``ttl`` seconds after being set."""

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        self._entries[key] = (value, expires_at)

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``. Returns the count removed."""
        stale = [key for key in self._entries if key.split(":", 1)[0] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cache entries for %s", len(stale), prefix)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    @staticmethod
    def make_key(prefix: str, params: Optional[dict] = None) -> str:
        """Build a stable key from a prefix and sorted, non-null params."""
        params = params or {}
        parts = "|".join(
            f"{name}:{params[name]}" for name in sorted(params) if params[name] is not None
        )
        return f"{prefix}:{parts}"


catalog_cache = TTLCache(default_ttl=get_settings().CATALOG_CACHE_TTL_SECONDS)
