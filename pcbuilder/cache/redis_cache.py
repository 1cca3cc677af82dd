"""Redis caching layer for generation results.

Results are keyed by the request parameters plus the fingerprint of the
catalog snapshot they were computed from, so a refreshed catalog never
serves stale builds. Redis being down only costs recomputation.

Cache key strategy:
  pcbuilder:builds:{sha256(categories + budget + tolerance + top_n + strategy + catalog fingerprint)}
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Iterable, Optional

from pcbuilder.models.build import GenerationRequest
from pcbuilder.models.components import Category

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# Configuration
# ──────────────────────────────────────────────

CACHE_PREFIX = "pcbuilder:builds:"
DEFAULT_TTL = int(os.getenv("PCBUILDER_CACHE_TTL", "1800"))  # 30 minutes
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


# ──────────────────────────────────────────────
# Cache Key Generation
# ──────────────────────────────────────────────


def build_cache_key(
    categories: Iterable[Category],
    budget: Optional[float],
    tolerance: float,
    tolerance_mode: str,
    top_within: int,
    top_near: int,
    strategy: str,
    catalog_fingerprint: str,
) -> str:
    """Deterministic key for one generation run.

    Category order does not matter; the catalog is identified by content.
    """
    canonical = {
        "categories": sorted(c.value for c in categories),
        "budget": float(budget) if budget is not None else None,
        "tolerance": float(tolerance),
        "tolerance_mode": tolerance_mode,
        "top_n": [top_within, top_near],
        "strategy": strategy,
        "catalog": catalog_fingerprint,
    }
    raw = json.dumps(canonical, sort_keys=True)
    digest = hashlib.sha256(raw.encode()).hexdigest()[:16]
    return f"{CACHE_PREFIX}{digest}"


def request_to_cache_key(request: GenerationRequest, catalog_fingerprint: str) -> str:
    """Extract the cache key from a validated request."""
    return build_cache_key(
        categories=request.active_categories,
        budget=request.budget,
        tolerance=request.tolerance,
        tolerance_mode=request.tolerance_mode,
        top_within=request.top_n.within,
        top_near=request.top_n.near,
        strategy=request.strategy.value,
        catalog_fingerprint=catalog_fingerprint,
    )


# ──────────────────────────────────────────────
# Redis Cache Client
# ──────────────────────────────────────────────


class BuildCache:
    """Redis-backed cache for serialized generation results.

    Never raises: every method returns None / False / 0 when Redis is
    unreachable.
    """

    def __init__(self, redis_url: str = REDIS_URL, ttl: int = DEFAULT_TTL) -> None:
        self.ttl = ttl
        self._redis = None
        self._redis_url = redis_url
        self._available = False

    async def connect(self) -> bool:
        """Connect and ping. Returns True if the server answered."""
        try:
            import redis.asyncio as aioredis

            self._redis = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_timeout=3,
            )
            await self._redis.ping()
            self._available = True
            logger.info("Redis cache connected: %s", self._redis_url)
            return True
        except Exception as e:
            logger.warning("Redis unavailable: %s, caching disabled", e)
            self._available = False
            return False

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self._available = False

    @property
    def available(self) -> bool:
        return self._available

    async def get(self, key: str) -> Optional[str]:
        """Cached payload, or None on miss or error."""
        if not self._available:
            return None
        try:
            data = await self._redis.get(key)
            logger.debug("Cache %s: %s", "HIT" if data else "MISS", key)
            return data
        except Exception as e:
            logger.warning("Cache get failed: %s", e)
            return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        if not self._available:
            return False
        try:
            await self._redis.set(key, value, ex=ttl or self.ttl)
            logger.debug("Cache SET: %s (TTL: %ds)", key, ttl or self.ttl)
            return True
        except Exception as e:
            logger.warning("Cache set failed: %s", e)
            return False

    async def clear_all(self) -> int:
        """Drop every generation entry under our prefix. Returns count deleted."""
        if not self._available:
            return 0
        try:
            keys = [key async for key in self._redis.scan_iter(f"{CACHE_PREFIX}*")]
            if keys:
                await self._redis.delete(*keys)
            logger.info("Cleared %d cache entries", len(keys))
            return len(keys)
        except Exception as e:
            logger.warning("Cache clear failed: %s", e)
            return 0

    async def stats(self) -> dict:
        if not self._available:
            return {"available": False, "keys": 0}
        try:
            count = 0
            async for _ in self._redis.scan_iter(f"{CACHE_PREFIX}*"):
                count += 1
            return {"available": True, "keys": count, "ttl": self.ttl}
        except Exception as e:
            return {"available": False, "error": str(e)}


# ──────────────────────────────────────────────
# In-Memory Cache (tests / single process)
# ──────────────────────────────────────────────


class InMemoryCache(BuildCache):
    """Dict-backed cache. TTL is not enforced."""

    def __init__(self, ttl: int = DEFAULT_TTL) -> None:
        super().__init__(ttl=ttl)
        self._store: dict[str, str] = {}
        self._available = True

    async def connect(self) -> bool:
        self._available = True
        return True

    async def disconnect(self) -> None:
        self._store.clear()
        self._available = False

    async def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        self._store[key] = value
        return True

    async def clear_all(self) -> int:
        count = len(self._store)
        self._store.clear()
        return count

    async def stats(self) -> dict:
        return {"available": True, "keys": len(self._store), "ttl": self.ttl}
