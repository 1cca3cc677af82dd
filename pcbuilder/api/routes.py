"""Build generation routes.

The catalog travels with each request and is normalized into a snapshot
per call; generation itself runs on a worker thread.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from pcbuilder.cache.redis_cache import BuildCache, request_to_cache_key
from pcbuilder.catalog.normalize import normalize_catalog
from pcbuilder.catalog.snapshot import CatalogSnapshot
from pcbuilder.config import DEFAULT_SEARCH_TIME_LIMIT
from pcbuilder.engine.compatibility import check_compatibility
from pcbuilder.engine.generator import GeneratorConfig
from pcbuilder.engine.planner import run_generation
from pcbuilder.engine.templates import build_templates
from pcbuilder.models.build import (
    BuildRequest,
    CatalogPayload,
    CompatibilityCheckRequest,
    GenerationResult,
    TemplateBuild,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Builds"])

# Set by app lifespan
_cache: Optional[BuildCache] = None


def set_cache(cache: Optional[BuildCache]) -> None:
    """Called during app startup to inject the cache."""
    global _cache
    _cache = cache


def _snapshot(payload: CatalogPayload) -> CatalogSnapshot:
    return CatalogSnapshot.from_records(
        payload.catalog, sheet_rows=payload.sheet_rows, source="request"
    )


def _search_config() -> GeneratorConfig:
    return GeneratorConfig(time_limit=DEFAULT_SEARCH_TIME_LIMIT)


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────


@router.get("/health")
async def health():
    stats = await _cache.stats() if _cache else {"available": False, "keys": 0}
    return {
        "status": "healthy",
        "cache_available": stats["available"],
        "cache": stats,
    }


@router.delete("/cache")
async def flush_cache():
    """Drop every cached generation result, e.g. after a catalog import."""
    cleared = await _cache.clear_all() if _cache else 0
    logger.info("Cache flush requested: %d entries cleared", cleared)
    return {"cleared": cleared}


@router.post("/builds", response_model=GenerationResult)
async def generate_builds(request: BuildRequest):
    """Generate ranked compatible builds from the posted catalog.

    Results are cached per request parameters and catalog content.
    """
    snapshot = _snapshot(request)
    logger.info(
        "Build request: %d parts, %d categories, budget %s",
        len(snapshot), len(request.active_categories), request.budget,
    )

    cache_key = request_to_cache_key(request, snapshot.fingerprint)
    if _cache:
        cached = await _cache.get(cache_key)
        if cached:
            result = GenerationResult.model_validate_json(cached)
            return result.model_copy(update={"cached": True})

    result = await run_in_threadpool(
        run_generation, request, snapshot, _search_config()
    )

    # Deadline-cut results are never cached
    if _cache and not result.cancelled:
        await _cache.set(cache_key, result.model_dump_json())

    return result


@router.post("/compatibility/check")
async def check_parts_compatibility(request: CompatibilityCheckRequest):
    """Check a hand-picked set of raw parts against every rule."""
    parts = normalize_catalog(request.parts)
    result = check_compatibility(parts)
    return {
        "compatible": result.passed,
        "violations": [
            {
                "rule": v.rule,
                "message": v.message,
                "parts_involved": v.parts_involved,
            }
            for v in result.violations
        ],
        "ignored_parts": len(request.parts) - len(parts),
    }


@router.post("/templates", response_model=List[TemplateBuild])
async def template_builds(payload: CatalogPayload):
    """One greedy build per preset budget tier."""
    snapshot = _snapshot(payload)
    return await run_in_threadpool(
        build_templates, snapshot, config=_search_config()
    )
