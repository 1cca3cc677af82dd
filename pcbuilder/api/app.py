"""PC Builder engine FastAPI application."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pcbuilder.api.routes import router as builds_router
from pcbuilder.api.routes import set_cache
from pcbuilder.cache.redis_cache import BuildCache
from pcbuilder.config import ENGINE_VERSION

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Lifespan — startup / shutdown
# ──────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    cache = BuildCache()
    cache_connected = await cache.connect()
    set_cache(cache if cache_connected else None)

    if not cache_connected:
        logger.warning("Redis unavailable, serving without cache")

    yield

    await cache.disconnect()
    logger.info("Shutting down PC Builder engine")


# ──────────────────────────────────────────────
# App
# ──────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the FastAPI app."""
    app = FastAPI(
        title="PC Builder Engine",
        description=(
            "Generates compatible PC builds from a parts catalog.\n\n"
            "- `POST /builds`: ranked builds within and near a budget\n"
            "- `POST /compatibility/check`: validate a hand-picked part set\n"
            "- `POST /templates`: preset office / gaming builds\n"
            "- `DELETE /cache`: flush cached results\n"
        ),
        version=ENGINE_VERSION,
        lifespan=lifespan,
    )

    allowed_origins = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173",
    ).split(",")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in allowed_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(builds_router)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "engine": "PC Builder",
            "version": ENGINE_VERSION,
            "routes": ["/health", "/builds", "/compatibility/check", "/templates", "/cache"],
        }

    return app


# ──────────────────────────────────────────────
# Entrypoint
# ──────────────────────────────────────────────

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pcbuilder.api.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
