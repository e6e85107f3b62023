"""HTTP layer exposing the aggregated news."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from taxnews import __version__
from taxnews.config import Settings
from taxnews.core import AggregationError, CacheSnapshot, NewsItem, SourceDescriptor
from taxnews.use_cases import NewsService

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def serialize_item(item: NewsItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "summary": item.summary,
        "content": item.content,
        "source": item.source_id,
        "sourceId": item.source_id,
        "sourceName": item.source_name,
        "category": item.category,
        "priority": item.priority.value,
        "tags": list(item.tags),
        "publishedAt": item.published_at.isoformat(),
        "url": item.url,
        "author": item.author,
        "isBreaking": item.is_breaking,
    }


def serialize_source(source: SourceDescriptor, snapshot: Optional[CacheSnapshot]) -> dict[str, Any]:
    return {
        "id": source.id,
        "name": source.name,
        "url": source.url,
        "category": source.category,
        "priority": source.priority.value,
        # Static: per-feed health is not tracked.
        "status": "online",
        "lastFetch": snapshot.generated_at.isoformat() if snapshot else None,
    }


def create_app(service: NewsService, settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application around one shared NewsService."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting TaxNews API with %d sources", len(service.registry))
        if settings.scheduler.enabled:
            service.scheduler.start()
        yield
        await service.scheduler.stop()
        logger.info("Shutting down TaxNews API")

    app = FastAPI(title="TaxNews", version=__version__, lifespan=lifespan)
    app.state.news_service = service

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.exception_handler(AggregationError)
    async def aggregation_error_handler(request: Request, exc: AggregationError):
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    @app.get("/api/news")
    async def get_news():
        snapshot = await service.get_news()
        return {
            "success": True,
            "data": [serialize_item(item) for item in snapshot.items],
            "lastUpdate": snapshot.generated_at.isoformat(),
            "total": snapshot.total,
        }

    @app.get("/api/sources")
    async def get_sources():
        snapshot = service.cache.snapshot
        return {
            "success": True,
            "data": [serialize_source(source, snapshot) for source in service.list_sources()],
        }

    @app.post("/api/refresh")
    async def refresh_news():
        snapshot = await service.refresh_news()
        return {
            "success": True,
            "message": "News refreshed successfully",
            "total": snapshot.total,
            "lastUpdate": snapshot.generated_at.isoformat(),
        }

    @app.get("/health")
    async def health():
        return {"status": "ok", "cache": service.cache.state.value}

    return app
