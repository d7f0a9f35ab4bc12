"""HTTP transport for the supply service."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ..cache import CachedValue, CacheStatus
from ..constants import SERVICE_NAME, SERVICE_VERSION
from ..report.breakdown import format_age
from ..state import AppState

CACHE_CONTROL = "s-maxage=60, stale-while-revalidate=300"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _cache_headers(cached: CachedValue) -> dict[str, str]:
    headers = {"X-Cache": cached.status.value, "Cache-Control": CACHE_CONTROL}
    if cached.age_seconds is not None:
        headers["X-Cache-Age"] = format_age(cached.age_seconds)
    return headers


def _plain_text(cached: CachedValue) -> PlainTextResponse:
    status_code = 500 if cached.status is CacheStatus.ERROR else 200
    return PlainTextResponse(
        str(cached.value), status_code=status_code, headers=_cache_headers(cached)
    )


def _state(request: Request) -> AppState:
    return request.app.state.supply


def create_app(state: AppState) -> FastAPI:
    """Build the FastAPI app serving ``state``'s supply service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state.logger.info(
            "%s %s serving %d chains (fresh %.0fs, stale %.0fs)",
            SERVICE_NAME,
            SERVICE_VERSION,
            len(state.settings.chains),
            state.settings.fresh_ttl_seconds,
            state.settings.stale_ttl_seconds,
        )
        yield
        await state.aclose()

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)
    app.state.supply = state
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
    )

    @app.get("/api/circulating-supply", response_class=PlainTextResponse)
    async def circulating_supply(request: Request) -> PlainTextResponse:
        """Plain-text circulating supply for market-data aggregators."""
        return _plain_text(await _state(request).service.get_circulating_supply())

    @app.get("/api/total-supply", response_class=PlainTextResponse)
    async def total_supply(request: Request) -> PlainTextResponse:
        """Plain-text total supply for market-data aggregators."""
        return _plain_text(await _state(request).service.get_total_supply())

    @app.get("/api/circulating-supply/detailed")
    async def detailed(request: Request) -> JSONResponse:
        cached = await _state(request).service.get_detailed_breakdown()
        if cached.status is CacheStatus.ERROR:
            return JSONResponse(
                {"error": cached.error},
                status_code=500,
                headers=_cache_headers(cached),
            )
        return JSONResponse(cached.value, headers=_cache_headers(cached))

    @app.post("/api/cache/clear")
    async def clear_cache(request: Request) -> dict[str, Any]:
        _state(request).service.clear_cache()
        return {"success": True, "message": "Cache cleared", "timestamp": _now_iso()}

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        current = _state(request)
        status = current.service.cache_status()
        return {
            "status": "healthy",
            "uptime": round(time.monotonic() - current.started_at, 3),
            "timestamp": _now_iso(),
            "version": SERVICE_VERSION,
            "cache": {
                kind: {
                    "hasValue": entry["has_value"],
                    "age": format_age(entry["age_seconds"]),
                    "status": entry["status"],
                }
                for kind, entry in status["entries"].items()
            },
            "refreshInFlight": status["refresh_in_flight"],
            "lastError": status["last_error"],
        }

    @app.get("/")
    async def index(request: Request) -> dict[str, Any]:
        settings = _state(request).settings
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "tokenAddress": settings.token_address,
            "chains": settings.chain_names,
            "features": [
                f"{settings.fresh_ttl_seconds:g}-second caching",
                "Retry logic with exponential backoff",
                "Fallback RPC endpoints",
                "Stale-while-revalidate strategy",
                "X-Cache headers",
            ],
            "endpoints": {
                "circulatingSupply": "/api/circulating-supply",
                "totalSupply": "/api/total-supply",
                "detailed": "/api/circulating-supply/detailed",
                "health": "/health",
                "cacheClear": "POST /api/cache/clear",
            },
        }

    return app
