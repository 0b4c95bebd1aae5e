"""FastAPI 앱 팩토리 — 서비스 공통 헬스체크 + 에러 핸들러.

Usage:
    from feedlens.services.base import create_app

    app = create_app("feed-ingest", version="1.0.0", dependencies=["db"])
"""

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from feedlens.domain.errors import DuplicateFeedError, FeedNotFoundError, FetchError
from feedlens.domain.health import DependencyHealth, HealthStatus

logger = logging.getLogger(__name__)

# 서비스 시작 시각 (uptime 계산용)
_start_time: float = 0.0


def create_app(
    service_name: str,
    *,
    version: str = "1.0.0",
    lifespan: Callable | None = None,
    dependencies: list[str] | None = None,
) -> FastAPI:
    """FastAPI 앱 팩토리.

    Args:
        service_name: 서비스 식별자 (예: "feed-ingest")
        version: 서비스 버전
        lifespan: 커스텀 lifespan context manager (startup/shutdown)
        dependencies: 헬스체크에 포함할 의존성 목록 ("db")
    """
    deps = dependencies or []

    @asynccontextmanager
    async def wrapped_lifespan(app: FastAPI) -> AsyncIterator[None]:
        global _start_time
        _start_time = time.monotonic()
        logger.info("[%s] Starting v%s", service_name, version)
        if lifespan:
            async with lifespan(app):
                yield
        else:
            yield
        logger.info("[%s] Shutting down", service_name)

    app = FastAPI(
        title=f"feedlens {service_name}",
        version=version,
        lifespan=wrapped_lifespan,
    )

    # --- Error Handlers ---

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.errors(), "message": "Validation error"},
        )

    @app.exception_handler(FeedNotFoundError)
    async def feed_not_found_handler(request: Request, exc: FeedNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc), "message": "Feed not found"})

    @app.exception_handler(DuplicateFeedError)
    async def duplicate_feed_handler(request: Request, exc: DuplicateFeedError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc), "message": "Feed already exists"})

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "message": f"Upstream feed error: {exc.reason}"},
        )

    # --- Health Check ---

    @app.get("/health")
    async def health() -> HealthStatus:
        dep_health: dict[str, DependencyHealth] = {}
        overall = "healthy"

        for dep in deps:
            dep_health[dep] = _check_dependency(dep)
            if dep_health[dep].status == "down":
                overall = "unhealthy"
            elif dep_health[dep].status == "degraded" and overall == "healthy":
                overall = "degraded"

        return HealthStatus(
            service=service_name,
            status=overall,
            uptime_seconds=time.monotonic() - _start_time,
            version=version,
            dependencies=dep_health,
            timestamp=datetime.now(UTC),
        )

    return app


def _check_dependency(name: str) -> DependencyHealth:
    """의존성 상태 체크."""
    start = time.monotonic()
    try:
        if name == "db":
            from sqlalchemy import text

            from feedlens.infra.database.engine import get_engine

            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
        else:
            return DependencyHealth(status="healthy", message=f"Unknown dep: {name}")

        latency = (time.monotonic() - start) * 1000
        status = "healthy" if latency < 1000 else "degraded"
        return DependencyHealth(status=status, latency_ms=round(latency, 1))

    except Exception as e:
        latency = (time.monotonic() - start) * 1000
        return DependencyHealth(
            status="down",
            latency_ms=round(latency, 1),
            message=str(e)[:200],
        )
