import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from framebook.api.v1.auth import router as auth_router
from framebook.api.v1.bookings import router as bookings_router
from framebook.api.v1.providers import router as providers_router
from framebook.api.v1.reviews import router as reviews_router
from framebook.api.v1.unavailability import router as unavailability_router
from framebook.api.v1.users import router as users_router
from framebook.core.config import settings
from framebook.core.exceptions import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from framebook.core.logging import setup_logging
from framebook.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, render_metrics
from framebook.core.rate_limiter import RateLimiter, build_rate_limiter
from framebook.core.request_context import request_id_ctx_var
from framebook.db.session import Database

logger = logging.getLogger("framebook.request")


def create_app(database: Database | None = None, rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Build the application.

    A ``database`` passed in stays owned by the caller. Otherwise one is opened
    from ``settings.database_url`` at startup and disposed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        app.state.database = database or Database(settings.database_url)
        logger.info("database_opened owned=%s", owned)
        try:
            yield
        finally:
            if owned:
                app.state.database.dispose()
                logger.info("database_disposed")

    setup_logging(settings.log_level)
    app = FastAPI(title="Framebook API", version="0.1.0", lifespan=lifespan)
    app.state.rate_limiter = rate_limiter or build_rate_limiter(settings)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(bookings_router)
    app.include_router(providers_router)
    app.include_router(unavailability_router)
    app.include_router(reviews_router)

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        token = request_id_ctx_var.set(request_id)
        start = time.perf_counter()
        path = request.url.path
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start
            REQUEST_COUNT.labels(method=method, path=path, status_code=500).inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
            logger.exception(
                "request_failed method=%s path=%s status=500 duration_ms=%.2f",
                method,
                path,
                elapsed * 1000,
            )
            request_id_ctx_var.reset(token)
            raise

        elapsed = time.perf_counter() - start
        REQUEST_COUNT.labels(method=method, path=path, status_code=response.status_code).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f",
            method,
            path,
            response.status_code,
            elapsed * 1000,
        )
        request_id_ctx_var.reset(token)
        return response

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["observability"])
    def metrics() -> Response:
        payload, content_type = render_metrics()
        return Response(content=payload, media_type=content_type)

    return app


app = create_app()
