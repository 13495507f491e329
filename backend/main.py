"""
Fishing Advice - FastAPI Backend Application

Main application entry point with API endpoints, middleware, and lifecycle management.
"""

import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from prometheus_client import make_asgi_app
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
import structlog
import time

from config.settings import settings
from config.database import db_manager
from middleware.tracing import TracingMiddleware

# Record application startup time for uptime calculation
_startup_time = time.time()


# Configure structured logging
# Use simpler processors in production to reduce overhead
if settings.is_production:
    log_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ]
else:
    log_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ]

structlog.configure(
    processors=log_processors,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    # Startup
    logger.info("application_starting", environment=settings.environment)

    try:
        # App starts even if the database is unavailable; advice endpoints then return 503
        await db_manager.initialize()
        logger.info("database_connections_initialized")
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        logger.warning("continuing_without_database", environment=settings.environment)

    logger.info("application_started", version=settings.app_version)

    yield

    # Shutdown
    logger.info("application_shutting_down")

    try:
        await db_manager.close()
        logger.info("database_connections_closed")
    except Exception as e:
        logger.error("shutdown_error", error=str(e))

    logger.info("application_stopped")


# Create FastAPI application
# Disable interactive API docs in production
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Statistical fishing advice: catch-rate prediction and ranked methods, flies and spots",
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE
# ============================================================================

# CORS: explicit origin allowlist, set via CORS_ORIGINS env var
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-API-Key"],
)

# GZIP Compression
app.add_middleware(GZipMiddleware, minimum_size=1000)


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Enforce a per-request timeout. The advice engine itself has no timeouts."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await asyncio.wait_for(
                call_next(request), timeout=settings.request_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning("request_timed_out", path=request.url.path)
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"detail": "Request timed out"},
            )


app.add_middleware(RequestTimeoutMiddleware)


# Processing time header and request logging
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers and log the request"""
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    if not settings.is_production:
        response.headers["X-Process-Time"] = str(process_time)

    # Only log slow or failed requests in production
    if not settings.is_production or process_time > 1.0 or response.status_code >= 400:
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=process_time
        )

    return response


# Added after the request middleware above so the request ID is bound before they log
app.add_middleware(TracingMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors without echoing the request body back"""
    # Strip 'input' (raw values) and 'ctx' (holds the raw exception object,
    # which is not JSON-serialisable)
    sanitized_errors = []
    for err in exc.errors():
        sanitized = {k: v for k, v in err.items() if k not in ("input", "ctx")}
        sanitized_errors.append(sanitized)

    logger.warning("validation_error", errors=sanitized_errors, path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": sanitized_errors,
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(
        "unexpected_error",
        error=str(exc),
        path=request.url.path,
        method=request.method
    )

    if settings.is_production:
        # Don't expose internal errors in production
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )
    else:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)}
        )


# ============================================================================
# HEALTH CHECK ENDPOINTS
# ============================================================================

async def _database_reachable() -> bool:
    try:
        return await db_manager.ping()
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False


@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint with deployment metadata"""
    uptime_seconds = time.time() - _startup_time
    db_status = "connected" if await _database_reachable() else "disconnected"

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "uptime_seconds": round(uptime_seconds, 2),
        "database_status": db_status,
    }


@app.get("/health/ready", tags=["Health"])
async def readiness_check():
    """Readiness check - the report store must be reachable to serve advice"""
    checks = {
        "database": await _database_reachable(),
    }

    all_healthy = all(checks.values())
    status_code = status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks
        }
    )


@app.get("/health/live", tags=["Health"])
async def liveness_check():
    """Liveness check - verify application is running"""
    return {"status": "alive"}


# ============================================================================
# METRICS
# ============================================================================

# Mount Prometheus metrics behind API key auth
metrics_app = make_asgi_app()


@app.middleware("http")
async def protect_metrics(request: Request, call_next):
    """Require API key for /metrics when one is configured."""
    if request.url.path.startswith("/metrics"):
        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if settings.internal_api_key and api_key != settings.internal_api_key:
            return JSONResponse(status_code=403, content={"detail": "Forbidden"})
    return await call_next(request)


app.mount("/metrics", metrics_app)


# ============================================================================
# API ROUTES
# ============================================================================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    info = {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "health": "/health",
        "metrics": "/metrics",
    }
    if not settings.is_production:
        info["docs"] = "/docs"
    return info


# Advice endpoints
from api.v1 import advice as advice_v1

app.include_router(
    advice_v1.router,
    prefix=f"{settings.api_prefix}/advice",
    tags=["Advice"]
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.backend_port,
        reload=settings.is_development,
        log_level="info"
    )
