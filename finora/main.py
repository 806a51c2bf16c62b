"""Main FastAPI application entry point."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sentry_sdk.integrations.fastapi import FastApiIntegration

from finora.config import settings
from finora.logging_config import configure_logging, get_logger, bind_contextvars, clear_contextvars
from finora.services.advisor_service import get_advisor_service
from finora.services.session import InvalidTransitionError, session_store

# Configure logging
configure_logging()
logger = get_logger(__name__)

# =============================================================================
# Sentry Integration (Error Tracking)
# =============================================================================
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[FastApiIntegration(transaction_style="endpoint")],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        send_default_pii=False,  # Profiles are financial data
    )
    logger.info("Sentry initialized", environment=settings.environment)
else:
    logger.debug("Sentry not configured - no DSN provided")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup fails with ``ConfigurationError`` when ``GEMINI_API_KEY`` is not
    set, so a misconfigured deployment never serves requests.
    """
    logger.info("Starting application", app_name=settings.app_name, version=settings.app_version)

    settings.require_gemini_api_key()
    advisor = get_advisor_service()
    logger.info("Advisor ready", model=advisor.model)

    try:
        yield
    finally:
        logger.info("Shutting down application", sessions=len(session_store))
        session_store.clear()
        logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Vernacular financial mentor: structured advice and chat",
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# =============================================================================
# Prometheus Metrics Instrumentation
# =============================================================================
if settings.enable_metrics:
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/metrics"],
    )
    instrumentator.add(metrics.default(metric_namespace="finora", metric_subsystem="http"))
    instrumentator.add(
        metrics.latency(
            metric_namespace="finora",
            metric_subsystem="http",
            buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
        )
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False)
    logger.info("Prometheus /metrics endpoint enabled")

# Configure CORS (credentials needed for the session cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def add_request_metadata(request: Request, call_next) -> Response:
    """Add request ID and timing to all requests."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    start_time = time.perf_counter()

    request.state.request_id = request_id

    # Bind request context for all logs in this request
    clear_contextvars()
    bind_contextvars(request_id=request_id, path=request.url.path, method=request.method)

    response = await call_next(request)

    process_time = time.perf_counter() - start_time
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{process_time:.4f}"

    logger.info(
        "Request completed",
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
    )

    return response


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "tagline": "Financial guidance in your own language",
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy", "service": settings.app_name}


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    """Map screen navigation errors to 409 Conflict."""
    logger.info("Rejected session action", path=request.url.path, reason=str(exc))
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler.

    Args:
        request: Request object
        exc: Exception

    Returns:
        JSON error response
    """
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# Import and include routers
from finora.routes import advice, chat, session

app.include_router(session.router, prefix="/api/session", tags=["session"])
app.include_router(advice.router, prefix="/api/advice", tags=["advice"])
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
