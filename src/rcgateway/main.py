"""FastAPI application factory for RC Gateway.

This module creates and configures the FastAPI application with:
- Lifespan management (engine, record stores, upstream client, service)
- Middleware configuration (CORS, request ID, logging)
- Exception handlers rendering failure envelopes
- API routers (v1 proxy, v2 cached lookups, legacy unversioned path)
"""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from rcgateway.config import Settings, get_settings
from rcgateway.core.exceptions import RCGatewayError, ValidationError
from rcgateway.core.logging import (
    clear_correlation_id,
    configure_logging,
    get_logger,
    set_correlation_id,
)
from rcgateway.schemas.common import HealthCheckResponse

# Initialize logger for this module
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events.

    Builds the components behind the RC endpoints and stores them on
    ``app.state``:
    - Database engine and connection provider
    - In-memory fallback store and the durable store wrapping it
    - Upstream RC API client
    - RCDetailsService

    Args:
        app: The FastAPI application instance

    Yields:
        None: Control back to the application
    """
    from rcgateway.core.database import ConnectionProvider, create_engine
    from rcgateway.repositories import InMemoryRCDetailsRepository, RCDetailsRepository
    from rcgateway.services.rc_details import RCDetailsService
    from rcgateway.services.upstream import RCUpstreamClient

    settings: Settings = app.state.settings

    # ========================================
    # Startup
    # ========================================
    # Configure logging first
    configure_logging(settings)

    # Re-get logger after configuration
    startup_logger = get_logger(__name__)

    engine = create_engine(settings)
    provider = ConnectionProvider(
        engine, connect_timeout=settings.database_connect_timeout
    )
    store = RCDetailsRepository(
        provider,
        InMemoryRCDetailsRepository(),
        table_name=settings.rc_db_table,
    )
    if engine.dialect.name == "sqlite":
        try:
            await store.create_schema()
        except SQLAlchemyError as e:
            startup_logger.warning("rc_store_schema_unavailable", error=str(e))

    upstream = RCUpstreamClient(settings)

    app.state.engine = engine
    app.state.rc_store = store
    app.state.rc_upstream_client = upstream
    app.state.rc_details_service = RCDetailsService(store=store, fetcher=upstream)

    startup_logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.app_env.value,
        debug=settings.debug,
        rc_table=settings.rc_db_table,
    )

    yield

    # ========================================
    # Shutdown
    # ========================================
    await upstream.close()
    await engine.dispose()

    startup_logger.info("Application shutting down", app_name=settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This is the application factory function that creates a fully configured
    FastAPI instance with all middleware, routes, and exception handlers.

    Args:
        settings: Optional settings override for testing

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Gateway for vehicle registration (RC) lookups. "
            "Caches upstream RC details for repeat lookups."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Store settings in app state for the lifespan and dependencies
    app.state.settings = settings

    # ========================================
    # Middleware
    # ========================================
    configure_middleware(app, settings)

    # ========================================
    # Exception Handlers
    # ========================================
    configure_exception_handlers(app)

    # ========================================
    # Routes
    # ========================================
    configure_routes(app)

    return app


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Any:
        """Log requests and responses with correlation ID."""
        # Generate or extract request ID
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        # Set correlation ID for all logs in this request context
        set_correlation_id(request_id)

        request_logger = get_logger("rcgateway.request")
        start_time = time.perf_counter()

        request_logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
            )
            raise

        finally:
            clear_correlation_id()


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers.

    Every failure is rendered as a ``status=false`` envelope.

    Args:
        app: The FastAPI application instance
    """
    exception_logger = get_logger("rcgateway.exceptions")

    @app.exception_handler(RCGatewayError)
    async def rcgateway_exception_handler(
        request: Request, exc: RCGatewayError
    ) -> JSONResponse:
        """Handle RC Gateway exceptions with a structured failure envelope."""
        request_id = getattr(request.state, "request_id", None)

        # Log at appropriate level based on status code
        if exc.status_code >= 500:
            exception_logger.error(
                "Application error",
                error_code=exc.code,
                error_message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )
        else:
            exception_logger.warning(
                "Client error",
                error_code=exc.code,
                error_message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(request_id=request_id),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Render request validation failures as failure envelopes."""
        errors = [
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        return await rcgateway_exception_handler(
            request,
            ValidationError("Request validation failed", details={"errors": errors}),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions with a consistent failure envelope."""
        request_id = getattr(request.state, "request_id", None)

        exception_logger.exception(
            "Unhandled exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
        )

        error: dict[str, Any] = {"code": "INTERNAL_SERVER_ERROR"}
        if request_id:
            error["request_id"] = request_id
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": False,
                "statuscode": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "message": "An unexpected error occurred",
                "error": error,
            },
        )


def configure_routes(app: FastAPI) -> None:
    """Configure application routes.

    Args:
        app: The FastAPI application instance
    """

    @app.get(
        "/health/live",
        tags=["Health"],
        summary="Liveness check",
        description="Returns OK if the service is running",
    )
    async def liveness() -> dict[str, str]:
        """Liveness check for container orchestration."""
        return {"status": "ok"}

    @app.get(
        "/health/ready",
        tags=["Health"],
        response_model=HealthCheckResponse,
        summary="Readiness check",
        description=(
            "Reports database connectivity. A database outage is 'degraded', "
            "not 'error': lookups keep working from the in-memory cache."
        ),
    )
    async def readiness(request: Request) -> HealthCheckResponse:
        """Readiness check covering dependent services."""
        from rcgateway.core.database import check_db_connection

        engine = getattr(request.app.state, "engine", None)
        db_ok = engine is not None and await check_db_connection(engine)

        return HealthCheckResponse(
            status="ok" if db_ok else "degraded",
            checks={
                "database": "ok" if db_ok else "error",
                "cache": "database" if db_ok else "in_memory_fallback",
            },
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Returns API information",
    )
    async def root(request: Request) -> dict[str, str]:
        """API root endpoint with service information."""
        settings: Settings = request.app.state.settings
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health/live",
        }

    from rcgateway.api.v1.router import router as v1_router
    from rcgateway.api.v2.router import router as v2_router

    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(v2_router, prefix="/api/v2")

    # Unversioned path kept for older clients, same behaviour as v1
    app.include_router(v1_router, prefix="/api", deprecated=True)


# Create the application instance
app = create_app()


def cli() -> None:
    """CLI entry point for running the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rcgateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    cli()
