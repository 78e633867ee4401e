"""
Main FastAPI application.

Payment intent status API with:
- CORS configuration
- Error handling
- Request ID tracking
- Structured logging
- Prometheus metrics
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ratapay import __version__
from ratapay.config import Settings, get_settings
from ratapay.core.services import ServiceContainer
from ratapay.monitoring.logging import setup_logging

from .routes import monitoring_router, payment_router, webhook_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """
    Application lifespan manager.

    Starts the shared services before serving traffic and closes them on
    shutdown.
    """
    settings: Settings = app.state.settings
    services: ServiceContainer = app.state.services

    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        test_mode=settings.is_test_mode,
    )

    try:
        await services.start()
        logger.info("database_initialized")
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        raise

    yield

    logger.info("application_shutdown")
    try:
        await services.close()
        logger.info("database_connections_closed")
    except Exception as e:
        logger.error("database_shutdown_error", error=str(e))


async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
    """
    Add request ID to all requests for tracing.

    Also adds timing information and structured logging context.
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_seconds=time.time() - start_time,
        )

        return response

    except Exception as e:
        logger.error(
            "request_failed",
            error=str(e),
            duration_seconds=time.time() - start_time,
        )
        raise

    finally:
        structlog.contextvars.clear_contextvars()


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Answer malformed intent creation requests like any other creation failure.

    Other routes keep FastAPI's default 422 response.
    """
    if request.method == "POST" and request.url.path == "/webhook":
        logger.warning(
            "api_create_payment_intent_invalid_request",
            error_count=len(exc.errors()),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Payment failed"},
        )
    return await request_validation_exception_handler(request, exc)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (loaded from the environment if omitted)
        services: Pre-built services (built from settings if omitted)

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="RataPay Webhook API",
        description=(
            "Creates Stripe payment intents, applies Stripe webhook events and "
            "exposes the resulting payment status for polling."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/api-docs",
        redoc_url=None,
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.services = services or ServiceContainer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_request_id_middleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(payment_router)
    app.include_router(webhook_router)
    app.include_router(monitoring_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "status": "operational",
            "environment": settings.app_env,
            "test_mode": settings.is_test_mode,
            "docs": "/api-docs",
            "health": "/health",
            "metrics": "/metrics",
        }

    return app


app = create_app()


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ratapay.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
