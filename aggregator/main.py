"""
Financial Aggregator API

A FastAPI service exposing mock bank-account and transaction data for a
financial-aggregator demo.

Endpoints:
----------
- GET  /api/accounts                        every linked account
- GET  /api/accounts/{id}                   one account
- POST /api/accounts/{id}/refresh           simulated re-sync with the bank
- GET  /api/accounts/{id}/transactions      recent transactions of an account
- GET  /api/transactions                    filtered, paginated transactions
- GET  /api/transactions/{id}               one transaction
- GET  /health                              liveness check
- GET  /metrics                             Prometheus metrics

All data lives in memory. The stores are built once by ``create_app`` and
reach the route handlers through ``app.state``.
"""
import asyncio
import random
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.routing import Match

from aggregator import metrics
from aggregator.api import router
from aggregator.config import Settings, settings as default_settings
from aggregator.errors import AggregatorError
from aggregator.logging import (
    configure_logging,
    get_logger,
    set_request_context,
    clear_request_context,
    generate_request_id,
)
from aggregator.schemas import APIResponse, HealthResponse
from aggregator.services import AccountStore, RefreshSimulator, TransactionStore

# Configure structured logging
configure_logging(default_settings.log_level)
logger = get_logger(__name__)

UNTRACED_PATHS = ("/health", "/metrics")

# Metric label for requests that matched no route
UNMATCHED_ENDPOINT = "unmatched"

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Accept", "Authorization", "Content-Type", "X-CSRF-Token", "X-Request-ID"]
CORS_EXPOSE_HEADERS = ["Link", "X-Request-ID"]
CORS_MAX_AGE = 300


def cors_options(settings: Settings) -> dict:
    """CORSMiddleware keyword arguments; also the source of the OPTIONS reply headers."""
    return {
        "allow_origins": settings.cors_allow_origins,
        "allow_credentials": False,
        "allow_methods": CORS_METHODS,
        "allow_headers": CORS_HEADERS,
        "expose_headers": CORS_EXPOSE_HEADERS,
        "max_age": CORS_MAX_AGE,
    }


def preflight_headers(settings: Settings, origin: Optional[str]) -> dict[str, str]:
    """Headers for an OPTIONS reply, derived from cors_options."""
    options = cors_options(settings)
    headers = {
        "Access-Control-Allow-Methods": ", ".join(options["allow_methods"]),
        "Access-Control-Allow-Headers": ", ".join(options["allow_headers"]),
        "Access-Control-Max-Age": str(options["max_age"]),
    }
    if "*" in options["allow_origins"]:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in options["allow_origins"]:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def error_response(status_code: int, message: str, error: Optional[str] = None,
                   headers: Optional[dict] = None) -> JSONResponse:
    """Render a failure in the standard APIResponse envelope."""
    body = APIResponse(success=False, message=message, error=error)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def endpoint_label(request: Request) -> str:
    """Route template the request matched, so IDs never become label values."""
    route = request.scope.get("route")
    if route is None:
        for candidate in request.app.router.routes:
            match, _ = candidate.matches(request.scope)
            if match == Match.FULL:
                route = candidate
                break
    return getattr(route, "path", None) or UNMATCHED_ENDPOINT


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "service_starting",
        service_name=app.state.settings.service_name,
        account_count=len(app.state.account_store),
        transaction_count=len(app.state.transaction_store),
    )

    yield

    logger.info("service_stopping", service_name=app.state.settings.service_name)


async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request tracing, logging, metrics and the request deadline.

    Sets up request context with:
    - request_id: Unique identifier for tracing
    - Timing for duration_ms calculation
    - Prometheus metrics collection
    """
    method = request.method
    path = request.url.path

    # Skip logging/metrics for health and metrics endpoints
    if path in UNTRACED_PATHS:
        return await call_next(request)

    request_id = request.headers.get("X-Request-ID") or generate_request_id()
    set_request_context(request_id)
    request.state.request_id = request_id

    timeout = request.app.state.settings.request_timeout_seconds
    start_time = time.perf_counter()

    logger.info("request_received", method=method, path=path)

    try:
        try:
            response = await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error("request_timed_out", method=method, path=path, timeout_seconds=timeout)
            response = error_response(
                504,
                "Request timed out",
                f"request exceeded {timeout:g}s deadline",
            )

        duration_seconds = time.perf_counter() - start_time

        logger.info(
            "request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration_seconds * 1000, 2),
        )
        metrics.record_request(method, endpoint_label(request), response.status_code, duration_seconds)

        response.headers["X-Request-ID"] = request_id
        return response

    except Exception as e:
        duration_seconds = time.perf_counter() - start_time

        logger.error(
            "request_failed",
            method=method,
            path=path,
            duration_ms=round(duration_seconds * 1000, 2),
            error=str(e),
        )
        metrics.record_request(method, endpoint_label(request), 500, duration_seconds)

        raise

    finally:
        clear_request_context()


async def options_middleware(request: Request, call_next):
    """Answer every OPTIONS request with an empty 200 carrying CORS headers."""
    if request.method != "OPTIONS":
        return await call_next(request)

    headers = preflight_headers(request.app.state.settings, request.headers.get("Origin"))
    return Response(status_code=200, headers=headers)


async def aggregator_error_handler(request: Request, exc: AggregatorError):
    """Handle store and request errors raised by route handlers."""
    logger.warning(
        "request_error",
        status_code=exc.status_code,
        message=exc.message,
        detail=exc.detail,
    )
    return error_response(exc.status_code, exc.message, exc.detail)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render routing errors (unknown path, wrong method) as JSON envelopes."""
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return error_response(
        exc.status_code,
        message,
        message.lower(),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Requests the framework cannot validate are bad requests."""
    return error_response(400, "Invalid request", str(exc.errors()))


async def unhandled_error_handler(request: Request, exc: Exception):
    """Last resort: log the failure and return an InternalError envelope."""
    logger.exception("unhandled_error", error=str(exc))
    return error_response(500, "Internal server error", "internal error")


def create_app(
    settings: Optional[Settings] = None,
    account_store: Optional[AccountStore] = None,
    transaction_store: Optional[TransactionStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Build the application and the stores it serves.

    Args:
        settings: Settings to run with (defaults to the environment's)
        account_store: Account store to serve (defaults to the seed data)
        transaction_store: Transaction store to serve (defaults to the seed data)
        rng: Random source for refresh deltas when building the account store

    Returns:
        A configured FastAPI application
    """
    settings = settings or default_settings

    if account_store is None:
        account_store = AccountStore(
            simulator=RefreshSimulator(rng=rng, delay_seconds=settings.refresh_delay_seconds),
        )
    if transaction_store is None:
        transaction_store = TransactionStore(default_limit=settings.default_page_limit)

    app = FastAPI(
        title="Financial Aggregator API",
        description="Mock bank accounts and transactions for a financial-aggregator demo",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.account_store = account_store
    app.state.transaction_store = transaction_store

    # Added innermost first: request logging, then CORS, then OPTIONS
    app.middleware("http")(request_logging_middleware)
    app.add_middleware(CORSMiddleware, **cors_options(settings))
    app.middleware("http")(options_middleware)

    app.add_exception_handler(AggregatorError, aggregator_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint for container orchestration."""
        timestamp = datetime.now(timezone.utc).replace(microsecond=0)
        return HealthResponse(
            status="healthy",
            timestamp=timestamp.isoformat().replace("+00:00", "Z"),
        )

    @app.get("/metrics")
    async def prometheus_metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
