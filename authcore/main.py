"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from authcore.api.auth import router as auth_router
from authcore.api.middleware import CorrelationIdMiddleware
from authcore.api.routes import router as health_router
from authcore.config import get_settings
from authcore.database import close_database, init_database, run_migrations
from authcore.errors import AuthError, UserNotFound
from authcore.services.auth_service import create_auth_service
from authcore.services.logging_service import configure_logging, get_logger
from authcore.services.redis_service import close_redis, get_redis

ERROR_STATUS_BY_CATEGORY = {
    "validation": 400,
    "conflict": 409,
    "credential": 401,
    "infrastructure": 503,
    "cancellation": 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    pool = await init_database()
    await run_migrations()
    logger.info("database_initialized")

    redis_client = await get_redis()
    logger.info("redis_initialized")

    auth_service = create_auth_service(settings, pool, redis_client)
    app.state.auth_service = auth_service
    app.state.token_signer = auth_service.token_signer
    app.state.user_directory = auth_service.user_directory

    logger.info("application_started", log_level=settings.log_level)

    yield

    await close_database()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title="authcore",
    description="Authentication and session-lifecycle API",
    version="0.1.0",
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map the auth error taxonomy onto HTTP status codes.

    The body is always a single error string.
    """
    correlation_id = _correlation_id(request)
    status_code = ERROR_STATUS_BY_CATEGORY.get(exc.category, 500)
    if isinstance(exc, UserNotFound) and request.method == "PATCH":
        status_code = 404

    structlog.get_logger().info(
        "request_failed",
        op=exc.op,
        category=exc.category,
        error_type=type(exc).__name__,
        status_code=status_code,
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc)},
        headers={"X-Correlation-Id": correlation_id},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers={**(exc.headers or {}), "X-Correlation-Id": _correlation_id(request)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle malformed request bodies with a 400 and a single error string."""
    correlation_id = _correlation_id(request)

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    structlog.get_logger().warning(
        "validation_error",
        correlation_id=correlation_id,
        detail=detail,
    )

    return JSONResponse(
        status_code=400,
        content={"error": detail},
        headers={"X-Correlation-Id": correlation_id},
    )


# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(auth_router)
