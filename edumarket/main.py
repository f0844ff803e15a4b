"""edumarket API - Main Application."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from edumarket.auth.dependencies import set_auth_service_getter
from edumarket.auth.router import router as auth_router
from edumarket.auth.security import CredentialEngine
from edumarket.auth.service import AuthService
from edumarket.auth.store import CassandraUserStore
from edumarket.config import get_settings
from edumarket.core.context import get_request_id
from edumarket.core.database import init_cassandra, shutdown_cassandra
from edumarket.core.errors import AppError
from edumarket.core.logging import configure_structlog, get_logger
from edumarket.core.middleware import RequestContextMiddleware
from edumarket.core.redis import init_redis, shutdown_redis
from edumarket.courses.dependencies import set_course_service_getter
from edumarket.courses.router import router as courses_router
from edumarket.courses.service import CourseService
from edumarket.courses.store import CassandraCourseStore
from edumarket.health import router as health_router
from edumarket.purchases.dependencies import set_access_service_getter
from edumarket.purchases.router import router as purchases_router
from edumarket.purchases.service import AccessService
from edumarket.purchases.store import CassandraEnrollmentStore, CassandraPurchaseStore


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# HTTP status for each AppError code
APP_ERROR_STATUS: dict[str, int] = {
    "validation_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "invalid_role": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "email_taken": status.HTTP_409_CONFLICT,
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "deactivated": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "access_denied": status.HTTP_403_FORBIDDEN,
    "store_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    credentials: CredentialEngine | None = None
    auth_service: AuthService | None = None
    course_service: CourseService | None = None
    access_service: AccessService | None = None


app_state = AppState()


def get_auth_service() -> AuthService:
    """Get AuthService instance from app state."""
    if app_state.auth_service is None:
        msg = "AuthService not initialized"
        raise RuntimeError(msg)
    return app_state.auth_service


def get_course_service() -> CourseService:
    """Get CourseService instance from app state."""
    if app_state.course_service is None:
        msg = "CourseService not initialized"
        raise RuntimeError(msg)
    return app_state.course_service


def get_access_service() -> AccessService:
    """Get AccessService instance from app state."""
    if app_state.access_service is None:
        msg = "AccessService not initialized"
        raise RuntimeError(msg)
    return app_state.access_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Unsafe key derivation settings must stop startup
    app_state.credentials = CredentialEngine.from_settings(settings)
    logger.info(
        "credential_engine_initialized",
        digest=settings.credential_digest,
        iterations=settings.credential_iterations,
    )

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without Redis - access decisions are not cached",
            )

    # Initialize Cassandra
    try:
        app_state.cassandra_session = await asyncio.to_thread(init_cassandra)
        logger.info("cassandra_initialized")

        keyspace = settings.cassandra_keyspace
        session = app_state.cassandra_session

        app_state.auth_service = AuthService(
            store=CassandraUserStore(session, keyspace),
            credentials=app_state.credentials,
        )
        logger.info("auth_service_initialized")

        app_state.course_service = CourseService(
            store=CassandraCourseStore(session, keyspace),
        )
        logger.info("course_service_initialized")

        app_state.access_service = AccessService(
            purchases=CassandraPurchaseStore(session, keyspace),
            enrollments=CassandraEnrollmentStore(session, keyspace),
            course_service=app_state.course_service,
            redis=redis_client,
            cache_ttl=settings.access_cache_ttl_seconds,
        )
        logger.info(
            "access_service_initialized", access_cache=redis_client is not None
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await asyncio.to_thread(shutdown_cassandra)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette's ServerErrorMiddleware from rendering
    # stack traces; the handlers below log details and return safe messages.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="E-learning marketplace API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
        """Render domain errors with the status mapped from their code."""
        status_code = APP_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
        log_method = (
            logger.error
            if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.info
        )
        log_method(
            "app_error",
            code=exc.code,
            status_code=status_code,
            path=request.url.path,
            method=request.method,
        )

        content: dict[str, Any] = {
            "error": True,
            "code": exc.code,
            "message": exc.message,
            "status_code": status_code,
            "request_id": _get_request_id_safe(request),
        }
        fields = getattr(exc, "fields", None)
        if fields:
            content["fields"] = fields
        return ORJSONResponse(status_code=status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        details = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]

        # Input values are left out of the log; they may hold passwords
        logger.warning(
            "validation_error",
            fields=[d["field"] for d in details],
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "code": "validation_error",
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": details,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged internally; the response never carries them.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(courses_router)
    app.include_router(purchases_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "edumarket API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


# Configure router dependencies before creating app
set_auth_service_getter(get_auth_service)
set_course_service_getter(get_course_service)
set_access_service_getter(get_access_service)

app = create_app()
