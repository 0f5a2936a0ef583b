"""Campaign Comments API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campaign_comments.auth.identity import IdentityResolver, RemoteIdentityResolver
from campaign_comments.auth.security import TokenVerifier
from campaign_comments.comments.router import router as comments_router
from campaign_comments.comments.service import CommentService
from campaign_comments.comments.store import CassandraCommentStore, CommentStore
from campaign_comments.config import Settings, get_settings
from campaign_comments.core.context import get_request_id
from campaign_comments.core.database import (
    init_async_cassandra,
    shutdown_async_cassandra,
)
from campaign_comments.core.exceptions import ServiceError
from campaign_comments.core.logging import configure_structlog, get_logger
from campaign_comments.core.middleware import RequestContextMiddleware
from campaign_comments.health import router as health_router


logger = get_logger(__name__)

# Server-side codes whose message is meant for the caller
PUBLIC_ERROR_CODES = frozenset({"authentication_failure", "upstream_unavailable"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        identity_endpoint=settings.identity_endpoint,
    )

    owns_store = app.state.comment_store is None
    if owns_store:
        try:
            session = await init_async_cassandra(settings)
            app.state.comment_store = CassandraCommentStore(
                session=session,
                keyspace=settings.cassandra_keyspace,
            )
            app.state.comment_service = CommentService(
                store=app.state.comment_store,
                identity_resolver=app.state.identity_resolver,
            )
            logger.info("comment_service_initialized")
        except Exception as e:
            logger.warning(
                "database_init_skipped",
                error=str(e),
                message="Running without database connection",
            )

    yield

    logger.info("shutting_down_application")
    await app.state.identity_resolver.aclose()
    if owns_store:
        await shutdown_async_cassandra()


def _get_request_id_safe(request: Request) -> str | None:
    """Get request_id from request state or context."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return get_request_id()


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    **extra,
) -> ORJSONResponse:
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "code": code,
            "message": message,
            "status_code": status_code,
            "request_id": _get_request_id_safe(request),
            **extra,
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers (never expose stack traces)."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(
        request: Request, exc: ServiceError
    ) -> ORJSONResponse:
        """Render service errors with their code and status."""
        log_method = (
            logger.error
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.warning
        )
        log_method(
            "service_error",
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.message,
            path=request.url.path,
            method=request.method,
        )

        message = exc.message
        if (
            exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            and exc.code not in PUBLIC_ERROR_CODES
        ):
            message = "Internal server error"

        return _error_response(request, exc.status_code, exc.code, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return _error_response(
            request,
            exc.status_code,
            "http_error",
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            or exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
            else "Internal server error",
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle malformed request input as a validation failure."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return _error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "validation_failure",
            "Validation error",
            details=[
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Invalid value"),
                }
                for err in exc.errors()
            ],
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "An unexpected error occurred. Please try again later.",
        )


def create_app(
    settings: Settings | None = None,
    *,
    comment_store: CommentStore | None = None,
    identity_resolver: IdentityResolver | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        comment_store: Store to use instead of connecting to Cassandra
        identity_resolver: Resolver to use instead of the remote auth service
    """
    settings = settings or get_settings()
    configure_structlog(settings)

    # debug=False keeps Starlette from rendering stack traces in responses
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Campaign comments API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Built once at startup and shared by reference
    app.state.settings = settings
    app.state.token_verifier = TokenVerifier(settings)
    app.state.identity_resolver = identity_resolver or RemoteIdentityResolver(settings)
    app.state.comment_store = comment_store
    app.state.comment_service = (
        CommentService(store=comment_store, identity_resolver=app.state.identity_resolver)
        if comment_store is not None
        else None
    )

    # Request context and logging
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Campaign Comments API",
            "version": settings.app_version,
        }

    return app


app = create_app()
