"""ASGI entry point: ``uvicorn hh_vibe.main:app``.

Builds the FastAPI app: logging, security headers, CORS, the error
envelope handlers, the v1 routers and a health probe.
"""

import logging

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from hh_vibe.api.v1.router import router as v1_router
from hh_vibe.core.config import settings
from hh_vibe.core.errors import APIError, InternalError, ValidationError
from hh_vibe.core.rate_limiting import limiter, rate_limit_exceeded_handler
from hh_vibe.core.responses import error_response

logger = structlog.get_logger()

# JSON-only API: no resource may be loaded or framed
_SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


def configure_logging() -> None:
    """Send structlog and stdlib logging to the same handlers.

    Services and agents use ``logging.getLogger(__name__)``; adapters and the
    HTTP layer use structlog event names. Production emits JSON lines,
    other environments the console renderer.
    """
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if settings.environment == "production"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers; mark API responses uncacheable.

    API responses echo the user's persona and dialogue, so no cache may
    keep them.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.update(_SECURITY_HEADERS)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"
        # TLS terminates at the reverse proxy in production
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def api_error_handler(_request: Request, exc: APIError) -> Response:
    return error_response(exc)


def validation_error_handler(_request: Request, exc: RequestValidationError) -> Response:
    """400 VALIDATION_ERROR with one ``{loc, msg, type}`` entry per problem."""
    details = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return error_response(ValidationError("Request validation failed", details=details))


def internal_error_handler(request: Request, exc: Exception) -> Response:
    """500 INTERNAL_ERROR; the exception is logged, never returned."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return error_response(InternalError())


def create_app() -> FastAPI:
    """Build a configured application instance."""
    configure_logging()

    app = FastAPI(
        title="HH Vibe API",
        version="1.0.0",
        description="Career advice chat backed by live HeadHunter vacancies",
    )

    # Starlette runs the last-added middleware first; CORS must see preflights
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Request-ID"],
    )

    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, internal_error_handler)

    app.state.limiter = limiter
    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict:
        return {"status": "healthy"}

    logger.info(
        "app_created",
        environment=settings.environment,
        origins=settings.allowed_origins,
    )
    return app


app = create_app()
