"""
FastAPI application entry point.
Application factory with middleware, exception handlers and route configuration.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from impressions.backend.base import Backend
from impressions.backend.database import DatabaseBackend
from impressions.backend.factory import create_backend
from impressions.config import Settings, settings as default_settings
from impressions.database import create_tables, init_db
from impressions.dependencies import LoginRequired, http_error
from impressions.exceptions import BackendError
from impressions.middleware import AdminSubdomainMiddleware
from impressions.routes import admin, cms, site
from impressions.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def add_cors_headers(response: JSONResponse, request: Request, allowed_origins: list) -> JSONResponse:
    """
    Add CORS headers to responses produced outside CORSMiddleware
    (unhandled exceptions).
    """
    origin = request.headers.get("origin")
    if origin and origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"
    return response


def create_app(settings: Optional[Settings] = None, backend: Optional[Backend] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (the environment-loaded settings by default)
        backend: Backend to use; when omitted it is built from settings at
            startup, which fails if the backend is not configured
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_backend = app.state.backend is None
        if owns_backend:
            # Raises ConfigurationError when required settings are missing
            app.state.backend = create_backend(settings)
            if isinstance(app.state.backend, DatabaseBackend):
                try:
                    await init_db(app.state.backend.engine, settings.DATABASE_URL)
                    if settings.DATABASE_URL.startswith("sqlite"):
                        # No migration step for local SQLite databases
                        await create_tables(app.state.backend.engine)
                except Exception as e:
                    logger.error(
                        f"Failed to initialize database on startup: {str(e)}\n"
                        f"The application will continue to run, but content endpoints will fail."
                    )
        logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")
        yield
        if owns_backend:
            await app.state.backend.close()
            app.state.backend = None

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = backend
    app.state.limiter = limiter

    app.add_middleware(AdminSubdomainMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,  # Session cookie
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        method = request.method
        path = request.url.path
        logger.debug(f"Incoming {method} request to {path} from host: {request.headers.get('host')}")

        try:
            response = await call_next(request)
            logger.info(f"Response status: {response.status_code} for {method} {path}")
            return response
        except Exception as e:
            logger.error(
                f"Error processing {method} {path}: {str(e)}\n"
                f"  Error type: {type(e).__name__}",
                exc_info=True
            )
            raise

    app.include_router(site.router, tags=["site"])
    app.include_router(admin.router, tags=["admin"])
    app.include_router(cms.router)

    # Exception Handlers
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        """Send visitors without a valid session to the login page."""
        logger.info(f"Redirecting {request.url.path} to {exc.location}")
        return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions (401, 403, 404, etc.)."""
        logger.error(
            f"HTTPException on {request.method} {request.url.path}:\n"
            f"  Status: {exc.status_code}\n"
            f"  Detail: {exc.detail}"
        )

        # Handle both string and dict detail formats
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = {"error": exc.detail, "detail": str(exc.detail)}

        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.error(
            f"Validation error on {request.method} {request.url.path}:\n"
            f"  Errors: {exc.errors()}"
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Validation error",
                "detail": jsonable_errors(exc),
            }
        )

    @app.exception_handler(BackendError)
    async def backend_exception_handler(request: Request, exc: BackendError):
        """Backend failures that escaped a route handler."""
        logger.error(f"Backend error on {request.method} {request.url.path}: {exc.message}")
        error = http_error(exc, "complete request")
        return JSONResponse(status_code=error.status_code, content=error.detail)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"  Error: {str(exc)}\n"
            f"  Error type: {type(exc).__name__}",
            exc_info=True
        )
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": "An unexpected error occurred"
            }
        )
        return add_cors_headers(response, request, settings.CORS_ORIGINS)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.API_VERSION}

    @app.get("/health/backend")
    async def health_check_backend(request: Request):
        """
        Backend health check endpoint.
        Tests that the content backend answers.
        """
        try:
            await request.app.state.backend.ping()
            return {"backend": "connected", "type": settings.BACKEND, "status": "healthy"}
        except BackendError as e:
            logger.error(f"Backend health check failed: {e.message}", exc_info=True)
            return {"backend": "error", "type": settings.BACKEND, "status": "unhealthy"}

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without non-serializable context (e.g. exception objects)."""
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]


app = create_app()
