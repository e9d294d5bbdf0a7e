"""
FastAPI entrypoint for the Costventures backend application.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from costventures.core.config import Settings, settings as default_settings
from costventures.core.errors import ErrorKind, InternalError, ServiceError
from costventures.core.logging_config import setup_logging
from costventures.db.session import Database
from costventures.api.router import api_router
from costventures.services.mail_service import MailManager

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL_ERROR: 500,
    ErrorKind.UPSTREAM_ERROR: 502,
}


def status_for(error: ServiceError) -> int:
    if isinstance(error, InternalError) and error.retryable:
        return 503
    return STATUS_BY_KIND[error.kind]


async def service_error_handler(request: Request, exc: ServiceError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    mail_manager: Optional[MailManager] = None
) -> FastAPI:
    """Build the application around an explicitly constructed database handle."""
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Backend API for group trips and shared costs",
        version="1.0.0"
    )
    app.state.settings = settings
    app.state.database = database or Database(settings)
    app.state.mail_manager = mail_manager or MailManager(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        return {"message": f"{settings.APP_NAME} API is running"}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
