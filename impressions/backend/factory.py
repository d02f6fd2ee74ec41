"""
Build the configured backend from settings.
"""
import logging
from datetime import timedelta

from impressions.backend.base import Backend
from impressions.backend.database import DatabaseBackend
from impressions.backend.parse import ParseBackend
from impressions.config import Settings
from impressions.database import create_engine
from impressions.services.cloudinary_service import configure_cloudinary

logger = logging.getLogger(__name__)


def create_backend(settings: Settings) -> Backend:
    """
    Create the backend selected by settings.BACKEND.

    Raises:
        ConfigurationError: If the selected backend is not fully configured
    """
    settings.validate_backend()

    if settings.BACKEND == "parse":
        logger.info(f"Using hosted backend at {settings.PARSE_SERVER_URL}")
        return ParseBackend(
            app_id=settings.PARSE_APP_ID,
            rest_api_key=settings.PARSE_REST_API_KEY,
            server_url=settings.PARSE_SERVER_URL,
            query_limit=settings.PARSE_QUERY_LIMIT,
            timeout=settings.BACKEND_REQUEST_TIMEOUT_SECONDS,
        )

    logger.info("Using self-hosted database backend")
    configure_cloudinary(
        settings.CLOUDINARY_CLOUD_NAME,
        settings.CLOUDINARY_API_KEY,
        settings.CLOUDINARY_API_SECRET,
    )
    return DatabaseBackend(
        engine=create_engine(settings.DATABASE_URL),
        secret_key=settings.JWT_SECRET_KEY,
        session_ttl=timedelta(minutes=settings.SESSION_TTL_MINUTES),
    )
