"""
Configuration management for the studio site.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List, Literal, Optional

from impressions.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Impressions Studio"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Public site and content admin for a hand and foot impression studio"

    # "development" allows direct /admin access from any host
    ENVIRONMENT: str = "production"

    # Subdomain routing
    ADMIN_HOST_PREFIXES: List[str] = ["admin.", "admin-"]  # admin-* covers preview deployments
    RESTRICT_ADMIN_TO_SUBDOMAIN: bool = False

    # Admin session check
    AUTH_CHECK_TIMEOUT_SECONDS: float = 5.0
    SESSION_COOKIE_NAME: str = "admin_session"
    SESSION_COOKIE_SECURE: bool = True

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    # Which backend stores content: the hosted Parse API or a self-hosted database
    BACKEND: Literal["parse", "database"] = "parse"

    # Hosted backend (Parse / Back4App). No defaults: supply them externally.
    PARSE_APP_ID: str = ""
    PARSE_REST_API_KEY: str = ""
    PARSE_SERVER_URL: str = ""
    PARSE_QUERY_LIMIT: int = 1000
    BACKEND_REQUEST_TIMEOUT_SECONDS: Optional[float] = None

    # Self-hosted backend
    DATABASE_URL: str = ""
    # Generate with: openssl rand -hex 32
    JWT_SECRET_KEY: str = ""
    SESSION_TTL_MINUTES: int = 60

    # Cloudinary file storage (self-hosted backend only)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def missing_backend_settings(self) -> List[str]:
        """
        List the required settings for the selected backend that are not set.

        Returns:
            List of setting names, empty when the backend is fully configured
        """
        if self.BACKEND == "parse":
            required = ["PARSE_APP_ID", "PARSE_REST_API_KEY", "PARSE_SERVER_URL"]
        else:
            required = [
                "DATABASE_URL",
                "JWT_SECRET_KEY",
                "CLOUDINARY_CLOUD_NAME",
                "CLOUDINARY_API_KEY",
                "CLOUDINARY_API_SECRET",
            ]
        return [name for name in required if not getattr(self, name)]

    def validate_backend(self) -> None:
        """
        Fail fast when the selected backend is not configured.

        Raises:
            ConfigurationError: If any required setting is missing
        """
        missing = self.missing_backend_settings()
        if missing:
            raise ConfigurationError(
                f"Backend '{self.BACKEND}' is not configured, missing: {', '.join(missing)}"
            )


# Global settings instance
settings = Settings()
