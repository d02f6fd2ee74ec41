import pytest
from fastapi.testclient import TestClient

from impressions.backend.database import DatabaseBackend
from impressions.backend.factory import create_backend
from impressions.backend.parse import ParseBackend
from impressions.config import Settings
from impressions.exceptions import ConfigurationError
from impressions.main import create_app

UNSET_PARSE = {"PARSE_APP_ID": "", "PARSE_REST_API_KEY": "", "PARSE_SERVER_URL": ""}


def test_parse_backend_requires_keys():
    settings = Settings(BACKEND="parse", **UNSET_PARSE)
    assert settings.missing_backend_settings() == ["PARSE_APP_ID", "PARSE_REST_API_KEY", "PARSE_SERVER_URL"]
    with pytest.raises(ConfigurationError) as excinfo:
        settings.validate_backend()
    assert "PARSE_APP_ID" in str(excinfo.value)


def test_database_backend_requires_secrets():
    settings = Settings(
        BACKEND="database",
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET_KEY="",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
    )
    assert settings.missing_backend_settings() == ["JWT_SECRET_KEY"]


def test_create_backend_parse():
    settings = Settings(
        BACKEND="parse",
        PARSE_APP_ID="app",
        PARSE_REST_API_KEY="key",
        PARSE_SERVER_URL="https://parse.test/",
        BACKEND_REQUEST_TIMEOUT_SECONDS=3.0,
    )
    backend = create_backend(settings)
    assert isinstance(backend, ParseBackend)
    assert backend.server_url == "https://parse.test"
    assert backend.timeout == 3.0


async def test_create_backend_database():
    settings = Settings(
        BACKEND="database",
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET_KEY="secret",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
        SESSION_TTL_MINUTES=15,
    )
    backend = create_backend(settings)
    try:
        assert isinstance(backend, DatabaseBackend)
        assert backend.session_ttl.total_seconds() == 15 * 60
    finally:
        await backend.close()


def test_app_refuses_to_start_unconfigured():
    app = create_app(settings=Settings(BACKEND="parse", **UNSET_PARSE))
    with pytest.raises(ConfigurationError):
        with TestClient(app):
            pass


def test_development_flag():
    assert Settings(ENVIRONMENT="development").is_development
    assert not Settings(ENVIRONMENT="production").is_development


def test_sqlite_database_gets_tables_at_startup():
    settings = Settings(
        BACKEND="database",
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET_KEY="secret",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
    )
    with TestClient(create_app(settings=settings)) as client:
        response = client.get("/gallery")

    assert response.status_code == 200
    assert response.json()["images"] == []
