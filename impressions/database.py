"""
Engine and session factory for the self-hosted backend (SQLAlchemy 2.0, async).
PostgreSQL via asyncpg in production, SQLite via aiosqlite for local runs and tests.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
from urllib.parse import urlparse
import logging
import socket

logger = logging.getLogger(__name__)

Base = declarative_base()

SUPPORTED_SCHEMES = ("postgresql", "postgresql+asyncpg", "sqlite", "sqlite+aiosqlite")


def is_in_memory_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite") and (
        ":memory:" in database_url or database_url.endswith("://")
    )


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for DATABASE_URL.
    PostgreSQL gets a connection pool; in-memory SQLite shares one connection.
    """
    engine_args = {"echo": echo}

    if database_url.startswith("postgresql"):
        engine_args.update({
            "pool_size": 5,
            "max_overflow": 10,
            "pool_pre_ping": True,  # Drop connections the server closed while idle
            "pool_recycle": 1800,
            "connect_args": {"server_settings": {"application_name": "impressions-site"}},
        })
    elif is_in_memory_sqlite(database_url):
        # A second connection to :memory: would see an empty database
        engine_args["poolclass"] = StaticPool

    return create_async_engine(database_url, **engine_args)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def describe_database_url(url: str) -> str:
    """
    One-line description of DATABASE_URL for startup logs.

    Raises:
        ValueError: If the URL is empty or uses an unsupported scheme
    """
    if not url:
        raise ValueError("DATABASE_URL is empty")

    parsed = urlparse(url)
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise ValueError(
            f"Unsupported scheme '{parsed.scheme}', expected one of: {', '.join(SUPPORTED_SCHEMES)}"
        )

    if parsed.scheme.startswith("sqlite"):
        return f"SQLite database {parsed.path.lstrip('/') or ':memory:'}"

    if not parsed.hostname:
        raise ValueError("DATABASE_URL has no hostname")

    try:
        socket.getaddrinfo(parsed.hostname, None)
        resolved = "resolves"
    except socket.gaierror as e:
        resolved = f"does not resolve ({str(e)})"

    return f"PostgreSQL at {parsed.hostname}:{parsed.port or 5432}{parsed.path}, host {resolved}"


async def init_db(engine: AsyncEngine, database_url: str) -> None:
    """
    Check at startup that the content database answers.

    Raises:
        ValueError: If DATABASE_URL is unusable
        SQLAlchemyError: If the test query fails
    """
    description = describe_database_url(database_url)
    logger.info(f"Content database: {description}")

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(
            f"Content database unreachable ({type(e).__name__}): {str(e)}\n"
            f"  Database: {description}"
        )
        raise

    logger.info("Content database connection OK")


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing table. Used for SQLite databases at startup and in tests; PostgreSQL runs Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
