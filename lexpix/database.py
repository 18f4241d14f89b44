"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations with Supabase PostgreSQL in remote mode.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
from typing import Optional
import logging
import socket

from lexpix.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()


def create_engine_for_url(url: str) -> AsyncEngine:
    """
    Create an async engine.
    Pool settings only apply to PostgreSQL (not SQLite).
    """
    engine_args = {
        "echo": False,  # Set to True for SQL query logging in development
    }

    # Supabase hands out plain postgresql:// URLs; the async engine needs the driver
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]

    if url.startswith("postgresql"):
        engine_args.update({
            "pool_size": 10,  # Number of connections to maintain in pool
            "max_overflow": 20,  # Additional connections allowed beyond pool_size
            "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
            "pool_recycle": 3600,  # Recycle connections after 1 hour (prevents stale connections)
            "connect_args": {
                "server_settings": {
                    "application_name": "lexpix-backend"
                }
            }
        })

    return create_async_engine(url, **engine_args)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Created lazily so local mode never opens a connection pool
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


def get_session_factory() -> async_sessionmaker:
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is None:
        engine = create_engine_for_url(
            settings.DATABASE_URL if settings.DATABASE_URL else "sqlite+aiosqlite:///:memory:"
        )
        AsyncSessionLocal = create_session_factory(engine)
    return AsyncSessionLocal


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)

        if url.startswith("sqlite"):
            return True, f"SQLite database at {parsed.path or ':memory:'}"

        if not url.startswith(("postgresql://", "postgresql+asyncpg://")):
            return False, f"Invalid database URL scheme. Expected postgresql:// or postgresql+asyncpg://, got: {parsed.scheme}"

        hostname = parsed.hostname
        if not hostname:
            return False, "No hostname found in DATABASE_URL"

        try:
            socket.getaddrinfo(hostname, None)
            dns_status = "DNS resolution successful"
        except socket.gaierror as e:
            dns_status = f"DNS resolution failed: {str(e)}. This may indicate network connectivity issues or incorrect hostname."

        return True, f"URL format valid. Hostname: {hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}. {dns_status}"

    except ValueError as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"


async def init_db(create_tables: bool = False):
    """
    Verify the database connection and optionally create missing tables.
    Used by the startup event in remote mode.
    """
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set, skipping database initialization")
        return

    is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    get_session_factory()
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                # Import registers the models on Base.metadata
                from lexpix import models  # noqa: F401
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created")
            logger.info("Database connection initialized successfully")
    except Exception as e:
        error_msg = str(e)
        if "connection refused" in error_msg.lower() or "timeout" in error_msg.lower():
            logger.error(
                f"Database connection failed - Connection refused/timeout: {error_msg}\n"
                f"This usually means the database server is not accessible or the port is incorrect.\n"
                f"Diagnostic: {diagnostic}"
            )
        elif "authentication failed" in error_msg.lower() or "password" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Check the username and password in DATABASE_URL.\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({type(e).__name__}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db():
    """
    Close database connections.
    Can be used for shutdown events.
    """
    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
