"""
Database connection management.

Provides the async SQLAlchemy engine and session factory used by the
SQL vector store.

Dependencies: sqlalchemy, aiosqlite, page_reader.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from page_reader.configs.vector_store import VectorStoreSettings


def get_async_engine(settings: VectorStoreSettings | None = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    In-memory SQLite shares one connection (StaticPool) so every session
    sees the same database.

    Args:
        settings: Vector store settings (reads environment when None)

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails
    """
    settings = settings or VectorStoreSettings()
    url = settings.database_url

    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(
            url,
            echo=settings.echo_sql,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=settings.echo_sql, pool_pre_ping=True)


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create async session factory bound to engine.

    Args:
        engine: Async engine

    Returns:
        async_sessionmaker: Factory with autoflush off and no expiry on commit

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
