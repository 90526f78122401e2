"""
Database session management – async SQLAlchemy (Postgres, or SQLite for local runs).
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.config import get_settings

settings = get_settings()

# SQLite has no connection pool to size
_pool_options = {} if settings.is_sqlite else {
    "pool_size": settings.db_pool_size,
    "max_overflow": settings.db_max_overflow,
    "pool_pre_ping": True,
}

engine = create_async_engine(settings.database_url_async, echo=settings.echo_sql, **_pool_options)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncSession:
    """FastAPI dependency – one session per request, rolled back unless the route commits."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
