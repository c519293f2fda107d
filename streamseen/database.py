# streamseen/database.py
from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from streamseen.core.settings import settings


def _normalise_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip().strip('"').strip("'")


def to_async_driver(url: str) -> str:
    """
    Ensure the SQLAlchemy URL uses the async driver.
    - postgresql+psycopg:// -> postgresql+asyncpg://
    - postgresql://          -> postgresql+asyncpg://
    - anything else          -> (as is)
    """
    if url.startswith("postgresql+asyncpg://"):
        return url
    if url.startswith("postgresql+psycopg://"):
        return "postgresql+asyncpg://" + url.split("postgresql+psycopg://", 1)[1]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url.split("postgresql://", 1)[1]
    return url


ASYNC_DSN = to_async_driver(_normalise_url(settings.database_url) or "")

# Engine creation is lazy; asyncpg only connects on first use.
async_engine = create_async_engine(ASYNC_DSN, future=True, pool_pre_ping=True)
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=async_engine, expire_on_commit=False, autoflush=False
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an AsyncSession."""
    async with AsyncSessionLocal() as session:
        yield session
