# libs/db.py
import os
from urllib.parse import quote_plus

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def build_database_url() -> str:
    """
    DATABASE_URL wins; otherwise assemble an asyncpg URL from the
    DATABASE_HOST / PORT / USER / PASSWORD / NAME variables used by the
    container deployments.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    user = os.getenv("DATABASE_USER", "feedback")
    password = quote_plus(os.getenv("DATABASE_PASSWORD", ""))
    host = os.getenv("DATABASE_HOST", "127.0.0.1")
    port = os.getenv("DATABASE_PORT", "5432")
    name = os.getenv("DATABASE_NAME", "feedback")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql+asyncpg://{credentials}@{host}:{port}/{name}"


DATABASE_URL = build_database_url()

engine = create_async_engine(
    DATABASE_URL,
    echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
    pool_pre_ping=True,
    pool_size=int(os.getenv("DATABASE_POOL_SIZE", "5")),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """Request-scoped session; callers own commit and rollback."""
    async with AsyncSessionLocal() as session:
        yield session
