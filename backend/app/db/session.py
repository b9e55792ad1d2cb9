from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import get_settings


def _async_url(url: str) -> str:
    """Преобразуем синхронный URL в асинхронный (postgresql+psycopg -> postgresql+asyncpg)."""
    if url.startswith("postgresql+psycopg://"):
        return url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


DATABASE_URL = _async_url(get_settings().DATABASE_URL)

# Создаём асинхронный engine (соединение открывается при первом запросе)
engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # Установи True для отладки SQL запросов
    pool_pre_ping=True,
)

# Создаём фабрику асинхронных сессий
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


# Dependency для FastAPI
async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
