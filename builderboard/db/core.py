from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from builderboard.config import settings


def async_db_url(url: str) -> str:
    """
    postgres://... (как отдают Supabase/Heroku) -> postgresql+asyncpg://...
    URL с уже указанным драйвером не трогаем.
    """
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


engine = create_async_engine(async_db_url(settings.DB_URL), pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def get_session() -> AsyncSession:
    async with SessionLocal() as session:
        yield session
