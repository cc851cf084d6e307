import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from builderboard.db.core import engine
from builderboard.db.models import Base

logger = logging.getLogger(__name__)


async def init_db(engine: AsyncEngine):
    # profiles, mantle_repos, mantle_contributors; существующие таблицы не трогает
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db ready: %s", ", ".join(sorted(Base.metadata.tables)))

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db(engine))
