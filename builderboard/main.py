import logging

from fastapi import FastAPI

from builderboard.config import settings, mask
from builderboard.routers.profiles import router as profiles_router
from builderboard.routers.sync import router as sync_router
from builderboard.routers.mantle_repos import router as mantle_repos_router
from builderboard.routers.rewards import router as rewards_router

from builderboard.db.core import engine
from builderboard.db.init_db import init_db
from builderboard.deps import shutdown_http

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Mantle Builder Leaderboard")

app.include_router(profiles_router, prefix="/api")
app.include_router(sync_router, prefix="/api")
app.include_router(mantle_repos_router, prefix="/api")
app.include_router(rewards_router, prefix="/api")


@app.on_event("startup")
async def _startup():
    logger.info(
        "env: TALENT_API_KEY=%s GITHUB_TOKEN=%s OPENAI_API_KEY=%s",
        mask(settings.TALENT_API_KEY), mask(settings.GITHUB_TOKEN), mask(settings.OPENAI_API_KEY),
    )
    if not settings.GITHUB_TOKEN:
        logger.warning("GITHUB_TOKEN not configured, GitHub API will have lower rate limits")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not configured, using simple summaries instead of AI")
    await init_db(engine)


@app.on_event("shutdown")
async def _shutdown():
    await shutdown_http()
