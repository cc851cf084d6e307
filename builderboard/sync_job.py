"""
Синк по крону, без HTTP: python -m builderboard.sync_job [profiles|mantle-repos|all]
"""
import asyncio
import logging
import sys

from builderboard.config import settings
from builderboard.db.core import engine, SessionLocal
from builderboard.db.init_db import init_db
from builderboard.deps import talent, github, summarizer, shutdown_http
from builderboard.services.sync import refresh_profiles, refresh_mantle_repos

logger = logging.getLogger("builderboard.sync_job")

TARGETS = ("profiles", "mantle-repos", "all")


async def main(target: str = "all") -> int:
    if target not in TARGETS:
        logger.error("unknown target %r, expected one of %s", target, ", ".join(TARGETS))
        return 2

    await init_db(engine)
    try:
        async with SessionLocal() as session:
            if target in ("profiles", "all"):
                if not settings.TALENT_API_KEY:
                    logger.error("TALENT_API_KEY not configured")
                    return 1
                result, synced, errors = await refresh_profiles(
                    session, talent, github, summarizer,
                    concurrency=settings.FETCH_CONCURRENCY,
                )
                logger.info("profiles: %s synced, %s errors, %s total", synced, errors, len(result.profiles))
                if result.github_rate_limited:
                    logger.warning("GitHub rate limited, some profiles may be missing repo data")

            if target in ("mantle-repos", "all"):
                out = await refresh_mantle_repos(session, github)
                if not out["success"]:
                    logger.error("mantle repos not refreshed: %s", out["error"])
                    return 1
                logger.info("mantle repos: %s repos, %s contributors", out["repos"], out["contributors"])
    finally:
        await shutdown_http()
        await engine.dispose()
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "all")))
