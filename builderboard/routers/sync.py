import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.auth.deps import verify_sync_secret
from builderboard.config import settings
from builderboard.db.core import get_session
from builderboard.db.repo.profiles_repo import sync_status
from builderboard.deps import get_talent, get_github, get_summarizer, get_profiles_cache
from builderboard.services.cache import ProfilesCache
from builderboard.services.github import GitHubClient
from builderboard.services.summarizer import Summarizer
from builderboard.services.sync import refresh_profiles
from builderboard.services.talent import TalentClient

router = APIRouter(prefix="/sync", tags=["sync"])

logger = logging.getLogger(__name__)


@router.post("", dependencies=[Depends(verify_sync_secret)])
async def sync(
    session: AsyncSession = Depends(get_session),
    talent: TalentClient = Depends(get_talent),
    github: GitHubClient = Depends(get_github),
    summarizer: Summarizer = Depends(get_summarizer),
    cache: ProfilesCache = Depends(get_profiles_cache),
):
    if not talent.api_key:
        return JSONResponse(status_code=500, content={"error": "TALENT_API_KEY not configured"})

    logger.info("starting profile sync")
    try:
        result, synced, errors = await refresh_profiles(
            session, talent, github, summarizer,
            concurrency=settings.FETCH_CONCURRENCY,
            cache=cache,
        )
    except Exception as e:
        # любой сбой синка отдаём как {error}, с трейсом в логе
        logger.exception("sync failed")
        return JSONResponse(status_code=500, content={"error": str(e) or "Sync failed"})

    return {
        "success": True,
        "synced": synced,
        "errors": errors,
        "total": len(result.profiles),
        "githubRateLimited": result.github_rate_limited,
    }


@router.get("")
async def status(session: AsyncSession = Depends(get_session)):
    try:
        st = await sync_status(session)
    except SQLAlchemyError as e:
        return {"configured": True, "error": str(e)}
    return {"configured": True, **st}
