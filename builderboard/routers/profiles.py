import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.config import settings, mask
from builderboard.db.core import get_session
from builderboard.db.repo.profiles_repo import list_profiles, get_profile, profiles_cache_is_fresh
from builderboard.deps import get_talent, get_github, get_summarizer, get_profiles_cache
from builderboard.services.cache import ProfilesCache
from builderboard.services.github import GitHubClient
from builderboard.services.summarizer import Summarizer
from builderboard.services.sync import refresh_profiles
from builderboard.services.talent import TalentClient

router = APIRouter(prefix="/profiles", tags=["profiles"])

logger = logging.getLogger(__name__)


@router.get("")
async def profiles(
    refresh: bool = False,
    session: AsyncSession = Depends(get_session),
    talent: TalentClient = Depends(get_talent),
    github: GitHubClient = Depends(get_github),
    summarizer: Summarizer = Depends(get_summarizer),
    cache: ProfilesCache = Depends(get_profiles_cache),
):
    # 1) кэш в памяти, 2) свежая БД, 3) собираем заново из API
    if not refresh:
        cached = cache.get()
        if cached is not None:
            logger.info("returning cached profiles (age %ss)", cache.age_seconds())
            return {
                "profiles": cached,
                "total": len(cached),
                "cached": True,
                "cacheAge": cache.age_seconds(),
                "source": "memory",
            }

        if await profiles_cache_is_fresh(session, ttl_hours=settings.PROFILES_CACHE_TTL_HOURS):
            items = await list_profiles(session)
            return {"profiles": items, "total": len(items), "cached": True, "source": "db"}
    else:
        logger.info("force refresh requested, bypassing cache")

    logger.info(
        "recomputing profiles: TALENT_API_KEY=%s GITHUB_TOKEN=%s OPENAI_API_KEY=%s",
        mask(talent.api_key), mask(github.token), "set" if summarizer.enabled else "not set",
    )
    if not talent.api_key:
        raise HTTPException(status_code=500, detail="TALENT_API_KEY not configured")

    result, _, _ = await refresh_profiles(
        session, talent, github, summarizer,
        concurrency=settings.FETCH_CONCURRENCY,
        cache=cache,
    )
    return {
        "profiles": result.profiles,
        "total": len(result.profiles),
        "cached": False,
        "source": "api",
        "githubRateLimited": result.github_rate_limited,
    }


@router.get("/{profile_id}")
async def profile(
    profile_id: str,
    session: AsyncSession = Depends(get_session),
    cache: ProfilesCache = Depends(get_profiles_cache),
):
    # в памяти лежит полный профиль (с most_recent и README), он богаче строки из БД
    for p in cache.get() or []:
        if p.get("id") == profile_id:
            return {"profile": p, "source": "memory"}

    item = await get_profile(session, profile_id)
    if not item:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"profile": item, "source": "db"}
