from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.db.repo.mantle_repo import replace_mantle_repos
from builderboard.db.repo.profiles_repo import upsert_profiles
from builderboard.services.cache import ProfilesCache
from builderboard.services.github import GitHubClient
from builderboard.services.mantle_repos import SYNC_SEARCH_QUERIES, discover_mantle_repos
from builderboard.services.pipeline import PipelineResult, collect_profiles
from builderboard.services.profile_format import to_row
from builderboard.services.summarizer import Summarizer
from builderboard.services.talent import TalentClient

SYNC_BATCH_SIZE = 50

logger = logging.getLogger(__name__)


async def refresh_profiles(
    session: AsyncSession,
    talent: TalentClient,
    github: GitHubClient,
    summarizer: Summarizer,
    *,
    concurrency: int = 10,
    cache: ProfilesCache | None = None,
) -> tuple[PipelineResult, int, int]:
    """
    Медленный путь целиком: собрать профили, записать в БД, положить в кэш.
    Возвращает (результат сбора, synced, errors).
    """
    result = await collect_profiles(talent, github, summarizer, concurrency=concurrency)

    rows = [to_row(p) for p in result.profiles]
    synced, errors = await upsert_profiles(session, rows, batch_size=SYNC_BATCH_SIZE)
    await session.commit()
    logger.info("profile sync complete: %s synced, %s errors", synced, errors)

    if cache is not None:
        cache.set(result.profiles)
    return result, synced, errors


async def refresh_mantle_repos(session: AsyncSession, github: GitHubClient, *, pause: float = 0.5) -> dict:
    """
    Пересборка mantle_repos: расширенный поиск, топ-30 по звёздам, по 10 контрибьюторов.
    Пустой поиск или rate limit по ходу сбора таблицу не трогают.
    """
    hits_before = github.limit_hits
    repos, total = await discover_mantle_repos(
        github,
        queries=SYNC_SEARCH_QUERIES,
        per_page=50,
        top_n=30,
        contributors_per_repo=10,
        pause=pause,
    )
    if github.limit_hits > hits_before or github.rate_limited:
        logger.warning("GitHub rate limited during mantle repo search, keeping stored repos")
        return {"success": False, "repos": 0, "contributors": 0, "found": total, "error": "GitHub rate limited"}
    if not repos:
        logger.warning("no Mantle repos found, keeping stored repos")
        return {"success": False, "repos": 0, "contributors": 0, "found": 0, "error": "No repositories found"}

    n_repos, n_contrib = await replace_mantle_repos(session, repos)
    await session.commit()
    logger.info("mantle repos saved: %s repos, %s contributors", n_repos, n_contrib)
    return {"success": True, "repos": n_repos, "contributors": n_contrib, "found": total}
