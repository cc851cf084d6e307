import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.auth.deps import verify_sync_secret
from builderboard.db.core import get_session
from builderboard.db.repo.mantle_repo import list_mantle_repos
from builderboard.deps import get_github
from builderboard.services.github import GitHubClient
from builderboard.services.mantle_repos import discover_mantle_repos
from builderboard.services.sync import refresh_mantle_repos

router = APIRouter(prefix="/mantle-repos", tags=["mantle-repos"])

logger = logging.getLogger(__name__)


@router.get("")
async def mantle_repos(
    session: AsyncSession = Depends(get_session),
    github: GitHubClient = Depends(get_github),
):
    # 1) из БД, если таблица заполнена
    try:
        repos = await list_mantle_repos(session, limit=20, contributors_per_repo=5)
    except SQLAlchemyError as e:
        logger.warning("mantle_repos read failed, falling back to GitHub: %s", e)
        repos = []

    if repos:
        return {"repos": repos, "total": len(repos), "source": "db"}

    # 2) иначе ищем на GitHub напрямую
    try:
        top, total = await discover_mantle_repos(github, top_n=12, contributors_per_repo=5)
    except httpx.HTTPError as e:
        logger.error("GitHub mantle search failed: %s", e)
        return {"repos": [], "total": 0, "error": str(e)}

    return {"repos": top, "total": total, "source": "github"}


@router.post("/sync", dependencies=[Depends(verify_sync_secret)])
async def mantle_repos_sync(
    session: AsyncSession = Depends(get_session),
    github: GitHubClient = Depends(get_github),
):
    out = await refresh_mantle_repos(session, github)
    if not out["success"]:
        return JSONResponse(status_code=503, content=out)
    return out
