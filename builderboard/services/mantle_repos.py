from __future__ import annotations

import asyncio
import logging

import httpx

from builderboard.services.github import GitHubClient


MANTLE_KEYWORDS: list[str] = [
    "mantle", "mnt", "mantle-network", "mantlenetwork", "mantle-chain",
    "mantle-testnet", "mantle-mainnet", "mantle-sdk", "mantle-bridge",
]

# быстрый поиск для /api/mantle-repos
SEARCH_QUERIES: list[str] = [
    "mantle blockchain",
    "mantle network",
    "mantle web3",
    "mantlenetwork",
]

# расширенный список для полной пересборки таблицы
SYNC_SEARCH_QUERIES: list[str] = SEARCH_QUERIES + [
    "mantle ethereum",
    "mantle defi",
    "mantle smart contract",
]

logger = logging.getLogger(__name__)


def is_mantle_repo(repo: dict) -> bool:
    name = (repo.get("name") or "").lower()
    description = (repo.get("description") or "").lower()
    topics = [t.lower() for t in (repo.get("topics") or [])]

    for kw in MANTLE_KEYWORDS:
        if kw in name or kw in description or kw in topics:
            return True
    return False


def _repo_row(repo: dict) -> dict:
    owner = repo.get("owner") or {}
    return {
        "github_id": repo.get("id"),
        "name": repo.get("name"),
        "full_name": repo.get("full_name"),
        "html_url": repo.get("html_url"),
        "description": repo.get("description"),
        "language": repo.get("language"),
        "stargazers_count": repo.get("stargazers_count") or 0,
        "forks_count": repo.get("forks_count") or 0,
        "pushed_at": repo.get("pushed_at"),
        "topics": repo.get("topics") or [],
        "owner_username": owner.get("login"),
        "owner_display_name": owner.get("login"),
        "owner_image_url": owner.get("avatar_url"),
        "owner_profile_id": None,
        "owner_builder_score": 0,
    }


async def search_mantle_repos(
    github: GitHubClient,
    queries: list[str] = SEARCH_QUERIES,
    per_page: int = 30,
    pause: float = 0.1,
) -> list[dict]:
    """
    Ищет репозитории по запросам, дедуп по full_name, фильтр по ключевым словам,
    сортировка по звёздам.
    """
    found: dict[str, dict] = {}
    for q in queries:
        try:
            items = await github.search_repositories(q, per_page=per_page)
        except httpx.HTTPError as e:
            logger.warning("GitHub search failed for %r: %s", q, e)
            items = []

        for repo in items:
            full_name = repo.get("full_name")
            if not full_name or full_name in found or not is_mantle_repo(repo):
                continue
            found[full_name] = _repo_row(repo)

        # не долбим search API подряд
        if pause:
            await asyncio.sleep(pause)

    repos = list(found.values())
    repos.sort(key=lambda r: r["stargazers_count"], reverse=True)
    logger.info("found %s Mantle repos on GitHub", len(repos))
    return repos


async def attach_contributors(
    github: GitHubClient,
    repos: list[dict],
    per_repo: int = 5,
    pause: float = 0.05,
) -> list[dict]:
    for repo in repos:
        try:
            repo["contributors"] = await github.contributors(repo["full_name"], per_page=per_repo)
        except httpx.HTTPError as e:
            logger.warning("contributors failed for %s: %s", repo["full_name"], e)
            repo["contributors"] = []
        if pause:
            await asyncio.sleep(pause)
    return repos


async def discover_mantle_repos(
    github: GitHubClient,
    *,
    queries: list[str] = SEARCH_QUERIES,
    per_page: int = 30,
    top_n: int = 12,
    contributors_per_repo: int = 5,
    pause: float = 0.1,
) -> tuple[list[dict], int]:
    """
    Возвращает (топ-N репозиториев с контрибьюторами, сколько всего нашли).
    """
    repos = await search_mantle_repos(github, queries=queries, per_page=per_page, pause=pause)
    top = await attach_contributors(github, repos[:top_n], per_repo=contributors_per_repo, pause=pause / 2)
    return top, len(repos)
