from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

import httpx

from builderboard.seeds import ENS_NAMES, WALLET_ADDRESSES
from builderboard.services.data_points import MANTLE_CREDENTIAL_SLUG, DataPointsResult
from builderboard.services.github import GitHubClient, rank_repos, username_from_profile
from builderboard.services.summarizer import Summarizer
from builderboard.services.talent import TalentClient, get_score


README_STORED_CHARS = 500

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    profiles: list[dict]
    github_rate_limited: bool = False


def _empty_projects(username: str | None = None) -> dict:
    return {"top_by_stars": [], "most_recent": [], "username": username}


async def _bounded(items: Iterable[dict], fn: Callable[[dict], Awaitable[None]], limit: int) -> None:
    sem = asyncio.Semaphore(max(1, limit))

    async def run(item: dict) -> None:
        async with sem:
            await fn(item)

    await asyncio.gather(*(run(it) for it in items))


class ProfileCollector:
    """
    Медленный путь: Talent Protocol -> GitHub -> OpenAI, всё склеивается в профили.
    Ошибки отдельных запросов не роняют сбор, профиль просто остаётся без данных.
    """

    def __init__(
        self,
        talent: TalentClient,
        github: GitHubClient,
        summarizer: Summarizer,
        *,
        concurrency: int = 10,
        wallets: list[str] | None = None,
        ens_names: list[str] | None = None,
    ):
        self.talent = talent
        self.github = github
        self.summarizer = summarizer
        self.concurrency = concurrency
        self.wallets = WALLET_ADDRESSES if wallets is None else wallets
        self.ens_names = ENS_NAMES if ens_names is None else ens_names

        self._profiles: list[dict] = []
        self._seen: set[str] = set()

    def _add(self, profile: dict, **marks) -> bool:
        pid = profile.get("id")
        if not pid or pid in self._seen:
            return False
        profile["builder_score"] = get_score(profile)
        profile.update(marks)
        self._seen.add(pid)
        self._profiles.append(profile)
        return True

    # 1) поиск по кошелькам
    async def search_wallets(self) -> None:
        if not self.wallets:
            return
        for p in await self.talent.search_wallets(self.wallets):
            self._add(p)
        logger.info("[1/7] wallet search: %s profiles", len(self._profiles))

    # 2) поиск по ENS, параллельно
    async def search_ens(self) -> None:
        async def one(ens: str) -> dict | None:
            try:
                return await self.talent.search_identity(ens)
            except httpx.HTTPError as e:
                logger.warning("ENS search failed for %s: %s", ens, e)
                return None

        found = await asyncio.gather(*(one(ens) for ens in self.ens_names))
        for ens, p in zip(self.ens_names, found):
            if p:
                self._add(p, searched_identity=ens)
        logger.info("[2/7] after ENS search: %s profiles", len(self._profiles))

    # 3) у кого есть коммиты в экосистему Mantle
    async def search_mantle_credential(self) -> None:
        added = 0
        for p in await self.talent.search_credential(MANTLE_CREDENTIAL_SLUG, min_value=1):
            if self._add(p, has_mantle_credential=True):
                added += 1
        logger.info("[3/7] mantle credential search: %s new, %s total", added, len(self._profiles))

    # 4) data points
    async def attach_data_points(self) -> None:
        async def one(p: dict) -> None:
            try:
                dp = await self.talent.data_points(p["id"])
            except httpx.HTTPError as e:
                logger.warning("data points failed for %s: %s", p["id"], e)
                dp = DataPointsResult()
            p["github_stats"] = dp.stats
            p["onchain_stats"] = dp.onchain_stats
            p["github_user_id"] = dp.github_user_id
            p["builder_earnings"] = dp.builder_earnings
            p["mantle_eco_commits"] = dp.mantle_eco_commits

        await _bounded(self._profiles, one, self.concurrency)

        ps = self._profiles
        logger.info(
            "[4/7] data points: github=%s github_id=%s onchain=%s mantle_commits=%s",
            sum(1 for p in ps if any(v is not None for v in p["github_stats"].values())),
            sum(1 for p in ps if p["github_user_id"]),
            sum(1 for p in ps if any(v is not None for v in p["onchain_stats"].values())),
            sum(1 for p in ps if p["mantle_eco_commits"]),
        )

    # 5) github username + репозитории
    async def attach_github(self) -> None:
        async def resolve(p: dict) -> None:
            username = None
            if p.get("github_user_id"):
                try:
                    username = await self.github.user_login(p["github_user_id"])
                except httpx.HTTPError as e:
                    logger.warning("GitHub login lookup failed for %s: %s", p["github_user_id"], e)
            p["github_username"] = username or username_from_profile(p)

        async def repos(p: dict) -> None:
            username = p.get("github_username")
            if not username:
                p["github_projects"] = _empty_projects()
                return
            try:
                owned = await self.github.user_repos(username)
            except httpx.HTTPError as e:
                logger.warning("GitHub repos failed for %s: %s", username, e)
                owned = []
            p["github_projects"] = {**rank_repos(owned), "username": username}

        await _bounded(self._profiles, resolve, self.concurrency)
        await _bounded(self._profiles, repos, self.concurrency)

        with_repos = sum(
            1 for p in self._profiles
            if p["github_projects"]["top_by_stars"] or p["github_projects"]["most_recent"]
        )
        logger.info("[5/7] %s profiles have GitHub repositories", with_repos)

    # 6) README последнего проекта + summary
    async def attach_recent_projects(self) -> None:
        async def one(p: dict) -> None:
            recent = (p.get("github_projects") or {}).get("most_recent") or []
            username = p.get("github_username")
            if not recent or not username:
                p["recent_project"] = None
                return
            repo = recent[0]
            try:
                readme = await self.github.readme(username, repo["name"])
            except httpx.HTTPError as e:
                logger.warning("README failed for %s/%s: %s", username, repo["name"], e)
                readme = None

            summary = await self.summarizer.summarize(readme, repo["name"])
            p["recent_project"] = {
                "name": repo["name"],
                "full_name": repo["full_name"],
                "description": repo["description"],
                "html_url": repo["html_url"],
                "language": repo["language"],
                "stars": repo["stargazers_count"],
                "pushed_at": repo["pushed_at"],
                "readme": readme[:README_STORED_CHARS] if readme else None,
                "ai_summary": summary,
            }

        await _bounded(self._profiles, one, self.concurrency)
        with_summary = sum(1 for p in self._profiles if (p.get("recent_project") or {}).get("ai_summary"))
        logger.info("[6/7] %s profiles have project summaries", with_summary)

    def _log_top(self, n: int = 10) -> None:
        for i, p in enumerate(self._profiles[:n], start=1):
            name = p.get("display_name") or p.get("name") or p.get("username") or "Unknown"
            stats = p.get("github_stats") or {}
            logger.info(
                "  %s. %s (score %s, commits %s)",
                i, name, p["builder_score"], stats.get("total_commits") or "-",
            )

    async def collect(self) -> PipelineResult:
        self._profiles = []
        self._seen = set()
        hits_before = self.github.limit_hits

        await self.search_wallets()
        await self.search_ens()
        await self.search_mantle_credential()
        await self.attach_data_points()
        await self.attach_github()
        await self.attach_recent_projects()

        # 7) сортировка по Builder Score
        self._profiles.sort(key=lambda p: p.get("builder_score") or 0, reverse=True)
        logger.info("[7/7] collected %s profiles", len(self._profiles))
        self._log_top()

        return PipelineResult(profiles=self._profiles, github_rate_limited=self.github.limit_hits > hits_before)


async def collect_profiles(
    talent: TalentClient,
    github: GitHubClient,
    summarizer: Summarizer,
    *,
    concurrency: int = 10,
) -> PipelineResult:
    collector = ProfileCollector(talent, github, summarizer, concurrency=concurrency)
    return await collector.collect()
