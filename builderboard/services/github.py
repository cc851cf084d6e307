from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from builderboard.services.vendor import json_payload


GITHUB_API_BASE = "https://api.github.com"
USER_AGENT = "Mantle-Leaderboard"

README_MAX_CHARS = 2000
TOP_REPOS = 5

# сколько ждать, если GitHub не прислал x-ratelimit-reset
DEFAULT_BACKOFF_SECONDS = 60

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")

logger = logging.getLogger(__name__)


class GitHubRateLimited(httpx.HTTPError):
    pass


def _repo_brief(r: dict) -> dict:
    return {
        "name": r.get("name"),
        "full_name": r.get("full_name"),
        "description": r.get("description"),
        "html_url": r.get("html_url"),
        "stargazers_count": r.get("stargazers_count") or 0,
        "forks_count": r.get("forks_count") or 0,
        "language": r.get("language"),
        "pushed_at": r.get("pushed_at"),
        "updated_at": r.get("updated_at"),
        "topics": r.get("topics") or [],
    }


def rank_repos(repos: list[dict], top_n: int = TOP_REPOS) -> dict:
    """
    top_by_stars: топ по звёздам, most_recent: по pushed_at (свежие первыми).
    """
    by_stars = sorted(repos, key=lambda r: r.get("stargazers_count") or 0, reverse=True)
    # ISO-8601 в UTC сортируется как строка
    by_recent = sorted(repos, key=lambda r: r.get("pushed_at") or "", reverse=True)
    return {
        "top_by_stars": [_repo_brief(r) for r in by_stars[:top_n]],
        "most_recent": [_repo_brief(r) for r in by_recent[:top_n]],
    }


def username_from_profile(profile: dict) -> str | None:
    """
    Запасной вариант, когда github id нет: name или relative_path профиля.
    """
    name = profile.get("name")
    if name and _USERNAME_RE.match(name):
        return name

    rel = profile.get("relative_path")
    if rel and rel.startswith("/"):
        username = rel[1:]
        if _USERNAME_RE.match(username):
            return username
    return None


@dataclass
class GitHubClient:
    """
    Клиент GitHub REST API. Помнит, что упёрлись в rate limit,
    и до сброса лимита сразу отдаёт GitHubRateLimited.
    """

    http: httpx.AsyncClient
    token: Optional[str] = None
    base_url: str = GITHUB_API_BASE
    blocked_until: float = field(default=0.0)
    limit_hits: int = field(default=0)

    @property
    def rate_limited(self) -> bool:
        return time.time() < self.blocked_until

    def _headers(self, accept: str = "application/vnd.github.v3+json") -> dict[str, str]:
        headers = {"Accept": accept, "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _track_rate_limit(self, r: httpx.Response) -> None:
        remaining = r.headers.get("x-ratelimit-remaining")
        if remaining is not None and remaining.isdigit() and int(remaining) < 10:
            logger.warning("GitHub rate limit low: %s remaining", remaining)

        retry_after = r.headers.get("retry-after")
        if r.status_code == 429 or (r.status_code == 403 and (remaining == "0" or retry_after)):
            reset = r.headers.get("x-ratelimit-reset")
            if retry_after and retry_after.isdigit():
                self.blocked_until = time.time() + int(retry_after)
            elif reset and reset.isdigit():
                self.blocked_until = float(reset)
            else:
                self.blocked_until = time.time() + DEFAULT_BACKOFF_SECONDS
            self.limit_hits += 1
            logger.error("GitHub rate limited until %s", int(self.blocked_until))
            raise GitHubRateLimited(f"GitHub rate limited ({r.status_code})")

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None, accept: Optional[str] = None) -> httpx.Response:
        if self.rate_limited:
            raise GitHubRateLimited("GitHub rate limited")
        headers = self._headers(accept) if accept else self._headers()
        r = await self.http.get(f"{self.base_url}{path}", params=params, headers=headers)
        self._track_rate_limit(r)
        r.raise_for_status()
        return r

    async def user_login(self, github_id: str) -> str | None:
        r = await self._get(f"/user/{github_id}")
        return json_payload(r).get("login") or None

    async def user_repos(self, username: str) -> list[dict]:
        """
        Репозитории пользователя без форков (только те, где он владелец).
        """
        params = {"per_page": 100, "sort": "pushed", "direction": "desc"}
        r = await self._get(f"/users/{username}/repos", params=params)
        repos = json_payload(r, list)
        prefix = f"{username}/"
        return [
            repo for repo in repos
            if isinstance(repo, dict) and (repo.get("full_name") or "").startswith(prefix)
        ]

    async def readme(self, owner: str, repo: str) -> str | None:
        try:
            r = await self._get(f"/repos/{owner}/{repo}/readme", accept="application/vnd.github.v3.raw")
        except httpx.HTTPStatusError as e:
            # README может просто не быть
            if e.response.status_code == 404:
                return None
            raise
        return r.text[:README_MAX_CHARS]

    async def search_repositories(self, q: str, per_page: int = 30) -> list[dict]:
        params = {"q": q, "sort": "stars", "order": "desc", "per_page": per_page}
        r = await self._get("/search/repositories", params=params)
        return json_payload(r).get("items") or []

    async def contributors(self, full_name: str, per_page: int = 5) -> list[dict]:
        r = await self._get(f"/repos/{full_name}/contributors", params={"per_page": per_page})
        rows = json_payload(r, list) if r.content else []
        out = []
        for c in rows[:per_page]:
            if not isinstance(c, dict):
                continue
            out.append({
                "login": c.get("login"),
                "avatar_url": c.get("avatar_url"),
                "contributions": c.get("contributions") or 0,
                "html_url": c.get("html_url"),
            })
        return out
