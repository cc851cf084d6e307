from __future__ import annotations
from datetime import datetime

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.db.models import MantleRepo, MantleContributor, Profile
from builderboard.services.profile_format import iso, parse_ts


async def replace_mantle_repos(session: AsyncSession, repos: list[dict]) -> tuple[int, int]:
    """
    Полная пересборка: чистим обе таблицы и вставляем заново.
    Владельца привязываем к профилю, если github_username совпал.
    Возвращает (сколько репозиториев, сколько контрибьюторов).
    """
    await session.execute(delete(MantleContributor))
    await session.execute(delete(MantleRepo))

    logins = {r["owner_username"] for r in repos if r.get("owner_username")}
    owners: dict[str, tuple[str, str | None, int]] = {}
    if logins:
        q = select(Profile.github_username, Profile.id, Profile.display_name, Profile.builder_score).where(
            Profile.github_username.in_(logins)
        )
        for login, pid, display_name, score in (await session.execute(q)).all():
            owners[login] = (pid, display_name, int(score or 0))

    now = datetime.utcnow()
    n_repos = n_contrib = 0
    for r in repos:
        owner = owners.get(r.get("owner_username") or "")
        repo = MantleRepo(
            github_id=r.get("github_id"),
            name=r["name"],
            full_name=r["full_name"],
            html_url=r["html_url"],
            description=r.get("description"),
            language=r.get("language"),
            stargazers_count=int(r.get("stargazers_count") or 0),
            forks_count=int(r.get("forks_count") or 0),
            pushed_at=parse_ts(r.get("pushed_at")),
            topics=list(r.get("topics") or []),
            owner_username=r.get("owner_username"),
            owner_display_name=(owner[1] if owner and owner[1] else r.get("owner_display_name")),
            owner_image_url=r.get("owner_image_url"),
            owner_profile_id=owner[0] if owner else None,
            owner_builder_score=owner[2] if owner else 0,
            created_at=now,
            updated_at=now,
        )
        session.add(repo)
        await session.flush()
        n_repos += 1

        for c in r.get("contributors") or []:
            if not c.get("login"):
                continue
            session.add(MantleContributor(
                repo_id=repo.id,
                login=c["login"],
                avatar_url=c.get("avatar_url"),
                contributions=int(c.get("contributions") or 0),
                html_url=c.get("html_url"),
            ))
            n_contrib += 1

    await session.flush()
    return n_repos, n_contrib


async def list_mantle_repos(session: AsyncSession, limit: int = 20, contributors_per_repo: int = 5) -> list[dict]:
    q = select(MantleRepo).order_by(MantleRepo.stargazers_count.desc(), MantleRepo.id.asc()).limit(limit)
    repos = (await session.execute(q)).scalars().all()
    if not repos:
        return []

    repo_ids = [r.id for r in repos]
    qc = (
        select(MantleContributor)
        .where(MantleContributor.repo_id.in_(repo_ids))
        .order_by(MantleContributor.contributions.desc())
    )
    by_repo: dict[int, list[dict]] = {}
    for c in (await session.execute(qc)).scalars().all():
        by_repo.setdefault(c.repo_id, []).append({
            "login": c.login,
            "avatar_url": c.avatar_url,
            "contributions": c.contributions,
            "html_url": c.html_url,
        })

    out = []
    for r in repos:
        out.append({
            "id": r.id,
            "github_id": r.github_id,
            "name": r.name,
            "full_name": r.full_name,
            "html_url": r.html_url,
            "description": r.description,
            "language": r.language,
            "stargazers_count": r.stargazers_count,
            "forks_count": r.forks_count,
            "pushed_at": iso(r.pushed_at),
            "topics": r.topics or [],
            "owner_username": r.owner_username,
            "owner_display_name": r.owner_display_name,
            "owner_image_url": r.owner_image_url,
            "owner_profile_id": r.owner_profile_id,
            "owner_builder_score": r.owner_builder_score,
            "contributors": by_repo.get(r.id, [])[:contributors_per_repo],
        })
    return out
