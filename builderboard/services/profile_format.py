from __future__ import annotations

from datetime import datetime
from typing import Any

from builderboard.services.data_points import GITHUB_STAT_KEYS, ONCHAIN_STAT_KEYS


# в таблице нет crypto_repos_contributed
STORED_GITHUB_KEYS = [k for k in GITHUB_STAT_KEYS if k != "crypto_repos_contributed"]


def parse_ts(x: Any) -> datetime | None:
    if not x:
        return None
    if isinstance(x, datetime):
        return x
    try:
        return datetime.fromisoformat(str(x).replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def iso(x: datetime | None) -> str | None:
    return x.isoformat() if x else None


def to_row(p: dict) -> dict:
    """
    Склеенный профиль -> строка таблицы profiles.
    """
    stats = p.get("github_stats") or {}
    onchain = p.get("onchain_stats") or {}
    top = ((p.get("github_projects") or {}).get("top_by_stars") or [None])[0] or {}
    recent = p.get("recent_project") or {}

    row = {
        "id": p["id"],
        "display_name": p.get("display_name") or p.get("name") or None,
        "username": p.get("username") or None,
        "image_url": p.get("image_url") or None,
        "bio": p.get("bio") or None,
        "main_wallet": p.get("main_wallet") or None,
        "builder_score": int(round(p.get("builder_score") or 0)),
        "human_checkmark": bool(p.get("human_checkmark")),

        "github_username": p.get("github_username") or None,
        "github_user_id": p.get("github_user_id") or None,
        "builder_earnings": p.get("builder_earnings") or None,

        "top_project_name": top.get("name"),
        "top_project_url": top.get("html_url"),
        "top_project_stars": top.get("stargazers_count"),
        "top_project_language": top.get("language"),

        "recent_project_name": recent.get("name"),
        "recent_project_url": recent.get("html_url"),
        "recent_project_description": recent.get("description"),
        "recent_project_language": recent.get("language"),
        "recent_project_ai_summary": recent.get("ai_summary"),
        "recent_project_pushed_at": parse_ts(recent.get("pushed_at")),
    }
    for k in STORED_GITHUB_KEYS:
        row[k] = stats.get(k) or None
    for k in ONCHAIN_STAT_KEYS:
        row[k] = onchain.get(k) or None
    return row


def to_api(row: Any) -> dict:
    """
    Строка из БД (ORM-объект) -> формат ответа /api/profiles.
    """
    top_by_stars = []
    if row.top_project_name:
        top_by_stars.append({
            "name": row.top_project_name,
            "html_url": row.top_project_url,
            "stargazers_count": row.top_project_stars,
            "language": row.top_project_language,
        })

    recent = None
    if row.recent_project_name:
        recent = {
            "name": row.recent_project_name,
            "html_url": row.recent_project_url,
            "description": row.recent_project_description,
            "language": row.recent_project_language,
            "ai_summary": row.recent_project_ai_summary,
            "pushed_at": iso(row.recent_project_pushed_at),
        }

    return {
        "id": row.id,
        "display_name": row.display_name,
        "name": row.display_name,
        "username": row.username,
        "image_url": row.image_url,
        "bio": row.bio,
        "main_wallet": row.main_wallet,
        "human_checkmark": row.human_checkmark,
        "builder_score": row.builder_score,
        "builder_earnings": row.builder_earnings,
        "github_username": row.github_username,
        "github_user_id": row.github_user_id,
        "github_stats": {k: getattr(row, k) for k in STORED_GITHUB_KEYS},
        "onchain_stats": {k: getattr(row, k) for k in ONCHAIN_STAT_KEYS},
        "github_projects": {
            "top_by_stars": top_by_stars,
            "most_recent": [],
            "username": row.github_username,
        },
        "recent_project": recent,
        "updated_at": iso(row.updated_at),
    }
