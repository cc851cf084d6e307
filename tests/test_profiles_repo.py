from datetime import datetime, timedelta

from sqlalchemy import update

from builderboard.db.models import Profile
from builderboard.db.repo.profiles_repo import (
    get_profile, list_profiles, profiles_cache_is_fresh, sync_status, top_profiles, upsert_profiles,
)
from builderboard.services.profile_format import to_row


def row(pid, score, **extra):
    return to_row({"id": pid, "builder_score": score, **extra})


async def test_upsert_inserts_then_updates(session):
    synced, errors = await upsert_profiles(session, [row("a", 10, name="Ann"), row("b", 20)])
    await session.commit()
    assert (synced, errors) == (2, 0)

    synced, errors = await upsert_profiles(session, [row("a", 55.6, name="Ann B")])
    await session.commit()
    assert (synced, errors) == (1, 0)

    a = await get_profile(session, "a")
    assert a["builder_score"] == 56
    assert a["display_name"] == "Ann B"
    assert (await sync_status(session))["profileCount"] == 2


async def test_failed_batch_counts_as_errors(session):
    rows = [row("a", 1), row(None, 2), row("c", 3)]

    synced, errors = await upsert_profiles(session, rows, batch_size=1)
    await session.commit()

    assert (synced, errors) == (2, 1)
    assert [p["id"] for p in await list_profiles(session)] == ["c", "a"]


async def test_list_orders_by_score_then_id(session):
    await upsert_profiles(session, [row("a", 5), row("b", 9), row("c", 5)])
    await session.commit()

    assert [p["id"] for p in await list_profiles(session)] == ["b", "c", "a"]
    assert [p["id"] for p in await list_profiles(session, limit=2)] == ["b", "c"]


async def test_api_shape(session):
    p = {
        "id": "a",
        "name": "Ann",
        "builder_score": 42,
        "github_username": "ann",
        "github_stats": {"total_commits": "100", "crypto_repos_contributed": "3"},
        "onchain_stats": {"weekly_fees": "1.5"},
        "github_projects": {"top_by_stars": [
            {"name": "star", "html_url": "https://github.com/ann/star", "stargazers_count": 12, "language": "Rust"},
        ]},
        "recent_project": {"name": "fresh", "ai_summary": "Does things.", "pushed_at": "2024-05-01T10:00:00Z"},
    }
    await upsert_profiles(session, [to_row(p)])
    await session.commit()

    item = await get_profile(session, "a")
    assert item["name"] == "Ann"
    assert item["github_stats"]["total_commits"] == "100"
    assert "crypto_repos_contributed" not in item["github_stats"]
    assert item["onchain_stats"]["weekly_fees"] == "1.5"
    assert item["github_projects"]["top_by_stars"][0]["stargazers_count"] == 12
    assert item["github_projects"]["most_recent"] == []
    assert item["recent_project"]["ai_summary"] == "Does things."
    assert item["recent_project"]["pushed_at"] == "2024-05-01T10:00:00"
    assert item["updated_at"] is not None

    assert await get_profile(session, "missing") is None


async def test_freshness_follows_updated_at(session):
    assert await profiles_cache_is_fresh(session) is False

    await upsert_profiles(session, [row("a", 1)])
    await session.commit()
    assert await profiles_cache_is_fresh(session, ttl_hours=24) is True

    await session.execute(update(Profile).values(updated_at=datetime.utcnow() - timedelta(hours=25)))
    await session.commit()
    assert await profiles_cache_is_fresh(session, ttl_hours=24) is False


async def test_sync_status_empty(session):
    assert await sync_status(session) == {"profileCount": 0, "lastUpdated": None}


async def test_top_profiles(session):
    await upsert_profiles(session, [
        row("a", 10, name="Ann", main_wallet="0x" + "1" * 40),
        row("b", 30, username="bobby"),
        row("c", 20),
    ])
    await session.commit()

    top = await top_profiles(session, limit=2)
    assert top == [
        {"id": "b", "name": "bobby", "main_wallet": None, "builder_score": 30},
        {"id": "c", "name": "Unknown", "main_wallet": None, "builder_score": 20},
    ]
