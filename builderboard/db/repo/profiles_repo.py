from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from builderboard.db.models import Profile
from builderboard.services.profile_format import to_api

logger = logging.getLogger(__name__)


def dialect_insert(session: AsyncSession):
    # upsert: Postgres в проде, SQLite в тестах, API одинаковый
    if session.bind.dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def upsert_profiles(session: AsyncSession, rows: list[dict], batch_size: int = 50) -> tuple[int, int]:
    """
    Upsert батчами по id. Упавший батч целиком идёт в errors, остальные пишутся.
    Возвращает (synced, errors).
    """
    if not rows:
        return 0, 0

    insert = dialect_insert(session)
    synced = errors = 0
    now = datetime.utcnow()

    for i in range(0, len(rows), batch_size):
        batch = [{**r, "updated_at": now} for r in rows[i:i + batch_size]]
        stmt = insert(Profile).values(batch)
        update_cols = {c: stmt.excluded[c] for c in batch[0] if c not in ("id", "created_at")}
        stmt = stmt.on_conflict_do_update(index_elements=[Profile.id], set_=update_cols)

        try:
            async with session.begin_nested():
                await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("profiles batch %s failed: %s", i // batch_size + 1, e)
            errors += len(batch)
            continue

        synced += len(batch)
        logger.info("synced batch %s (%s/%s)", i // batch_size + 1, synced, len(rows))

    return synced, errors


async def list_profiles(session: AsyncSession, limit: int | None = None) -> list[dict]:
    q = select(Profile).order_by(Profile.builder_score.desc(), Profile.id.desc())
    if limit:
        q = q.limit(limit)
    res = await session.execute(q)
    return [to_api(p) for p in res.scalars().all()]


async def get_profile(session: AsyncSession, profile_id: str) -> dict | None:
    obj = (await session.execute(select(Profile).where(Profile.id == profile_id))).scalar_one_or_none()
    if not obj:
        return None
    return to_api(obj)


async def profiles_cache_is_fresh(session: AsyncSession, ttl_hours: int = 24) -> bool:
    updated_at = (await session.execute(select(func.max(Profile.updated_at)))).scalar_one_or_none()
    if not updated_at:
        return False
    return updated_at >= (datetime.utcnow() - timedelta(hours=ttl_hours))


async def sync_status(session: AsyncSession) -> dict:
    count, last = (await session.execute(
        select(func.count(Profile.id), func.max(Profile.updated_at))
    )).one()
    return {
        "profileCount": int(count or 0),
        "lastUpdated": last.isoformat() if last else None,
    }


async def top_profiles(session: AsyncSession, limit: int = 10) -> list[dict]:
    q = (
        select(Profile.id, Profile.display_name, Profile.username, Profile.main_wallet, Profile.builder_score)
        .order_by(Profile.builder_score.desc(), Profile.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(q)).all()
    out = []
    for pid, display_name, username, main_wallet, score in rows:
        out.append({
            "id": pid,
            "name": display_name or username or "Unknown",
            "main_wallet": main_wallet,
            "builder_score": int(score or 0),
        })
    return out
