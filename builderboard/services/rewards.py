from __future__ import annotations

import logging
from decimal import Decimal, localcontext

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.db.repo.profiles_repo import top_profiles
from builderboard.services.talent import TalentClient


# доли призового фонда по местам 1..10, в процентах
DISTRIBUTION_PERCENTAGES: list[int] = [25, 18, 14, 11, 9, 7, 6, 5, 3, 2]

SLOTS = len(DISTRIBUTION_PERCENTAGES)
WEI_PER_MNT = 10 ** 18
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

logger = logging.getLogger(__name__)


def is_valid_wallet(x: str | None) -> bool:
    return bool(x) and x.startswith("0x") and len(x) == 42


def split_amount(total_wei: int) -> list[int]:
    """
    Как в контракте: каждому месту total * pct / 100, целочисленно.
    Остаток от округления остаётся на балансе.
    """
    if total_wei < 0:
        raise ValueError("total_wei must be >= 0")
    return [total_wei * pct // 100 for pct in DISTRIBUTION_PERCENTAGES]


def wei_to_mnt(wei: int) -> str:
    # точность под число цифр: деление на 10**18 всегда конечно, без округления
    with localcontext() as ctx:
        ctx.prec = len(str(abs(wei))) + 1
        return format(Decimal(wei) / WEI_PER_MNT, "f")


def distribution(amount_mnt: Decimal) -> list[dict]:
    with localcontext() as ctx:
        ctx.prec = len(amount_mnt.as_tuple().digits) + len(str(WEI_PER_MNT))
        total_wei = int(amount_mnt * WEI_PER_MNT)
    out = []
    for rank, (pct, wei) in enumerate(zip(DISTRIBUTION_PERCENTAGES, split_amount(total_wei)), start=1):
        out.append({
            "rank": rank,
            "percentage": pct,
            "amount_wei": str(wei),
            "amount_mnt": wei_to_mnt(wei),
        })
    return out


async def top_builder_wallets(session: AsyncSession, talent: TalentClient | None) -> list[dict]:
    """
    10 слотов для address[10] контракта. Нет кошелька в БД -> спрашиваем Talent,
    не нашли -> нулевой адрес и missing=True.
    """
    profiles = await top_profiles(session, limit=SLOTS)

    slots = []
    for rank, p in enumerate(profiles, start=1):
        wallet = p["main_wallet"]
        if not is_valid_wallet(wallet) and talent is not None:
            try:
                wallet = await talent.profile_wallet(p["id"])
            except httpx.HTTPError as e:
                logger.warning("wallet lookup failed for %s: %s", p["id"], e)
                wallet = None

        missing = not is_valid_wallet(wallet)
        if missing:
            logger.warning("rank %s (%s) has no wallet address", rank, p["name"])
        slots.append({
            "rank": rank,
            "profile_id": p["id"],
            "name": p["name"],
            "builder_score": p["builder_score"],
            "wallet": ZERO_ADDRESS if missing else wallet,
            "missing": missing,
        })

    # пустые места добиваем нулевыми адресами
    for rank in range(len(slots) + 1, SLOTS + 1):
        slots.append({
            "rank": rank,
            "profile_id": None,
            "name": None,
            "builder_score": 0,
            "wallet": ZERO_ADDRESS,
            "missing": True,
        })
    return slots
