from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from builderboard.config import settings
from builderboard.db.core import get_session
from builderboard.deps import get_talent
from builderboard.services.rewards import distribution, top_builder_wallets
from builderboard.services.talent import TalentClient

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/distribution")
async def rewards_distribution(amount: Decimal | None = Query(None, ge=0)):
    pool = amount if amount is not None else Decimal(settings.REWARDS_POOL_MNT)
    return {
        "amount": str(pool),
        "contract": settings.CONTRACT_ADDRESS,
        "items": distribution(pool),
    }


@router.get("/top-builders")
async def rewards_top_builders(
    session: AsyncSession = Depends(get_session),
    talent: TalentClient = Depends(get_talent),
):
    slots = await top_builder_wallets(session, talent if talent.api_key else None)
    return {
        "items": slots,
        "addresses": [s["wallet"] for s in slots],
        "missing": sum(1 for s in slots if s["missing"]),
    }
