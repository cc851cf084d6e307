from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import httpx

from builderboard.services.data_points import ALL_SLUGS, DataPointsResult, parse_data_points
from builderboard.services.vendor import json_payload


TALENT_API_BASE = "https://api.talentprotocol.com"

SEARCH_SORT = {"score": {"order": "desc"}, "id": {"order": "desc"}}

WALLET_SOURCES = ("wallet", "ethereum", "evm")

logger = logging.getLogger(__name__)


def get_score(profile: dict) -> float:
    """
    Builder Score лежит в разных местах в зависимости от версии ответа:
    score / score.points / builder_score / builder_score.points.
    """
    for key in ("score", "builder_score"):
        v = profile.get(key)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return v
        if isinstance(v, dict) and v.get("points"):
            return v["points"]
    return 0


def _is_wallet(x: Any) -> bool:
    return isinstance(x, str) and x.startswith("0x")


@dataclass(frozen=True)
class TalentClient:
    """
    Клиент Talent Protocol API: поиск профилей и data points.
    """

    http: httpx.AsyncClient
    api_key: Optional[str] = None
    base_url: str = TALENT_API_BASE

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return headers

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict:
        r = await self.http.get(f"{self.base_url}{path}", params=params, headers=self._headers())
        r.raise_for_status()
        return json_payload(r)

    async def search_profiles(self, query: dict, page: int = 1, per_page: int = 25) -> tuple[list[dict], dict]:
        """
        Одна страница /search/advanced/profiles, сортировка по score desc.
        """
        params = {
            "query": json.dumps(query),
            "sort": json.dumps(SEARCH_SORT),
            "page": str(page),
            "per_page": str(per_page),
        }
        payload = await self._get("/search/advanced/profiles", params=params)
        profiles = [p for p in payload.get("profiles") or [] if isinstance(p, dict)]
        pagination = payload.get("pagination")
        return profiles, pagination if isinstance(pagination, dict) else {}

    async def search_all(self, query: dict, per_page: int = 25, max_pages: int = 200) -> list[dict]:
        """
        Все страницы поиска. Ошибка на странице обрывает пагинацию,
        уже собранное возвращаем.
        """
        rows: list[dict] = []
        page = 1
        while page <= max_pages:
            try:
                chunk, pagination = await self.search_profiles(query, page=page, per_page=per_page)
            except httpx.HTTPError as e:
                logger.error("Talent search failed on page %s: %s", page, e)
                break
            if not chunk:
                break
            rows.extend(chunk)

            current = pagination.get("current_page")
            last = pagination.get("last_page")
            if current is None or last is None or current >= last:
                break
            page += 1
        return rows

    async def search_wallets(self, wallets: Iterable[str]) -> list[dict]:
        return await self.search_all({"walletAddresses": list(wallets), "exactMatch": True})

    async def search_identity(self, identity: str) -> dict | None:
        profiles, _ = await self.search_profiles({"identity": identity}, page=1, per_page=1)
        return profiles[0] if profiles else None

    async def search_credential(self, slug: str, min_value: int = 1) -> list[dict]:
        query = {"credentials": [{"slug": slug, "valueRange": {"min": min_value}}]}
        return await self.search_all(query)

    async def data_points(self, profile_id: str, slugs: Optional[list[str]] = None) -> DataPointsResult:
        # slugs идут одной строкой через запятую, как ждёт API
        params = {"id": profile_id, "slugs": ",".join(slugs or ALL_SLUGS)}
        payload = await self._get("/data_points", params=params)
        return parse_data_points(payload)

    async def profile_wallet(self, profile_id: str) -> str | None:
        """
        Адрес кошелька профиля: сначала /accounts, потом main_wallet из /profiles/{id}.
        """
        payload = await self._get("/accounts", params={"id": profile_id})
        for acc in payload.get("accounts") or []:
            if acc.get("source") not in WALLET_SOURCES:
                continue
            if _is_wallet(acc.get("address")):
                return acc["address"]
            if _is_wallet(acc.get("identifier")):
                return acc["identifier"]

        payload = await self._get(f"/profiles/{profile_id}")
        wallet = (payload.get("profile") or {}).get("main_wallet")
        return wallet if _is_wallet(wallet) else None
