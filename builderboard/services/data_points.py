from __future__ import annotations

from dataclasses import dataclass, field


GITHUB_SLUGS: list[str] = [
    "github_crypto_repositories_commits",
    "github_crypto_repositories_contributed",
    "github_forks",
    "github_repositories",
    "github_stars",
    "github_total_contributions",
    "github_total_commits",
    "github_mantle_eco_repositories_commits",
]

# заработок билдера и т.п.
EXTRA_SLUGS: list[str] = [
    "talent_builder_rewards_total_usd",
]

ONCHAIN_SLUGS: list[str] = [
    "onchain_weekly_active_contracts",
    "onchain_total_contract_transactions",
    "onchain_weekly_contract_transactions",
    "onchain_total_contract_fees",
    "onchain_weekly_contract_fees",
]

ALL_SLUGS: list[str] = GITHUB_SLUGS + EXTRA_SLUGS + ONCHAIN_SLUGS

MANTLE_CREDENTIAL_SLUG = "github_mantle_eco_repositories_commits"

SLUG_TO_KEY: dict[str, str] = {
    "github_crypto_repositories_commits": "crypto_commits",
    "github_crypto_repositories_contributed": "crypto_repos_contributed",
    "github_forks": "forks",
    "github_repositories": "repositories",
    "github_stars": "stars",
    "github_total_contributions": "total_contributions",
    "github_total_commits": "total_commits",
    "github_mantle_eco_repositories_commits": "mantle_eco_commits",
    "onchain_weekly_active_contracts": "weekly_active_contracts",
    "onchain_total_contract_transactions": "total_transactions",
    "onchain_weekly_contract_transactions": "weekly_transactions",
    "onchain_total_contract_fees": "total_fees",
    "onchain_weekly_contract_fees": "weekly_fees",
    "talent_builder_rewards_total_usd": "builder_earnings",
}

GITHUB_STAT_KEYS = [SLUG_TO_KEY[s] for s in GITHUB_SLUGS]
ONCHAIN_STAT_KEYS = [SLUG_TO_KEY[s] for s in ONCHAIN_SLUGS]


@dataclass
class DataPointsResult:
    stats: dict[str, str | None] = field(default_factory=lambda: dict.fromkeys(GITHUB_STAT_KEYS))
    onchain_stats: dict[str, str | None] = field(default_factory=lambda: dict.fromkeys(ONCHAIN_STAT_KEYS))
    github_user_id: str | None = None
    builder_earnings: str | None = None
    mantle_eco_commits: str | None = None


def parse_data_points(payload: dict) -> DataPointsResult:
    """
    Раскладывает ответ /data_points по группам: github / onchain / earnings.
    Значения оставляем как readable_value (строки).
    """
    result = DataPointsResult()
    items = payload.get("data_points")
    if not isinstance(items, list):
        return result

    for dp in items:
        if not isinstance(dp, dict):
            continue
        key = SLUG_TO_KEY.get(dp.get("credential_slug") or "")
        value = dp.get("readable_value")

        if key == "builder_earnings":
            result.builder_earnings = value
        elif key == "mantle_eco_commits":
            result.mantle_eco_commits = value
            result.stats[key] = value
        elif key in ONCHAIN_STAT_KEYS:
            result.onchain_stats[key] = value
        elif key:
            result.stats[key] = value

        # github id берём из первого data point с account_source == github
        if dp.get("account_source") == "github" and dp.get("account_identifier") and not result.github_user_id:
            result.github_user_id = str(dp["account_identifier"])

    return result
