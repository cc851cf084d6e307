import httpx
from openai import AsyncOpenAI

from builderboard.config import settings
from builderboard.services.cache import ProfilesCache
from builderboard.services.github import GitHubClient
from builderboard.services.summarizer import Summarizer
from builderboard.services.talent import TalentClient

_http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

talent = TalentClient(http=_http, api_key=settings.TALENT_API_KEY)
github = GitHubClient(http=_http, token=settings.GITHUB_TOKEN)
summarizer = Summarizer(
    client=AsyncOpenAI(api_key=settings.OPENAI_API_KEY) if settings.OPENAI_API_KEY else None,
    model=settings.OPENAI_MODEL,
)
profiles_cache = ProfilesCache(ttl_seconds=settings.PROFILES_CACHE_TTL_HOURS * 3600)


def get_talent() -> TalentClient:
    return talent

def get_github() -> GitHubClient:
    return github

def get_summarizer() -> Summarizer:
    return summarizer

def get_profiles_cache() -> ProfilesCache:
    return profiles_cache


async def shutdown_http():
    await _http.aclose()
    if summarizer.client is not None:
        await summarizer.client.close()
