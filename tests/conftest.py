import json
import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ["SYNC_SECRET"] = "test-secret"
os.environ.pop("TALENT_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from builderboard.db.models import Base
from builderboard.services.cache import ProfilesCache
from builderboard.services.github import GitHubClient
from builderboard.services.summarizer import Summarizer
from builderboard.services.talent import TalentClient


class FakeApi:
    """
    Подмена внешнего API поверх httpx.MockTransport.
    Маршрут: путь -> dict/list (ответ 200 JSON), httpx.Response или callable(request).
    """

    def __init__(self):
        self.routes = {}
        self.calls: list[httpx.Request] = []

    def add(self, path, reply):
        self.routes[path] = reply
        return self

    def paths(self):
        return [r.url.path for r in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        reply = self.routes.get(request.url.path)
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(reply):
            reply = reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def talent_api():
    return FakeApi()


@pytest.fixture
def github_api():
    return FakeApi()


@pytest.fixture
async def talent(talent_api):
    async with talent_api.client() as http:
        yield TalentClient(http=http, api_key="talent-key")


@pytest.fixture
async def github(github_api):
    async with github_api.client() as http:
        yield GitHubClient(http=http)


@pytest.fixture
def summarizer():
    return Summarizer(client=None)


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # savepoint-ы в sqlite: BEGIN шлём сами
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def profiles_cache():
    return ProfilesCache(ttl_seconds=3600)


@pytest.fixture
async def client(session_maker, talent, github, summarizer, profiles_cache):
    from builderboard.main import app
    from builderboard.db.core import get_session
    from builderboard.deps import get_talent, get_github, get_summarizer, get_profiles_cache

    async def _session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_talent] = lambda: talent
    app.dependency_overrides[get_github] = lambda: github
    app.dependency_overrides[get_summarizer] = lambda: summarizer
    app.dependency_overrides[get_profiles_cache] = lambda: profiles_cache

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


PROFILES = {
    "p1": {"id": "p1", "name": "Alice Doe", "display_name": "Alice", "score": {"points": 90},
           "main_wallet": "0x" + "a" * 40},
    "p2": {"id": "p2", "name": "bob", "builder_score": 50},
    "p3": {"id": "p3", "name": "Carol Smith", "score": 70},
    "p4": {"id": "p4", "name": "Dave", "builder_score": {"points": 10}},
    "p5": {"id": "p5", "name": "Eve Online", "relative_path": "/eve", "score": {"points": 99}},
}


def _talent_search(request: httpx.Request) -> httpx.Response:
    query = json.loads(request.url.params["query"])
    page = int(request.url.params.get("page", "1"))

    if "walletAddresses" in query:
        if page == 1:
            return httpx.Response(200, json={
                "profiles": [dict(PROFILES["p1"]), dict(PROFILES["p2"])],
                "pagination": {"current_page": 1, "last_page": 2},
            })
        return httpx.Response(200, json={
            "profiles": [dict(PROFILES["p3"])],
            "pagination": {"current_page": 2, "last_page": 2},
        })

    if "identity" in query:
        found = {"bob": "p2", "dave.eth": "p4"}.get(query["identity"])
        return httpx.Response(200, json={"profiles": [dict(PROFILES[found])] if found else []})

    if "credentials" in query:
        return httpx.Response(200, json={
            "profiles": [dict(PROFILES["p1"]), dict(PROFILES["p5"])],
            "pagination": {"current_page": 1, "last_page": 1},
        })

    return httpx.Response(200, json={"profiles": []})


def _talent_data_points(request: httpx.Request) -> httpx.Response:
    pid = request.url.params["id"]
    if pid == "p1":
        return httpx.Response(200, json={"data_points": [
            {"credential_slug": "github_total_commits", "readable_value": "1,234",
             "account_source": "github", "account_identifier": "101"},
            {"credential_slug": "github_mantle_eco_repositories_commits", "readable_value": "12"},
            {"credential_slug": "talent_builder_rewards_total_usd", "readable_value": "$50"},
            {"credential_slug": "onchain_total_contract_fees", "readable_value": "0.5"},
        ]})
    if pid == "p2":
        return httpx.Response(500, json={"error": "boom"})
    return httpx.Response(200, json={"data_points": []})


@pytest.fixture
def sources(talent_api, github_api):
    talent_api.add("/search/advanced/profiles", _talent_search)
    talent_api.add("/data_points", _talent_data_points)

    github_api.add("/user/101", {"login": "alice"})
    github_api.add("/users/alice/repos", [
        {"name": "old", "full_name": "alice/old", "html_url": "https://github.com/alice/old",
         "stargazers_count": 10, "language": "Go", "pushed_at": "2023-01-01T00:00:00Z"},
        {"name": "new", "full_name": "alice/new", "html_url": "https://github.com/alice/new",
         "description": "fresh", "stargazers_count": 2, "language": "Solidity",
         "pushed_at": "2024-05-01T00:00:00Z"},
        {"name": "forked", "full_name": "someone/forked", "stargazers_count": 500,
         "pushed_at": "2024-06-01T00:00:00Z"},
    ])
    github_api.add("/users/bob/repos", [])
    github_api.add("/users/eve/repos", [])
    github_api.add(
        "/repos/alice/new/readme",
        lambda request: httpx.Response(200, text="# New\n\n![badge](x)\nA **tool** that indexes Mantle blocks for builders.\n"),
    )
    return talent_api, github_api
