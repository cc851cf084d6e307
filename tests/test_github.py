import httpx
import pytest

from builderboard.services.github import (
    GitHubClient, GitHubRateLimited, rank_repos, username_from_profile, README_MAX_CHARS,
)


def test_username_from_profile():
    assert username_from_profile({"name": "alice_01"}) == "alice_01"
    assert username_from_profile({"name": "Alice Doe", "relative_path": "/alice-d"}) == "alice-d"
    assert username_from_profile({"name": "Alice Doe", "relative_path": "/a/b"}) is None
    assert username_from_profile({"relative_path": "alice"}) is None
    assert username_from_profile({}) is None


def test_rank_repos_top_five():
    repos = [
        {"name": f"r{i}", "stargazers_count": i, "pushed_at": f"2024-01-{10 + i:02d}T00:00:00Z"}
        for i in range(7)
    ]
    repos.append({"name": "silent", "stargazers_count": None, "pushed_at": None})

    ranked = rank_repos(repos)

    assert [r["name"] for r in ranked["top_by_stars"]] == ["r6", "r5", "r4", "r3", "r2"]
    assert [r["name"] for r in ranked["most_recent"]] == ["r6", "r5", "r4", "r3", "r2"]
    assert ranked["top_by_stars"][0]["topics"] == []


async def test_user_repos_drops_forks_and_sends_headers(github_api):
    github_api.add("/users/alice/repos", [
        {"full_name": "alice/a"},
        {"full_name": "other/b"},
        {"full_name": "alice-x/c"},
    ])
    async with github_api.client() as http:
        gh = GitHubClient(http=http, token="ghp_token")
        repos = await gh.user_repos("alice")

    assert [r["full_name"] for r in repos] == ["alice/a"]
    req = github_api.calls[0]
    assert req.headers["Authorization"] == "Bearer ghp_token"
    assert req.headers["User-Agent"] == "Mantle-Leaderboard"
    assert req.url.params["sort"] == "pushed"


async def test_readme_missing_and_truncated(github_api, github):
    github_api.add("/repos/alice/long/readme", lambda request: httpx.Response(200, text="x" * 5000))

    assert await github.readme("alice", "none") is None
    text = await github.readme("alice", "long")
    assert len(text) == README_MAX_CHARS
    assert github_api.calls[-1].headers["Accept"] == "application/vnd.github.v3.raw"


async def test_rate_limit_short_circuits(github_api, github):
    github_api.add(
        "/user/1",
        lambda request: httpx.Response(429, headers={"retry-after": "120"}),
    )
    github_api.add("/user/2", {"login": "bob"})

    with pytest.raises(GitHubRateLimited):
        await github.user_login("1")
    assert github.rate_limited
    assert github.limit_hits == 1

    with pytest.raises(GitHubRateLimited):
        await github.user_login("2")
    # второй запрос не ушёл
    assert github_api.paths() == ["/user/1"]


async def test_plain_403_is_not_rate_limit(github_api, github):
    github_api.add("/user/1", lambda request: httpx.Response(403, headers={"x-ratelimit-remaining": "4000"}))

    with pytest.raises(httpx.HTTPStatusError):
        await github.user_login("1")
    assert not github.rate_limited


async def test_contributors_trimmed(github_api, github):
    github_api.add("/repos/mantle/sdk/contributors", [
        {"login": f"u{i}", "contributions": 10 - i, "avatar_url": "a", "html_url": "h"} for i in range(8)
    ])
    github_api.add("/repos/mantle/empty/contributors", lambda request: httpx.Response(204))

    rows = await github.contributors("mantle/sdk", per_page=5)
    assert [c["login"] for c in rows] == ["u0", "u1", "u2", "u3", "u4"]
    assert github_api.calls[0].url.params["per_page"] == "5"

    assert await github.contributors("mantle/empty") == []


async def test_malformed_payloads_raise_http_error(github_api, github):
    github_api.add("/user/1", lambda request: httpx.Response(200, text="<html>oops</html>"))
    github_api.add("/users/alice/repos", {"message": "moved"})
    github_api.add("/repos/mantle/sdk/contributors", ["junk", {"login": "dev", "contributions": 2}])

    with pytest.raises(httpx.DecodingError):
        await github.user_login("1")
    with pytest.raises(httpx.HTTPError):
        await github.user_repos("alice")
    assert [c["login"] for c in await github.contributors("mantle/sdk")] == ["dev"]
    assert not github.rate_limited
