from pathlib import Path
import asyncio
import sys

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from ai_integrations.github_analyzer import (
    GitHubAnalyzer,
    combined_confidence,
    detect_frameworks,
    file_extension,
    market_demand,
)
from ai_integrations.github_api import GitHubAPIService
from ai_integrations.models import GitHubCommit, GitHubCommitStats, GitHubRepository, SkillCategory

REPO = {
    "id": 1,
    "name": "api",
    "full_name": "octocat/api",
    "description": "A web API",
    "language": "Python",
    "stargazers_count": 5,
    "forks_count": 2,
    "size": 2000,
    "topics": ["fastapi"],
}


def _routes(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/user":
        return httpx.Response(200, json={"login": "octocat"})
    if path == "/users/octocat":
        return httpx.Response(200, json={"login": "octocat", "public_repos": 1, "followers": 3})
    if path == "/users/octocat/repos":
        return httpx.Response(200, json=[REPO, {**REPO, "id": 2, "name": "fork", "full_name": "octocat/fork", "fork": True}])
    if path == "/repos/octocat/api/languages":
        return httpx.Response(200, json={"Python": 900, "Shell": 100})
    if path == "/repos/octocat/api/commits":
        return httpx.Response(200, json=[
            {"sha": f"c{i}", "commit": {"message": f"change {i}", "author": {"name": "Octo"}}} for i in range(3)
        ])
    if path.startswith("/repos/octocat/api/commits/"):
        return httpx.Response(200, json={
            "stats": {"additions": 30, "deletions": 10, "total": 40},
            "files": [{"filename": "app.py"}, {"filename": "requirements.txt"}],
        })
    return httpx.Response(404, json={"message": "Not Found"})


def _api(handler=_routes, token: str = "ghp_test") -> GitHubAPIService:
    return GitHubAPIService(token=token, transport=httpx.MockTransport(handler), commit_pause=0)


def _repo(**overrides) -> GitHubRepository:
    return GitHubRepository(**{**REPO, **overrides})


# ── Client ───────────────────────────────────────────────────────────────
def test_profile_is_parsed():
    resp = asyncio.run(_api().get_user_profile("octocat"))
    assert resp.success
    assert resp.data.username == "octocat"
    assert resp.data.followers == 3


def test_status_errors_are_reported_not_raised():
    resp = asyncio.run(_api().get_user_profile("ghost"))
    assert not resp.success
    assert resp.error == "Resource not found. Please check the username/repository."


def test_rate_limit_is_tracked_and_enforced():
    def limited(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"login": "octocat"}, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "9999999999"}
        )

    api = _api(limited)
    assert asyncio.run(api.get_user_profile("octocat")).success
    assert api.get_rate_limit_status()["is_limited"]

    blocked = asyncio.run(api.get_user_profile("octocat"))
    assert blocked.error == "GitHub API rate limit exceeded. Please try again later."


def test_repositories_and_commits():
    api = _api()
    repos = asyncio.run(api.get_user_repositories("octocat"))
    assert [r.name for r in repos.data["items"]] == ["api"]
    assert repos.data["items"][0].owner == "octocat"
    assert repos.data["has_next_page"] is False

    commits = asyncio.run(api.get_repository_commits("octocat", "api", "octocat", 3))
    assert [c.sha for c in commits.data] == ["c0", "c1", "c2"]
    assert commits.data[0].stats.total == 40
    assert commits.data[0].files == ["app.py", "requirements.txt"]


def test_validate_token():
    assert asyncio.run(_api().validate_token()) is True
    assert asyncio.run(_api(token="").validate_token()) is False


# ── Analyzer helpers ─────────────────────────────────────────────────────
def test_helpers():
    assert file_extension("src/main.rs") == ".rs"
    assert file_extension("Makefile") is None
    assert detect_frameworks("backend/Dockerfile") == ["Docker"]
    assert market_demand("Python") == "high"
    assert market_demand("Rust") == "medium"
    assert market_demand("COBOL") == "low"


def test_language_confidence_and_complexity():
    assert GitHubAnalyzer.language_confidence(_repo()) == 82
    assert GitHubAnalyzer.language_confidence(_repo(stargazers_count=100, forks_count=50)) == 95
    assert GitHubAnalyzer.complexity_score(_repo(), []) == 11


def test_language_distribution_skips_small_languages():
    analyzer = GitHubAnalyzer(_api())
    skills = analyzer.language_distribution_skills({"Python": 960, "Shell": 40}, _repo())

    assert [s.skill for s in skills] == ["Python"]
    assert skills[0].confidence == 95


def test_commit_patterns_detect_languages_and_frameworks():
    commits = [
        GitHubCommit(sha=f"c{i}", stats=GitHubCommitStats(total=10), files=["app.py", "Cargo.toml"])
        for i in range(3)
    ]
    skills = GitHubAnalyzer(_api()).commit_pattern_skills(commits, _repo())
    by_name = {s.skill: s for s in skills}

    assert by_name["python"].confidence == 65
    assert by_name["python"].evidence[0].metadata["commit_count"] == 3
    assert by_name["Rust"].category == SkillCategory.FRAMEWORK


def test_topics_match_skill_patterns():
    skills = GitHubAnalyzer(_api()).topic_skills(_repo(topics=["solana", "web3"], description=None))
    assert {s.skill for s in skills} == {"solana", "blockchain"}
    assert all(s.confidence == 70 for s in skills)


def test_complex_repository_yields_architecture_skill():
    repo = _repo(stargazers_count=50, forks_count=20, size=30000, topics=["a", "b", "c", "d", "e"])
    commits = [GitHubCommit(sha="c", stats=GitHubCommitStats(total=400))]
    skills = GitHubAnalyzer(_api()).complexity_skills(repo, commits)

    assert skills[0].skill == "Project Architecture"
    assert skills[0].confidence == 95


def test_analyze_user_skills_merges_signals():
    skills = asyncio.run(GitHubAnalyzer(_api()).analyze_user_skills("octocat"))
    by_name = {s.skill: s for s in skills}

    assert list(by_name) == ["Python", "Shell"]
    assert len(by_name["Python"].evidence) == 5
    assert by_name["Python"].confidence == pytest.approx(77.4)
    assert by_name["Shell"].confidence == pytest.approx(67)


def test_analyze_user_skills_requires_profile():
    def down(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={})

    with pytest.raises(RuntimeError, match="Failed to fetch profile"):
        asyncio.run(GitHubAnalyzer(_api(down)).analyze_user_skills("octocat"))


def test_combined_confidence_caps_at_95():
    repo = _repo()
    analyzer = GitHubAnalyzer(_api())
    a = analyzer.primary_language_skills(_repo(stargazers_count=100, forks_count=50))[0]
    b = analyzer.primary_language_skills(repo)[0]
    assert combined_confidence([a, b]) == pytest.approx((95 + 82) / 2)
    assert combined_confidence([]) == 0.0


def test_forbidden_with_exhausted_quota_is_rate_limit():
    def forbidden(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={}, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "0"})

    def no_access(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={}, headers={"X-RateLimit-Remaining": "42"})

    assert asyncio.run(_api(forbidden).get_user_profile("octocat")).error == "GitHub API rate limit exceeded"
    assert asyncio.run(_api(no_access).get_user_profile("octocat")).error.startswith("Access forbidden")
