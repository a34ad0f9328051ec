"""
AI Integrations — GitHub REST Client
======================================

Thin async wrapper over the GitHub REST API. Works without
authentication (60 req/hr) or with a GITHUB_TOKEN for 5000 req/hr.

Every method returns an ``APIResponse``; HTTP and transport failures
are reported through ``error`` instead of raised.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Optional

import httpx

from ai_integrations.models import (
    APIResponse,
    GitHubCommit,
    GitHubCommitAuthor,
    GitHubCommitStats,
    GitHubProfile,
    GitHubRepository,
)
from ai_integrations.rules import GITHUB_API_BASE, GITHUB_API_VERSION, USER_AGENT, Limits

logger = logging.getLogger("ai_integrations.github_api")


_STATUS_ERRORS = {
    401: "Unauthorized. Please check your GitHub token.",
    403: "Access forbidden. Please check your GitHub token permissions.",
    404: "Resource not found. Please check the username/repository.",
}


class GitHubAPIService:
    """Fetches profiles, repositories, languages and commits."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        commit_pause: float = Limits.COMMIT_DETAIL_PAUSE,
    ) -> None:
        self.token = token if token is not None else os.environ.get("GITHUB_TOKEN", "")
        self.base_url = base_url
        self._transport = transport
        self.commit_pause = commit_pause
        self.rate_limit_remaining = Limits.GITHUB_RATE_LIMIT
        self.rate_limit_reset = 0.0
        if not self.token:
            logger.warning("GitHub token not provided. API calls will be limited.")

    # ── HTTP plumbing ────────────────────────────────────────────────────
    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=Limits.API_TIMEOUT,
            transport=self._transport,
        )

    def _track_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if reset is not None:
            self.rate_limit_reset = float(reset)

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> APIResponse:
        if self.rate_limit_remaining <= 0 and time.time() < self.rate_limit_reset:
            return APIResponse(
                success=False,
                error="GitHub API rate limit exceeded. Please try again later.",
            )

        try:
            async with self._client() as client:
                resp = await client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            logger.warning("GitHub request %s failed: %s", endpoint, e)
            return APIResponse(success=False, error=f"GitHub request failed: {e}")

        self._track_rate_limit(resp)

        if resp.status_code == 429 or (resp.status_code == 403 and self.rate_limit_remaining <= 0):
            return APIResponse(success=False, error="GitHub API rate limit exceeded")
        if resp.status_code in _STATUS_ERRORS:
            return APIResponse(success=False, error=_STATUS_ERRORS[resp.status_code])
        if resp.is_error:
            return APIResponse(
                success=False,
                error=f"GitHub API error: {resp.status_code} {resp.reason_phrase}",
            )
        return APIResponse(success=True, data=resp.json())

    # ── Endpoints ────────────────────────────────────────────────────────
    async def get_user_profile(self, username: str) -> APIResponse:
        logger.info("Fetching GitHub profile for: %s", username)
        resp = await self._request(f"/users/{username}")
        if not resp.success or not resp.data:
            return resp

        data = resp.data
        profile = GitHubProfile(
            username=data["login"],
            public_repos=data.get("public_repos") or 0,
            followers=data.get("followers") or 0,
            following=data.get("following") or 0,
            created_at=data.get("created_at"),
            bio=data.get("bio"),
            location=data.get("location"),
            company=data.get("company"),
            blog=data.get("blog"),
        )
        return APIResponse(success=True, data=profile)

    async def get_user_repositories(
        self, username: str, page: int = 1, per_page: int = 30
    ) -> APIResponse:
        """Most recently updated non-fork repositories, capped at MAX_REPOS_TO_ANALYZE."""
        logger.info("Fetching repositories for: %s (page %d)", username, page)
        resp = await self._request(
            f"/users/{username}/repos",
            params={"sort": "updated", "per_page": per_page, "page": page},
        )
        if not resp.success or resp.data is None:
            return resp

        owned = [raw for raw in resp.data if not raw.get("fork")]
        repos = [_parse_repository(raw) for raw in owned[: Limits.MAX_REPOS_TO_ANALYZE]]
        return APIResponse(
            success=True,
            data={
                "items": repos,
                "page": page,
                "per_page": per_page,
                "total": len(resp.data),
                "has_next_page": len(resp.data) == per_page,
            },
        )

    async def get_repository_languages(self, owner: str, repo: str) -> APIResponse:
        return await self._request(f"/repos/{owner}/{repo}/languages")

    async def get_repository_commits(
        self,
        owner: str,
        repo: str,
        author: Optional[str] = None,
        limit: int = 10,
    ) -> APIResponse:
        """Recent commits with per-commit stats and touched file names.

        Each commit needs a detail request; the client pauses briefly
        after every few of them to stay under secondary rate limits.
        """
        logger.info("Fetching commits for: %s/%s", owner, repo)
        params: dict[str, Any] = {"per_page": limit}
        if author:
            params["author"] = author

        resp = await self._request(f"/repos/{owner}/{repo}/commits", params=params)
        if not resp.success or resp.data is None:
            return resp

        commits: list[GitHubCommit] = []
        for raw in resp.data[: Limits.MAX_COMMITS_PER_REPO]:
            detail = await self._request(f"/repos/{owner}/{repo}/commits/{raw['sha']}")
            if detail.success and detail.data:
                commits.append(_parse_commit(raw, detail.data))
                if self.commit_pause and len(commits) % Limits.COMMIT_DETAIL_BATCH == 0:
                    await asyncio.sleep(self.commit_pause)

        return APIResponse(success=True, data=commits)

    async def search_repositories(
        self, query: str, user: Optional[str] = None, language: Optional[str] = None
    ) -> APIResponse:
        q = query
        if user:
            q += f" user:{user}"
        if language:
            q += f" language:{language}"

        resp = await self._request(
            "/search/repositories", params={"q": q, "sort": "stars", "order": "desc"}
        )
        if not resp.success or not resp.data:
            return resp
        items = [_parse_repository(raw) for raw in resp.data.get("items", [])]
        return APIResponse(success=True, data=items)

    async def validate_token(self) -> bool:
        if not self.token:
            return False
        resp = await self._request("/user")
        return resp.success

    def get_rate_limit_status(self) -> dict[str, Any]:
        return {
            "remaining": self.rate_limit_remaining,
            "reset_time": self.rate_limit_reset,
            "is_limited": self.rate_limit_remaining <= 0 and time.time() < self.rate_limit_reset,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _parse_repository(raw: dict) -> GitHubRepository:
    return GitHubRepository(
        id=raw["id"],
        name=raw["name"],
        full_name=raw["full_name"],
        description=raw.get("description"),
        language=raw.get("language") or "Unknown",
        stargazers_count=raw.get("stargazers_count") or 0,
        forks_count=raw.get("forks_count") or 0,
        size=raw.get("size") or 0,
        created_at=raw.get("created_at"),
        updated_at=raw.get("updated_at"),
        topics=raw.get("topics") or [],
    )


def _parse_commit(raw: dict, detail: dict) -> GitHubCommit:
    info = raw.get("commit", {})
    author = info.get("author") or {}
    stats = detail.get("stats") or {}
    return GitHubCommit(
        sha=raw["sha"],
        message=info.get("message", ""),
        author=GitHubCommitAuthor(
            name=author.get("name", ""),
            email=author.get("email", ""),
            date=author.get("date"),
        ),
        stats=GitHubCommitStats(
            additions=stats.get("additions", 0),
            deletions=stats.get("deletions", 0),
            total=stats.get("total", 0),
        ),
        files=[f["filename"] for f in detail.get("files") or []],
    )
