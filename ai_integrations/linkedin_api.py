"""
AI Integrations — LinkedIn Client
===================================

Async client for the LinkedIn v2 REST API (profile, positions,
skills, education). LinkedIn returns localized strings as
``{"localized": {"en_US": "..."}}``; the first locale is used.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlencode
from uuid import uuid4

import httpx

from ai_integrations.models import (
    APIResponse,
    LinkedInEducation,
    LinkedInPosition,
    LinkedInProfile,
    LinkedInSkill,
)
from ai_integrations.rules import LINKEDIN_API_BASE, LINKEDIN_API_VERSION, Limits

logger = logging.getLogger("ai_integrations.linkedin_api")

OAUTH_AUTHORIZE_URL = "https://www.linkedin.com/oauth/v2/authorization"
OAUTH_TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"

_STATUS_ERRORS = {
    401: "LinkedIn token is invalid or expired",
    403: "Access forbidden. Check LinkedIn API permissions",
    429: "LinkedIn API rate limit exceeded",
}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def localized(field: Any) -> Optional[str]:
    """First localized value of a LinkedIn multi-locale field."""
    if not isinstance(field, dict):
        return None
    values = field.get("localized") or {}
    for value in values.values():
        return value
    return None


def _date(raw: Optional[dict]) -> Optional[datetime]:
    if not raw or "year" not in raw:
        return None
    return datetime(raw["year"], raw.get("month") or 1, 1)


# ─────────────────────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────────────────────
class LinkedInAPIService:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = LINKEDIN_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token = token if token is not None else os.environ.get("LINKEDIN_TOKEN", "")
        self.base_url = base_url
        self._transport = transport
        if not self.token:
            logger.warning("LinkedIn token not provided. LinkedIn integration will be limited.")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "LinkedIn-Version": LINKEDIN_API_VERSION,
            "X-Restli-Protocol-Version": "2.0.0",
        }

    async def _request(self, endpoint: str) -> APIResponse:
        if not self.token:
            return APIResponse(success=False, error="LinkedIn token is required for API access")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=Limits.API_TIMEOUT,
                transport=self._transport,
            ) as client:
                resp = await client.get(endpoint)
        except httpx.HTTPError as e:
            logger.warning("LinkedIn request %s failed: %s", endpoint, e)
            return APIResponse(success=False, error=f"LinkedIn request failed: {e}")

        if resp.status_code in _STATUS_ERRORS:
            return APIResponse(success=False, error=_STATUS_ERRORS[resp.status_code])
        if resp.is_error:
            return APIResponse(
                success=False,
                error=f"LinkedIn API error: {resp.status_code} {resp.reason_phrase}",
            )
        return APIResponse(success=True, data=resp.json())

    # ── Endpoints ────────────────────────────────────────────────────────
    async def get_user_profile(self) -> APIResponse:
        logger.info("Fetching LinkedIn profile")
        resp = await self._request(
            "/people/~:(id,firstName,lastName,headline,summary,location,industry,numConnections)"
        )
        if not resp.success or not resp.data:
            return resp

        d = resp.data
        profile = LinkedInProfile(
            id=str(d.get("id", "")),
            first_name=localized(d.get("firstName")) or "",
            last_name=localized(d.get("lastName")) or "",
            headline=localized(d.get("headline")),
            summary=localized(d.get("summary")),
            location=(d.get("location") or {}).get("name"),
            industry=d.get("industry"),
            num_connections=d.get("numConnections"),
        )
        return APIResponse(success=True, data=profile)

    async def get_user_positions(self) -> APIResponse:
        resp = await self._request(
            "/people/~/positions:(id,title,company,location,startDate,endDate,description,isCurrent)"
        )
        if not resp.success or not resp.data:
            return resp

        positions = [
            LinkedInPosition(
                id=str(p.get("id", "")),
                title=localized(p.get("title")) or "",
                company_name=(p.get("company") or {}).get("name", ""),
                location=(p.get("location") or {}).get("name"),
                start_date=_date(p.get("startDate")),
                end_date=_date(p.get("endDate")),
                description=localized(p.get("description")),
                is_current=bool(p.get("isCurrent")),
            )
            for p in resp.data.get("elements", [])
        ]
        return APIResponse(success=True, data=positions)

    async def get_user_skills(self) -> APIResponse:
        resp = await self._request("/people/~/skills:(name,numEndorsements)")
        if not resp.success or not resp.data:
            return resp

        skills = [
            LinkedInSkill(
                name=localized(s.get("name")) or "",
                endorsements=s.get("numEndorsements") or 0,
            )
            for s in resp.data.get("elements", [])
        ]
        return APIResponse(success=True, data=skills)

    async def get_user_education(self) -> APIResponse:
        resp = await self._request(
            "/people/~/educations:(schoolName,degreeName,fieldOfStudy,startDate,endDate)"
        )
        if not resp.success or not resp.data:
            return resp

        educations = [
            LinkedInEducation(
                school_name=localized(e.get("schoolName")) or "",
                degree_name=localized(e.get("degreeName")),
                field_of_study=localized(e.get("fieldOfStudy")),
                start_date=_date(e.get("startDate")),
                end_date=_date(e.get("endDate")),
            )
            for e in resp.data.get("elements", [])
        ]
        return APIResponse(success=True, data=educations)

    async def get_complete_profile(self) -> APIResponse:
        """Profile plus positions, skills and education.

        Only the base profile is mandatory; missing sections stay empty.
        """
        resp = await self.get_user_profile()
        if not resp.success:
            return resp
        profile: LinkedInProfile = resp.data

        positions = await self.get_user_positions()
        if positions.success and positions.data:
            profile.positions = positions.data

        skills = await self.get_user_skills()
        if skills.success and skills.data:
            profile.skills = skills.data

        education = await self.get_user_education()
        if education.success and education.data:
            profile.educations = education.data

        return APIResponse(success=True, data=profile)

    async def search_skills_in_profile(self, keywords: list[str]) -> dict[str, Any]:
        resp = await self.get_complete_profile()
        if not resp.success or not resp.data:
            return {"found_skills": [], "context": {}}
        profile: LinkedInProfile = resp.data

        texts = [
            profile.headline or "",
            profile.summary or "",
            *[p.description or "" for p in profile.positions],
            *[s.name for s in profile.skills],
            *[e.field_of_study or "" for e in profile.educations],
        ]
        haystack = " ".join(texts).lower()

        found: list[str] = []
        context: dict[str, list[str]] = {}
        for keyword in keywords:
            needle = keyword.lower()
            if needle not in haystack:
                continue
            found.append(keyword)

            hits = []
            if profile.headline and needle in profile.headline.lower():
                hits.append(f"Headline: {profile.headline}")
            if profile.summary and needle in profile.summary.lower():
                hits.append(f"Summary: {profile.summary[:100]}...")
            for p in profile.positions:
                if p.description and needle in p.description.lower():
                    hits.append(f"Experience at {p.company_name}: {p.description[:100]}...")
            listed = next((s for s in profile.skills if needle in s.name.lower()), None)
            if listed:
                hits.append(f"Listed skill: {listed.name} ({listed.endorsements} endorsements)")
            context[keyword] = hits

        return {"found_skills": found, "context": context}

    async def validate_token(self) -> bool:
        if not self.token:
            return False
        resp = await self.get_user_profile()
        return resp.success

    # ── OAuth ────────────────────────────────────────────────────────────
    @staticmethod
    def get_oauth_url(
        client_id: str,
        redirect_uri: str,
        scopes: tuple[str, ...] = ("r_liteprofile", "r_emailaddress"),
    ) -> str:
        params = {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(scopes),
            "state": str(uuid4()),
        }
        return f"{OAUTH_AUTHORIZE_URL}?{urlencode(params)}"

    @staticmethod
    async def exchange_code_for_token(
        code: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> Optional[dict]:
        try:
            async with httpx.AsyncClient(timeout=Limits.API_TIMEOUT, transport=transport) as client:
                resp = await client.post(
                    OAUTH_TOKEN_URL,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "client_id": client_id,
                        "client_secret": client_secret,
                        "redirect_uri": redirect_uri,
                    },
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as e:
            logger.error("LinkedIn token exchange failed: %s", e)
            return None
