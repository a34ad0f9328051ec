from pathlib import Path
import asyncio
import sys
from urllib.parse import parse_qs, urlparse

import httpx

sys.path.append(str(Path(__file__).resolve().parents[1]))

from ai_integrations.linkedin_api import LinkedInAPIService, localized


def _loc(value: str) -> dict:
    return {"localized": {"en_US": value}}


def _routes(request: httpx.Request) -> httpx.Response:
    url = str(request.url)
    if "positions" in url:
        return httpx.Response(200, json={"elements": [{
            "id": 7,
            "title": _loc("Backend Engineer"),
            "company": {"name": "Acme"},
            "startDate": {"year": 2020, "month": 3},
            "description": _loc("Built Docker based deployment pipelines"),
            "isCurrent": True,
        }]})
    if "skills" in url:
        return httpx.Response(200, json={"elements": [{"name": _loc("Python"), "numEndorsements": 12}]})
    if "educations" in url:
        return httpx.Response(500, json={})
    return httpx.Response(200, json={
        "id": "li-1",
        "firstName": _loc("Jane"),
        "lastName": _loc("Doe"),
        "headline": _loc("Python developer"),
        "location": {"name": "Berlin"},
        "numConnections": 300,
    })


def _api(handler=_routes, token: str = "li-token") -> LinkedInAPIService:
    return LinkedInAPIService(token=token, transport=httpx.MockTransport(handler))


def test_localized_takes_first_locale():
    assert localized(_loc("Hi")) == "Hi"
    assert localized({"localized": {}}) is None
    assert localized("plain") is None


def test_missing_token_short_circuits():
    resp = asyncio.run(_api(token="").get_user_profile())
    assert not resp.success
    assert resp.error == "LinkedIn token is required for API access"


def test_status_errors():
    def expired(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={})

    resp = asyncio.run(_api(expired).get_user_profile())
    assert resp.error == "LinkedIn token is invalid or expired"
    assert asyncio.run(_api(expired).validate_token()) is False


def test_complete_profile_tolerates_missing_sections():
    resp = asyncio.run(_api().get_complete_profile())
    profile = resp.data

    assert resp.success
    assert (profile.first_name, profile.last_name, profile.location) == ("Jane", "Doe", "Berlin")
    assert profile.positions[0].company_name == "Acme"
    assert profile.positions[0].start_date.year == 2020
    assert profile.positions[0].is_current
    assert profile.skills[0].endorsements == 12
    assert profile.educations == []


def test_search_skills_in_profile():
    found = asyncio.run(_api().search_skills_in_profile(["Python", "Docker", "Kotlin"]))

    assert found["found_skills"] == ["Python", "Docker"]
    assert "Headline: Python developer" in found["context"]["Python"]
    assert "Listed skill: Python (12 endorsements)" in found["context"]["Python"]
    assert found["context"]["Docker"][0].startswith("Experience at Acme:")


def test_oauth_url():
    url = LinkedInAPIService.get_oauth_url("client-1", "https://app.test/callback")
    query = parse_qs(urlparse(url).query)

    assert url.startswith("https://www.linkedin.com/oauth/v2/authorization?")
    assert query["client_id"] == ["client-1"]
    assert query["scope"] == ["r_liteprofile r_emailaddress"]
    assert query["state"][0]


def test_exchange_code_for_token():
    def handler(request: httpx.Request) -> httpx.Response:
        assert b"grant_type=authorization_code" in request.content
        return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})

    def rejected(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    args = ("code-1", "client-1", "secret", "https://app.test/callback")
    token = asyncio.run(LinkedInAPIService.exchange_code_for_token(*args, transport=httpx.MockTransport(handler)))
    assert token["access_token"] == "tok"
    assert asyncio.run(LinkedInAPIService.exchange_code_for_token(*args, transport=httpx.MockTransport(rejected))) is None
