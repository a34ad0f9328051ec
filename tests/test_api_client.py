from pathlib import Path
import asyncio
import json
import sys

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from contracts.api_client import ApiError, TalentChainApiClient


def _client(handler, **kwargs) -> TalentChainApiClient:
    return TalentChainApiClient(
        base_url="http://talentchain.test", transport=httpx.MockTransport(handler), **kwargs
    )


def test_headers_carry_auth_and_wallet():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["wallet"] = request.headers.get("X-Wallet-Address")
        return httpx.Response(200, json={"success": True, "data": {"status": "ok"}})

    client = _client(handler, auth_token="secret", wallet_address="0xabc")
    asyncio.run(client.check_health())
    assert seen == {"auth": "Bearer secret", "wallet": "0xabc"}


def test_clear_auth_drops_headers(monkeypatch):
    monkeypatch.delenv("TALENTCHAIN_API_TOKEN", raising=False)
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True})

    client = _client(handler, auth_token="secret")
    client.clear_auth()
    asyncio.run(client.check_health())
    assert seen["auth"] is None


def test_post_sends_json_body_to_endpoint():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": {"transaction_hash": "0x1"}})

    client = _client(handler)
    asyncio.run(client.update_reputation_score("0xuser", "Programming", 7500, "evidence text"))
    assert captured["path"] == "/api/v1/reputation/update-score"
    assert captured["body"] == {
        "user": "0xuser",
        "category": "Programming",
        "new_score": 7500,
        "evidence": "evidence text",
    }


def test_query_params_are_forwarded():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        return httpx.Response(200, json={"success": True, "data": []})

    asyncio.run(_client(handler).get_tokens_by_category("Programming", limit=5))
    assert captured["url"].endswith("/api/v1/skills/category/Programming?limit=5")


def test_error_status_raises_api_error_with_detail():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Token not found", "code": "NOT_FOUND"})

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(_client(handler).get_skill_token("99"))
    assert exc_info.value.status == 404
    assert exc_info.value.message == "Token not found"
    assert exc_info.value.code == "NOT_FOUND"


def test_error_without_json_body_uses_status_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(_client(handler).get_global_stats())
    assert exc_info.value.message == "HTTP 500"


def test_transport_failure_is_status_zero():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(_client(handler).check_health())
    assert exc_info.value.status == 0
