"""
Contracts — TalentChain API Client
====================================

Async client for the TalentChain backend, which owns the SkillToken and
ReputationOracle contracts and signs their transactions.

Every endpoint answers ``{"success", "data", "error", "message"}``.
Non-2xx responses raise ``ApiError`` carrying the backend ``detail``;
transport failures raise ``ApiError`` with status 0.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx

logger = logging.getLogger("contracts.api_client")

API_BASE_URL = os.environ.get("TALENTCHAIN_API_URL", "http://localhost:8000")
API_TIMEOUT = 30.0


class ApiError(Exception):
    def __init__(self, message: str, status: int, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


class TalentChainApiClient:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        auth_token: Optional[str] = None,
        wallet_address: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = API_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token or os.environ.get("TALENTCHAIN_API_TOKEN") or None
        self.wallet_address = wallet_address
        self.timeout = timeout
        self._transport = transport

    # ── Auth ─────────────────────────────────────────────────────────────
    def set_auth_token(self, token: str) -> None:
        self.auth_token = token

    def set_wallet_address(self, address: str) -> None:
        self.wallet_address = address

    def clear_auth(self) -> None:
        self.auth_token = None
        self.wallet_address = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        if self.wallet_address:
            headers["X-Wallet-Address"] = self.wallet_address
        return headers

    # ── Core request ─────────────────────────────────────────────────────
    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, endpoint, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            raise ApiError(str(e) or "Network error", 0) from e

        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            raise ApiError(
                body.get("detail") or f"HTTP {resp.status_code}",
                resp.status_code,
                body.get("code"),
            )
        return resp.json()

    async def _get(self, endpoint: str, **params: Any) -> dict[str, Any]:
        return await self._request("GET", endpoint, params=params or None)

    async def _post(self, endpoint: str, body: Optional[Any] = None) -> dict[str, Any]:
        return await self._request("POST", endpoint, json=body)

    # ── Health ───────────────────────────────────────────────────────────
    async def check_health(self) -> dict[str, Any]:
        return await self._get("/health")

    async def check_contract_health(self) -> dict[str, Any]:
        return await self._get("/health/contracts")

    # ── Skills ───────────────────────────────────────────────────────────
    async def create_skill_token(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/api/v1/skills/create-token", request)

    async def batch_create_skill_tokens(self, requests: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._post("/api/v1/skills/batch-create", requests)

    async def update_skill_level(
        self, token_id: str, new_level: int, metadata_uri: str
    ) -> dict[str, Any]:
        return await self._post(
            "/api/v1/skills/update-level",
            {"token_id": token_id, "new_level": new_level, "new_metadata_uri": metadata_uri},
        )

    async def get_skill_tokens(self, address: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/skills/tokens/{address}")

    async def get_skill_token(self, token_id: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/skills/tokens/{token_id}")

    async def endorse_skill_token(self, token_id: str, endorsement_data: str) -> dict[str, Any]:
        return await self._post(
            "/api/v1/skills/endorse",
            {"token_id": token_id, "endorsement_data": endorsement_data},
        )

    async def renew_skill_token(self, token_id: str, new_expiry_date: int) -> dict[str, Any]:
        return await self._post(
            "/api/v1/skills/renew",
            {"token_id": token_id, "new_expiry_date": new_expiry_date},
        )

    async def revoke_skill_token(self, token_id: str, reason: str) -> dict[str, Any]:
        return await self._post("/api/v1/skills/revoke", {"token_id": token_id, "reason": reason})

    async def get_tokens_by_category(self, category: str, limit: int = 50) -> dict[str, Any]:
        return await self._get(f"/api/v1/skills/category/{category}", limit=limit)

    async def get_total_skills_by_category(self, category: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/skills/category/{category}/total")

    # ── Reputation ───────────────────────────────────────────────────────
    async def update_reputation_score(
        self, user_address: str, category: str, new_score: int, evidence: str
    ) -> dict[str, Any]:
        return await self._post(
            "/api/v1/reputation/update-score",
            {"user": user_address, "category": category, "new_score": new_score, "evidence": evidence},
        )

    async def submit_evaluation(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/api/v1/reputation/submit-evaluation", request)

    async def get_reputation_score(self, address: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/reputation/score/{address}")

    async def get_category_score(self, address: str, category: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/reputation/category/{address}/{category}")

    async def get_oracle_info(self, oracle_address: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/reputation/oracle/{oracle_address}")

    async def get_active_oracles(self) -> dict[str, Any]:
        return await self._get("/api/v1/reputation/oracles/active")

    async def get_evaluations(self, address: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/reputation/evaluations/{address}")

    async def get_global_stats(self) -> dict[str, Any]:
        return await self._get("/api/v1/reputation/stats/global")
