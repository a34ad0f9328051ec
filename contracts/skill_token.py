"""
Contracts — SkillToken Service
================================

Mint, batch-mint and level updates for soulbound skill tokens, plus the
read endpoints the integration layer needs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from contracts.api_client import TalentChainApiClient
from contracts.base import BaseContractService
from contracts.errors import ContractError
from contracts.models import (
    BatchMintSkillTokensParams,
    ContractCallResult,
    MintSkillTokenParams,
    SkillData,
    UpdateSkillLevelParams,
)
from contracts.validation import SkillTokenValidator, ValidationResult

logger = logging.getLogger("contracts.skill_token")


def _validation_error(validation: ValidationResult) -> ContractError:
    return ContractError("VALIDATION_ERROR", ", ".join(validation.errors))


def _token_request(
    recipient: str,
    category: str,
    subcategory: str,
    level: int,
    expiry_date: int,
    metadata: str,
    token_uri: str,
) -> dict[str, Any]:
    return {
        "recipient_address": recipient,
        "skill_name": subcategory,
        "skill_category": category,
        "level": level,
        "expiry_date": expiry_date,
        "description": metadata,
        "metadata_uri": token_uri,
    }


def _token_ids(data: Any) -> list[str]:
    """Token ids from a list of ids, a list of token objects or a wrapper dict."""
    if isinstance(data, dict):
        for key in ("token_ids", "tokenIds", "tokens", "items", "value"):
            if key in data:
                return _token_ids(data[key])
        return []
    if not isinstance(data, list):
        return []
    ids = []
    for item in data:
        if isinstance(item, dict):
            token_id = item.get("token_id", item.get("tokenId", item.get("id")))
            if token_id is not None:
                ids.append(str(token_id))
        else:
            ids.append(str(item))
    return ids


class SkillTokenService(BaseContractService):
    def __init__(self, contract_address: str, api: Optional[TalentChainApiClient] = None) -> None:
        super().__init__(contract_address, api)

    # ── Writes ───────────────────────────────────────────────────────────
    async def mint_skill_token(self, params: MintSkillTokenParams) -> ContractCallResult:
        validation = SkillTokenValidator.mint(params)
        if not validation.is_valid:
            return self.error_result(_validation_error(validation), validation.warnings)

        try:
            resp = await self.api.create_skill_token(
                _token_request(
                    params.recipient,
                    params.category,
                    params.subcategory,
                    params.level,
                    params.expiry_date,
                    params.metadata,
                    params.token_uri,
                )
            )
            data = self.unwrap(resp, "Failed to mint skill token")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to mint skill token"))

        token_id = data.get("token_id", data.get("tokenId", "0"))
        logger.info("Minted skill token %s (%s/%s)", token_id, params.category, params.subcategory)
        return self.success_result(
            {"token_id": str(token_id)},
            self.transaction_hash(data),
            self.gas_used(data),
            validation.warnings,
        )

    async def batch_mint_skill_tokens(self, params: BatchMintSkillTokensParams) -> ContractCallResult:
        validation = SkillTokenValidator.batch_mint(params)
        if not validation.is_valid:
            return self.error_result(_validation_error(validation), validation.warnings)

        requests = [
            _token_request(
                params.recipient,
                params.categories[i],
                params.subcategories[i],
                params.levels[i],
                params.expiry_dates[i],
                params.metadata_array[i],
                params.token_uris[i],
            )
            for i in range(len(params.categories))
        ]
        try:
            resp = await self.api.batch_create_skill_tokens(requests)
            data = self.unwrap(resp, "Failed to batch mint skill tokens")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to batch mint skill tokens"))

        token_ids = _token_ids(data)
        logger.info("Batch minted %d skill tokens", len(token_ids))
        return self.success_result(
            {"token_ids": token_ids},
            self.transaction_hash(data),
            self.gas_used(data),
            validation.warnings,
        )

    async def update_skill_level(self, params: UpdateSkillLevelParams) -> ContractCallResult:
        validation = SkillTokenValidator.update_skill_level(params)
        if not validation.is_valid:
            return self.error_result(_validation_error(validation))

        try:
            resp = await self.api.update_skill_level(params.token_id, params.new_level, params.evidence)
            data = self.unwrap(resp, "Failed to update skill level")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to update skill level"))

        return self.success_result(None, self.transaction_hash(data), self.gas_used(data))

    async def endorse_skill_token(self, token_id: str, endorsement_data: str) -> ContractCallResult:
        try:
            data = self.unwrap(
                await self.api.endorse_skill_token(token_id, endorsement_data),
                "Failed to endorse skill token",
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to endorse skill token"))
        return self.success_result(None, self.transaction_hash(data), self.gas_used(data))

    async def renew_skill_token(self, token_id: str, new_expiry_date: int) -> ContractCallResult:
        try:
            data = self.unwrap(
                await self.api.renew_skill_token(token_id, new_expiry_date),
                "Failed to renew skill token",
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to renew skill token"))
        return self.success_result(None, self.transaction_hash(data), self.gas_used(data))

    async def revoke_skill_token(self, token_id: str, reason: str) -> ContractCallResult:
        try:
            data = self.unwrap(
                await self.api.revoke_skill_token(token_id, reason),
                "Failed to revoke skill token",
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to revoke skill token"))
        return self.success_result(None, self.transaction_hash(data), self.gas_used(data))

    # ── Reads ────────────────────────────────────────────────────────────
    async def get_skill_data(self, token_id: str) -> ContractCallResult:
        try:
            data = self.unwrap(await self.api.get_skill_token(token_id), "Failed to get skill data")
            skill = SkillData(
                token_id=str(data.get("token_id", data.get("tokenId", token_id))),
                owner=data.get("owner"),
                category=data.get("category", data.get("skill_category", "")),
                subcategory=data.get("subcategory", data.get("skill_name", "")),
                level=int(data.get("level", 0)),
                expiry_date=int(data.get("expiry_date", data.get("expiryDate", 0)) or 0),
                metadata=data.get("metadata", data.get("description", "")) or "",
                token_uri=data.get("token_uri", data.get("metadata_uri", "")) or "",
                is_active=bool(data.get("is_active", data.get("isActive", True))),
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get skill data"))
        return self.success_result(skill)

    async def get_tokens_by_owner(self, owner: str) -> ContractCallResult:
        try:
            data = self.unwrap(await self.api.get_skill_tokens(owner), "Failed to get tokens by owner")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get tokens by owner"))
        return self.success_result(_token_ids(data))

    async def get_tokens_by_category(self, category: str, limit: int = 50) -> ContractCallResult:
        try:
            data = self.unwrap(
                await self.api.get_tokens_by_category(category, limit),
                "Failed to get tokens by category",
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get tokens by category"))
        return self.success_result(_token_ids(data))
