"""
Contracts — ReputationOracle Service
======================================

Reputation score updates and work evaluations submitted by an
authorised oracle, plus the oracle lookups used before submitting.
"""

from __future__ import annotations

import logging
from typing import Optional

from contracts.api_client import TalentChainApiClient
from contracts.base import BaseContractService
from contracts.errors import ContractError
from contracts.models import (
    CONTRACT_CONSTANTS,
    ContractCallResult,
    SubmitWorkEvaluationParams,
    UpdateReputationScoreParams,
)
from contracts.validation import ReputationOracleValidator

logger = logging.getLogger("contracts.reputation_oracle")


class ReputationOracleService(BaseContractService):
    def __init__(self, contract_address: str, api: Optional[TalentChainApiClient] = None) -> None:
        super().__init__(contract_address, api)

    # ── Writes ───────────────────────────────────────────────────────────
    async def update_reputation_score(self, params: UpdateReputationScoreParams) -> ContractCallResult:
        validation = ReputationOracleValidator.update_reputation_score(params)
        if not validation.is_valid:
            return self.error_result(
                ContractError("VALIDATION_ERROR", ", ".join(validation.errors)),
                validation.warnings,
            )

        try:
            resp = await self.api.update_reputation_score(
                params.user, params.category, int(float(params.new_score)), params.evidence
            )
            data = self.unwrap(resp, "Failed to update reputation score")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to update reputation score"))

        logger.info("Reputation for %s in %s set to %s", params.user, params.category, params.new_score)
        return self.success_result(
            None, self.transaction_hash(data), self.gas_used(data), validation.warnings
        )

    async def submit_work_evaluation(self, params: SubmitWorkEvaluationParams) -> ContractCallResult:
        validation = ReputationOracleValidator.submit_work_evaluation(params)
        if not validation.is_valid:
            return self.error_result(
                ContractError("VALIDATION_ERROR", ", ".join(validation.errors)),
                validation.warnings,
            )

        body = {
            "user": params.user,
            "skillTokenIds": [int(t) if t.isdigit() else t for t in params.skill_token_ids],
            "workDescription": params.work_description,
            "workContent": params.work_content,
            "overallScore": int(float(params.overall_score)),
            "skillScores": {
                token_id: int(float(score))
                for token_id, score in zip(params.skill_token_ids, params.skill_scores)
            },
            "feedback": params.feedback,
            "evidence": params.ipfs_hash,
        }
        try:
            data = self.unwrap(
                await self.api.submit_evaluation(body), "Failed to submit work evaluation"
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to submit work evaluation"))

        evaluation_id = data.get("evaluation_id", data.get("evaluationId", "0"))
        return self.success_result(
            {"evaluation_id": str(evaluation_id)},
            self.transaction_hash(data),
            self.gas_used(data),
            validation.warnings,
        )

    # ── Reads ────────────────────────────────────────────────────────────
    async def get_reputation_score(self, user: str) -> ContractCallResult:
        try:
            data = self.unwrap(await self.api.get_reputation_score(user), "Failed to get reputation score")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get reputation score"))
        return self.success_result(data)

    async def get_category_score(self, user: str, category: str) -> ContractCallResult:
        try:
            data = self.unwrap(
                await self.api.get_category_score(user, category), "Failed to get category score"
            )
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get category score"))
        return self.success_result(str(data.get("score", data.get("value", "0"))))

    async def get_oracle_info(self, oracle: str) -> ContractCallResult:
        try:
            data = self.unwrap(await self.api.get_oracle_info(oracle), "Failed to get oracle info")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get oracle info"))
        return self.success_result(data)

    async def is_authorized_oracle(self, oracle: str) -> ContractCallResult:
        """An oracle is authorised when the backend knows it and reports it active."""
        info = await self.get_oracle_info(oracle)
        if not info.success:
            if info.error and info.error.code == "NOT_FOUND":
                return self.success_result(False)
            return info
        data = info.data or {}
        return self.success_result(bool(data.get("is_active", data.get("isActive", False))))

    async def get_minimum_oracle_stake(self) -> ContractCallResult:
        try:
            data = self.unwrap(await self.api.get_global_stats(), "Failed to get minimum oracle stake")
        except Exception as e:
            return self.error_result(self.wrap_error(e, "Failed to get minimum oracle stake"))
        stake = data.get("min_oracle_stake", data.get("minOracleStake", CONTRACT_CONSTANTS.MIN_ORACLE_STAKE))
        return self.success_result(str(stake))
