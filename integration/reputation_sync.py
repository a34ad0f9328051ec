"""
Integration — Reputation Sync
===============================

Pushes AI-derived reputation scores and work evaluations to the
ReputationOracle contract, pinning the supporting evidence to IPFS
when an endpoint is configured.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from contracts.models import CONTRACT_CONSTANTS, SubmitWorkEvaluationParams, UpdateReputationScoreParams
from contracts.reputation_oracle import ReputationOracleService
from contracts.validation import validate_address
from integration.ipfs import IPFSClient
from integration.models import (
    AIContractError,
    ContractIntegrationResult,
    ErrorSource,
    IntegrationPhase,
    IPFSConfig,
    ProgressCallback,
    ReputationUpdateRequest,
    WorkEvaluationRequest,
    now_ms,
    report_progress,
)
from integration.verification import is_retryable_error

logger = logging.getLogger("integration.reputation_sync")

EVIDENCE_VERSION = "1.0.0"
IPFS_CONFIDENCE_THRESHOLD = 0.8
MIN_DESCRIPTION_LENGTH = 10


def fallback_hash(data: str) -> str:
    """Deterministic 32-bit string hash, used when evidence cannot be pinned."""
    h = 0
    for ch in data:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return f"fallback_{abs(h):x}"


def to_ai_contract_error(error: Any, source: ErrorSource) -> AIContractError:
    code = getattr(error, "code", None) if error is not None else None
    message = getattr(error, "message", None) if error is not None else None
    if message is None and isinstance(error, Exception):
        message = str(error) or None
    details = error.model_dump() if hasattr(error, "model_dump") else (str(error) if error else None)
    return AIContractError(
        code=str(code) if code else f"{source.upper()}_ERROR",
        message=message or f"{source} error occurred",
        source=source,
        details=details,
        retryable=is_retryable_error(error),
    )


def _dump(value: Any) -> Any:
    if value is None:
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value


class ReputationSyncService:
    def __init__(
        self,
        reputation_oracle: ReputationOracleService,
        ipfs_config: Optional[IPFSConfig] = None,
        ipfs: Optional[IPFSClient] = None,
    ) -> None:
        self.reputation_oracle = reputation_oracle
        cfg = ipfs_config or IPFSConfig()
        self.ipfs = ipfs or IPFSClient(cfg.endpoint, cfg.api_key)

    # ── Reputation updates ───────────────────────────────────────────────
    async def update_reputation_from_ai(
        self,
        request: ReputationUpdateRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ContractIntegrationResult:
        try:
            report_progress(
                on_progress, IntegrationPhase.INITIALIZING, 0, "Validating reputation update request"
            )
            errors = self.validate_reputation_update(request)
            if errors:
                return ContractIntegrationResult(success=False, error=", ".join(errors))

            report_progress(on_progress, IntegrationPhase.AI_VERIFICATION, 25, "Processing AI evidence")
            evidence = self.reputation_evidence(request)

            ipfs_hash: Optional[str] = None
            if self.ipfs.enabled and request.evidence.confidence > IPFS_CONFIDENCE_THRESHOLD:
                report_progress(
                    on_progress, IntegrationPhase.AI_VERIFICATION, 50, "Uploading evidence to IPFS"
                )
                upload = await self.ipfs.upload(evidence)
                if upload.uploaded:
                    ipfs_hash = upload.hash

            report_progress(
                on_progress, IntegrationPhase.CONTRACT_INTERACTION, 75, "Updating reputation on-chain"
            )
            result = await self.reputation_oracle.update_reputation_score(UpdateReputationScoreParams(
                user=request.user_address,
                category=request.category,
                new_score=str(int(request.new_score)),
                evidence=f"ipfs://{ipfs_hash}" if ipfs_hash else evidence,
            ))

            if result.success:
                report_progress(
                    on_progress, IntegrationPhase.COMPLETED, 100, "Reputation update completed"
                )
                return ContractIntegrationResult(
                    success=True,
                    transaction_hash=result.transaction_hash,
                    gas_used=result.gas_used,
                    warnings=result.warnings,
                )

            error = to_ai_contract_error(result.error, "contract")
            report_progress(
                on_progress, IntegrationPhase.FAILED, 0, "Reputation update failed", errors=[error]
            )
            return ContractIntegrationResult(success=False, error=error.message)

        except Exception as e:
            logger.error("Reputation update failed: %s", e, exc_info=True)
            error = to_ai_contract_error(e, "integration")
            report_progress(
                on_progress, IntegrationPhase.FAILED, 0, "Reputation update failed", errors=[error]
            )
            return ContractIntegrationResult(success=False, error=error.message)

    async def submit_work_evaluation_from_ai(
        self,
        request: WorkEvaluationRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ContractIntegrationResult:
        try:
            report_progress(
                on_progress, IntegrationPhase.INITIALIZING, 0, "Validating work evaluation request"
            )
            errors = self.validate_work_evaluation(request)
            if errors:
                return ContractIntegrationResult(success=False, error=", ".join(errors))

            report_progress(
                on_progress, IntegrationPhase.AI_VERIFICATION, 20, "Processing AI analysis results"
            )
            evidence = self.work_evaluation_evidence(request)

            report_progress(
                on_progress, IntegrationPhase.AI_VERIFICATION, 40, "Uploading evaluation data to IPFS"
            )
            upload = await self.ipfs.upload(evidence)
            ipfs_hash = upload.hash if upload.uploaded else fallback_hash(evidence)

            report_progress(
                on_progress, IntegrationPhase.CONTRACT_INTERACTION, 70, "Submitting work evaluation on-chain"
            )
            analysis = request.ai_analysis
            result = await self.reputation_oracle.submit_work_evaluation(SubmitWorkEvaluationParams(
                user=request.user_address,
                skill_token_ids=list(request.skill_token_ids),
                work_description=request.work_description,
                work_content=request.work_content,
                overall_score=str(int(analysis.overall_score)),
                skill_scores=[str(int(s)) for s in analysis.skill_scores],
                feedback=analysis.feedback,
                ipfs_hash=ipfs_hash,
            ))

            if result.success and result.data:
                report_progress(
                    on_progress, IntegrationPhase.COMPLETED, 100, "Work evaluation submitted successfully"
                )
                return ContractIntegrationResult(
                    success=True,
                    data={"evaluation_id": result.data["evaluation_id"], "ipfs_hash": ipfs_hash},
                    transaction_hash=result.transaction_hash,
                    gas_used=result.gas_used,
                    warnings=result.warnings,
                )

            error = to_ai_contract_error(result.error, "contract")
            report_progress(
                on_progress, IntegrationPhase.FAILED, 0, "Work evaluation failed", errors=[error]
            )
            return ContractIntegrationResult(success=False, error=error.message)

        except Exception as e:
            logger.error("Work evaluation failed: %s", e, exc_info=True)
            error = to_ai_contract_error(e, "integration")
            report_progress(
                on_progress, IntegrationPhase.FAILED, 0, "Work evaluation failed", errors=[error]
            )
            return ContractIntegrationResult(success=False, error=error.message)

    async def batch_update_reputations(
        self,
        requests: list[ReputationUpdateRequest],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ContractIntegrationResult:
        results: list[ContractIntegrationResult] = []
        successful = failed = 0

        for i, request in enumerate(requests):
            report_progress(
                on_progress,
                IntegrationPhase.CONTRACT_INTERACTION,
                i / len(requests) * 100,
                f"Processing reputation update {i + 1}/{len(requests)}",
            )
            result = await self.update_reputation_from_ai(request)
            if result.success:
                successful += 1
            else:
                failed += 1
            results.append(result)

        report_progress(
            on_progress,
            IntegrationPhase.COMPLETED,
            100,
            f"Batch update completed: {successful} successful, {failed} failed",
        )
        return ContractIntegrationResult(
            success=successful > 0,
            data={"successful": successful, "failed": failed, "results": results},
        )

    # ── Validation ───────────────────────────────────────────────────────
    @staticmethod
    def validate_reputation_update(request: ReputationUpdateRequest) -> list[str]:
        errors = []
        if not validate_address(request.user_address).is_valid:
            errors.append("Invalid user address")
        if not request.category.strip():
            errors.append("Category is required")
        if not 0 <= request.new_score <= CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE:
            errors.append(f"New score must be between 0 and {CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE}")
        if not request.evidence.source:
            errors.append("Evidence source is required")
        if not 0 <= request.evidence.confidence <= 1:
            errors.append("Evidence confidence must be between 0 and 1")
        return errors

    @staticmethod
    def validate_work_evaluation(request: WorkEvaluationRequest) -> list[str]:
        errors = []
        analysis = request.ai_analysis
        if not validate_address(request.user_address).is_valid:
            errors.append("Invalid user address")
        if not request.skill_token_ids:
            errors.append("At least one skill token ID is required")
        if len(request.work_description.strip()) < MIN_DESCRIPTION_LENGTH:
            errors.append(f"Work description must be at least {MIN_DESCRIPTION_LENGTH} characters")
        if not 0 <= analysis.overall_score <= CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE:
            errors.append(f"Overall score must be between 0 and {CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE}")
        if len(analysis.skill_scores) != len(request.skill_token_ids):
            errors.append("Skill scores must match skill token IDs count")
        if not 0 <= analysis.confidence <= 1:
            errors.append("AI confidence must be between 0 and 1")
        return errors

    # ── Evidence ─────────────────────────────────────────────────────────
    @staticmethod
    def reputation_evidence(request: ReputationUpdateRequest) -> str:
        return json.dumps(
            {
                "source": request.evidence.source,
                "confidence": request.evidence.confidence,
                "timestamp": now_ms(),
                "data": {
                    "github_data": _dump(request.evidence.github_data),
                    "linkedin_data": _dump(request.evidence.linkedin_data),
                    "project_data": _dump(request.evidence.project_data),
                },
                "category": request.category,
                "new_score": request.new_score,
            },
            indent=2,
        )

    @staticmethod
    def work_evaluation_evidence(request: WorkEvaluationRequest) -> str:
        return json.dumps(
            {
                "work_description": request.work_description,
                "work_content": request.work_content,
                "ai_analysis": request.ai_analysis.model_dump(),
                "evidence": request.evidence.model_dump(),
                "skill_token_ids": list(request.skill_token_ids),
                "timestamp": now_ms(),
                "version": EVIDENCE_VERSION,
            },
            indent=2,
        )

    # ── Oracle lookups ───────────────────────────────────────────────────
    async def is_authorized_oracle(self, oracle_address: str) -> bool:
        result = await self.reputation_oracle.is_authorized_oracle(oracle_address)
        if not result.success:
            logger.warning("Failed to check oracle authorization: %s", result.error)
        return result.success and result.data is True

    async def get_minimum_oracle_stake(self) -> str:
        result = await self.reputation_oracle.get_minimum_oracle_stake()
        if not result.success:
            logger.warning("Failed to get minimum oracle stake: %s", result.error)
            return "0"
        return result.data or "0"

    def get_configuration(self) -> dict[str, Any]:
        return {
            "has_ipfs": self.ipfs.enabled,
            "ipfs_endpoint": self.ipfs.endpoint,
            "contract_address": self.reputation_oracle.get_contract_address(),
        }
