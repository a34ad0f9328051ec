"""
Integration — Skill Minting
=============================

Turns mapped AI skills into SkillToken mints.

Phases reported through ``on_progress``:
  0   initializing          — request validation
  20  ai_verification       — filter (≥0.7), sort, dedupe
  40  contract_interaction  — choose batch vs individual
  50–90                     — one step per batch / skill
  100 completed
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from contracts.models import BatchMintSkillTokensParams, MintSkillTokenParams
from contracts.skill_token import SkillTokenService
from integration.ipfs import IPFSClient
from integration.models import (
    AIContractError,
    AISkillData,
    IntegrationPhase,
    IPFSConfig,
    MintingOptions,
    ProgressCallback,
    SkillMintingRequest,
    SkillMintingResult,
    report_progress,
)
from integration.verification import (
    MAX_BATCH,
    MIN_CONFIDENCE,
    estimate_gas_cost,
    filter_high_confidence_skills,
    generate_skill_metadata,
    generate_token_uri,
    optimize_skills_for_batching,
    prioritize_skills_by_confidence,
    validate_minting_request,
)

logger = logging.getLogger("integration.minting")

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def expiry_timestamp(years: int) -> int:
    return int(time.time()) + years * SECONDS_PER_YEAR


class SkillMintingService:
    def __init__(
        self,
        skill_token: SkillTokenService,
        ipfs_config: Optional[IPFSConfig] = None,
        ipfs: Optional[IPFSClient] = None,
    ) -> None:
        self.skill_token = skill_token
        cfg = ipfs_config or IPFSConfig()
        self.ipfs = ipfs or IPFSClient(cfg.endpoint, cfg.api_key)

    # ── Main workflow ────────────────────────────────────────────────────
    async def mint_skills_from_ai(
        self,
        request: SkillMintingRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SkillMintingResult:
        try:
            report_progress(on_progress, IntegrationPhase.INITIALIZING, 0, "Validating request parameters")
            errors = validate_minting_request(request)
            if errors:
                return SkillMintingResult(success=False, errors=[e.message for e in errors])

            report_progress(on_progress, IntegrationPhase.AI_VERIFICATION, 20, "Processing AI-detected skills")
            skills = self.optimize_skills_for_minting(request.ai_skills)
            if not skills:
                return SkillMintingResult(success=False, errors=["No skills passed confidence threshold"])

            batch = request.options.batch_mint and len(skills) > 1
            report_progress(
                on_progress,
                IntegrationPhase.CONTRACT_INTERACTION,
                40,
                "Preparing batch minting" if batch else "Preparing individual minting",
            )
            if batch:
                result = await self._batch_mint(request.user_address, skills, request.options, on_progress)
            else:
                result = await self._individual_mint(request.user_address, skills, request.options, on_progress)

            report_progress(
                on_progress,
                IntegrationPhase.COMPLETED,
                100,
                "Skill minting completed",
                errors=[
                    AIContractError(code="GENERIC_ERROR", message=e, source="integration")
                    for e in result.errors
                ],
                warnings=result.warnings,
            )
            logger.info(
                "Minted %d/%d skills for %s", len(result.token_ids), len(skills), request.user_address
            )
            return result

        except Exception as e:
            logger.error("Skill minting failed: %s", e, exc_info=True)
            report_progress(
                on_progress,
                IntegrationPhase.FAILED,
                0,
                "Skill minting failed",
                errors=[AIContractError(
                    code="MINTING_FAILED", message=str(e), source="integration", retryable=True
                )],
            )
            return SkillMintingResult(success=False, errors=[str(e) or "Unknown error occurred"])

    async def _token_uri(
        self, skill: AISkillData, options: MintingOptions, ipfs_hashes: list[str], warnings: list[str]
    ) -> str:
        """``ipfs://hash`` when the metadata was pinned, else the inline JSON token URI."""
        if not (options.include_ipfs and self.ipfs.enabled):
            return generate_token_uri(skill)

        upload = await self.ipfs.upload(generate_skill_metadata(skill))
        if upload.uploaded:
            ipfs_hashes.append(upload.hash)
            return f"ipfs://{upload.hash}"
        warnings.append(f"Failed to upload metadata to IPFS for {skill.subcategory}")
        return generate_token_uri(skill)

    async def _individual_mint(
        self,
        user_address: str,
        skills: list[AISkillData],
        options: MintingOptions,
        on_progress: Optional[ProgressCallback],
    ) -> SkillMintingResult:
        token_ids: list[str] = []
        errors: list[str] = []
        warnings: list[str] = []
        ipfs_hashes: list[str] = []
        tx_hash: Optional[str] = None

        for i, skill in enumerate(skills):
            report_progress(
                on_progress,
                IntegrationPhase.CONTRACT_INTERACTION,
                50 + i / len(skills) * 40,
                f"Minting skill {i + 1}/{len(skills)}: {skill.subcategory}",
            )
            try:
                token_uri = await self._token_uri(skill, options, ipfs_hashes, warnings)
                result = await self.skill_token.mint_skill_token(MintSkillTokenParams(
                    recipient=user_address,
                    category=skill.category,
                    subcategory=skill.subcategory,
                    level=skill.level,
                    expiry_date=expiry_timestamp(options.expiry_years),
                    metadata=generate_skill_metadata(skill),
                    token_uri=token_uri,
                ))
            except Exception as e:
                logger.warning("Minting %s failed: %s", skill.subcategory, e)
                errors.append(str(e) or f"Unknown error minting {skill.subcategory}")
                continue

            if result.success and result.data:
                token_ids.append(result.data["token_id"])
                tx_hash = tx_hash or result.transaction_hash
            else:
                errors.append(result.error.message if result.error else f"Failed to mint {skill.subcategory}")

        return SkillMintingResult(
            success=bool(token_ids),
            token_ids=token_ids,
            transaction_hash=tx_hash,
            ipfs_hashes=ipfs_hashes,
            errors=errors,
            warnings=warnings,
        )

    async def _batch_mint(
        self,
        user_address: str,
        skills: list[AISkillData],
        options: MintingOptions,
        on_progress: Optional[ProgressCallback],
    ) -> SkillMintingResult:
        token_ids: list[str] = []
        errors: list[str] = []
        warnings: list[str] = []
        ipfs_hashes: list[str] = []
        tx_hash: Optional[str] = None

        batches = optimize_skills_for_batching(skills, MAX_BATCH)
        for n, batch in enumerate(batches):
            report_progress(
                on_progress,
                IntegrationPhase.CONTRACT_INTERACTION,
                50 + n / len(batches) * 40,
                f"Processing batch {n + 1}/{len(batches)} ({len(batch)} skills)",
            )
            try:
                token_uris = [
                    await self._token_uri(skill, options, ipfs_hashes, warnings) for skill in batch
                ]
                result = await self.skill_token.batch_mint_skill_tokens(BatchMintSkillTokensParams(
                    recipient=user_address,
                    categories=[s.category for s in batch],
                    subcategories=[s.subcategory for s in batch],
                    levels=[s.level for s in batch],
                    expiry_dates=[expiry_timestamp(options.expiry_years) for _ in batch],
                    metadata_array=[generate_skill_metadata(s) for s in batch],
                    token_uris=token_uris,
                ))
            except Exception as e:
                logger.warning("Batch %d failed: %s", n + 1, e)
                errors.append(str(e) or f"Unknown error in batch {n + 1}")
                continue

            if result.success and result.data:
                token_ids.extend(result.data["token_ids"])
                tx_hash = tx_hash or result.transaction_hash
            else:
                errors.append(result.error.message if result.error else f"Failed to mint batch {n + 1}")

        return SkillMintingResult(
            success=bool(token_ids),
            token_ids=token_ids,
            transaction_hash=tx_hash,
            ipfs_hashes=ipfs_hashes,
            errors=errors,
            warnings=warnings,
        )

    # ── Helpers ──────────────────────────────────────────────────────────
    @staticmethod
    def optimize_skills_for_minting(skills: list[AISkillData]) -> list[AISkillData]:
        """Confidence ≥ 0.7, highest first, one skill per category:subcategory."""
        ranked = prioritize_skills_by_confidence(filter_high_confidence_skills(skills, MIN_CONFIDENCE))
        seen: set[str] = set()
        unique = []
        for skill in ranked:
            if skill.key in seen:
                continue
            seen.add(skill.key)
            unique.append(skill)
        return unique

    @staticmethod
    def estimate_minting_cost(skills: list[AISkillData], batch_mint: bool = True) -> dict[str, Any]:
        optimized = SkillMintingService.optimize_skills_for_minting(skills)
        return {**estimate_gas_cost(len(optimized), batch_mint), "skills_count": len(optimized)}

    def preview_minting(self, request: SkillMintingRequest) -> dict[str, Any]:
        errors = validate_minting_request(request)
        if errors:
            raise ValueError(f"Invalid request: {', '.join(e.message for e in errors)}")

        to_mint = self.optimize_skills_for_minting(request.ai_skills)
        kept = {id(s) for s in to_mint}
        filtered = [s for s in request.ai_skills if id(s) not in kept]
        batch = request.options.batch_mint and len(to_mint) > 1

        warnings = []
        if filtered:
            warnings.append(f"{len(filtered)} skills filtered out due to low confidence")
        if not to_mint:
            warnings.append("No skills meet the minimum confidence threshold")
        if request.options.include_ipfs and not self.ipfs.enabled:
            warnings.append("IPFS storage requested but no endpoint configured")

        return {
            "skills_to_mint": to_mint,
            "skills_filtered": filtered,
            "estimated_cost": estimate_gas_cost(len(to_mint), batch),
            "warnings": warnings,
        }

    def get_configuration(self) -> dict[str, Any]:
        return {
            "has_ipfs": self.ipfs.enabled,
            "ipfs_endpoint": self.ipfs.endpoint,
            "contract_address": self.skill_token.get_contract_address(),
        }
