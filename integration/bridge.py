"""
Integration — AI ↔ Contract Bridge
====================================

End-to-end workflow that turns a GitHub / LinkedIn identity into minted
skill tokens and on-chain reputation:

    1. AI verification        (10–35)
    2. Skill mapping          (40)
    3. Token minting          (60–85, one step per batch or skill)
    4. Reputation updates     (85, one per category)
    5. Completion event       (100)

Also re-verifies existing holders and raises token levels that the new
analysis supports.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ai_integrations.github_api import GitHubAPIService
from ai_integrations.linkedin_api import LinkedInAPIService
from ai_integrations.models import AIAnalysisResult, ScanProgress, SkillCategory, SkillDetection
from ai_integrations.openai_service import OpenAIService
from ai_integrations.verification import AIVerificationService
from contracts.api_client import TalentChainApiClient
from contracts.models import SkillData, UpdateSkillLevelParams
from contracts.reputation_oracle import ReputationOracleService
from contracts.skill_token import SkillTokenService
from contracts.validation import is_valid_url
from integration.minting import SkillMintingService
from integration.models import (
    AIContractError,
    AISkillData,
    ContractIntegrationResult,
    DetectedEvidence,
    DetectedSkill,
    IntegrationPhase,
    IntegrationStatus,
    MintingOptions,
    ProgressCallback,
    ReputationEvidence,
    ReputationUpdateRequest,
    SkillMintingRequest,
    SourceSkills,
    VerificationBridgeConfig,
    VerificationCompletedEvent,
    VerificationResult,
    VerifyAndMintResult,
    report_progress,
)
from integration.reputation_sync import ReputationSyncService
from integration.skill_mapping import SkillMapper, round_half_up
from integration.verification import group_skills_by_category, validate_bridge_config

logger = logging.getLogger("integration.bridge")

REINIT_SECTIONS = ("contract_addresses", "ai_config", "ipfs_config")
LANGUAGE_CATEGORIES = (SkillCategory.PROGRAMMING, SkillCategory.LANGUAGE)


# ─────────────────────────────────────────────────────────────────────────────
# Detection → bridge-side skill conversion
# ─────────────────────────────────────────────────────────────────────────────
def to_detected_skill(detection: SkillDetection, source: str) -> DetectedSkill:
    """Rescale a 0–100 detection into a 0–1 DetectedSkill and flatten its evidence."""
    repositories: list[str] = []
    frameworks: list[str] = []
    experience: list[str] = []
    commits = endorsements = 0

    for ev in detection.evidence:
        meta = ev.metadata
        repo = meta.get("repository_name") or meta.get("repository_context")
        if repo and repo not in repositories:
            repositories.append(repo)
        commits += int(meta.get("commit_count", 0) or 0)
        endorsements += int(meta.get("endorsements", 0) or 0)
        if meta.get("framework") and meta["framework"] not in frameworks:
            frameworks.append(meta["framework"])
        if meta.get("context") and meta["context"] not in experience:
            experience.append(meta["context"])

    return DetectedSkill(
        skill=detection.skill,
        confidence=max(0.0, min(1.0, detection.confidence / 100)),
        level=int(detection.confidence),
        source=source,
        evidence=DetectedEvidence(
            repositories=repositories,
            commits=commits,
            languages=[detection.skill] if detection.category in LANGUAGE_CATEGORIES else [],
            frameworks=frameworks,
            experience="; ".join(experience),
            endorsements=endorsements,
        ),
    )


def to_verification_result(
    analysis: AIAnalysisResult,
    include_github: bool,
    include_linkedin: bool,
) -> VerificationResult:
    """Split the ranked detections by the platform that produced them."""
    github: list[DetectedSkill] = []
    linkedin: list[DetectedSkill] = []
    for detection in analysis.skills_detected:
        platforms = {s.platform for s in detection.sources}
        if include_github and "github" in platforms:
            github.append(to_detected_skill(detection, "github"))
        if include_linkedin and "linkedin" in platforms:
            linkedin.append(to_detected_skill(detection, "linkedin"))

    return VerificationResult(
        success=True,
        github=SourceSkills(skills=github) if include_github else None,
        linkedin=SourceSkills(skills=linkedin) if include_linkedin else None,
    )


def _skill_count(result: VerificationResult) -> int:
    return sum(len(s.skills) for s in (result.github, result.linkedin) if s)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Bridge
# ─────────────────────────────────────────────────────────────────────────────
class AIContractBridge:
    def __init__(
        self,
        config: VerificationBridgeConfig,
        api: Optional[TalentChainApiClient] = None,
        verification: Optional[AIVerificationService] = None,
    ) -> None:
        self._check_config(config)
        self.config = config
        self._api = api
        self._verification = verification
        self._initialize_services()

    @staticmethod
    def _check_config(config: VerificationBridgeConfig) -> None:
        validation = validate_bridge_config(config)
        if not validation.valid:
            problems = [e.message for e in validation.errors]
            problems += [f"Missing required field: {f}" for f in validation.missing_required]
            raise ValueError(f"Invalid configuration: {', '.join(problems)}")
        for warning in validation.warnings:
            logger.warning(warning)

    def _initialize_services(self) -> None:
        addresses = self.config.contract_addresses
        ai = self.config.ai_config
        api = self._api or TalentChainApiClient()

        self.skill_token = SkillTokenService(addresses.skill_token, api)
        self.reputation_oracle = ReputationOracleService(addresses.reputation_oracle, api)

        self.skill_mapper = SkillMapper(self.config.skill_mapping_config)
        self.minting = SkillMintingService(self.skill_token, self.config.ipfs_config)
        self.reputation_sync = ReputationSyncService(self.reputation_oracle, self.config.ipfs_config)

        self.ai_verification = self._verification or AIVerificationService(
            github_api=GitHubAPIService(token=ai.github_api_key or ""),
            linkedin_api=LinkedInAPIService(token=ai.linkedin_api_key or ""),
            openai=OpenAIService(api_key=ai.openai_api_key or ""),
        )
        logger.info("Bridge services initialised (skill token %s)", addresses.skill_token)

    # ─────────────────────────────────────────────────────────────────────
    # Full workflow
    # ─────────────────────────────────────────────────────────────────────
    async def verify_and_mint_skills(
        self,
        user_address: str,
        github_username: Optional[str] = None,
        linkedin_profile: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> VerifyAndMintResult:
        try:
            report_progress(on_progress, IntegrationPhase.AI_VERIFICATION, 10, "Starting AI verification")
            use_github, use_linkedin = self._sources(github_username, linkedin_profile)
            analysis = await self._perform_ai_verification(
                github_username if use_github else None,
                linkedin_profile if use_linkedin else None,
                on_progress,
            )
            verification = (
                to_verification_result(analysis, use_github, use_linkedin) if analysis else None
            )
            if verification is None or _skill_count(verification) == 0:
                return VerifyAndMintResult(
                    success=False,
                    verification_result=verification,
                    errors=["No skills detected from AI verification"],
                )

            report_progress(
                on_progress, IntegrationPhase.SKILL_MAPPING, 40, "Mapping AI skills to contract format"
            )
            mapped = self.skill_mapper.map_verification_to_skills(verification)
            if not mapped:
                return VerifyAndMintResult(
                    success=False,
                    verification_result=verification,
                    errors=["No skills passed confidence threshold for minting"],
                )

            report_progress(
                on_progress, IntegrationPhase.CONTRACT_INTERACTION, 60, "Minting skill tokens"
            )

            # minting reports its per-batch steps on 50-90; relay them on 60-85
            def forward(status: IntegrationStatus) -> None:
                if status.phase != IntegrationPhase.CONTRACT_INTERACTION or status.progress < 50:
                    return
                report_progress(
                    on_progress,
                    status.phase,
                    60 + (status.progress - 50) * 0.625,
                    status.current_step,
                    errors=status.errors,
                    warnings=status.warnings,
                )

            minting = await self.minting.mint_skills_from_ai(SkillMintingRequest(
                user_address=user_address,
                ai_skills=mapped,
                verification_result=verification,
                options=MintingOptions(
                    batch_mint=self.config.options.auto_mint,
                    include_ipfs=bool(self.config.ipfs_config.endpoint),
                    expiry_years=1,
                ),
            ), forward)

            warnings = list(minting.warnings)
            if minting.success and minting.token_ids:
                report_progress(
                    on_progress, IntegrationPhase.CONTRACT_INTERACTION, 85, "Updating reputation scores"
                )
                warnings += await self._update_reputation(user_address, mapped, verification)

            event = VerificationCompletedEvent(
                user_address=user_address,
                total_skills_detected=_skill_count(verification),
                skills_minted=len(minting.token_ids),
                reputation_updates=len(mapped),
                overall_confidence=_mean([s.confidence for s in mapped]),
                verification_sources=[
                    name for name, used in (("github", use_github), ("linkedin", use_linkedin)) if used
                ],
            )
            report_progress(
                on_progress,
                IntegrationPhase.COMPLETED,
                100,
                "AI verification and minting completed",
                warnings=warnings,
            )
            logger.info(
                "Verified %s: %d skills detected, %d minted",
                user_address, event.total_skills_detected, event.skills_minted,
            )
            return VerifyAndMintResult(
                success=minting.success,
                verification_result=verification,
                minting_result=minting,
                event=event,
                errors=list(minting.errors),
            )

        except Exception as e:
            logger.error("Verify-and-mint failed: %s", e, exc_info=True)
            report_progress(
                on_progress,
                IntegrationPhase.FAILED,
                0,
                "AI verification and minting failed",
                errors=[AIContractError(
                    code="INTEGRATION_FAILED", message=str(e), source="integration", retryable=True
                )],
            )
            return VerifyAndMintResult(success=False, errors=[str(e) or "Unknown error occurred"])

    def _sources(self, github_username: Optional[str], linkedin_profile: Optional[str]) -> tuple[bool, bool]:
        ai = self.config.ai_config
        return bool(github_username and ai.github_api_key), bool(linkedin_profile and ai.linkedin_api_key)

    async def _perform_ai_verification(
        self,
        github_username: Optional[str],
        linkedin_profile: Optional[str],
        on_progress: Optional[ProgressCallback],
    ) -> Optional[AIAnalysisResult]:
        if github_username:
            report_progress(
                on_progress, IntegrationPhase.AI_VERIFICATION, 15, f"Analyzing GitHub profile: {github_username}"
            )
        if linkedin_profile:
            report_progress(on_progress, IntegrationPhase.AI_VERIFICATION, 25, "Analyzing LinkedIn profile")

        def forward(scan: ScanProgress) -> None:
            report_progress(
                on_progress,
                IntegrationPhase.AI_VERIFICATION,
                20 + scan.progress * 0.15,
                scan.current_task,
                errors=[
                    AIContractError(code="AI_ERROR", message=e.error, source="ai", details=e.source)
                    for e in scan.errors
                ],
            )

        try:
            analysis = await self.ai_verification.verify_all_skills(
                github=github_username,
                linkedin=linkedin_profile,
                on_progress=forward,
                enable_ai=bool(self.config.ai_config.openai_api_key),
                enable_market_analysis=False,
            )
        except Exception as e:
            logger.error("AI verification failed: %s", e)
            return None

        report_progress(
            on_progress, IntegrationPhase.AI_VERIFICATION, 35, "Processing AI verification results"
        )
        return analysis

    async def _update_reputation(
        self,
        user_address: str,
        skills: list[AISkillData],
        verification: VerificationResult,
    ) -> list[str]:
        """One reputation update per category; failures come back as warnings."""
        warnings = []
        for category, group in group_skills_by_category(skills).items():
            request = ReputationUpdateRequest(
                user_address=user_address,
                category=category,
                new_score=round_half_up(max(s.level * s.confidence for s in group)),
                evidence=ReputationEvidence(
                    source="ai_verification",
                    confidence=_mean([s.confidence for s in group]),
                    github_data=verification.github.model_dump() if verification.github else None,
                    linkedin_data=verification.linkedin.model_dump() if verification.linkedin else None,
                ),
            )
            result = await self.reputation_sync.update_reputation_from_ai(request)
            if not result.success:
                warnings.append(f"Reputation update for {category} failed: {result.error}")
        return warnings

    # ─────────────────────────────────────────────────────────────────────
    # Re-verification
    # ─────────────────────────────────────────────────────────────────────
    async def update_skill_levels(
        self,
        user_address: str,
        github_username: Optional[str] = None,
        linkedin_profile: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ContractIntegrationResult:
        try:
            report_progress(
                on_progress, IntegrationPhase.INITIALIZING, 20, "Fetching existing skill tokens"
            )
            owned = await self.skill_token.get_tokens_by_owner(user_address)
            if not owned.success or not owned.data:
                return ContractIntegrationResult(success=False, error="No existing skills found for user")

            use_github, use_linkedin = self._sources(github_username, linkedin_profile)
            analysis = await self._perform_ai_verification(
                github_username if use_github else None,
                linkedin_profile if use_linkedin else None,
                on_progress,
            )
            if analysis is None:
                return ContractIntegrationResult(success=False, error="AI verification failed")

            mapped = self.skill_mapper.map_verification_to_skills(
                to_verification_result(analysis, use_github, use_linkedin)
            )
            by_key = {s.key: s for s in mapped}

            report_progress(
                on_progress, IntegrationPhase.CONTRACT_INTERACTION, 70, "Updating skill levels"
            )
            updated: list[str] = []
            errors: list[str] = []
            for token_id in owned.data:
                try:
                    current = await self.skill_token.get_skill_data(token_id)
                    if not current.success or not isinstance(current.data, SkillData):
                        continue
                    token: SkillData = current.data
                    candidate = by_key.get(f"{token.category}:{token.subcategory}")
                    if candidate is None or candidate.level <= token.level:
                        continue

                    result = await self.skill_token.update_skill_level(UpdateSkillLevelParams(
                        token_id=token_id,
                        new_level=candidate.level,
                        evidence=f"AI re-verification: confidence {candidate.confidence:.2f}",
                    ))
                except Exception as e:
                    logger.warning("Processing token %s failed: %s", token_id, e)
                    errors.append(f"Error processing token {token_id}: {str(e) or 'Unknown error'}")
                    continue

                if result.success:
                    updated.append(token_id)
                else:
                    logger.warning("Level update for token %s failed: %s", token_id, result.error)
                    errors.append(f"Failed to update skill {token.subcategory}")

            report_progress(
                on_progress, IntegrationPhase.COMPLETED, 100, f"Updated {len(updated)} skill levels"
            )
            return ContractIntegrationResult(
                success=bool(updated),
                data={"updated_count": len(updated), "token_ids": updated},
                errors=errors,
            )

        except Exception as e:
            logger.error("Skill level update failed: %s", e, exc_info=True)
            report_progress(
                on_progress,
                IntegrationPhase.FAILED,
                0,
                "Skill level update failed",
                errors=[AIContractError(
                    code="UPDATE_FAILED", message=str(e), source="integration", retryable=True
                )],
            )
            return ContractIntegrationResult(success=False, error=str(e) or "Unknown error occurred")

    # ─────────────────────────────────────────────────────────────────────
    # Configuration / health
    # ─────────────────────────────────────────────────────────────────────
    def update_configuration(self, **updates: Any) -> None:
        """Replace top-level config sections; services are rebuilt when endpoints change."""
        merged = self.config.model_dump()
        for key, value in updates.items():
            if key not in merged:
                raise ValueError(f"Unknown configuration section: {key}")
            merged[key] = value.model_dump() if hasattr(value, "model_dump") else value
        config = VerificationBridgeConfig.model_validate(merged)
        self._check_config(config)
        self.config = config

        if any(key in updates for key in REINIT_SECTIONS):
            self._initialize_services()
        elif "skill_mapping_config" in updates:
            self.skill_mapper.update_config(**config.skill_mapping_config.model_dump())

    def get_configuration(self) -> VerificationBridgeConfig:
        return self.config.model_copy(deep=True)

    async def health_check(self) -> dict[str, Any]:
        details: dict[str, Any] = {}

        skill_token_ok = await self.skill_token.health_check()
        oracle_ok = await self.reputation_oracle.health_check()
        contracts = skill_token_ok and oracle_ok
        details["contracts"] = {"skill_token": skill_token_ok, "reputation_oracle": oracle_ok}

        ai_cfg = self.config.ai_config
        configured = bool(ai_cfg.github_api_key or ai_cfg.linkedin_api_key)
        github_ok = await self.ai_verification.github_api.validate_token() if ai_cfg.github_api_key else None
        ai = configured and github_ok is not False
        details["ai"] = {"configured": configured, "github_token_valid": github_ok}

        endpoint = self.config.ipfs_config.endpoint
        ipfs = not endpoint or is_valid_url(endpoint)
        details["ipfs"] = {"configured": bool(endpoint), "endpoint": endpoint or None}

        return {
            "overall": contracts and ai and ipfs,
            "contracts": contracts,
            "ai": ai,
            "ipfs": ipfs,
            "details": details,
        }


def create_ai_contract_bridge(config: VerificationBridgeConfig, **kwargs: Any) -> AIContractBridge:
    return AIContractBridge(config, **kwargs)
