"""
Integration — Data Models
===========================

Types that connect AI skill verification with the contract services.

Confidence and level scales differ between the two halves of the pipeline:
  • ``SkillDetection.confidence`` (ai_integrations) is 0–100
  • ``DetectedSkill.confidence`` and ``AISkillData.confidence`` are 0–1
  • ``AISkillData.level`` is the contract level, 1–100
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, Field


def now_ms() -> int:
    return int(time.time() * 1000)


EvidenceSource = Literal["github", "linkedin", "combined"]
ErrorSource = Literal["ai", "contract", "integration"]


class IntegrationPhase(str, Enum):
    INITIALIZING = "initializing"
    AI_VERIFICATION = "ai_verification"
    SKILL_MAPPING = "skill_mapping"
    CONTRACT_INTERACTION = "contract_interaction"
    COMPLETED = "completed"
    FAILED = "failed"


class LevelMethod(str, Enum):
    LINEAR = "linear"
    LOGARITHMIC = "logarithmic"
    THRESHOLD = "threshold"


# ─────────────────────────────────────────────────────────────────────────────
# Verification result (bridge side)
# ─────────────────────────────────────────────────────────────────────────────
class DetectedEvidence(BaseModel):
    repositories: list[str] = []
    commits: int = 0
    languages: list[str] = []
    frameworks: list[str] = []
    experience: str = ""
    endorsements: int = 0


class DetectedSkill(BaseModel):
    """A skill as reported by one verification source, before mapping."""
    skill: str
    confidence: float = Field(..., ge=0, le=1)
    level: Optional[int] = None
    source: str = "unknown"
    evidence: DetectedEvidence = Field(default_factory=DetectedEvidence)


class SourceSkills(BaseModel):
    skills: list[DetectedSkill] = []
    profile: Optional[dict[str, Any]] = None


class VerificationResult(BaseModel):
    success: bool = True
    github: Optional[SourceSkills] = None
    linkedin: Optional[SourceSkills] = None
    errors: list[str] = []


# ─────────────────────────────────────────────────────────────────────────────
# Mapped skills
# ─────────────────────────────────────────────────────────────────────────────
class SkillEvidence(BaseModel):
    source: EvidenceSource
    repositories: list[str] = []
    commits: int = 0
    languages: list[str] = []
    frameworks: list[str] = []
    experience: str = ""
    endorsements: int = 0


class SkillMetadata(BaseModel):
    detected_at: int = Field(default_factory=now_ms)  # epoch ms
    verification_score: float = 0.0
    ai_model: str = "unknown"
    raw_data: dict[str, Any] = {}


class AISkillData(BaseModel):
    """A skill ready to be minted: contract category, subcategory and level."""
    category: str
    subcategory: str
    level: int
    confidence: float
    evidence: SkillEvidence
    metadata: SkillMetadata = Field(default_factory=SkillMetadata)

    @property
    def key(self) -> str:
        return f"{self.category}:{self.subcategory}"


class SkillMapping(BaseModel):
    ai_skill: str
    contract_category: str
    contract_subcategory: str
    level_multiplier: float = 1.0
    confidence: float = 1.0


class LevelCalculation(BaseModel):
    method: LevelMethod = LevelMethod.LOGARITHMIC
    max_level: int = 100
    min_level: int = 1


class SkillMappingConfig(BaseModel):
    mappings: list[SkillMapping] = []
    default_category: str = "Programming"
    minimum_confidence: float = 0.7
    level_calculation: LevelCalculation = Field(default_factory=LevelCalculation)


class SkillLevelCalculation(BaseModel):
    raw_score: float
    normalized_score: float
    contract_level: int
    confidence: float
    method: str


# ─────────────────────────────────────────────────────────────────────────────
# Bridge configuration
# ─────────────────────────────────────────────────────────────────────────────
class ContractAddresses(BaseModel):
    skill_token: str = ""
    talent_pool: str = ""
    reputation_oracle: str = ""


class AIConfig(BaseModel):
    github_api_key: Optional[str] = None
    linkedin_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    huggingface_api_key: Optional[str] = None


class IPFSConfig(BaseModel):
    endpoint: str = ""
    api_key: Optional[str] = None


class BridgeOptions(BaseModel):
    auto_mint: bool = True
    batch_size: int = 10
    retry_attempts: int = 3
    gas_optimization: bool = True


class VerificationBridgeConfig(BaseModel):
    contract_addresses: ContractAddresses = Field(default_factory=ContractAddresses)
    ai_config: AIConfig = Field(default_factory=AIConfig)
    ipfs_config: IPFSConfig = Field(default_factory=IPFSConfig)
    skill_mapping_config: SkillMappingConfig = Field(default_factory=SkillMappingConfig)
    options: BridgeOptions = Field(default_factory=BridgeOptions)


# ─────────────────────────────────────────────────────────────────────────────
# Requests / results
# ─────────────────────────────────────────────────────────────────────────────
class MintingOptions(BaseModel):
    batch_mint: bool = True
    expiry_years: int = 1
    include_ipfs: bool = False


class SkillMintingRequest(BaseModel):
    user_address: str
    ai_skills: list[AISkillData]
    verification_result: Optional[VerificationResult] = None
    github_profile: Optional[dict[str, Any]] = None
    linkedin_profile: Optional[dict[str, Any]] = None
    options: MintingOptions = Field(default_factory=MintingOptions)


class SkillMintingResult(BaseModel):
    success: bool
    token_ids: list[str] = []
    transaction_hash: Optional[str] = None
    ipfs_hashes: list[str] = []
    errors: list[str] = []
    warnings: list[str] = []


class ReputationEvidence(BaseModel):
    source: Literal["ai_verification", "peer_review", "project_completion"]
    confidence: float
    github_data: Optional[Any] = None
    linkedin_data: Optional[Any] = None
    project_data: Optional[Any] = None


class ReputationUpdateRequest(BaseModel):
    user_address: str
    category: str
    new_score: float
    evidence: ReputationEvidence
    ipfs_hash: Optional[str] = None


class WorkAIAnalysis(BaseModel):
    overall_score: float
    skill_scores: list[float]
    feedback: str = ""
    confidence: float
    model: str = "unknown"


class WorkEvidence(BaseModel):
    github_commits: list[str] = []
    portfolio_links: list[str] = []
    code_quality: Optional[float] = None
    complexity: Optional[float] = None


class WorkEvaluationRequest(BaseModel):
    user_address: str
    skill_token_ids: list[str]
    work_description: str
    work_content: str = ""
    ai_analysis: WorkAIAnalysis
    evidence: WorkEvidence = Field(default_factory=WorkEvidence)


class ContractIntegrationResult(BaseModel):
    success: bool
    data: Optional[Any] = None
    transaction_hash: Optional[str] = None
    gas_used: Optional[str] = None
    error: Optional[str] = None
    warnings: list[str] = []
    errors: list[str] = []


class IPFSUploadResult(BaseModel):
    hash: str = ""
    url: str = ""
    size: int = 0
    uploaded: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# Progress / errors
# ─────────────────────────────────────────────────────────────────────────────
class AIContractError(BaseModel):
    code: str
    message: str
    source: ErrorSource
    details: Optional[Any] = None
    retryable: bool = False


class IntegrationStatus(BaseModel):
    phase: IntegrationPhase
    progress: float = Field(..., ge=0, le=100)
    current_step: str
    errors: list[AIContractError] = []
    warnings: list[str] = []
    estimated_time_remaining: Optional[float] = None


class ValidationError(BaseModel):
    field: str
    message: str
    code: str
    value: Optional[Any] = None


class ConfigValidationResult(BaseModel):
    valid: bool
    errors: list[ValidationError] = []
    warnings: list[str] = []
    missing_required: list[str] = []


# ─────────────────────────────────────────────────────────────────────────────
# Events
# ─────────────────────────────────────────────────────────────────────────────
class SkillMintedEvent(BaseModel):
    token_id: str
    recipient: str
    category: str
    subcategory: str
    level: int
    ai_confidence: float
    verification_source: EvidenceSource
    timestamp: int = Field(default_factory=now_ms)


class ReputationUpdatedEvent(BaseModel):
    user_address: str
    category: str
    old_score: float
    new_score: float
    ai_confidence: float
    evidence: str
    timestamp: int = Field(default_factory=now_ms)


class VerificationCompletedEvent(BaseModel):
    user_address: str
    total_skills_detected: int
    skills_minted: int
    reputation_updates: int
    overall_confidence: float
    verification_sources: list[str]
    timestamp: int = Field(default_factory=now_ms)


class VerifyAndMintResult(BaseModel):
    success: bool
    verification_result: Optional[VerificationResult] = None
    minting_result: Optional[SkillMintingResult] = None
    event: Optional[VerificationCompletedEvent] = None
    errors: list[str] = []


ProgressCallback = Callable[[IntegrationStatus], None]


def report_progress(
    on_progress: Optional[ProgressCallback],
    phase: IntegrationPhase,
    progress: float,
    step: str,
    errors: Optional[list[AIContractError]] = None,
    warnings: Optional[list[str]] = None,
) -> None:
    if on_progress is None:
        return
    on_progress(IntegrationStatus(
        phase=phase,
        progress=progress,
        current_step=step,
        errors=errors or [],
        warnings=warnings or [],
    ))
