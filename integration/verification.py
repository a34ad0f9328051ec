"""
Integration — Verification Utilities
======================================

Config and request validation, skill filtering/batching helpers,
token metadata generation, error classification and gas estimates.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from contracts.validation import is_valid_url, validate_address
from integration.models import (
    AISkillData,
    ConfigValidationResult,
    SkillMintingRequest,
    ValidationError,
    VerificationBridgeConfig,
    now_ms,
)

METADATA_VERSION = "1.0.0"
DICEBEAR_URL = "https://api.dicebear.com/7.x/shapes/svg?seed={seed}"

MIN_CONFIDENCE = 0.7
MAX_BATCH = 10
MAX_BRIDGE_BATCH = 50
MAX_RETRY_ATTEMPTS = 10
MAX_EXPIRY_YEARS = 10


class Gas:
    SINGLE_MINT = 150_000
    BATCH_PER_SKILL = 80_000
    BATCH_OVERHEAD = 50_000
    PRICE_GWEI = 20
    BLOCK_LIMIT = 8_000_000
    SAFE_BATCH_CAP = 20


RETRYABLE_ERROR_CODES = ("NETWORK_ERROR", "TIMEOUT_ERROR", "RATE_LIMITED", "TEMPORARY_FAILURE")

ERROR_SUGGESTIONS = {
    "validation": ["Check input parameters", "Verify data format", "Review skill mappings"],
    "network": ["Check internet connection", "Try again in a moment", "Verify RPC endpoint"],
    "contract": ["Check wallet connection", "Verify gas settings", "Ensure sufficient balance"],
    "ai": ["Check API keys", "Verify API rate limits", "Try with fewer skills"],
    "unknown": ["Try again", "Contact support", "Check logs for details"],
}


# ─────────────────────────────────────────────────────────────────────────────
# Configuration validation
# ─────────────────────────────────────────────────────────────────────────────
def validate_bridge_config(config: VerificationBridgeConfig) -> ConfigValidationResult:
    errors: list[ValidationError] = []
    warnings: list[str] = []
    missing: list[str] = []

    contracts = (
        ("skill_token", "SkillToken"),
        ("talent_pool", "TalentPool"),
        ("reputation_oracle", "ReputationOracle"),
    )
    for attr, label in contracts:
        field = f"contract_addresses.{attr}"
        address = getattr(config.contract_addresses, attr)
        if not address:
            missing.append(field)
        elif not validate_address(address).is_valid:
            errors.append(ValidationError(
                field=field,
                message=f"Invalid {label} contract address",
                code="INVALID_ADDRESS",
                value=address,
            ))

    ai = config.ai_config
    if not ai.github_api_key and not ai.linkedin_api_key:
        warnings.append("No GitHub or LinkedIn API keys provided - verification will be limited")
    if not ai.openai_api_key and not ai.huggingface_api_key:
        warnings.append("No AI model API keys provided - skill analysis will use basic methods")

    endpoint = config.ipfs_config.endpoint
    if not endpoint:
        warnings.append("No IPFS endpoint provided - metadata will not be stored on IPFS")
    elif not is_valid_url(endpoint):
        errors.append(ValidationError(
            field="ipfs_config.endpoint",
            message="Invalid IPFS endpoint URL",
            code="INVALID_URL",
            value=endpoint,
        ))

    mapping = config.skill_mapping_config
    if not mapping.mappings:
        errors.append(ValidationError(
            field="skill_mapping_config.mappings",
            message="No skill mappings provided",
            code="EMPTY_MAPPINGS",
            value=[],
        ))
    if not 0 <= mapping.minimum_confidence <= 1:
        errors.append(ValidationError(
            field="skill_mapping_config.minimum_confidence",
            message="Minimum confidence must be between 0 and 1",
            code="INVALID_RANGE",
            value=mapping.minimum_confidence,
        ))

    options = config.options
    if not 1 <= options.batch_size <= MAX_BRIDGE_BATCH:
        errors.append(ValidationError(
            field="options.batch_size",
            message=f"Batch size must be between 1 and {MAX_BRIDGE_BATCH}",
            code="INVALID_RANGE",
            value=options.batch_size,
        ))
    if not 0 <= options.retry_attempts <= MAX_RETRY_ATTEMPTS:
        errors.append(ValidationError(
            field="options.retry_attempts",
            message=f"Retry attempts must be between 0 and {MAX_RETRY_ATTEMPTS}",
            code="INVALID_RANGE",
            value=options.retry_attempts,
        ))

    return ConfigValidationResult(
        valid=not errors and not missing,
        errors=errors,
        warnings=warnings,
        missing_required=missing,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Skill / request validation
# ─────────────────────────────────────────────────────────────────────────────
def validate_skill_data(skill: AISkillData) -> list[ValidationError]:
    errors: list[ValidationError] = []
    if not skill.category.strip():
        errors.append(ValidationError(
            field="category", message="Category is required", code="REQUIRED_FIELD", value=skill.category
        ))
    if not skill.subcategory.strip():
        errors.append(ValidationError(
            field="subcategory", message="Subcategory is required", code="REQUIRED_FIELD",
            value=skill.subcategory,
        ))
    if not 1 <= skill.level <= 100:
        errors.append(ValidationError(
            field="level", message="Level must be an integer between 1 and 100", code="INVALID_RANGE",
            value=skill.level,
        ))
    if not 0 <= skill.confidence <= 1:
        errors.append(ValidationError(
            field="confidence", message="Confidence must be between 0 and 1", code="INVALID_RANGE",
            value=skill.confidence,
        ))
    if not skill.evidence.source:
        errors.append(ValidationError(
            field="evidence.source", message="Evidence source is required", code="REQUIRED_FIELD",
        ))
    if not skill.metadata.detected_at:
        errors.append(ValidationError(
            field="metadata.detected_at", message="Detection timestamp is required",
            code="REQUIRED_FIELD", value=skill.metadata.detected_at,
        ))
    return errors


def validate_minting_request(request: SkillMintingRequest) -> list[ValidationError]:
    errors: list[ValidationError] = []

    if not validate_address(request.user_address).is_valid:
        errors.append(ValidationError(
            field="user_address", message="Invalid user address", code="INVALID_ADDRESS",
            value=request.user_address,
        ))

    if not request.ai_skills:
        errors.append(ValidationError(
            field="ai_skills", message="At least one AI skill is required", code="EMPTY_ARRAY", value=[],
        ))
    for i, skill in enumerate(request.ai_skills):
        for err in validate_skill_data(skill):
            errors.append(err.model_copy(update={"field": f"ai_skills[{i}].{err.field}"}))

    if request.verification_result is None:
        errors.append(ValidationError(
            field="verification_result", message="Verification result is required",
            code="REQUIRED_FIELD",
        ))

    years = request.options.expiry_years
    if years <= 0 or years > MAX_EXPIRY_YEARS:
        errors.append(ValidationError(
            field="options.expiry_years",
            message=f"Expiry years must be between 1 and {MAX_EXPIRY_YEARS}",
            code="INVALID_RANGE",
            value=years,
        ))
    return errors


# ─────────────────────────────────────────────────────────────────────────────
# Filtering / batching
# ─────────────────────────────────────────────────────────────────────────────
def filter_high_confidence_skills(
    skills: list[AISkillData], minimum_confidence: float = MIN_CONFIDENCE
) -> list[AISkillData]:
    return [s for s in skills if s.confidence >= minimum_confidence]


def optimize_skills_for_batching(
    skills: list[AISkillData], max_batch_size: int = MAX_BATCH
) -> list[list[AISkillData]]:
    return [skills[i : i + max_batch_size] for i in range(0, len(skills), max_batch_size)]


def prioritize_skills_by_confidence(skills: list[AISkillData]) -> list[AISkillData]:
    return sorted(skills, key=lambda s: s.confidence, reverse=True)


def group_skills_by_category(skills: list[AISkillData]) -> dict[str, list[AISkillData]]:
    groups: dict[str, list[AISkillData]] = {}
    for skill in skills:
        groups.setdefault(skill.category, []).append(skill)
    return groups


# ─────────────────────────────────────────────────────────────────────────────
# Metadata
# ─────────────────────────────────────────────────────────────────────────────
def generate_skill_metadata(skill: AISkillData, additional: Optional[dict[str, Any]] = None) -> str:
    metadata = {
        "skill": {
            "category": skill.category,
            "subcategory": skill.subcategory,
            "level": skill.level,
            "confidence": skill.confidence,
        },
        "evidence": skill.evidence.model_dump(),
        "verification": {
            "detected_at": skill.metadata.detected_at,
            "verification_score": skill.metadata.verification_score,
            "ai_model": skill.metadata.ai_model,
        },
        "additional": additional or {},
        "version": METADATA_VERSION,
        "generated": now_ms(),
    }
    return json.dumps(metadata, indent=2)


def generate_token_uri(
    skill: AISkillData, ipfs_hash: Optional[str] = None, image_url: Optional[str] = None
) -> str:
    """ERC-721 style token metadata as a JSON string."""
    token = {
        "name": f"{skill.category} - {skill.subcategory}",
        "description": (
            f"Skill token representing {skill.subcategory} expertise in "
            f"{skill.category} with level {skill.level}"
        ),
        "image": image_url or DICEBEAR_URL.format(seed=f"{skill.category}-{skill.subcategory}"),
        "attributes": [
            {"trait_type": "Category", "value": skill.category},
            {"trait_type": "Subcategory", "value": skill.subcategory},
            {"trait_type": "Level", "value": skill.level, "max_value": 100},
            {"trait_type": "Confidence", "value": round(skill.confidence * 100), "max_value": 100},
            {"trait_type": "Source", "value": skill.evidence.source},
            {
                "trait_type": "Verification Score",
                "value": round(skill.metadata.verification_score * 100),
                "max_value": 100,
            },
        ],
        "properties": {
            "skill_data": skill.model_dump(mode="json", exclude={"metadata": {"raw_data"}}),
            "verification_hash": ipfs_hash,
        },
    }
    return json.dumps(token, indent=2)


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────
def _error_fields(error: Any) -> tuple[str, str]:
    if error is None:
        return "", ""
    if isinstance(error, dict):
        return str(error.get("code") or ""), str(error.get("message") or "")
    code = getattr(error, "code", None)
    message = getattr(error, "message", None)
    if message is None and isinstance(error, Exception):
        message = str(error)
    return str(code or ""), str(message or "")


def categorize_error(error: Any) -> str:
    """One of: validation, network, contract, ai, unknown."""
    code, message = _error_fields(error)
    if "VALIDATION" in code or "validation" in message:
        return "validation"
    if "NETWORK" in code or "network" in message:
        return "network"
    if "CONTRACT" in code or "revert" in message:
        return "contract"
    if "AI" in code or "API" in message:
        return "ai"
    return "unknown"


def is_retryable_error(error: Any) -> bool:
    code, _ = _error_fields(error)
    return any(c in code for c in RETRYABLE_ERROR_CODES)


def get_error_suggestion(error: Any) -> list[str]:
    return list(ERROR_SUGGESTIONS[categorize_error(error)])


# ─────────────────────────────────────────────────────────────────────────────
# Gas
# ─────────────────────────────────────────────────────────────────────────────
def estimate_gas_cost(skills_count: int, batch_minting: bool = True) -> dict[str, Any]:
    if batch_minting and skills_count > 1:
        gas = Gas.BATCH_OVERHEAD + skills_count * Gas.BATCH_PER_SKILL
    else:
        gas = skills_count * Gas.SINGLE_MINT

    if skills_count == 1:
        recommendation = "Single minting is most efficient for one skill"
    elif skills_count <= 5:
        recommendation = "Batch minting recommended for gas efficiency"
    elif skills_count <= 20:
        recommendation = "Consider splitting into smaller batches"
    else:
        recommendation = "Split into multiple batches to avoid gas limits"

    return {
        "estimated_gas": gas,
        "estimated_cost_eth": f"{gas * Gas.PRICE_GWEI / 1e9:.6f}",
        "recommendation": recommendation,
    }


def optimize_batch_size(
    skills_count: int,
    gas_limit: int = Gas.BLOCK_LIMIT,
    gas_per_skill: int = Gas.BATCH_PER_SKILL,
) -> int:
    return min(skills_count, gas_limit // gas_per_skill, Gas.SAFE_BATCH_CAP)
