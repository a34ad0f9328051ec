"""TalentChain Contracts — Package."""

from contracts.api_client import ApiError, TalentChainApiClient
from contracts.errors import ContractError
from contracts.models import (
    CONTRACT_CONSTANTS,
    SKILL_CATEGORIES,
    ContractCallResult,
    MintSkillTokenParams,
    BatchMintSkillTokensParams,
    UpdateSkillLevelParams,
    UpdateReputationScoreParams,
    SubmitWorkEvaluationParams,
    SkillData,
)
from contracts.reputation_oracle import ReputationOracleService
from contracts.skill_token import SkillTokenService

__all__ = [
    "ApiError",
    "TalentChainApiClient",
    "ContractError",
    "CONTRACT_CONSTANTS",
    "SKILL_CATEGORIES",
    "ContractCallResult",
    "MintSkillTokenParams",
    "BatchMintSkillTokensParams",
    "UpdateSkillLevelParams",
    "UpdateReputationScoreParams",
    "SubmitWorkEvaluationParams",
    "SkillData",
    "ReputationOracleService",
    "SkillTokenService",
]
