"""AI ↔ Contract Integration — Package."""

from integration.bridge import AIContractBridge, create_ai_contract_bridge
from integration.ipfs import IPFSClient
from integration.minting import SkillMintingService
from integration.models import (
    AISkillData,
    IntegrationPhase,
    IntegrationStatus,
    SkillMappingConfig,
    VerificationBridgeConfig,
    VerificationResult,
)
from integration.reputation_sync import ReputationSyncService
from integration.skill_mapping import DEFAULT_SKILL_MAPPINGS, SkillMapper, default_mapping_config

__all__ = [
    "AIContractBridge",
    "create_ai_contract_bridge",
    "IPFSClient",
    "SkillMintingService",
    "AISkillData",
    "IntegrationPhase",
    "IntegrationStatus",
    "SkillMappingConfig",
    "VerificationBridgeConfig",
    "VerificationResult",
    "ReputationSyncService",
    "DEFAULT_SKILL_MAPPINGS",
    "SkillMapper",
    "default_mapping_config",
]
