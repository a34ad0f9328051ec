"""
Contracts — Data Models
=========================

Parameter and result models for the SkillToken and ReputationOracle
contracts, plus protocol constants shared with the contract layer.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
class CONTRACT_CONSTANTS:
    MAX_SKILL_LEVEL = 100
    MIN_SKILL_LEVEL = 1
    MAX_REPUTATION_SCORE = 10000
    MIN_ORACLE_STAKE = "1000000000"
    CHALLENGE_PERIOD = 7 * 24 * 60 * 60
    RESOLUTION_PERIOD = 3 * 24 * 60 * 60
    REPUTATION_DECAY_PERIOD = 30 * 24 * 60 * 60
    MAX_BATCH_SIZE = 50
    ZERO_ADDRESS = "0x" + "0" * 40


SKILL_CATEGORIES: tuple[str, ...] = (
    "Programming",
    "Design",
    "Marketing",
    "Data Science",
    "Business",
    "Engineering",
    "Research",
    "Communication",
    "Management",
    "Sales",
)


# ─────────────────────────────────────────────────────────────────────────────
# Skill Token
# ─────────────────────────────────────────────────────────────────────────────
class SkillData(BaseModel):
    token_id: str
    owner: Optional[str] = None
    category: str
    subcategory: str
    level: int
    expiry_date: int = 0
    metadata: str = ""
    token_uri: str = ""
    is_active: bool = True


class MintSkillTokenParams(BaseModel):
    recipient: str
    category: str
    subcategory: str
    level: int
    expiry_date: int
    metadata: str
    token_uri: str


class BatchMintSkillTokensParams(BaseModel):
    recipient: str
    categories: list[str]
    subcategories: list[str]
    levels: list[int]
    expiry_dates: list[int]
    metadata_array: list[str]
    token_uris: list[str]


class UpdateSkillLevelParams(BaseModel):
    token_id: str
    new_level: int
    evidence: str


# ─────────────────────────────────────────────────────────────────────────────
# Reputation Oracle
# ─────────────────────────────────────────────────────────────────────────────
class UpdateReputationScoreParams(BaseModel):
    user: str
    category: str
    new_score: str
    evidence: str


class SubmitWorkEvaluationParams(BaseModel):
    user: str
    skill_token_ids: list[str]
    work_description: str
    work_content: str
    overall_score: str
    skill_scores: list[str]
    feedback: str
    ipfs_hash: str


# ─────────────────────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────────────────────
class ContractErrorInfo(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ContractCallResult(BaseModel):
    """Outcome of one contract call made through the backend service."""
    success: bool
    data: Optional[Any] = None
    transaction_hash: Optional[str] = None
    gas_used: Optional[str] = None
    error: Optional[ContractErrorInfo] = None
    warnings: list[str] = Field(default_factory=list)
