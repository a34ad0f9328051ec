"""
Contracts — Parameter Validation
==================================

Client-side checks run before any call reaches the contract service.

Every validator returns a ``ValidationResult``. Errors block the call;
warnings are passed back to the caller alongside the result.
"""

from __future__ import annotations

import math
import re
import time
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from contracts.models import (
    CONTRACT_CONSTANTS,
    SKILL_CATEGORIES,
    BatchMintSkillTokensParams,
    MintSkillTokenParams,
    SubmitWorkEvaluationParams,
    UpdateReputationScoreParams,
    UpdateSkillLevelParams,
)

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
IPFS_HASH_RE = re.compile(r"^(Qm[1-9A-HJ-NP-Za-km-z]{44}|b[a-z2-7]{58})$")
FALLBACK_HASH_RE = re.compile(r"^fallback_[0-9a-f]+$")

ONE_YEAR = 365 * 24 * 60 * 60
MAX_EXPIRY_YEARS = 10
LARGE_BATCH_WARNING = 20


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def _result(errors: list[str], warnings: list[str] | None = None) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings or [])


# ─────────────────────────────────────────────────────────────────────────────
# Primitive checks
# ─────────────────────────────────────────────────────────────────────────────
def is_valid_address(address: Any) -> bool:
    return (
        isinstance(address, str)
        and bool(ADDRESS_RE.match(address))
        and address.lower() != CONTRACT_CONSTANTS.ZERO_ADDRESS
    )


def is_valid_level(level: Any) -> bool:
    return (
        isinstance(level, int)
        and not isinstance(level, bool)
        and CONTRACT_CONSTANTS.MIN_SKILL_LEVEL <= level <= CONTRACT_CONSTANTS.MAX_SKILL_LEVEL
    )


def is_valid_ipfs_hash(value: Any) -> bool:
    return isinstance(value, str) and bool(IPFS_HASH_RE.match(value))


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def is_valid_timestamp(ts: Any, max_years: int = MAX_EXPIRY_YEARS) -> bool:
    """Future timestamp (seconds) no further out than ``max_years``."""
    if not isinstance(ts, int) or isinstance(ts, bool):
        return False
    now = int(time.time())
    return now < ts <= now + max_years * ONE_YEAR


def _to_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def is_valid_amount(value: Any) -> bool:
    number = _to_float(value)
    return number is not None and number >= 0


def _is_empty(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _length_between(value: str, low: int, high: int) -> bool:
    return low <= len(value.strip()) <= high


def _score_in_range(value: Any) -> bool:
    number = _to_float(value)
    return number is not None and 0 <= number <= CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE


# ─────────────────────────────────────────────────────────────────────────────
# Standalone validators
# ─────────────────────────────────────────────────────────────────────────────
def validate_address(address: str) -> ValidationResult:
    if is_valid_address(address):
        return _result([])
    return _result(["Invalid address format"])


def validate_skill_level(level: int) -> ValidationResult:
    if is_valid_level(level):
        return _result([])
    return _result([
        f"Level must be between {CONTRACT_CONSTANTS.MIN_SKILL_LEVEL} "
        f"and {CONTRACT_CONSTANTS.MAX_SKILL_LEVEL}"
    ])


def validate_ipfs_hash(value: str) -> ValidationResult:
    if is_valid_ipfs_hash(value):
        return _result([])
    return _result(["Invalid IPFS hash format"])


def validate_url(value: str) -> ValidationResult:
    if is_valid_url(value):
        return _result([])
    return _result(["Invalid URL format"])


def validate_amount(
    amount: Any, min_value: float | None = None, max_value: float | None = None
) -> ValidationResult:
    if not is_valid_amount(amount):
        return _result(["Invalid amount format"])

    number = float(amount)
    errors: list[str] = []
    warnings: list[str] = []
    if min_value is not None and number < min_value:
        errors.append(f"Amount must be at least {min_value}")
    if max_value is not None and number > max_value:
        errors.append(f"Amount must be at most {max_value}")
    if number == 0:
        warnings.append("Amount is zero")
    return _result(errors, warnings)


# ─────────────────────────────────────────────────────────────────────────────
# Skill token
# ─────────────────────────────────────────────────────────────────────────────
class SkillTokenValidator:
    @staticmethod
    def _token_errors(
        category: str, subcategory: str, level: Any, expiry_date: Any, warnings: list[str]
    ) -> list[str]:
        errors: list[str] = []
        if _is_empty(category):
            errors.append("Category is required")
        elif category not in SKILL_CATEGORIES:
            warnings.append(f"Category '{category}' is not in the standard list")

        if _is_empty(subcategory):
            errors.append("Subcategory is required")
        elif not _length_between(subcategory, 2, 50):
            errors.append("Subcategory must be between 2 and 50 characters")

        if not is_valid_level(level):
            errors.append(
                f"Level must be between {CONTRACT_CONSTANTS.MIN_SKILL_LEVEL} "
                f"and {CONTRACT_CONSTANTS.MAX_SKILL_LEVEL}"
            )
        if not is_valid_timestamp(expiry_date):
            errors.append(
                f"Expiry date must be in the future and within {MAX_EXPIRY_YEARS} years"
            )
        return errors

    @classmethod
    def mint(cls, params: MintSkillTokenParams) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not is_valid_address(params.recipient):
            errors.append("Invalid recipient address")
        errors += cls._token_errors(
            params.category, params.subcategory, params.level, params.expiry_date, warnings
        )

        if _is_empty(params.metadata):
            warnings.append("Metadata is empty")
        elif len(params.metadata) > 1000:
            warnings.append("Metadata is very long - consider storing it on IPFS")

        if _is_empty(params.token_uri):
            warnings.append("Token URI is empty")
        elif not (is_valid_url(params.token_uri) or is_valid_ipfs_hash(params.token_uri)):
            warnings.append("Token URI is not a URL or IPFS hash")

        return _result(errors, warnings)

    @classmethod
    def batch_mint(cls, params: BatchMintSkillTokensParams) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not is_valid_address(params.recipient):
            errors.append("Invalid recipient address")

        lengths = {
            len(params.categories),
            len(params.subcategories),
            len(params.levels),
            len(params.expiry_dates),
            len(params.metadata_array),
            len(params.token_uris),
        }
        if len(lengths) > 1:
            errors.append("All arrays must have the same length")
            return _result(errors, warnings)

        count = len(params.categories)
        if count == 0:
            errors.append("Cannot mint zero tokens")
        elif count > CONTRACT_CONSTANTS.MAX_BATCH_SIZE:
            errors.append(f"Cannot mint more than {CONTRACT_CONSTANTS.MAX_BATCH_SIZE} tokens at once")
        elif count > LARGE_BATCH_WARNING:
            warnings.append("Large batch size may result in high gas costs")

        for i in range(count):
            token_warnings: list[str] = []
            token_errors = cls._token_errors(
                params.categories[i],
                params.subcategories[i],
                params.levels[i],
                params.expiry_dates[i],
                token_warnings,
            )
            errors += [f"Token {i + 1}: {e}" for e in token_errors]
            warnings += [f"Token {i + 1}: {w}" for w in token_warnings]

        return _result(errors, warnings)

    @staticmethod
    def update_skill_level(params: UpdateSkillLevelParams) -> ValidationResult:
        errors: list[str] = []
        if _is_empty(params.token_id):
            errors.append("Token ID is required")
        if not is_valid_level(params.new_level):
            errors.append(
                f"Level must be between {CONTRACT_CONSTANTS.MIN_SKILL_LEVEL} "
                f"and {CONTRACT_CONSTANTS.MAX_SKILL_LEVEL}"
            )
        if _is_empty(params.evidence):
            errors.append("Evidence is required for level updates")
        return _result(errors)


# ─────────────────────────────────────────────────────────────────────────────
# Reputation oracle
# ─────────────────────────────────────────────────────────────────────────────
class ReputationOracleValidator:
    @staticmethod
    def update_reputation_score(params: UpdateReputationScoreParams) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not is_valid_address(params.user):
            errors.append("Invalid user address")

        if _is_empty(params.category):
            errors.append("Category is required")
        elif params.category not in SKILL_CATEGORIES:
            warnings.append(f"Category '{params.category}' is not in the standard list")

        if not _score_in_range(params.new_score):
            errors.append(
                f"New score must be between 0 and {CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE}"
            )

        if _is_empty(params.evidence):
            errors.append("Evidence is required for reputation score updates")
        elif len(params.evidence.strip()) < 10:
            errors.append("Evidence must be at least 10 characters")
        elif len(params.evidence) > 500:
            warnings.append("Evidence is very long - consider storing it on IPFS")

        return _result(errors, warnings)

    @staticmethod
    def submit_work_evaluation(params: SubmitWorkEvaluationParams) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        max_score = CONTRACT_CONSTANTS.MAX_REPUTATION_SCORE

        if not is_valid_address(params.user):
            errors.append("Invalid user address")

        if not params.skill_token_ids:
            errors.append("At least one skill token must be evaluated")
        elif len(params.skill_token_ids) > 10:
            warnings.append("Evaluating many skills at once may reduce evaluation quality")

        if _is_empty(params.work_description):
            errors.append("Work description is required")
        elif not _length_between(params.work_description, 10, 500):
            errors.append("Work description must be between 10 and 500 characters")

        if _is_empty(params.work_content):
            warnings.append("Work content is empty - consider providing evidence or links")
        elif len(params.work_content) > 2000:
            warnings.append("Work content is very long - consider using IPFS for large content")

        if not _score_in_range(params.overall_score):
            errors.append(f"Overall score must be between 0 and {max_score}")

        if len(params.skill_scores) != len(params.skill_token_ids):
            errors.append("Skill scores array must match skill token IDs array length")
        else:
            for i, score in enumerate(params.skill_scores):
                if not _score_in_range(score):
                    errors.append(f"Skill score {i + 1} must be between 0 and {max_score}")

        if _is_empty(params.feedback):
            warnings.append("Feedback is empty - providing feedback improves evaluation quality")
        elif not _length_between(params.feedback, 10, 1000):
            warnings.append("Feedback should be between 10 and 1000 characters for best value")

        if _is_empty(params.ipfs_hash):
            errors.append("IPFS hash is required for evaluation evidence")
        elif FALLBACK_HASH_RE.match(params.ipfs_hash):
            warnings.append("Evaluation evidence is a local content hash, not pinned to IPFS")
        elif not is_valid_ipfs_hash(params.ipfs_hash):
            errors.append("Invalid IPFS hash format")

        return _result(errors, warnings)
