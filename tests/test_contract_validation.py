from pathlib import Path
import sys
import time

sys.path.append(str(Path(__file__).resolve().parents[1]))

from contracts.models import (
    BatchMintSkillTokensParams,
    MintSkillTokenParams,
    SubmitWorkEvaluationParams,
    UpdateReputationScoreParams,
    UpdateSkillLevelParams,
)
from contracts.validation import (
    ReputationOracleValidator,
    SkillTokenValidator,
    is_valid_address,
    is_valid_ipfs_hash,
    is_valid_level,
    is_valid_timestamp,
    validate_amount,
    validate_url,
)

USER = "0x" + "ab" * 20
IPFS_HASH = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


def _expiry(days: int = 365) -> int:
    return int(time.time()) + days * 24 * 60 * 60


def _mint(**overrides) -> MintSkillTokenParams:
    params = {
        "recipient": USER,
        "category": "Programming",
        "subcategory": "Python",
        "level": 42,
        "expiry_date": _expiry(),
        "metadata": '{"skill": "python"}',
        "token_uri": "https://example.com/token/1",
    }
    params.update(overrides)
    return MintSkillTokenParams(**params)


def test_address_rules():
    assert is_valid_address(USER)
    assert not is_valid_address("0x" + "0" * 40)
    assert not is_valid_address("0x1234")
    assert not is_valid_address("ab" * 21)


def test_level_rejects_bool_and_out_of_range():
    assert is_valid_level(1)
    assert is_valid_level(100)
    assert not is_valid_level(0)
    assert not is_valid_level(101)
    assert not is_valid_level(True)


def test_ipfs_hash_and_url():
    assert is_valid_ipfs_hash(IPFS_HASH)
    assert not is_valid_ipfs_hash("QmShort")
    assert validate_url("https://ipfs.example.com/api").is_valid
    assert not validate_url("not a url").is_valid


def test_timestamp_window():
    now = int(time.time())
    assert is_valid_timestamp(now + 60)
    assert not is_valid_timestamp(now - 60)
    assert not is_valid_timestamp(now + 11 * 365 * 24 * 60 * 60)


def test_amount_bounds_and_zero_warning():
    result = validate_amount("0")
    assert result.is_valid
    assert result.warnings == ["Amount is zero"]
    assert not validate_amount("abc").is_valid
    assert validate_amount(5, min_value=10).errors == ["Amount must be at least 10"]


def test_mint_valid_params_pass():
    result = SkillTokenValidator.mint(_mint())
    assert result.is_valid
    assert result.errors == []


def test_mint_collects_every_error():
    result = SkillTokenValidator.mint(
        _mint(recipient="0x123", category="", subcategory="x", level=0, expiry_date=1)
    )
    assert not result.is_valid
    assert "Invalid recipient address" in result.errors
    assert "Category is required" in result.errors
    assert "Subcategory must be between 2 and 50 characters" in result.errors
    assert "Level must be between 1 and 100" in result.errors
    assert any(e.startswith("Expiry date") for e in result.errors)


def test_mint_nonstandard_category_and_json_uri_only_warn():
    result = SkillTokenValidator.mint(_mint(category="Blockchain", token_uri='{"name": "x"}'))
    assert result.is_valid
    assert "Category 'Blockchain' is not in the standard list" in result.warnings
    assert "Token URI is not a URL or IPFS hash" in result.warnings


def test_batch_mint_length_mismatch_short_circuits():
    params = BatchMintSkillTokensParams(
        recipient=USER,
        categories=["Programming", "Programming"],
        subcategories=["Python"],
        levels=[10, 20],
        expiry_dates=[_expiry(), _expiry()],
        metadata_array=["{}", "{}"],
        token_uris=["https://a", "https://b"],
    )
    result = SkillTokenValidator.batch_mint(params)
    assert result.errors == ["All arrays must have the same length"]


def test_batch_mint_prefixes_token_errors():
    params = BatchMintSkillTokensParams(
        recipient=USER,
        categories=["Programming", "Programming"],
        subcategories=["Python", "Rust"],
        levels=[10, 500],
        expiry_dates=[_expiry(), _expiry()],
        metadata_array=["{}", "{}"],
        token_uris=["https://a", "https://b"],
    )
    result = SkillTokenValidator.batch_mint(params)
    assert result.errors == ["Token 2: Level must be between 1 and 100"]


def test_batch_mint_limits():
    def batch(n: int) -> BatchMintSkillTokensParams:
        return BatchMintSkillTokensParams(
            recipient=USER,
            categories=["Programming"] * n,
            subcategories=[f"Skill{i}" for i in range(n)],
            levels=[50] * n,
            expiry_dates=[_expiry()] * n,
            metadata_array=["{}"] * n,
            token_uris=["https://a"] * n,
        )

    assert SkillTokenValidator.batch_mint(batch(0)).errors == ["Cannot mint zero tokens"]
    assert "Cannot mint more than 50 tokens at once" in SkillTokenValidator.batch_mint(batch(51)).errors
    large = SkillTokenValidator.batch_mint(batch(25))
    assert large.is_valid
    assert "Large batch size may result in high gas costs" in large.warnings


def test_update_skill_level_requires_evidence():
    result = SkillTokenValidator.update_skill_level(
        UpdateSkillLevelParams(token_id="7", new_level=60, evidence=" ")
    )
    assert result.errors == ["Evidence is required for level updates"]


def test_reputation_update_long_evidence_is_only_a_warning():
    params = UpdateReputationScoreParams(
        user=USER, category="Programming", new_score="8000", evidence="x" * 800
    )
    result = ReputationOracleValidator.update_reputation_score(params)
    assert result.is_valid
    assert result.warnings == ["Evidence is very long - consider storing it on IPFS"]


def test_reputation_update_score_and_evidence_errors():
    params = UpdateReputationScoreParams(user=USER, category="Programming", new_score="10001", evidence="short")
    result = ReputationOracleValidator.update_reputation_score(params)
    assert "New score must be between 0 and 10000" in result.errors
    assert "Evidence must be at least 10 characters" in result.errors


def _evaluation(**overrides) -> SubmitWorkEvaluationParams:
    params = {
        "user": USER,
        "skill_token_ids": ["1", "2"],
        "work_description": "Built a payment service",
        "work_content": "https://github.com/example/payments",
        "overall_score": "7500",
        "skill_scores": ["7000", "8000"],
        "feedback": "Clean architecture and good tests",
        "ipfs_hash": IPFS_HASH,
    }
    params.update(overrides)
    return SubmitWorkEvaluationParams(**params)


def test_work_evaluation_valid():
    assert ReputationOracleValidator.submit_work_evaluation(_evaluation()).is_valid


def test_work_evaluation_accepts_fallback_hash_with_warning():
    result = ReputationOracleValidator.submit_work_evaluation(_evaluation(ipfs_hash="fallback_1a2b3c"))
    assert result.is_valid
    assert "Evaluation evidence is a local content hash, not pinned to IPFS" in result.warnings


def test_work_evaluation_errors():
    result = ReputationOracleValidator.submit_work_evaluation(
        _evaluation(skill_scores=["7000"], work_description="tiny", ipfs_hash="nope")
    )
    assert "Skill scores array must match skill token IDs array length" in result.errors
    assert "Work description must be between 10 and 500 characters" in result.errors
    assert "Invalid IPFS hash format" in result.errors
