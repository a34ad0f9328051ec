from pathlib import Path
import asyncio
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from contracts.models import ContractCallResult, ContractErrorInfo
from integration.minting import SkillMintingService
from integration.models import (
    AISkillData,
    IntegrationPhase,
    IPFSUploadResult,
    MintingOptions,
    SkillEvidence,
    SkillMintingRequest,
    VerificationResult,
)

USER = "0x" + "ab" * 20


class FakeSkillToken:
    def __init__(self, fail_batches: int = 0) -> None:
        self.mints = []
        self.batches = []
        self.fail_batches = fail_batches
        self._next = 0

    def _ids(self, n: int) -> list[str]:
        ids = [str(self._next + i) for i in range(n)]
        self._next += n
        return ids

    async def mint_skill_token(self, params):
        self.mints.append(params)
        return ContractCallResult(success=True, data={"token_id": self._ids(1)[0]}, transaction_hash=f"0xtx{len(self.mints)}")

    async def batch_mint_skill_tokens(self, params):
        self.batches.append(params)
        if len(self.batches) <= self.fail_batches:
            return ContractCallResult(success=False, error=ContractErrorInfo(code="NETWORK_ERROR", message="backend down"))
        return ContractCallResult(
            success=True, data={"token_ids": self._ids(len(params.categories))}, transaction_hash=f"0xbatch{len(self.batches)}"
        )

    def get_contract_address(self):
        return "0x" + "11" * 20


class FakeIPFS:
    def __init__(self, uploaded: bool = True) -> None:
        self.endpoint = "https://ipfs.test/add"
        self.uploaded = uploaded
        self.uploads = []

    @property
    def enabled(self):
        return True

    async def upload(self, data):
        self.uploads.append(data)
        if not self.uploaded:
            return IPFSUploadResult()
        return IPFSUploadResult(hash=f"Qm{len(self.uploads)}", url="", size=len(data), uploaded=True)


def _skill(sub: str, confidence: float = 0.9, category: str = "Programming") -> AISkillData:
    return AISkillData(
        category=category, subcategory=sub, level=60, confidence=confidence, evidence=SkillEvidence(source="github")
    )


def _request(skills, **options) -> SkillMintingRequest:
    return SkillMintingRequest(
        user_address=USER,
        ai_skills=skills,
        verification_result=VerificationResult(),
        options=MintingOptions(**options),
    )


def test_optimize_filters_sorts_and_dedupes():
    skills = [_skill("Python", 0.8), _skill("Rust", 0.95), _skill("Python", 0.9), _skill("PHP", 0.5)]
    optimized = SkillMintingService.optimize_skills_for_minting(skills)

    assert [(s.subcategory, s.confidence) for s in optimized] == [("Rust", 0.95), ("Python", 0.9)]


def test_batch_minting_splits_into_batches_of_ten():
    token = FakeSkillToken()
    service = SkillMintingService(token)
    skills = [_skill(f"Skill{i:02d}", 0.9 - i * 0.001) for i in range(12)]
    events = []

    result = asyncio.run(service.mint_skills_from_ai(_request(skills), events.append))

    assert result.success
    assert len(result.token_ids) == 12
    assert [len(b.categories) for b in token.batches] == [10, 2]
    assert result.transaction_hash == "0xbatch1"
    assert [e.progress for e in events] == [0, 20, 40, 50, 70, 100]
    assert events[-1].phase == IntegrationPhase.COMPLETED


def test_single_skill_uses_individual_mint():
    token = FakeSkillToken()
    result = asyncio.run(SkillMintingService(token).mint_skills_from_ai(_request([_skill("Python")])))

    assert result.token_ids == ["0"]
    assert len(token.mints) == 1
    assert token.batches == []


def test_batch_failure_is_collected_and_minting_continues():
    token = FakeSkillToken(fail_batches=1)
    skills = [_skill(f"Skill{i:02d}") for i in range(12)]
    events = []

    result = asyncio.run(SkillMintingService(token).mint_skills_from_ai(_request(skills), events.append))

    assert result.success
    assert len(result.token_ids) == 2
    assert result.errors == ["backend down"]
    assert result.transaction_hash == "0xbatch2"
    assert events[-1].errors[0].code == "GENERIC_ERROR"


def test_invalid_request_returns_errors_without_minting():
    token = FakeSkillToken()
    request = SkillMintingRequest(user_address="0xbad", ai_skills=[_skill("Python")])

    result = asyncio.run(SkillMintingService(token).mint_skills_from_ai(request))

    assert not result.success
    assert "Invalid user address" in result.errors
    assert token.mints == [] and token.batches == []


def test_low_confidence_only_is_rejected():
    result = asyncio.run(SkillMintingService(FakeSkillToken()).mint_skills_from_ai(_request([_skill("PHP", 0.5)])))
    assert result.errors == ["No skills passed confidence threshold"]


def test_ipfs_token_uri_when_requested():
    token = FakeSkillToken()
    ipfs = FakeIPFS()
    service = SkillMintingService(token, ipfs=ipfs)

    result = asyncio.run(service.mint_skills_from_ai(_request([_skill("Python")], include_ipfs=True)))

    assert result.ipfs_hashes == ["Qm1"]
    assert token.mints[0].token_uri == "ipfs://Qm1"


def test_ipfs_failure_falls_back_with_warning():
    token = FakeSkillToken()
    service = SkillMintingService(token, ipfs=FakeIPFS(uploaded=False))

    result = asyncio.run(service.mint_skills_from_ai(_request([_skill("Python")], include_ipfs=True)))

    assert result.success
    assert result.warnings == ["Failed to upload metadata to IPFS for Python"]
    assert token.mints[0].token_uri.startswith("{")


def test_per_skill_exception_is_collected():
    class Broken(FakeSkillToken):
        async def mint_skill_token(self, params):
            raise RuntimeError("boom")

    events = []
    result = asyncio.run(SkillMintingService(Broken()).mint_skills_from_ai(_request([_skill("Python")]), events.append))

    assert not result.success
    assert result.errors == ["boom"]
    assert events[-1].phase == IntegrationPhase.COMPLETED


def test_preview_and_estimate():
    service = SkillMintingService(FakeSkillToken())
    request = _request([_skill("Python"), _skill("Rust"), _skill("PHP", 0.4)], include_ipfs=True)

    preview = service.preview_minting(request)
    assert [s.subcategory for s in preview["skills_to_mint"]] == ["Python", "Rust"]
    assert [s.subcategory for s in preview["skills_filtered"]] == ["PHP"]
    assert preview["estimated_cost"]["estimated_gas"] == 50_000 + 2 * 80_000
    assert "1 skills filtered out due to low confidence" in preview["warnings"]
    assert "IPFS storage requested but no endpoint configured" in preview["warnings"]

    cost = SkillMintingService.estimate_minting_cost(request.ai_skills, batch_mint=False)
    assert cost["skills_count"] == 2
    assert cost["estimated_gas"] == 300_000


def test_preview_rejects_invalid_request():
    service = SkillMintingService(FakeSkillToken())
    with pytest.raises(ValueError):
        service.preview_minting(SkillMintingRequest(user_address="0xbad", ai_skills=[]))


def test_unexpected_exception_reports_failed_phase(monkeypatch):
    def explode(request):
        raise RuntimeError("validator crashed")

    monkeypatch.setattr("integration.minting.validate_minting_request", explode)
    events = []
    result = asyncio.run(SkillMintingService(FakeSkillToken()).mint_skills_from_ai(_request([_skill("Python")]), events.append))

    assert not result.success
    assert result.errors == ["validator crashed"]
    assert events[-1].phase == IntegrationPhase.FAILED
    assert events[-1].errors[0].code == "MINTING_FAILED"
