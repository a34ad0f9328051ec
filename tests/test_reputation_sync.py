from pathlib import Path
import asyncio
import json
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from contracts.models import ContractCallResult, ContractErrorInfo
from integration.models import (
    IntegrationPhase,
    IPFSUploadResult,
    ReputationEvidence,
    ReputationUpdateRequest,
    WorkAIAnalysis,
    WorkEvaluationRequest,
)
from integration.reputation_sync import ReputationSyncService, fallback_hash, to_ai_contract_error

USER = "0x" + "ab" * 20
ORACLE = "0x" + "33" * 20
IPFS_HASH = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


class FakeOracle:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.updates = []
        self.evaluations = []

    async def update_reputation_score(self, params):
        self.updates.append(params)
        if self.fail:
            return ContractCallResult(success=False, error=ContractErrorInfo(code="NETWORK_ERROR", message="backend down"))
        return ContractCallResult(success=True, transaction_hash="0xrep", gas_used="42000")

    async def submit_work_evaluation(self, params):
        self.evaluations.append(params)
        return ContractCallResult(success=True, data={"evaluation_id": "7"}, transaction_hash="0xeval")

    async def is_authorized_oracle(self, address):
        return ContractCallResult(success=True, data=address == ORACLE)

    async def get_minimum_oracle_stake(self):
        return ContractCallResult(success=False, error=ContractErrorInfo(code="NETWORK_ERROR", message="down"))

    def get_contract_address(self):
        return ORACLE


class FakeIPFS:
    def __init__(self, endpoint: str = "https://ipfs.test/add") -> None:
        self.endpoint = endpoint
        self.uploads = []

    @property
    def enabled(self):
        return bool(self.endpoint)

    async def upload(self, data):
        self.uploads.append(data)
        if not self.enabled:
            return IPFSUploadResult()
        return IPFSUploadResult(hash=IPFS_HASH, url=f"ipfs://{IPFS_HASH}", size=len(data), uploaded=True)


def _update(confidence: float = 0.9, **overrides) -> ReputationUpdateRequest:
    fields = {
        "user_address": USER,
        "category": "Programming",
        "new_score": 72,
        "evidence": ReputationEvidence(source="ai_verification", confidence=confidence, github_data={"repos": 4}),
    }
    fields.update(overrides)
    return ReputationUpdateRequest(**fields)


def _evaluation(**overrides) -> WorkEvaluationRequest:
    fields = {
        "user_address": USER,
        "skill_token_ids": ["1", "2"],
        "work_description": "Built the payments service",
        "work_content": "https://github.com/example/payments",
        "ai_analysis": WorkAIAnalysis(overall_score=7500, skill_scores=[7000, 8000], feedback="Good", confidence=0.9),
    }
    fields.update(overrides)
    return WorkEvaluationRequest(**fields)


def test_fallback_hash_is_stable():
    assert fallback_hash("") == "fallback_0"
    assert fallback_hash("a") == "fallback_61"
    assert fallback_hash("ab") == "fallback_c21"
    assert fallback_hash("evidence") == fallback_hash("evidence")


def test_error_conversion_defaults_code_from_source():
    error = to_ai_contract_error(None, "contract")
    assert error.code == "CONTRACT_ERROR"
    assert error.message == "contract error occurred"

    wrapped = to_ai_contract_error(ContractErrorInfo(code="NETWORK_ERROR", message="down"), "contract")
    assert wrapped.code == "NETWORK_ERROR"
    assert wrapped.retryable


def test_high_confidence_update_pins_evidence():
    oracle, ipfs = FakeOracle(), FakeIPFS()
    events = []
    result = asyncio.run(ReputationSyncService(oracle, ipfs=ipfs).update_reputation_from_ai(_update(), events.append))

    assert result.success
    assert result.transaction_hash == "0xrep"
    assert oracle.updates[0].evidence == f"ipfs://{IPFS_HASH}"
    assert oracle.updates[0].new_score == "72"
    assert [e.progress for e in events] == [0, 25, 50, 75, 100]
    assert json.loads(ipfs.uploads[0])["data"]["github_data"] == {"repos": 4}


def test_low_confidence_update_sends_inline_evidence():
    oracle, ipfs = FakeOracle(), FakeIPFS()
    events = []
    result = asyncio.run(ReputationSyncService(oracle, ipfs=ipfs).update_reputation_from_ai(_update(0.8), events.append))

    assert result.success
    assert ipfs.uploads == []
    assert json.loads(oracle.updates[0].evidence)["category"] == "Programming"
    assert 50 not in [e.progress for e in events]


def test_update_validation_errors_are_joined():
    oracle = FakeOracle()
    request = _update(user_address="0xbad", new_score=20000)
    result = asyncio.run(ReputationSyncService(oracle, ipfs=FakeIPFS("")).update_reputation_from_ai(request))

    assert not result.success
    assert result.error == "Invalid user address, New score must be between 0 and 10000"
    assert oracle.updates == []


def test_contract_failure_reports_failed_phase():
    events = []
    service = ReputationSyncService(FakeOracle(fail=True), ipfs=FakeIPFS(""))
    result = asyncio.run(service.update_reputation_from_ai(_update(), events.append))

    assert not result.success
    assert result.error == "backend down"
    assert events[-1].phase == IntegrationPhase.FAILED
    assert events[-1].errors[0].retryable


def test_work_evaluation_falls_back_to_local_hash():
    oracle = FakeOracle()
    events = []
    result = asyncio.run(
        ReputationSyncService(oracle, ipfs=FakeIPFS("")).submit_work_evaluation_from_ai(_evaluation(), events.append)
    )

    assert result.success
    assert result.data["evaluation_id"] == "7"
    assert result.data["ipfs_hash"].startswith("fallback_")
    assert oracle.evaluations[0].skill_scores == ["7000", "8000"]
    assert [e.progress for e in events] == [0, 20, 40, 70, 100]


def test_work_evaluation_uses_pinned_hash():
    oracle = FakeOracle()
    result = asyncio.run(ReputationSyncService(oracle, ipfs=FakeIPFS()).submit_work_evaluation_from_ai(_evaluation()))

    assert result.data["ipfs_hash"] == IPFS_HASH
    assert oracle.evaluations[0].ipfs_hash == IPFS_HASH


def test_work_evaluation_validation():
    request = _evaluation(
        work_description="short",
        ai_analysis=WorkAIAnalysis(overall_score=7500, skill_scores=[7000], confidence=1.5),
    )
    errors = ReputationSyncService.validate_work_evaluation(request)

    assert "Work description must be at least 10 characters" in errors
    assert "Skill scores must match skill token IDs count" in errors
    assert "AI confidence must be between 0 and 1" in errors


def test_batch_update_counts_outcomes():
    service = ReputationSyncService(FakeOracle(), ipfs=FakeIPFS(""))
    requests = [_update(), _update(user_address="0xbad"), _update(category="Design")]
    events = []

    result = asyncio.run(service.batch_update_reputations(requests, events.append))

    assert result.success
    assert result.data["successful"] == 2
    assert result.data["failed"] == 1
    assert events[-1].current_step == "Batch update completed: 2 successful, 1 failed"


def test_oracle_lookups_and_configuration():
    service = ReputationSyncService(FakeOracle(), ipfs=FakeIPFS(""))

    assert asyncio.run(service.is_authorized_oracle(ORACLE)) is True
    assert asyncio.run(service.is_authorized_oracle(USER)) is False
    assert asyncio.run(service.get_minimum_oracle_stake()) == "0"
    assert service.get_configuration() == {"has_ipfs": False, "ipfs_endpoint": "", "contract_address": ORACLE}


def test_zero_address_is_rejected():
    zero = "0x" + "0" * 40
    assert ReputationSyncService.validate_reputation_update(_update(user_address=zero)) == ["Invalid user address"]
    assert "Invalid user address" in ReputationSyncService.validate_work_evaluation(_evaluation(user_address=zero))
