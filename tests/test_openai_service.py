from pathlib import Path
import asyncio
import json
import sys

import httpx

sys.path.append(str(Path(__file__).resolve().parents[1]))

from ai_integrations.models import (
    Evidence,
    EvidenceType,
    GitHubRepository,
    SkillCategory,
    SkillDetection,
    VerificationSource,
)
from ai_integrations.openai_service import OpenAIService

REPO = GitHubRepository(id=9, name="dapp", full_name="octocat/dapp", language="Solidity")


def _reply(content: dict):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(content)}}]})

    return handler


def _service(handler, api_key: str = "sk-test") -> OpenAIService:
    return OpenAIService(api_key=api_key, transport=httpx.MockTransport(handler), call_pause=0)


def _skill(confidence: float) -> SkillDetection:
    source = VerificationSource(platform="github", source_id="octocat/dapp", confidence=confidence)
    return SkillDetection(
        id="s1",
        skill="Solidity",
        category=SkillCategory.BLOCKCHAIN,
        confidence=confidence,
        sources=[source],
        evidence=[Evidence(type=EvidenceType.REPOSITORY, description="Primary language", source=source, weight=0.8)],
    )


def test_repository_analysis_builds_detections():
    service = _service(_reply({"skills": [
        {"name": "Smart Contracts", "category": "blockchain", "confidence": 99, "reasoning": "audits", "marketValue": 200},
        {"name": "Hardhat", "category": "build-tool", "confidence": 60, "marketValue": 120},
    ]}))
    skills = asyncio.run(service.analyze_repository_with_ai(REPO, []))

    assert [s.id for s in skills] == ["openai-9-smart-contracts-0", "openai-9-hardhat-1"]
    assert skills[0].confidence == 95
    assert skills[0].market_value.market_demand == "high"
    assert skills[0].evidence[0].metadata["repository_context"] == "dapp"
    assert skills[1].category == SkillCategory.TOOL
    assert skills[1].market_value.market_demand == "medium"


def test_request_shape():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

    asyncio.run(_service(handler).analyze_code_quality([]))

    assert seen["path"].endswith("/chat/completions")
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert seen["body"]["messages"][0]["role"] == "system"


def test_no_key_uses_fallbacks():
    service = _service(_reply({}), api_key="")

    assert asyncio.run(service.analyze_repository_with_ai(REPO, [])) == []
    assert asyncio.run(service.analyze_code_quality([]))["quality_score"] == 75
    assert asyncio.run(service.analyze_skill_market("Rust"))["demand"] == "medium"
    skills = [_skill(80)]
    assert asyncio.run(service.enhance_skill_confidence(skills, {})) is skills


def test_failed_call_degrades_gracefully():
    def broken(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "overloaded"})

    service = _service(broken)
    quality = asyncio.run(service.analyze_code_quality([]))
    market = asyncio.run(service.analyze_skill_market("Rust"))

    assert quality["strengths"] == ["Regular development activity"]
    assert market["trends"] == ["Market analysis unavailable"]
    assert asyncio.run(service.analyze_repository_with_ai(REPO, [])) == []


def test_enhancement_keeps_seventy_percent_floor():
    service = _service(_reply({"adjustedConfidence": 40, "reasoning": "thin evidence"}))
    skills = asyncio.run(service.enhance_skill_confidence([_skill(90)], {"languages": ["Solidity"]}))

    assert skills[0].confidence == 63
    assert skills[0].evidence[-1].type == EvidenceType.AI_ANALYSIS
    assert skills[0].evidence[-1].source.platform == "openai"


def test_market_analysis_maps_camel_case():
    service = _service(_reply({
        "demand": "high", "salaryRange": {"min": 90000, "max": 150000}, "trends": ["DeFi"], "recommendations": [],
    }))
    market = asyncio.run(service.analyze_skill_market("Solidity"))
    assert market["salary_range"] == {"min": 90000, "max": 150000}
    assert market["demand"] == "high"


def test_malformed_repository_skills_are_skipped_or_defaulted():
    service = _service(_reply({"skills": [
        {"name": "Solidity", "category": "blockchain", "confidence": 80, "marketValue": "$150k"},
        "not a skill",
        {"name": "Foundry", "confidence": "very"},
    ]}))
    skills = asyncio.run(service.analyze_repository_with_ai(REPO, []))

    assert [s.skill for s in skills] == ["Solidity"]
    assert skills[0].market_value.estimated_value == 100
    assert skills[0].market_value.market_demand == "low"


def test_non_numeric_adjusted_confidence_leaves_skill_untouched():
    service = _service(_reply({"adjustedConfidence": "high", "reasoning": "?"}))
    skills = asyncio.run(service.enhance_skill_confidence([_skill(90)], {}))

    assert skills[0].confidence == 90
    assert len(skills[0].evidence) == 1


def test_malformed_market_reply_falls_back():
    service = _service(_reply({"demand": "high", "salaryRange": "100k-150k", "trends": "up"}))
    assert asyncio.run(service.analyze_skill_market("Rust")) == {
        "demand": "medium",
        "salary_range": {"min": 60000, "max": 120000},
        "trends": ["Stable demand"],
        "recommendations": ["Continue skill development"],
    }


def test_non_object_reply_uses_fallbacks():
    service = _service(_reply(["skills"]))

    assert asyncio.run(service.analyze_repository_with_ai(REPO, [])) == []
    assert asyncio.run(service.analyze_skill_market("Rust"))["trends"] == ["Market analysis unavailable"]
