from pathlib import Path
import asyncio
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from ai_integrations.models import (
    APIResponse,
    Evidence,
    EvidenceType,
    LinkedInPosition,
    LinkedInProfile,
    LinkedInSkill,
    MarketInsight,
    ScanStage,
    SkillCategory,
    SkillDetection,
    VerificationSource,
)
from ai_integrations.verification import AIVerificationService, categorize_skill, estimate_time_remaining


def _detection(skill: str, *confidences: float, sources: int = 1) -> SkillDetection:
    evidence = [
        Evidence(
            type=EvidenceType.REPOSITORY,
            description=f"{skill} evidence {i}",
            source=VerificationSource(platform="github", source_id=f"repo-{i}", confidence=c),
            weight=1.0,
        )
        for i, c in enumerate(confidences)
    ]
    return SkillDetection(
        id=skill.lower(),
        skill=skill,
        category=SkillCategory.PROGRAMMING,
        confidence=confidences[0],
        sources=[VerificationSource(platform="github", source_id=f"src-{i}") for i in range(sources)],
        evidence=evidence,
    )


class FakeGitHubAPI:
    def __init__(self, valid: bool = True) -> None:
        self.valid = valid

    async def validate_token(self):
        return self.valid


class FakeAnalyzer:
    def __init__(self, skills) -> None:
        self.skills = skills

    async def analyze_user_skills(self, username):
        return self.skills


class FakeLinkedIn:
    def __init__(self, profile: LinkedInProfile) -> None:
        self.profile = profile

    async def validate_token(self):
        return True

    async def get_complete_profile(self):
        return APIResponse(success=True, data=self.profile)


class BrokenOpenAI:
    async def enhance_skill_confidence(self, skills, context):
        raise RuntimeError("quota exceeded")

    async def analyze_skill_market(self, skill):
        return {"demand": "high", "salary_range": {"min": 100, "max": 200}}


def _service(github_skills=None, valid_token: bool = True, **kwargs) -> AIVerificationService:
    service = AIVerificationService(**kwargs)
    service.github_api = FakeGitHubAPI(valid_token)
    service.github_analyzer = FakeAnalyzer(github_skills or [])
    return service


def test_helpers():
    assert categorize_skill("Python") == SkillCategory.PROGRAMMING
    assert categorize_skill("Figma") == SkillCategory.TOOL
    assert estimate_time_remaining(0) == 120
    assert estimate_time_remaining(50) == 60
    assert estimate_time_remaining(100) == 0


def test_final_confidence_adds_source_and_evidence_bonuses():
    skill = _detection("Python", 80, 60, sources=2)
    skill.evidence[1].weight = 0.25
    scored = AIVerificationService.final_confidence(skill)

    assert scored.confidence == 76 + 5 + 3
    assert skill.confidence == 80


def test_final_confidence_caps_at_95():
    scored = AIVerificationService.final_confidence(_detection("Rust", 95, 95, 95, 95, 95, 95, sources=4))
    assert scored.confidence == 95


def test_filter_and_rank():
    service = AIVerificationService(config={"max_skills_to_process": 2})
    skills = [_detection("A", 72), _detection("B", 90), _detection("C", 65), _detection("D", 90, 90)]
    ranked = service.filter_and_rank(skills)
    assert [s.skill for s in ranked] == ["D", "B"]


def test_overall_confidence_and_recommendations():
    skills = [_detection("Python", 92, 92, 92), _detection("Go", 75)]
    assert AIVerificationService.overall_confidence(skills) == round((92 * 3 + 75) / 4)
    assert AIVerificationService.overall_confidence([]) == 0

    recs = AIVerificationService.recommendations(skills, [MarketInsight(skill="Python", demand="high")])
    assert recs == [
        "Leverage your strongest skills: Python",
        "Build more evidence for: Go",
        "Focus on high-demand skills: Python",
    ]


def test_linkedin_skills_and_experience_text():
    profile = LinkedInProfile(
        id="li-1",
        skills=[LinkedInSkill(name="Python", endorsements=10), LinkedInSkill(name="  ")],
        positions=[LinkedInPosition(id="p1", company_name="Acme", description="Shipped docker images")],
    )
    skills = AIVerificationService().extract_linkedin_skills(profile)
    by_id = {s.id: s for s in skills}

    assert by_id["linkedin-skill-python"].confidence == 80
    assert by_id["linkedin-skill-python"].evidence[0].weight == 1.0
    assert by_id["linkedin-exp-p1-devops"].confidence == 65
    assert by_id["linkedin-exp-p1-devops"].evidence[0].metadata["context"] == "Experience at Acme"


def test_requires_a_source():
    stages = []
    with pytest.raises(ValueError):
        asyncio.run(AIVerificationService().verify_all_skills(on_progress=lambda p: stages.append(p.stage)))
    assert stages == [ScanStage.INITIALIZING, ScanStage.ERROR]


def test_github_scan_end_to_end():
    service = _service([_detection("Python", 85)])
    progress = []

    result = asyncio.run(service.verify_all_skills(
        github="octocat", on_progress=progress.append, enable_ai=False, enable_market_analysis=False,
    ))

    assert [s.id for s in result.skills_detected] == ["github-python"]
    assert result.overall_confidence == 85
    assert result.sources_analyzed == 1
    assert result.recommended_actions == ["Build more evidence for: Python"]
    assert [p.progress for p in progress] == [0, 20, 25, 30, 85, 95, 100]
    assert progress[-1].stage == ScanStage.COMPLETE


def test_invalid_github_token_is_recorded_and_scan_continues():
    profile = LinkedInProfile(id="li-1", skills=[LinkedInSkill(name="Rust", endorsements=8)])
    service = _service([_detection("Python", 85)], valid_token=False, linkedin_api=FakeLinkedIn(profile))

    result = asyncio.run(service.verify_all_skills(
        github="octocat", linkedin="jane", enable_ai=False, enable_market_analysis=False,
    ))

    assert [s.skill for s in result.skills_detected] == ["Rust"]
    assert result.sources_analyzed == 1
    assert service.errors[0].source == "github"
    assert "GitHub token is invalid" in service.errors[0].error


def test_ai_failure_is_low_severity_and_market_insights_collected():
    service = _service([_detection("Python", 85)], openai=BrokenOpenAI())
    result = asyncio.run(service.verify_all_skills(github="octocat"))

    assert service.errors[0].source == "ai_processing"
    assert service.errors[0].severity == "low"
    assert result.market_insights[0].avg_salary == 150
    assert "Focus on high-demand skills: Python" in result.recommended_actions


class PartialMarketOpenAI:
    async def enhance_skill_confidence(self, skills, context):
        return skills

    async def analyze_skill_market(self, skill):
        if skill == "Go":
            raise RuntimeError("rate limited")
        return {"demand": "high", "salary_range": {"min": 100, "max": 200}}


def test_failed_market_lookup_keeps_other_insights():
    service = _service([_detection("Python", 90), _detection("Go", 85)], openai=PartialMarketOpenAI())
    result = asyncio.run(service.verify_all_skills(github="octocat", enable_ai=False))

    assert [i.skill for i in result.market_insights] == ["Python"]
    assert result.market_insights[0].avg_salary == 150
    assert service.errors == []
