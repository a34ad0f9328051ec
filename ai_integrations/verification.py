"""
AI Integrations — Verification Service
========================================

Orchestrates a full skill scan across GitHub and LinkedIn:

    1. GitHub analysis       (repositories, commits, topics)
    2. LinkedIn analysis     (listed skills, position descriptions)
    3. AI enhancement        (optional OpenAI re-rating)
    4. Confidence scoring    (evidence-weighted + multi-source bonuses)
    5. Market analysis       (top skills only)
    6. Filter, rank and summarise

A failure in any single source is recorded as a ScanError and the
scan continues with whatever the other sources produced.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from ai_integrations.github_analyzer import GitHubAnalyzer
from ai_integrations.github_api import GitHubAPIService
from ai_integrations.linkedin_api import LinkedInAPIService
from ai_integrations.models import (
    AIAnalysisResult,
    Evidence,
    EvidenceType,
    LinkedInProfile,
    MarketInsight,
    MarketValue,
    ScanError,
    ScanProgress,
    ScanStage,
    SkillCategory,
    SkillDetection,
    VerificationSource,
)
from ai_integrations.openai_service import OpenAIService
from ai_integrations.rules import (
    DEFAULT_CONFIG,
    DEFAULT_MARKET_VALUE,
    INITIAL_TIME_ESTIMATE,
    MARKET_VALUES,
    NAMED_SKILL_CATEGORY,
    SECONDS_PER_PERCENT,
    SKILL_PATTERNS,
    ConfidenceBonus,
    LinkedInHeuristics,
    Limits,
    Thresholds,
)

logger = logging.getLogger("ai_integrations.verification")

ProgressCallback = Callable[[ScanProgress], None]


def categorize_skill(name: str) -> SkillCategory:
    lower = name.lower()
    for category, names in NAMED_SKILL_CATEGORY.items():
        if lower in names:
            return category
    return SkillCategory.TOOL


def estimate_time_remaining(progress: float) -> int:
    if progress <= 0:
        return INITIAL_TIME_ESTIMATE
    if progress >= 100:
        return 0
    return round((100 - progress) * SECONDS_PER_PERCENT)


class AIVerificationService:
    """Runs every enabled source and produces one AIAnalysisResult."""

    def __init__(
        self,
        config: Optional[dict[str, Any]] = None,
        github_api: Optional[GitHubAPIService] = None,
        linkedin_api: Optional[LinkedInAPIService] = None,
        openai: Optional[OpenAIService] = None,
    ) -> None:
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        self.github_api = github_api or GitHubAPIService()
        self.github_analyzer = GitHubAnalyzer(self.github_api)
        self.linkedin_api = linkedin_api or LinkedInAPIService()
        self.openai = openai or OpenAIService()

        self._callback: Optional[ProgressCallback] = None
        self._errors: list[ScanError] = []

    # ─────────────────────────────────────────────────────────────────────
    # Main pipeline
    # ─────────────────────────────────────────────────────────────────────
    async def verify_all_skills(
        self,
        github: Optional[str] = None,
        linkedin: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        enable_ai: bool = True,
        enable_market_analysis: bool = True,
    ) -> AIAnalysisResult:
        """Scan the given sources and return ranked skill detections.

        Raises ValueError when neither source is supplied.
        """
        self._callback = on_progress
        self._errors = []
        started = time.monotonic()

        self._progress(ScanStage.INITIALIZING, 0, "Initializing verification services...")
        if not github and not linkedin:
            self._progress(ScanStage.ERROR, 0, "Verification failed")
            raise ValueError("At least one verification source (GitHub or LinkedIn) is required")

        enabled = self.config["enabled_sources"]
        skills: list[SkillDetection] = []
        sources_analyzed = 0

        if github and "github" in enabled:
            try:
                self._progress(ScanStage.GITHUB_PROFILE, 20, f"Analyzing GitHub profile: {github}")
                found = await self._analyze_github(github)
                skills.extend(found)
                sources_analyzed += 1
                logger.info("GitHub analysis complete: %d skills detected", len(found))
            except Exception as e:
                logger.error("GitHub analysis failed: %s", e)
                self._error("github", str(e) or "GitHub analysis failed", "medium")

        if linkedin and "linkedin" in enabled:
            try:
                self._progress(ScanStage.LINKEDIN_PROFILE, 50, "Analyzing LinkedIn profile...")
                found = await self._analyze_linkedin()
                skills.extend(found)
                sources_analyzed += 1
                logger.info("LinkedIn analysis complete: %d skills detected", len(found))
            except Exception as e:
                logger.error("LinkedIn analysis failed: %s", e)
                self._error("linkedin", str(e) or "LinkedIn analysis failed", "medium")

        if enable_ai:
            self._progress(ScanStage.AI_PROCESSING, 70, "Enhancing analysis with AI...")
            await self._enhance_with_ai(skills)

        self._progress(ScanStage.CONFIDENCE_SCORING, 85, "Calculating confidence scores...")
        scored = [self.final_confidence(s) for s in skills]

        insights: list[MarketInsight] = []
        if enable_market_analysis and self.config.get("enable_market_analysis", True):
            self._progress(ScanStage.MARKET_ANALYSIS, 90, "Analyzing market demand...")
            insights = await self._analyze_market(scored)

        self._progress(ScanStage.FINALIZING, 95, "Finalizing results...")
        ranked = self.filter_and_rank(scored)

        result = AIAnalysisResult(
            skills_detected=ranked,
            overall_confidence=self.overall_confidence(ranked),
            processing_time=int((time.monotonic() - started) * 1000),
            sources_analyzed=sources_analyzed,
            recommended_actions=self.recommendations(ranked, insights),
            market_insights=insights,
        )
        self._progress(ScanStage.COMPLETE, 100, "Verification complete!")
        logger.info(
            "Verification complete: %d skills in %dms",
            len(ranked), result.processing_time,
        )
        return result

    # ─────────────────────────────────────────────────────────────────────
    # Sources
    # ─────────────────────────────────────────────────────────────────────
    async def _analyze_github(self, username: str) -> list[SkillDetection]:
        self._progress(ScanStage.GITHUB_PROFILE, 25, f"Fetching GitHub profile: {username}")
        if not await self.github_api.validate_token():
            raise RuntimeError(
                "GitHub token is invalid or missing. Please provide a valid GitHub API token."
            )

        self._progress(ScanStage.GITHUB_REPOS, 30, "Analyzing repositories...")
        skills = await self.github_analyzer.analyze_user_skills(username)
        for s in skills:
            s.id = f"github-{s.id}"
        return skills

    async def _analyze_linkedin(self) -> list[SkillDetection]:
        if not await self.linkedin_api.validate_token():
            logger.warning("LinkedIn token not available. Skipping LinkedIn analysis.")
            return []

        self._progress(ScanStage.LINKEDIN_PROFILE, 45, "Fetching LinkedIn profile...")
        resp = await self.linkedin_api.get_complete_profile()
        if not resp.success or not resp.data:
            raise RuntimeError(f"LinkedIn analysis failed: {resp.error}")

        self._progress(ScanStage.LINKEDIN_EXPERIENCE, 47, "Analyzing work experience...")
        return self.extract_linkedin_skills(resp.data)

    def extract_linkedin_skills(self, profile: LinkedInProfile) -> list[SkillDetection]:
        skills: list[SkillDetection] = []

        for listed in profile.skills:
            name = listed.name.strip()
            if not name:
                continue
            confidence = min(
                Thresholds.MAX_CONFIDENCE,
                LinkedInHeuristics.SKILL_BASE + listed.endorsements * LinkedInHeuristics.ENDORSEMENT_FACTOR,
            )
            source = VerificationSource(
                platform="linkedin",
                source_id=profile.id,
                confidence=confidence,
                data_points=listed.endorsements,
            )
            skills.append(
                SkillDetection(
                    id=f"linkedin-skill-{'-'.join(name.lower().split())}",
                    skill=name,
                    category=categorize_skill(name),
                    confidence=confidence,
                    sources=[source],
                    evidence=[
                        Evidence(
                            type=EvidenceType.ENDORSEMENT,
                            description=f"LinkedIn skill with {listed.endorsements} endorsements",
                            source=source,
                            weight=min(1.0, listed.endorsements / LinkedInHeuristics.ENDORSEMENT_WEIGHT_DIVISOR),
                            metadata={"endorsements": listed.endorsements, "platform": "linkedin"},
                        )
                    ],
                    market_value=MarketValue(estimated_value=DEFAULT_MARKET_VALUE),
                )
            )

        for position in profile.positions:
            if not position.description:
                continue
            for skill in self.extract_skills_from_text(
                position.description, f"Experience at {position.company_name}"
            ):
                skill.id = f"linkedin-exp-{position.id}-{'-'.join(skill.skill.lower().split())}"
                skills.append(skill)

        return skills

    @staticmethod
    def extract_skills_from_text(text: str, context: str) -> list[SkillDetection]:
        """Keyword match against SKILL_PATTERNS, once per skill."""
        lower = text.lower()
        skills = []
        for name, patterns in SKILL_PATTERNS.items():
            hit = next((p for p in patterns if p.lower() in lower), None)
            if hit is None:
                continue
            category = categorize_skill(name)
            source = VerificationSource(
                platform="linkedin",
                source_id="text-analysis",
                confidence=LinkedInHeuristics.TEXT_CONFIDENCE,
            )
            skills.append(
                SkillDetection(
                    id=f"text-extract-{name}",
                    skill=name,
                    category=category,
                    confidence=LinkedInHeuristics.TEXT_CONFIDENCE,
                    sources=[source],
                    evidence=[
                        Evidence(
                            type=EvidenceType.EXPERIENCE,
                            description=f'Mentioned in {context}: "{hit}"',
                            source=source,
                            weight=LinkedInHeuristics.TEXT_WEIGHT,
                            metadata={"context": context, "pattern": hit},
                        )
                    ],
                    market_value=MarketValue(
                        estimated_value=MARKET_VALUES.get(category.value, DEFAULT_MARKET_VALUE)
                    ),
                )
            )
        return skills

    # ─────────────────────────────────────────────────────────────────────
    # Enrichment
    # ─────────────────────────────────────────────────────────────────────
    async def _enhance_with_ai(self, skills: list[SkillDetection]) -> None:
        context = {
            "total_repos": sum(
                1 for s in skills if any(src.platform == "github" for src in s.sources)
            ),
            "total_commits": 0,
            "years_programming": self.estimate_experience_years(skills),
            "languages": list(dict.fromkeys(s.skill for s in skills)),
        }
        try:
            await self.openai.enhance_skill_confidence(skills, context)
        except Exception as e:
            logger.warning("AI enhancement failed, continuing with base analysis: %s", e)
            self._error("ai_processing", str(e) or "AI enhancement failed", "low")

    async def _analyze_market(self, skills: list[SkillDetection]) -> list[MarketInsight]:
        top = sorted(skills, key=lambda s: s.confidence, reverse=True)[: Limits.MARKET_ANALYSIS_TOP_N]
        insights = []
        for skill in top:
            try:
                data = await self.openai.analyze_skill_market(skill.skill)
                salary = data["salary_range"]
                insights.append(
                    MarketInsight(
                        skill=skill.skill,
                        demand=data["demand"],
                        avg_salary=(salary["min"] + salary["max"]) / 2,
                    )
                )
            except Exception as e:
                logger.warning("Market analysis failed for %s: %s", skill.skill, e)
        return insights

    # ─────────────────────────────────────────────────────────────────────
    # Scoring
    # ─────────────────────────────────────────────────────────────────────
    @staticmethod
    def final_confidence(skill: SkillDetection) -> SkillDetection:
        """Evidence-weighted confidence plus multi-source/evidence bonuses."""
        total_weight = sum(e.weight for e in skill.evidence)
        if total_weight > 0:
            weighted = sum(e.source.confidence * e.weight for e in skill.evidence) / total_weight
        else:
            weighted = skill.confidence

        source_bonus = min(
            ConfidenceBonus.SOURCE_CAP,
            max(0, len(skill.sources) - 1) * ConfidenceBonus.PER_EXTRA_SOURCE,
        )
        evidence_bonus = min(
            ConfidenceBonus.EVIDENCE_CAP,
            max(0, len(skill.evidence) - 1) * ConfidenceBonus.PER_EXTRA_EVIDENCE,
        )
        final = min(Thresholds.MAX_CONFIDENCE, weighted + source_bonus + evidence_bonus)
        return skill.model_copy(update={"confidence": round(final)})

    def filter_and_rank(self, skills: list[SkillDetection]) -> list[SkillDetection]:
        kept = [s for s in skills if s.confidence >= self.config["confidence_threshold"]]
        kept.sort(
            key=lambda s: (s.confidence, len(s.evidence), s.market_value.estimated_value),
            reverse=True,
        )
        return kept[: self.config["max_skills_to_process"]]

    @staticmethod
    def overall_confidence(skills: list[SkillDetection]) -> int:
        total_weight = sum(len(s.evidence) for s in skills)
        if not skills or total_weight == 0:
            return 0
        return round(sum(s.confidence * len(s.evidence) for s in skills) / total_weight)

    @staticmethod
    def estimate_experience_years(skills: list[SkillDetection]) -> float:
        categories = len({s.category for s in skills})
        evidence = sum(len(s.evidence) for s in skills)
        return min(15, max(1, categories + evidence / 10))

    @staticmethod
    def recommendations(
        skills: list[SkillDetection], insights: list[MarketInsight]
    ) -> list[str]:
        recs = []

        strong = [s.skill for s in skills if s.confidence >= Thresholds.HIGH_CONFIDENCE]
        if strong:
            recs.append(f"Leverage your strongest skills: {', '.join(strong[:3])}")

        building = [
            s.skill for s in skills
            if Thresholds.MIN_CONFIDENCE_SCORE <= s.confidence < Thresholds.HIGH_CONFIDENCE
        ]
        if building:
            recs.append(f"Build more evidence for: {', '.join(building[:3])}")

        in_demand = [m.skill for m in insights if m.demand == "high"]
        if in_demand:
            recs.append(f"Focus on high-demand skills: {', '.join(in_demand[:3])}")

        github_count = sum(
            1 for s in skills if any(src.platform == "github" for src in s.sources)
        )
        if github_count < len(skills) * 0.5:
            recs.append("Increase GitHub activity to better showcase your technical skills")

        return recs

    # ─────────────────────────────────────────────────────────────────────
    # Progress
    # ─────────────────────────────────────────────────────────────────────
    def _progress(self, stage: ScanStage, progress: float, task: str) -> None:
        if self._callback is None:
            return
        self._callback(
            ScanProgress(
                stage=stage,
                progress=round(progress),
                current_task=task,
                estimated_time_remaining=estimate_time_remaining(progress),
                errors=list(self._errors),
            )
        )

    def _error(self, source: str, error: str, severity: str) -> None:
        self._errors.append(ScanError(source=source, error=error, severity=severity))

    @property
    def errors(self) -> list[ScanError]:
        return list(self._errors)
