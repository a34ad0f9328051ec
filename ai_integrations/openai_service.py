"""
AI Integrations — OpenAI Service
==================================

Chat-completions wrapper used to enrich heuristic skill detections.

Every public method degrades to a fixed fallback when no API key is
configured or the call fails, so the verification pipeline never
depends on the model being reachable.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Optional

import httpx

from ai_integrations.models import (
    Evidence,
    EvidenceType,
    GitHubCommit,
    GitHubRepository,
    MarketValue,
    SkillCategory,
    SkillDetection,
    VerificationSource,
)
from ai_integrations.rules import (
    FALLBACK_CODE_QUALITY,
    FALLBACK_MARKET,
    OPENAI_API_BASE,
    OPENAI_MODEL,
    SYSTEM_PROMPT,
    AIEnhancement,
    Limits,
    OpenAIParams,
    Thresholds,
)

logger = logging.getLogger("ai_integrations.openai")


class OpenAIService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = OPENAI_MODEL,
        base_url: str = OPENAI_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        call_pause: float = Limits.OPENAI_CALL_PAUSE,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", "")
        self.model = model
        self.base_url = base_url
        self.call_pause = call_pause
        self._transport = transport

    # ── Core call ────────────────────────────────────────────────────────
    async def _call(self, prompt: str) -> Optional[dict]:
        """Send one prompt and parse the JSON reply. None on any failure."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": OpenAIParams.TEMPERATURE,
            "max_tokens": OpenAIParams.MAX_TOKENS,
            "response_format": {"type": "json_object"},
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=Limits.API_TIMEOUT,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    "/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                resp.raise_for_status()
                content = resp.json()["choices"][0]["message"]["content"]
            if not content:
                logger.error("No content in OpenAI response")
                return None
            parsed = json.loads(content)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
            logger.error("OpenAI API call failed: %s", e)
            return None
        if not isinstance(parsed, dict):
            logger.error("OpenAI response is not a JSON object")
            return None
        return parsed

    # ── Analyses ─────────────────────────────────────────────────────────
    async def analyze_repository_with_ai(
        self,
        repo: GitHubRepository,
        commits: list[GitHubCommit],
        code_samples: Optional[list[str]] = None,
    ) -> list[SkillDetection]:
        if not self.api_key:
            logger.warning("OpenAI API key not provided. Skipping AI analysis.")
            return []

        logger.info("Running AI analysis for repository: %s", repo.name)
        analysis = await self._call(_repository_prompt(repo, commits, code_samples))
        if not analysis or not isinstance(analysis.get("skills"), list):
            logger.warning("Invalid AI response format")
            return []
        skills = []
        for i, item in enumerate(analysis["skills"]):
            try:
                skills.append(_skill_from_ai(item, i, repo))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed AI skill #%d: %s", i, e)
        return skills

    async def analyze_code_quality(self, commits: list[GitHubCommit]) -> dict[str, Any]:
        if not self.api_key:
            return dict(FALLBACK_CODE_QUALITY)

        result = await self._call(_code_quality_prompt(commits))
        if not result:
            return {
                **FALLBACK_CODE_QUALITY,
                "strengths": ["Regular development activity"],
                "improvements": ["Continue current practices"],
            }
        return {
            "quality_score": result.get("qualityScore", FALLBACK_CODE_QUALITY["quality_score"]),
            "strengths": result.get("strengths", []),
            "improvements": result.get("improvements", []),
            "expertise_level": result.get("expertiseLevel", FALLBACK_CODE_QUALITY["expertise_level"]),
        }

    async def enhance_skill_confidence(
        self, skills: list[SkillDetection], context: dict[str, Any]
    ) -> list[SkillDetection]:
        """Ask the model to re-rate each skill; updates skills in place.

        The new confidence never falls below 70% of the original.
        """
        if not self.api_key or not skills:
            return skills

        logger.info("Enhancing confidence scores for %d skills", len(skills))
        for i, skill in enumerate(skills):
            if i and self.call_pause:
                await asyncio.sleep(self.call_pause)

            analysis = await self._call(_confidence_prompt(skill, context))
            if not analysis or "adjustedConfidence" not in analysis:
                continue

            try:
                adjusted = float(analysis["adjustedConfidence"])
            except (TypeError, ValueError):
                logger.warning("Ignoring non-numeric confidence for %s", skill.skill)
                continue
            skill.confidence = max(skill.confidence * AIEnhancement.RETAIN_FACTOR, adjusted)
            skill.evidence.append(
                Evidence(
                    type=EvidenceType.AI_ANALYSIS,
                    description=f"AI Assessment: {analysis.get('reasoning', '')}",
                    source=VerificationSource(
                        platform="openai",
                        source_id="gpt-analysis",
                        confidence=adjusted,
                    ),
                    weight=AIEnhancement.EVIDENCE_WEIGHT,
                    metadata={
                        "ai_reasoning": analysis.get("reasoning"),
                        "market_insights": analysis.get("marketInsights"),
                    },
                )
            )
        return skills

    async def analyze_skill_market(self, skill_name: str) -> dict[str, Any]:
        if not self.api_key:
            return dict(FALLBACK_MARKET)

        prompt = (
            f'Analyze the current job market for the skill: "{skill_name}"\n'
            "Please provide:\n"
            "1. Market demand level (high/medium/low)\n"
            "2. Typical salary range in USD\n"
            "3. Current trends and outlook\n"
            "4. Career recommendations\n"
            "Return as JSON with fields: demand, salaryRange: {min, max}, "
            "trends: [], recommendations: []"
        )
        result = await self._call(prompt)
        if not result:
            return {
                **FALLBACK_MARKET,
                "trends": ["Market analysis unavailable"],
                "recommendations": ["Continue developing this skill"],
            }
        try:
            salary = result.get("salaryRange") or FALLBACK_MARKET["salary_range"]
            return {
                "demand": str(result.get("demand", "medium")),
                "salary_range": {
                    "min": float(salary.get("min", 0)),
                    "max": float(salary.get("max", 0)),
                },
                "trends": _as_list(result.get("trends")),
                "recommendations": _as_list(result.get("recommendations")),
            }
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Malformed market analysis for %s: %s", skill_name, e)
            return dict(FALLBACK_MARKET)


# ─────────────────────────────────────────────────────────────────────────────
# Prompts
# ─────────────────────────────────────────────────────────────────────────────
def _repository_prompt(
    repo: GitHubRepository, commits: list[GitHubCommit], code_samples: Optional[list[str]]
) -> str:
    summary = [
        {"message": c.message, "changes": c.stats.total, "files": c.files[:5]}
        for c in commits[:10]
    ]
    samples = "Code Samples:\n" + "\n---\n".join(code_samples) if code_samples else ""
    return f"""
Analyze this GitHub repository for professional skills and expertise:

Repository: {repo.name}
Description: {repo.description or 'No description'}
Language: {repo.language}
Stars: {repo.stargazers_count}
Forks: {repo.forks_count}
Topics: {', '.join(repo.topics) or 'None'}

Recent Commits ({len(commits)}):
{json.dumps(summary, indent=2)}

{samples}

For each skill, provide:
- name: The specific skill name
- category: programming|framework|tool|database|cloud|blockchain|ai_ml|devops|security|management
- confidence: 0-100 score based on evidence quality
- reasoning: Why this confidence score was assigned
- marketValue: Estimated market value in USD

Return as JSON:
{{"skills": [...], "overallAssessment": "...", "recommendedFocus": ["..."]}}
"""


def _code_quality_prompt(commits: list[GitHubCommit]) -> str:
    data = [
        {"message": c.message, "changes": c.stats.model_dump(), "fileCount": len(c.files)}
        for c in commits
    ]
    return f"""
Analyze the code quality and development practices from these commits:

{json.dumps(data, indent=2)}

Return JSON:
{{"qualityScore": 0-100, "strengths": [], "improvements": [],
  "expertiseLevel": "beginner|intermediate|advanced|expert"}}
"""


def _confidence_prompt(skill: SkillDetection, context: dict[str, Any]) -> str:
    evidence = "; ".join(e.description for e in skill.evidence)
    return f"""
Analyze and adjust the confidence score for this skill:

Skill: {skill.skill}
Current Confidence: {skill.confidence}
Evidence: {evidence}

Developer Context:
- Total Repositories: {context.get('total_repos', 0)}
- Total Commits: {context.get('total_commits', 0)}
- Years Programming: {context.get('years_programming', 0)}
- Languages: {', '.join(context.get('languages', []))}

Return JSON:
{{"adjustedConfidence": 0-100, "reasoning": "...", "marketInsights": "..."}}
"""


def _skill_from_ai(item: dict, index: int, repo: GitHubRepository) -> SkillDetection:
    name = str(item.get("name", "unknown"))
    confidence = float(item.get("confidence", 0))
    try:
        value = float(item.get("marketValue") or 100)
    except (TypeError, ValueError):
        value = 100
    try:
        category = SkillCategory(str(item.get("category", "tool")).lower())
    except ValueError:
        category = SkillCategory.TOOL

    if value > OpenAIParams.HIGH_DEMAND_VALUE:
        demand = "high"
    elif value > OpenAIParams.MEDIUM_DEMAND_VALUE:
        demand = "medium"
    else:
        demand = "low"

    slug = "-".join(name.lower().split())
    return SkillDetection(
        id=f"openai-{repo.id}-{slug}-{index}",
        skill=name,
        category=category,
        confidence=min(Thresholds.MAX_CONFIDENCE, confidence),
        sources=[
            VerificationSource(
                platform="github",
                source_id=repo.full_name,
                url=f"https://github.com/{repo.full_name}",
                confidence=confidence,
            )
        ],
        evidence=[
            Evidence(
                type=EvidenceType.AI_ANALYSIS,
                description=f"AI Analysis: {item.get('reasoning', '')}",
                source=VerificationSource(
                    platform="openai", source_id="gpt-analysis", confidence=confidence
                ),
                weight=AIEnhancement.REPO_EVIDENCE_WEIGHT,
                metadata={"ai_reasoning": item.get("reasoning"), "repository_context": repo.name},
            )
        ],
        market_value=MarketValue(estimated_value=value, market_demand=demand),
    )


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []
