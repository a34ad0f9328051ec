"""
AI Integrations — GitHub Skill Analyzer
=========================================

Turns a GitHub user's public repositories into skill detections.

Signals extracted per repository:
    • Primary language (boosted by stars, forks and size)
    • Language distribution (languages above 5% of the codebase)
    • Commit file extensions and framework marker files
    • Topic / description keyword patterns
    • Overall project complexity ("Project Architecture")

Detections for the same skill are merged with an evidence-count
weighted confidence, capped at 95.
"""

from __future__ import annotations

import logging
from typing import Optional

from ai_integrations.github_api import GitHubAPIService
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
    DEFAULT_MARKET_VALUE,
    FRAMEWORK_MARKERS,
    HIGH_DEMAND_SKILLS,
    LANGUAGE_CATEGORY,
    LANGUAGE_EXTENSIONS,
    Limits,
    MARKET_VALUES,
    MEDIUM_DEMAND_SKILLS,
    PATTERN_CATEGORY,
    SKILL_PATTERNS,
    GitHubHeuristics as H,
    Thresholds,
)

logger = logging.getLogger("ai_integrations.github")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def language_category(language: str) -> SkillCategory:
    return LANGUAGE_CATEGORY.get(language.lower(), SkillCategory.PROGRAMMING)


def pattern_category(skill: str) -> SkillCategory:
    return PATTERN_CATEGORY.get(skill.lower(), SkillCategory.TOOL)


def market_demand(skill: str) -> str:
    name = skill.lower()
    if name in HIGH_DEMAND_SKILLS:
        return "high"
    if name in MEDIUM_DEMAND_SKILLS:
        return "medium"
    return "low"


def file_extension(filename: str) -> Optional[str]:
    parts = filename.split(".")
    if len(parts) < 2:
        return None
    return "." + parts[-1]


def detect_frameworks(filename: str) -> list[str]:
    lower = filename.lower()
    return [
        name for name, markers in FRAMEWORK_MARKERS.items()
        if any(marker in lower for marker in markers)
    ]


def combined_confidence(skills: list[SkillDetection]) -> float:
    """Evidence-count weighted mean confidence, capped at 95."""
    total_weight = sum(len(s.evidence) for s in skills)
    if total_weight == 0:
        return 0.0
    weighted = sum(s.confidence * len(s.evidence) for s in skills)
    return min(Thresholds.MAX_CONFIDENCE, weighted / total_weight)


def merge_into(existing: SkillDetection, other: SkillDetection) -> None:
    existing.confidence = combined_confidence([existing, other])
    existing.evidence.extend(other.evidence)
    existing.sources.extend(other.sources)


def _detection(
    *,
    id: str,
    skill: str,
    category: SkillCategory,
    confidence: float,
    repo: GitHubRepository,
    evidence_type: EvidenceType,
    description: str,
    weight: float,
    metadata: dict,
    data_points: int = 1,
    value: Optional[float] = None,
    demand: Optional[str] = None,
) -> SkillDetection:
    source = VerificationSource(
        platform="github",
        source_id=repo.full_name,
        url=f"https://github.com/{repo.full_name}",
        confidence=confidence,
        data_points=data_points,
    )
    return SkillDetection(
        id=id,
        skill=skill,
        category=category,
        confidence=confidence,
        sources=[source],
        evidence=[
            Evidence(
                type=evidence_type,
                description=description,
                source=source,
                weight=weight,
                metadata=metadata,
            )
        ],
        market_value=MarketValue(
            estimated_value=value if value is not None
            else MARKET_VALUES.get(category.value, DEFAULT_MARKET_VALUE),
            market_demand=demand or market_demand(skill),
        ),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Analyzer
# ─────────────────────────────────────────────────────────────────────────────
class GitHubAnalyzer:
    """Extracts skill detections from a user's repositories."""

    def __init__(self, api: Optional[GitHubAPIService] = None) -> None:
        self.api = api or GitHubAPIService()

    async def analyze_user_skills(self, username: str) -> list[SkillDetection]:
        """Analyze every recent repository of ``username``.

        Raises RuntimeError when the profile or repository list cannot
        be fetched. A failing repository only loses its own skills.
        """
        logger.info("Starting GitHub analysis for: %s", username)

        profile = await self.api.get_user_profile(username)
        if not profile.success:
            raise RuntimeError(f"Failed to fetch profile: {profile.error}")

        repos = await self.api.get_user_repositories(username)
        if not repos.success or not repos.data:
            raise RuntimeError(f"Failed to fetch repositories: {repos.error}")

        repositories: list[GitHubRepository] = repos.data["items"]
        logger.info("Found %d repositories to analyze", len(repositories))

        merged: dict[str, SkillDetection] = {}
        for repo in repositories:
            for skill in await self.analyze_repository(repo, username):
                existing = merged.get(skill.skill)
                if existing:
                    merge_into(existing, skill)
                else:
                    merged[skill.skill] = skill

        skills = sorted(merged.values(), key=lambda s: s.confidence, reverse=True)
        logger.info("GitHub analysis complete: %d skills", len(skills))
        return skills

    async def analyze_repository(
        self, repo: GitHubRepository, username: str
    ) -> list[SkillDetection]:
        logger.info("Analyzing repository: %s", repo.name)
        try:
            skills = self.primary_language_skills(repo)

            langs = await self.api.get_repository_languages(repo.owner, repo.name)
            if langs.success and langs.data:
                skills.extend(self.language_distribution_skills(langs.data, repo))

            commits_resp = await self.api.get_repository_commits(
                repo.owner, repo.name, username, Limits.COMMITS_PER_REPO_SCAN
            )
            commits: list[GitHubCommit] = (
                commits_resp.data if commits_resp.success and commits_resp.data else []
            )
            skills.extend(self.commit_pattern_skills(commits, repo))
            skills.extend(self.topic_skills(repo))
            skills.extend(self.complexity_skills(repo, commits))

            return self._dedupe(skills)
        except Exception as e:
            logger.error("Failed to analyze repository %s: %s", repo.name, e)
            return []

    # ── Signal extractors ────────────────────────────────────────────────
    def primary_language_skills(self, repo: GitHubRepository) -> list[SkillDetection]:
        if not repo.language or repo.language == "Unknown":
            return []

        language = repo.language.lower()
        confidence = self.language_confidence(repo)
        return [
            _detection(
                id=f"github-lang-{repo.id}-{language}",
                skill=repo.language,
                category=language_category(language),
                confidence=confidence,
                repo=repo,
                evidence_type=EvidenceType.REPOSITORY,
                description=(
                    f"Primary language in {repo.name} "
                    f"({repo.stargazers_count} stars, {repo.forks_count} forks)"
                ),
                weight=H.PRIMARY_LANGUAGE_WEIGHT,
                metadata={
                    "repository_name": repo.name,
                    "stars": repo.stargazers_count,
                    "forks": repo.forks_count,
                    "size": repo.size,
                },
            )
        ]

    def language_distribution_skills(
        self, languages: dict[str, int], repo: GitHubRepository
    ) -> list[SkillDetection]:
        total = sum(languages.values())
        if total == 0:
            return []

        skills = []
        for language, size in languages.items():
            pct = size / total * 100
            if pct < H.DISTRIBUTION_MIN_PCT:
                continue
            confidence = min(Thresholds.MAX_CONFIDENCE, H.DISTRIBUTION_BASE + pct * H.DISTRIBUTION_FACTOR)
            skills.append(
                _detection(
                    id=f"github-lang-dist-{repo.id}-{language.lower()}",
                    skill=language,
                    category=language_category(language),
                    confidence=confidence,
                    repo=repo,
                    evidence_type=EvidenceType.CODE_COMPLEXITY,
                    description=f"{pct:.1f}% of codebase in {repo.name} ({size:,} bytes)",
                    weight=pct / 100,
                    metadata={"percentage": pct, "bytes": size, "repository_name": repo.name},
                )
            )
        return skills

    def commit_pattern_skills(
        self, commits: list[GitHubCommit], repo: GitHubRepository
    ) -> list[SkillDetection]:
        if not commits:
            return []

        extensions: dict[str, int] = {}
        frameworks: list[str] = []
        total_changes = 0
        for commit in commits:
            total_changes += commit.stats.total
            for f in commit.files:
                ext = file_extension(f)
                if ext:
                    extensions[ext] = extensions.get(ext, 0) + 1
                for fw in detect_frameworks(f):
                    if fw not in frameworks:
                        frameworks.append(fw)

        skills = []
        for ext, count in extensions.items():
            language = LANGUAGE_EXTENSIONS.get(ext)
            if not language or count < H.EXTENSION_MIN_COUNT:
                continue
            confidence = min(H.EXTENSION_CAP, H.EXTENSION_BASE + count * H.EXTENSION_FACTOR)
            skills.append(
                _detection(
                    id=f"github-commit-{repo.id}-{language}",
                    skill=language,
                    category=language_category(language),
                    confidence=confidence,
                    repo=repo,
                    evidence_type=EvidenceType.COMMIT,
                    description=f"{count} commits with {ext} files, {total_changes} total changes",
                    weight=min(1.0, count / 10),
                    metadata={"commit_count": count, "total_changes": total_changes, "extension": ext},
                    data_points=count,
                )
            )

        for fw in frameworks:
            skills.append(
                _detection(
                    id=f"github-framework-{repo.id}-{fw}",
                    skill=fw,
                    category=SkillCategory.FRAMEWORK,
                    confidence=H.FRAMEWORK_CONFIDENCE,
                    repo=repo,
                    evidence_type=EvidenceType.PROJECT,
                    description=f"{fw} framework detected in project structure",
                    weight=H.FRAMEWORK_WEIGHT,
                    metadata={"framework": fw, "detection_method": "file_analysis"},
                    demand="medium",
                )
            )
        return skills

    def topic_skills(self, repo: GitHubRepository) -> list[SkillDetection]:
        text = " ".join([*repo.topics, repo.description or ""]).lower()

        skills = []
        for name, patterns in SKILL_PATTERNS.items():
            hit = next((p for p in patterns if p.lower() in text), None)
            if hit is None:
                continue
            skills.append(
                _detection(
                    id=f"github-topic-{repo.id}-{name}",
                    skill=name,
                    category=pattern_category(name),
                    confidence=H.TOPIC_CONFIDENCE,
                    repo=repo,
                    evidence_type=EvidenceType.PROJECT,
                    description=f'Mentioned in repository topics/description: "{hit}"',
                    weight=H.TOPIC_WEIGHT,
                    metadata={"pattern": hit, "source": "topics_description"},
                )
            )
        return skills

    def complexity_skills(
        self, repo: GitHubRepository, commits: list[GitHubCommit]
    ) -> list[SkillDetection]:
        score = self.complexity_score(repo, commits)
        if score <= H.COMPLEXITY_THRESHOLD:
            return []
        return [
            _detection(
                id=f"github-complexity-{repo.id}",
                skill="Project Architecture",
                category=SkillCategory.MANAGEMENT,
                confidence=min(Thresholds.MAX_CONFIDENCE, score),
                repo=repo,
                evidence_type=EvidenceType.PROJECT_SIZE,
                description=(
                    f"Complex project with {repo.stargazers_count} stars, "
                    f"{len(commits)} analyzed commits"
                ),
                weight=H.COMPLEXITY_WEIGHT,
                metadata={
                    "complexity_score": score,
                    "stars": repo.stargazers_count,
                    "forks": repo.forks_count,
                    "size": repo.size,
                },
                demand="high",
            )
        ]

    # ── Scores ───────────────────────────────────────────────────────────
    @staticmethod
    def language_confidence(repo: GitHubRepository) -> float:
        confidence = H.LANGUAGE_BASE
        if repo.stargazers_count > 0:
            confidence += min(H.LANGUAGE_STAR_CAP, repo.stargazers_count * H.LANGUAGE_STAR_FACTOR)
        if repo.forks_count > 0:
            confidence += min(H.LANGUAGE_FORK_CAP, repo.forks_count)
        if repo.size > H.LANGUAGE_SIZE_THRESHOLD:
            confidence += H.LANGUAGE_SIZE_BONUS
        return min(Thresholds.MAX_CONFIDENCE, confidence)

    @staticmethod
    def complexity_score(repo: GitHubRepository, commits: list[GitHubCommit]) -> float:
        score = 0.0
        score += min(30, repo.stargazers_count)
        score += min(20, repo.forks_count * 2)
        score += min(15, repo.size / 1000)
        if commits:
            avg_changes = sum(c.stats.total for c in commits) / len(commits)
            score += min(25, avg_changes / 10)
        score += min(10, len(repo.topics) * 2)
        return min(100, score)

    @staticmethod
    def _dedupe(skills: list[SkillDetection]) -> list[SkillDetection]:
        merged: dict[str, SkillDetection] = {}
        for skill in skills:
            key = skill.skill.lower()
            if key in merged:
                merge_into(merged[key], skill)
            else:
                merged[key] = skill
        return list(merged.values())
