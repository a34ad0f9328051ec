"""
Integration — Skill Mapping
=============================

Maps AI-detected skills onto contract categories and 1–100 levels.

Pipeline per skill:
  1. Drop skills below ``minimum_confidence``
  2. Pick a mapping: exact name → first partial match → default
  3. Raw score = detected level (or 50) + activity boosts
  4. × mapping multiplier, clamp to 0–100, then linear / logarithmic /
     threshold conversion into the contract level range
  5. Merge duplicates on ``category:subcategory``
"""

from __future__ import annotations

import logging
import math
from typing import Any, Literal, Optional

from contracts.models import CONTRACT_CONSTANTS
from integration.models import (
    AISkillData,
    DetectedSkill,
    LevelCalculation,
    LevelMethod,
    SkillEvidence,
    SkillLevelCalculation,
    SkillMapping,
    SkillMappingConfig,
    SkillMetadata,
    VerificationResult,
    now_ms,
)

logger = logging.getLogger("integration.skill_mapping")

DEFAULT_RAW_SCORE = 50
DEFAULT_MAPPING_CONFIDENCE = 0.5


def _m(ai_skill: str, category: str, subcategory: str, multiplier: float, confidence: float) -> SkillMapping:
    return SkillMapping(
        ai_skill=ai_skill,
        contract_category=category,
        contract_subcategory=subcategory,
        level_multiplier=multiplier,
        confidence=confidence,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Default mappings
# ─────────────────────────────────────────────────────────────────────────────
DEFAULT_SKILL_MAPPINGS: tuple[SkillMapping, ...] = (
    # Languages
    _m("javascript", "Programming", "JavaScript", 1.0, 0.95),
    _m("typescript", "Programming", "TypeScript", 1.1, 0.95),
    _m("python", "Programming", "Python", 1.0, 0.95),
    _m("java", "Programming", "Java", 1.0, 0.95),
    _m("go", "Programming", "Go", 1.1, 0.9),
    _m("rust", "Programming", "Rust", 1.2, 0.9),
    _m("solidity", "Programming", "Solidity", 1.3, 0.95),
    _m("c++", "Programming", "C++", 1.1, 0.9),
    _m("c#", "Programming", "C#", 1.0, 0.9),
    _m("php", "Programming", "PHP", 0.9, 0.9),
    _m("ruby", "Programming", "Ruby", 0.9, 0.9),
    _m("swift", "Programming", "Swift", 1.0, 0.9),
    _m("kotlin", "Programming", "Kotlin", 1.0, 0.9),
    # Frameworks
    _m("react", "Programming", "React", 1.0, 0.95),
    _m("vue", "Programming", "Vue.js", 1.0, 0.95),
    _m("angular", "Programming", "Angular", 1.0, 0.95),
    _m("node.js", "Programming", "Node.js", 1.0, 0.95),
    _m("express", "Programming", "Express.js", 0.9, 0.9),
    _m("django", "Programming", "Django", 1.0, 0.9),
    _m("flask", "Programming", "Flask", 0.9, 0.9),
    _m("spring", "Programming", "Spring Framework", 1.0, 0.9),
    _m("laravel", "Programming", "Laravel", 0.9, 0.9),
    # Data science
    _m("machine learning", "Data Science", "Machine Learning", 1.2, 0.9),
    _m("deep learning", "Data Science", "Deep Learning", 1.3, 0.9),
    _m("tensorflow", "Data Science", "TensorFlow", 1.2, 0.95),
    _m("pytorch", "Data Science", "PyTorch", 1.2, 0.95),
    _m("pandas", "Data Science", "Data Analysis", 1.0, 0.9),
    _m("numpy", "Data Science", "Scientific Computing", 1.0, 0.9),
    _m("scikit-learn", "Data Science", "Machine Learning", 1.1, 0.9),
    # Design
    _m("ui design", "Design", "UI Design", 1.0, 0.85),
    _m("ux design", "Design", "UX Design", 1.0, 0.85),
    _m("figma", "Design", "Design Tools", 0.9, 0.9),
    _m("photoshop", "Design", "Graphic Design", 0.9, 0.9),
    _m("illustrator", "Design", "Illustration", 0.9, 0.9),
    # DevOps / infrastructure
    _m("docker", "Engineering", "DevOps", 1.0, 0.95),
    _m("kubernetes", "Engineering", "Container Orchestration", 1.2, 0.95),
    _m("aws", "Engineering", "Cloud Computing", 1.1, 0.9),
    _m("azure", "Engineering", "Cloud Computing", 1.1, 0.9),
    _m("gcp", "Engineering", "Cloud Computing", 1.1, 0.9),
    _m("terraform", "Engineering", "Infrastructure as Code", 1.1, 0.9),
    # Blockchain
    _m("web3", "Programming", "Web3", 1.3, 0.9),
    _m("smart contracts", "Programming", "Smart Contracts", 1.4, 0.95),
    _m("defi", "Programming", "DeFi", 1.3, 0.9),
    _m("ethereum", "Programming", "Ethereum", 1.2, 0.9),
    _m("solana", "Programming", "Solana", 1.2, 0.9),
)


def default_mapping_config() -> SkillMappingConfig:
    return SkillMappingConfig(
        mappings=list(DEFAULT_SKILL_MAPPINGS),
        default_category="Programming",
        minimum_confidence=0.7,
        level_calculation=LevelCalculation(
            method=LevelMethod.LOGARITHMIC,
            max_level=CONTRACT_CONSTANTS.MAX_SKILL_LEVEL,
            min_level=CONTRACT_CONSTANTS.MIN_SKILL_LEVEL,
        ),
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ─────────────────────────────────────────────────────────────────────────────
# Mapper
# ─────────────────────────────────────────────────────────────────────────────
class SkillMapper:
    def __init__(self, config: Optional[SkillMappingConfig] = None) -> None:
        self.config = config.model_copy(deep=True) if config else default_mapping_config()

    def map_verification_to_skills(
        self,
        result: VerificationResult,
        github_profile: Any = None,
        linkedin_profile: Any = None,
    ) -> list[AISkillData]:
        mapped: list[AISkillData] = []
        if result.github and result.github.skills:
            mapped += self._map_source(result.github.skills, "github", github_profile)
        if result.linkedin and result.linkedin.skills:
            mapped += self._map_source(result.linkedin.skills, "linkedin", linkedin_profile)

        merged = self.merge_and_deduplicate(mapped)
        logger.info("Mapped %d detected skills into %d contract skills", len(mapped), len(merged))
        return merged

    def _map_source(
        self,
        skills: list[DetectedSkill],
        source: Literal["github", "linkedin"],
        profile: Any,
    ) -> list[AISkillData]:
        out: list[AISkillData] = []
        for skill in skills:
            if skill.confidence < self.config.minimum_confidence:
                continue

            mapping = self.find_best_mapping(skill.skill)
            level = self.calculate_skill_level(skill, source)
            if source == "github":
                evidence = SkillEvidence(
                    source="github",
                    repositories=list(skill.evidence.repositories),
                    commits=skill.evidence.commits,
                    languages=list(skill.evidence.languages),
                    frameworks=list(skill.evidence.frameworks),
                )
            else:
                evidence = SkillEvidence(
                    source="linkedin",
                    experience=skill.evidence.experience,
                    endorsements=skill.evidence.endorsements,
                )

            out.append(
                AISkillData(
                    category=mapping.contract_category,
                    subcategory=mapping.contract_subcategory,
                    level=level.contract_level,
                    confidence=skill.confidence * mapping.confidence,
                    evidence=evidence,
                    metadata=SkillMetadata(
                        detected_at=now_ms(),
                        verification_score=skill.confidence,
                        ai_model=skill.source or "unknown",
                        raw_data={
                            "original_skill": skill.skill,
                            "original_level": skill.level,
                            "mapping": mapping.model_dump(),
                            "level_calculation": level.model_dump(),
                            "has_profile": profile is not None,
                        },
                    ),
                )
            )
        return out

    def find_best_mapping(self, skill_name: str) -> SkillMapping:
        normalized = skill_name.lower().strip()

        for mapping in self.config.mappings:
            if mapping.ai_skill.lower() == normalized:
                return mapping

        for mapping in self.config.mappings:
            ai = mapping.ai_skill.lower()
            if ai in normalized or normalized in ai:
                return mapping

        return SkillMapping(
            ai_skill=skill_name,
            contract_category=self.config.default_category,
            contract_subcategory=skill_name,
            level_multiplier=1.0,
            confidence=DEFAULT_MAPPING_CONFIDENCE,
        )

    def calculate_skill_level(
        self, skill: DetectedSkill, source: Literal["github", "linkedin"]
    ) -> SkillLevelCalculation:
        mapping = self.find_best_mapping(skill.skill)
        base = skill.level or DEFAULT_RAW_SCORE
        score = float(base)

        if source == "github":
            commits = skill.evidence.commits
            repos = len(skill.evidence.repositories)
            if commits > 100:
                score += 10
            if commits > 500:
                score += 10
            if repos > 5:
                score += 5
            if repos > 10:
                score += 5
        else:
            experience = skill.evidence.experience
            endorsements = skill.evidence.endorsements
            if endorsements > 5:
                score += 10
            if endorsements > 20:
                score += 10
            # case-sensitive
            if "senior" in experience or "lead" in experience:
                score += 15

        score *= mapping.level_multiplier
        normalized = max(0.0, min(100.0, score))

        return SkillLevelCalculation(
            raw_score=base,
            normalized_score=normalized,
            contract_level=self.to_contract_level(normalized),
            confidence=skill.confidence,
            method=self.config.level_calculation.method.value,
        )

    def to_contract_level(self, normalized: float) -> int:
        calc = self.config.level_calculation
        lo, hi = calc.min_level, calc.max_level
        span = hi - lo

        if calc.method == LevelMethod.LINEAR:
            level = round_half_up(normalized / 100 * span + lo)
        elif calc.method == LevelMethod.LOGARITHMIC:
            log_score = math.log10(normalized + 1) / math.log10(101)
            level = round_half_up(log_score * span + lo)
        elif normalized >= 80:
            level = hi
        elif normalized >= 60:
            level = round_half_up(hi * 0.8)
        elif normalized >= 40:
            level = round_half_up(hi * 0.6)
        elif normalized >= 20:
            level = round_half_up(hi * 0.4)
        else:
            level = lo

        return max(lo, min(hi, level))

    @staticmethod
    def merge_and_deduplicate(skills: list[AISkillData]) -> list[AISkillData]:
        merged: dict[str, AISkillData] = {}
        for skill in skills:
            existing = merged.get(skill.key)
            if existing is None:
                merged[skill.key] = skill
                continue

            a, b = existing.evidence, skill.evidence
            merged[skill.key] = AISkillData(
                category=skill.category,
                subcategory=skill.subcategory,
                level=max(existing.level, skill.level),
                confidence=max(existing.confidence, skill.confidence),
                evidence=SkillEvidence(
                    source="combined",
                    repositories=a.repositories + b.repositories,
                    commits=a.commits + b.commits,
                    languages=list(dict.fromkeys(a.languages + b.languages)),
                    frameworks=list(dict.fromkeys(a.frameworks + b.frameworks)),
                    experience="; ".join(e for e in (a.experience, b.experience) if e),
                    endorsements=a.endorsements + b.endorsements,
                ),
                metadata=SkillMetadata(
                    detected_at=min(existing.metadata.detected_at, skill.metadata.detected_at),
                    verification_score=max(
                        existing.metadata.verification_score, skill.metadata.verification_score
                    ),
                    ai_model=f"{existing.metadata.ai_model}, {skill.metadata.ai_model}",
                    raw_data={"sources": [existing.metadata.raw_data, skill.metadata.raw_data]},
                ),
            )
        return list(merged.values())

    # ── Configuration ────────────────────────────────────────────────────
    def update_config(self, **updates: Any) -> None:
        self.config = SkillMappingConfig.model_validate({**self.config.model_dump(), **updates})

    def add_mapping(self, mapping: SkillMapping) -> None:
        self.config.mappings.append(mapping)

    def get_config(self) -> SkillMappingConfig:
        return self.config.model_copy(deep=True)
