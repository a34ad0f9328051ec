"""
AI Integrations — Configuration & Scoring Rules
=================================================

API endpoints, processing limits, confidence thresholds, weight tables
and prompts used by the verification pipeline.
All weights, thresholds, and skill patterns are defined here.
No magic numbers elsewhere.
"""

from __future__ import annotations

import os

from ai_integrations.models import SkillCategory

# ─────────────────────────────────────────────────────────────────────────────
# API Endpoints
# ─────────────────────────────────────────────────────────────────────────────
GITHUB_API_BASE = "https://api.github.com"
LINKEDIN_API_BASE = "https://api.linkedin.com/v2"
OPENAI_API_BASE = "https://api.openai.com/v1"

OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4-turbo-preview")
LINKEDIN_API_VERSION = "202401"
GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = "TalentChain-Pro-AI-Verification"


# ─────────────────────────────────────────────────────────────────────────────
# Limits & Timeouts
# ─────────────────────────────────────────────────────────────────────────────
class Limits:
    GITHUB_RATE_LIMIT = 5000       # requests / hour
    LINKEDIN_RATE_LIMIT = 500      # requests / hour
    OPENAI_RATE_LIMIT = 60         # requests / minute

    MAX_REPOS_TO_ANALYZE = 20
    MAX_COMMITS_PER_REPO = 100
    MAX_SKILLS_TO_EXTRACT = 50
    COMMITS_PER_REPO_SCAN = 20
    MARKET_ANALYSIS_TOP_N = 10

    API_TIMEOUT = 30.0             # seconds
    SCAN_TIMEOUT = 300.0

    # Pause after every N commit-detail fetches
    COMMIT_DETAIL_BATCH = 5
    COMMIT_DETAIL_PAUSE = 1.0
    # Pause between consecutive OpenAI calls
    OPENAI_CALL_PAUSE = 1.0


class Thresholds:
    MIN_CONFIDENCE_SCORE = 70
    MEDIUM_CONFIDENCE = 75
    HIGH_CONFIDENCE = 90
    MAX_CONFIDENCE = 95


# ─────────────────────────────────────────────────────────────────────────────
# GitHub Analyzer Heuristics
# ─────────────────────────────────────────────────────────────────────────────
class GitHubHeuristics:
    # Primary language
    LANGUAGE_BASE = 60
    LANGUAGE_STAR_FACTOR = 2
    LANGUAGE_STAR_CAP = 20
    LANGUAGE_FORK_CAP = 10
    LANGUAGE_SIZE_THRESHOLD = 1000
    LANGUAGE_SIZE_BONUS = 10
    PRIMARY_LANGUAGE_WEIGHT = 0.8

    # Language distribution
    DISTRIBUTION_MIN_PCT = 5.0
    DISTRIBUTION_BASE = 60
    DISTRIBUTION_FACTOR = 0.7

    # Commit file extensions
    EXTENSION_MIN_COUNT = 3
    EXTENSION_BASE = 50
    EXTENSION_FACTOR = 5
    EXTENSION_CAP = 90

    FRAMEWORK_CONFIDENCE = 75
    FRAMEWORK_WEIGHT = 0.7
    TOPIC_CONFIDENCE = 70
    TOPIC_WEIGHT = 0.6

    # Project complexity
    COMPLEXITY_THRESHOLD = 70
    COMPLEXITY_WEIGHT = 0.8


FRAMEWORK_MARKERS: dict[str, tuple[str, ...]] = {
    "Node.js": ("package.json",),
    "Rust": ("cargo.toml",),
    "Python": ("requirements.txt", "pyproject.toml"),
    "Docker": ("dockerfile",),
    "GitHub Actions": (".github/workflows",),
}


# ─────────────────────────────────────────────────────────────────────────────
# LinkedIn Heuristics
# ─────────────────────────────────────────────────────────────────────────────
class LinkedInHeuristics:
    SKILL_BASE = 60
    ENDORSEMENT_FACTOR = 2
    ENDORSEMENT_WEIGHT_DIVISOR = 10
    TEXT_CONFIDENCE = 65
    TEXT_WEIGHT = 0.6


# ─────────────────────────────────────────────────────────────────────────────
# Confidence Scoring
# ─────────────────────────────────────────────────────────────────────────────
class ConfidenceBonus:
    PER_EXTRA_SOURCE = 5
    SOURCE_CAP = 10
    PER_EXTRA_EVIDENCE = 3
    EVIDENCE_CAP = 15


class AIEnhancement:
    RETAIN_FACTOR = 0.7
    EVIDENCE_WEIGHT = 0.3
    REPO_EVIDENCE_WEIGHT = 0.8


SKILL_WEIGHTS: dict[str, float] = {
    "programming": 1.0,
    "framework": 0.8,
    "tool": 0.6,
    "language": 0.9,
    "database": 0.7,
    "cloud": 0.8,
    "blockchain": 1.2,
    "ai_ml": 1.1,
    "devops": 0.8,
    "security": 1.0,
}

EVIDENCE_WEIGHTS: dict[str, float] = {
    "repository": 0.8,
    "commit": 0.6,
    "project": 0.9,
    "endorsement": 0.5,
    "experience": 0.7,
    "education": 0.4,
    "certification": 0.9,
    "contribution": 0.6,
}

# Base value in USD per skill category
MARKET_VALUES: dict[str, float] = {
    "programming": 100,
    "framework": 80,
    "tool": 60,
    "language": 90,
    "database": 70,
    "cloud": 120,
    "blockchain": 200,
    "ai_ml": 150,
    "devops": 110,
    "security": 130,
    "management": 110,
}
DEFAULT_MARKET_VALUE = 100

HIGH_DEMAND_SKILLS = {"javascript", "typescript", "python", "react", "blockchain", "ai"}
MEDIUM_DEMAND_SKILLS = {"java", "go", "rust", "vue", "angular"}


# ─────────────────────────────────────────────────────────────────────────────
# Skill Detection Patterns
# ─────────────────────────────────────────────────────────────────────────────
SKILL_PATTERNS: dict[str, list[str]] = {
    "javascript": ["javascript", "js", "node", "nodejs", "react", "vue", "angular"],
    "typescript": ["typescript", "ts"],
    "python": ["python", "py", "django", "flask", "fastapi"],
    "rust": ["rust", "cargo"],
    "solana": ["solana", "anchor", "spl", "metaplex"],
    "react": ["react", "reactjs", "jsx", "tsx"],
    "blockchain": ["blockchain", "web3", "defi", "nft", "smart contract"],
    "ai": ["artificial intelligence", "machine learning", "deep learning", "tensorflow", "pytorch"],
    "devops": ["docker", "kubernetes", "ci/cd", "jenkins", "github actions"],
    "databases": ["mongodb", "postgresql", "mysql", "redis", "elasticsearch"],
}

LANGUAGE_EXTENSIONS: dict[str, str] = {
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".tsx": "typescript",
    ".py": "python",
    ".rs": "rust",
    ".go": "go",
    ".java": "java",
    ".php": "php",
    ".rb": "ruby",
    ".cpp": "cpp",
    ".c": "c",
    ".cs": "csharp",
    ".swift": "swift",
    ".kt": "kotlin",
    ".dart": "dart",
    ".sol": "solidity",
}

LANGUAGE_CATEGORY: dict[str, SkillCategory] = {
    "javascript": SkillCategory.PROGRAMMING,
    "typescript": SkillCategory.PROGRAMMING,
    "python": SkillCategory.PROGRAMMING,
    "rust": SkillCategory.PROGRAMMING,
    "go": SkillCategory.PROGRAMMING,
    "java": SkillCategory.PROGRAMMING,
    "solidity": SkillCategory.BLOCKCHAIN,
    "html": SkillCategory.FRONTEND,
    "css": SkillCategory.FRONTEND,
    "react": SkillCategory.FRAMEWORK,
    "vue": SkillCategory.FRAMEWORK,
    "angular": SkillCategory.FRAMEWORK,
}

PATTERN_CATEGORY: dict[str, SkillCategory] = {
    "blockchain": SkillCategory.BLOCKCHAIN,
    "solana": SkillCategory.BLOCKCHAIN,
    "react": SkillCategory.FRAMEWORK,
    "ai": SkillCategory.AI_ML,
    "devops": SkillCategory.DEVOPS,
    "databases": SkillCategory.DATABASE,
}

# Coarse categorization of free-text skill names (LinkedIn)
NAMED_SKILL_CATEGORY: dict[SkillCategory, set[str]] = {
    SkillCategory.PROGRAMMING: {"javascript", "python", "java", "typescript", "rust", "go"},
    SkillCategory.FRAMEWORK: {"react", "vue", "angular", "django", "flask", "spring"},
    SkillCategory.BLOCKCHAIN: {"blockchain", "solana", "ethereum", "web3"},
    SkillCategory.AI_ML: {"machine learning", "ai", "tensorflow", "pytorch"},
    SkillCategory.DEVOPS: {"docker", "kubernetes", "jenkins", "ci/cd"},
}


# ─────────────────────────────────────────────────────────────────────────────
# OpenAI
# ─────────────────────────────────────────────────────────────────────────────
class OpenAIParams:
    TEMPERATURE = 0.3
    MAX_TOKENS = 2000
    HIGH_DEMAND_VALUE = 150
    MEDIUM_DEMAND_VALUE = 100


SYSTEM_PROMPT = (
    "You are an expert technical recruiter and software engineering assessor. "
    "Provide accurate, JSON-formatted responses for skill analysis."
)

FALLBACK_CODE_QUALITY = {
    "quality_score": 75,
    "strengths": ["Consistent commits"],
    "improvements": ["Add more documentation"],
    "expertise_level": "intermediate",
}

FALLBACK_MARKET = {
    "demand": "medium",
    "salary_range": {"min": 60000, "max": 120000},
    "trends": ["Stable demand"],
    "recommendations": ["Continue skill development"],
}


# ─────────────────────────────────────────────────────────────────────────────
# Verification Defaults
# ─────────────────────────────────────────────────────────────────────────────
DEFAULT_CONFIG = {
    "enabled_sources": ["github", "linkedin"],
    "confidence_threshold": Thresholds.MIN_CONFIDENCE_SCORE,
    "max_skills_to_process": 20,
    "enable_market_analysis": True,
}

# Progress-time estimate
SECONDS_PER_PERCENT = 1.2
INITIAL_TIME_ESTIMATE = 120
