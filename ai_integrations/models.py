"""
AI Integrations — Data Models
===============================

Pydantic models shared by the GitHub, LinkedIn and OpenAI clients and
the verification service. Confidence values in this package are on a
0–100 scale.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────
class SkillCategory(str, Enum):
    PROGRAMMING = "programming"
    FRAMEWORK = "framework"
    TOOL = "tool"
    LANGUAGE = "language"
    DATABASE = "database"
    CLOUD = "cloud"
    DESIGN = "design"
    MANAGEMENT = "management"
    ANALYTICS = "analytics"
    BLOCKCHAIN = "blockchain"
    AI_ML = "ai_ml"
    DEVOPS = "devops"
    SECURITY = "security"
    MOBILE = "mobile"
    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"


class EvidenceType(str, Enum):
    REPOSITORY = "repository"
    COMMIT = "commit"
    PROJECT = "project"
    ENDORSEMENT = "endorsement"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    CERTIFICATION = "certification"
    CONTRIBUTION = "contribution"
    CODE_COMPLEXITY = "code_complexity"
    PROJECT_SIZE = "project_size"
    AI_ANALYSIS = "ai_analysis"


class ScanStage(str, Enum):
    INITIALIZING = "initializing"
    GITHUB_PROFILE = "github_profile"
    GITHUB_REPOS = "github_repos"
    GITHUB_COMMITS = "github_commits"
    LINKEDIN_PROFILE = "linkedin_profile"
    LINKEDIN_EXPERIENCE = "linkedin_experience"
    AI_PROCESSING = "ai_processing"
    CONFIDENCE_SCORING = "confidence_scoring"
    MARKET_ANALYSIS = "market_analysis"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


# ─────────────────────────────────────────────────────────────────────────────
# Skill Detection
# ─────────────────────────────────────────────────────────────────────────────
class VerificationSource(BaseModel):
    """Where a piece of evidence was observed."""
    platform: str  # github | linkedin | resume | portfolio | openai
    source_id: str
    url: Optional[str] = None
    verified: bool = True
    last_scanned: datetime = Field(default_factory=_now)
    confidence: float = 0.0
    data_points: int = 1


class Evidence(BaseModel):
    type: EvidenceType
    description: str
    source: VerificationSource
    weight: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class MarketValue(BaseModel):
    estimated_value: float = 100
    currency: str = "USD"
    token_equivalent: float = 0
    market_demand: str = "medium"  # high | medium | low
    last_updated: datetime = Field(default_factory=_now)


class SkillDetection(BaseModel):
    """A skill detected from one or more sources (confidence 0–100)."""
    id: str
    skill: str
    category: SkillCategory
    confidence: float
    sources: list[VerificationSource] = []
    evidence: list[Evidence] = []
    market_value: MarketValue = Field(default_factory=MarketValue)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# ─────────────────────────────────────────────────────────────────────────────
# GitHub
# ─────────────────────────────────────────────────────────────────────────────
class GitHubProfile(BaseModel):
    username: str
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    created_at: Optional[datetime] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    blog: Optional[str] = None


class GitHubCommitAuthor(BaseModel):
    name: str = ""
    email: str = ""
    date: Optional[datetime] = None


class GitHubCommitStats(BaseModel):
    additions: int = 0
    deletions: int = 0
    total: int = 0


class GitHubCommit(BaseModel):
    sha: str
    message: str = ""
    author: GitHubCommitAuthor = Field(default_factory=GitHubCommitAuthor)
    stats: GitHubCommitStats = Field(default_factory=GitHubCommitStats)
    files: list[str] = []


class GitHubRepository(BaseModel):
    id: int
    name: str
    full_name: str
    description: Optional[str] = None
    language: str = "Unknown"
    stargazers_count: int = 0
    forks_count: int = 0
    size: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    topics: list[str] = []
    commits: list[GitHubCommit] = []

    @property
    def owner(self) -> str:
        return self.full_name.split("/")[0]


# ─────────────────────────────────────────────────────────────────────────────
# LinkedIn
# ─────────────────────────────────────────────────────────────────────────────
class LinkedInPosition(BaseModel):
    id: str
    title: str = ""
    company_name: str = ""
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    is_current: bool = False


class LinkedInSkill(BaseModel):
    name: str
    endorsements: int = 0
    endorsers: list[str] = []


class LinkedInEducation(BaseModel):
    school_name: str = ""
    degree_name: Optional[str] = None
    field_of_study: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class LinkedInProfile(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    headline: Optional[str] = None
    summary: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    num_connections: Optional[int] = None
    positions: list[LinkedInPosition] = []
    skills: list[LinkedInSkill] = []
    educations: list[LinkedInEducation] = []


# ─────────────────────────────────────────────────────────────────────────────
# Analysis Results
# ─────────────────────────────────────────────────────────────────────────────
class MarketInsight(BaseModel):
    skill: str
    demand: str  # high | medium | low
    avg_salary: float = 0
    job_postings: int = 0
    trend_data: list[float] = []


class AIAnalysisResult(BaseModel):
    skills_detected: list[SkillDetection] = []
    overall_confidence: int = 0
    processing_time: int = 0  # milliseconds
    sources_analyzed: int = 0
    recommended_actions: list[str] = []
    market_insights: list[MarketInsight] = []


class ScanError(BaseModel):
    source: str
    error: str
    severity: str  # low | medium | high
    timestamp: datetime = Field(default_factory=_now)


class ScanProgress(BaseModel):
    stage: ScanStage
    progress: int = Field(ge=0, le=100)
    current_task: str
    estimated_time_remaining: int = 0  # seconds
    errors: list[ScanError] = []


class APIResponse(BaseModel, Generic[T]):
    """Uniform result wrapper for the external API clients."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
