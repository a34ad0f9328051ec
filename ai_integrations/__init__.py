"""AI Integrations — Package."""

from ai_integrations.models import (
    SkillCategory,
    EvidenceType,
    ScanStage,
    SkillDetection,
    AIAnalysisResult,
    ScanProgress,
    ScanError,
    APIResponse,
)
from ai_integrations.verification import AIVerificationService

__all__ = [
    "SkillCategory",
    "EvidenceType",
    "ScanStage",
    "SkillDetection",
    "AIAnalysisResult",
    "ScanProgress",
    "ScanError",
    "APIResponse",
    "AIVerificationService",
]
