"""
Backend Router — Skills
=========================

POST /skills/map            — Map a verification result to contract skills
POST /skills/preview-mint   — Dry-run a minting request
POST /skills/estimate-cost  — Gas estimate for minting
POST /skills/update-levels  — Re-verify and raise existing token levels
POST /verify-and-mint       — Full AI verification → mint → reputation workflow
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from backend.config import require_bridge
from integration.minting import SkillMintingService
from integration.models import (
    AISkillData,
    ContractIntegrationResult,
    IntegrationStatus,
    SkillMintingRequest,
    VerificationResult,
    VerifyAndMintResult,
)
from integration.skill_mapping import SkillMapper

logger = logging.getLogger("backend.skills")
router = APIRouter(tags=["Skills"])

mapper = SkillMapper()


# ─────────────────────────────────────────────────────────────────────────────
# Request / Response Models
# ─────────────────────────────────────────────────────────────────────────────
class EstimateRequest(BaseModel):
    ai_skills: list[AISkillData]
    batch_mint: bool = True


class UserVerificationRequest(BaseModel):
    user_address: str = Field(..., description="Recipient wallet address (0x…)")
    github_username: Optional[str] = None
    linkedin_profile: Optional[str] = None


class VerifyAndMintResponse(BaseModel):
    result: VerifyAndMintResult
    progress: list[IntegrationStatus]


class UpdateLevelsResponse(BaseModel):
    result: ContractIntegrationResult
    progress: list[IntegrationStatus]


def _require_source(req: UserVerificationRequest) -> None:
    if not req.github_username and not req.linkedin_profile:
        raise HTTPException(status_code=400, detail="github_username or linkedin_profile is required")


# ─────────────────────────────────────────────────────────────────────────────
# Endpoints
# ─────────────────────────────────────────────────────────────────────────────
@router.post("/skills/map", response_model=list[AISkillData])
async def map_skills(result: VerificationResult):
    """Map detected skills with the default mapping table."""
    return mapper.map_verification_to_skills(result)


@router.post("/skills/preview-mint")
async def preview_mint(req: SkillMintingRequest) -> dict[str, Any]:
    """Show which skills would be minted and what it would cost."""
    bridge = require_bridge()
    try:
        return bridge.minting.preview_minting(req)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/skills/estimate-cost")
async def estimate_cost(req: EstimateRequest) -> dict[str, Any]:
    return SkillMintingService.estimate_minting_cost(req.ai_skills, req.batch_mint)


@router.post("/skills/update-levels", response_model=UpdateLevelsResponse)
async def update_levels(req: UserVerificationRequest):
    """Re-run AI verification and raise levels of tokens the user already holds."""
    _require_source(req)
    bridge = require_bridge()
    events: list[IntegrationStatus] = []
    result = await bridge.update_skill_levels(
        req.user_address, req.github_username, req.linkedin_profile, events.append
    )
    return UpdateLevelsResponse(result=result, progress=events)


@router.post("/verify-and-mint", response_model=VerifyAndMintResponse)
async def verify_and_mint(req: UserVerificationRequest):
    """Run the full workflow and return every progress update alongside the result."""
    _require_source(req)
    bridge = require_bridge()
    events: list[IntegrationStatus] = []
    result = await bridge.verify_and_mint_skills(
        req.user_address, req.github_username, req.linkedin_profile, events.append
    )
    if not result.success:
        logger.warning("Verify-and-mint failed for %s: %s", req.user_address, result.errors)
    return VerifyAndMintResponse(result=result, progress=events)
