"""
Backend Router — Reputation
==============================

POST /reputation/update           — AI-backed reputation score update
POST /reputation/work-evaluation  — Submit an AI work evaluation
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from backend.config import require_bridge
from integration.models import ContractIntegrationResult, ReputationUpdateRequest, WorkEvaluationRequest
from integration.reputation_sync import ReputationSyncService

logger = logging.getLogger("backend.reputation")
router = APIRouter(prefix="/reputation", tags=["Reputation"])


@router.post("/update", response_model=ContractIntegrationResult)
async def update_reputation(req: ReputationUpdateRequest):
    """Push a reputation score backed by AI evidence."""
    errors = ReputationSyncService.validate_reputation_update(req)
    if errors:
        raise HTTPException(status_code=400, detail=", ".join(errors))

    result = await require_bridge().reputation_sync.update_reputation_from_ai(req)
    if not result.success:
        logger.error("Reputation update failed: %s", result.error)
        raise HTTPException(status_code=502, detail=result.error)
    return result


@router.post("/work-evaluation", response_model=ContractIntegrationResult)
async def submit_work_evaluation(req: WorkEvaluationRequest):
    errors = ReputationSyncService.validate_work_evaluation(req)
    if errors:
        raise HTTPException(status_code=400, detail=", ".join(errors))

    result = await require_bridge().reputation_sync.submit_work_evaluation_from_ai(req)
    if not result.success:
        logger.error("Work evaluation failed: %s", result.error)
        raise HTTPException(status_code=502, detail=result.error)
    return result
