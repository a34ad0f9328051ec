"""
Backend Router — Health
=========================

GET /health — Contract, AI and IPFS health of the bridge
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from backend.config import require_bridge

logger = logging.getLogger("backend.health")
router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    overall: bool
    contracts: bool
    ai: bool
    ipfs: bool
    details: dict[str, Any] = {}


@router.get("/health", response_model=HealthResponse)
async def health():
    """Run the bridge health check."""
    bridge = require_bridge()
    status = await bridge.health_check()
    if not status["overall"]:
        logger.warning("Health check degraded: %s", status["details"])
    return HealthResponse(**status)
