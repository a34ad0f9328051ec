"""
TalentChain AI Bridge — FastAPI Backend
=========================================

REST API over the AI ↔ contract bridge.

Endpoints:
    GET  /                          — Service info
    GET  /health                    — Contract / AI / IPFS health
    POST /skills/map                — Map detected skills to contract skills
    POST /skills/preview-mint       — Dry-run minting
    POST /skills/estimate-cost      — Gas estimate
    POST /skills/update-levels      — Re-verify and raise token levels
    POST /verify-and-mint           — Full verification → mint → reputation
    POST /reputation/update         — Reputation score update
    POST /reputation/work-evaluation — Work evaluation submission

Run:
    uvicorn backend.main:app --reload --port 8080
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import SERVICE_NAME, SERVICE_VERSION
from backend.routers import health, reputation, skills

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("backend")

# ─────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ─────────────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="TalentChain AI Bridge API",
    description="AI skill verification, skill token minting and reputation sync for TalentChain",
    version=SERVICE_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(skills.router)
app.include_router(reputation.router)


@app.get("/")
async def root():
    return {
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": ["/health", "/skills", "/verify-and-mint", "/reputation"],
    }
