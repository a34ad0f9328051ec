"""
Backend — Shared Configuration
================================

Environment-driven bridge configuration and the lazily built bridge.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import HTTPException

from integration.bridge import AIContractBridge
from integration.models import (
    AIConfig,
    BridgeOptions,
    ContractAddresses,
    IPFSConfig,
    VerificationBridgeConfig,
)
from integration.skill_mapping import default_mapping_config

logger = logging.getLogger("backend.config")

# ─────────────────────────────────────────────────────────────────────────────
# Load .env
# ─────────────────────────────────────────────────────────────────────────────
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

SERVICE_NAME = "TalentChain AI Bridge"
SERVICE_VERSION = "1.0.0"


def _flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_bridge_config() -> VerificationBridgeConfig:
    """Build the bridge configuration from environment variables."""
    return VerificationBridgeConfig(
        contract_addresses=ContractAddresses(
            skill_token=os.environ.get("SKILL_TOKEN_ADDRESS", ""),
            talent_pool=os.environ.get("TALENT_POOL_ADDRESS", ""),
            reputation_oracle=os.environ.get("REPUTATION_ORACLE_ADDRESS", ""),
        ),
        ai_config=AIConfig(
            github_api_key=os.environ.get("GITHUB_TOKEN") or None,
            linkedin_api_key=os.environ.get("LINKEDIN_TOKEN") or None,
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            huggingface_api_key=os.environ.get("HUGGINGFACE_API_KEY") or None,
        ),
        ipfs_config=IPFSConfig(
            endpoint=os.environ.get("IPFS_ENDPOINT", ""),
            api_key=os.environ.get("IPFS_API_KEY") or None,
        ),
        skill_mapping_config=default_mapping_config(),
        options=BridgeOptions(
            auto_mint=_flag("AUTO_MINT", True),
            batch_size=int(os.environ.get("MINT_BATCH_SIZE", "10")),
            retry_attempts=int(os.environ.get("RETRY_ATTEMPTS", "3")),
            gas_optimization=_flag("GAS_OPTIMIZATION", True),
        ),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Singleton bridge
# ─────────────────────────────────────────────────────────────────────────────
_bridge: AIContractBridge | None = None


def get_bridge() -> AIContractBridge:
    """Lazy-init the AI ↔ contract bridge."""
    global _bridge

    if _bridge is None:
        _bridge = AIContractBridge(load_bridge_config())
        logger.info("Bridge initialized — skill token: %s", _bridge.config.contract_addresses.skill_token)

    return _bridge


def require_bridge() -> AIContractBridge:
    """get_bridge() for routers: a misconfigured bridge becomes a 503."""
    try:
        return get_bridge()
    except ValueError as exc:
        logger.error("Bridge unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))
