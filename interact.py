"""
TalentChain AI Bridge — Interaction Script
============================================

CLI for running AI skill verification and minting against the
TalentChain backend.

Usage:
    python interact.py scan <github_user>
    python interact.py map <verification.json>
    python interact.py mint <address> --github <user> [--linkedin <profile_id>]
    python interact.py estimate <count> [--no-batch]

Environment:
    Reads .env for TALENTCHAIN_API_URL, TALENTCHAIN_API_TOKEN, the contract
    addresses, GITHUB_TOKEN, LINKEDIN_TOKEN, OPENAI_API_KEY and IPFS_ENDPOINT.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ai_integrations.models import ScanProgress
from ai_integrations.verification import AIVerificationService
from integration.models import IntegrationStatus, VerificationResult
from integration.skill_mapping import SkillMapper
from integration.verification import estimate_gas_cost

# ─────────────────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("talentchain")


def _log_scan(progress: ScanProgress) -> None:
    logger.info("  [%3d%%] %s", progress.progress, progress.current_task)


def _log_status(status: IntegrationStatus) -> None:
    logger.info("  [%3d%%] %-20s %s", status.progress, status.phase.value, status.current_step)
    for error in status.errors:
        logger.warning("    ⚠ %s: %s", error.code, error.message)


# ─────────────────────────────────────────────────────────────────────────────
# Core actions
# ─────────────────────────────────────────────────────────────────────────────
def scan(github_user: str) -> None:
    """Run AI verification only and print the detected skills."""
    service = AIVerificationService()
    result = asyncio.run(service.verify_all_skills(github=github_user, on_progress=_log_scan))

    logger.info("─" * 60)
    logger.info("📋 DETECTED SKILLS (%d, overall confidence %d)", len(result.skills_detected), result.overall_confidence)
    logger.info("─" * 60)
    for skill in result.skills_detected:
        logger.info("  %-28s %-12s %5.1f", skill.skill, skill.category.value, skill.confidence)
    for action in result.recommended_actions:
        logger.info("  → %s", action)


def map_file(path: str) -> None:
    """Map a saved verification result (JSON) to contract skills."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    result = VerificationResult.model_validate(raw)
    skills = SkillMapper().map_verification_to_skills(result)

    logger.info("─" * 60)
    logger.info("MAPPED SKILLS (%d)", len(skills))
    logger.info("─" * 60)
    for skill in skills:
        logger.info(
            "  %-14s %-24s level %3d  confidence %.2f  (%s)",
            skill.category, skill.subcategory, skill.level, skill.confidence, skill.evidence.source,
        )


def mint(address: str, github_user: str | None, linkedin_id: str | None) -> None:
    """Full verify → map → mint → reputation workflow."""
    from backend.config import load_bridge_config
    from integration.bridge import AIContractBridge

    bridge = AIContractBridge(load_bridge_config())
    result = asyncio.run(
        bridge.verify_and_mint_skills(address, github_user, linkedin_id, on_progress=_log_status)
    )

    logger.info("─" * 60)
    if result.success and result.minting_result:
        logger.info("✅ MINTED %d SKILL TOKENS", len(result.minting_result.token_ids))
        logger.info("  Token IDs       : %s", ", ".join(result.minting_result.token_ids))
        logger.info("  Transaction     : %s", result.minting_result.transaction_hash or "N/A")
    else:
        logger.error("❌ Verification / minting failed")
    for error in result.errors:
        logger.error("  %s", error)
    logger.info("─" * 60)

    if not result.success:
        sys.exit(1)


def estimate(count: int, batch: bool) -> None:
    cost = estimate_gas_cost(count, batch)
    logger.info("  Skills          : %d (%s)", count, "batch" if batch else "individual")
    logger.info("  Estimated gas   : %d", cost["estimated_gas"])
    logger.info("  Estimated cost  : %s ETH", cost["estimated_cost_eth"])
    logger.info("  %s", cost["recommendation"])


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────
def main() -> None:
    load_dotenv(Path(__file__).parent / ".env")

    parser = argparse.ArgumentParser(
        prog="interact",
        description="TalentChain AI Bridge — verification and minting CLI",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ── scan ─────────────────────────────────────────────────────────
    scan_parser = subparsers.add_parser("scan", help="Run AI verification on a GitHub user")
    scan_parser.add_argument("github_user", type=str, help="GitHub username")

    # ── map ──────────────────────────────────────────────────────────
    map_parser = subparsers.add_parser("map", help="Map a verification result JSON file")
    map_parser.add_argument("file", type=str, help="Path to a VerificationResult JSON file")

    # ── mint ─────────────────────────────────────────────────────────
    mint_parser = subparsers.add_parser("mint", help="Verify a user and mint skill tokens")
    mint_parser.add_argument("address", type=str, help="Recipient wallet address (0x…)")
    mint_parser.add_argument("--github", type=str, default=None, help="GitHub username")
    mint_parser.add_argument("--linkedin", type=str, default=None, help="LinkedIn profile id")

    # ── estimate ─────────────────────────────────────────────────────
    estimate_parser = subparsers.add_parser("estimate", help="Estimate gas for minting N skills")
    estimate_parser.add_argument("count", type=int, help="Number of skills")
    estimate_parser.add_argument("--no-batch", action="store_true", help="Estimate individual mints")

    args = parser.parse_args()

    if args.command == "scan":
        scan(args.github_user)
    elif args.command == "map":
        map_file(args.file)
    elif args.command == "mint":
        if not args.github and not args.linkedin:
            parser.error("mint requires --github and/or --linkedin")
        mint(args.address, args.github, args.linkedin)
    elif args.command == "estimate":
        estimate(args.count, not args.no_batch)


if __name__ == "__main__":
    main()
