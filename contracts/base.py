"""
Contracts — Base Service
==========================

Shared plumbing for the contract services: result construction,
response unwrapping, retries with exponential backoff and a health check.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from contracts.api_client import ApiError, TalentChainApiClient
from contracts.errors import ContractError, map_error_message
from contracts.models import ContractCallResult, ContractErrorInfo

logger = logging.getLogger("contracts.base")

T = TypeVar("T")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0


def _api_error_code(error: ApiError) -> str:
    if error.code:
        return error.code
    if error.status == 0:
        return "NETWORK_ERROR"
    if error.status in (401, 403):
        return "UNAUTHORIZED"
    if error.status == 404:
        return "NOT_FOUND"
    if error.status == 429:
        return "RATE_LIMITED"
    if error.status in (400, 422):
        return "VALIDATION_ERROR"
    return map_error_message(error.message)


class BaseContractService:
    def __init__(self, contract_address: str, api: Optional[TalentChainApiClient] = None) -> None:
        self.contract_address = contract_address
        self.api = api or TalentChainApiClient()

    def get_contract_address(self) -> str:
        return self.contract_address

    # ── Results ──────────────────────────────────────────────────────────
    @staticmethod
    def success_result(
        data: Any = None,
        transaction_hash: Optional[str] = None,
        gas_used: Optional[str] = None,
        warnings: Optional[list[str]] = None,
    ) -> ContractCallResult:
        return ContractCallResult(
            success=True,
            data=data,
            transaction_hash=transaction_hash,
            gas_used=gas_used,
            warnings=warnings or [],
        )

    @staticmethod
    def error_result(error: ContractError, warnings: Optional[list[str]] = None) -> ContractCallResult:
        return ContractCallResult(
            success=False,
            transaction_hash=error.transaction_hash,
            error=ContractErrorInfo(code=error.code, message=error.message, details=error.details),
            warnings=warnings or [],
        )

    @staticmethod
    def wrap_error(error: Exception, fallback_message: str) -> ContractError:
        if isinstance(error, ApiError):
            return ContractError(_api_error_code(error), error.message, {"status": error.status})
        return ContractError.from_error(error, fallback_message)

    @staticmethod
    def unwrap(response: dict[str, Any], fallback_message: str) -> dict[str, Any]:
        """Return the ``data`` payload of a backend response or raise ContractError."""
        if not response.get("success", True):
            message = response.get("error") or response.get("message") or fallback_message
            raise ContractError(map_error_message(message), message)
        data = response.get("data")
        return data if isinstance(data, dict) else {"value": data}

    @staticmethod
    def transaction_hash(data: dict[str, Any]) -> Optional[str]:
        return data.get("transaction_hash") or data.get("transactionHash") or data.get("tx_hash")

    @staticmethod
    def gas_used(data: dict[str, Any]) -> Optional[str]:
        gas = data.get("gas_used") or data.get("gasUsed")
        return str(gas) if gas is not None else None

    # ── Retry ────────────────────────────────────────────────────────────
    async def retry_operation(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
    ) -> T:
        """Run ``operation``; on failure wait ``base_delay * 2**attempt`` and retry."""
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= max_retries:
                    raise
                delay = base_delay * (2 ** attempt)
                logger.warning("Attempt %d failed (%s), retrying in %.1fs", attempt + 1, e, delay)
                await asyncio.sleep(delay)
                attempt += 1

    # ── Health ───────────────────────────────────────────────────────────
    async def health_check(self) -> bool:
        try:
            resp = await self.api.check_health()
        except ApiError as e:
            logger.warning("Contract service health check failed: %s", e)
            return False
        return bool(resp.get("success", True))
