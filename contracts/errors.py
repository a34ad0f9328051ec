"""
Contracts — Errors
====================

ContractError normalises failures coming back from the contract layer
(revert reasons, transport errors, validation) into a stable code.
"""

from __future__ import annotations

import time
from typing import Any, Optional

_REVERT_CODES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("insufficient balance",), "INSUFFICIENT_BALANCE"),
    (("unauthorized", "access denied"), "UNAUTHORIZED"),
    (("not found", "does not exist"), "NOT_FOUND"),
    (("already exists", "duplicate"), "ALREADY_EXISTS"),
    (("expired", "deadline"), "EXPIRED"),
    (("invalid", "bad"), "INVALID_PARAMETER"),
    (("paused",), "CONTRACT_PAUSED"),
    (("slippage",), "SLIPPAGE_EXCEEDED"),
    (("reentrancy",), "REENTRANCY_DETECTED"),
)

_TRANSPORT_CODES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("network", "connection"), "NETWORK_ERROR"),
    (("timeout", "timed out"), "TIMEOUT_ERROR"),
    (("rate limit",), "RATE_LIMITED"),
    (("nonce", "already known"), "NONCE_ERROR"),
)

_MESSAGE_CODES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("replacement",), "REPLACEMENT_UNDERPRICED"),
    (("user rejected", "user denied"), "USER_REJECTED"),
    (("wallet", "metamask"), "WALLET_ERROR"),
    (("signature",), "SIGNATURE_ERROR"),
    (("execution reverted",), "EXECUTION_REVERTED"),
    (("call exception",), "CALL_EXCEPTION"),
    (("transaction failed",), "TRANSACTION_FAILED"),
    (("validation",), "VALIDATION_ERROR"),
    (("parse", "format"), "PARSE_ERROR"),
)

RETRYABLE_CODES = {
    "NETWORK_ERROR",
    "TIMEOUT_ERROR",
    "RATE_LIMITED",
    "NONCE_ERROR",
    "REPLACEMENT_UNDERPRICED",
}

USER_ACTIONABLE_CODES = {
    "INSUFFICIENT_BALANCE",
    "INSUFFICIENT_GAS",
    "USER_REJECTED",
    "VALIDATION_ERROR",
    "INVALID_PARAMETER",
    "EXPIRED",
    "UNAUTHORIZED",
}

USER_MESSAGES = {
    "INSUFFICIENT_BALANCE": "Insufficient balance to complete this transaction.",
    "INSUFFICIENT_GAS": "Insufficient gas to complete this transaction. Please increase the gas limit.",
    "GAS_LIMIT_EXCEEDED": "Transaction requires more gas than the block limit allows.",
    "USER_REJECTED": "Transaction was rejected by the user.",
    "UNAUTHORIZED": "You are not authorized to perform this action.",
    "NOT_FOUND": "The requested resource was not found.",
    "ALREADY_EXISTS": "This resource already exists.",
    "EXPIRED": "This transaction has expired. Please try again.",
    "INVALID_PARAMETER": "Invalid parameters provided. Please check your input.",
    "CONTRACT_PAUSED": "The contract is currently paused. Please try again later.",
    "NETWORK_ERROR": "Network connection error. Please check your internet connection.",
    "TIMEOUT_ERROR": "Transaction timed out. Please try again.",
    "RATE_LIMITED": "Too many requests. Please wait a moment before trying again.",
    "NONCE_ERROR": "Transaction nonce error. Please refresh and try again.",
    "WALLET_ERROR": "Wallet connection error. Please check your wallet.",
    "SIGNATURE_ERROR": "Invalid signature. Please try signing again.",
    "EXECUTION_REVERTED": "Transaction failed during execution.",
    "VALIDATION_ERROR": "Input validation failed. Please check your data.",
    "SLIPPAGE_EXCEEDED": "Price slippage exceeded tolerance. Please adjust your slippage settings.",
    "REENTRANCY_DETECTED": "Reentrancy attack detected. Transaction rejected for security.",
}


def _match(text: str, table: tuple[tuple[tuple[str, ...], str], ...], default: str) -> str:
    lower = text.lower()
    for needles, code in table:
        if any(n in lower for n in needles):
            return code
    return default


def map_revert_reason(reason: str) -> str:
    return _match(reason, _REVERT_CODES, "CONTRACT_REVERT")


def map_error_message(message: str) -> str:
    code = _match(message, _TRANSPORT_CODES, "")
    if code:
        return code

    lower = message.lower()
    if "gas" in lower and "low" in lower:
        return "INSUFFICIENT_GAS"
    if "gas" in lower and "limit" in lower:
        return "GAS_LIMIT_EXCEEDED"
    return _match(message, _MESSAGE_CODES, "UNKNOWN_ERROR")


class ContractError(Exception):
    """A failed contract interaction with a normalised error code."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Any] = None,
        transaction_hash: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.transaction_hash = transaction_hash
        self.timestamp = int(time.time() * 1000)

    @classmethod
    def from_error(cls, error: Any, fallback_message: Optional[str] = None) -> "ContractError":
        if isinstance(error, ContractError):
            return error

        reason = getattr(error, "reason", None)
        message = str(error) if isinstance(error, Exception) and str(error) else None
        message = message or reason or fallback_message or "Unknown contract error"

        code = getattr(error, "code", None)
        if code:
            code = str(code)
        elif reason:
            code = map_revert_reason(reason)
        elif message:
            code = map_error_message(message)
        else:
            code = "UNKNOWN_ERROR"

        details = {
            key: str(getattr(error, key))
            for key in ("data", "status", "gas_used", "gas_limit")
            if getattr(error, key, None) is not None
        }
        tx_hash = getattr(error, "transaction_hash", None)
        return cls(code, message, details or None, tx_hash)

    def is_retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    def is_user_actionable(self) -> bool:
        return self.code in USER_ACTIONABLE_CODES

    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, self.message or "An unexpected error occurred.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "transaction_hash": self.transaction_hash,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"ContractError(code={self.code!r}, message={self.message!r})"
