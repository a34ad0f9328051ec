from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from contracts.errors import ContractError, map_error_message, map_revert_reason


class _RevertError(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__("")
        self.reason = reason


def test_revert_reasons_map_to_codes():
    assert map_revert_reason("Caller is unauthorized") == "UNAUTHORIZED"
    assert map_revert_reason("Token does not exist") == "NOT_FOUND"
    assert map_revert_reason("Pausable: paused") == "CONTRACT_PAUSED"
    assert map_revert_reason("something odd") == "CONTRACT_REVERT"


def test_transport_codes_win_over_gas():
    assert map_error_message("network error while estimating gas limit") == "NETWORK_ERROR"
    assert map_error_message("request timed out") == "TIMEOUT_ERROR"


def test_gas_and_message_codes():
    assert map_error_message("gas too low") == "INSUFFICIENT_GAS"
    assert map_error_message("exceeds block gas limit") == "GAS_LIMIT_EXCEEDED"
    assert map_error_message("User rejected the request") == "USER_REJECTED"
    assert map_error_message("???") == "UNKNOWN_ERROR"


def test_from_error_uses_revert_reason():
    err = ContractError.from_error(_RevertError("insufficient balance for transfer"))
    assert err.code == "INSUFFICIENT_BALANCE"
    assert err.message == "insufficient balance for transfer"
    assert err.is_user_actionable()
    assert not err.is_retryable()


def test_from_error_passes_contract_error_through():
    original = ContractError("RATE_LIMITED", "slow down")
    assert ContractError.from_error(original) is original
    assert original.is_retryable()


def test_from_error_falls_back_to_message():
    err = ContractError.from_error(RuntimeError("connection reset by peer"))
    assert err.code == "NETWORK_ERROR"
    assert err.user_message().startswith("Network connection error")


def test_to_dict_shape():
    payload = ContractError("NOT_FOUND", "missing", {"status": "404"}, "0xabc").to_dict()
    assert payload["code"] == "NOT_FOUND"
    assert payload["details"] == {"status": "404"}
    assert payload["transaction_hash"] == "0xabc"
    assert isinstance(payload["timestamp"], int)
