"""
Tests for error wrapping and program log extraction
"""

from types import SimpleNamespace

import pytest
from anchorpy.error import ProgramError
from solana.rpc.core import RPCException

from staking_client.errors import (
    ConfigError,
    TransactionError,
    TransactionErrorHandler,
    extract_program_logs,
)

REJECTION_LOGS = [
    "Program log: Instruction: Stake24M",
    "Program log: AnchorError occurred. Error Code: ConstraintOwner.",
]


def test_logs_from_program_error():
    error = ProgramError(2004, "A has one constraint was violated", REJECTION_LOGS)
    assert extract_program_logs(error) == REJECTION_LOGS


def test_program_error_without_logs():
    assert extract_program_logs(ProgramError(2004, "A has one constraint was violated")) == []


def test_logs_from_preflight_failure():
    preflight = SimpleNamespace(message="Transaction simulation failed", data=SimpleNamespace(logs=REJECTION_LOGS))
    assert extract_program_logs(RPCException(preflight)) == REJECTION_LOGS


def test_plain_exception_has_no_logs():
    assert extract_program_logs(RuntimeError("boom")) == []


def test_handler_wraps_program_error_with_logs():
    with pytest.raises(TransactionError, match="stake24_m") as exc_info:
        with TransactionErrorHandler("stake24_m"):
            raise ProgramError(2004, "A has one constraint was violated", REJECTION_LOGS)

    assert exc_info.value.logs == REJECTION_LOGS
    assert exc_info.value.signature is None
    assert isinstance(exc_info.value.__cause__, ProgramError)


def test_handler_passes_client_errors_through():
    with pytest.raises(ConfigError):
        with TransactionErrorHandler("initialize"):
            raise ConfigError("Missing program_id")
