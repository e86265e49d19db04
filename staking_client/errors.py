"""
Staking client error types
Error classes and the handler wrapped around every on-chain call
"""

import logging
from contextlib import contextmanager
from typing import Generator, List, Optional

from anchorpy.error import ProgramError
from solana.rpc.core import RPCException

logger = logging.getLogger(__name__)


class StakingClientError(Exception):
    """Base exception for the staking client"""

    pass


class ConfigError(StakingClientError):
    """Configuration loading or validation error"""

    pass


class IdlError(StakingClientError):
    """The interface description is missing, malformed or lacks an entry"""

    pass


class WalletError(StakingClientError):
    """A keypair file could not be read or written"""

    pass


class TransactionError(StakingClientError):
    """A transaction could not be built, submitted or confirmed"""

    def __init__(
        self,
        message: str,
        signature: Optional[str] = None,
        logs: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.signature = signature
        self.logs = list(logs or [])


def extract_program_logs(error: BaseException) -> List[str]:
    """
    Pull program log lines out of an AnchorPy or RPC error, if it carries any.

    AnchorPy's ProgramError keeps the logs of the failed simulation; a
    preflight failure surfaces as an RPCException whose first argument holds
    the simulation result.
    """
    if isinstance(error, TransactionError):
        return error.logs
    if isinstance(error, ProgramError):
        return list(error.logs or [])
    if isinstance(error, RPCException) and error.args:
        data = getattr(error.args[0], "data", None)
        logs = getattr(data, "logs", None)
        if logs:
            return list(logs)
    return []


@contextmanager
def TransactionErrorHandler(operation: str) -> Generator[None, None, None]:
    """
    Context manager for on-chain operations.

    Staking client errors pass through untouched; anything else (RPC,
    network, program rejection) is logged and re-raised as TransactionError.

    Args:
        operation: Name of the operation being performed
    """
    try:
        yield
    except StakingClientError:
        raise
    except Exception as e:
        logger.error(f"Error in operation '{operation}': {e}")
        raise TransactionError(
            f"Failed {operation}: {e}", logs=extract_program_logs(e)
        ) from e
