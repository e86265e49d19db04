from typing import Callable, List, Optional

from pydantic import BaseModel, Field
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..account import StakingWallet
from ..config.config_loader import ResolvedProgramConfig
from ..config.settings import logger
from ..core_client.program_client import STAKE_TERMS, UNSTAKE_TIERS, StakingProgramClient
from ..errors import TransactionError

# Called with the signature once the transaction is confirmed, before its logs are fetched
SubmittedCallback = Callable[[Signature], None]


class TransactionResult(BaseModel):
    """Outcome of one submitted instruction"""

    instruction: str
    signature: str
    logs: List[str] = Field(default_factory=list)
    staking_account: Optional[str] = None


async def _fetch_logs(
    client: StakingProgramClient,
    signature: Signature,
    on_submitted: Optional[SubmittedCallback],
) -> List[str]:
    if on_submitted is not None:
        on_submitted(signature)
    logger.debug("Fetching transaction logs...")
    try:
        return await client.get_transaction_logs(signature)
    except TransactionError as e:
        # The transaction itself landed; keep its signature on the error
        raise TransactionError(str(e), signature=str(signature), logs=e.logs) from e


async def initialize_staking_account(
    client: StakingProgramClient,
    program_config: ResolvedProgramConfig,
    staking_account: Optional[StakingWallet] = None,
    on_submitted: Optional[SubmittedCallback] = None,
) -> TransactionResult:
    """
    Creates a new staking account and returns the confirmed transaction logs.

    Args:
        client (StakingProgramClient): A connected program client
        program_config (ResolvedProgramConfig): Owner, mint and token program to use
        staking_account (StakingWallet, optional): Keypair for the new account.
            A fresh one is generated if omitted.
        on_submitted (callable, optional): Receives the signature after
            confirmation, before the logs are fetched.

    Returns:
        TransactionResult: Signature, logs and the new account address

    Raises:
        TransactionError: If the transaction is rejected or cannot be confirmed,
            or its logs cannot be fetched (the error then carries the signature)
    """
    staking_account = staking_account or StakingWallet.generate()
    logger.debug(f"Staking Account PublicKey: {staking_account.address}")

    signature = await client.initialize(
        owner=program_config.owner,
        staking_account=staking_account,
        token_mint=program_config.token_mint,
        token_program=program_config.token_program,
    )
    logs = await _fetch_logs(client, signature, on_submitted)

    return TransactionResult(
        instruction="initialize",
        signature=str(signature),
        logs=logs,
        staking_account=staking_account.address,
    )


async def stake_tokens(
    client: StakingProgramClient,
    program_config: ResolvedProgramConfig,
    term: str,
    amount: int,
    from_account: Pubkey,
    to_account: Pubkey,
    staking_account: Pubkey,
    on_submitted: Optional[SubmittedCallback] = None,
) -> TransactionResult:
    """
    Stakes tokens into an existing staking account and fetches the logs.

    The configured token mint and token program are used for the transfer.
    """
    signature = await client.stake(
        term=term,
        amount=amount,
        from_account=from_account,
        to_account=to_account,
        staking_account=staking_account,
        mint=program_config.token_mint,
        token_program=program_config.token_program,
    )
    logs = await _fetch_logs(client, signature, on_submitted)
    return TransactionResult(
        instruction=STAKE_TERMS[term],
        signature=str(signature),
        logs=logs,
        staking_account=str(staking_account),
    )


async def unstake_tokens(
    client: StakingProgramClient,
    program_config: ResolvedProgramConfig,
    tier: str,
    amount: int,
    from_account: Pubkey,
    to_account: Pubkey,
    staking_account: Pubkey,
    on_submitted: Optional[SubmittedCallback] = None,
) -> TransactionResult:
    """Unstakes tokens back to the owner's token account and fetches the logs."""
    signature = await client.unstake(
        tier=tier,
        amount=amount,
        from_account=from_account,
        to_account=to_account,
        staking_account=staking_account,
        mint=program_config.token_mint,
        token_program=program_config.token_program,
    )
    logs = await _fetch_logs(client, signature, on_submitted)
    return TransactionResult(
        instruction=UNSTAKE_TIERS[tier],
        signature=str(signature),
        logs=logs,
        staking_account=str(staking_account),
    )
