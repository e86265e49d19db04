"""
Program client for the token staking program on Solana
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from anchorpy import Context, Program, Provider
from pydantic import BaseModel
from pyheck import snake
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed, Finalized, Processed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYS_PROGRAM_ID

from ..account import StakingWallet
from ..errors import IdlError, TransactionErrorHandler
from ..interface import ProgramInterface

logger = logging.getLogger(__name__)

COMMITMENTS: Dict[str, Commitment] = {
    "processed": Processed,
    "confirmed": Confirmed,
    "finalized": Finalized,
}
# getTransaction only serves confirmed or finalized transactions
LOG_FETCH_COMMITMENTS: Dict[Commitment, Commitment] = {
    Processed: Confirmed,
    Confirmed: Confirmed,
    Finalized: Finalized,
}

# Lock-up term -> IDL instruction name
STAKE_TERMS = {"24m": "stake24M", "36m": "stake36M", "60m": "stake60M"}
# Unstake tier -> IDL instruction name
UNSTAKE_TIERS = {"30": "unstake30", "40": "unstake40"}

STAKING_ACCOUNT_TYPE = "StakingAccount"
U64_MAX = 2**64 - 1


class StakingAccountInfo(BaseModel):
    """Decoded on-chain StakingAccount"""

    address: str
    owner: str
    token_mint: str
    token_account: str
    is_initialized: bool


def validate_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer, got {amount!r}")
    if amount <= 0 or amount > U64_MAX:
        raise ValueError(f"Amount must be between 1 and {U64_MAX}, got {amount}")
    return amount


class StakingProgramClient:
    """
    Client for the token staking program.

    Provides methods to:
    - Create a staking account (initialize)
    - Stake tokens for a 24, 36 or 60 month term
    - Unstake tokens at the 30 or 40 tier
    - Read a staking account
    - Fetch the log messages of a confirmed transaction

    Usable as an async context manager; the RPC connection is opened on
    entry and closed on exit unless one was passed in.
    """

    def __init__(
        self,
        rpc_url: str,
        wallet: StakingWallet,
        interface: ProgramInterface,
        program_id: Pubkey,
        commitment: str = "confirmed",
        connection: Optional[AsyncClient] = None,
        program: Optional[Program] = None,
    ):
        if commitment not in COMMITMENTS:
            raise ValueError(
                f"Invalid commitment '{commitment}'. Must be one of {list(COMMITMENTS)}"
            )
        self.rpc_url = rpc_url
        self.wallet = wallet
        self.interface = interface
        self.program_id = program_id
        self.commitment = COMMITMENTS[commitment]
        self.connection = connection
        self.program = program
        self._owns_connection = connection is None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        """Open the RPC connection and build the AnchorPy program"""
        if self.connection is None:
            self.connection = AsyncClient(self.rpc_url, commitment=self.commitment)
            self._owns_connection = True

        if self.program is None:
            provider = Provider(
                self.connection,
                self.wallet.to_anchor_wallet(),
                opts=TxOpts(skip_confirmation=False, preflight_commitment=self.commitment),
            )
            self.program = Program(self.interface.idl, self.program_id, provider)

        logger.info(f"Connected to {self.rpc_url} (program {self.program_id})")

    async def close(self):
        if self.connection is not None and self._owns_connection:
            await self.connection.close()
            self.connection = None
            self.program = None
        logger.debug("Staking program client disconnected")

    def _require_connected(self):
        if self.program is None or self.connection is None:
            raise RuntimeError("Client is not connected. Use 'async with' or call connect().")

    def build_accounts(
        self, instruction: str, supplied: Dict[str, Pubkey]
    ) -> Dict[str, Pubkey]:
        """
        Arrange the accounts for an instruction in IDL order.

        The system program and the payer (`user`) are filled in when the IDL
        asks for them and the caller did not supply them. Accounts the IDL
        does not list are dropped.

        Raises:
            IdlError: If an account the IDL requires was not supplied.
        """
        defaults = {"system_program": SYS_PROGRAM_ID, "user": self.wallet.pubkey}
        required = self.interface.account_names(instruction)

        accounts = {}
        missing = []
        for name in required:
            if name in supplied:
                accounts[name] = supplied[name]
            elif name in defaults:
                accounts[name] = defaults[name]
            else:
                missing.append(name)

        extra = sorted(set(supplied) - set(required))
        if extra:
            logger.debug(f"Ignoring accounts not used by '{instruction}': {extra}")
        if missing:
            raise IdlError(f"Missing accounts for '{instruction}': {', '.join(missing)}")
        return accounts

    async def send_instruction(
        self,
        instruction: str,
        args: Sequence[Any],
        accounts: Dict[str, Pubkey],
        signers: Optional[List[Keypair]] = None,
    ) -> Signature:
        """
        Build, sign and submit one instruction, waiting for confirmation.

        The payer wallet always signs; `signers` lists any additional keypairs
        (for example a newly created account).
        """
        self._require_connected()

        expected_args = self.interface.arg_names(instruction)
        if len(args) != len(expected_args):
            raise IdlError(
                f"'{instruction}' takes {len(expected_args)} argument(s) "
                f"({', '.join(expected_args)}), got {len(args)}"
            )

        ordered = self.build_accounts(instruction, accounts)
        rpc_name = snake(instruction)

        logger.info(f"Submitting '{rpc_name}' to program {self.program_id}")
        with TransactionErrorHandler(rpc_name):
            signature = await self.program.rpc[rpc_name](
                *args,
                ctx=Context(accounts=ordered, signers=list(signers or [])),
            )

        logger.info(f"'{rpc_name}' confirmed: {signature}")
        return signature

    async def initialize(
        self,
        owner: Pubkey,
        staking_account: StakingWallet,
        token_mint: Pubkey,
        token_program: Pubkey,
    ) -> Signature:
        """Create and initialize a staking account recording `owner`."""
        return await self.send_instruction(
            "initialize",
            [owner],
            {
                "staking_account": staking_account.pubkey,
                "token_mint": token_mint,
                "user": self.wallet.pubkey,
                "system_program": SYS_PROGRAM_ID,
                "token_program": token_program,
            },
            signers=[staking_account.keypair],
        )

    async def stake(
        self,
        term: str,
        amount: int,
        from_account: Pubkey,
        to_account: Pubkey,
        staking_account: Pubkey,
        mint: Pubkey,
        token_program: Pubkey,
    ) -> Signature:
        """
        Stake `amount` base units for the given lock-up term.

        Args:
            term: One of "24m", "36m", "60m"
            amount: Token amount in base units
            from_account: Staker's token account
            to_account: The staking account's token vault
            staking_account: The StakingAccount created by initialize
            mint: Mint of the staked token
            token_program: SPL token program owning the token accounts
        """
        instruction = STAKE_TERMS.get(str(term).lower())
        if instruction is None:
            raise ValueError(f"Unknown stake term '{term}'. Must be one of {list(STAKE_TERMS)}")

        return await self.send_instruction(
            instruction,
            [validate_amount(amount)],
            {
                "from": from_account,
                "to": to_account,
                "user": self.wallet.pubkey,
                "token_program": token_program,
                "staking_account": staking_account,
                "mint": mint,
            },
        )

    async def unstake(
        self,
        tier: str,
        amount: int,
        from_account: Pubkey,
        to_account: Pubkey,
        staking_account: Pubkey,
        mint: Pubkey,
        token_program: Pubkey,
    ) -> Signature:
        """Unstake `amount` base units. The payer wallet signs as the owner."""
        instruction = UNSTAKE_TIERS.get(str(tier))
        if instruction is None:
            raise ValueError(f"Unknown unstake tier '{tier}'. Must be one of {list(UNSTAKE_TIERS)}")

        return await self.send_instruction(
            instruction,
            [validate_amount(amount)],
            {
                "from": from_account,
                "to": to_account,
                "staking_account": staking_account,
                "owner": self.wallet.pubkey,
                "token_program": token_program,
                "mint": mint,
            },
        )

    async def fetch_staking_account(self, address: Pubkey) -> StakingAccountInfo:
        """Read and decode a StakingAccount"""
        self._require_connected()
        if not self.interface.has_account_type(STAKING_ACCOUNT_TYPE):
            raise IdlError(f"IDL '{self.interface.name}' has no {STAKING_ACCOUNT_TYPE} account type")

        with TransactionErrorHandler("fetch_staking_account"):
            data = await self.program.account[STAKING_ACCOUNT_TYPE].fetch(
                address, self.commitment
            )

        return StakingAccountInfo(
            address=str(address),
            owner=str(data.owner),
            token_mint=str(data.token_mint),
            token_account=str(data.token_account),
            is_initialized=bool(data.is_initialized),
        )

    async def get_transaction_logs(self, signature: Union[Signature, str]) -> List[str]:
        """
        Fetch a confirmed transaction and return its log messages.

        The lookup runs at the configured commitment, raised to `confirmed`
        when the client was built with `processed`. Returns an empty list if
        the cluster has no record of the transaction or it carries no logs.
        """
        self._require_connected()
        if isinstance(signature, str):
            signature = Signature.from_string(signature)

        commitment = LOG_FETCH_COMMITMENTS[self.commitment]
        with TransactionErrorHandler("get_transaction"):
            resp = await self.connection.get_transaction(
                signature,
                commitment=commitment,
                max_supported_transaction_version=0,
            )

        if resp.value is None:
            logger.warning(f"Transaction {signature} not found at '{commitment}' commitment")
            return []

        meta = resp.value.transaction.meta
        if meta is None or meta.log_messages is None:
            logger.warning(f"Transaction {signature} has no log messages")
            return []
        return list(meta.log_messages)
