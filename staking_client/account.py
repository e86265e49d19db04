"""
Account module - Solana keypair functionality

Wraps solders keypairs for the payer wallet and the staking accounts the
client creates. Keypair files use the Solana CLI format: a JSON array of the
64 secret key bytes.
"""

import json
import logging
import os
from pathlib import Path
from typing import Union

from anchorpy import Wallet
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .config.config_loader import parse_pubkey
from .errors import WalletError

logger = logging.getLogger(__name__)


class StakingWallet:
    """Wrapper for a Solana keypair"""

    def __init__(self, keypair: Keypair = None):
        self.keypair = keypair if keypair is not None else Keypair()

    @classmethod
    def generate(cls) -> "StakingWallet":
        return cls(Keypair())

    @classmethod
    def from_bytes(cls, secret: Union[bytes, list]) -> "StakingWallet":
        try:
            return cls(Keypair.from_bytes(bytes(secret)))
        except Exception as e:
            raise WalletError(f"Invalid keypair bytes: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StakingWallet":
        """Load a Solana CLI keypair file"""
        file_path = Path(path).expanduser()
        if not file_path.is_file():
            raise WalletError(f"Keypair file not found: {file_path}")

        try:
            with open(file_path, "r") as f:
                secret = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise WalletError(f"Could not read keypair file {file_path}: {e}") from e

        if not isinstance(secret, list) or len(secret) != 64:
            raise WalletError(
                f"Keypair file {file_path} must hold a JSON array of 64 bytes"
            )

        wallet = cls.from_bytes(secret)
        logger.debug(f"Loaded wallet {wallet.address} from {file_path}")
        return wallet

    def save(self, path: Union[str, Path]) -> Path:
        """Write the keypair in Solana CLI format, readable by the owner only"""
        file_path = Path(path).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            json.dump(list(bytes(self.keypair)), f)
        os.chmod(file_path, 0o600)
        return file_path

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    @property
    def address(self) -> str:
        """Base58 public key"""
        return str(self.keypair.pubkey())

    def to_anchor_wallet(self) -> Wallet:
        """AnchorPy wallet used by the provider to sign as fee payer"""
        return Wallet(self.keypair)

    def __repr__(self):
        return f"StakingWallet({self.address})"


__all__ = [
    "StakingWallet",
    "Keypair",
    "Pubkey",
    "parse_pubkey",
]
