# staking_client/config/settings.py

import logging
import os
import re
from pathlib import Path
from typing import Optional

import coloredlogs
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ANSI color codes
RED = "\033[91m"
YELLOW = "\033[93m"
RESET = "\033[0m"

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_IDL_PATH = PACKAGE_DIR / "idl" / "token_staking.json"
DEFAULT_DEPLOYMENT_FILE = Path(__file__).resolve().parent / "deployments.yaml"

CLUSTER_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet": "https://api.mainnet-beta.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "localnet": "http://127.0.0.1:8899",
}
COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")

# Base58 signatures (87-88 chars) and public keys (32-44 chars)
BASE58_ID_REGEX = re.compile(r"(\b[1-9A-HJ-NP-Za-km-z]{32,88}\b)")
FAILED_REGEX = re.compile(r"(\bfailed\b)", re.IGNORECASE)


class HighlightFormatter(coloredlogs.ColoredFormatter):
    """Custom formatter to highlight 'failed' and base58 addresses/signatures."""

    def format(self, record):
        formatted_message = super().format(record)
        try:
            if FAILED_REGEX.search(formatted_message):
                formatted_message = FAILED_REGEX.sub(
                    lambda m: f"{RED}{m.group(1)}{RESET}", formatted_message
                )

            def replace_id(match):
                id_str = match.group(1)
                # Plain words of 32+ letters are not worth coloring
                if not any(ch.isdigit() for ch in id_str):
                    return id_str
                return f"{YELLOW}{id_str}{RESET}"

            formatted_message = BASE58_ID_REGEX.sub(replace_id, formatted_message)

        except Exception as format_err:
            logging.getLogger().exception(f"Error in HighlightFormatter: {format_err}")

        return formatted_message


class Settings(BaseSettings):
    """
    Central configuration for the staking client, loaded from environment
    variables or a .env file.

    ANCHOR_PROVIDER_URL and ANCHOR_WALLET keep the names the Anchor toolchain
    uses so an existing Anchor shell environment works unchanged. Program
    addresses left unset fall back to the deployment profile selected by
    STAKING_CLUSTER.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        validate_default=True,
    )

    # --- Cluster connection ---
    ANCHOR_PROVIDER_URL: str = Field(
        default="devnet",
        alias="ANCHOR_PROVIDER_URL",
        description="Solana RPC URL or cluster name (devnet/testnet/mainnet/localnet)",
    )
    ANCHOR_WALLET: str = Field(
        default="~/.config/solana/id.json",
        alias="ANCHOR_WALLET",
        description="Path to the payer keypair file (Solana CLI JSON format)",
    )
    STAKING_COMMITMENT: str = Field(
        default="confirmed",
        alias="STAKING_COMMITMENT",
        description="Commitment level used to submit and fetch transactions",
    )

    # --- Program / deployment ---
    STAKING_CLUSTER: str = Field(
        default="devnet",
        alias="STAKING_CLUSTER",
        description="Deployment profile to read program addresses from",
    )
    STAKING_DEPLOYMENT_FILE: str = Field(
        default=str(DEFAULT_DEPLOYMENT_FILE),
        alias="STAKING_DEPLOYMENT_FILE",
        description="YAML file with per-cluster program addresses",
    )
    STAKING_IDL_PATH: str = Field(
        default=str(DEFAULT_IDL_PATH),
        alias="STAKING_IDL_PATH",
        description="Anchor IDL describing the staking program",
    )
    STAKING_PROGRAM_ID: Optional[str] = Field(
        None, alias="STAKING_PROGRAM_ID", description="Staking program address"
    )
    STAKING_OWNER: Optional[str] = Field(
        None, alias="STAKING_OWNER", description="Owner recorded on new staking accounts"
    )
    STAKING_TOKEN_MINT: Optional[str] = Field(
        None, alias="STAKING_TOKEN_MINT", description="Mint of the staked token"
    )
    STAKING_TOKEN_PROGRAM: Optional[str] = Field(
        None, alias="STAKING_TOKEN_PROGRAM", description="SPL token program address"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("ANCHOR_PROVIDER_URL", mode="before")
    def validate_provider_url(cls, value: Optional[str]):
        if value is None:
            return CLUSTER_URLS["devnet"]

        value_str = str(value).strip()

        # If already full URL, keep it
        if value_str.startswith("http://") or value_str.startswith("https://"):
            return value_str

        normalized = value_str.lower()
        if normalized not in CLUSTER_URLS:
            raise ValueError(
                f"Unknown cluster '{value_str}'. Use a URL or one of: {', '.join(CLUSTER_URLS)}"
            )
        return CLUSTER_URLS[normalized]

    @field_validator("STAKING_COMMITMENT", mode="before")
    def validate_commitment(cls, value: str):
        normalized = str(value).strip().lower()
        if normalized not in COMMITMENT_LEVELS:
            raise ValueError(
                f"Invalid commitment '{value}'. Must be one of {COMMITMENT_LEVELS}"
            )
        return normalized

    @field_validator("ANCHOR_WALLET", mode="after")
    def expand_wallet_path(cls, value: str):
        return os.path.expanduser(value)

    @field_validator("STAKING_CLUSTER", mode="before")
    def normalize_cluster(cls, value: str):
        normalized = str(value).strip().lower()
        return "mainnet" if normalized == "mainnet-beta" else normalized


def resolve_log_level(level_name: Optional[str]) -> int:
    """Map a level name to a logging constant, defaulting to INFO."""
    level_str = (level_name or "").upper()
    if level_str not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        return logging.INFO
    return getattr(logging, level_str)


DEFAULT_LEVEL_STYLES = {
    "debug": {"color": "green"},
    "info": {"color": "cyan"},
    "warning": {"color": "yellow"},
    "error": {"color": "red"},
    "critical": {"bold": True, "color": "red"},
}
DEFAULT_FIELD_STYLES = {
    "asctime": {"color": "magenta"},
    "levelname": {"bold": True, "color": "blue"},
    "name": {"color": "white"},
}
DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level_name: Optional[str] = None) -> int:
    """Install coloredlogs on the root logger. Returns the level applied."""
    level = resolve_log_level(level_name)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    highlight_formatter = HighlightFormatter(
        fmt=DEFAULT_FMT,
        level_styles=DEFAULT_LEVEL_STYLES,
        field_styles=DEFAULT_FIELD_STYLES,
    )
    coloredlogs.install(level=level, formatter=highlight_formatter, reconfigure=True)

    # httpx logs every RPC round trip at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return level


# --- Module-level instance used across the package ---
try:
    settings = Settings()  # type: ignore
except Exception as e:
    print(f"CRITICAL: Error loading settings: {e}. Using default values.")
    settings = Settings.model_construct(  # type: ignore
        ANCHOR_PROVIDER_URL=CLUSTER_URLS["devnet"],
        ANCHOR_WALLET=os.path.expanduser("~/.config/solana/id.json"),
    )

LOG_LEVEL_CONFIG = configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.debug(
    f"Settings loaded. Log level set to {logging.getLevelName(LOG_LEVEL_CONFIG)}."
)
