"""
Deployment loader for the staking client
Loads per-cluster program addresses from YAML and merges them with settings
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

import yaml
from pydantic import BaseModel, Field
from solders.pubkey import Pubkey

from ..errors import ConfigError
from .settings import Settings, DEFAULT_DEPLOYMENT_FILE

logger = logging.getLogger(__name__)


class ProgramConfig(BaseModel):
    """Addresses needed to talk to one staking program deployment"""

    program_id: Optional[str] = None
    owner: Optional[str] = None
    token_mint: Optional[str] = None
    token_program: Optional[str] = None


class DeploymentConfig(BaseModel):
    """All known deployments, keyed by cluster name"""

    deployments: Dict[str, ProgramConfig] = Field(default_factory=dict)

    def for_cluster(self, cluster: str) -> ProgramConfig:
        """Get the deployment for a cluster, or an empty one if unknown"""
        profile = self.deployments.get(cluster.lower())
        if profile is None:
            logger.warning(f"No deployment profile for cluster '{cluster}'")
            return ProgramConfig()
        return profile


def load_deployments(path: Optional[Union[str, Path]] = None) -> DeploymentConfig:
    """Load the deployment YAML file. A missing file yields no profiles."""
    file_path = Path(path) if path is not None else DEFAULT_DEPLOYMENT_FILE

    if not file_path.exists():
        logger.warning(f"Deployment file not found: {file_path}")
        return DeploymentConfig()

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing deployment file {file_path}: {e}")
        raise ConfigError(f"Failed to load {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Deployment file {file_path} must contain a mapping")

    try:
        config = DeploymentConfig(**data)
    except Exception as e:
        raise ConfigError(f"Invalid deployment file {file_path}: {e}") from e

    logger.debug(f"Loaded deployments for: {', '.join(config.deployments) or 'none'}")
    return config


class ResolvedProgramConfig(BaseModel):
    """Program addresses after merging settings over the deployment profile"""

    model_config = {"arbitrary_types_allowed": True}

    program_id: Pubkey
    owner: Pubkey
    token_mint: Pubkey
    token_program: Pubkey


def parse_pubkey(value: str, label: str) -> Pubkey:
    """Parse a base58 public key, raising ConfigError with the field label"""
    try:
        return Pubkey.from_string(str(value).strip())
    except Exception as e:
        raise ConfigError(f"Invalid {label} address '{value}': {e}") from e


def resolve_program_config(
    settings: Settings,
    deployments: Optional[DeploymentConfig] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ResolvedProgramConfig:
    """
    Merge explicit settings (and optional CLI overrides) over the deployment
    profile for settings.STAKING_CLUSTER.

    Raises:
        ConfigError: If an address is missing everywhere or is not valid base58.
    """
    if deployments is None:
        deployments = load_deployments(settings.STAKING_DEPLOYMENT_FILE)

    profile = deployments.for_cluster(settings.STAKING_CLUSTER)
    explicit = {
        "program_id": settings.STAKING_PROGRAM_ID,
        "owner": settings.STAKING_OWNER,
        "token_mint": settings.STAKING_TOKEN_MINT,
        "token_program": settings.STAKING_TOKEN_PROGRAM,
    }
    for key, value in (overrides or {}).items():
        if value is not None:
            explicit[key] = value

    resolved = {}
    for key, value in explicit.items():
        chosen = value if value is not None else getattr(profile, key)
        if chosen is None:
            raise ConfigError(
                f"No {key} configured for cluster '{settings.STAKING_CLUSTER}'. "
                f"Set STAKING_{key.upper()} or add it to the deployment file."
            )
        resolved[key] = parse_pubkey(chosen, key)

    return ResolvedProgramConfig(**resolved)
