"""
Core Client package for the staking client.
This package provides the AnchorPy-backed program client.
"""

from .program_client import (
    StakingProgramClient,
    StakingAccountInfo,
    STAKE_TERMS,
    UNSTAKE_TIERS,
)

__all__ = [
    "StakingProgramClient",
    "StakingAccountInfo",
    "STAKE_TERMS",
    "UNSTAKE_TIERS",
]
