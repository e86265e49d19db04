"""
Client for the token staking Anchor program on Solana.
"""

__version__ = "0.1.0"
