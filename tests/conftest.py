"""
Test configuration and fixtures for staking client tests
"""

import os

import pytest
from solders.pubkey import Pubkey

from staking_client.account import StakingWallet
from staking_client.config.config_loader import ResolvedProgramConfig
from staking_client.config.settings import DEFAULT_IDL_PATH
from staking_client.core_client.program_client import StakingProgramClient
from staking_client.interface import load_idl
from tests.core.mock_client import MockConnection, MockProgram

# Devnet deployment addresses (public, safe to hard-code)
DEVNET_PROGRAM_ID = "kScf9gaYZfjVStDAL6V6tfhLWR29UKi2mK7aojJA8Xp"
DEVNET_OWNER = "6JxLdTweYt6cb6UeyCiqkPCVTo4RBxswfoQwHWe5aHzY"
DEVNET_TOKEN_MINT = "Azia2MRh34sWejk7ZpPxvXS2tQdcoq2xZja6RN3Q26o3"
TOKEN_2022_PROGRAM = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

SAMPLE_LOGS = [
    f"Program {DEVNET_PROGRAM_ID} invoke [1]",
    "Program log: Instruction: Initialize",
    "Program 11111111111111111111111111111111 invoke [2]",
    "Program 11111111111111111111111111111111 success",
    f"Program {DEVNET_PROGRAM_ID} consumed 9876 of 200000 compute units",
    f"Program {DEVNET_PROGRAM_ID} success",
]


@pytest.fixture
def interface():
    """The bundled token staking IDL"""
    return load_idl(DEFAULT_IDL_PATH)


@pytest.fixture
def payer():
    return StakingWallet.generate()


@pytest.fixture
def program_config():
    return ResolvedProgramConfig(
        program_id=Pubkey.from_string(DEVNET_PROGRAM_ID),
        owner=Pubkey.from_string(DEVNET_OWNER),
        token_mint=Pubkey.from_string(DEVNET_TOKEN_MINT),
        token_program=Pubkey.from_string(TOKEN_2022_PROGRAM),
    )


@pytest.fixture
def mock_program(interface):
    return MockProgram(interface.instruction_names())


@pytest.fixture
def mock_connection(mock_program):
    """Connection that already knows the mock program's signature"""
    connection = MockConnection()
    connection.add_transaction(mock_program.signature, SAMPLE_LOGS)
    return connection


@pytest.fixture
def program_client(payer, interface, program_config, mock_program, mock_connection):
    """Staking program client wired to the mocks"""
    return StakingProgramClient(
        rpc_url="https://api.devnet.solana.com",
        wallet=payer,
        interface=interface,
        program_id=program_config.program_id,
        commitment="confirmed",
        connection=mock_connection,
        program=mock_program,
    )


@pytest.fixture
def keypair_file(tmp_path, payer):
    """Payer keypair written in Solana CLI format"""
    return payer.save(tmp_path / "payer.json")


# Setup test environment
def pytest_configure(config):
    """Configure test environment"""
    os.environ["LOG_LEVEL"] = "DEBUG"

    # Register custom markers
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
