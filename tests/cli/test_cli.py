"""
CLI tests: commands run end to end against the mock program and connection
"""

import pytest
from click.testing import CliRunner
from pyheck import snake
from solders.pubkey import Pubkey

from staking_client.account import StakingWallet
from staking_client.cli import main as cli_main
from staking_client.core_client.program_client import STAKE_TERMS, StakingProgramClient


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in [
        "ANCHOR_PROVIDER_URL",
        "ANCHOR_WALLET",
        "STAKING_CLUSTER",
        "STAKING_PROGRAM_ID",
        "STAKING_OWNER",
        "STAKING_TOKEN_MINT",
        "STAKING_TOKEN_PROGRAM",
        "STAKING_IDL_PATH",
        "STAKING_DEPLOYMENT_FILE",
    ]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mocked_client(monkeypatch, mock_program, mock_connection):
    """Route every command's client through the mocks"""
    built = []

    def make_client(context):
        client = StakingProgramClient(
            rpc_url=context.settings.ANCHOR_PROVIDER_URL,
            wallet=context.wallet,
            interface=context.interface,
            program_id=context.program_config.program_id,
            commitment=context.settings.STAKING_COMMITMENT,
            connection=mock_connection,
            program=mock_program,
        )
        built.append(client)
        return client

    monkeypatch.setattr(cli_main, "make_client", make_client)
    return built


def test_initialize_prints_account_and_logs(runner, mocked_client, mock_program, keypair_file):
    result = runner.invoke(cli_main.stakingctl, ["initialize", "--wallet", str(keypair_file)])

    assert result.exit_code == 0, result.output
    staking_account = mock_program.last_call["ctx"].accounts["staking_account"]
    assert f"Staking Account PublicKey: {staking_account}" in result.output
    assert "Fetching transaction logs..." in result.output
    assert "Program log: Instruction: Initialize" in result.output
    assert "Success" in result.output
    assert mocked_client[0].rpc_url == "https://api.devnet.solana.com"
    assert result.output.index(str(mock_program.signature)) < result.output.index("Fetching transaction logs...")
    assert result.output.count(str(staking_account)) == 1


def test_initialize_saves_generated_keypair(runner, mocked_client, mock_program, keypair_file, tmp_path):
    target = tmp_path / "staking.json"
    result = runner.invoke(
        cli_main.stakingctl,
        ["initialize", "--wallet", str(keypair_file), "--save-keypair", str(target)],
    )

    assert result.exit_code == 0, result.output
    saved = StakingWallet.from_file(target)
    assert mock_program.last_call["ctx"].accounts["staking_account"] == saved.pubkey


def test_initialize_owner_override(runner, mocked_client, mock_program, keypair_file):
    owner = Pubkey.new_unique()
    result = runner.invoke(
        cli_main.stakingctl,
        ["initialize", "--wallet", str(keypair_file), "--owner", str(owner)],
    )

    assert result.exit_code == 0, result.output
    assert mock_program.last_call["args"] == [owner]


def test_initialize_failure_is_reported(runner, mocked_client, mock_program, keypair_file):
    mock_program.fail_with(RuntimeError("invalid account data for instruction"))

    result = runner.invoke(cli_main.stakingctl, ["initialize", "--wallet", str(keypair_file)])

    assert result.exit_code == 1
    assert "Transaction failed:" in result.output
    assert "invalid account data" in result.output
    assert "Success" not in result.output


def test_log_fetch_failure_reports_signature(runner, mocked_client, mock_program, mock_connection, keypair_file):
    mock_connection.error = ConnectionError("read timed out")

    result = runner.invoke(cli_main.stakingctl, ["initialize", "--wallet", str(keypair_file)])

    assert result.exit_code == 1
    assert "Transaction failed:" in result.output
    assert f"Transaction {mock_program.signature} was submitted" in result.output
    assert "Success" not in result.output


def test_missing_wallet_is_reported(runner, mocked_client, tmp_path):
    result = runner.invoke(
        cli_main.stakingctl, ["initialize", "--wallet", str(tmp_path / "none.json")]
    )

    assert result.exit_code == 1
    assert "Keypair file not found" in result.output


def test_invalid_program_id_is_reported(runner, mocked_client, keypair_file):
    result = runner.invoke(
        cli_main.stakingctl,
        ["initialize", "--wallet", str(keypair_file), "--program-id", "bogus"],
    )

    assert result.exit_code == 1
    assert "Invalid program_id" in result.output


def test_stake_command(runner, mocked_client, mock_program, keypair_file):
    staking_account = Pubkey.new_unique()
    result = runner.invoke(
        cli_main.stakingctl,
        [
            "stake", "--wallet", str(keypair_file),
            "--term", "60m", "--amount", "42",
            "--from", str(Pubkey.new_unique()),
            "--to", str(Pubkey.new_unique()),
            "--staking-account", str(staking_account),
            "--yes",
        ],
    )

    assert result.exit_code == 0, result.output
    assert mock_program.last_call["name"] == snake(STAKE_TERMS["60m"])
    assert mock_program.last_call["args"] == [42]
    assert mock_program.last_call["ctx"].accounts["staking_account"] == staking_account


def test_unstake_requires_confirmation(runner, mocked_client, mock_program, keypair_file):
    args = [
        "unstake", "--wallet", str(keypair_file),
        "--tier", "30", "--amount", "7",
        "--from", str(Pubkey.new_unique()),
        "--to", str(Pubkey.new_unique()),
        "--staking-account", str(Pubkey.new_unique()),
    ]

    result = runner.invoke(cli_main.stakingctl, args, input="n\n")

    assert result.exit_code != 0
    assert mock_program.calls == []


def test_stake_rejects_bad_address(runner, mocked_client, mock_program, keypair_file):
    result = runner.invoke(
        cli_main.stakingctl,
        [
            "stake", "--wallet", str(keypair_file),
            "--term", "24m", "--amount", "1",
            "--from", "not-a-key",
            "--to", str(Pubkey.new_unique()),
            "--staking-account", str(Pubkey.new_unique()),
            "--yes",
        ],
    )

    assert result.exit_code == 1
    assert "Transaction failed:" in result.output
    assert mock_program.calls == []


def test_account_command(runner, mocked_client, mock_program, program_config, keypair_file):
    address = Pubkey.new_unique()
    mock_program.account["StakingAccount"].add(
        address, program_config.owner, program_config.token_mint, Pubkey.new_unique()
    )

    result = runner.invoke(
        cli_main.stakingctl, ["account", "--wallet", str(keypair_file), str(address)]
    )

    assert result.exit_code == 0, result.output
    assert "Staking Account" in result.output
    assert "Initialized" in result.output


def test_logs_command(runner, mocked_client, mock_program, keypair_file):
    result = runner.invoke(
        cli_main.stakingctl,
        ["logs", "--wallet", str(keypair_file), str(mock_program.signature)],
    )

    assert result.exit_code == 0, result.output
    assert "Program log: Instruction: Initialize" in result.output


def test_version_command(runner):
    result = runner.invoke(cli_main.stakingctl, ["version"])
    assert result.exit_code == 0
    assert "Version" in result.output
