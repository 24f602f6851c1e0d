"""
Tests for the regsettle command line.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
import typer
from loguru import logger
from typer.testing import CliRunner

import regsettle.cli
from regsettle.cli import app, parse_btc
from regsettle.config import NetworkType, NodeConfig
from regsettle.constants import SATS_PER_BTC

from tests.fakes import FakeNodeGateway

runner = CliRunner()


class ClosingFakeNode(FakeNodeGateway):
    def __init__(self, config: NodeConfig):
        super().__init__(config.network)
        self.config = config
        self.closed = False

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    # setup_logging points loguru at the runner's stderr, which is closed afterwards
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def gateways(monkeypatch: pytest.MonkeyPatch) -> list[ClosingFakeNode]:
    created: list[ClosingFakeNode] = []

    def factory(config: NodeConfig) -> ClosingFakeNode:
        node = ClosingFakeNode(config)
        created.append(node)
        return node

    monkeypatch.setattr("regsettle.backends.bitcoin_core.BitcoinCoreGateway", factory)
    return created


class TestParseBtc:
    """Tests for parse_btc."""

    def test_valid(self) -> None:
        """Test decimal BTC strings become sats."""
        assert parse_btc("20") == 20 * SATS_PER_BTC
        assert parse_btc("0.5") == SATS_PER_BTC // 2
        assert parse_btc("0.00000001") == 1

    @pytest.mark.parametrize("value", ["abc", "", "0.000000001", "Infinity", "-Infinity", "NaN"])
    def test_invalid(self, value: str) -> None:
        """Test bad amounts raise BadParameter."""
        with pytest.raises(typer.BadParameter):
            parse_btc(value)


class TestRunCommand:
    """Tests for `regsettle run`."""

    def test_success(self, gateways: list[ClosingFakeNode], tmp_path: Path) -> None:
        """Test a run writes the report and prints a summary."""
        output = tmp_path / "out.txt"
        result = runner.invoke(app, ["run", "--output", str(output)])

        assert result.exit_code == 0, result.output
        lines = output.read_text().splitlines()
        assert len(lines) == 10
        assert f"Transaction:   {lines[0]}" in result.output
        assert "Fee:           -0.0000141 BTC" in result.output
        assert gateways[0].closed

    def test_connection_options(self, gateways: list[ClosingFakeNode], tmp_path: Path) -> None:
        """Test RPC options reach the gateway config."""
        result = runner.invoke(
            app,
            [
                "run",
                "--rpc-url",
                "http://node:18443",
                "--rpc-user",
                "bob",
                "--rpc-password",
                "secret",
                "--output",
                str(tmp_path / "out.txt"),
            ],
        )

        assert result.exit_code == 0, result.output
        config = gateways[0].config
        assert config.rpc_url == "http://node:18443"
        assert config.rpc_user == "bob"
        assert config.rpc_password == "secret"

    def test_custom_scenario(self, gateways: list[ClosingFakeNode], tmp_path: Path) -> None:
        """Test wallet names and amounts from the command line."""
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            [
                "run",
                "--output",
                str(output),
                "--miner-wallet",
                "Alice",
                "--trader-wallet",
                "Bob",
                "--amount",
                "1.5",
                "--min-amount",
                "10",
            ],
        )

        assert result.exit_code == 0, result.output
        lines = output.read_text().splitlines()
        assert lines[4] == "1.5"
        assert gateways[0].owner[lines[3]] == "Bob"

    def test_settlement_failure(self, gateways: list[ClosingFakeNode], tmp_path: Path) -> None:
        """Test a failed run exits 1, writes nothing and still closes the gateway."""
        output = tmp_path / "out.txt"
        result = runner.invoke(app, ["run", "--output", str(output), "--min-amount", "50"])

        assert result.exit_code == 1
        assert not output.exists()
        assert gateways[0].closed

    def test_invalid_configuration(self, gateways: list[ClosingFakeNode], tmp_path: Path) -> None:
        """Test invalid settings exit 1 before connecting."""
        result = runner.invoke(
            app,
            ["run", "--output", str(tmp_path / "out.txt"), "--trader-wallet", "Miner"],
        )

        assert result.exit_code == 1
        assert gateways == []

    def test_invalid_amount(self, gateways: list[ClosingFakeNode]) -> None:
        """Test an unparseable amount is a usage error."""
        result = runner.invoke(app, ["run", "--amount", "twenty"])

        assert result.exit_code == 2
        assert gateways == []

    @pytest.mark.parametrize("value", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_amount(self, gateways: list[ClosingFakeNode], value: str) -> None:
        """Test infinite amounts are a usage error rather than a crash."""
        result = runner.invoke(app, ["run", "--amount", value])

        assert result.exit_code == 2
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert gateways == []

    def test_settings_fallback(
        self,
        gateways: list[ClosingFakeNode],
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        """Test unset options take REGSETTLE_* values read at run time."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REGSETTLE_TRADER_WALLET", "Carol")
        monkeypatch.setenv("REGSETTLE_RPC_TIMEOUT", "7.5")
        output = tmp_path / "out.txt"

        result = runner.invoke(app, ["run", "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert gateways[0].owner[output.read_text().splitlines()[3]] == "Carol"
        assert gateways[0].config.timeout == 7.5

    def test_invalid_environment(
        self, gateways: list[ClosingFakeNode], monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Test a malformed REGSETTLE_* variable exits 1 before connecting."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REGSETTLE_MATURITY_BLOCKS", "abc")

        result = runner.invoke(app, ["run", "--output", str(tmp_path / "out.txt")])

        assert result.exit_code == 1
        assert gateways == []


class TestInfoCommand:
    """Tests for `regsettle info`."""

    def test_no_wallets(self, gateways: list[ClosingFakeNode]) -> None:
        """Test chain summary on an empty node."""
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0, result.output
        assert "Chain:  regtest" in result.output
        assert "Blocks: 0" in result.output
        assert "No wallets loaded." in result.output
        assert gateways[0].closed

    def test_wallet_balances(
        self, gateways: list[ClosingFakeNode], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test loaded wallets are listed with their balances."""
        node = ClosingFakeNode(NodeConfig())
        node.create_wallet("Miner")
        node.generate_blocks("Miner", 101, node.new_address("Miner"))
        monkeypatch.setattr("regsettle.backends.bitcoin_core.BitcoinCoreGateway", lambda c: node)

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0, result.output
        assert "Blocks: 101" in result.output
        assert "Miner" in result.output
        assert "50 BTC" in result.output

    def test_settings_reach_node_config(
        self,
        gateways: list[ClosingFakeNode],
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        """Test network and timeout settings apply to info as they do to run."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REGSETTLE_NETWORK", "testnet")
        monkeypatch.setenv("REGSETTLE_RPC_TIMEOUT", "5")

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0, result.output
        assert gateways[0].config.network == NetworkType.TESTNET
        assert gateways[0].config.timeout == 5

    def test_network_option(self, gateways: list[ClosingFakeNode]) -> None:
        """Test --network overrides the settings."""
        result = runner.invoke(app, ["info", "--network", "signet"])

        assert result.exit_code == 0, result.output
        assert gateways[0].config.network == NetworkType.SIGNET

    def test_invalid_environment(
        self, gateways: list[ClosingFakeNode], monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Test a malformed REGSETTLE_* variable exits 1 before connecting."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REGSETTLE_RPC_TIMEOUT", "soon")

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 1
        assert gateways == []


def test_import_ignores_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Test the CLI module imports even when REGSETTLE_* values are malformed."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REGSETTLE_MATURITY_BLOCKS", "abc")

    module = importlib.reload(regsettle.cli)

    assert module.app is not None
