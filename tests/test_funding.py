"""
Tests for funding the Miner wallet and input selection.
"""

from __future__ import annotations

import pytest

from regsettle.backends.base import UTXO
from regsettle.constants import SATS_PER_BTC
from regsettle.errors import InsufficientFundsError
from regsettle.settlement.funding import fund_and_select, select_utxo

from tests.fakes import BLOCK_REWARD, FakeNodeGateway

MIN_AMOUNT = 20 * SATS_PER_BTC


def make_utxo(value: int, vout: int = 0, spendable: bool = True) -> UTXO:
    return UTXO(
        txid=f"{vout:064x}",
        vout=vout,
        value=value,
        address=f"bcrt1qaddr{vout}",
        confirmations=101,
        spendable=spendable,
    )


class TestSelectUtxo:
    """Tests for select_utxo."""

    def test_first_qualifying(self) -> None:
        """Test the first UTXO above the minimum wins, not the largest."""
        utxos = [
            make_utxo(10 * SATS_PER_BTC, 0),
            make_utxo(25 * SATS_PER_BTC, 1),
            make_utxo(50 * SATS_PER_BTC, 2),
        ]
        assert select_utxo(utxos, MIN_AMOUNT).vout == 1

    def test_strictly_greater(self) -> None:
        """Test a UTXO exactly at the minimum does not qualify."""
        utxos = [make_utxo(MIN_AMOUNT, 0), make_utxo(MIN_AMOUNT + 1, 1)]
        assert select_utxo(utxos, MIN_AMOUNT).vout == 1

    def test_skips_unspendable(self) -> None:
        """Test unspendable outputs are never selected."""
        utxos = [make_utxo(BLOCK_REWARD, 0, spendable=False), make_utxo(BLOCK_REWARD, 1)]
        assert select_utxo(utxos, MIN_AMOUNT).vout == 1

    def test_none_qualifies(self) -> None:
        """Test InsufficientFundsError reports what was available."""
        utxos = [make_utxo(MIN_AMOUNT, 0), make_utxo(5 * SATS_PER_BTC, 1)]
        with pytest.raises(InsufficientFundsError, match="2 UTXOs, largest 20 BTC"):
            select_utxo(utxos, MIN_AMOUNT)

    def test_empty(self) -> None:
        """Test an empty wallet."""
        with pytest.raises(InsufficientFundsError, match="0 UTXOs"):
            select_utxo([], MIN_AMOUNT)


class TestFundAndSelect:
    """Tests for fund_and_select against the in-memory node."""

    def test_fresh_chain_has_one_mature_reward(self, node_with_wallets: FakeNodeGateway) -> None:
        """Test 101 blocks leave exactly the first coinbase spendable."""
        utxo, address = fund_and_select(node_with_wallets, "Miner", MIN_AMOUNT)

        assert node_with_wallets.height == 101
        assert utxo.value == BLOCK_REWARD
        assert utxo.confirmations == 101
        assert utxo.address == address
        assert node_with_wallets.owner[address] == "Miner"
        assert len(node_with_wallets.list_unspent("Miner")) == 1

    def test_mines_before_listing(self, node_with_wallets: FakeNodeGateway) -> None:
        """Test the node is asked for UTXOs only after mining."""
        fund_and_select(node_with_wallets, "Miner", MIN_AMOUNT)
        assert node_with_wallets.calls == [
            ("generate_blocks", 101),
            ("list_unspent", "Miner"),
        ]

    def test_too_few_blocks(self, node_with_wallets: FakeNodeGateway) -> None:
        """Test no reward matures with 100 blocks."""
        with pytest.raises(InsufficientFundsError):
            fund_and_select(node_with_wallets, "Miner", MIN_AMOUNT, blocks=100)

    def test_minimum_above_reward(self, node_with_wallets: FakeNodeGateway) -> None:
        """Test a minimum above the block reward cannot be met."""
        with pytest.raises(InsufficientFundsError):
            fund_and_select(node_with_wallets, "Miner", BLOCK_REWARD)

    def test_extra_blocks_mature_more_rewards(self, node_with_wallets: FakeNodeGateway) -> None:
        """Test the earliest mature reward is picked."""
        utxo, _ = fund_and_select(node_with_wallets, "Miner", MIN_AMOUNT, blocks=103)

        assert len(node_with_wallets.list_unspent("Miner")) == 3
        assert utxo.confirmations == 103
