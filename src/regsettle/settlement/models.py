"""
Settlement data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from regsettle.wallet.transaction import Block, Transaction


@dataclass(frozen=True)
class Confirmation:
    """The settlement transaction as confirmed, plus what attribution needs"""

    block: Block
    transaction: Transaction
    source: Transaction  # transaction that created the pinned input
    fee: int  # sats, signed as reported by the node


@dataclass(frozen=True)
class AttributedOutput:
    index: int
    address: str
    value: int  # sats


@dataclass(frozen=True)
class AttributionRecord:
    """Every input/output of the confirmed settlement attributed to a wallet."""

    txid: str
    miner_input: AttributedOutput  # index is the vout in the source transaction
    trader_output: AttributedOutput
    miner_change: AttributedOutput
    fee: int
    block_height: int
    block_hash: str

    @property
    def miner_input_address(self) -> str:
        return self.miner_input.address

    @property
    def miner_input_amount(self) -> int:
        return self.miner_input.value

    @property
    def trader_output_address(self) -> str:
        return self.trader_output.address

    @property
    def trader_output_amount(self) -> int:
        return self.trader_output.value

    @property
    def miner_change_address(self) -> str:
        return self.miner_change.address

    @property
    def miner_change_amount(self) -> int:
        return self.miner_change.value
