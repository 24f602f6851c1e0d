"""
Attributing the inputs and outputs of the confirmed settlement to wallets.

The node decides ownership. For each output of the confirmed transaction
we derive its address from the scriptPubKey and ask the node whether the
Trader, then the Miner, wallet owns it:

- the first Trader-owned output is the trader receipt
- the first Miner-owned output at a different index is the change

The spent input is the Miner's by construction (we pinned it), so its
source output is not checked.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from regsettle.amount import format_btc
from regsettle.config import NetworkType
from regsettle.errors import (
    AmountMismatchError,
    InvariantViolationError,
    OwnershipNotFoundError,
)
from regsettle.settlement.models import AttributedOutput, AttributionRecord, Confirmation
from regsettle.wallet.address import script_to_address
from regsettle.wallet.ownership import OwnershipResolver
from regsettle.wallet.transaction import Transaction


def find_owned_output(
    tx: Transaction,
    owned: Callable[[str], bool],
    network: NetworkType,
    exclude: set[int] | None = None,
) -> AttributedOutput | None:
    """First output (not in exclude) whose address satisfies owned."""
    exclude = exclude or set()
    for index, out in enumerate(tx.outputs):
        if index in exclude:
            continue
        address = script_to_address(out.script_pubkey, network)
        if owned(address):
            return AttributedOutput(index=index, address=address, value=out.value)
    return None


def attribute(
    confirmation: Confirmation,
    pinned_vout: int,
    miner_wallet: str,
    trader_wallet: str,
    resolver: OwnershipResolver,
    network: NetworkType = NetworkType.REGTEST,
) -> AttributionRecord:
    """
    Build the attribution record for a confirmed settlement.

    Raises:
        InvariantViolationError: If pinned_vout is out of range or the confirmed
            transaction has fewer than two outputs
        OwnershipNotFoundError: If no output belongs to the Trader, or no other
            output belongs to the Miner
    """
    tx = confirmation.transaction
    source = confirmation.source

    if not 0 <= pinned_vout < len(source.outputs):
        raise InvariantViolationError(
            f"Pinned output {source.txid}:{pinned_vout} does not exist "
            f"({len(source.outputs)} outputs)"
        )
    spent = source.outputs[pinned_vout]
    miner_input = AttributedOutput(
        index=pinned_vout,
        address=script_to_address(spent.script_pubkey, network),
        value=spent.value,
    )

    if len(tx.outputs) < 2:
        raise InvariantViolationError(
            f"Transaction {tx.txid} has {len(tx.outputs)} output(s), expected payment and change"
        )

    trader_output = find_owned_output(
        tx, lambda addr: resolver.is_mine(trader_wallet, addr), network
    )
    if trader_output is None:
        raise OwnershipNotFoundError(f"No output of {tx.txid} is owned by {trader_wallet}")

    miner_change = find_owned_output(
        tx,
        lambda addr: resolver.is_mine(miner_wallet, addr),
        network,
        exclude={trader_output.index},
    )
    if miner_change is None:
        raise OwnershipNotFoundError(f"No change output of {tx.txid} is owned by {miner_wallet}")

    logger.debug(
        f"Attributed {tx.txid}: trader vout {trader_output.index}, "
        f"change vout {miner_change.index} ({resolver.lookups} ownership lookups)"
    )

    return AttributionRecord(
        txid=tx.txid,
        miner_input=miner_input,
        trader_output=trader_output,
        miner_change=miner_change,
        fee=confirmation.fee,
        block_height=confirmation.block.height,
        block_hash=confirmation.block.hash,
    )


def check_conservation(record: AttributionRecord, tolerance: int = 0) -> None:
    """
    Verify miner input == trader output + change + |fee| within tolerance sats.

    Raises:
        AmountMismatchError: If the difference exceeds tolerance
    """
    accounted = record.trader_output_amount + record.miner_change_amount + abs(record.fee)
    diff = record.miner_input_amount - accounted
    if abs(diff) > tolerance:
        raise AmountMismatchError(
            f"Input {format_btc(record.miner_input_amount)} BTC != outputs + fee "
            f"{format_btc(accounted)} BTC (off by {diff} sats, tolerance {tolerance})"
        )
