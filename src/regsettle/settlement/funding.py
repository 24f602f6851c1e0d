"""
Funding the Miner wallet and selecting the input to spend.
"""

from __future__ import annotations

from loguru import logger

from regsettle.amount import format_btc
from regsettle.backends.base import UTXO, NodeGateway
from regsettle.constants import DEFAULT_MATURITY_BLOCKS
from regsettle.errors import InsufficientFundsError


def select_utxo(utxos: list[UTXO], min_amount: int) -> UTXO:
    """
    First spendable UTXO whose value strictly exceeds min_amount.

    Raises:
        InsufficientFundsError: If none qualifies
    """
    for utxo in utxos:
        if utxo.spendable and utxo.value > min_amount:
            return utxo

    best = max((u.value for u in utxos), default=0)
    raise InsufficientFundsError(
        f"No unspent output exceeds {format_btc(min_amount)} BTC "
        f"({len(utxos)} UTXOs, largest {format_btc(best)} BTC)"
    )


def fund_and_select(
    gateway: NodeGateway,
    wallet: str,
    min_amount: int,
    blocks: int = DEFAULT_MATURITY_BLOCKS,
) -> tuple[UTXO, str]:
    """
    Mine block rewards to a fresh wallet address and pick one input.

    The first reward only matures after 100 more blocks, so the default of
    101 blocks leaves exactly one mature coinbase on a fresh chain.

    Returns:
        (selected UTXO, reward address)
    """
    address = gateway.new_address(wallet)
    logger.info(f"Mining {blocks} blocks to {wallet} address {address}")
    gateway.generate_blocks(wallet, blocks, address)

    utxos = gateway.list_unspent(wallet)
    logger.debug(f"{wallet} has {len(utxos)} unspent outputs")

    utxo = select_utxo(utxos, min_amount)
    logger.info(f"Selected input {utxo.txid}:{utxo.vout} ({format_btc(utxo.value)} BTC)")
    return utxo, address
