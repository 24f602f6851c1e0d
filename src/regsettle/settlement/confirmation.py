"""
Confirming the settlement transaction and locating it on-chain.
"""

from __future__ import annotations

from loguru import logger

from regsettle.amount import format_btc
from regsettle.backends.base import UTXO, NodeGateway, OutPoint
from regsettle.errors import InvariantViolationError, TransactionNotInBlockError
from regsettle.settlement.models import Confirmation


def confirm_and_locate(
    gateway: NodeGateway,
    wallet: str,
    txid: str,
    reward_address: str,
    pinned: UTXO | OutPoint,
) -> Confirmation:
    """
    Mine one block and find the settlement transaction in it.

    The fee is read from the wallet before mining, while the transaction
    is still in the mempool.

    Raises:
        InvariantViolationError: If the node reports no fee or mines no block
        TransactionNotInBlockError: If the mined block does not contain txid
    """
    wallet_tx = gateway.get_transaction(wallet, txid)
    if wallet_tx.fee is None:
        raise InvariantViolationError(f"Node reported no fee for {txid} in wallet {wallet}")
    logger.info(
        f"Transaction {txid} in mempool, fee {format_btc(wallet_tx.fee)} BTC "
        f"({wallet_tx.confirmations} confirmations)"
    )

    block_hashes = gateway.generate_blocks(wallet, 1, reward_address)
    if not block_hashes:
        raise InvariantViolationError("Node returned no block hash after mining one block")

    block = gateway.get_block(block_hashes[0])
    if not block.transactions:
        raise InvariantViolationError(f"Block {block.hash} contains no transactions")

    confirmed = block.find_transaction(txid)
    if confirmed is None:
        raise TransactionNotInBlockError(
            f"Transaction {txid} not found among {len(block.transactions)} "
            f"transactions of block {block.hash}"
        )
    logger.info(f"Transaction {txid} confirmed in block {block.hash}")

    source = gateway.get_raw_transaction(pinned.txid)
    return Confirmation(block=block, transaction=confirmed, source=source, fee=wallet_tx.fee)
