"""
Building and submitting the settlement transaction.
"""

from __future__ import annotations

import re

from loguru import logger

from regsettle.amount import format_btc
from regsettle.backends.base import UTXO, NodeGateway, OutPoint
from regsettle.errors import DecodeError, SendIncompleteError

TXID_RE = re.compile(r"[0-9a-f]{64}")


def settle(
    gateway: NodeGateway,
    from_wallet: str,
    to_address: str,
    amount: int,
    pinned: UTXO | OutPoint,
) -> str:
    """
    Send amount (sats) from from_wallet to to_address, spending only the pinned input.

    Fee rate and confirmation target are left to the node. The node picks
    the change address.

    Raises:
        SendIncompleteError: If the node could not fully sign the transaction
        DecodeError: If the node answered with something other than a txid

    Returns:
        Transaction id (hex)
    """
    outpoint = OutPoint(txid=pinned.txid, vout=pinned.vout)
    logger.info(
        f"Sending {format_btc(amount)} BTC from {from_wallet} to {to_address} "
        f"spending {outpoint.txid}:{outpoint.vout}"
    )

    result = gateway.send(from_wallet, to_address, amount, outpoint)
    if not result.complete:
        raise SendIncompleteError(
            f"Send from {from_wallet} is not complete; wallet requires additional signatures"
        )
    if not isinstance(result.txid, str) or not TXID_RE.fullmatch(result.txid):
        raise DecodeError(f"Node returned invalid txid {result.txid!r} for send from {from_wallet}")

    logger.info(f"Transaction sent with txid {result.txid}")
    return result.txid
