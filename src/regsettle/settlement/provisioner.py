"""
Wallet provisioning.
"""

from __future__ import annotations

from loguru import logger

from regsettle.backends.base import NodeGateway, WalletHandle
from regsettle.errors import WalletNotFoundError


def ensure_wallet(gateway: NodeGateway, name: str) -> WalletHandle:
    """
    Load the named wallet, creating it if the node has no such wallet.

    Already-loaded wallets are handled by the gateway as a successful load.
    Any error other than "not found" propagates.
    """
    try:
        return gateway.load_wallet(name)
    except WalletNotFoundError:
        logger.info(f"Wallet {name} does not exist, creating it")
        return gateway.create_wallet(name)
