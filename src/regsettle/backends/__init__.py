"""
Node gateway implementations.

Available gateways:
- BitcoinCoreGateway: Bitcoin Core JSON-RPC, using the node's wallets
"""

from regsettle.backends.base import (
    UTXO,
    NodeGateway,
    OutPoint,
    SendResult,
    WalletHandle,
    WalletTransaction,
)
from regsettle.backends.bitcoin_core import BitcoinCoreGateway

__all__ = [
    "BitcoinCoreGateway",
    "NodeGateway",
    "OutPoint",
    "SendResult",
    "UTXO",
    "WalletHandle",
    "WalletTransaction",
]
