"""
regsettle - Regtest settlement and ownership attribution

Provisions a Miner and a Trader wallet on a Bitcoin Core node, settles a
payment between them from a pinned input, and attributes every input and
output of the confirmed transaction to its wallet.
"""

__version__ = "0.1.0"

from regsettle.backends import BitcoinCoreGateway, NodeGateway
from regsettle.config import NetworkType, NodeConfig, SettlementConfig, Settings
from regsettle.errors import SettlementError
from regsettle.settlement import AttributionRecord, SettlementPipeline

__all__ = [
    "AttributionRecord",
    "BitcoinCoreGateway",
    "NetworkType",
    "NodeConfig",
    "NodeGateway",
    "SettlementConfig",
    "SettlementError",
    "SettlementPipeline",
    "Settings",
]
