"""
Cached wallet ownership lookups.
"""

from __future__ import annotations

from loguru import logger

from regsettle.backends.base import NodeGateway


class OwnershipResolver:
    """
    Answers "does wallet W own address A" through the node.

    Ownership of an address does not change during a run, so answers are
    cached per (wallet, address). Create one resolver per pipeline run and
    drop it afterwards.
    """

    def __init__(self, gateway: NodeGateway):
        self.gateway = gateway
        self._cache: dict[tuple[str, str], bool] = {}
        self.lookups = 0

    def is_mine(self, wallet: str, address: str) -> bool:
        key = (wallet, address)
        if key not in self._cache:
            self.lookups += 1
            self._cache[key] = self.gateway.address_owned_by(wallet, address)
            logger.debug(f"Ownership {wallet} / {address}: {self._cache[key]}")
        return self._cache[key]
