"""
Base node gateway interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from regsettle.wallet.transaction import Block, Transaction


@dataclass(frozen=True)
class WalletHandle:
    name: str
    created: bool = False


@dataclass(frozen=True)
class UTXO:
    txid: str
    vout: int
    value: int  # sats
    address: str
    confirmations: int
    scriptpubkey: str = ""
    spendable: bool = True


@dataclass(frozen=True)
class OutPoint:
    txid: str
    vout: int

    def to_rpc(self) -> dict[str, Any]:
        return {"txid": self.txid, "vout": self.vout}


@dataclass(frozen=True)
class SendResult:
    txid: str
    complete: bool


@dataclass(frozen=True)
class WalletTransaction:
    """Wallet view of a transaction (gettransaction)."""

    txid: str
    # Signed as the node reports it: negative when this wallet paid it
    fee: int | None
    confirmations: int
    blockhash: str | None = None


class NodeGateway(ABC):
    """
    Abstract ledger-and-wallet service.

    The node is the only authority on wallet ownership and chain state.
    All calls are blocking request/response.
    """

    @abstractmethod
    def get_blockchain_info(self) -> dict[str, Any]:
        """Chain summary (chain name, block count, best block hash)"""

    @abstractmethod
    def load_wallet(self, name: str) -> WalletHandle:
        """Load a wallet. Already-loaded wallets count as loaded.
        Raises WalletNotFoundError if the wallet does not exist."""

    @abstractmethod
    def create_wallet(self, name: str) -> WalletHandle:
        """Create and load a wallet with default parameters"""

    @abstractmethod
    def list_wallets(self) -> list[str]:
        """Names of the currently loaded wallets"""

    @abstractmethod
    def new_address(self, wallet: str) -> str:
        """Fresh receiving address for the wallet"""

    @abstractmethod
    def generate_blocks(self, wallet: str, count: int, address: str) -> list[str]:
        """Mine blocks paying the reward to address, returns block hashes"""

    @abstractmethod
    def list_unspent(self, wallet: str) -> list[UTXO]:
        """Unspent outputs owned by the wallet"""

    @abstractmethod
    def send(self, wallet: str, address: str, amount: int, pinned: OutPoint) -> SendResult:
        """Send amount (sats) to address spending exactly the pinned input"""

    @abstractmethod
    def get_transaction(self, wallet: str, txid: str) -> WalletTransaction:
        """Wallet transaction details, including the fee for our own sends"""

    @abstractmethod
    def get_block(self, block_hash: str) -> Block:
        """Decoded block"""

    @abstractmethod
    def get_raw_transaction(self, txid: str) -> Transaction:
        """Decoded transaction, independent of wallet ownership"""

    @abstractmethod
    def address_owned_by(self, wallet: str, address: str) -> bool:
        """Whether the wallet owns the address"""

    @abstractmethod
    def get_balance(self, wallet: str) -> int:
        """Trusted spendable balance in sats"""

    def close(self) -> None:
        """Close node connection"""
        pass
