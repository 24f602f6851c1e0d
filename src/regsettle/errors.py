"""
Exception taxonomy for the settlement pipeline.

Every failure is fatal: nothing in regsettle retries. The CLI turns any
SettlementError into an error log line and a non-zero exit code.
"""

from __future__ import annotations


class SettlementError(Exception):
    """Base class for all regsettle errors."""


class NodeConnectionError(SettlementError):
    """The node could not be reached."""


class NodeAuthError(NodeConnectionError):
    """The node rejected our RPC credentials."""


class RpcError(SettlementError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | None, message: str):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code} in {method}: {message}")


class WalletNotFoundError(RpcError):
    """Wallet does not exist on the node (RPC_WALLET_NOT_FOUND)."""


class WalletAlreadyLoadedError(RpcError):
    """Wallet is already loaded (RPC_WALLET_ALREADY_LOADED)."""


class PreconditionError(SettlementError):
    """A condition required to continue the run is not met."""


class InsufficientFundsError(PreconditionError):
    """No unspent output exceeds the required minimum."""


class SendIncompleteError(PreconditionError):
    """The node built the transaction but could not fully sign it."""


class InvariantViolationError(SettlementError):
    """Node state contradicts what the pipeline just did."""


class TransactionNotInBlockError(InvariantViolationError):
    """The settlement transaction is missing from the block that should confirm it."""


class OwnershipNotFoundError(InvariantViolationError):
    """No output of the confirmed transaction belongs to the expected wallet."""


class AmountMismatchError(InvariantViolationError):
    """Input value does not equal outputs plus fee."""


class DecodeError(SettlementError):
    """Malformed raw transaction or block, or a script without an address form."""


class ReportWriteError(SettlementError):
    """The report file could not be written."""
