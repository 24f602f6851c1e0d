"""
Bitcoin Core RPC node gateway.
Uses the node's wallet RPCs, scoped per wallet via /wallet/<name>.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from regsettle.amount import btc_to_sats, format_rpc_amount
from regsettle.backends.base import (
    UTXO,
    NodeGateway,
    OutPoint,
    SendResult,
    WalletHandle,
    WalletTransaction,
)
from regsettle.config import NodeConfig
from regsettle.constants import RPC_WALLET_ALREADY_LOADED, RPC_WALLET_NOT_FOUND
from regsettle.errors import (
    DecodeError,
    NodeAuthError,
    NodeConnectionError,
    RpcError,
    WalletAlreadyLoadedError,
    WalletNotFoundError,
)
from regsettle.wallet.transaction import Block, Transaction, parse_block, parse_transaction

RPC_ERRORS: dict[int, type[RpcError]] = {
    RPC_WALLET_NOT_FOUND: WalletNotFoundError,
    RPC_WALLET_ALREADY_LOADED: WalletAlreadyLoadedError,
}


def _sats(value: Any, method: str) -> int:
    try:
        return btc_to_sats(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise DecodeError(f"Invalid amount {value!r} in {method} result: {e}") from e


class BitcoinCoreGateway(NodeGateway):
    """
    Node gateway using Bitcoin Core JSON-RPC.

    Requests are strictly sequential. There is no timeout unless one is set
    in NodeConfig: a stalled node stalls the run.
    """

    def __init__(self, config: NodeConfig, transport: httpx.BaseTransport | None = None):
        self.config = config
        self.rpc_url = config.rpc_url.rstrip("/")
        self.client = httpx.Client(
            timeout=config.timeout,
            auth=(config.rpc_user, config.rpc_password),
            transport=transport,
        )
        self._request_id = 0

    def _wallet_url(self, wallet: str) -> str:
        return f"{self.rpc_url}/wallet/{quote(wallet, safe='')}"

    def _rpc_call(self, method: str, params: list | None = None, wallet: str | None = None) -> Any:
        """
        Make an RPC call to Bitcoin Core.

        Args:
            method: RPC method name
            params: Method parameters
            wallet: Wallet name for wallet-scoped calls

        Returns:
            RPC result, with JSON numbers parsed as Decimal

        Raises:
            RpcError: On RPC errors (WalletNotFoundError etc. for known codes)
            NodeAuthError: When the node rejects our credentials
            NodeConnectionError: On connection errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        url = self._wallet_url(wallet) if wallet else self.rpc_url

        logger.debug(f"RPC {method} {params or []}" + (f" (wallet {wallet})" if wallet else ""))

        try:
            response = self.client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise NodeConnectionError(f"Cannot reach node at {self.rpc_url}: {e}") from e

        if response.status_code in (401, 403):
            raise NodeAuthError(f"Node rejected RPC credentials for user {self.config.rpc_user!r}")

        # Bitcoin Core reports RPC errors with HTTP 500/404 and a JSON body
        try:
            data = json.loads(response.text, parse_float=Decimal)
        except json.JSONDecodeError as e:
            logger.error(f"RPC call failed: {method} - HTTP {response.status_code}, non-JSON body")
            raise NodeConnectionError(
                f"RPC {method} failed with HTTP {response.status_code}: invalid JSON response"
            ) from e

        error_info = data.get("error") if isinstance(data, dict) else None
        if error_info:
            error_code = error_info.get("code")
            error_msg = error_info.get("message", str(error_info))
            error_cls = RPC_ERRORS.get(error_code, RpcError)
            raise error_cls(method, error_code, error_msg)

        if response.is_error:
            raise NodeConnectionError(f"RPC {method} failed with HTTP {response.status_code}")

        return data.get("result")

    def get_blockchain_info(self) -> dict[str, Any]:
        return self._rpc_call("getblockchaininfo")

    def load_wallet(self, name: str) -> WalletHandle:
        try:
            self._rpc_call("loadwallet", [name])
            logger.info(f"Loaded wallet {name}")
        except WalletAlreadyLoadedError:
            logger.debug(f"Wallet {name} already loaded")
        return WalletHandle(name=name)

    def create_wallet(self, name: str) -> WalletHandle:
        self._rpc_call("createwallet", [name])
        logger.info(f"Created wallet {name}")
        return WalletHandle(name=name, created=True)

    def list_wallets(self) -> list[str]:
        return list(self._rpc_call("listwallets"))

    def new_address(self, wallet: str) -> str:
        return self._rpc_call("getnewaddress", [], wallet=wallet)

    def generate_blocks(self, wallet: str, count: int, address: str) -> list[str]:
        block_hashes = self._rpc_call("generatetoaddress", [count, address], wallet=wallet)
        logger.debug(f"Mined {len(block_hashes)} block(s) to {address}")
        return list(block_hashes)

    def list_unspent(self, wallet: str) -> list[UTXO]:
        result = self._rpc_call("listunspent", [], wallet=wallet)
        try:
            return [
                UTXO(
                    txid=utxo_data["txid"],
                    vout=utxo_data["vout"],
                    value=_sats(utxo_data["amount"], "listunspent"),
                    address=utxo_data.get("address", ""),
                    confirmations=utxo_data.get("confirmations", 0),
                    scriptpubkey=utxo_data.get("scriptPubKey", ""),
                    spendable=utxo_data.get("spendable", True),
                )
                for utxo_data in result
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Malformed listunspent result: {e!r}") from e

    def send(self, wallet: str, address: str, amount: int, pinned: OutPoint) -> SendResult:
        params = [
            [{address: format_rpc_amount(amount)}],  # recipient
            None,  # conf target
            None,  # estimate mode
            None,  # fee rate
            {"inputs": [pinned.to_rpc()], "add_inputs": False},
        ]
        result = self._rpc_call("send", params, wallet=wallet)
        try:
            return SendResult(txid=result.get("txid", ""), complete=bool(result.get("complete")))
        except AttributeError as e:
            raise DecodeError(f"Malformed send result: {result!r}") from e

    def get_transaction(self, wallet: str, txid: str) -> WalletTransaction:
        result = self._rpc_call("gettransaction", [txid], wallet=wallet)
        try:
            fee = result.get("fee")
            return WalletTransaction(
                txid=result["txid"],
                fee=_sats(fee, "gettransaction") if fee is not None else None,
                confirmations=result.get("confirmations", 0),
                blockhash=result.get("blockhash"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Malformed gettransaction result: {e!r}") from e

    def get_block(self, block_hash: str) -> Block:
        raw = self._rpc_call("getblock", [block_hash, 0])
        return parse_block(raw)

    def get_raw_transaction(self, txid: str) -> Transaction:
        raw = self._rpc_call("getrawtransaction", [txid, False])
        return parse_transaction(raw)

    def address_owned_by(self, wallet: str, address: str) -> bool:
        info = self._rpc_call("getaddressinfo", [address], wallet=wallet)
        if not isinstance(info, dict):
            raise DecodeError(f"Malformed getaddressinfo result: {info!r}")
        return bool(info.get("ismine", False))

    def get_balance(self, wallet: str) -> int:
        return _sats(self._rpc_call("getbalance", [], wallet=wallet), "getbalance")

    def close(self) -> None:
        self.client.close()
