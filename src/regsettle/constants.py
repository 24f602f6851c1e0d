"""
Bitcoin and settlement constants.
"""

from __future__ import annotations

SATS_PER_BTC = 100_000_000

# Coinbase outputs become spendable after 100 further blocks are built on top.
# This is enforced by the node; we only need to mine enough blocks for it.
COINBASE_MATURITY = 100

# Blocks mined to the Miner wallet so that the first reward is mature
DEFAULT_MATURITY_BLOCKS = COINBASE_MATURITY + 1

DEFAULT_MIN_INPUT_AMOUNT = 20 * SATS_PER_BTC
DEFAULT_TRANSFER_AMOUNT = 20 * SATS_PER_BTC

DEFAULT_MINER_WALLET = "Miner"
DEFAULT_TRADER_WALLET = "Trader"

DEFAULT_RPC_URL = "http://127.0.0.1:18443"  # regtest RPC port
DEFAULT_RPC_USER = "alice"
DEFAULT_RPC_PASSWORD = "password"

DEFAULT_OUTPUT_PATH = "../out.txt"

# Bitcoin Core RPC error codes (src/rpc/protocol.h)
RPC_WALLET_NOT_FOUND = -18
RPC_WALLET_ALREADY_LOADED = -35
