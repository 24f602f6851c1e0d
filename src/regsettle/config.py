"""
Configuration for the settlement run.

NodeConfig is handed to the gateway constructor so tests can point the
pipeline at any node. Settings reads the same values from the environment
or a .env file using pydantic-settings.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from regsettle.constants import (
    DEFAULT_MATURITY_BLOCKS,
    DEFAULT_MIN_INPUT_AMOUNT,
    DEFAULT_MINER_WALLET,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_RPC_PASSWORD,
    DEFAULT_RPC_URL,
    DEFAULT_RPC_USER,
    DEFAULT_TRADER_WALLET,
    DEFAULT_TRANSFER_AMOUNT,
)


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"


class NodeConfig(BaseModel):
    """Connection parameters for the Bitcoin Core node."""

    rpc_url: str = DEFAULT_RPC_URL
    rpc_user: str = DEFAULT_RPC_USER
    rpc_password: str = DEFAULT_RPC_PASSWORD
    network: NetworkType = NetworkType.REGTEST
    # None means wait for the node indefinitely
    timeout: float | None = Field(default=None, gt=0)


class SettlementConfig(BaseModel):
    """Parameters of the settlement scenario. Amounts are in sats."""

    miner_wallet: str = Field(default=DEFAULT_MINER_WALLET, min_length=1)
    trader_wallet: str = Field(default=DEFAULT_TRADER_WALLET, min_length=1)
    maturity_blocks: int = Field(
        default=DEFAULT_MATURITY_BLOCKS,
        ge=DEFAULT_MATURITY_BLOCKS,
        description="Blocks mined to the Miner wallet before selecting an input",
    )
    min_input_amount: int = Field(
        default=DEFAULT_MIN_INPUT_AMOUNT, gt=0, description="Selected input must exceed this"
    )
    transfer_amount: int = Field(default=DEFAULT_TRANSFER_AMOUNT, gt=0)
    output_path: Path = Path(DEFAULT_OUTPUT_PATH)
    fee_tolerance: int = Field(
        default=0, ge=0, description="Allowed sats deviation in the conservation check"
    )

    @model_validator(mode="after")
    def check_distinct_wallets(self) -> SettlementConfig:
        if self.miner_wallet == self.trader_wallet:
            raise ValueError("miner_wallet and trader_wallet must differ")
        return self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REGSETTLE_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    rpc_url: str = DEFAULT_RPC_URL
    rpc_user: str = DEFAULT_RPC_USER
    rpc_password: str = DEFAULT_RPC_PASSWORD
    network: NetworkType = NetworkType.REGTEST
    rpc_timeout: float | None = None

    miner_wallet: str = DEFAULT_MINER_WALLET
    trader_wallet: str = DEFAULT_TRADER_WALLET
    maturity_blocks: int = DEFAULT_MATURITY_BLOCKS
    min_input_amount: int = DEFAULT_MIN_INPUT_AMOUNT
    transfer_amount: int = DEFAULT_TRANSFER_AMOUNT
    output_path: Path = Path(DEFAULT_OUTPUT_PATH)
    fee_tolerance: int = 0

    log_level: str = "INFO"

    def node_config(self) -> NodeConfig:
        return NodeConfig(
            rpc_url=self.rpc_url,
            rpc_user=self.rpc_user,
            rpc_password=self.rpc_password,
            network=self.network,
            timeout=self.rpc_timeout,
        )

    def settlement_config(self) -> SettlementConfig:
        return SettlementConfig(
            miner_wallet=self.miner_wallet,
            trader_wallet=self.trader_wallet,
            maturity_blocks=self.maturity_blocks,
            min_input_amount=self.min_input_amount,
            transfer_amount=self.transfer_amount,
            output_path=self.output_path,
            fee_tolerance=self.fee_tolerance,
        )


def get_settings() -> Settings:
    return Settings()
