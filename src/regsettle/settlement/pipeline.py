"""
End-to-end settlement run.
"""

from __future__ import annotations

from loguru import logger

from regsettle.amount import format_btc
from regsettle.backends.base import NodeGateway
from regsettle.config import NetworkType, SettlementConfig
from regsettle.settlement.attribution import attribute, check_conservation
from regsettle.settlement.confirmation import confirm_and_locate
from regsettle.settlement.constructor import settle
from regsettle.settlement.funding import fund_and_select
from regsettle.settlement.models import AttributionRecord
from regsettle.settlement.provisioner import ensure_wallet
from regsettle.settlement.report import write_report
from regsettle.wallet.ownership import OwnershipResolver


class SettlementPipeline:
    """
    Runs the settlement scenario once against a node.

    Stages run strictly in order; any error aborts the run before the
    report is written.
    """

    def __init__(
        self,
        gateway: NodeGateway,
        config: SettlementConfig,
        network: NetworkType = NetworkType.REGTEST,
    ):
        self.gateway = gateway
        self.config = config
        self.network = network

    def run(self) -> AttributionRecord:
        config = self.config
        miner = config.miner_wallet
        trader = config.trader_wallet

        info = self.gateway.get_blockchain_info()
        logger.info(
            f"Connected to node: chain={info.get('chain')} blocks={info.get('blocks')} "
            f"best={info.get('bestblockhash')}"
        )

        ensure_wallet(self.gateway, trader)
        ensure_wallet(self.gateway, miner)

        utxo, reward_address = fund_and_select(
            self.gateway, miner, config.min_input_amount, config.maturity_blocks
        )

        trader_address = self.gateway.new_address(trader)
        logger.info(f"{trader} receiving address: {trader_address}")

        txid = settle(self.gateway, miner, trader_address, config.transfer_amount, utxo)

        confirmation = confirm_and_locate(self.gateway, miner, txid, reward_address, utxo)

        # Ownership answers are only trusted for this run
        resolver = OwnershipResolver(self.gateway)
        record = attribute(confirmation, utxo.vout, miner, trader, resolver, self.network)
        check_conservation(record, config.fee_tolerance)

        write_report(record, config.output_path)

        logger.info(
            f"Settled {record.txid} at height {record.block_height}: "
            f"{format_btc(record.miner_input_amount)} in, "
            f"{format_btc(record.trader_output_amount)} to {trader}, "
            f"{format_btc(record.miner_change_amount)} change, fee {format_btc(record.fee)}"
        )
        return record
