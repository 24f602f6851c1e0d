"""
Settlement stages: provision, fund, send, confirm, attribute, report.
"""

from regsettle.settlement.attribution import attribute, check_conservation
from regsettle.settlement.confirmation import confirm_and_locate
from regsettle.settlement.constructor import settle
from regsettle.settlement.funding import fund_and_select, select_utxo
from regsettle.settlement.models import AttributedOutput, AttributionRecord, Confirmation
from regsettle.settlement.pipeline import SettlementPipeline
from regsettle.settlement.provisioner import ensure_wallet
from regsettle.settlement.report import report_lines, write_report

__all__ = [
    "AttributedOutput",
    "AttributionRecord",
    "Confirmation",
    "SettlementPipeline",
    "attribute",
    "check_conservation",
    "confirm_and_locate",
    "ensure_wallet",
    "fund_and_select",
    "report_lines",
    "select_utxo",
    "settle",
    "write_report",
]
