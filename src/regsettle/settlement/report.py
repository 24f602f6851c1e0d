"""
Settlement report file.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from regsettle.amount import format_btc
from regsettle.errors import ReportWriteError
from regsettle.settlement.models import AttributionRecord


def report_lines(record: AttributionRecord) -> list[str]:
    """The ten report values, in file order."""
    return [
        record.txid,
        record.miner_input_address,
        format_btc(record.miner_input_amount),
        record.trader_output_address,
        format_btc(record.trader_output_amount),
        record.miner_change_address,
        format_btc(record.miner_change_amount),
        format_btc(record.fee),
        str(record.block_height),
        record.block_hash,
    ]


def write_report(record: AttributionRecord, path: Path) -> None:
    """
    Write the report, replacing any previous content.

    A failure part way through can leave a truncated file behind.

    Raises:
        ReportWriteError: On any I/O error
    """
    lines = report_lines(record)
    try:
        with open(path, "w") as f:
            for line in lines:
                f.write(f"{line}\n")
    except OSError as e:
        logger.error(f"Failed to write report to {path}: {e}")
        raise ReportWriteError(f"Cannot write report to {path}: {e}") from e

    logger.info(f"Report written to {path}")
