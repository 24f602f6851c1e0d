"""
Pytest configuration and fixtures for regsettle tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from regsettle.config import SettlementConfig

from tests.fakes import FakeNodeGateway


@pytest.fixture
def fake_node() -> FakeNodeGateway:
    return FakeNodeGateway()


@pytest.fixture
def node_with_wallets(fake_node: FakeNodeGateway) -> FakeNodeGateway:
    """Node with Miner and Trader wallets loaded and nothing mined yet."""
    fake_node.create_wallet("Miner")
    fake_node.create_wallet("Trader")
    fake_node.calls.clear()
    return fake_node


@pytest.fixture
def settlement_config(tmp_path: Path) -> SettlementConfig:
    return SettlementConfig(output_path=tmp_path / "out.txt")
