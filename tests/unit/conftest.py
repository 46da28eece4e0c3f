"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO NETWORK I/O ALLOWED.

Remote access goes through MockRpcManager; the store is a SQLite file
under tmp_path.
"""

import pytest

from collier.modules.metaplex.config import CollierConfig
from collier.modules.metaplex.context import CollierContext
from collier.shared.infrastructure.ledger_client import LedgerClient
from collier.shared.system.database.core import DatabaseCore
from tests.mocks import MockRpcManager


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must use MockRpcManager or patch requests explicitly."
        )

    monkeypatch.setattr("requests.post", block_network)
    monkeypatch.setattr("requests.get", block_network)


# ============================================================================
# LEDGER / STORE FIXTURES
# ============================================================================


@pytest.fixture
def config():
    """Default config with zero backoff so retry tests run instantly."""
    return CollierConfig(RETRY_BASE_DELAY_S=0.0, RETRY_JITTER_S=0.0)


@pytest.fixture
def sleeps():
    """Records every backoff delay requested by the retry policy."""
    return []


@pytest.fixture
def mock_rpc():
    return MockRpcManager()


@pytest.fixture
def ledger(mock_rpc, config, sleeps):
    return LedgerClient(mock_rpc, config.retry_policy(sleep=sleeps.append))


@pytest.fixture
def db(db_path):
    core = DatabaseCore(db_path)
    core.init_schema()
    return core


@pytest.fixture
def ctx(ledger, db, config):
    return CollierContext(ledger=ledger, db=db, config=config)
