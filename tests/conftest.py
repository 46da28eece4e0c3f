"""
Collier Test Configuration
==========================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys
import tempfile

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep test runs off the console and out of the working directory's logs/
os.environ.setdefault("COLLIER_SILENT", "1")
os.environ.setdefault("COLLIER_LOG_DIR", os.path.join(tempfile.gettempdir(), "collier-test-logs"))

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def operator():
    """Update authority keypair used to sign rescue transactions."""
    return Keypair()


@pytest.fixture
def creator_address():
    return str(Pubkey.new_unique())


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "collier.db")
