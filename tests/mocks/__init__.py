"""
Collier Test Mocks
==================
Reusable mock classes and payload builders for isolated testing.
"""

from tests.mocks.mock_rpc import MockRpcManager
from tests.mocks.payloads import build_metadata_bytes, build_token_account_bytes

__all__ = [
    "MockRpcManager",
    "build_metadata_bytes",
    "build_token_account_bytes",
]
