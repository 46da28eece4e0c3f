"""
Ledger Client
=============
Stateless request/response access to a Solana node.

Reads:
- getAccountInfo            -> RemoteAccount | None
- getProgramAccounts        -> [RemoteAccount] (single memcmp filter)
- getTokenLargestAccounts   -> [LargestTokenAccount]
- getLatestBlockhash        -> solders Hash
Writes:
- simulateTransaction       -> SimulationOutcome
- sendTransaction           -> signature

Every call goes through the RetryPolicy; callers may pass an on_failure
callback to observe each failed attempt.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, List, Optional

from solders.hash import Hash
from solders.transaction import VersionedTransaction

from collier.shared.infrastructure.retry import FailureCallback, RetryPolicy
from collier.shared.infrastructure.rpc_manager import RpcConnectionManager
from collier.shared.system.errors import NetworkError


@dataclass
class RemoteAccount:
    """Raw account as returned by the node."""
    address: str
    data: bytes
    owner: str


@dataclass
class LargestTokenAccount:
    address: str
    amount: str  # decimal string, raw base units
    decimals: int


@dataclass
class SimulationOutcome:
    success: bool
    err: Any = None
    logs: List[str] = field(default_factory=list)
    units_consumed: Optional[int] = None


def _decode_account(address: str, value: dict) -> RemoteAccount:
    try:
        data = value["data"]
        encoded = data[0] if isinstance(data, list) else data
        return RemoteAccount(
            address=address,
            data=base64.b64decode(encoded),
            owner=value.get("owner", ""),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise NetworkError(f"Malformed account payload for {address}: {e}", retryable=False) from e


class LedgerClient:
    """Remote access adapter for the metadata and token programs."""

    def __init__(self, rpc: RpcConnectionManager, retry_policy: RetryPolicy = None):
        self.rpc = rpc
        self.retry = retry_policy or RetryPolicy()

    def _call(self, method: str, params: list, on_failure: Optional[FailureCallback] = None) -> Any:
        return self.retry.call(self.rpc.call, method, params, label=method, on_failure=on_failure)

    # =========================================================================
    # READS
    # =========================================================================

    def fetch_account(self, address: str, on_failure: Optional[FailureCallback] = None) -> Optional[RemoteAccount]:
        """Fetch a single account; None when it does not exist."""
        result = self._call("getAccountInfo", [address, {"encoding": "base64"}], on_failure)
        value = result.get("value") if isinstance(result, dict) else None
        if not value:
            return None
        return _decode_account(address, value)

    def fetch_accounts_by_filter(
        self,
        program_id: str,
        offset: int,
        value: str,
        on_failure: Optional[FailureCallback] = None,
    ) -> List[RemoteAccount]:
        """
        Fetch every account owned by program_id whose bytes at `offset`
        equal the base58-encoded `value`.
        """
        config = {
            "encoding": "base64",
            "filters": [{"memcmp": {"offset": offset, "bytes": value}}],
        }
        result = self._call("getProgramAccounts", [program_id, config], on_failure)
        if not isinstance(result, list):
            raise NetworkError("getProgramAccounts: expected a list result", retryable=False)

        accounts = []
        for entry in result:
            try:
                pubkey = entry["pubkey"]
                account = entry["account"]
            except (KeyError, TypeError) as e:
                raise NetworkError(f"getProgramAccounts: malformed entry: {e}", retryable=False) from e
            accounts.append(_decode_account(pubkey, account))
        return accounts

    def fetch_largest_token_accounts(
        self, mint_address: str, on_failure: Optional[FailureCallback] = None
    ) -> List[LargestTokenAccount]:
        result = self._call("getTokenLargestAccounts", [mint_address], on_failure)
        try:
            return [
                LargestTokenAccount(
                    address=item["address"],
                    amount=str(item["amount"]),
                    decimals=int(item["decimals"]),
                )
                for item in result["value"]
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError(f"getTokenLargestAccounts: malformed result: {e}", retryable=False) from e

    def fetch_recent_blockhash(self, on_failure: Optional[FailureCallback] = None) -> Hash:
        result = self._call("getLatestBlockhash", [{"commitment": "finalized"}], on_failure)
        try:
            return Hash.from_string(result["value"]["blockhash"])
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError(f"getLatestBlockhash: malformed result: {e}", retryable=False) from e

    # =========================================================================
    # WRITES
    # =========================================================================

    def simulate_transaction(
        self, tx: VersionedTransaction, on_failure: Optional[FailureCallback] = None
    ) -> SimulationOutcome:
        """Dry-run a signed transaction; nothing is committed on chain."""
        encoded = base64.b64encode(bytes(tx)).decode()
        config = {"encoding": "base64", "sigVerify": True, "commitment": "confirmed"}
        result = self._call("simulateTransaction", [encoded, config], on_failure)
        value = (result or {}).get("value") or {}
        err = value.get("err")
        return SimulationOutcome(
            success=err is None,
            err=err,
            logs=value.get("logs") or [],
            units_consumed=value.get("unitsConsumed"),
        )

    def send_transaction(self, tx: VersionedTransaction, on_failure: Optional[FailureCallback] = None) -> str:
        encoded = base64.b64encode(bytes(tx)).decode()
        config = {"encoding": "base64", "preflightCommitment": "confirmed"}
        return self._call("sendTransaction", [encoded, config], on_failure)
