"""
RPC Failover Manager
====================
Posts JSON-RPC requests to a Solana node, tracks per-provider health and
rotates to the next provider after a hard connection failure.

Every failure mode is normalized to NetworkError:
- transport errors (timeouts, refused connections)
- HTTP 429 / 5xx (retryable) and other non-200 statuses (not retryable)
- JSON-RPC error objects
"""

import itertools
import time
import requests
from typing import Any, Dict, List, Optional

from collier.shared.system.errors import NetworkError
from collier.shared.system.logging import Logger

# JSON-RPC codes that will not change on retry (bad request, unknown method, bad params)
NON_RETRYABLE_RPC_CODES = {-32600, -32601, -32602}


class RpcConnectionManager:
    """
    Manages RPC connection lifecycle, health tracking, and failover.
    """

    def __init__(self, rpc_urls: List[str], timeout: float = 30.0):
        # Deduplicate and filter empty
        self.rpc_urls = list(dict.fromkeys([u for u in rpc_urls if u]))
        if not self.rpc_urls:
            raise ValueError("At least one RPC URL is required")

        self.timeout = timeout
        self.current_index = 0
        self._ids = itertools.count(1)
        self.stats: Dict[str, Dict] = {
            url: {
                "success": 0,
                "errors": 0,
                "avg_latency": 0.0,
                "last_error_time": 0,
            }
            for url in self.rpc_urls
        }

        Logger.debug(f"[RPC] Manager initialized with {len(self.rpc_urls)} provider(s)")

    def get_active_url(self) -> str:
        return self.rpc_urls[self.current_index]

    def post(self, payload: dict, timeout: Optional[float] = None) -> requests.Response:
        """
        Execute POST request with metrics tracking and failover on hard failure.
        """
        url = self.get_active_url()
        start = time.time()

        try:
            response = requests.post(url, json=payload, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            self._record_error(url)
            self.switch_provider(reason=f"Network Error: {e}")
            raise NetworkError(f"{payload.get('method')} via {url}: {e}") from e

        latency = (time.time() - start) * 1000
        if response.status_code == 429 or response.status_code >= 500:
            self._record_error(url)
            raise NetworkError(
                f"{payload.get('method')} via {url}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code != 200:
            self._record_error(url)
            raise NetworkError(
                f"{payload.get('method')} via {url}: HTTP {response.status_code}",
                status_code=response.status_code,
                retryable=False,
            )

        self._record_success(url, latency)
        return response

    def call(self, method: str, params: list) -> Any:
        """Single JSON-RPC round trip; returns the `result` member."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        response = self.post(payload)

        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(f"{method}: response is not JSON") from e

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", error) if isinstance(error, dict) else error
            raise NetworkError(
                f"{method}: RPC error {code}: {message}",
                retryable=code not in NON_RETRYABLE_RPC_CODES,
            )
        if "result" not in body:
            raise NetworkError(f"{method}: response has no result")
        return body["result"]

    def _record_success(self, url: str, latency: float):
        s = self.stats[url]
        s["success"] += 1
        # Exponential moving average for latency
        if s["avg_latency"] == 0:
            s["avg_latency"] = latency
        else:
            s["avg_latency"] = 0.9 * s["avg_latency"] + 0.1 * latency

    def _record_error(self, url: str):
        s = self.stats[url]
        s["errors"] += 1
        s["last_error_time"] = time.time()

    def switch_provider(self, reason: str = "Unknown"):
        """Force rotation to next provider."""
        if len(self.rpc_urls) == 1:
            return
        old_url = self.get_active_url()
        self.current_index = (self.current_index + 1) % len(self.rpc_urls)
        Logger.warning(f"[RPC] Switching {old_url} -> {self.get_active_url()} ({reason})")
