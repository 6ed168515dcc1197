"""JSON-RPC HTTP client for STAKE LIVE.

Read-only: only eth_call is used. Transient failures (transport errors,
HTTP 429/5xx, rate-limit RPC codes) are retried with a linear backoff;
reverts and hard JSON-RPC errors fail immediately.
"""

import time
from typing import Any, Callable, List, Optional

import requests

from ..config.settings import RPC_MAX_RETRIES, RPC_RETRY_DELAY, RPC_TIMEOUT

_RETRY_STATUS = {429, 500, 502, 503, 504}
_HARD_RPC_CODES = {-32601, -32602, -32603}
_USER_AGENT = "stake-live/1.0"


class RpcError(RuntimeError):
    """Raised when a JSON-RPC call fails for good."""


def _should_retry_rpc_error(err: Any) -> bool:
    if not isinstance(err, dict):
        return True
    code = err.get("code")
    msg = str(err.get("message", "")).lower()

    if "revert" in msg:
        return False
    if code in _HARD_RPC_CODES:
        return False
    # Rate limits (-32005), node hiccups (-32000) and anything unknown
    return True


class JsonRpcClient:
    """Posts JSON-RPC 2.0 requests to a single endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: int = RPC_TIMEOUT,
        max_retries: int = RPC_MAX_RETRIES,
        retry_delay: float = RPC_RETRY_DELAY,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not rpc_url:
            raise ValueError(
                "An RPC URL is required. "
                "Set STAKE_LIVE_RPC_URL or ALCHEMY_API_KEY, or pass --rpc-url."
            )
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._session = session if session is not None else requests.Session()
        self._sleep = sleep
        self._request_id = 0

    def call(self, method: str, params: List[Any]) -> Any:
        """Execute one JSON-RPC call and return its `result`.

        Raises:
            RpcError: When the call reverts, hits a hard error, or keeps
                failing after max_retries attempts.
        """
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        headers = {"User-Agent": _USER_AGENT}

        last_err: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self._session.post(
                    self.rpc_url, json=payload, timeout=self.timeout, headers=headers
                )
                if resp.status_code in _RETRY_STATUS:
                    raise requests.HTTPError(f"RPC HTTP {resp.status_code}", response=resp)
                resp.raise_for_status()
                data = resp.json()
                if not isinstance(data, dict):
                    raise ValueError("Malformed JSON-RPC response")
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status is not None and 400 <= status < 500 and status != 429:
                    raise RpcError(f"{method} failed: HTTP {status}") from exc
                last_err = exc
            except (requests.RequestException, ValueError) as exc:
                last_err = exc
            else:
                if "error" not in data:
                    return data.get("result")
                err = data["error"]
                if not _should_retry_rpc_error(err):
                    raise RpcError(f"{method} failed: {err}")
                last_err = RpcError(f"{method} failed: {err}")

            if attempt < self.max_retries:
                self._sleep(self.retry_delay * attempt)

        raise RpcError(
            f"{method} failed after {self.max_retries} attempts: {last_err}"
        ) from last_err

    def eth_call(self, to: str, data: str) -> str:
        return self.call("eth_call", [{"to": to, "data": data}, "latest"])
