"""Minimal JSON-RPC client for cluster preflight checks."""

from __future__ import annotations

from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from feed_provisioner.errors import RpcRequestError, RpcUnavailableError

LAMPORTS_PER_SOL = 1_000_000_000


@dataclass
class RpcClient:
    rpc_url: str
    commitment: str = "processed"
    timeout: float = 10.0
    retries: int = 2

    def __post_init__(self) -> None:
        self._session = requests.Session()
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 500, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("POST",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)
        self._request_id = 0

    def _call(self, method: str, params: list | None = None) -> object:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        try:
            response = self._session.request(
                "POST",
                self.rpc_url,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RpcUnavailableError(f"rpc {method} failed: {exc}") from exc

        if response.status_code >= 400:
            raise RpcUnavailableError(
                f"rpc {method} failed: {response.status_code} {response.text}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise RpcUnavailableError(f"rpc {method} returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise RpcUnavailableError(f"rpc {method} returned a non-object response")

        error = body.get("error")
        if isinstance(error, dict):
            raw_code = error.get("code")
            raise RpcRequestError(
                f"rpc {method} failed: {error.get('message', 'unknown error')}",
                code=raw_code if isinstance(raw_code, int) else None,
                data=error.get("data"),
            )
        if "result" not in body:
            raise RpcUnavailableError(f"rpc {method} response missing result")
        return body["result"]

    def get_health(self) -> str:
        return str(self._call("getHealth"))

    def get_version(self) -> dict:
        result = self._call("getVersion")
        return result if isinstance(result, dict) else {}

    def get_balance(self, public_key: str) -> int:
        result = self._call("getBalance", [public_key, {"commitment": self.commitment}])
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, int):
            raise RpcUnavailableError("rpc getBalance returned no lamport value")
        return value


__all__ = ["LAMPORTS_PER_SOL", "RpcClient"]
