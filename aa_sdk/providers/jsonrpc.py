"""
JSON-RPC 2.0 over HTTP POST.

Shared by the bundler and node providers. Each ``JsonRpcClient`` owns its
request-id counter, so two clients never interfere.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import httpx

from aa_sdk.core.errors import JsonRpcError, TransportError


logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


class RequestCounter:
    """Monotonically increasing, thread-safe request id."""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def decode_rpc_error(error: Any, method: Optional[str] = None) -> JsonRpcError:
    """
    Decode a JSON-RPC ``error`` member.

    Bundlers send either a bare string or a ``{code, message}`` object; both
    become the same ``JsonRpcError`` shape.
    """
    if isinstance(error, str):
        return JsonRpcError(error, method=method)
    if isinstance(error, dict):
        code = error.get("code")
        if code is not None and not isinstance(code, int):
            try:
                code = int(code)
            except (TypeError, ValueError):
                code = None
        message = error.get("message")
        return JsonRpcError(
            str(message) if message is not None else None,
            code=code,
            method=method,
            data=error.get("data"),
        )
    return JsonRpcError(str(error), method=method)


class JsonRpcClient:
    """Async JSON-RPC client on top of ``httpx.AsyncClient``."""

    def __init__(
        self,
        url: str,
        *,
        timeout_s: float = 20,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = RequestCounter()

    def _get_client(self) -> httpx.AsyncClient:
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    def build_request(self, method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self._ids.next(),
            "method": method,
            "params": params if params is not None else [],
        }

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Issue one call and return its ``result`` (which may be ``None``)."""
        request = self.build_request(method, params)
        logger.debug(f"JSON-RPC request {request['id']} {method} -> {self.url}")

        try:
            response = await self._get_client().post(
                self.url,
                json=request,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"error calling {method}: {exc}", method=method) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"error decoding {method} response (HTTP {response.status_code}): {exc}",
                method=method,
            ) from exc

        if not isinstance(payload, dict):
            raise TransportError(f"unexpected {method} response: {payload!r}", method=method)

        error = payload.get("error")
        if error is not None:
            raise decode_rpc_error(error, method)

        if response.is_error:
            raise TransportError(
                f"error calling {method}: HTTP {response.status_code}",
                method=method,
            )

        return payload.get("result")

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
