import json
from typing import Any, Callable, Dict, List

import httpx
import pytest
from eth_account import Account


class RpcRecorder:
    """Mock JSON-RPC endpoint: records request bodies and answers from ``respond``."""

    def __init__(self, respond: Callable[[Dict[str, Any]], Any]):
        self.respond = respond
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        reply = self.respond(body)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **reply})

    @property
    def methods(self) -> List[str]:
        return [body["method"] for body in self.requests]


@pytest.fixture
def rpc_endpoint(httpx_mock):
    """Register a JSON-RPC responder for every outgoing request."""

    def register(respond: Callable[[Dict[str, Any]], Any]) -> RpcRecorder:
        recorder = RpcRecorder(respond)
        httpx_mock.add_callback(recorder, is_reusable=True)
        return recorder

    return register


@pytest.fixture
def owner():
    return Account.from_key("0x" + "11" * 32)


@pytest.fixture
def verifier():
    return Account.from_key("0x" + "22" * 32)


@pytest.fixture
def second_verifier():
    return Account.from_key("0x" + "33" * 32)
