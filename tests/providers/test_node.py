"""
Tests for the Ethereum node provider.
"""

import pytest
from eth_abi import encode

from aa_sdk.core.errors import TransactionError
from aa_sdk.core.execution.userop_builder import (
    GET_ADDRESS_SIGNATURE,
    GET_NONCE_SIGNATURE,
    selector_from_signature,
)
from aa_sdk.providers.node import NodeProvider

ENTRY_POINT = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
FACTORY = "0x9406cc6185a346906296840746125a0e44976454"
OWNER = "0x1111111111111111111111111111111111111111"
ACCOUNT = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ee" * 32


def _provider() -> NodeProvider:
    return NodeProvider("http://node.test")


@pytest.mark.asyncio
async def test_get_nonce_calls_entry_point(rpc_endpoint):
    endpoint = rpc_endpoint(lambda body: {"result": "0x" + encode(["uint256"], [5]).hex()})
    node = _provider()

    nonce = await node.get_nonce(ENTRY_POINT, OWNER, 3)

    assert nonce == 5
    call, block = endpoint.requests[0]["params"]
    assert endpoint.methods == ["eth_call"]
    assert call["to"] == ENTRY_POINT
    assert call["data"].startswith("0x" + selector_from_signature(GET_NONCE_SIGNATURE).hex())
    assert block == "latest"


@pytest.mark.asyncio
async def test_get_account_address(rpc_endpoint):
    endpoint = rpc_endpoint(lambda body: {"result": "0x" + encode(["address"], [ACCOUNT]).hex()})
    node = _provider()

    address = await node.get_account_address(FACTORY, OWNER, 0)

    assert address.lower() == ACCOUNT
    call = endpoint.requests[0]["params"][0]
    assert call["data"].startswith("0x" + selector_from_signature(GET_ADDRESS_SIGNATURE).hex())


@pytest.mark.asyncio
async def test_is_deployed(rpc_endpoint):
    codes = iter(["0x", "0x6080"])
    endpoint = rpc_endpoint(lambda body: {"result": next(codes)})
    node = _provider()

    assert await node.is_deployed(ACCOUNT) is False
    assert await node.is_deployed(ACCOUNT) is True
    assert endpoint.methods == ["eth_getCode", "eth_getCode"]


@pytest.mark.asyncio
async def test_chain_id_is_cached(rpc_endpoint):
    endpoint = rpc_endpoint(lambda body: {"result": "0xaa36a7"})
    node = _provider()

    assert await node.chain_id() == 11155111
    assert await node.chain_id() == 11155111
    assert endpoint.methods == ["eth_chainId"]


@pytest.mark.asyncio
async def test_get_balance(rpc_endpoint):
    endpoint = rpc_endpoint(lambda body: {"result": "0xde0b6b3a7640000"})
    node = _provider()

    assert await node.get_balance(ACCOUNT) == 10**18


@pytest.mark.asyncio
async def test_send_transaction_signs_eip1559(rpc_endpoint, owner):
    replies = {
        "eth_getTransactionCount": "0x3",
        "eth_estimateGas": "0x5208",
        "eth_feeHistory": {"baseFeePerGas": ["0x3b9aca00", "0x3b9aca00"], "reward": [["0x3b9aca00"]]},
        "eth_chainId": "0x1",
        "eth_sendRawTransaction": TX_HASH,
    }
    endpoint = rpc_endpoint(lambda body: {"result": replies[body["method"]]})
    node = _provider()

    tx_hash = await node.send_transaction(owner, ENTRY_POINT, b"\x01", value=7)

    assert tx_hash == TX_HASH
    assert endpoint.methods[-1] == "eth_sendRawTransaction"
    raw = endpoint.requests[-1]["params"][0]
    assert raw.startswith("0x02")


@pytest.mark.asyncio
async def test_suggest_fees_without_reward(rpc_endpoint):
    endpoint = rpc_endpoint(lambda body: {"result": {"baseFeePerGas": ["0x64"]}})
    node = _provider()

    max_fee, priority_fee = await node.suggest_fees()

    assert priority_fee == 1_000_000_000
    assert max_fee == 200 + priority_fee


@pytest.mark.asyncio
async def test_wait_mined_returns_reverted_receipt(rpc_endpoint):
    receipts = iter([None, {"transactionHash": TX_HASH, "status": "0x0", "blockNumber": "0x1"}])
    endpoint = rpc_endpoint(lambda body: {"result": next(receipts)})
    node = _provider()

    receipt = await node.wait_mined(TX_HASH, interval=0.01, timeout=5)

    assert receipt.status is False
    assert receipt.block_number == 1


@pytest.mark.asyncio
async def test_wait_mined_times_out(rpc_endpoint):
    endpoint = rpc_endpoint(lambda body: {"result": None})
    node = _provider()

    with pytest.raises(TransactionError) as exc_info:
        await node.wait_mined(TX_HASH, interval=0.01, timeout=0.05)

    assert exc_info.value.tx_hash == TX_HASH
