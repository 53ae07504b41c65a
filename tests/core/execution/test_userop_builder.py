"""
Tests for ERC-4337 calldata builders.
"""

import pytest
from eth_abi import decode
from eth_utils import keccak

from aa_sdk.core.errors import PreconditionViolation
from aa_sdk.core.execution.abi import pack_int
from aa_sdk.core.execution.userop import PackedUserOperation
from aa_sdk.core.execution.userop_builder import (
    build_create_account_call_data,
    build_entrypoint_get_nonce_call,
    build_execute_batch_call_data,
    build_execute_call_data,
    build_handle_atomic_ops_call_data,
    build_handle_ops_call_data,
    get_execute_selector,
)

TARGET = "0x1111111111111111111111111111111111111111"


def test_build_execute_call_data_encodes_execute() -> None:
    selector = get_execute_selector("execute(address,uint256,bytes)", None)
    call_data = build_execute_call_data(
        to_address=TARGET,
        value_wei=1,
        data=b"\x12\x34",
        signature="execute(address,uint256,bytes)",
    )

    assert call_data.startswith(selector)
    # 4-byte selector + 3 words (address, value, offset) + bytes length + data padded
    assert len(call_data) == len(selector) + 32 * 4 + 32
    assert call_data.endswith(b"\x12\x34" + bytes(30))


def test_execute_selector_override() -> None:
    assert get_execute_selector(selector_override="0xdeadbeef") == b"\xde\xad\xbe\xef"
    with pytest.raises(ValueError):
        get_execute_selector(selector_override="0xdead")


def test_build_execute_batch_call_data() -> None:
    call_data = build_execute_batch_call_data([TARGET, "0x" + "22" * 20], [1, 2])

    assert call_data[:4] == keccak(text="executeBatch(address[],uint256[],bytes[])")[:4]
    dest, values, data = decode(["address[]", "uint256[]", "bytes[]"], call_data[4:])
    assert [d.lower() for d in dest] == [TARGET, "0x" + "22" * 20]
    assert list(values) == [1, 2]
    assert list(data) == [b"", b""]


def test_build_execute_batch_rejects_length_mismatch() -> None:
    with pytest.raises(PreconditionViolation):
        build_execute_batch_call_data([TARGET], [1, 2])
    with pytest.raises(PreconditionViolation):
        build_execute_batch_call_data([TARGET], [1], [b"", b""])


def test_build_create_account_call_data() -> None:
    call_data = build_create_account_call_data(TARGET, 7)

    assert call_data[:4] == keccak(text="createAccount(address,uint256)")[:4]
    owner, salt = decode(["address", "uint256"], call_data[4:])
    assert owner.lower() == TARGET
    assert salt == 7


def test_build_get_nonce_call() -> None:
    call_data = build_entrypoint_get_nonce_call(TARGET, 3)

    assert call_data[:4] == keccak(text="getNonce(address,uint192)")[:4]
    assert decode(["address", "uint192"], call_data[4:])[1] == 3


def test_build_handle_ops_call_data() -> None:
    op = PackedUserOperation(
        sender=TARGET,
        nonce=1,
        init_code=b"",
        call_data=b"\x01",
        account_gas_limits=pack_int(1, 2),
        pre_verification_gas=3,
        gas_fees=pack_int(4, 5),
        paymaster_and_data=b"",
        signature=b"\x02" * 65,
    )
    beneficiary = "0x" + "33" * 20

    call_data = build_handle_ops_call_data([op], beneficiary)
    atomic = build_handle_atomic_ops_call_data([op], beneficiary)

    assert call_data[4:] == atomic[4:]
    assert call_data[:4] != atomic[:4]
    ops, decoded_beneficiary = decode(
        ["(address,uint256,bytes,bytes,bytes32,uint256,bytes32,bytes,bytes)[]", "address"],
        call_data[4:],
    )
    assert decoded_beneficiary.lower() == beneficiary
    assert ops[0][1] == 1
    assert ops[0][8] == b"\x02" * 65
