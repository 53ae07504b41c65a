"""
Tests for user operation packing, hashing and signing.
"""

from dataclasses import replace

import pytest
from eth_abi import encode
from eth_utils import keccak

from aa_sdk.core.errors import PreconditionViolation
from aa_sdk.core.execution.hashing import (
    get_user_op_hash,
    hashed_user_op,
    pack_user_operation,
    sign_user_op,
)
from aa_sdk.core.execution.signing import recover_signer, sign_message
from aa_sdk.core.execution.userop import UserOperation, new_user_op_with_default

ENTRY_POINT = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
SENDER = "0x" + "aa" * 20
PAYMASTER = "0xe7db0c105ac75a493b0413046417e48594360542"


def _user_op(**overrides) -> UserOperation:
    user_op = new_user_op_with_default(SENDER, b"\x12\x34")
    user_op.nonce = 0
    for key, value in overrides.items():
        setattr(user_op, key, value)
    return user_op


def test_pack_user_operation_fields() -> None:
    packed = pack_user_operation(_user_op())

    assert packed.account_gas_limits[:16] == (200_000).to_bytes(16, "big")
    assert packed.account_gas_limits[16:] == (2_000_000).to_bytes(16, "big")
    assert packed.gas_fees[:16] == (1_000_000).to_bytes(16, "big")
    assert packed.gas_fees[16:] == (25_000_000_000).to_bytes(16, "big")
    assert packed.pre_verification_gas == 20_000
    assert packed.paymaster_and_data == b""


def test_pack_user_operation_with_paymaster() -> None:
    packed = pack_user_operation(_user_op(paymaster=PAYMASTER, paymaster_data=b"\x01\x02"))

    assert len(packed.paymaster_and_data) == 52 + 2
    assert packed.paymaster_and_data[:20] == bytes.fromhex(PAYMASTER[2:])


def test_pack_user_operation_requires_nonce_and_gas() -> None:
    with pytest.raises(PreconditionViolation):
        pack_user_operation(_user_op(nonce=None))
    with pytest.raises(PreconditionViolation):
        pack_user_operation(_user_op(pre_verification_gas=None))
    with pytest.raises(PreconditionViolation):
        pack_user_operation(_user_op(call_gas_limit=None))


def test_user_op_hash_matches_manual_encoding() -> None:
    packed = pack_user_operation(_user_op())
    inner = keccak(
        encode(
            ["address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
            [
                SENDER,
                0,
                keccak(b""),
                keccak(b"\x12\x34"),
                packed.account_gas_limits,
                20_000,
                packed.gas_fees,
                keccak(b""),
            ],
        )
    )
    expected = keccak(encode(["bytes32", "address", "uint256"], [inner, ENTRY_POINT, 1]))

    assert hashed_user_op(packed) == inner
    assert get_user_op_hash(packed, ENTRY_POINT, 1) == expected


def test_user_op_hash_is_deterministic() -> None:
    first = get_user_op_hash(pack_user_operation(_user_op()), ENTRY_POINT, 1)
    second = get_user_op_hash(pack_user_operation(_user_op()), ENTRY_POINT, 1)

    assert first == second
    assert len(first) == 32


def test_user_op_hash_ignores_signature() -> None:
    packed = pack_user_operation(_user_op())

    assert get_user_op_hash(replace(packed, signature=b"\x01" * 65), ENTRY_POINT, 1) == get_user_op_hash(
        packed, ENTRY_POINT, 1
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"call_data": b"\x12\x35"},
        {"init_code": b"\x01"},
        {"nonce": 1},
        {"paymaster": PAYMASTER},
        {"max_fee_per_gas": 26_000_000_000},
    ],
)
def test_user_op_hash_changes_with_fields(overrides) -> None:
    base = get_user_op_hash(pack_user_operation(_user_op()), ENTRY_POINT, 1)

    assert get_user_op_hash(pack_user_operation(_user_op(**overrides)), ENTRY_POINT, 1) != base


def test_user_op_hash_binds_chain_and_entry_point() -> None:
    packed = pack_user_operation(_user_op())
    base = get_user_op_hash(packed, ENTRY_POINT, 1)

    assert get_user_op_hash(packed, ENTRY_POINT, 2) != base
    assert get_user_op_hash(packed, "0x" + "bb" * 20, 1) != base


def test_sign_user_op_recovers_signer(owner) -> None:
    packed = pack_user_operation(_user_op())
    signature, user_op_hash = sign_user_op(packed, ENTRY_POINT, 1, owner)

    assert len(signature) == 65
    assert signature[64] in (27, 28)
    assert user_op_hash == get_user_op_hash(packed, ENTRY_POINT, 1)
    assert recover_signer(user_op_hash, signature) == owner.address


def test_sign_message_is_personal_sign(owner) -> None:
    message = keccak(b"hello")
    signature = sign_message(owner, message)

    assert recover_signer(message, signature) == owner.address
    assert recover_signer(keccak(b"other"), signature) != owner.address


@pytest.mark.parametrize(
    "overrides",
    [
        {"paymaster_data": b"\x01\x02\x04"},
        {"paymaster_verification_gas_limit": 300_001},
        {"paymaster_post_op_gas_limit": 101},
    ],
)
def test_user_op_hash_changes_with_paymaster_and_data(overrides) -> None:
    sponsored = {"paymaster": PAYMASTER, "paymaster_data": b"\x01\x02\x03"}
    base = get_user_op_hash(pack_user_operation(_user_op(**sponsored)), ENTRY_POINT, 1)

    changed = pack_user_operation(_user_op(**{**sponsored, **overrides}))

    assert get_user_op_hash(changed, ENTRY_POINT, 1) != base
