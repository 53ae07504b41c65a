"""
Verifying-paymaster codec.

Layout of ``paymasterAndData`` (EntryPoint v0.7)::

    [0:20]   paymaster address
    [20:36]  paymaster verification gas limit (uint128)
    [36:52]  paymaster post-op gas limit (uint128)
    [52:]    paymaster-specific data

For the verifying paymaster the specific data is
``abi.encode(uint48 validUntil, uint48 validAfter) ++ signature``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from aa_sdk.core.errors import PaymasterDataError

from .abi import (
    HALF_WORD_SIZE,
    abi_decode,
    abi_encode,
    address_bytes,
    bytes_to_int,
    int_to_bytes,
    keccak256,
)
from .userop import PackedUserOperation


PAYMASTER_VALIDATION_GAS_OFFSET = 20
PAYMASTER_POST_OP_GAS_OFFSET = 36
PAYMASTER_DATA_OFFSET = 52

VALIDITY_WINDOW_SIZE = 64
EMPTY_SIGNATURE = bytes(65)
MAX_UINT48 = (1 << 48) - 1
NO_EXPIRY_INT32 = (1 << 31) - 1


@dataclass(frozen=True)
class PaymasterValidity:
    """
    Sponsorship validity window, in unix seconds.

    ``valid_until == 0`` means the signature never expires. The default upper
    bound is the largest signed 32-bit value, which is what most verifying
    paymaster deployments expect.
    """
    valid_until: int = NO_EXPIRY_INT32
    valid_after: int = 0


@dataclass(frozen=True)
class PaymasterAndData:
    paymaster: str
    verification_gas_limit: int
    post_op_gas_limit: int
    data: bytes


def pack_paymaster_and_data(
    paymaster: str,
    verification_gas_limit: Optional[int],
    post_op_gas_limit: Optional[int],
    data: bytes = b"",
) -> bytes:
    """Construct the ``paymasterAndData`` field."""
    return (
        address_bytes(paymaster)
        + int_to_bytes(verification_gas_limit, HALF_WORD_SIZE)
        + int_to_bytes(post_op_gas_limit, HALF_WORD_SIZE)
        + bytes(data)
    )


def unpack_paymaster_and_data(paymaster_and_data: bytes) -> PaymasterAndData:
    if len(paymaster_and_data) < PAYMASTER_DATA_OFFSET:
        raise PaymasterDataError(length=len(paymaster_and_data))
    return PaymasterAndData(
        paymaster="0x" + paymaster_and_data[:PAYMASTER_VALIDATION_GAS_OFFSET].hex(),
        verification_gas_limit=bytes_to_int(
            paymaster_and_data[PAYMASTER_VALIDATION_GAS_OFFSET:PAYMASTER_POST_OP_GAS_OFFSET]
        ),
        post_op_gas_limit=bytes_to_int(
            paymaster_and_data[PAYMASTER_POST_OP_GAS_OFFSET:PAYMASTER_DATA_OFFSET]
        ),
        data=paymaster_and_data[PAYMASTER_DATA_OFFSET:],
    )


def encode_paymaster_data(valid_until: int, valid_after: int, signature: bytes) -> bytes:
    """Encode validUntil, validAfter and the verifying signer's signature."""
    return abi_encode(["uint48", "uint48"], [valid_until, valid_after]) + bytes(signature)


def decode_paymaster_data(data: bytes) -> tuple[int, int, bytes]:
    if len(data) < VALIDITY_WINDOW_SIZE:
        raise PaymasterDataError("paymaster data too short", length=len(data))
    valid_until, valid_after = abi_decode(["uint48", "uint48"], data[:VALIDITY_WINDOW_SIZE])
    return valid_until, valid_after, data[VALIDITY_WINDOW_SIZE:]


def get_paymaster_hash(
    packed: PackedUserOperation,
    chain_id: int,
    valid_until: int,
    valid_after: int,
) -> bytes:
    """
    Hash the verifying paymaster signs to authorize sponsorship.

    Covers the operation without its signature or paymaster data, bound to
    the chain, the paymaster address and the validity window.
    """
    if len(packed.paymaster_and_data) < PAYMASTER_DATA_OFFSET:
        raise PaymasterDataError(length=len(packed.paymaster_and_data))

    paymaster = packed.paymaster_and_data[:PAYMASTER_VALIDATION_GAS_OFFSET]
    # verification and post-op gas together, as a single uint256
    paymaster_gas = bytes_to_int(
        packed.paymaster_and_data[PAYMASTER_VALIDATION_GAS_OFFSET:PAYMASTER_DATA_OFFSET]
    )

    encoded = abi_encode(
        [
            "address",
            "uint256",
            "bytes32",
            "bytes32",
            "bytes32",
            "uint256",
            "uint256",
            "bytes32",
            "uint256",
            "address",
            "uint48",
            "uint48",
        ],
        [
            address_bytes(packed.sender),
            packed.nonce,
            keccak256(packed.init_code),
            keccak256(packed.call_data),
            packed.account_gas_limits,
            paymaster_gas,
            packed.pre_verification_gas,
            packed.gas_fees,
            chain_id,
            paymaster,
            valid_until,
            valid_after,
        ],
    )
    return keccak256(encoded)
