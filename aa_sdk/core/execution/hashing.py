"""
UserOperation packing and hashing (EntryPoint v0.7).
"""

from __future__ import annotations

from typing import Tuple

from eth_account.signers.local import LocalAccount

from aa_sdk.core.errors import require

from .abi import abi_encode, address_bytes, is_zero_address, keccak256, pack_int
from .paymaster import pack_paymaster_and_data
from .signing import sign_message
from .userop import PackedUserOperation, UserOperation


def pack_user_operation(user_op: UserOperation) -> PackedUserOperation:
    """
    Pack a verbose user operation into its on-chain form.

    Raises ``PreconditionViolation`` if the operation or any gas/fee value
    it needs is missing.
    """
    require(user_op is not None, "nil user operation")
    require(user_op.nonce is not None, "nil nonce")
    require(user_op.pre_verification_gas is not None, "nil pre verification gas")

    if is_zero_address(user_op.paymaster):
        paymaster_and_data = b""
    else:
        paymaster_and_data = pack_paymaster_and_data(
            user_op.paymaster,
            user_op.paymaster_verification_gas_limit,
            user_op.paymaster_post_op_gas_limit,
            user_op.paymaster_data,
        )

    return PackedUserOperation(
        sender=user_op.sender,
        nonce=user_op.nonce,
        init_code=bytes(user_op.init_code),
        call_data=bytes(user_op.call_data),
        account_gas_limits=pack_int(user_op.verification_gas_limit, user_op.call_gas_limit),
        pre_verification_gas=user_op.pre_verification_gas,
        gas_fees=pack_int(user_op.max_priority_fee_per_gas, user_op.max_fee_per_gas),
        paymaster_and_data=paymaster_and_data,
        signature=bytes(user_op.signature),
    )


def hashed_user_op(packed: PackedUserOperation) -> bytes:
    """Inner hash: the fixed fields plus keccak of each dynamic field."""
    encoded = abi_encode(
        ["address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
        [
            address_bytes(packed.sender),
            packed.nonce,
            keccak256(packed.init_code),
            keccak256(packed.call_data),
            packed.account_gas_limits,
            packed.pre_verification_gas,
            packed.gas_fees,
            keccak256(packed.paymaster_and_data),
        ],
    )
    return keccak256(encoded)


def get_user_op_hash(packed: PackedUserOperation, entry_point: str, chain_id: int) -> bytes:
    """The userOpHash: inner hash bound to the entry point and chain."""
    encoded = abi_encode(
        ["bytes32", "address", "uint256"],
        [hashed_user_op(packed), address_bytes(entry_point), chain_id],
    )
    return keccak256(encoded)


def sign_user_op(
    packed: PackedUserOperation,
    entry_point: str,
    chain_id: int,
    signer: LocalAccount,
) -> Tuple[bytes, bytes]:
    """Return ``(signature, user_op_hash)``."""
    user_op_hash = get_user_op_hash(packed, entry_point, chain_id)
    return sign_message(signer, user_op_hash), user_op_hash
