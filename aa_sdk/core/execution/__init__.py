"""
ERC-4337 Execution Layer

Builds, hashes, signs and submits EntryPoint v0.7 user operations:
- AAClient: fills, signs and submits user operations
- pack_user_operation / get_user_op_hash: canonical packing and hashing
- Paymaster codec: verifying-paymaster sponsorship data and hash
- RoundRobinSignerProvider: rotation over paymaster verifying keys

Usage:
    from aa_sdk.core.execution import AAClient, ClientConfig, new_user_op_with_default

    client = AAClient(config, LRUCache(10000))
    sender = await client.get_account(owner.address, salt=0)
    user_op = new_user_op_with_default(sender, build_execute_call_data(target, amount))
    user_op_hash = await client.send_user_op(user_op, owner)
    receipt = await client.wait_for_user_operation(user_op_hash)
"""

from .abi import pack_int, unpack_int

from .userop import (
    UserOperation,
    PackedUserOperation,
    UserOpGasEstimate,
    UserOpReceipt,
    new_user_op_with_default,
)

from .hashing import (
    pack_user_operation,
    hashed_user_op,
    get_user_op_hash,
    sign_user_op,
)

from .signing import (
    load_signer,
    sign_message,
    recover_signer,
)

from .paymaster import (
    EMPTY_SIGNATURE,
    PaymasterAndData,
    PaymasterValidity,
    pack_paymaster_and_data,
    unpack_paymaster_and_data,
    encode_paymaster_data,
    decode_paymaster_data,
    get_paymaster_hash,
)

from .rotator import (
    Rotator,
    RoundRobin,
    RoundRobinSignerProvider,
)

from .userop_builder import (
    build_execute_call_data,
    build_execute_batch_call_data,
    build_create_account_call_data,
)

from .client import (
    AAClient,
    ClientConfig,
)

__all__ = [
    # ABI
    "pack_int",
    "unpack_int",
    # Models
    "UserOperation",
    "PackedUserOperation",
    "UserOpGasEstimate",
    "UserOpReceipt",
    "new_user_op_with_default",
    # Hashing
    "pack_user_operation",
    "hashed_user_op",
    "get_user_op_hash",
    "sign_user_op",
    # Signing
    "load_signer",
    "sign_message",
    "recover_signer",
    # Paymaster
    "EMPTY_SIGNATURE",
    "PaymasterAndData",
    "PaymasterValidity",
    "pack_paymaster_and_data",
    "unpack_paymaster_and_data",
    "encode_paymaster_data",
    "decode_paymaster_data",
    "get_paymaster_hash",
    # Rotator
    "Rotator",
    "RoundRobin",
    "RoundRobinSignerProvider",
    # Calldata
    "build_execute_call_data",
    "build_execute_batch_call_data",
    "build_create_account_call_data",
    # Client
    "AAClient",
    "ClientConfig",
]
