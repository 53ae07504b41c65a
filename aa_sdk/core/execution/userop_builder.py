"""
Calldata builders for the smart account, its factory and the EntryPoint.
"""

from __future__ import annotations

from typing import Optional, Sequence

from eth_utils import keccak

from aa_sdk.core.errors import require

from .abi import abi_encode, address_bytes, hex_to_bytes
from .userop import PackedUserOperation


EXECUTE_SIGNATURE = "execute(address,uint256,bytes)"
EXECUTE_BATCH_SIGNATURE = "executeBatch(address[],uint256[],bytes[])"
CREATE_ACCOUNT_SIGNATURE = "createAccount(address,uint256)"
GET_ADDRESS_SIGNATURE = "getAddress(address,uint256)"
GET_NONCE_SIGNATURE = "getNonce(address,uint192)"
DEPOSIT_TO_SIGNATURE = "depositTo(address)"
PACKED_USER_OP_TUPLE = "(address,uint256,bytes,bytes,bytes32,uint256,bytes32,bytes,bytes)"
HANDLE_OPS_SIGNATURE = f"handleOps({PACKED_USER_OP_TUPLE}[],address)"
HANDLE_ATOMIC_OPS_SIGNATURE = f"handleAtomicOps({PACKED_USER_OP_TUPLE}[],address)"


def selector_from_signature(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def get_execute_selector(
    signature: Optional[str] = None,
    selector_override: Optional[str] = None,
) -> bytes:
    if selector_override:
        if not selector_override.startswith("0x") or len(selector_override) != 10:
            raise ValueError("Execute selector override must be 4 bytes (0x........)")
        return hex_to_bytes(selector_override)

    return selector_from_signature(signature or EXECUTE_SIGNATURE)


def build_execute_call_data(
    to_address: str,
    value_wei: int,
    data: bytes = b"",
    *,
    signature: Optional[str] = None,
    selector_override: Optional[str] = None,
) -> bytes:
    """
    Build calldata for execute(address,uint256,bytes).
    """
    selector = get_execute_selector(signature, selector_override)
    return selector + abi_encode(
        ["address", "uint256", "bytes"],
        [address_bytes(to_address), value_wei, bytes(data)],
    )


def build_execute_batch_call_data(
    dest: Sequence[str],
    values: Sequence[int],
    data: Optional[Sequence[bytes]] = None,
) -> bytes:
    """
    Build calldata for executeBatch(address[],uint256[],bytes[]).

    ``data`` defaults to empty calldata for every destination (plain transfers).
    """
    require(len(dest) == len(values), f"dest and value length mismatch: {len(dest)} != {len(values)}")
    if data is None:
        data = [b""] * len(dest)
    require(len(dest) == len(data), f"dest and data length mismatch: {len(dest)} != {len(data)}")

    return selector_from_signature(EXECUTE_BATCH_SIGNATURE) + abi_encode(
        ["address[]", "uint256[]", "bytes[]"],
        [[address_bytes(d) for d in dest], list(values), [bytes(d) for d in data]],
    )


def build_create_account_call_data(owner: str, salt: int) -> bytes:
    """
    Build calldata for SimpleAccountFactory.createAccount(address,uint256).
    """
    return selector_from_signature(CREATE_ACCOUNT_SIGNATURE) + abi_encode(
        ["address", "uint256"], [address_bytes(owner), salt]
    )


def build_factory_get_address_call(owner: str, salt: int) -> bytes:
    """
    Build calldata for SimpleAccountFactory.getAddress(address,uint256).
    """
    return selector_from_signature(GET_ADDRESS_SIGNATURE) + abi_encode(
        ["address", "uint256"], [address_bytes(owner), salt]
    )


def build_entrypoint_get_nonce_call(sender: str, key: int = 0) -> bytes:
    """
    Build calldata for EntryPoint.getNonce(address,uint192).
    """
    return selector_from_signature(GET_NONCE_SIGNATURE) + abi_encode(
        ["address", "uint192"], [address_bytes(sender), key]
    )


def build_deposit_to_call_data(account: str) -> bytes:
    return selector_from_signature(DEPOSIT_TO_SIGNATURE) + abi_encode(
        ["address"], [address_bytes(account)]
    )


def _encode_ops(ops: Sequence[PackedUserOperation], beneficiary: str) -> bytes:
    rows = []
    for op in ops:
        row = list(op.as_tuple())
        row[0] = address_bytes(op.sender)
        rows.append(tuple(row))
    return abi_encode([f"{PACKED_USER_OP_TUPLE}[]", "address"], [rows, address_bytes(beneficiary)])


def build_handle_ops_call_data(ops: Sequence[PackedUserOperation], beneficiary: str) -> bytes:
    """
    Build calldata for EntryPoint.handleOps(PackedUserOperation[],address).
    """
    return selector_from_signature(HANDLE_OPS_SIGNATURE) + _encode_ops(ops, beneficiary)


def build_handle_atomic_ops_call_data(ops: Sequence[PackedUserOperation], beneficiary: str) -> bytes:
    """
    Build calldata for EntryPoint.handleAtomicOps(PackedUserOperation[],address).

    ``handleAtomicOps`` is an extension shipped by some EntryPoint forks; ops
    either all succeed or the whole bundle reverts.
    """
    return selector_from_signature(HANDLE_ATOMIC_OPS_SIGNATURE) + _encode_ops(ops, beneficiary)
