"""
ERC-4337 UserOperation models and helpers.

Supports EntryPoint v0.7 (packed user operations).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .abi import hex_to_bytes, hex_to_int, is_zero_address, to_hex_bytes, to_hex_quantity


DEFAULT_CALL_GAS_LIMIT = 2_000_000
DEFAULT_VERIFICATION_GAS_LIMIT = 200_000
DEFAULT_PRE_VERIFICATION_GAS = 20_000
DEFAULT_MAX_FEE_PER_GAS = 25_000_000_000
DEFAULT_MAX_PRIORITY_FEE_PER_GAS = 1_000_000
DEFAULT_PAYMASTER_VERIFICATION_GAS_LIMIT = 300_000
DEFAULT_PAYMASTER_POST_OP_GAS_LIMIT = 100


@dataclass
class UserOperation:
    """
    ERC-4337 UserOperation payload (verbose form).

    Values should be supplied in raw units (wei / gas units) and are encoded
    as hex for RPC calls. ``nonce`` left as ``None`` is fetched from the
    EntryPoint when the operation is filled.
    """
    sender: str
    nonce: Optional[int] = None
    call_data: bytes = b""
    call_gas_limit: Optional[int] = None
    verification_gas_limit: Optional[int] = None
    pre_verification_gas: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    signature: bytes = b""
    paymaster: Optional[str] = None
    paymaster_data: bytes = b""
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    factory: Optional[str] = None
    factory_data: bytes = b""
    init_code: bytes = b""
    salt: int = 0

    def to_rpc_dict(self) -> Dict[str, str]:
        """Bundler request body. Unset and empty fields are omitted."""
        body: Dict[str, str] = {}
        if not is_zero_address(self.sender):
            body["sender"] = self.sender
        if self.nonce is not None:
            body["nonce"] = to_hex_quantity(self.nonce)
        if self.call_data:
            body["callData"] = to_hex_bytes(self.call_data)
        if self.call_gas_limit is not None:
            body["callGasLimit"] = to_hex_quantity(self.call_gas_limit)
        if self.verification_gas_limit is not None:
            body["verificationGasLimit"] = to_hex_quantity(self.verification_gas_limit)
        if self.pre_verification_gas is not None:
            body["preVerificationGas"] = to_hex_quantity(self.pre_verification_gas)
        if self.max_fee_per_gas is not None:
            body["maxFeePerGas"] = to_hex_quantity(self.max_fee_per_gas)
        if self.max_priority_fee_per_gas is not None:
            body["maxPriorityFeePerGas"] = to_hex_quantity(self.max_priority_fee_per_gas)
        if self.signature:
            body["signature"] = to_hex_bytes(self.signature)
        if not is_zero_address(self.paymaster):
            body["paymaster"] = self.paymaster
        if self.paymaster_data:
            body["paymasterData"] = to_hex_bytes(self.paymaster_data)
        if self.paymaster_verification_gas_limit is not None:
            body["paymasterVerificationGasLimit"] = to_hex_quantity(self.paymaster_verification_gas_limit)
        if self.paymaster_post_op_gas_limit is not None:
            body["paymasterPostOpGasLimit"] = to_hex_quantity(self.paymaster_post_op_gas_limit)
        if not is_zero_address(self.factory):
            body["factory"] = self.factory
        if self.factory_data:
            body["factoryData"] = to_hex_bytes(self.factory_data)
        return body


def new_user_op_with_default(sender: str, call_data: bytes, salt: int = 0) -> UserOperation:
    """UserOperation pre-populated with the default gas and fee values."""
    return UserOperation(
        sender=sender,
        call_data=call_data,
        call_gas_limit=DEFAULT_CALL_GAS_LIMIT,
        verification_gas_limit=DEFAULT_VERIFICATION_GAS_LIMIT,
        pre_verification_gas=DEFAULT_PRE_VERIFICATION_GAS,
        max_fee_per_gas=DEFAULT_MAX_FEE_PER_GAS,
        max_priority_fee_per_gas=DEFAULT_MAX_PRIORITY_FEE_PER_GAS,
        paymaster_verification_gas_limit=DEFAULT_PAYMASTER_VERIFICATION_GAS_LIMIT,
        paymaster_post_op_gas_limit=DEFAULT_PAYMASTER_POST_OP_GAS_LIMIT,
        salt=salt,
    )


@dataclass(frozen=True)
class PackedUserOperation:
    """On-chain form consumed by EntryPoint v0.7 ``handleOps``."""
    sender: str
    nonce: int
    init_code: bytes
    call_data: bytes
    account_gas_limits: bytes
    pre_verification_gas: int
    gas_fees: bytes
    paymaster_and_data: bytes
    signature: bytes

    def as_tuple(self) -> tuple:
        return (
            self.sender,
            self.nonce,
            self.init_code,
            self.call_data,
            self.account_gas_limits,
            self.pre_verification_gas,
            self.gas_fees,
            self.paymaster_and_data,
            self.signature,
        )


def _parse_hex(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return hex_to_int(value)


@dataclass
class UserOpGasEstimate:
    pre_verification_gas: Optional[int] = None
    verification_gas_limit: Optional[int] = None
    call_gas_limit: Optional[int] = None
    verification_gas: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOpGasEstimate":
        return cls(
            pre_verification_gas=_parse_hex(data.get("preVerificationGas")),
            verification_gas_limit=_parse_hex(data.get("verificationGasLimit")),
            call_gas_limit=_parse_hex(data.get("callGasLimit")),
            verification_gas=_parse_hex(data.get("verificationGas")),
            max_fee_per_gas=_parse_hex(data.get("maxFeePerGas")),
            max_priority_fee_per_gas=_parse_hex(data.get("maxPriorityFeePerGas")),
            paymaster_verification_gas_limit=_parse_hex(data.get("paymasterVerificationGasLimit")),
            paymaster_post_op_gas_limit=_parse_hex(data.get("paymasterPostOpGasLimit")),
        )

    def apply_to(self, user_op: UserOperation) -> UserOperation:
        """Copy the estimated limits onto ``user_op``; missing values are left untouched."""
        if self.call_gas_limit is not None:
            user_op.call_gas_limit = self.call_gas_limit
        if self.verification_gas_limit is not None:
            user_op.verification_gas_limit = self.verification_gas_limit
        if self.pre_verification_gas is not None:
            user_op.pre_verification_gas = self.pre_verification_gas
        if self.paymaster_verification_gas_limit is not None:
            user_op.paymaster_verification_gas_limit = self.paymaster_verification_gas_limit
        if self.paymaster_post_op_gas_limit is not None:
            user_op.paymaster_post_op_gas_limit = self.paymaster_post_op_gas_limit
        return user_op


@dataclass
class UserOpReceipt:
    user_op_hash: str
    success: bool
    sender: Optional[str] = None
    paymaster: Optional[str] = None
    nonce: Optional[int] = None
    actual_gas_cost: Optional[int] = None
    actual_gas_used: Optional[int] = None
    transaction_hash: Optional[str] = None
    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)
    return_data: bytes = b""
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any], user_op_hash: Optional[str] = None) -> "UserOpReceipt":
        receipt = data.get("receipt") or {}
        return_data = data.get("returnData")
        return cls(
            user_op_hash=data.get("userOpHash") or user_op_hash or "",
            success=bool(data.get("success")),
            sender=data.get("sender"),
            paymaster=data.get("paymaster"),
            nonce=_parse_hex(data.get("nonce")),
            actual_gas_cost=_parse_hex(data.get("actualGasCost")),
            actual_gas_used=_parse_hex(data.get("actualGasUsed")),
            transaction_hash=receipt.get("transactionHash"),
            block_hash=receipt.get("blockHash"),
            block_number=_parse_hex(receipt.get("blockNumber")),
            gas_used=_parse_hex(receipt.get("gasUsed")),
            logs=list(data.get("logs") or []),
            return_data=hex_to_bytes(return_data) if return_data else b"",
            raw=data,
        )
