"""Client SDK for ERC-4337 (EntryPoint v0.7) account abstraction."""

from .cache import LRUCache
from .core.errors import (
    AASdkError,
    EncodingError,
    JsonRpcError,
    PaymasterDataError,
    PaymasterError,
    PreconditionViolation,
    ReceiptNotFoundError,
    SigningError,
    TransactionError,
    TransportError,
    UserOperationError,
)
from .core.execution import (
    AAClient,
    ClientConfig,
    PackedUserOperation,
    RoundRobinSignerProvider,
    UserOperation,
    UserOpReceipt,
    get_user_op_hash,
    new_user_op_with_default,
    pack_user_operation,
)

__version__ = "0.1.0"

__all__ = [
    "LRUCache",
    "AASdkError",
    "EncodingError",
    "JsonRpcError",
    "PaymasterDataError",
    "PaymasterError",
    "PreconditionViolation",
    "ReceiptNotFoundError",
    "SigningError",
    "TransactionError",
    "TransportError",
    "UserOperationError",
    "AAClient",
    "ClientConfig",
    "PackedUserOperation",
    "RoundRobinSignerProvider",
    "UserOperation",
    "UserOpReceipt",
    "get_user_op_hash",
    "new_user_op_with_default",
    "pack_user_operation",
]
