"""
Error Classification

Defines the error types raised by the SDK.

Precondition violations (nil required inputs, mismatched parallel arrays,
missing executor key) are programmer errors and are raised as
``PreconditionViolation``, which deliberately sits outside the
``AASdkError`` hierarchy so that ``except AASdkError`` never masks them.
Everything else is a typed ``AASdkError`` carrying enough context to tell
which operation, method or hash failed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of SDK errors."""

    ENCODING = "encoding"         # ABI packing, malformed hex
    SIGNING = "signing"           # Key loading / signature failures
    TRANSPORT = "transport"       # Network failures, malformed JSON
    REMOTE = "remote"             # JSON-RPC error member from bundler/node
    TIMEOUT = "timeout"           # Polling deadline exceeded
    USER_OPERATION = "user_operation"
    PAYMASTER = "paymaster"
    TRANSACTION = "transaction"   # Direct EntryPoint / factory transactions
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    method: Optional[str] = None
    user_op_hash: Optional[str] = None
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class PreconditionViolation(AssertionError):
    """A caller broke a construction-time invariant. Not recoverable."""


class AASdkError(Exception):
    """Base class for recoverable SDK errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(category=self.category)


class EncodingError(AASdkError):
    """ABI packing failed or a hex value was malformed."""

    category = ErrorCategory.ENCODING


class PaymasterDataError(EncodingError):
    """paymasterAndData does not have the expected layout."""

    def __init__(self, message: str = "PaymasterAndData too short", length: Optional[int] = None):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.ENCODING,
                details={"length": length} if length is not None else {},
            ),
        )
        self.length = length


class SigningError(AASdkError):
    """The signing primitive rejected the key or the message."""

    category = ErrorCategory.SIGNING


class TransportError(AASdkError):
    """The request never produced a decodable JSON-RPC response."""

    category = ErrorCategory.TRANSPORT

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(category=ErrorCategory.TRANSPORT, method=method),
        )
        self.method = method


class JsonRpcError(AASdkError):
    """The remote side answered with a JSON-RPC ``error`` member."""

    category = ErrorCategory.REMOTE

    def __init__(
        self,
        message: Optional[str],
        code: Optional[int] = None,
        method: Optional[str] = None,
        data: Any = None,
    ):
        self.code = code
        self.rpc_message = message
        self.method = method
        self.data = data
        super().__init__(
            self._describe(),
            context=ErrorContext(
                category=ErrorCategory.REMOTE,
                method=method,
                details={"code": code, "data": data} if data is not None else {"code": code},
            ),
        )

    def _describe(self) -> str:
        parts = []
        if self.code is not None:
            parts.append(f"code: {self.code}")
        if self.rpc_message is not None:
            parts.append(f"message: {self.rpc_message}")
        text = ", ".join(parts) or "unknown error"
        if self.method:
            return f"error from {self.method}: {text}"
        return text


class ReceiptNotFoundError(AASdkError):
    """No receipt showed up before the polling deadline."""

    category = ErrorCategory.TIMEOUT

    def __init__(self, user_op_hash: str, timeout: Optional[float] = None):
        message = f"no receipt found for user operation {user_op_hash}"
        if timeout is not None:
            message += f" after {timeout}s"
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                user_op_hash=user_op_hash,
                details={"timeout": timeout},
            ),
        )
        self.user_op_hash = user_op_hash
        self.timeout = timeout


class UserOperationError(AASdkError):
    """Filling, signing or submitting a user operation failed."""

    category = ErrorCategory.USER_OPERATION


class PaymasterError(AASdkError):
    """Paymaster sponsorship could not be produced."""

    category = ErrorCategory.PAYMASTER


class TransactionError(AASdkError):
    """A direct on-chain transaction failed, reverted or timed out."""

    category = ErrorCategory.TRANSACTION

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(category=ErrorCategory.TRANSACTION, tx_hash=tx_hash),
        )
        self.tx_hash = tx_hash


def require(condition: bool, message: str) -> None:
    """Raise ``PreconditionViolation`` when ``condition`` is false."""
    if not condition:
        raise PreconditionViolation(message)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PreconditionViolation",
    "AASdkError",
    "EncodingError",
    "PaymasterDataError",
    "SigningError",
    "TransportError",
    "JsonRpcError",
    "ReceiptNotFoundError",
    "UserOperationError",
    "PaymasterError",
    "TransactionError",
    "require",
]
