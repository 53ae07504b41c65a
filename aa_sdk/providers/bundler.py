"""
ERC-4337 Bundler Provider.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .base import Provider
from .jsonrpc import JsonRpcClient
from ..config import settings
from ..core.errors import AASdkError, ReceiptNotFoundError
from ..core.execution.abi import to_hex_bytes
from ..core.execution.userop import UserOperation, UserOpGasEstimate, UserOpReceipt


logger = logging.getLogger(__name__)

DEFAULT_WAIT_TIMEOUT_S = 30.0


class BundlerError(AASdkError):
    """Bundler returned a response of the wrong shape."""
    pass


@dataclass
class BundlerConfig:
    rpc_url: str
    entry_point: str
    wait_receipt_interval_s: float = 1.0
    wait_timeout_s: float = DEFAULT_WAIT_TIMEOUT_S
    timeout_s: float = 20

    @classmethod
    def from_settings(cls) -> "BundlerConfig":
        return cls(
            rpc_url=settings.bundler_url,
            entry_point=settings.entrypoint_address,
            wait_receipt_interval_s=settings.wait_receipt_interval_seconds,
            wait_timeout_s=settings.wait_receipt_timeout_seconds,
            timeout_s=settings.request_timeout_seconds,
        )


def _hash_hex(user_op_hash: Union[str, bytes]) -> str:
    if isinstance(user_op_hash, (bytes, bytearray)):
        return to_hex_bytes(user_op_hash)
    return user_op_hash


class BundlerProvider(Provider):
    name = "bundler"

    def __init__(self, config: Optional[BundlerConfig] = None) -> None:
        self._config = config or BundlerConfig.from_settings()
        self.timeout_s = self._config.timeout_s
        self._rpc = JsonRpcClient(self._config.rpc_url, timeout_s=self.timeout_s)

    @property
    def entry_point(self) -> str:
        return self._config.entry_point

    async def ready(self) -> bool:
        return bool(self._config.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Bundler not configured"}

        try:
            result = await self._rpc.call("eth_chainId", [])
            return {"status": "healthy", "chainId": result}
        except AASdkError as exc:
            return {"status": "error", "reason": str(exc)}

    async def send_user_operation(
        self,
        user_op: UserOperation,
        entry_point: Optional[str] = None,
    ) -> str:
        result = await self._rpc.call(
            "eth_sendUserOperation",
            [user_op.to_rpc_dict(), entry_point or self.entry_point],
        )
        if not isinstance(result, str):
            raise BundlerError("Invalid bundler response for eth_sendUserOperation")
        logger.info(f"User operation submitted: {result} (sender {user_op.sender}, nonce {user_op.nonce})")
        return result

    async def estimate_user_operation_gas(
        self,
        user_op: UserOperation,
        entry_point: Optional[str] = None,
    ) -> UserOpGasEstimate:
        result = await self._rpc.call(
            "eth_estimateUserOperationGas",
            [user_op.to_rpc_dict(), entry_point or self.entry_point],
        )
        if not isinstance(result, dict):
            raise BundlerError("no gas estimates response")
        return UserOpGasEstimate.from_rpc(result)

    async def get_user_operation_receipt(self, user_op_hash: Union[str, bytes]) -> Optional[UserOpReceipt]:
        """Receipt for ``user_op_hash``, or ``None`` while it is not yet settled."""
        user_op_hash = _hash_hex(user_op_hash)
        result = await self._rpc.call("eth_getUserOperationReceipt", [user_op_hash])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise BundlerError("Invalid bundler response for eth_getUserOperationReceipt")
        return UserOpReceipt.from_rpc(result, user_op_hash=user_op_hash)

    async def supported_entry_points(self) -> List[str]:
        result = await self._rpc.call("eth_supportedEntryPoints", [])
        if result is None:
            return []
        if not isinstance(result, list):
            raise BundlerError("Invalid bundler response for eth_supportedEntryPoints")
        return [str(address) for address in result]

    async def wait_for_user_operation(
        self,
        user_op_hash: Union[str, bytes],
        *,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> UserOpReceipt:
        """
        Poll for the receipt of ``user_op_hash``.

        Raises ``ReceiptNotFoundError`` once ``timeout`` seconds pass without a
        receipt. RPC failures during polling propagate unchanged. Cancelling
        the awaiting task stops the poll loop immediately.
        """
        user_op_hash = _hash_hex(user_op_hash)
        interval = interval if interval is not None else self._config.wait_receipt_interval_s
        timeout = timeout if timeout is not None else self._config.wait_timeout_s

        async def _poll() -> UserOpReceipt:
            while True:
                await asyncio.sleep(interval)
                receipt = await self.get_user_operation_receipt(user_op_hash)
                if receipt is not None:
                    return receipt

        try:
            receipt = await asyncio.wait_for(_poll(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.warning(f"No receipt for user operation {user_op_hash} after {timeout}s")
            raise ReceiptNotFoundError(user_op_hash, timeout) from exc

        logger.info(f"User operation settled: {user_op_hash} (success={receipt.success}, tx {receipt.transaction_hash})")
        return receipt

    async def close(self) -> None:
        await self._rpc.close()
