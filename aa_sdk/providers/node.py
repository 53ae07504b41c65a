"""
Ethereum node provider.

Covers the contract reads the SDK depends on (EntryPoint nonce, factory
counterfactual address, bytecode presence, balances) and direct transaction
submission signed with a local key.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from eth_account.signers.local import LocalAccount

from .base import Provider
from .jsonrpc import JsonRpcClient
from ..core.errors import AASdkError, TransactionError
from ..core.execution.abi import (
    abi_decode,
    checksum,
    hex_to_bytes,
    hex_to_int,
    to_hex_bytes,
    to_hex_quantity,
)
from ..core.execution.userop_builder import build_entrypoint_get_nonce_call, build_factory_get_address_call


logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_FEE_WEI = 1_000_000_000


@dataclass
class TransactionReceipt:
    transaction_hash: str
    status: bool
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None
    contract_address: Optional[str] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        def parse(key: str) -> Optional[int]:
            value = data.get(key)
            return hex_to_int(value) if value is not None else None

        return cls(
            transaction_hash=data.get("transactionHash", ""),
            status=parse("status") != 0,
            block_number=parse("blockNumber"),
            block_hash=data.get("blockHash"),
            gas_used=parse("gasUsed"),
            effective_gas_price=parse("effectiveGasPrice"),
            contract_address=data.get("contractAddress"),
            logs=list(data.get("logs") or []),
            raw=data,
        )


class NodeProvider(Provider):
    name = "node"

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: float = 20,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s
        self._rpc = JsonRpcClient(rpc_url, timeout_s=timeout_s)
        self._chain_id: Optional[int] = None

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Node not configured"}

        try:
            chain_id = await self.chain_id()
            return {"status": "healthy", "chainId": chain_id}
        except AASdkError as exc:
            return {"status": "error", "reason": str(exc)}

    async def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = hex_to_int(await self._rpc.call("eth_chainId", []))
        return self._chain_id

    async def get_code(self, address: str, block: str = "latest") -> bytes:
        return hex_to_bytes(await self._rpc.call("eth_getCode", [checksum(address), block]) or "0x")

    async def is_deployed(self, address: str) -> bool:
        """An account counts as deployed once it has bytecode."""
        return len(await self.get_code(address)) > 0

    async def get_balance(self, address: str, block: str = "latest") -> int:
        return hex_to_int(await self._rpc.call("eth_getBalance", [checksum(address), block]))

    async def call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        result = await self._rpc.call(
            "eth_call",
            [{"to": checksum(to), "data": to_hex_bytes(data)}, block],
        )
        return hex_to_bytes(result or "0x")

    async def get_nonce(self, entry_point: str, sender: str, key: int = 0) -> int:
        """EntryPoint.getNonce(sender, key)."""
        (nonce,) = abi_decode(["uint256"], await self.call(entry_point, build_entrypoint_get_nonce_call(sender, key)))
        return nonce

    async def get_account_address(self, factory: str, owner: str, salt: int) -> str:
        """SimpleAccountFactory.getAddress(owner, salt)."""
        (address,) = abi_decode(["address"], await self.call(factory, build_factory_get_address_call(owner, salt)))
        return checksum(address)

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return hex_to_int(await self._rpc.call("eth_getTransactionCount", [checksum(address), block]))

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return hex_to_int(await self._rpc.call("eth_estimateGas", [tx]))

    async def suggest_fees(self) -> Tuple[int, int]:
        """Return ``(max_fee_per_gas, max_priority_fee_per_gas)``."""
        fee_history = await self._rpc.call("eth_feeHistory", [1, "latest", [50]])
        base_fee = hex_to_int(fee_history["baseFeePerGas"][-1])
        rewards = fee_history.get("reward") or []
        priority_fee = hex_to_int(rewards[0][0]) if rewards and rewards[0] else DEFAULT_PRIORITY_FEE_WEI
        return base_fee * 2 + priority_fee, priority_fee

    async def send_transaction(
        self,
        signer: LocalAccount,
        to: str,
        data: bytes = b"",
        value: int = 0,
        gas: Optional[int] = None,
    ) -> str:
        """Sign an EIP-1559 transaction locally and broadcast it."""
        call_obj = {
            "from": signer.address,
            "to": checksum(to),
            "data": to_hex_bytes(data),
            "value": to_hex_quantity(value),
        }
        nonce = await self.get_transaction_count(signer.address)
        gas_limit = gas if gas is not None else await self.estimate_gas(call_obj)
        max_fee, priority_fee = await self.suggest_fees()

        tx = {
            "type": 2,
            "chainId": await self.chain_id(),
            "nonce": nonce,
            "to": call_obj["to"],
            "value": value,
            "data": to_hex_bytes(data),
            "gas": gas_limit,
            "maxFeePerGas": max_fee,
            "maxPriorityFeePerGas": priority_fee,
        }
        try:
            signed = signer.sign_transaction(tx)
        except (ValueError, TypeError) as exc:
            raise TransactionError(f"error signing transaction to {to}: {exc}") from exc

        tx_hash = await self._rpc.call("eth_sendRawTransaction", [to_hex_bytes(signed.raw_transaction)])
        logger.info(f"Transaction submitted: {tx_hash} (to {to}, nonce {nonce})")
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        result = await self._rpc.call("eth_getTransactionReceipt", [tx_hash])
        if not result:
            return None
        return TransactionReceipt.from_rpc(result)

    async def wait_mined(
        self,
        tx_hash: str,
        *,
        interval: float = 1.0,
        timeout: float = 120.0,
    ) -> TransactionReceipt:
        """Poll until ``tx_hash`` is mined. Reverted transactions are returned, not raised."""

        async def _poll() -> TransactionReceipt:
            while True:
                receipt = await self.get_transaction_receipt(tx_hash)
                if receipt is not None:
                    return receipt
                await asyncio.sleep(interval)

        try:
            receipt = await asyncio.wait_for(_poll(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TransactionError(f"transaction {tx_hash} not mined after {timeout}s", tx_hash=tx_hash) from exc

        if not receipt.status:
            logger.warning(f"Transaction reverted: {tx_hash} (block {receipt.block_number})")
        else:
            logger.info(f"Transaction mined: {tx_hash} (block {receipt.block_number})")
        return receipt

    async def close(self) -> None:
        await self._rpc.close()
