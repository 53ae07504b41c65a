"""
ERC-4337 client.

Fills, signs and submits user operations, optionally sponsored by a
verifying paymaster, and settles them through a bundler or directly
through the EntryPoint.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from eth_account.signers.local import LocalAccount

from aa_sdk.cache import AddressCache, LRUCache, account_cache_key
from aa_sdk.config import Settings, settings as default_settings
from aa_sdk.core.errors import AASdkError, PaymasterError, UserOperationError, require
from aa_sdk.providers.bundler import BundlerConfig, BundlerProvider
from aa_sdk.providers.node import NodeProvider, TransactionReceipt

from .abi import address_bytes, is_zero_address, to_hex_bytes
from .hashing import hashed_user_op, pack_user_operation, sign_user_op
from .paymaster import (
    EMPTY_SIGNATURE,
    PaymasterValidity,
    encode_paymaster_data,
    get_paymaster_hash,
)
from .rotator import Rotator, RoundRobinSignerProvider
from .signing import load_signer, sign_message
from .userop import PackedUserOperation, UserOperation, UserOpGasEstimate, UserOpReceipt
from .userop_builder import (
    build_create_account_call_data,
    build_deposit_to_call_data,
    build_handle_atomic_ops_call_data,
    build_handle_ops_call_data,
)


logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    node_url: str
    bundler_url: str
    entry_point: str
    account_factory: str
    wait_receipt_interval: float = 1.0
    wait_receipt_timeout: float = 30.0
    request_timeout: float = 20.0
    # Verifying paymaster; sponsorship is skipped when unset
    paymaster_address: Optional[str] = None
    verifying_signers: List[LocalAccount] = field(default_factory=list)
    # Only needed for direct EntryPoint submission
    executor_signer: Optional[LocalAccount] = None
    paymaster_validity: PaymasterValidity = field(default_factory=PaymasterValidity)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ClientConfig":
        settings = settings or default_settings
        return cls(
            node_url=settings.node_url,
            bundler_url=settings.bundler_url,
            entry_point=settings.entrypoint_address,
            account_factory=settings.account_factory_address,
            wait_receipt_interval=settings.wait_receipt_interval_seconds,
            wait_receipt_timeout=settings.wait_receipt_timeout_seconds,
            request_timeout=settings.request_timeout_seconds,
            paymaster_address=settings.paymaster,
            verifying_signers=[load_signer(key) for key in settings.verifying_keys],
            executor_signer=load_signer(settings.executor_key) if settings.executor_key else None,
            paymaster_validity=PaymasterValidity(
                valid_until=settings.paymaster_valid_until,
                valid_after=settings.paymaster_valid_after,
            ),
        )


class AAClient:
    """
    Account abstraction client.

    One instance may be shared by concurrent callers; the only mutable shared
    state is the verifying-signer rotator, the request counters of the
    providers and the address cache, all of which are thread-safe.
    """

    def __init__(
        self,
        config: ClientConfig,
        cache: Optional[AddressCache] = None,
        *,
        node: Optional[NodeProvider] = None,
        bundler: Optional[BundlerProvider] = None,
        verifying_signers: Optional[Rotator[LocalAccount]] = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.node = node or NodeProvider(config.node_url, timeout_s=config.request_timeout)
        self.bundler = bundler or BundlerProvider(
            BundlerConfig(
                rpc_url=config.bundler_url,
                entry_point=config.entry_point,
                wait_receipt_interval_s=config.wait_receipt_interval,
                wait_timeout_s=config.wait_receipt_timeout,
                timeout_s=config.request_timeout,
            )
        )
        self.verifying_signers: Rotator[LocalAccount] = (
            verifying_signers
            if verifying_signers is not None
            else RoundRobinSignerProvider(config.verifying_signers)
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, cache: Optional[AddressCache] = None) -> "AAClient":
        settings = settings or default_settings
        if cache is None:
            cache = LRUCache(settings.address_cache_size)
        return cls(ClientConfig.from_settings(settings), cache)

    @property
    def entry_point(self) -> str:
        return self.config.entry_point

    async def chain_id(self) -> int:
        return await self.node.chain_id()

    async def get_account(self, owner: str, salt: int = 0) -> str:
        """Counterfactual smart account address for ``owner`` and ``salt``."""
        if self.cache is None:
            return await self.node.get_account_address(self.config.account_factory, owner, salt)

        key = account_cache_key(owner, salt)
        address, found = self.cache.get(key)
        if found:
            return address

        address = await self.node.get_account_address(self.config.account_factory, owner, salt)
        self.cache.set(key, address)
        return address

    async def get_account_balance(self, account: str) -> int:
        return await self.node.get_balance(account)

    async def fill_and_sign(
        self,
        user_op: UserOperation,
        signer: LocalAccount,
    ) -> Tuple[UserOperation, bytes]:
        """
        Complete ``user_op`` and sign it with ``signer``.

        Fetches the nonce when unset, attaches factory data for undeployed
        accounts, adds the verifying paymaster sponsorship when configured,
        then signs the user operation hash. Returns the operation and its
        hash. On failure ``user_op`` may be partially updated.
        """
        if is_zero_address(user_op.sender):
            raise UserOperationError("sender address is empty")

        with _step("getting chain id"):
            chain_id = await self.chain_id()

        if user_op.nonce is None:
            with _step("getting nonce"):
                user_op.nonce = await self.node.get_nonce(self.entry_point, user_op.sender, user_op.salt)

        with _step("checking if account is deployed"):
            deployed = await self.node.is_deployed(user_op.sender)
        if not deployed:
            with _step("getting account init code"):
                factory_data = build_create_account_call_data(signer.address, user_op.salt)
                init_code = address_bytes(self.config.account_factory) + factory_data
            user_op.factory = self.config.account_factory
            user_op.factory_data = factory_data
            user_op.init_code = init_code
        else:
            user_op.factory = None
            user_op.factory_data = b""
            user_op.init_code = b""

        if self.config.paymaster_address:
            self._sponsor(user_op, chain_id)

        with _step("packing user operation"):
            packed = pack_user_operation(user_op)
        with _step("signing user operation"):
            signature, user_op_hash = sign_user_op(packed, self.entry_point, chain_id, signer)
        user_op.signature = signature
        return user_op, user_op_hash

    def _sponsor(self, user_op: UserOperation, chain_id: int) -> None:
        validity = self.config.paymaster_validity
        verifying_signer = self.verifying_signers.next()
        if verifying_signer is None:
            raise PaymasterError("no paymaster verifying signer configured")

        user_op.paymaster = self.config.paymaster_address
        with _step("encoding paymaster data"):
            user_op.paymaster_data = encode_paymaster_data(
                validity.valid_until, validity.valid_after, EMPTY_SIGNATURE
            )
        with _step("packing user operation"):
            draft = replace(pack_user_operation(user_op), signature=b"")

        with _step("getting paymaster hash"):
            paymaster_hash = get_paymaster_hash(draft, chain_id, validity.valid_until, validity.valid_after)
        with _step("signing paymaster data"):
            paymaster_signature = sign_message(verifying_signer, paymaster_hash)
        with _step("encoding paymaster data"):
            user_op.paymaster_data = encode_paymaster_data(
                validity.valid_until, validity.valid_after, paymaster_signature
            )
        logger.debug(f"Paymaster sponsorship signed by {verifying_signer.address} for {user_op.sender}")

    async def sign_user_op(self, packed: PackedUserOperation, signer: LocalAccount) -> Tuple[bytes, bytes]:
        """Return ``(signature, user_op_hash)`` for an already packed operation."""
        return sign_user_op(packed, self.entry_point, await self.chain_id(), signer)

    async def get_user_op_hash(self, user_op: UserOperation, signer: LocalAccount) -> bytes:
        _, user_op_hash = await self.fill_and_sign(user_op, signer)
        return user_op_hash

    async def send_user_op(self, user_op: UserOperation, signer: LocalAccount) -> str:
        """Fill, sign and submit ``user_op``. Returns the hash reported by the bundler."""
        signed, user_op_hash = await self.fill_and_sign(user_op, signer)
        logger.debug(f"Submitting user operation {to_hex_bytes(user_op_hash)}")
        return await self.bundler.send_user_operation(signed, self.entry_point)

    async def estimate_user_op_gas(self, user_op: UserOperation) -> UserOpGasEstimate:
        return await self.bundler.estimate_user_operation_gas(user_op, self.entry_point)

    async def get_user_op_receipt(self, user_op_hash: Union[str, bytes]) -> Optional[UserOpReceipt]:
        return await self.bundler.get_user_operation_receipt(user_op_hash)

    async def supported_entry_points(self) -> List[str]:
        return await self.bundler.supported_entry_points()

    async def wait_for_user_operation(
        self,
        user_op_hash: Union[str, bytes],
        *,
        timeout: Optional[float] = None,
    ) -> UserOpReceipt:
        return await self.bundler.wait_for_user_operation(user_op_hash, timeout=timeout)

    async def handle_ops(self, ops: Sequence[PackedUserOperation]) -> Tuple[List[bytes], str]:
        """Submit ``ops`` straight to EntryPoint.handleOps with the executor key."""
        return await self._submit_ops(ops, atomic=False)

    async def handle_atomic_ops(self, ops: Sequence[PackedUserOperation]) -> Tuple[List[bytes], str]:
        """Like ``handle_ops`` but through EntryPoint.handleAtomicOps."""
        return await self._submit_ops(ops, atomic=True)

    async def _submit_ops(self, ops: Sequence[PackedUserOperation], atomic: bool) -> Tuple[List[bytes], str]:
        executor = self.config.executor_signer
        require(executor is not None, "executor signer is nil")

        build = build_handle_atomic_ops_call_data if atomic else build_handle_ops_call_data
        op_hashes = [hashed_user_op(op) for op in ops]
        tx_hash = await self.node.send_transaction(
            executor,
            self.entry_point,
            build(ops, executor.address),
        )
        return op_hashes, tx_hash

    async def prefund(self, to: str, amount: int) -> TransactionReceipt:
        """Deposit ``amount`` wei to the EntryPoint on behalf of ``to`` and wait for mining."""
        funder = self.verifying_signers.next()
        if funder is None:
            raise PaymasterError("no paymaster verifying signer configured")

        tx_hash = await self.node.send_transaction(
            funder,
            self.entry_point,
            build_deposit_to_call_data(to),
            value=amount,
        )
        return await self.node.wait_mined(tx_hash, interval=self.config.wait_receipt_interval)

    async def deploy_account(self, signer: LocalAccount, owner: str, salt: int = 0) -> TransactionReceipt:
        """Deploy the smart account of ``owner`` through the factory and wait for mining."""
        tx_hash = await self.node.send_transaction(
            signer,
            self.config.account_factory,
            build_create_account_call_data(owner, salt),
        )
        return await self.node.wait_mined(tx_hash, interval=self.config.wait_receipt_interval)

    async def close(self) -> None:
        await self.bundler.close()
        await self.node.close()


@contextmanager
def _step(description: str) -> Iterator[None]:
    try:
        yield
    except AASdkError as exc:
        raise UserOperationError(f"error {description}: {exc}") from exc
