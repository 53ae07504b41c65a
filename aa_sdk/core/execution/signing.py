"""
Personal-message (EIP-191 version 0x45) signing.
"""

from __future__ import annotations

from typing import Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from aa_sdk.core.errors import SigningError


MESSAGE_PREFIX = "\x19Ethereum Signed Message:\n"
RECOVERY_ID_OFFSET = 64
SIGNATURE_LENGTH = 65


def load_signer(private_key: Union[str, bytes, LocalAccount]) -> LocalAccount:
    """Build a local signer from a hex or raw private key."""
    if isinstance(private_key, LocalAccount):
        return private_key
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as exc:
        raise SigningError(f"invalid private key: {exc}") from exc


def sign_message(signer: LocalAccount, message: bytes) -> bytes:
    """
    Sign ``message`` as a personal message.

    The signed digest is ``keccak256(MESSAGE_PREFIX + str(len(message)) + message)``.
    Returns 65 bytes ``r || s || v`` with ``v`` in {27, 28}.
    """
    try:
        signed = signer.sign_message(encode_defunct(primitive=bytes(message)))
    except (ValueError, TypeError) as exc:
        raise SigningError(f"failed to sign message: {exc}") from exc

    signature = bytearray(signed.signature)
    if signature[RECOVERY_ID_OFFSET] < 27:
        signature[RECOVERY_ID_OFFSET] += 27
    return bytes(signature)


def recover_signer(message: bytes, signature: bytes) -> str:
    """Address that produced ``signature`` over the personal message ``message``."""
    try:
        return Account.recover_message(encode_defunct(primitive=bytes(message)), signature=bytes(signature))
    except (ValueError, TypeError) as exc:
        raise SigningError(f"failed to recover signer: {exc}") from exc
