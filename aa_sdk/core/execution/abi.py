"""
ABI packing helpers.

Canonical big-endian, width-padded encodings shared by the user operation
hash, the paymaster codec and the calldata builders.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Sequence

from eth_abi import decode as _abi_decode
from eth_abi import encode as _abi_encode
from eth_abi.exceptions import ABITypeError, DecodingError, ParseError
from eth_abi.exceptions import EncodingError as _AbiEncodingError
from eth_utils import decode_hex, is_address, keccak, to_canonical_address, to_checksum_address

from aa_sdk.core.errors import EncodingError, require


ZERO_ADDRESS = "0x" + "00" * 20
WORD_SIZE = 32
HALF_WORD_SIZE = 16

_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]*")


def keccak256(data: bytes) -> bytes:
    return keccak(data)


def left_pad(data: bytes, size: int) -> bytes:
    """Left-pad ``data`` with zeros to ``size`` bytes; longer input is returned as is."""
    if len(data) >= size:
        return data
    return b"\x00" * (size - len(data)) + data


def int_to_bytes(value: Optional[int], size: int) -> bytes:
    require(value is not None, "nil data")
    require(value >= 0, f"negative value: {value}")
    require(value < 1 << (size * 8), f"value does not fit in {size} bytes: {value}")
    return value.to_bytes(size, "big")


def bytes_to_int(data: bytes) -> int:
    return int.from_bytes(data, "big")


def pack_int(a: Optional[int], b: Optional[int]) -> bytes:
    """
    Pack two integers into one 32-byte word.

    The first 16 bytes hold ``a`` and the last 16 bytes hold ``b``, each
    left-padded. Raises ``PreconditionViolation`` if either value is missing.
    """
    require(a is not None and b is not None, "nil data")
    return int_to_bytes(a, HALF_WORD_SIZE) + int_to_bytes(b, HALF_WORD_SIZE)


def unpack_int(word: bytes) -> tuple[int, int]:
    """Inverse of ``pack_int``."""
    require(len(word) == WORD_SIZE, f"expected {WORD_SIZE} bytes, got {len(word)}")
    return bytes_to_int(word[:HALF_WORD_SIZE]), bytes_to_int(word[HALF_WORD_SIZE:])


def abi_encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """ABI-encode ``values`` as a tuple of ``types``."""
    try:
        return _abi_encode(list(types), list(values))
    except (_AbiEncodingError, ABITypeError, ParseError) as exc:
        raise EncodingError(f"abi encode {list(types)} failed: {exc}") from exc


def abi_decode(types: Sequence[str], data: bytes) -> tuple:
    try:
        return _abi_decode(list(types), data)
    except (DecodingError, ABITypeError, ParseError) as exc:
        raise EncodingError(f"abi decode {list(types)} failed: {exc}") from exc


def strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def to_hex_bytes(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def to_hex_quantity(value: int) -> str:
    require(value is not None and value >= 0, f"invalid quantity: {value}")
    return hex(value)


def hex_to_bytes(value: str) -> bytes:
    try:
        return decode_hex(value)
    except (ValueError, TypeError) as exc:
        raise EncodingError(f"malformed hex bytes: {value!r}") from exc


def hex_to_int(value: str) -> int:
    """Parse a hex quantity; ``0x`` and the empty string parse as zero."""
    digits = strip_0x(value) if isinstance(value, str) else None
    if digits is None:
        raise EncodingError(f"malformed hex quantity: {value!r}")
    if not _HEX_DIGITS_RE.fullmatch(digits):
        raise EncodingError(f"malformed hex quantity: {value!r}")
    if not digits:
        return 0
    return int(digits, 16)


def address_bytes(address: Optional[str]) -> bytes:
    """Canonical 20-byte form; ``None`` maps to the zero address."""
    if address is None:
        return b"\x00" * 20
    if not is_address(address):
        raise EncodingError(f"invalid address: {address!r}")
    return to_canonical_address(address)


def checksum(address: str) -> str:
    if not is_address(address):
        raise EncodingError(f"invalid address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address: Optional[str]) -> bool:
    if not address:
        return True
    return address_bytes(address) == b"\x00" * 20
