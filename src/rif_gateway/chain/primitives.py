"""Address, hashing and interface-id helpers shared by every contract.

All addresses handled by the gateway are EIP-55 checksummed strings.
Deterministic deployment follows the two EVM formulas:

- CREATE:  keccak256(rlp([deployer, nonce]))[12:]
- CREATE2: keccak256(0xff ++ deployer ++ salt ++ keccak256(init_code))[12:]
"""
from __future__ import annotations

from functools import reduce
from typing import Any

import rlp
from eth_abi import encode
from eth_abi.packed import encode_packed
from eth_utils import is_address, keccak, to_bytes, to_checksum_address

from ..exceptions import InvalidAddress, InvalidInterfaceId

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ERC-165 id of supportsInterface(bytes4)
IERC165_INTERFACE_ID = "0x01ffc9a7"


def normalize_address(value: Any) -> str:
    """Return the checksummed form of value or raise InvalidAddress."""
    if isinstance(value, bytes) and len(value) == 20:
        return to_checksum_address(value)
    if not isinstance(value, str) or not is_address(value):
        raise InvalidAddress(value)
    return to_checksum_address(value)


def is_zero_address(value: str) -> bool:
    return int(value, 16) == 0


def keccak_text(text: str) -> str:
    """keccak256 of a UTF-8 string as 0x-prefixed hex."""
    return "0x" + keccak(text=text).hex()


def compute_create_address(deployer: str, nonce: int) -> str:
    encoded = rlp.encode([to_bytes(hexstr=deployer), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def compute_create2_address(deployer: str, salt: bytes, init_code_hash: bytes) -> str:
    if len(salt) != 32 or len(init_code_hash) != 32:
        raise ValueError("salt and init code hash must be 32 bytes")
    digest = keccak(b"\xff" + to_bytes(hexstr=deployer) + salt + init_code_hash)
    return to_checksum_address(digest[12:])


def abi_encode_address(address: str) -> bytes:
    return encode(["address"], [normalize_address(address)])


def packed_salt(*parts: tuple[str, Any]) -> bytes:
    """keccak256(abi.encodePacked(...)) over (type, value) pairs."""
    types = [t for t, _ in parts]
    values = [v for _, v in parts]
    return keccak(encode_packed(types, values))


def function_selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def interface_id(*signatures: str) -> str:
    """ERC-165 interface id: XOR of the selectors of every function."""
    if not signatures:
        raise ValueError("an interface needs at least one function")
    value = reduce(
        lambda acc, sig: acc ^ int.from_bytes(function_selector(sig), "big"),
        signatures,
        0,
    )
    return format_interface_id(value)


def format_interface_id(value: Any) -> str:
    """Normalize an int, bytes or hex string to a 0x-prefixed 4-byte id."""
    original = value
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 4:
            raise InvalidInterfaceId(original, f"must be 4 bytes, got {len(value)}")
        value = int.from_bytes(value, "big")
    elif isinstance(value, str):
        try:
            value = int(value, 16)
        except ValueError:
            raise InvalidInterfaceId(original, "not a hex string") from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInterfaceId(original, "unsupported type")
    if not 0 <= value <= 0xFFFFFFFF:
        raise InvalidInterfaceId(original, "out of range")
    return f"0x{value:08x}"
