"""
Transparent (P2PKH) address utilities.

A transparent address is the Base58Check encoding of a two-byte network
prefix followed by the 20-byte HASH160 of a compressed public key.
"""

from __future__ import annotations

import hashlib

import base58
from coincurve import PrivateKey

from mayazcash.constants import COMPRESSED_PUBKEY_LENGTH, PUBKEY_HASH_LENGTH
from mayazcash.errors import InvalidAddress

ADDRESS_PAYLOAD_LENGTH = 2 + PUBKEY_HASH_LENGTH


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def encode_address(pubkey_hash: bytes, prefix: bytes) -> str:
    if len(pubkey_hash) != PUBKEY_HASH_LENGTH:
        raise ValueError(f"Invalid pubkey hash length: {len(pubkey_hash)}")
    if len(prefix) != 2:
        raise ValueError(f"Invalid address prefix length: {len(prefix)}")
    return base58.b58encode_check(prefix + pubkey_hash).decode("ascii")


def decode_address(address: str) -> tuple[bytes, bytes]:
    """
    Decode a transparent address.

    Returns:
        (prefix, pubkey_hash)

    Raises:
        InvalidAddress: Bad Base58 characters, checksum or payload length
    """
    try:
        payload = base58.b58decode_check(address)
    except ValueError as e:
        raise InvalidAddress(address, f"Invalid Base58Check encoding ({e})") from e

    if len(payload) != ADDRESS_PAYLOAD_LENGTH:
        raise InvalidAddress(address, f"Invalid address payload length {len(payload)}")

    return payload[:2], payload[2:]


def decode_address_for_network(address: str, prefix: bytes) -> bytes:
    """Decode an address and require it to carry ``prefix``. Returns the pubkey hash."""
    addr_prefix, pubkey_hash = decode_address(address)
    if addr_prefix != prefix:
        raise InvalidAddress(
            address, f"Address prefix {addr_prefix.hex()} does not match network {prefix.hex()}"
        )
    return pubkey_hash


def is_valid_address(address: str, prefix: bytes) -> bool:
    """Check an address against a network prefix without raising."""
    try:
        decode_address_for_network(address, prefix)
    except InvalidAddress:
        return False
    return True


def pubkey_to_address(pubkey: bytes, prefix: bytes) -> str:
    """Transparent address of a compressed public key."""
    if len(pubkey) != COMPRESSED_PUBKEY_LENGTH:
        raise ValueError(
            f"PubKey must be {COMPRESSED_PUBKEY_LENGTH} bytes long: {pubkey.hex()}"
        )
    return encode_address(hash160(pubkey), prefix)


def secret_key_to_address(private_key: PrivateKey, prefix: bytes) -> str:
    return pubkey_to_address(private_key.public_key.format(compressed=True), prefix)
