"""
ECDSA signing of precomputed signature digests.
"""

from __future__ import annotations

import base58
from coincurve import PrivateKey, PublicKey

from mayazcash.errors import InvalidSecretKey

# secp256k1 group order
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def load_private_key(secret: str | bytes, wif_version: int | None = None) -> PrivateKey:
    """
    Load a secret key given as raw bytes, 64 hex characters or WIF.

    The WIF compressed-pubkey marker, if present, is stripped. When
    ``wif_version`` is given, a WIF key must carry that version byte.
    """
    try:
        if isinstance(secret, bytes):
            return PrivateKey(secret)

        secret = secret.strip()
        if len(secret) == 64:
            return PrivateKey(bytes.fromhex(secret))

        payload = base58.b58decode_check(secret)
        if wif_version is not None and payload[:1] != bytes([wif_version]):
            raise ValueError(
                f"WIF version {payload[:1].hex() or 'none'} does not match network "
                f"version {wif_version:02x}"
            )
        key = payload[1:]
        if len(key) == 33 and key[-1] == 0x01:
            key = key[:-1]
        if len(key) != 32:
            raise ValueError(f"WIF payload has {len(key)} key bytes, expected 32")
        return PrivateKey(key)
    except ValueError as e:
        raise InvalidSecretKey(f"Invalid secret key: {e}") from e


def decode_der_signature(signature: bytes) -> tuple[int, int]:
    """Return (r, s) from a strict DER ECDSA signature."""
    if len(signature) < 8 or signature[0] != 0x30 or signature[1] != len(signature) - 2:
        raise ValueError("Invalid DER signature header")

    offset = 2
    values = []
    for _ in range(2):
        if signature[offset] != 0x02:
            raise ValueError("Invalid DER integer marker")
        length = signature[offset + 1]
        offset += 2
        values.append(int.from_bytes(signature[offset : offset + length], "big"))
        offset += length

    if offset != len(signature):
        raise ValueError("Trailing data in DER signature")
    return values[0], values[1]


def is_low_s(signature: bytes) -> bool:
    _, s = decode_der_signature(signature)
    return 0 < s <= SECP256K1_ORDER // 2


def sign_digest(digest: bytes, private_key: PrivateKey) -> bytes:
    """
    Sign a 32-byte digest, returning a DER-encoded low-S signature.

    The digest is signed as-is (no additional hashing). libsecp256k1 nonces
    are RFC 6979 deterministic, so the same key and digest always yield the
    same signature.
    """
    if len(digest) != 32:
        raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")

    signature = private_key.sign(digest, hasher=None)
    if not is_low_s(signature):
        raise ValueError("Signer produced a high-S signature")
    return signature


def verify_digest(signature: bytes, digest: bytes, pubkey: bytes) -> bool:
    try:
        return PublicKey(pubkey).verify(signature, digest, hasher=None)
    except ValueError:
        return False
