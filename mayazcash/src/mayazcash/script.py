"""
Script construction for P2PKH and OP_RETURN outputs.

Locking scripts returned by ``address_to_script``, ``memo_to_script`` and
``output_script`` carry their own CompactSize length prefix, which is how
they appear both in the ZIP-244 outputs digest and in the raw transaction.
"""

from __future__ import annotations

from mayazcash.address import decode_address, decode_address_for_network, encode_address
from mayazcash.constants import (
    MAX_DIRECT_PUSH,
    MAX_MEMO_BYTES,
    OP_CHECKSIG,
    OP_DUP,
    OP_EQUALVERIFY,
    OP_HASH160,
    OP_PUSHDATA1,
    OP_RETURN,
    PUBKEY_HASH_LENGTH,
    SIGHASH_ALL,
)
from mayazcash.encoding import encode_compact_size
from mayazcash.errors import MemoTooLong
from mayazcash.models import DataCarrierOutput, Output, PKHOutput

P2PKH_SCRIPT_LENGTH = 25
# Including the length prefix
P2PKH_SCRIPT_SIZE = P2PKH_SCRIPT_LENGTH + 1


def push_data(data: bytes) -> bytes:
    """Minimal push for payloads up to 255 bytes."""
    if len(data) <= MAX_DIRECT_PUSH:
        return bytes([len(data)]) + data
    if len(data) <= 0xFF:
        return bytes([OP_PUSHDATA1, len(data)]) + data
    raise ValueError(f"Push too large: {len(data)} bytes")


def p2pkh_script(pubkey_hash: bytes) -> bytes:
    """OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG"""
    if len(pubkey_hash) != PUBKEY_HASH_LENGTH:
        raise ValueError(f"Invalid pubkey hash length: {len(pubkey_hash)}")
    return (
        bytes([OP_DUP, OP_HASH160, PUBKEY_HASH_LENGTH])
        + pubkey_hash
        + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    )


def address_to_script(address: str, prefix: bytes | None = None) -> bytes:
    """
    Length-prefixed P2PKH locking script (26 bytes) for a transparent address.

    Raises:
        InvalidAddress: Checksum, length or (when ``prefix`` is given) network mismatch
    """
    if prefix is None:
        _, pubkey_hash = decode_address(address)
    else:
        pubkey_hash = decode_address_for_network(address, prefix)
    return encode_compact_size(P2PKH_SCRIPT_LENGTH) + p2pkh_script(pubkey_hash)


def memo_bytes(memo: str) -> bytes:
    data = memo.encode("utf-8")
    if len(data) > MAX_MEMO_BYTES:
        raise MemoTooLong(memo, len(data), MAX_MEMO_BYTES)
    return data


def memo_to_script(memo: str) -> bytes:
    """Length-prefixed OP_RETURN script carrying the UTF-8 memo."""
    script = bytes([OP_RETURN]) + push_data(memo_bytes(memo))
    return encode_compact_size(len(script)) + script


def output_script(output: Output) -> bytes:
    if isinstance(output, PKHOutput):
        return address_to_script(output.address)
    if isinstance(output, DataCarrierOutput):
        return memo_to_script(output.memo)
    raise TypeError(f"Unsupported output type: {type(output).__name__}")


def output_amount(output: Output) -> int:
    """Value carried by an output. Data carriers are always zero-valued."""
    if isinstance(output, PKHOutput):
        return output.amount
    if isinstance(output, DataCarrierOutput):
        return 0
    raise TypeError(f"Unsupported output type: {type(output).__name__}")


def script_sig(signature: bytes, pubkey: bytes, sighash_type: int = SIGHASH_ALL) -> bytes:
    """Unlocking script: <DER signature || sighash type> <compressed pubkey>"""
    return push_data(signature + bytes([sighash_type])) + push_data(pubkey)


def parse_script_sig(script: bytes) -> tuple[bytes, bytes]:
    """Split a P2PKH unlocking script into (signature with sighash byte, pubkey)."""
    items: list[bytes] = []
    offset = 0
    while offset < len(script):
        length = script[offset]
        offset += 1
        if length == OP_PUSHDATA1:
            length = script[offset]
            offset += 1
        elif length > MAX_DIRECT_PUSH:
            raise ValueError(f"Unexpected opcode in scriptSig: {length:#x}")
        if offset + length > len(script):
            raise ValueError("Truncated push in scriptSig")
        items.append(script[offset : offset + length])
        offset += length

    if len(items) != 2:
        raise ValueError(f"Expected 2 pushes in scriptSig, got {len(items)}")
    return items[0], items[1]


def script_to_output(value: int, script: bytes, prefix: bytes) -> Output:
    """
    Recover an output from its raw (unprefixed) locking script.

    Raises:
        ValueError: Script is neither P2PKH nor a single-push OP_RETURN
    """
    if (
        len(script) == P2PKH_SCRIPT_LENGTH
        and script[:3] == bytes([OP_DUP, OP_HASH160, PUBKEY_HASH_LENGTH])
        and script[-2:] == bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    ):
        return PKHOutput(address=encode_address(script[3:23], prefix), amount=value)

    if script and script[0] == OP_RETURN:
        body = script[1:]
        if body and body[0] == OP_PUSHDATA1:
            data = body[2 : 2 + body[1]]
        elif body:
            data = body[1 : 1 + body[0]]
        else:
            data = b""
        return DataCarrierOutput(memo=data.decode("utf-8"))

    raise ValueError(f"Unsupported scriptPubKey: {script.hex()}")
