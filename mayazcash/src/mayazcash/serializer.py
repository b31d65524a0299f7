"""
Raw v5 transaction serialization for transparent-only transactions.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mayazcash.constants import SEQUENCE_FINAL, SIGHASH_ALL
from mayazcash.encoding import ByteReader, ByteWriter
from mayazcash.errors import TransactionParseError
from mayazcash.models import NetworkParams, UnsignedTransaction
from mayazcash.script import output_amount, output_script, script_sig
from mayazcash.sighash import write_header, write_outpoint

# nSpendsSapling, nOutputsSapling and nActionsOrchard, all zero
EMPTY_SHIELDED_SECTION = bytes(3)


@dataclass
class ParsedInput:
    txid: str
    output_index: int
    script_sig: bytes
    sequence: int


@dataclass
class ParsedOutput:
    value: int
    script: bytes


@dataclass
class ParsedTransaction:
    version: int
    version_group_id: int
    consensus_branch_id: int
    lock_time: int
    expiry_height: int
    inputs: list[ParsedInput]
    outputs: list[ParsedOutput]


def serialize_transaction(
    tx: UnsignedTransaction,
    signatures: Sequence[bytes],
    pubkey: bytes,
    params: NetworkParams,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    """
    Serialize a signed transaction.

    Args:
        tx: Transaction that was signed
        signatures: DER signatures, one per input in input order
        pubkey: Compressed public key of the signing key
        params: Network the transaction was signed for

    Returns:
        Raw transaction bytes ready for ``sendrawtransaction``
    """
    if len(signatures) != len(tx.inputs):
        raise ValueError(f"Expected {len(tx.inputs)} signatures, got {len(signatures)}")

    writer = write_header(ByteWriter(), tx.height, params.consensus_branch_id)

    writer.write_compact_size(len(tx.inputs))
    for utxo, signature in zip(tx.inputs, signatures):
        write_outpoint(writer, utxo)
        writer.write_var_bytes(script_sig(signature, pubkey, sighash_type))
        writer.write_uint32(SEQUENCE_FINAL)

    writer.write_compact_size(len(tx.outputs))
    for output in tx.outputs:
        writer.write_uint64(output_amount(output)).write(output_script(output))

    writer.write(EMPTY_SHIELDED_SECTION)
    return writer.getvalue()


def deserialize_transaction(raw: bytes) -> ParsedTransaction:
    """
    Parse a transparent-only v5 transaction.

    Raises:
        TransactionParseError: Truncated data, trailing bytes or shielded components
    """
    reader = ByteReader(raw)
    version = reader.read_uint32()
    version_group_id = reader.read_uint32()
    consensus_branch_id = reader.read_uint32()
    lock_time = reader.read_uint32()
    expiry_height = reader.read_uint32()

    inputs = []
    for _ in range(reader.read_compact_size()):
        txid = reader.read(32)[::-1].hex()
        output_index = reader.read_uint32()
        sig_script = reader.read_var_bytes()
        sequence = reader.read_uint32()
        inputs.append(ParsedInput(txid, output_index, sig_script, sequence))

    outputs = []
    for _ in range(reader.read_compact_size()):
        value = reader.read_uint64()
        outputs.append(ParsedOutput(value, reader.read_var_bytes()))

    shielded = reader.read(len(EMPTY_SHIELDED_SECTION))
    if shielded != EMPTY_SHIELDED_SECTION:
        raise TransactionParseError(f"Shielded components are not supported: {shielded.hex()}")
    if reader.remaining:
        raise TransactionParseError(f"{reader.remaining} trailing bytes after transaction")

    return ParsedTransaction(
        version=version,
        version_group_id=version_group_id,
        consensus_branch_id=consensus_branch_id,
        lock_time=lock_time,
        expiry_height=expiry_height,
        inputs=inputs,
        outputs=outputs,
    )
