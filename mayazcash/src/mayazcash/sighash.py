"""
ZIP-244 signature digests for transparent-only v5 transactions.

Every facet of the transaction is hashed with BLAKE2b-256 under its own
16-byte personalization. The six digests that do not depend on the input
being signed are computed once per transaction; only the per-input digest,
the transparent digest and the final signature digest are recomputed for
each input.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass

from loguru import logger

from mayazcash.constants import (
    EMPTY_ORCHARD_DIGEST,
    EMPTY_SAPLING_DIGEST,
    LOCK_TIME,
    PERSONALIZATION_AMOUNTS,
    PERSONALIZATION_HEADERS,
    PERSONALIZATION_OUTPUTS,
    PERSONALIZATION_PREVOUTS,
    PERSONALIZATION_SCRIPTS,
    PERSONALIZATION_SEQUENCES,
    PERSONALIZATION_TRANSPARENT,
    PERSONALIZATION_TX_HASH_PREFIX,
    PERSONALIZATION_TXIN,
    SEQUENCE_FINAL,
    SIGHASH_ALL,
    TX_VERSION,
    TX_VERSION_GROUP_ID,
)
from mayazcash.encoding import ByteWriter, txid_to_bytes
from mayazcash.models import NetworkParams, UnsignedTransaction, UnspentOutput
from mayazcash.script import P2PKH_SCRIPT_SIZE, address_to_script, output_amount, output_script

DIGEST_SIZE = 32
HEADER_SIZE = 20
TXIN_PREIMAGE_SIZE = 32 + 4 + 8 + P2PKH_SCRIPT_SIZE + 4
TRANSPARENT_PREIMAGE_SIZE = 1 + 6 * DIGEST_SIZE
SIGNATURE_PREIMAGE_SIZE = 4 * DIGEST_SIZE


def blake2b_256(data: bytes, personalization: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=DIGEST_SIZE, person=personalization).digest()


def tx_hash_personalization(consensus_branch_id: int) -> bytes:
    return PERSONALIZATION_TX_HASH_PREFIX + struct.pack("<I", consensus_branch_id)


@dataclass(frozen=True)
class ShieldedDigests:
    """
    Digests standing in for the Sapling and Orchard bundles.

    The defaults are the ZIP-244 digests of empty bundles, which are correct
    only for transactions without shielded components.
    """

    sapling: bytes = EMPTY_SAPLING_DIGEST
    orchard: bytes = EMPTY_ORCHARD_DIGEST


@dataclass(frozen=True)
class SharedDigests:
    header: bytes
    prevouts: bytes
    sequences: bytes
    outputs: bytes
    amounts: bytes
    scripts: bytes


def write_header(writer: ByteWriter, height: int, consensus_branch_id: int) -> ByteWriter:
    """v5 header fields, shared by the header digest and the raw transaction."""
    return (
        writer.write_uint32(TX_VERSION)
        .write_uint32(TX_VERSION_GROUP_ID)
        .write_uint32(consensus_branch_id)
        .write_uint32(LOCK_TIME)
        .write_uint32(height)
    )


def write_outpoint(writer: ByteWriter, utxo: UnspentOutput) -> ByteWriter:
    return writer.write(txid_to_bytes(utxo.txid), 32).write_uint32(utxo.output_index)


def header_digest(height: int, consensus_branch_id: int) -> bytes:
    preimage = write_header(ByteWriter(), height, consensus_branch_id).getvalue(HEADER_SIZE)
    return blake2b_256(preimage, PERSONALIZATION_HEADERS)


def prevouts_digest(inputs: tuple[UnspentOutput, ...]) -> bytes:
    writer = ByteWriter()
    for utxo in inputs:
        write_outpoint(writer, utxo)
    return blake2b_256(writer.getvalue(36 * len(inputs)), PERSONALIZATION_PREVOUTS)


def sequences_digest(inputs: tuple[UnspentOutput, ...]) -> bytes:
    writer = ByteWriter()
    for _ in inputs:
        writer.write_uint32(SEQUENCE_FINAL)
    return blake2b_256(writer.getvalue(4 * len(inputs)), PERSONALIZATION_SEQUENCES)


def outputs_digest(tx: UnsignedTransaction) -> bytes:
    writer = ByteWriter()
    for output in tx.outputs:
        writer.write_digest_amount(output_amount(output)).write(output_script(output))
    return blake2b_256(writer.getvalue(), PERSONALIZATION_OUTPUTS)


def amounts_digest(inputs: tuple[UnspentOutput, ...]) -> bytes:
    writer = ByteWriter()
    for utxo in inputs:
        writer.write_digest_amount(utxo.satoshis)
    return blake2b_256(writer.getvalue(8 * len(inputs)), PERSONALIZATION_AMOUNTS)


def scripts_digest(inputs: tuple[UnspentOutput, ...]) -> bytes:
    writer = ByteWriter()
    for utxo in inputs:
        writer.write(address_to_script(utxo.address), P2PKH_SCRIPT_SIZE)
    return blake2b_256(writer.getvalue(), PERSONALIZATION_SCRIPTS)


class SighashEngine:
    """
    Computes ZIP-244 SIGHASH_ALL digests for every input of a transaction.

    Shared digests are computed in the constructor and never change, so the
    per-input methods can be called in any order (or concurrently).
    """

    def __init__(
        self,
        tx: UnsignedTransaction,
        params: NetworkParams,
        shielded: ShieldedDigests | None = None,
    ):
        self.tx = tx
        self.params = params
        self.shielded = shielded or ShieldedDigests()
        self.shared = SharedDigests(
            header=header_digest(tx.height, params.consensus_branch_id),
            prevouts=prevouts_digest(tx.inputs),
            sequences=sequences_digest(tx.inputs),
            outputs=outputs_digest(tx),
            amounts=amounts_digest(tx.inputs),
            scripts=scripts_digest(tx.inputs),
        )
        self._personalization = tx_hash_personalization(params.consensus_branch_id)
        logger.debug(
            f"Shared digests for {len(tx.inputs)} input(s): "
            f"header={self.shared.header.hex()} outputs={self.shared.outputs.hex()}"
        )

    def _input(self, index: int) -> UnspentOutput:
        if not 0 <= index < len(self.tx.inputs):
            raise IndexError(f"Input index {index} out of range ({len(self.tx.inputs)} inputs)")
        return self.tx.inputs[index]

    def txin_digest(self, index: int) -> bytes:
        utxo = self._input(index)
        writer = write_outpoint(ByteWriter(), utxo)
        writer.write_digest_amount(utxo.satoshis)
        writer.write(address_to_script(utxo.address), P2PKH_SCRIPT_SIZE)
        writer.write_uint32(SEQUENCE_FINAL)
        return blake2b_256(writer.getvalue(TXIN_PREIMAGE_SIZE), PERSONALIZATION_TXIN)

    def transparent_digest(self, index: int, sighash_type: int = SIGHASH_ALL) -> bytes:
        shared = self.shared
        writer = (
            ByteWriter()
            .write_uint8(sighash_type)
            .write(shared.prevouts, DIGEST_SIZE)
            .write(shared.amounts, DIGEST_SIZE)
            .write(shared.scripts, DIGEST_SIZE)
            .write(shared.sequences, DIGEST_SIZE)
            .write(shared.outputs, DIGEST_SIZE)
            .write(self.txin_digest(index), DIGEST_SIZE)
        )
        return blake2b_256(writer.getvalue(TRANSPARENT_PREIMAGE_SIZE), PERSONALIZATION_TRANSPARENT)

    def signature_digest(self, index: int, sighash_type: int = SIGHASH_ALL) -> bytes:
        """The 32-byte value signed for input ``index``."""
        writer = (
            ByteWriter()
            .write(self.shared.header, DIGEST_SIZE)
            .write(self.transparent_digest(index, sighash_type), DIGEST_SIZE)
            .write(self.shielded.sapling, DIGEST_SIZE)
            .write(self.shielded.orchard, DIGEST_SIZE)
        )
        return blake2b_256(writer.getvalue(SIGNATURE_PREIMAGE_SIZE), self._personalization)

    def signature_digests(self) -> list[bytes]:
        return [self.signature_digest(i) for i in range(len(self.tx.inputs))]

    def txid(self) -> str:
        """
        Transaction id (ZIP-244 txid digest), displayed byte-reversed.

        Unlike the signature digest, the transparent part of the txid commits
        only to prevouts, sequences and outputs.
        """
        transparent = blake2b_256(
            self.shared.prevouts + self.shared.sequences + self.shared.outputs,
            PERSONALIZATION_TRANSPARENT,
        )
        digest = blake2b_256(
            self.shared.header + transparent + self.shielded.sapling + self.shielded.orchard,
            self._personalization,
        )
        return digest[::-1].hex()
