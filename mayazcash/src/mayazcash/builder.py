"""
Transaction assembly: validation, coin selection, signing and finalization.

A payment always produces three outputs, in this order:
- change back to the sender
- the payment to the destination
- an OP_RETURN carrying the memo
"""

from __future__ import annotations

from collections.abc import Sequence

from coincurve import PrivateKey
from loguru import logger

from mayazcash.address import decode_address_for_network, hash160
from mayazcash.backends.base import BlockchainBackend
from mayazcash.constants import MAX_AMOUNT
from mayazcash.errors import AmountTooLarge, InsufficientFunds, InvalidAmount, InvalidSecretKey
from mayazcash.fees import calculate_fee
from mayazcash.models import (
    DataCarrierOutput,
    NetworkParams,
    Output,
    PKHOutput,
    TxBytes,
    UnsignedTransaction,
    UnspentOutput,
)
from mayazcash.script import memo_bytes
from mayazcash.selection import select_utxos
from mayazcash.serializer import serialize_transaction
from mayazcash.sighash import SighashEngine, ShieldedDigests
from mayazcash.signer import load_private_key, sign_digest


def validate_request(
    from_address: str, to_address: str, amount: int, memo: str, params: NetworkParams
) -> None:
    """
    Check a payment request before any UTXO is fetched or selected.

    Raises:
        InvalidAddress: Either address is malformed or belongs to another network
        InvalidAmount: Amount is not positive
        AmountTooLarge: Amount exceeds MAX_AMOUNT
        MemoTooLong: Memo exceeds MAX_MEMO_BYTES once UTF-8 encoded
    """
    decode_address_for_network(from_address, params.address_prefix)
    decode_address_for_network(to_address, params.address_prefix)
    if amount <= 0:
        raise InvalidAmount(f"Amount must be positive: {amount} zats")
    if amount > MAX_AMOUNT:
        raise AmountTooLarge(amount, MAX_AMOUNT)
    memo_bytes(memo)


def build_transaction(
    height: int,
    from_address: str,
    to_address: str,
    amount: int,
    memo: str,
    utxos: Sequence[UnspentOutput],
    params: NetworkParams,
) -> UnsignedTransaction:
    """
    Build an unsigned payment from ``from_address`` to ``to_address``.

    Args:
        height: Expiry height written into the transaction header
        utxos: Spendable outputs of ``from_address``, in preference order

    Raises:
        InsufficientFunds: The selected inputs cannot cover amount plus fee
        AmountTooLarge: The change would exceed MAX_AMOUNT
    """
    validate_request(from_address, to_address, amount, memo, params)

    inputs = select_utxos(utxos, amount)
    for utxo in inputs:
        decode_address_for_network(utxo.address, params.address_prefix)

    fee = calculate_fee(len(inputs))
    total_input = sum(utxo.satoshis for utxo in inputs)
    change = total_input - amount - fee
    if change < 0:
        raise InsufficientFunds(total_input, amount + fee)
    if change > MAX_AMOUNT:
        raise AmountTooLarge(change, MAX_AMOUNT)

    outputs: list[Output] = [
        PKHOutput(address=from_address, amount=change),
        PKHOutput(address=to_address, amount=amount),
        DataCarrierOutput(memo=memo),
    ]

    logger.info(
        f"Built transaction: {len(inputs)} input(s), amount={amount}, fee={fee}, change={change}"
    )
    return UnsignedTransaction(height=height, inputs=tuple(inputs), outputs=tuple(outputs), fee=fee)


async def build_tx(
    height: int,
    from_address: str,
    to_address: str,
    amount: int,
    memo: str,
    backend: BlockchainBackend,
    params: NetworkParams,
) -> UnsignedTransaction:
    """Validate the request, fetch the sender's UTXOs and build the payment."""
    validate_request(from_address, to_address, amount, memo, params)
    utxos = await backend.get_utxos(from_address)
    return build_transaction(height, from_address, to_address, amount, memo, utxos, params)


def sign_transaction(
    tx: UnsignedTransaction,
    private_key: PrivateKey,
    params: NetworkParams,
    shielded: ShieldedDigests | None = None,
) -> bytes:
    """
    Sign every input with ``private_key`` and serialize the result.

    Raises:
        InvalidSecretKey: The key does not control one of the inputs
        ValueError: The fee is not the difference between inputs and outputs
    """
    if tx.total_input != tx.total_output + tx.fee:
        raise ValueError(
            f"Unbalanced transaction: inputs {tx.total_input} != "
            f"outputs {tx.total_output} + fee {tx.fee}"
        )

    pubkey = private_key.public_key.format(compressed=True)
    pubkey_hash = hash160(pubkey)
    for utxo in tx.inputs:
        if decode_address_for_network(utxo.address, params.address_prefix) != pubkey_hash:
            raise InvalidSecretKey(
                f"Secret key does not control input {utxo.txid}:{utxo.output_index} "
                f"({utxo.address})"
            )

    engine = SighashEngine(tx, params, shielded)
    signatures = []
    for i in range(len(tx.inputs)):
        digest = engine.signature_digest(i)
        logger.debug(f"Input {i}: sighash={digest.hex()}")
        signatures.append(sign_digest(digest, private_key))

    raw = serialize_transaction(tx, signatures, pubkey, params)
    logger.info(f"Signed transaction {engine.txid()} ({len(raw)} bytes)")
    return raw


def sign_and_finalize(
    height: int,
    secret_key: str | bytes,
    inputs: Sequence[UnspentOutput],
    outputs: Sequence[Output],
    params: NetworkParams,
) -> bytes:
    """
    Sign a transaction given as explicit inputs and outputs.

    ``secret_key`` may be raw bytes, hex or WIF. The fee is whatever the
    inputs leave over after the outputs.
    """
    total_input = sum(utxo.satoshis for utxo in inputs)
    total_output = sum(out.amount for out in outputs if isinstance(out, PKHOutput))
    if total_output > total_input:
        raise InsufficientFunds(total_input, total_output)

    tx = UnsignedTransaction(
        height=height,
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        fee=total_input - total_output,
    )
    return sign_transaction(tx, load_private_key(secret_key, params.wif_version), params)


async def send_to_vault(
    height: int,
    secret_key: str | bytes,
    from_address: str,
    to_address: str,
    amount: int,
    memo: str,
    backend: BlockchainBackend,
    params: NetworkParams,
    broadcast: bool = True,
) -> TxBytes:
    """
    Build, sign and (optionally) broadcast a payment.

    Returns:
        The signed transaction and its txid. When broadcasting, the txid is
        the one reported by the node.
    """
    private_key = load_private_key(secret_key, params.wif_version)
    tx = await build_tx(height, from_address, to_address, amount, memo, backend, params)
    raw = sign_transaction(tx, private_key, params)
    txid = SighashEngine(tx, params).txid()

    if broadcast:
        txid = await backend.broadcast_transaction(raw.hex())

    return TxBytes(txid=txid, data=raw)
