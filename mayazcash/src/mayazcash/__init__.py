"""
mayazcash - Transparent Zcash transaction builder

Builds, signs (ZIP-244) and serializes v5 transparent payments, and talks to
zcashd for UTXOs and broadcasting.
"""

__version__ = "0.1.0"

from mayazcash.address import (
    decode_address,
    is_valid_address,
    pubkey_to_address,
    secret_key_to_address,
)
from mayazcash.builder import (
    build_transaction,
    build_tx,
    send_to_vault,
    sign_and_finalize,
    sign_transaction,
    validate_request,
)
from mayazcash.errors import (
    AmountTooLarge,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    InvalidSecretKey,
    MemoTooLong,
    RpcError,
    TransactionParseError,
    TransactionRejected,
    TransportError,
    ZcashError,
)
from mayazcash.fees import calculate_fee
from mayazcash.models import (
    DataCarrierOutput,
    NetworkParams,
    NetworkType,
    PKHOutput,
    TxBytes,
    UnsignedTransaction,
    UnspentOutput,
    get_network_params,
)
from mayazcash.script import address_to_script, memo_to_script
from mayazcash.selection import select_utxos
from mayazcash.serializer import deserialize_transaction, serialize_transaction
from mayazcash.sighash import ShieldedDigests, SighashEngine

__all__ = [
    "AmountTooLarge",
    "DataCarrierOutput",
    "InsufficientFunds",
    "InvalidAddress",
    "InvalidAmount",
    "InvalidSecretKey",
    "MemoTooLong",
    "NetworkParams",
    "NetworkType",
    "PKHOutput",
    "RpcError",
    "ShieldedDigests",
    "SighashEngine",
    "TransactionParseError",
    "TransactionRejected",
    "TransportError",
    "TxBytes",
    "UnsignedTransaction",
    "UnspentOutput",
    "ZcashError",
    "address_to_script",
    "build_transaction",
    "build_tx",
    "calculate_fee",
    "decode_address",
    "deserialize_transaction",
    "get_network_params",
    "is_valid_address",
    "memo_to_script",
    "pubkey_to_address",
    "secret_key_to_address",
    "select_utxos",
    "send_to_vault",
    "serialize_transaction",
    "sign_and_finalize",
    "sign_transaction",
    "validate_request",
]
