"""
Zcash transparent transaction constants.

Values follow the NU5 v5 transaction format (ZIP-225) and the ZIP-244
transaction digest algorithm.
"""

from __future__ import annotations

# Static fee table: every input costs BASE_FEE, with a floor of MIN_FEE_INPUTS
BASE_FEE = 5_000  # zatoshis
MIN_FEE_INPUTS = 3

# Largest amount accepted for a single payment (1M ZEC)
MAX_AMOUNT = 100_000_000_000_000  # zatoshis

# Amounts are written as 6 little-endian bytes inside an 8-byte slot in digests
AMOUNT_DIGEST_WIDTH = 6
MAX_DIGEST_AMOUNT = (1 << (8 * AMOUNT_DIGEST_WIDTH)) - 1

# Largest OP_RETURN payload relayed by standard nodes
MAX_MEMO_BYTES = 80

# Transaction header (v5, overwintered bit set)
TX_VERSION = 0x80000005
TX_VERSION_GROUP_ID = 0x26A7270A
LOCK_TIME = 0
SEQUENCE_FINAL = 0xFFFFFFFF
# Blocks past the chain tip before an unmined transaction expires (zcashd -txexpirydelta)
DEFAULT_EXPIRY_DELTA = 40

# NU6 consensus branch id
DEFAULT_CONSENSUS_BRANCH_ID = 0xC8E71055

# Two-byte Base58Check prefixes for P2PKH transparent addresses
MAINNET_ADDRESS_PREFIX = bytes([0x1C, 0xB8])  # t1...
TESTNET_ADDRESS_PREFIX = bytes([0x1D, 0x25])  # tm...

# WIF version bytes for secret keys
MAINNET_WIF_VERSION = 0x80
TESTNET_WIF_VERSION = 0xEF

SIGHASH_ALL = 0x01

# ZIP-244 BLAKE2b personalizations (16 bytes each)
PERSONALIZATION_HEADERS = b"ZTxIdHeadersHash"
PERSONALIZATION_PREVOUTS = b"ZTxIdPrevoutHash"
PERSONALIZATION_SEQUENCES = b"ZTxIdSequencHash"
PERSONALIZATION_OUTPUTS = b"ZTxIdOutputsHash"
PERSONALIZATION_AMOUNTS = b"ZTxTrAmountsHash"
PERSONALIZATION_SCRIPTS = b"ZTxTrScriptsHash"
PERSONALIZATION_TXIN = b"Zcash___TxInHash"
PERSONALIZATION_TRANSPARENT = b"ZTxIdTranspaHash"
# Followed by the 4-byte little-endian consensus branch id
PERSONALIZATION_TX_HASH_PREFIX = b"ZcashTxHash_"

# Digests of empty shielded bundles:
# BLAKE2b-256("ZTxIdSaplingHash", b"") and BLAKE2b-256("ZTxIdOrchardHash", b"")
EMPTY_SAPLING_DIGEST = bytes.fromhex(
    "6f2fc8f98feafd94e74a0df4bed74391ee0b5a69945e4ced8ca8a095206f00ae"
)
EMPTY_ORCHARD_DIGEST = bytes.fromhex(
    "9fbe4ed13b0c08e671c11a3407d84e1117cd45028a2eee1b9feae78b48a6e2c1"
)

# Script opcodes
OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC
OP_RETURN = 0x6A
OP_PUSHDATA1 = 0x4C
MAX_DIRECT_PUSH = 0x4B

PUBKEY_HASH_LENGTH = 20
COMPRESSED_PUBKEY_LENGTH = 33
