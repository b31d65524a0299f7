"""
Test configuration for mayazcash tests.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from coincurve import PrivateKey

from mayazcash.address import secret_key_to_address
from mayazcash.models import NetworkParams, NetworkType, UnspentOutput, get_network_params
from mayazcash.signer import load_private_key

UtxoFactory = Callable[..., UnspentOutput]


@pytest.fixture
def secret_key_hex() -> str:
    """Regtest signing key (not for production use!)."""
    return "8ae9c0c958937eeec71e034650e889085c10e91ae1ab94a26c26182f9516a37f"


@pytest.fixture
def vault_pubkey() -> bytes:
    return bytes.fromhex("03c622fa3be76cd25180d5a61387362181caca77242023be11775134fd37f403f7")


@pytest.fixture
def to_address() -> str:
    """Testnet address of ``vault_pubkey``."""
    return "tmGys6dBuEGjch5LFnhdo5gpSa7jiNRWse6"


@pytest.fixture
def other_address() -> str:
    return "tmP9jLgTnhDdKdWJCm4BT2t6acGnxqP14yU"


@pytest.fixture
def make_utxo() -> UtxoFactory:
    """Factory for UTXOs with a distinct, reproducible txid per ``seed``."""

    def _make(address: str, satoshis: int, seed: int, output_index: int = 0) -> UnspentOutput:
        return UnspentOutput(
            address=address,
            txid=f"{seed:02x}" * 31 + "ab",
            outputIndex=output_index,
            satoshis=satoshis,
        )

    return _make


@pytest.fixture
def testnet() -> NetworkParams:
    return get_network_params(NetworkType.TESTNET)


@pytest.fixture
def mainnet() -> NetworkParams:
    return get_network_params(NetworkType.MAINNET)


@pytest.fixture
def private_key(secret_key_hex: str) -> PrivateKey:
    return load_private_key(secret_key_hex)


@pytest.fixture
def pubkey(private_key: PrivateKey) -> bytes:
    return private_key.public_key.format(compressed=True)


@pytest.fixture
def from_address(private_key: PrivateKey, testnet: NetworkParams) -> str:
    return secret_key_to_address(private_key, testnet.address_prefix)


@pytest.fixture
def three_utxos(from_address: str, make_utxo: UtxoFactory) -> list[UnspentOutput]:
    """Three 400k UTXOs: enough for 1,000,000 zats plus the 15,000 zat fee."""
    return [
        make_utxo(from_address, 400_000, seed=1, output_index=0),
        make_utxo(from_address, 400_000, seed=2, output_index=1),
        make_utxo(from_address, 400_000, seed=3, output_index=7),
    ]
