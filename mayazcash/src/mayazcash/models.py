"""
Core data models using Pydantic for validation and serialization.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mayazcash.constants import (
    DEFAULT_CONSENSUS_BRANCH_ID,
    MAINNET_ADDRESS_PREFIX,
    MAINNET_WIF_VERSION,
    MAX_AMOUNT,
    MAX_DIGEST_AMOUNT,
    TESTNET_ADDRESS_PREFIX,
    TESTNET_WIF_VERSION,
)


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    REGTEST = "regtest"


class NetworkParams(BaseModel):
    """Per-network constants mixed into addresses and signature digests."""

    model_config = ConfigDict(frozen=True)

    network: NetworkType
    address_prefix: bytes = Field(..., min_length=2, max_length=2)
    wif_version: int
    consensus_branch_id: int = Field(default=DEFAULT_CONSENSUS_BRANCH_ID, ge=0, le=0xFFFFFFFF)


def get_network_params(
    network: NetworkType | str, consensus_branch_id: int | None = None
) -> NetworkParams:
    """Get address prefix and consensus branch id for a network.

    Regtest shares the testnet address encoding.
    """
    network = NetworkType(network)
    if network == NetworkType.MAINNET:
        prefix, wif_version = MAINNET_ADDRESS_PREFIX, MAINNET_WIF_VERSION
    else:
        prefix, wif_version = TESTNET_ADDRESS_PREFIX, TESTNET_WIF_VERSION

    return NetworkParams(
        network=network,
        address_prefix=prefix,
        wif_version=wif_version,
        consensus_branch_id=(
            DEFAULT_CONSENSUS_BRANCH_ID if consensus_branch_id is None else consensus_branch_id
        ),
    )


class UnspentOutput(BaseModel):
    """A spendable output as returned by `getaddressutxos`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    address: str
    txid: str
    output_index: int = Field(..., alias="outputIndex", ge=0, le=0xFFFFFFFF)
    satoshis: int = Field(..., ge=0, le=MAX_DIGEST_AMOUNT)

    @field_validator("txid")
    @classmethod
    def validate_txid(cls, v: str) -> str:
        if len(v) != 64:
            raise ValueError(f"txid must be 64 hex characters, got {len(v)}")
        bytes.fromhex(v)
        return v.lower()


class PKHOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["pkh"] = "pkh"
    address: str
    amount: int = Field(..., ge=0, le=MAX_AMOUNT)


class DataCarrierOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["op_return"] = "op_return"
    memo: str


Output = Annotated[Union[PKHOutput, DataCarrierOutput], Field(discriminator="type")]


class UnsignedTransaction(BaseModel):
    """
    Transaction ready for signing.

    The order of inputs and outputs is fixed at construction and is used as-is
    for every digest and for serialization.
    """

    model_config = ConfigDict(frozen=True)

    height: int = Field(..., ge=0, le=0xFFFFFFFF)
    inputs: tuple[UnspentOutput, ...]
    outputs: tuple[Output, ...]
    fee: int = Field(..., ge=0)

    @property
    def total_input(self) -> int:
        return sum(utxo.satoshis for utxo in self.inputs)

    @property
    def total_output(self) -> int:
        return sum(out.amount for out in self.outputs if isinstance(out, PKHOutput))


class TxBytes(BaseModel):
    """Signed transaction with its locally computed id."""

    txid: str
    data: bytes

    @property
    def hex(self) -> str:
        return self.data.hex()


class ChainTip(BaseModel):
    height: int
    hash: str
