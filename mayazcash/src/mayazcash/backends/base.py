"""
Base blockchain backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from mayazcash.models import ChainTip, UnspentOutput


class BlockchainBackend(ABC):
    """
    Source of spendable outputs and sink for signed transactions.

    Implementations surface transport failures as TransportError and do not
    retry; retry policy belongs to the caller.
    """

    @abstractmethod
    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        """Get unspent outputs for an address"""

    @abstractmethod
    async def broadcast_transaction(self, tx_hex: str) -> str:
        """Broadcast transaction, returns txid"""

    @abstractmethod
    async def get_block_height(self) -> int:
        """Get current blockchain height"""

    @abstractmethod
    async def get_block_hash(self, block_height: int) -> str:
        """Get block hash for given height"""

    async def get_chain_tip(self) -> ChainTip:
        height = await self.get_block_height()
        block_hash = await self.get_block_hash(height)
        return ChainTip(height=height, hash=block_hash)

    async def get_balance(self, address: str) -> int:
        """Balance of an address in zatoshis"""
        utxos = await self.get_utxos(address)
        return sum(utxo.satoshis for utxo in utxos)

    async def close(self) -> None:
        """Close backend connection"""
        pass
