"""
zcashd JSON-RPC blockchain backend.
Requires a node running with -insightexplorer / -lightwalletd so that the
address index RPCs are available.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from mayazcash.backends.base import BlockchainBackend
from mayazcash.errors import RpcError, TransactionRejected, TransportError
from mayazcash.models import UnspentOutput

# Timeout for RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0


class ZcashdBackend(BlockchainBackend):
    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:18232",
        rpc_user: str = "rpcuser",
        rpc_password: str = "rpcpassword",
        timeout: float = DEFAULT_RPC_TIMEOUT,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.rpc_user = rpc_user
        self.client = httpx.AsyncClient(timeout=timeout, auth=(rpc_user, rpc_password))
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to zcashd.

        Raises:
            TransportError: Connection/timeout failures, HTTP errors or RPC errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise TransportError(f"RPC call {method} failed: {e}") from e

        # zcashd reports RPC errors with a JSON body and a non-2xx status
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            error_info = data["error"]
            error_code = error_info.get("code", "unknown")
            error_msg = error_info.get("message", str(error_info))
            logger.error(f"RPC error from {method}: {error_code} {error_msg}")
            raise RpcError(method, error_code, error_msg)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise TransportError(f"RPC call {method} failed: {e}") from e

        if not isinstance(data, dict):
            raise TransportError(f"RPC call {method} returned a non-JSON-RPC response")

        return data.get("result")

    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        result = await self._rpc_call("getaddressutxos", [address])
        try:
            utxos = [UnspentOutput.model_validate(u) for u in result or []]
        except ValidationError as e:
            raise TransportError(f"Could not parse getaddressutxos response: {e}") from e

        logger.debug(
            f"Found {len(utxos)} UTXO(s) for {address}, "
            f"total {sum(u.satoshis for u in utxos)} zats"
        )
        return utxos

    async def get_balance(self, address: str) -> int:
        result = await self._rpc_call("getaddressbalance", [address])
        if not isinstance(result, dict) or "balance" not in result:
            raise TransportError("No balance field in getaddressbalance response")
        balance = int(result["balance"])
        logger.debug(f"Balance for {address}: {balance} zats")
        return balance

    async def broadcast_transaction(self, tx_hex: str) -> str:
        try:
            txid = await self._rpc_call("sendrawtransaction", [tx_hex])
        except RpcError as e:
            logger.error(f"Transaction rejected: {e.message}")
            raise TransactionRejected(e.method, e.code, e.message) from e

        logger.info(f"Broadcast transaction: {txid}")
        return txid

    async def get_block_height(self) -> int:
        height = await self._rpc_call("getblockcount", [])
        logger.debug(f"Current block height: {height}")
        return int(height)

    async def get_block_hash(self, block_height: int) -> str:
        block_hash = await self._rpc_call("getblockhash", [block_height])
        logger.debug(f"Block hash for height {block_height}: {block_hash}")
        return block_hash

    async def close(self) -> None:
        await self.client.aclose()
