"""
Exceptions raised while building, signing and broadcasting transactions.
"""

from __future__ import annotations


class ZcashError(Exception):
    """Base class for all mayazcash errors."""


class InvalidAddress(ZcashError):
    """Checksum, length or network prefix check failed for an address."""

    def __init__(self, address: str, reason: str = "invalid address"):
        self.address = address
        self.reason = reason
        super().__init__(f"{reason}: {address}")


class InvalidAmount(ZcashError):
    pass


class AmountTooLarge(InvalidAmount):
    def __init__(self, amount: int, limit: int):
        self.amount = amount
        self.limit = limit
        super().__init__(f"Amount too large: {amount} > {limit} zats")


class MemoTooLong(ZcashError):
    def __init__(self, memo: str, length: int, limit: int):
        self.memo = memo
        self.length = length
        self.limit = limit
        super().__init__(f"Memo too long: {length} bytes > {limit} bytes")


class InsufficientFunds(ZcashError):
    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(f"Not enough funds: have {available} zats, need {required} zats")


class InvalidSecretKey(ZcashError):
    pass


class TransportError(ZcashError):
    """RPC transport or protocol failure talking to the node."""


class RpcError(TransportError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | str, message: str):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code} from {method}: {message}")


class TransactionRejected(RpcError):
    """The node refused to accept the transaction into its mempool."""


class TransactionParseError(ZcashError):
    pass
