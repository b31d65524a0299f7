"""
Blockchain backend implementations.

Available backends:
- ZcashdBackend: zcashd JSON-RPC with the address index enabled
  (getaddressutxos / getaddressbalance)
"""

from mayazcash.backends.base import BlockchainBackend
from mayazcash.backends.zcashd import ZcashdBackend

__all__ = [
    "BlockchainBackend",
    "ZcashdBackend",
]
