from __future__ import annotations

from typing import Protocol, runtime_checkable

from evparse.core.models import Block, Receipt, Transaction


# ---------------------------------------------------------------------------
# IChainProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IChainProvider(Protocol):
    """
    Abstract source of transactions, blocks and receipts.

    Domain expectations:
    - It returns records already mapped into internal domain models.
    - It raises `NotFound` when the node has no such object and
      `TransportError` when the node cannot be reached or answers with an error.
    - It performs its own retries, if any. The parser never retries.
    """

    def resolve_transaction(self, tx_hash: str) -> Transaction:
        """
        Return the transaction with the given 0x-hex hash.

        Implementations:
        - JSON-RPC (`eth_getTransactionByHash`)
        - In-memory provider for testing
        """
        ...

    def resolve_block(self, number: int) -> Block:
        """
        Return the block at `number`, with its transactions in block order.
        """
        ...

    def fetch_receipt(self, tx_hash: str) -> Receipt:
        """
        Return the receipt of the given transaction, logs in emission order.
        """
        ...
