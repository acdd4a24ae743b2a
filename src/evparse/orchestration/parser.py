"""Scan orchestrator: transaction / block → receipts → matched, decoded events.

`EventParser` walks logs in a deterministic order:
- transactions in block order,
- logs in emission order within each receipt.

Every entry point has an `_async` twin that runs the same synchronous scan on
a worker thread (`asyncio.to_thread`), so both calling conventions return
identical results for the same node responses.

Failure policy:
- `ResolutionError` from the provider aborts the call.
- `DecodeError` on a single log drops that log; the scan continues.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import replace

from evparse.core.config import ParserConfig
from evparse.core.errors import DecodeError
from evparse.core.interfaces import IChainProvider
from evparse.core.logging import logger
from evparse.core.models import Block, EventParserResult, LogEntry, Receipt, Transaction
from evparse.decoding.bloom import bloom_may_match
from evparse.decoding.decoder import decode_log
from evparse.decoding.matcher import matches


class EventParser:
    """Finds and decodes one configured event in transactions and blocks.

    Parameters
    ----------
    config : ParserConfig
        Event descriptor and optional emitter address. Immutable, so one
        parser can serve any number of concurrent scans.
    provider : IChainProvider
        Source of transactions, blocks and receipts.
    """

    def __init__(self, config: ParserConfig, provider: IChainProvider) -> None:
        self.config = config
        self.provider = provider
        self._logger = logger.bind(module="EventParser")

    # ---- log-level pipeline ----

    def parse_logs(self, logs: Iterable[LogEntry]) -> list[EventParserResult]:
        """Match and decode `logs`, keeping input order and dropping bad logs."""
        out: list[EventParserResult] = []
        for log in logs:
            if not matches(log, self.config):
                continue
            try:
                out.append(decode_log(log, self.config))
            except DecodeError as e:
                self._logger.warning(
                    f"Dropping log {log.tx_hash}:{log.log_index} from {log.address} "
                    f"({self.config.descriptor.signature}): {type(e).__name__}: {e}"
                )
        return out

    def parse_receipt(
        self,
        receipt: Receipt,
        *,
        tx_hash: str = "",
        block_number: int | None = None,
    ) -> list[EventParserResult]:
        """Parse the logs of `receipt`.

        Logs missing a transaction hash or block number inherit them from the
        receipt, then from `tx_hash` / `block_number`.
        """
        if self.config.use_bloom_filter and not bloom_may_match(receipt.logs_bloom, self.config):
            return []
        tx_hash = receipt.transaction_hash or tx_hash
        if receipt.block_number is not None:
            block_number = receipt.block_number
        return self.parse_logs(_with_context(log, tx_hash, block_number) for log in receipt.logs)

    # ---- blocking entry points ----

    def parse_transaction(self, transaction: Transaction) -> list[EventParserResult]:
        """Parse the receipt of `transaction` for matching events."""
        self._logger.trace(f"Fetching receipt for tx: {transaction.hash}")
        receipt = self.provider.fetch_receipt(transaction.hash)
        return self.parse_receipt(receipt, tx_hash=transaction.hash, block_number=transaction.block_number)

    def parse_transaction_by_hash(self, tx_hash: str) -> list[EventParserResult]:
        """Resolve `tx_hash` through the provider, then parse it."""
        self._logger.debug(f"Resolving transaction {tx_hash}")
        transaction = self.provider.resolve_transaction(tx_hash)
        return self.parse_transaction(transaction)

    def parse_block(self, block: Block) -> list[EventParserResult]:
        """Parse every transaction of `block` in block order."""
        if self.config.use_bloom_filter and not bloom_may_match(block.logs_bloom, self.config):
            self._logger.debug(f"Block {block.number} ruled out by logs bloom")
            return []
        out: list[EventParserResult] = []
        for transaction in block.transactions:
            out.extend(self.parse_transaction(transaction))
        return out

    def parse_block_by_number(self, number: int) -> list[EventParserResult]:
        """Resolve block `number` through the provider, then parse it."""
        self._logger.debug(f"Resolving block {number}")
        block = self.provider.resolve_block(number)
        return self.parse_block(block)

    # ---- non-blocking entry points ----

    async def parse_transaction_async(self, transaction: Transaction) -> list[EventParserResult]:
        return await asyncio.to_thread(self.parse_transaction, transaction)

    async def parse_transaction_by_hash_async(self, tx_hash: str) -> list[EventParserResult]:
        return await asyncio.to_thread(self.parse_transaction_by_hash, tx_hash)

    async def parse_block_async(self, block: Block) -> list[EventParserResult]:
        return await asyncio.to_thread(self.parse_block, block)

    async def parse_block_by_number_async(self, number: int) -> list[EventParserResult]:
        return await asyncio.to_thread(self.parse_block_by_number, number)


def _with_context(log: LogEntry, tx_hash: str, block_number: int | None) -> LogEntry:
    if log.tx_hash and log.block_number is not None:
        return log
    return replace(
        log,
        tx_hash=log.tx_hash or tx_hash,
        block_number=log.block_number if log.block_number is not None else block_number,
    )
