from collections.abc import Sequence
from typing import Any

import pytest

from evparse.core.config import ParserConfig
from evparse.core.errors import NotFound
from evparse.core.logging import logger
from evparse.core.models import Block, LogEntry, Receipt, Transaction
from evparse.decoding.codec import encode_topic, encode_tuple

TOKEN = "0x00000000000000000000000000000000000000aa"
OTHER = "0x00000000000000000000000000000000000000bb"
ALICE = "0x1234567890123456789012345678901234567890"
BOB = "0x00000000000000000000000000000000000000b0"

TRANSFER_SIG = "Transfer(address indexed from, address indexed to, uint256 value)"


def make_log(
    config: ParserConfig,
    indexed: Sequence[Any] = (),
    data: Sequence[Any] = (),
    *,
    address: str = TOKEN,
    tx_hash: str = "0xt1",
    log_index: int = 0,
    block_number: int = 1,
) -> LogEntry:
    """Build a well-formed log for `config.descriptor` from python values."""
    d = config.descriptor
    topics = [encode_topic(p.type, v) for p, v in zip(d.indexed_params, indexed)]
    if not d.anonymous:
        topics.insert(0, d.signature_hash)
    blob = encode_tuple([p.type for p in d.data_params], list(data))
    return LogEntry(
        address=address,
        topics=tuple(topics),
        data_hex="0x" + blob.hex(),
        block_number=block_number,
        tx_hash=tx_hash,
        log_index=log_index,
    )


class FakeProvider:
    """In-memory IChainProvider."""

    def __init__(
        self,
        *,
        transactions: dict[str, Transaction] | None = None,
        blocks: dict[int, Block] | None = None,
        receipts: dict[str, Receipt] | None = None,
    ) -> None:
        self.transactions = transactions or {}
        self.blocks = blocks or {}
        self.receipts = receipts or {}
        self.receipt_calls: list[str] = []

    def resolve_transaction(self, tx_hash: str) -> Transaction:
        try:
            return self.transactions[tx_hash]
        except KeyError:
            raise NotFound(tx_hash) from None

    def resolve_block(self, number: int) -> Block:
        try:
            return self.blocks[number]
        except KeyError:
            raise NotFound(str(number)) from None

    def fetch_receipt(self, tx_hash: str) -> Receipt:
        self.receipt_calls.append(tx_hash)
        try:
            return self.receipts[tx_hash]
        except KeyError:
            raise NotFound(tx_hash) from None


@pytest.fixture
def transfer_config() -> ParserConfig:
    return ParserConfig.for_signature(TRANSFER_SIG, address=TOKEN)


@pytest.fixture
def any_address_config() -> ParserConfig:
    return ParserConfig.for_signature(TRANSFER_SIG)


@pytest.fixture(autouse=True)
def _quiet_library_logging():
    # CLI commands enable evparse logging globally; restore the import-time state.
    yield
    logger.disable("evparse")
