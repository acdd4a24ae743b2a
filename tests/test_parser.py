from unittest.mock import MagicMock

import pytest
from conftest import ALICE, BOB, OTHER, TOKEN, FakeProvider, make_log

from evparse.core.config import ParserConfig
from evparse.core.errors import NotFound, TransportError
from evparse.core.interfaces import IChainProvider
from evparse.core.logging import logger
from evparse.core.models import Block, LogEntry, Receipt, Transaction
from evparse.decoding.bloom import bloom_from_items
from evparse.orchestration.parser import EventParser


def _chain(config: ParserConfig) -> FakeProvider:
    """Block 7 with three transactions:

    - t1: a Transfer, an unrelated log, a second Transfer
    - t2: a Transfer from another token plus a truncated Transfer
    - t3: a Transfer
    """
    t1_logs = (
        make_log(config, [ALICE, BOB], [1], tx_hash="0xt1", log_index=0, block_number=7),
        LogEntry(address=TOKEN, topics=("0x" + "ab" * 32,), data_hex="0x", tx_hash="0xt1", log_index=1),
        make_log(config, [BOB, ALICE], [2], tx_hash="0xt1", log_index=2, block_number=7),
    )
    good = make_log(config, [ALICE, BOB], [3], tx_hash="0xt2", log_index=4, block_number=7)
    t2_logs = (
        make_log(config, [ALICE, BOB], [99], address=OTHER, tx_hash="0xt2", log_index=3, block_number=7),
        LogEntry(address=TOKEN, topics=good.topics, data_hex="0x1234", tx_hash="0xt2", log_index=4),
    )
    t3_logs = (make_log(config, [BOB, BOB], [4], tx_hash="0xt3", log_index=5, block_number=7),)

    txs = tuple(Transaction(hash=h, block_number=7) for h in ("0xt1", "0xt2", "0xt3"))
    return FakeProvider(
        transactions={tx.hash: tx for tx in txs},
        blocks={7: Block(number=7, hash="0xb7", transactions=txs), 8: Block(number=8)},
        receipts={
            "0xt1": Receipt(transaction_hash="0xt1", block_number=7, status=1, logs=t1_logs),
            "0xt2": Receipt(transaction_hash="0xt2", block_number=7, status=1, logs=t2_logs),
            "0xt3": Receipt(transaction_hash="0xt3", block_number=7, status=1, logs=t3_logs),
        },
    )


def _values(results) -> list[int]:
    return [r["value"].value for r in results]


def test_fake_provider_satisfies_protocol(transfer_config: ParserConfig) -> None:
    assert isinstance(_chain(transfer_config), IChainProvider)


def test_parse_transaction_keeps_log_order(transfer_config: ParserConfig) -> None:
    provider = _chain(transfer_config)
    results = EventParser(transfer_config, provider).parse_transaction(Transaction(hash="0xt1"))
    assert _values(results) == [1, 2]
    assert [r.log_index for r in results] == [0, 2]
    assert provider.receipt_calls == ["0xt1"]


def test_parse_transaction_by_hash(transfer_config: ParserConfig) -> None:
    results = EventParser(transfer_config, _chain(transfer_config)).parse_transaction_by_hash("0xt3")
    assert _values(results) == [4]


def test_parse_block_in_block_order_dropping_bad_logs(transfer_config: ParserConfig) -> None:
    # t2's truncated Transfer is dropped; the other logs still come through.
    results = EventParser(transfer_config, _chain(transfer_config)).parse_block_by_number(7)
    assert _values(results) == [1, 2, 4]
    assert [r.tx_hash for r in results] == ["0xt1", "0xt1", "0xt3"]


def test_any_address_includes_other_token(any_address_config: ParserConfig) -> None:
    results = EventParser(any_address_config, _chain(any_address_config)).parse_block_by_number(7)
    assert _values(results) == [1, 2, 99, 4]


def test_empty_block_yields_empty_list(transfer_config: ParserConfig) -> None:
    parser = EventParser(transfer_config, _chain(transfer_config))
    assert parser.parse_block(Block(number=8)) == []
    assert parser.parse_block_by_number(8) == []


def test_repeated_scans_are_identical(transfer_config: ParserConfig) -> None:
    parser = EventParser(transfer_config, _chain(transfer_config))
    assert parser.parse_block_by_number(7) == parser.parse_block_by_number(7)


def test_resolution_errors_abort(transfer_config: ParserConfig) -> None:
    parser = EventParser(transfer_config, _chain(transfer_config))
    with pytest.raises(NotFound):
        parser.parse_transaction_by_hash("0xmissing")
    with pytest.raises(NotFound):
        parser.parse_block_by_number(999)


def test_transport_error_from_receipt_fetch(transfer_config: ParserConfig) -> None:
    provider = MagicMock()
    provider.fetch_receipt.side_effect = TransportError("node down")
    parser = EventParser(transfer_config, provider)
    with pytest.raises(TransportError):
        parser.parse_block(Block(number=1, transactions=(Transaction(hash="0xt1"),)))


def test_logs_inherit_transaction_context(transfer_config: ParserConfig) -> None:
    bare = make_log(transfer_config, [ALICE, BOB], [5], tx_hash="")
    bare = LogEntry(address=bare.address, topics=bare.topics, data_hex=bare.data_hex, log_index=0)
    provider = FakeProvider(receipts={"0xt9": Receipt(transaction_hash="", logs=(bare,))})

    (result,) = EventParser(transfer_config, provider).parse_transaction(Transaction(hash="0xt9", block_number=12))
    assert (result.tx_hash, result.block_number) == ("0xt9", 12)


# ---------- bloom pre-filter ----------


def test_block_bloom_skips_receipt_fetches(transfer_config: ParserConfig) -> None:
    provider = _chain(transfer_config)
    unrelated = bloom_from_items([bytes.fromhex("cc" * 20)])
    block = Block(number=7, transactions=provider.blocks[7].transactions, logs_bloom=unrelated)

    assert EventParser(transfer_config, provider).parse_block(block) == []
    assert provider.receipt_calls == []


def test_bloom_containing_event_is_scanned(transfer_config: ParserConfig) -> None:
    provider = _chain(transfer_config)
    bloom = bloom_from_items(
        [bytes.fromhex(TOKEN[2:]), bytes.fromhex(transfer_config.descriptor.signature_hash[2:])]
    )
    block = Block(number=7, transactions=provider.blocks[7].transactions, logs_bloom=bloom)
    assert _values(EventParser(transfer_config, provider).parse_block(block)) == [1, 2, 4]


def test_bloom_filter_can_be_disabled(transfer_config: ParserConfig) -> None:
    config = ParserConfig(descriptor=transfer_config.descriptor, address=TOKEN, use_bloom_filter=False)
    provider = _chain(config)
    unrelated = bloom_from_items([bytes.fromhex("cc" * 20)])
    block = Block(number=7, transactions=provider.blocks[7].transactions, logs_bloom=unrelated)
    assert _values(EventParser(config, provider).parse_block(block)) == [1, 2, 4]


# ---------- async twins ----------


@pytest.mark.asyncio
async def test_async_matches_sync(transfer_config: ParserConfig) -> None:
    parser = EventParser(transfer_config, _chain(transfer_config))
    assert await parser.parse_block_by_number_async(7) == parser.parse_block_by_number(7)
    assert await parser.parse_block_async(Block(number=8)) == []
    assert await parser.parse_transaction_async(Transaction(hash="0xt1")) == parser.parse_transaction(
        Transaction(hash="0xt1")
    )
    assert _values(await parser.parse_transaction_by_hash_async("0xt3")) == [4]


@pytest.mark.asyncio
async def test_async_propagates_resolution_error(transfer_config: ParserConfig) -> None:
    parser = EventParser(transfer_config, _chain(transfer_config))
    with pytest.raises(NotFound):
        await parser.parse_transaction_by_hash_async("0xmissing")


def test_dropped_log_is_reported(transfer_config: ParserConfig) -> None:
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="WARNING", format="{message}")
    logger.enable("evparse")
    try:
        EventParser(transfer_config, _chain(transfer_config)).parse_block_by_number(7)
    finally:
        logger.disable("evparse")
        logger.remove(sink_id)
    assert len(messages) == 1
    assert "TruncatedData" in messages[0]
    assert "0xt2:4" in messages[0]


def test_library_is_silent_until_enabled(transfer_config: ParserConfig) -> None:
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="TRACE", format="{message}")
    try:
        EventParser(transfer_config, _chain(transfer_config)).parse_block_by_number(7)
        logger.info("host application message")
    finally:
        logger.remove(sink_id)
    assert [m.strip() for m in messages] == ["host application message"]
