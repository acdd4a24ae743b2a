import json
from typing import Any

import httpx
import pytest

from evparse.clients.rpc import RPC, block_from_rpc, log_from_rpc, receipt_from_rpc
from evparse.core.errors import NotFound, TransportError
from evparse.core.interfaces import IChainProvider

TX_HASH = "0x" + "AB" * 32
RAW_LOG = {
    "address": "0x00000000000000000000000000000000000000AA",
    "topics": ["0x" + "DD" * 32],
    "data": "0x",
    "blockNumber": "0x10",
    "transactionHash": TX_HASH,
    "transactionIndex": "0x0",
    "blockHash": "0x" + "01" * 32,
    "logIndex": "0x2",
    "removed": False,
}
RAW_RECEIPT = {
    "transactionHash": TX_HASH,
    "blockNumber": "0x10",
    "status": "0x1",
    "logs": [RAW_LOG],
    "logsBloom": "0x" + "00" * 256,
}
RAW_TX = {
    "hash": TX_HASH,
    "blockNumber": "0x10",
    "blockHash": "0x" + "01" * 32,
    "transactionIndex": "0x0",
    "from": "0x00000000000000000000000000000000000000B0",
    "to": None,
}


def make_rpc(results: dict[str, Any], calls: list[dict[str, Any]] | None = None) -> RPC:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        method = body["method"]
        if method not in results:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "nope"}})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": results[method]})

    return RPC("http://node.test", transport=httpx.MockTransport(handler))


def test_log_mapping_normalizes() -> None:
    log = log_from_rpc(RAW_LOG)
    assert log.address == "0x00000000000000000000000000000000000000aa"
    assert log.topics == ("0x" + "dd" * 32,)
    assert log.tx_hash == TX_HASH.lower()
    assert (log.block_number, log.log_index, log.transaction_index) == (16, 2, 0)


def test_receipt_and_block_mapping() -> None:
    receipt = receipt_from_rpc(RAW_RECEIPT)
    assert receipt.status == 1
    assert len(receipt.logs) == 1

    block = block_from_rpc({"number": "0x10", "hash": "0xB", "transactions": [RAW_TX, "0xCAFE"]})
    assert block.number == 16
    assert [t.hash for t in block.transactions] == [TX_HASH.lower(), "0xcafe"]
    assert block.transactions[0].to_address is None


def test_rpc_is_a_chain_provider() -> None:
    with make_rpc({}) as rpc:
        assert isinstance(rpc, IChainProvider)


def test_fetch_receipt() -> None:
    calls: list[dict[str, Any]] = []
    with make_rpc({"eth_getTransactionReceipt": RAW_RECEIPT}, calls) as rpc:
        receipt = rpc.fetch_receipt(TX_HASH)
    assert receipt.transaction_hash == TX_HASH.lower()
    assert calls[0]["params"] == [TX_HASH]


def test_resolve_block_requests_full_transactions() -> None:
    calls: list[dict[str, Any]] = []
    with make_rpc({"eth_getBlockByNumber": {"number": "0x10", "transactions": [RAW_TX]}}, calls) as rpc:
        block = rpc.resolve_block(16)
    assert calls[0]["params"] == ["0x10", True]
    assert block.transactions[0].block_number == 16


def test_null_result_is_not_found() -> None:
    with make_rpc({"eth_getTransactionByHash": None, "eth_getBlockByNumber": None}) as rpc:
        with pytest.raises(NotFound):
            rpc.resolve_transaction(TX_HASH)
        with pytest.raises(NotFound):
            rpc.resolve_block(1)


def test_rpc_error_is_transport_error() -> None:
    with make_rpc({}) as rpc:
        with pytest.raises(TransportError, match="nope"):
            rpc.fetch_receipt(TX_HASH)


def test_http_failure_is_transport_error() -> None:
    rpc = RPC("http://node.test", transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    with pytest.raises(TransportError):
        rpc.latest_block()
    rpc.close()


def test_latest_block() -> None:
    with make_rpc({"eth_blockNumber": "0x1b4"}) as rpc:
        assert rpc.latest_block() == 436


@pytest.mark.parametrize("body", [None, [], [{"jsonrpc": "2.0", "id": 1, "result": "0x1"}]])
def test_non_object_response_is_transport_error(body: Any) -> None:
    rpc = RPC("http://node.test", transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)))
    with pytest.raises(TransportError):
        rpc.latest_block()
    rpc.close()
