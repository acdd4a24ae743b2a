"""Lightweight JSON-RPC chain provider for Ethereum-compatible nodes.

This module provides:
- `RPC`: a blocking `IChainProvider` with sane timeouts/connection limits
- `*_from_rpc` helpers mapping node JSON into domain records

Errors:
- a `null` result raises `NotFound`
- HTTP failures and JSON-RPC `error` objects raise `TransportError`
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from evparse.core.errors import NotFound, TransportError
from evparse.core.logging import logger
from evparse.core.models import Block, LogEntry, Receipt, Transaction


def to_hex_block(x: int) -> str:
    """Return a 0x-prefixed hex block number."""
    return hex(x)


def _int_or_none(v: Any) -> int | None:
    if v is None:
        return None
    if isinstance(v, int):
        return v
    return int(v, 16) if str(v).startswith("0x") else int(v)


def _lower_or_none(v: str | None) -> str | None:
    return v.lower() if isinstance(v, str) else None


# ---------- node JSON → domain records ----------


def log_from_rpc(rl: Mapping[str, Any]) -> LogEntry:
    topics = tuple((t if isinstance(t, str) else t.decode()).lower() for t in rl.get("topics", []))
    return LogEntry(
        address=rl["address"].lower(),
        topics=topics,
        data_hex=str(rl.get("data") or "0x"),
        block_number=_int_or_none(rl.get("blockNumber")),
        tx_hash=(rl.get("transactionHash") or "").lower(),
        log_index=_int_or_none(rl.get("logIndex")),
        block_hash=_lower_or_none(rl.get("blockHash")),
        transaction_index=_int_or_none(rl.get("transactionIndex")),
        removed=bool(rl.get("removed", False)),
    )


def transaction_from_rpc(rt: Mapping[str, Any] | str) -> Transaction:
    # Blocks fetched without full transactions only carry hashes.
    if isinstance(rt, str):
        return Transaction(hash=rt.lower())
    return Transaction(
        hash=rt["hash"].lower(),
        block_number=_int_or_none(rt.get("blockNumber")),
        block_hash=_lower_or_none(rt.get("blockHash")),
        transaction_index=_int_or_none(rt.get("transactionIndex")),
        from_address=_lower_or_none(rt.get("from")),
        to_address=_lower_or_none(rt.get("to")),
    )


def block_from_rpc(rb: Mapping[str, Any]) -> Block:
    return Block(
        number=_int_or_none(rb.get("number")) or 0,
        hash=_lower_or_none(rb.get("hash")),
        transactions=tuple(transaction_from_rpc(t) for t in rb.get("transactions", [])),
        logs_bloom=rb.get("logsBloom"),
    )


def receipt_from_rpc(rr: Mapping[str, Any]) -> Receipt:
    return Receipt(
        transaction_hash=rr["transactionHash"].lower(),
        block_number=_int_or_none(rr.get("blockNumber")),
        status=_int_or_none(rr.get("status")),
        logs=tuple(log_from_rpc(rl) for rl in rr.get("logs", [])),
        logs_bloom=rr.get("logsBloom"),
    )


class RPC:
    """Minimal blocking RPC client implementing `IChainProvider`.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    transport : httpx.BaseTransport | None
        Optional transport override (e.g. `httpx.MockTransport` in tests).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_s: int = 20,
        max_connections: int = 64,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.client = httpx.Client(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
            transport=transport,
        )
        self._logger = logger.bind(module="RPC")

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            r = self.client.post(self.url, json=payload)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error(f"RPC transport failure ({method}): {e}")
            raise TransportError(f"{method} failed: {e}") from e
        if not isinstance(data, dict):
            self._logger.error(f"RPC Error ({method}): unexpected response {data!r}")
            raise TransportError(f"{method} returned a non-object response")
        if "error" in data:
            err = data["error"]
            msg = f"{err.get('code')} {err.get('message')}" if isinstance(err, dict) else str(err)
            self._logger.error(f"RPC Error ({method}): {msg}")
            raise TransportError(f"RPC error: {msg}")
        return data.get("result")

    def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(self._call("eth_blockNumber", []), 16)

    def resolve_transaction(self, tx_hash: str) -> Transaction:
        result = self._call("eth_getTransactionByHash", [tx_hash])
        if result is None:
            raise NotFound(f"transaction {tx_hash} not found")
        return transaction_from_rpc(result)

    def resolve_block(self, number: int) -> Block:
        result = self._call("eth_getBlockByNumber", [to_hex_block(number), True])
        if result is None:
            raise NotFound(f"block {number} not found")
        return block_from_rpc(result)

    def fetch_receipt(self, tx_hash: str) -> Receipt:
        self._logger.trace(f"Fetching receipt for tx: {tx_hash}")
        result = self._call("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            raise NotFound(f"receipt for {tx_hash} not found")
        return receipt_from_rpc(result)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()

    def __enter__(self) -> RPC:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
