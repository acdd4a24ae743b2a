"""Core data models: node wire shapes and decoded results.

This module defines:
- `LogEntry`, `Transaction`, `Block`, `Receipt`: minimally normalized records
  as delivered by a node. Hashes and addresses are lowercased 0x-hex.
- `ValueKind` / `DecodedValue`: closed tagged variant over decoded ABI values.
- `EventParserResult`: one matched-and-decoded event occurrence.

Design notes
------------
- Every record is frozen; the decoder never mutates node data.
- Integers stay Python ints so uint256/int256 values are exact.
- Array and tuple values nest `DecodedValue` children, so callers switch on
  `kind` at every level instead of inspecting native Python types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# === Node records ===


@dataclass(slots=True, frozen=True)
class LogEntry:
    """Raw log as fetched from a node, minimally normalized."""

    address: str  # lowercased 0x...
    topics: tuple[str, ...]  # 0x-prefixed 32-byte words
    data_hex: str  # "0x..."
    block_number: int | None = None
    tx_hash: str = ""
    log_index: int | None = None
    block_hash: str | None = None
    transaction_index: int | None = None
    removed: bool = False


@dataclass(slots=True, frozen=True)
class Transaction:
    """Transaction identity as needed to fetch its receipt."""

    hash: str
    block_number: int | None = None
    block_hash: str | None = None
    transaction_index: int | None = None
    from_address: str | None = None
    to_address: str | None = None  # None for contract creation


@dataclass(slots=True, frozen=True)
class Block:
    """Block with its transactions in block order."""

    number: int
    hash: str | None = None
    transactions: tuple[Transaction, ...] = ()
    logs_bloom: str | None = None


@dataclass(slots=True, frozen=True)
class Receipt:
    """Execution receipt holding the logs a transaction emitted."""

    transaction_hash: str
    block_number: int | None = None
    status: int | None = None
    logs: tuple[LogEntry, ...] = ()
    logs_bloom: str | None = None


# === Decoded values ===


class ValueKind(Enum):
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FIXED_BYTES = "fixed_bytes"
    BYTES = "bytes"
    STRING = "string"
    ADDRESS = "address"
    ARRAY = "array"
    TUPLE = "tuple"
    DIGEST = "digest"  # keccak of an indexed dynamic value


@dataclass(slots=True, frozen=True)
class DecodedValue:
    """One decoded ABI argument.

    `value` holds the native Python value for scalar kinds and a tuple of
    `DecodedValue` children for ARRAY and TUPLE. DIGEST values are the raw
    32-byte topic of an indexed dynamic argument; they are flagged
    `reversible=False` since the original value cannot be recovered.
    """

    name: str
    type: str
    kind: ValueKind
    value: Any
    reversible: bool = True

    def to_python(self) -> Any:
        """Unwrap into plain Python values (lists for arrays, tuples for tuples)."""
        if self.kind is ValueKind.ARRAY:
            return [child.to_python() for child in self.value]
        if self.kind is ValueKind.TUPLE:
            return tuple(child.to_python() for child in self.value)
        return self.value


@dataclass(slots=True, frozen=True)
class EventParserResult:
    """One decoded event occurrence; `values` follow ABI declaration order."""

    event_name: str
    values: tuple[DecodedValue, ...]
    address: str
    tx_hash: str
    log_index: int | None
    block_number: int | None
    _by_name: dict[str, DecodedValue] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_name", {v.name: v for v in self.values})

    def __getitem__(self, name: str) -> DecodedValue:
        return self._by_name[name]

    def as_dict(self) -> dict[str, Any]:
        """Return `{param name: plain python value}` in declaration order."""
        return {v.name: v.to_python() for v in self.values}
