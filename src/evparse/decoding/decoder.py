"""Turn one matched log into an `EventParserResult`.

Indexed arguments come from the topics, non-indexed ones from the data
blob (head-tail tuple of the non-indexed parameters). Both groups are merged
back into ABI declaration order.
"""

from __future__ import annotations

from typing import Any

from eth_utils import decode_hex

from evparse.core.config import ParserConfig
from evparse.core.errors import MalformedValue, PreconditionFailed
from evparse.core.models import DecodedValue, EventParserResult, LogEntry, ValueKind
from evparse.decoding.abi_types import WORD_SIZE, AbiType
from evparse.decoding.codec import decode_static, decode_tuple
from evparse.decoding.matcher import matches

# ---------- native value → tagged variant ----------


def _scalar_kind(t: AbiType) -> ValueKind:
    if t.base in ("uint", "int"):
        return ValueKind.INTEGER
    if t.base == "bool":
        return ValueKind.BOOLEAN
    if t.base == "address":
        return ValueKind.ADDRESS
    if t.base == "string":
        return ValueKind.STRING
    return ValueKind.BYTES if t.size is None else ValueKind.FIXED_BYTES


def to_decoded_value(name: str, t: AbiType, value: Any) -> DecodedValue:
    """Wrap a native codec value (recursively) into a `DecodedValue`."""
    if t.base == "array":
        assert t.item is not None
        children = tuple(to_decoded_value(str(i), t.item, v) for i, v in enumerate(value))
        return DecodedValue(name=name, type=t.canonical, kind=ValueKind.ARRAY, value=children)
    if t.base == "tuple":
        children = tuple(
            to_decoded_value(n, ct, v) for n, ct, v in zip(t.component_names, t.components, value)
        )
        return DecodedValue(name=name, type=t.canonical, kind=ValueKind.TUPLE, value=children)
    return DecodedValue(name=name, type=t.canonical, kind=_scalar_kind(t), value=value)


# ---------- helper functions ----------


def _topic_word(topic: str) -> bytes:
    try:
        word = decode_hex(topic)
    except ValueError as e:
        raise MalformedValue(f"topic {topic!r} is not valid hex") from e
    if len(word) != WORD_SIZE:
        raise MalformedValue(f"topic {topic!r} is {len(word)} bytes, expected 32")
    return word


def _decode_topic(name: str, t: AbiType, topic: str) -> DecodedValue:
    word = _topic_word(topic)
    if t.is_word:
        return to_decoded_value(name, t, decode_static(t, word))
    # Dynamic (or multi-word) indexed values are stored as their keccak hash.
    return DecodedValue(name=name, type=t.canonical, kind=ValueKind.DIGEST, value=word, reversible=False)


def _data_bytes(data_hex: str) -> bytes:
    try:
        return decode_hex(data_hex or "0x")
    except ValueError as e:
        raise MalformedValue(f"log data is not valid hex: {e}") from e


# ---------- main decoder ----------


def decode_log(log: LogEntry, config: ParserConfig) -> EventParserResult:
    """Decode a log that `matches(log, config)`.

    Raises `PreconditionFailed` for a non-matching log, and `MalformedValue`,
    `TruncatedData` or `OffsetOutOfRange` when the log does not conform to
    the descriptor.
    """
    if not matches(log, config):
        raise PreconditionFailed(
            f"log {log.tx_hash}:{log.log_index} does not match {config.descriptor.signature}"
        )
    descriptor = config.descriptor

    # Parse topic fields
    topics = iter(log.topics if descriptor.anonymous else log.topics[1:])
    topic_vals: dict[int, DecodedValue] = {}
    for i, p in enumerate(descriptor.params):
        if p.indexed:
            topic_vals[i] = _decode_topic(p.name, p.type, next(topics))

    # Parse data fields
    data_params = [(i, p) for i, p in enumerate(descriptor.params) if not p.indexed]
    data_vals: dict[int, DecodedValue] = {}
    if data_params:
        natives = decode_tuple([p.type for _, p in data_params], _data_bytes(log.data_hex))
        for (i, p), v in zip(data_params, natives):
            data_vals[i] = to_decoded_value(p.name, p.type, v)

    values = tuple(
        topic_vals[i] if p.indexed else data_vals[i] for i, p in enumerate(descriptor.params)
    )
    return EventParserResult(
        event_name=descriptor.name,
        values=values,
        address=log.address,
        tx_hash=log.tx_hash,
        log_index=log.log_index,
        block_number=log.block_number,
    )
