"""ABI value codec: 32-byte word decoding and head-tail tuple layout.

Decoding returns native Python values:
- integers → int (arbitrary precision, never truncated)
- bool → bool
- address → EIP-55 checksummed str
- bytesN / bytes → bytes
- string → str
- arrays and tuples → tuple of native values

Layout rules (head-tail):
- A tuple reserves `head_size` bytes per parameter, left to right.
- Static parameters live in the head.
- Dynamic parameters store a 32-byte offset in the head, relative to the
  start of the tuple, pointing to their payload in the tail.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eth_utils import keccak, to_canonical_address, to_checksum_address

from evparse.core.errors import MalformedValue, OffsetOutOfRange, TruncatedData
from evparse.decoding.abi_types import WORD_SIZE, AbiType, parse_abi_type

ZERO_WORD = b"\x00" * WORD_SIZE
_UINT256_MOD = 1 << 256
_INT256_SIGN = 1 << 255

TypeLike = AbiType | str


def _ceil32(n: int) -> int:
    return n if n % WORD_SIZE == 0 else n + WORD_SIZE - n % WORD_SIZE


def _word(blob: bytes, pos: int) -> bytes:
    """Return the 32-byte word at `pos` or raise TruncatedData."""
    end = pos + WORD_SIZE
    if end > len(blob):
        raise TruncatedData(f"need {end} bytes, blob has {len(blob)}")
    return blob[pos:end]


def _read_uint(blob: bytes, pos: int) -> int:
    return int.from_bytes(_word(blob, pos), "big")


# ---------- decoding ----------


def decode_static(abi_type: TypeLike, word: bytes) -> Any:
    """Decode one single-word static value. Total over any 32-byte word."""
    t = parse_abi_type(abi_type)
    if not t.is_word:
        raise MalformedValue(f"{t.canonical} is not a single-word static type")
    if len(word) != WORD_SIZE:
        raise MalformedValue(f"expected a 32-byte word, got {len(word)} bytes")

    if t.base == "uint":
        return int.from_bytes(word, "big")
    if t.base == "int":
        v = int.from_bytes(word, "big")
        return v - _UINT256_MOD if v & _INT256_SIGN else v
    if t.base == "bool":
        return any(word)
    if t.base == "address":
        # High 12 bytes are ignored; some legacy encoders leave junk there.
        return to_checksum_address(word[-20:])
    assert t.size is not None
    return bytes(word[: t.size])


def _decode_in_head(t: AbiType, blob: bytes, pos: int) -> Any:
    if t.is_word:
        return decode_static(t, _word(blob, pos))
    if t.base == "tuple":
        return _decode_sequence(t.components, blob, pos)[0]
    # static fixed-size array
    assert t.item is not None and t.length is not None
    return _decode_sequence((t.item,) * t.length, blob, pos)[0]


def _check_count(count: int, item: AbiType, blob: bytes, start: int) -> None:
    # Zero-size items would let any count through.
    if item.head_size == 0:
        raise MalformedValue(f"array item {item.canonical} has no encoded size")
    if count * item.head_size > len(blob) - start:
        raise TruncatedData(f"array of {count} x {item.canonical} does not fit in the remaining data")


def decode_dynamic(abi_type: TypeLike, blob: bytes, offset: int) -> tuple[Any, int]:
    """Decode a dynamic value whose payload starts at `offset`.

    Returns `(value, consumed_bytes)`.
    """
    t = parse_abi_type(abi_type)
    if not t.is_dynamic:
        raise MalformedValue(f"{t.canonical} is not a dynamic type")

    if t.base in ("bytes", "string"):
        length = _read_uint(blob, offset)
        padded = _ceil32(length)
        end = offset + WORD_SIZE + padded
        if end > len(blob):
            raise TruncatedData(f"{t.canonical} of length {length} needs {end} bytes, blob has {len(blob)}")
        payload = blob[offset + WORD_SIZE : offset + WORD_SIZE + length]
        if t.base == "string":
            try:
                return payload.decode("utf-8"), WORD_SIZE + padded
            except UnicodeDecodeError as e:
                raise MalformedValue(f"string is not valid UTF-8: {e}") from e
        return bytes(payload), WORD_SIZE + padded

    if t.base == "array":
        assert t.item is not None
        if t.length is None:
            count = _read_uint(blob, offset)
            start = offset + WORD_SIZE
            _check_count(count, t.item, blob, start)
            values, used = _decode_sequence((t.item,) * count, blob, start)
            return values, WORD_SIZE + used
        _check_count(t.length, t.item, blob, offset)
        return _decode_sequence((t.item,) * t.length, blob, offset)

    # dynamic tuple
    return _decode_sequence(t.components, blob, offset)


def _decode_sequence(types: Sequence[AbiType], blob: bytes, start: int) -> tuple[tuple[Any, ...], int]:
    """Walk heads left to right, following offsets into the tail."""
    values: list[Any] = []
    pos = start
    end = start + sum(t.head_size for t in types)
    for t in types:
        if t.is_dynamic:
            rel = _read_uint(blob, pos)
            target = start + rel
            if target >= len(blob):
                raise OffsetOutOfRange(f"offset {rel} (absolute {target}) outside blob of {len(blob)} bytes")
            value, used = decode_dynamic(t, blob, target)
            end = max(end, target + used)
        else:
            value = _decode_in_head(t, blob, pos)
        values.append(value)
        pos += t.head_size
    return tuple(values), end - start


def decode_tuple(types: Sequence[TypeLike], blob: bytes) -> tuple[Any, ...]:
    """Decode a full head-tail encoded tuple (e.g. a log's data section)."""
    parsed = tuple(parse_abi_type(t) for t in types)
    return _decode_sequence(parsed, bytes(blob), 0)[0]


# ---------- encoding ----------


def encode_static(abi_type: TypeLike, value: Any) -> bytes:
    """Encode one single-word static value into a 32-byte word."""
    t = parse_abi_type(abi_type)
    if not t.is_word:
        raise MalformedValue(f"{t.canonical} is not a single-word static type")

    if t.base == "uint":
        if not isinstance(value, int) or not 0 <= value < (1 << t.size):
            raise MalformedValue(f"{value!r} out of range for {t.canonical}")
        return value.to_bytes(WORD_SIZE, "big")
    if t.base == "int":
        bound = 1 << (t.size - 1)
        if not isinstance(value, int) or not -bound <= value < bound:
            raise MalformedValue(f"{value!r} out of range for {t.canonical}")
        return (value % _UINT256_MOD).to_bytes(WORD_SIZE, "big")
    if t.base == "bool":
        return (1 if value else 0).to_bytes(WORD_SIZE, "big")
    if t.base == "address":
        try:
            raw = to_canonical_address(value)
        except ValueError as e:
            raise MalformedValue(f"invalid address {value!r}") from e
        return raw.rjust(WORD_SIZE, b"\x00")
    raw = bytes(value)
    if len(raw) > t.size:
        raise MalformedValue(f"{len(raw)} bytes do not fit in {t.canonical}")
    return raw.ljust(WORD_SIZE, b"\x00")


def _encode(t: AbiType, value: Any) -> bytes:
    if t.is_word:
        return encode_static(t, value)
    if t.base in ("bytes", "string"):
        raw = value.encode("utf-8") if t.base == "string" else bytes(value)
        return len(raw).to_bytes(WORD_SIZE, "big") + raw.ljust(_ceil32(len(raw)), b"\x00")
    if t.base == "tuple":
        return _encode_sequence(t.components, value)
    assert t.item is not None
    items = list(value)
    if t.length is None:
        return len(items).to_bytes(WORD_SIZE, "big") + _encode_sequence((t.item,) * len(items), items)
    if len(items) != t.length:
        raise MalformedValue(f"{t.canonical} expects {t.length} items, got {len(items)}")
    return _encode_sequence((t.item,) * t.length, items)


def _encode_sequence(types: Sequence[AbiType], values: Sequence[Any]) -> bytes:
    values = list(values)
    if len(values) != len(types):
        raise MalformedValue(f"expected {len(types)} values, got {len(values)}")
    heads: list[bytes] = []
    tails: list[bytes] = []
    tail_offset = sum(t.head_size for t in types)
    for t, v in zip(types, values):
        if t.is_dynamic:
            heads.append(tail_offset.to_bytes(WORD_SIZE, "big"))
            payload = _encode(t, v)
            tails.append(payload)
            tail_offset += len(payload)
        else:
            heads.append(_encode(t, v))
    return b"".join(heads) + b"".join(tails)


def encode_dynamic(abi_type: TypeLike, value: Any) -> bytes:
    """Encode the tail payload of a dynamic value."""
    t = parse_abi_type(abi_type)
    if not t.is_dynamic:
        raise MalformedValue(f"{t.canonical} is not a dynamic type")
    return _encode(t, value)


def encode_tuple(types: Sequence[TypeLike], values: Sequence[Any]) -> bytes:
    """Head-tail encode `values` as a tuple of `types`."""
    return _encode_sequence(tuple(parse_abi_type(t) for t in types), values)


def encode_topic(abi_type: TypeLike, value: Any) -> str:
    """Return the 0x-hex topic an indexed argument of this type produces.

    Single-word types are stored as-is; `string` and `bytes` are stored as
    the keccak-256 of their raw contents.
    """
    t = parse_abi_type(abi_type)
    if t.is_word:
        return "0x" + encode_static(t, value).hex()
    if t.base == "string":
        return "0x" + keccak(text=value).hex()
    if t.base == "bytes":
        return "0x" + keccak(bytes(value)).hex()
    raise MalformedValue(f"topic encoding of {t.canonical} is not supported")
