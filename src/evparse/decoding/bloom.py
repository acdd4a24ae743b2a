"""2048-bit logs bloom checks used to skip blocks and receipts early.

Each inserted item (emitter address, every topic) sets three bits. The bit
indices are the low 11 bits of byte pairs (0,1), (2,3), (4,5) of
keccak256(item), counted from the least significant bit of the bloom.
"""

from __future__ import annotations

from eth_utils import decode_hex, keccak

from evparse.core.config import ParserConfig

BLOOM_BYTES = 256
BLOOM_BITS = BLOOM_BYTES * 8


def _bloom_bits(item: bytes) -> tuple[int, int, int]:
    h = keccak(item)
    return tuple(((h[i] << 8) | h[i + 1]) & (BLOOM_BITS - 1) for i in (0, 2, 4))  # type: ignore[return-value]


def bloom_add(bloom: int, item: bytes) -> int:
    """Return `bloom` with `item` inserted."""
    for bit in _bloom_bits(item):
        bloom |= 1 << bit
    return bloom


def bloom_from_items(items: list[bytes]) -> str:
    """Build a 0x-hex bloom containing every item."""
    bloom = 0
    for item in items:
        bloom = bloom_add(bloom, item)
    return "0x" + bloom.to_bytes(BLOOM_BYTES, "big").hex()


def _contains(bloom: int, item: bytes) -> bool:
    return all(bloom & (1 << bit) for bit in _bloom_bits(item))


def bloom_contains(bloom_hex: str, item: bytes) -> bool:
    """Return False only if `item` is definitely absent from the bloom."""
    return _contains(int.from_bytes(decode_hex(bloom_hex), "big"), item)


def bloom_may_match(bloom_hex: str | None, config: ParserConfig) -> bool:
    """Return False only if the bloom rules out every log `config` could match.

    Missing or malformed blooms never filter anything out.
    """
    if not bloom_hex:
        return True
    try:
        raw = decode_hex(bloom_hex)
    except ValueError:
        return True
    if len(raw) != BLOOM_BYTES:
        return True

    bloom = int.from_bytes(raw, "big")
    if config.address is not None and not _contains(bloom, decode_hex(config.address)):
        return False
    if not config.descriptor.anonymous:
        return _contains(bloom, decode_hex(config.descriptor.signature_hash))
    return True
